# pipeline.py
import logging
import threading
import time
from typing import List

from .config import LOGGER_DELAY
from .decimator import DecimationEngine
from .errors import SinkWriteError, SourceExhausted, SourceTransientError
from .nodes import AcceptedRecord
from .scan_counter import ScanCounter

log = logging.getLogger(__name__)


class CancelToken:
    """Stop request shared between the loop and whoever wants it to end."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()

    def wait(self, seconds):
        """Sleep up to ``seconds``; returns early (True) once cancelled."""
        return self._event.wait(seconds)


class ScanPipeline:
    """
    Single-threaded poll -> decimate -> fan-out loop.

    The engine and counter belong to the pipeline; sinks only ever see
    immutable AcceptedRecord objects. A sink that fails is dropped and the
    rest keep going; a failed poll just skips the iteration.
    """

    def __init__(self, source, sinks, engine=None, counter=None, clock=time.time):
        self.source = source
        self.sinks = list(sinks)
        self.counter = counter or ScanCounter()
        self.engine = engine or DecimationEngine()
        self.engine.on_wraparound = self.counter.on_wraparound
        self.clock = clock

        self.batches = 0
        self.failed_polls = 0
        self.disabled = []

    def process_batch(self, nodes) -> List[AcceptedRecord]:
        self.counter.on_batch_start()
        self.batches += 1

        records = []
        for node in nodes:
            # Stamp with the value before this node can trigger a wraparound
            scan_number = self.counter.value
            point = self.engine.process(node)
            if point is not None:
                records.append(AcceptedRecord.stamp(point, int(self.clock()), scan_number))
        return records

    def dispatch(self, records):
        for sink in list(self.sinks):
            try:
                for record in records:
                    sink.emit(record)
                sink.end_batch()
            except SinkWriteError as e:
                log.error(f"[Error] {sink.name} sink disabled: {e}")
                self._disable(sink)

    def _disable(self, sink):
        self.sinks.remove(sink)
        self.disabled.append(sink)
        try:
            sink.close()
        except (SinkWriteError, OSError) as e:
            log.warning(f"[Error] closing {sink.name} sink failed: {e}")

    def run_once(self):
        try:
            nodes = self.source.poll()
        except SourceTransientError as e:
            self.failed_polls += 1
            log.warning(f"[Lidar] Poll failed, skipping: {e}")
            return []

        records = self.process_batch(nodes)
        self.dispatch(records)
        log.info(f"Scan #{self.counter.value} - Collected {len(nodes)} data points")
        return records

    def run(self, token: CancelToken, delay=LOGGER_DELAY):
        try:
            while not token.cancelled:
                try:
                    self.run_once()
                except SourceExhausted as e:
                    log.info(f"[System] {e}")
                    break
                if token.wait(delay):
                    break
        finally:
            self.shutdown()

    def shutdown(self):
        for sink in self.sinks:
            try:
                sink.close()
            except (SinkWriteError, OSError) as e:
                log.warning(f"[Error] closing {sink.name} sink failed: {e}")
        self.source.close()
        log.info("[System] " + self.summary())

    def summary(self):
        e = self.engine
        return (f"{self.batches} batches ({self.failed_polls} failed polls), "
                f"{e.seen} nodes seen, {e.accepted} accepted, {e.malformed} malformed, "
                f"{e.wraparounds} wraparounds, last scan #{self.counter.value}")

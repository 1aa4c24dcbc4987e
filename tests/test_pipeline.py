from lidar_logger.errors import SinkWriteError, SourceTransientError
from lidar_logger.pipeline import CancelToken, ScanPipeline
from lidar_logger.sinks import RecordSink

from conftest import ListSource, node


class MemorySink(RecordSink):
    name = "memory"

    def __init__(self):
        self.records = []
        self.batches = 0
        self.closed = False

    def emit(self, record):
        self.records.append(record)

    def end_batch(self):
        self.batches += 1

    def close(self):
        self.closed = True


class BrokenSink(MemorySink):
    name = "broken"

    def __init__(self, fail_after=0):
        super().__init__()
        self.fail_after = fail_after

    def emit(self, record):
        if len(self.records) >= self.fail_after:
            raise SinkWriteError("disk full")
        super().emit(record)


def make_pipeline(batches, sinks=None, clock=lambda: 1700000000.7):
    sinks = sinks if sinks is not None else [MemorySink()]
    return ScanPipeline(ListSource(batches), sinks, clock=clock), sinks


def test_scenario_batch():
    pipeline, _ = make_pipeline([])
    records = pipeline.process_batch([node(0, 100), node(0, 100), node(1, 200)])
    assert [(r.angle_deg, r.distance_mm) for r in records] == [(0.0, 100.0), (1.0, 200.0)]
    assert {r.scan_number for r in records} == {1}
    assert all(r.timestamp == 1700000000 for r in records)


def test_scan_number_bumps_per_batch():
    pipeline, _ = make_pipeline([])
    first = pipeline.process_batch([node(10), node(11), node(12)])
    second = pipeline.process_batch([node(13), node(14), node(15)])
    assert {r.scan_number for r in first} == {1}
    assert {r.scan_number for r in second} == {2}


def test_empty_batch_still_counts():
    pipeline, _ = make_pipeline([])
    assert pipeline.process_batch([]) == []
    assert pipeline.counter.value == 1


def test_wraparound_inside_batch_bumps_scan_number():
    pipeline, _ = make_pipeline([])
    records = pipeline.process_batch([node(350), node(351), node(352), node(2), node(3), node(4)])
    # 2 lands on a skip slot but still triggers the wrap; 3 is stamped after it
    assert [(r.angle_deg, r.scan_number) for r in records] == [(350.0, 1), (352.0, 1), (3.0, 2)]
    assert pipeline.counter.value == 2


def test_wrap_node_keeps_old_scan_number():
    pipeline, _ = make_pipeline([])
    records = pipeline.process_batch([node(300), node(301), node(5)])
    assert [(r.angle_deg, r.scan_number) for r in records] == [(300.0, 1), (5.0, 1)]
    assert pipeline.counter.value == 2


def test_scan_numbers_non_decreasing_across_batches():
    pipeline, _ = make_pipeline([])
    stream = []
    angle = 0.0
    for _ in range(30):
        batch = []
        for _ in range(50):
            angle = (angle + 7.3) % 360.0
            batch.append(node(angle))
        batch.sort(key=lambda n: n.angle_deg)
        stream.extend(pipeline.process_batch(batch))
    numbers = [r.scan_number for r in stream]
    assert numbers == sorted(numbers)
    assert pipeline.counter.value >= 30


def test_run_once_dispatches_to_every_sink():
    a, b = MemorySink(), MemorySink()
    pipeline, _ = make_pipeline([[node(1), node(2), node(3)]], sinks=[a, b])
    records = pipeline.run_once()
    assert len(records) == 2
    assert a.records == b.records == records
    assert a.batches == b.batches == 1


def test_transient_poll_error_skips_iteration():
    sink = MemorySink()
    pipeline, _ = make_pipeline([SourceTransientError("timeout"), [node(1)]], sinks=[sink])
    assert pipeline.run_once() == []
    assert pipeline.failed_polls == 1
    assert pipeline.counter.value == 0
    assert len(pipeline.run_once()) == 1
    assert sink.records[0].scan_number == 1


def test_failing_sink_is_disabled_others_continue():
    good, bad = MemorySink(), BrokenSink(fail_after=1)
    pipeline, _ = make_pipeline([[node(1), node(2), node(3)], [node(4), node(5)]], sinks=[bad, good])
    pipeline.run_once()
    assert bad in pipeline.disabled
    assert bad.closed
    assert pipeline.sinks == [good]
    pipeline.run_once()
    assert len(good.records) == 3
    assert len(bad.records) == 1


def test_run_until_source_exhausted_closes_everything():
    sink = MemorySink()
    pipeline, _ = make_pipeline([[node(1), node(2)], [node(3), node(4)]], sinks=[sink])
    pipeline.run(CancelToken(), delay=0)
    assert pipeline.batches == 2
    assert sink.closed
    assert pipeline.source.closed


def test_cancel_is_checked_before_polling():
    sink = MemorySink()
    pipeline, _ = make_pipeline([[node(1)]], sinks=[sink])
    token = CancelToken()
    token.cancel()
    pipeline.run(token, delay=0)
    assert pipeline.batches == 0
    assert sink.closed


def test_cancel_from_sink_finishes_current_iteration():
    token = CancelToken()

    class StopAfterFirst(MemorySink):
        def end_batch(self):
            super().end_batch()
            token.cancel()

    sink = StopAfterFirst()
    pipeline, _ = make_pipeline([[node(1), node(2)], [node(3)]], sinks=[sink])
    pipeline.run(token, delay=5)
    assert pipeline.batches == 1
    assert sink.batches == 1
    assert len(pipeline.source.batches) == 1


def test_cancel_token_wait_returns_early():
    token = CancelToken()
    assert token.wait(0) is False
    token.cancel()
    assert token.cancelled
    assert token.wait(10) is True


def test_summary_mentions_counts():
    pipeline, _ = make_pipeline([])
    pipeline.process_batch([node(0, 0), node(1), node(2)])
    text = pipeline.summary()
    assert "1 batches" in text
    assert "3 nodes seen" in text
    assert "1 accepted" in text

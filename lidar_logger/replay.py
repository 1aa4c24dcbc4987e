# replay.py
import logging
from itertools import groupby

from .data_logger import load_records
from .errors import SourceExhausted
from .normalizer import from_degrees

log = logging.getLogger(__name__)


class ReplaySource:
    """
    Batch source that plays back a file written by CsvSink.

    Each recorded scan number becomes one batch. The replayed stream has
    already been decimated once, so running it through the pipeline again
    thins it further.
    """

    def __init__(self, filename):
        self.filename = filename
        records = load_records(filename)
        self._batches = [
            sorted((from_degrees(r.angle_deg, r.distance_mm, r.quality) for r in group),
                   key=lambda n: n.angle_deg)
            for _, group in groupby(records, key=lambda r: r.scan_number)
        ]
        self._next = 0
        log.info(f"[Replay] {len(records)} records in {len(self._batches)} scans from {filename}")

    def __len__(self):
        return len(self._batches)

    def poll(self):
        if self._next >= len(self._batches):
            raise SourceExhausted(f"{self.filename}: end of recording")
        batch = self._batches[self._next]
        self._next += 1
        return list(batch)

    def close(self):
        pass

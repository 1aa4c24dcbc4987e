# data_logger.py
import csv
import datetime
import logging
import os
from typing import List

from .config import CSV_HEADER, OUTPUT_PATTERN
from .errors import SinkWriteError
from .nodes import AcceptedRecord
from .sinks import RecordSink

log = logging.getLogger(__name__)


def default_output_path(now=None):
    now = now or datetime.datetime.now()
    return now.strftime(OUTPUT_PATTERN)


class CsvSink(RecordSink):
    """Durable record log: one header line, then one line per accepted record."""

    name = "csv"

    def __init__(self, filename):
        self.filename = filename
        self.rows_written = 0
        try:
            parent = os.path.dirname(os.path.abspath(filename))
            os.makedirs(parent, exist_ok=True)
            self._file = open(filename, "w", newline="")
            self._writer = csv.writer(self._file, lineterminator="\n")
            self._writer.writerow(CSV_HEADER)
        except OSError as e:
            raise SinkWriteError(f"cannot open output file {filename}: {e}") from e
        log.info(f"[System] Saving data to: {self.filename}")

    def emit(self, record: AcceptedRecord):
        try:
            self._writer.writerow(record.as_row())
        except (OSError, ValueError) as e:
            # ValueError: write to a closed file
            raise SinkWriteError(f"write to {self.filename} failed: {e}") from e
        self.rows_written += 1

    def end_batch(self):
        try:
            self._file.flush()
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"flush of {self.filename} failed: {e}") from e

    def close(self):
        if self._file.closed:
            return
        self._file.close()
        log.info(f"[System] Data saved to {os.path.abspath(self.filename)} ({self.rows_written} records)")


def load_records(filename) -> List[AcceptedRecord]:
    """Read a file written by CsvSink back into records, in file order."""
    records = []
    with open(filename, "r", newline="") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None:
            return records
        if [h.strip() for h in header] != CSV_HEADER:
            raise ValueError(f"{filename}: unexpected header {header!r}")
        for row in reader:
            if not row:
                continue
            records.append(AcceptedRecord.from_row(row))
    return records

# sinks.py
from .nodes import AcceptedRecord


class RecordSink:
    """
    Receiver of accepted records.

    Implementations raise ``SinkWriteError`` when they cannot take any more
    data; the pipeline then drops the sink for the rest of the session.
    """

    name = "sink"

    def emit(self, record: AcceptedRecord):
        raise NotImplementedError

    def end_batch(self):
        """Called once per loop iteration, after the batch's records."""

    def close(self):
        pass

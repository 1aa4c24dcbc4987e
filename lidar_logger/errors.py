# errors.py


class LidarLoggerError(Exception):
    """Base class for everything the logger raises on purpose."""


class SourceTransientError(LidarLoggerError):
    """A single poll of the batch source failed. The loop skips the iteration."""


class SourceExhausted(LidarLoggerError):
    """A finite source (e.g. a replay) has no more batches."""


class SinkWriteError(LidarLoggerError):
    """A sink could not take a record. The sink is disabled for the session."""


class LidarConnectionError(LidarLoggerError):
    pass


class LidarHealthError(LidarLoggerError):
    pass

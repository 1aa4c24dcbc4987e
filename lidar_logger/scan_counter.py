# scan_counter.py


class ScanCounter:
    """
    Monotonic scan identifier.

    Bumped once per batch retrieved and once per detected wraparound. Both
    triggers can fire inside the same batch, so a single revolution may span
    two scan numbers.
    """

    def __init__(self, start=0):
        self._value = start

    @property
    def value(self):
        return self._value

    def on_batch_start(self):
        self._value += 1

    def on_wraparound(self):
        self._value += 1

    def __repr__(self):
        return f"ScanCounter(value={self._value})"

# decimator.py
import math
from typing import Callable, List, Optional

from .config import DEGREE_BUCKETS, MAX_POINTS_PER_DEGREE
from .nodes import AcceptedPoint, MeasurementNode


class DecimationEngine:
    """
    Bounded-density sampler for a wrapping polar measurement stream.

    Every node goes through three filters: an alternation toggle that drops
    every other raw node, a validity check on distance and angle, and a cap of
    ``max_per_degree`` accepted points per whole-degree bucket. A decrease in
    angle between consecutive nodes is taken as the start of a new revolution
    and clears all buckets at once.

    The toggle and the last-angle tracker advance on every node, accepted or
    not, and persist across batches.
    """

    def __init__(self, max_per_degree=MAX_POINTS_PER_DEGREE, bucket_count=DEGREE_BUCKETS,
                 on_wraparound: Optional[Callable[[], None]] = None):
        self.max_per_degree = max_per_degree
        self.bucket_count = bucket_count
        self.on_wraparound = on_wraparound

        self._buckets = [0] * bucket_count
        self._skip_next = False
        self._last_angle = 0.0

        self.seen = 0
        self.accepted = 0
        self.malformed = 0
        self.wraparounds = 0

    def process(self, node: MeasurementNode) -> Optional[AcceptedPoint]:
        self.seen += 1
        skip = self._skip_next
        self._skip_next = not skip

        point = None
        if not skip and node.distance_mm > 0:
            point = self._admit(node)

        if node.angle_deg < self._last_angle:
            self._wrap()
        # NaN would compare false against everything after it
        if not math.isnan(node.angle_deg):
            self._last_angle = node.angle_deg
        return point

    def _admit(self, node):
        # NaN fails this comparison too
        if not 0.0 <= node.angle_deg < self.bucket_count:
            self.malformed += 1
            return None

        degree = math.floor(node.angle_deg)
        if self._buckets[degree] >= self.max_per_degree:
            return None

        self._buckets[degree] += 1
        self.accepted += 1
        return AcceptedPoint(node.angle_deg, node.distance_mm, node.quality)

    def _wrap(self):
        self._buckets = [0] * self.bucket_count
        self.wraparounds += 1
        if self.on_wraparound is not None:
            self.on_wraparound()

    def bucket_counts(self) -> List[int]:
        return list(self._buckets)

    @property
    def last_angle(self):
        return self._last_angle

import matplotlib

matplotlib.use("Agg")

from lidar_logger.errors import SourceExhausted
from lidar_logger.nodes import MeasurementNode


def node(angle, dist=100.0, quality=47):
    return MeasurementNode(angle_deg=float(angle), distance_mm=float(dist), quality=quality)


class ListSource:
    """In-memory batch source; an entry may be a list of nodes or an exception to raise."""

    def __init__(self, batches):
        self.batches = list(batches)
        self.closed = False

    def poll(self):
        if not self.batches:
            raise SourceExhausted("no more batches")
        item = self.batches.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True

# plot_sink.py
import logging

import numpy as np
import matplotlib.pyplot as plt

from .config import MAX_RENDER_POINTS, RANGE_RINGS_MM, VIEW_RANGE_MM
from .errors import SinkWriteError
from .sinks import RecordSink

log = logging.getLogger(__name__)


def to_cartesian(points):
    """
    Polar (angle_deg, distance_mm) pairs to an (N, 2) array of x, y in mm.

    ``points`` is anything with ``angle_deg`` / ``distance_mm`` attributes.
    """
    if not points:
        return np.empty((0, 2))
    angles = np.radians([p.angle_deg for p in points])
    dists = np.array([p.distance_mm for p in points], dtype=float)
    return np.column_stack((dists * np.cos(angles), dists * np.sin(angles)))


class PlotSink(RecordSink):
    """
    Live top-down view of the current batch only.

    Records are buffered as they arrive and drawn on ``end_batch``; the
    buffer is then cleared so each frame shows one iteration's points.
    """

    name = "plot"

    def __init__(self, on_close=None, max_points=MAX_RENDER_POINTS, view_range=VIEW_RANGE_MM):
        self.on_close = on_close
        self.max_points = max_points
        self.view_range = view_range
        self.frames = 0
        self._points = []
        self._closed = False

        plt.ion()
        self.fig = plt.figure(figsize=(8, 8))
        self.ax = self.fig.add_subplot(111)
        self.setup_plot()
        self.fig.canvas.mpl_connect('close_event', self._handle_close)
        plt.show()

    def setup_plot(self):
        self.ax.set_title("RPLidar live scan (close window to stop)")
        self.ax.set_xlabel("X (mm)")
        self.ax.set_ylabel("Y (mm)")
        self.ax.set_xlim(-self.view_range, self.view_range)
        self.ax.set_ylim(-self.view_range, self.view_range)
        self.ax.set_aspect('equal')

        # Range rings
        theta = np.linspace(0.0, 2.0 * np.pi, 361)
        for r in RANGE_RINGS_MM:
            self.ax.plot(r * np.cos(theta), r * np.sin(theta), color='0.8', linewidth=0.8)

    def _handle_close(self, event):
        log.info("[User] Window closed.")
        self._closed = True
        if self.on_close is not None:
            self.on_close()

    def emit(self, record):
        if len(self._points) < self.max_points:
            self._points.append(record)

    def end_batch(self):
        if self._closed:
            self._points = []
            return
        xy = to_cartesian(self._points)
        self._points = []
        try:
            self.ax.clear()
            self.setup_plot()
            # s=2 keeps redraws cheap
            self.ax.scatter(xy[:, 0], xy[:, 1], s=2, c='tab:red')
            self.fig.canvas.draw()
            self.fig.canvas.flush_events()
        except Exception as e:
            raise SinkWriteError(f"render failed: {e}") from e
        self.frames += 1

    def close(self):
        plt.close(self.fig)

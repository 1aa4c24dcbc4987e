# lidar_driver.py
import atexit
import logging

import serial
from rplidar import RPLidar, RPLidarException

from .config import *
from .errors import LidarConnectionError, LidarHealthError, SourceTransientError
from .normalizer import from_degrees

# Unplugging the device mid-read surfaces as a raw serial error
DEVICE_ERRORS = (RPLidarException, serial.SerialException)

log = logging.getLogger(__name__)


class RPLidarSource:
    """
    Batch source backed by an RPLidar on a serial port.

    One poll returns one sensor revolution (as delimited by the device's
    start-of-scan flag), sorted by angle and capped at ``max_nodes``.
    Zero-distance measurements are kept; the decimator rejects them itself.
    """

    def __init__(self, port=SERIAL_PORT, baudrate=None, timeout=SERIAL_TIMEOUT,
                 max_nodes=MAX_BATCH_NODES, lidar_factory=RPLidar):
        self.port = port
        self.timeout = timeout
        self.max_nodes = max_nodes
        self._factory = lidar_factory
        self.lidar = None
        self.baudrate = None
        self.info = None
        self.dropped = 0
        self._measures = None
        self._pending = None

        self._connect(baudrate)
        atexit.register(self._emergency_stop)

    def _connect(self, baudrate):
        candidates = [baudrate] if baudrate else list(BAUDRATE_FALLBACK)
        for baud in candidates:
            lidar = None
            try:
                lidar = self._factory(self.port, baudrate=baud, timeout=self.timeout)
                self.info = lidar.get_info()
            except DEVICE_ERRORS as e:
                log.debug(f"[Lidar] No answer on {self.port} at {baud} baud: {e}")
                if lidar is not None:
                    lidar.disconnect()
                continue
            self.lidar = lidar
            self.baudrate = baud
            break

        if self.lidar is None:
            raise LidarConnectionError(f"cannot bind to the specified serial port {self.port}")

        firmware = self.info.get('firmware', (0, 0))
        log.info(f"[Lidar] S/N: {self.info.get('serialnumber', '?')}")
        log.info(f"[Lidar] Firmware Ver: {firmware[0]}.{firmware[1]:02d}")
        log.info(f"[Lidar] Hardware Rev: {self.info.get('hardware', '?')}")
        log.info(f"[Lidar] Connected on {self.port} at {self.baudrate} baud")

    def check_health(self):
        try:
            status, error_code = self.lidar.get_health()
        except DEVICE_ERRORS as e:
            raise LidarHealthError(f"cannot retrieve the lidar health code: {e}") from e
        log.info(f"[Lidar] Health status: {status}")
        if status == 'Error':
            raise LidarHealthError(
                f"internal error detected (code {error_code}), reboot the device to retry")
        return status

    def start(self):
        self.lidar.start_motor()
        self._measures = self.lidar.iter_measures(max_buf_meas=self.max_nodes)
        self._pending = None

    def poll(self):
        if self._measures is None:
            self.start()

        batch = []
        if self._pending is not None:
            batch.append(self._pending)
            self._pending = None

        try:
            for new_scan, quality, angle, distance in self._measures:
                node = from_degrees(angle, distance, quality)
                if new_scan and batch:
                    self._pending = node
                    break
                if len(batch) >= self.max_nodes:
                    self.dropped += 1
                    continue
                batch.append(node)
        except DEVICE_ERRORS as e:
            self._restart()
            raise SourceTransientError(f"scan read failed: {e}") from e

        batch.sort(key=lambda n: n.angle_deg)
        return batch

    def _restart(self):
        # Next poll reopens the measurement stream from a clean buffer
        self._measures = None
        self._pending = None
        try:
            self.lidar.stop()
            self.lidar.clean_input()
        except DEVICE_ERRORS as e:
            log.warning(f"[Lidar] Reset after read error failed: {e}")

    def close(self):
        atexit.unregister(self._emergency_stop)
        if self.lidar is None:
            return
        log.info("[Lidar] Stopping...")
        try:
            self.lidar.stop()
            self.lidar.stop_motor()
        except DEVICE_ERRORS as e:
            log.warning(f"[Lidar] Error stopping scan: {e}")
        finally:
            self.lidar.disconnect()
            self.lidar = None
            self._measures = None

    def _emergency_stop(self):
        """Called on interpreter exit if close() was never reached"""
        self.close()

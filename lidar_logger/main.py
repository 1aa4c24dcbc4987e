# main.py
import argparse
import logging
import signal
import sys

from . import __version__
from .config import LOGGER_DELAY, SERIAL_PORT, VISUAL_DELAY
from .data_logger import CsvSink, default_output_path
from .errors import LidarConnectionError, LidarHealthError, SinkWriteError
from .lidar_driver import RPLidarSource
from .pipeline import CancelToken, ScanPipeline
from .replay import ReplaySource

log = logging.getLogger("lidar_logger")


def setup_logging(log_file=None, verbose=False):
    """Console logging, mirrored to ``log_file`` when one is given."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w'))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(message)s',
        handlers=handlers,
        force=True,
    )


def serial_port(value):
    if value.isdigit():
        raise argparse.ArgumentTypeError(
            f"{value!r} looks like a baud rate; give the port first, e.g. --serial {SERIAL_PORT} {value}")
    return value


def build_parser(visual=False):
    parser = argparse.ArgumentParser(
        prog="lidar-visual-logger" if visual else "lidar-logger",
        description="Record a decimated RPLidar scan stream to CSV",
        epilog="Baud rates by model: A1(115200), A2M7(256000), A2M8(115200), "
               "A2M12(256000), A3(256000), S1(256000), S2(1000000), S3(1000000)",
    )
    parser.add_argument("--channel", action="store_true",
                        help="accepted for compatibility with the SDK tools, has no effect")
    channel = parser.add_mutually_exclusive_group(required=True)
    channel.add_argument("-s", "--serial", metavar="PORT", nargs="?", const=SERIAL_PORT, type=serial_port,
                         help=f"serial port (default {SERIAL_PORT}); comes before the baud rate")
    channel.add_argument("-u", "--udp", metavar="ADDR",
                         help="UDP address (not supported by the serial driver)")
    channel.add_argument("--replay", metavar="CSV", help="play back a recorded file instead of a device")
    parser.add_argument("baudrate", nargs="?", type=int,
                        help="baud rate; tries 115200 then 256000 when omitted")
    parser.add_argument("output_file", nargs="?",
                        help="CSV to write (default lidar_data_<date>_<time>.csv)")
    parser.add_argument("-o", "--output", help="CSV to write; same as the output_file argument")
    parser.add_argument("--visual", action="store_true", default=visual,
                        help="show a live plot of each scan")
    parser.add_argument("--delay", type=float, default=None,
                        help="seconds to sleep between polls")
    parser.add_argument("--log-file", help="also write the log to this file")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def open_source(args):
    if args.replay:
        return ReplaySource(args.replay)
    source = RPLidarSource(args.serial, baudrate=args.baudrate)
    try:
        source.check_health()
    except LidarHealthError:
        source.close()
        raise
    return source


def run(argv=None, visual=False):
    parser = build_parser(visual)
    args = parser.parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    log.info(f"RPLidar {'Visual ' if args.visual else ''}Data Logger\nVersion: {__version__}")

    if args.udp:
        log.error("[Error] UDP channel is not supported, connect the sensor over serial.")
        return 1

    token = CancelToken()

    try:
        source = open_source(args)
    except (LidarConnectionError, LidarHealthError, OSError, ValueError) as e:
        log.error(f"[Error] {e}")
        return 1

    output_file = args.output or args.output_file or default_output_path()
    sinks = []
    try:
        sinks.append(CsvSink(output_file))
        if args.visual:
            from .plot_sink import PlotSink
            sinks.append(PlotSink(on_close=token.cancel))
    except SinkWriteError as e:
        log.error(f"[Error] {e}")
        for sink in sinks:
            sink.close()
        source.close()
        return 1

    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())

    delay = args.delay
    if delay is None:
        delay = VISUAL_DELAY if args.visual else LOGGER_DELAY

    pipeline = ScanPipeline(source, sinks)
    log.info("[System] Successfully started scan. Press Ctrl+C to stop.")
    try:
        pipeline.run(token, delay)
    finally:
        signal.signal(signal.SIGINT, previous_handler)
    log.info(f"[System] Scan stopped. Data saved to {output_file}")
    return 0


def main():
    sys.exit(run())


def visual_main():
    sys.exit(run(visual=True))


if __name__ == "__main__":
    main()

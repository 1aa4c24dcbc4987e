# config.py
SERIAL_PORT = "/dev/ttyUSB0"
# Tried in order when no baud rate is given on the command line
# A1(115200), A2M7(256000), A2M8(115200), A2M12(256000), A3(256000), S1(256000), S2/S3(1000000)
BAUDRATE_FALLBACK = [115200, 256000]
SERIAL_TIMEOUT = 1.0

# Decimation
DEGREE_BUCKETS = 360
MAX_POINTS_PER_DEGREE = 5
MAX_BATCH_NODES = 8192

# Loop pacing (seconds)
LOGGER_DELAY = 0.05
VISUAL_DELAY = 0.01

# Recording
OUTPUT_PATTERN = "lidar_data_%Y%m%d_%H%M%S.csv"
CSV_HEADER = ["timestamp", "angle", "distance", "quality", "scan_number"]

# Live view (millimeters)
MAX_RENDER_POINTS = 1800
VIEW_RANGE_MM = 4000
RANGE_RINGS_MM = [1000, 2000, 3000, 4000]

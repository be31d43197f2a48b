# config.py

# ===== Camera =====
# "video" (file / USB index through OpenCV) | "picamera"
FRAME_SOURCE = "video"
VIDEO_DEVICE = "0"


# ===== Session =====
SESSION_PORT = 12175

# only obstacle boxes from this sender are used by perception
OBSTACLE_SENDER_STAMP = 0


# ===== Control =====
STARTUP_GRACE_SEC = 12.0   # lets the other processes come up first


# ===== Logs =====
DRIVE_LOG_DIR = "logs"
SNAPSHOT_DIR = "logs/vision"

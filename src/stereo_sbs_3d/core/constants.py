"""
Constants and default settings for Stereo SBS 3D.

All tunable numbers used by the conversion engine live here so that the
processing modules stay free of magic values.
"""

import math

# Viewer geometry (millimetres)
PUPIL_DISTANCE_RANGE = (50.0, 80.0)
CONVERGENCE_DISTANCE_RANGE = (500.0, 5000.0)
STANDARD_PUPIL_DISTANCE = 65.0
STANDARD_CONVERGENCE_DISTANCE = 1000.0
COMFORTABLE_PUPIL_DISTANCE_RANGE = (50.0, 75.0)

# Horizontal shift applied to the right eye, as a percentage of frame width
MAX_SHIFT_PERCENT = 10.0

# Largest per-eye displacement of parallax SBS conversion, in pixels
MAX_PARALLAX_DISPLACEMENT_PX = 10

# Field of view used when deriving an optimal pupil distance from screen width
OPTIMAL_VIEW_ANGLE_DEGREES = 30.0
OPTIMAL_VIEW_ANGLE_TAN = math.tan(math.radians(OPTIMAL_VIEW_ANGLE_DEGREES))

# Base right-eye shift as a fraction of screen width for the standard pupil
BASE_PUPIL_SHIFT_RATIO = 0.02
DEFAULT_VIEWING_DISTANCE_CM = 50.0

# Colour pivot used by the contrast stage
CONTRAST_PIVOT = 128.0

# Memory planning
BYTES_PER_MIB = 1024 * 1024
REFERENCE_FRAME_WIDTH = 1920
REFERENCE_FRAME_HEIGHT = 1080
REFERENCE_FRAME_BYTES = REFERENCE_FRAME_WIDTH * REFERENCE_FRAME_HEIGHT * 4
MAX_BUFFER_MEMORY_BYTES = 500 * BYTES_PER_MIB
DEFAULT_FPS = 30.0

# Frame cache
FRAME_CACHE_CAPACITY = 100

# Session progress loop
PROGRESS_STEP_PERCENT = 10
PROGRESS_STEP_DELAY_SECONDS = 0.2

# Synthetic frame source
SYNTHETIC_FRAME_DELAY_SECONDS = 0.05

# Pixel formats delivered by frame sources (bytes per pixel)
FRAME_FORMATS = {
    "rgba": 4,
    "yuv": 3,
}

SUPPORTED_VIDEO_FORMATS = [
    ".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv", ".webm", ".m4v"
]

OUTPUT_IMAGE_FORMAT = ".png"
OUTPUT_FRAME_PREFIX = "sbs"

# Headset presets (pupil distance in mm)
VR_DEVICE_PUPIL_DISTANCES = {
    "dapeng-vr": 65.0,
    "xiaomi-vr": 62.0,
    "storm-mirror": 64.0,
    "qianhuan-mirror": 63.0,
    "elf-mirror": 65.0,
    "xiaozhai-mirror": 64.0,
    "standard-vr": 65.0,
}

BRIGHTNESS_PRESETS = {
    "dark": 0.6,
    "standard": 1.0,
    "bright": 1.4,
}

CONTRAST_PRESETS = {
    "low": 0.8,
    "standard": 1.0,
    "high": 1.2,
}

DEFAULT_SETTINGS = {
    "pupil_distance": STANDARD_PUPIL_DISTANCE,
    "convergence_distance": STANDARD_CONVERGENCE_DISTANCE,
    "brightness": 1.0,
    "contrast": 1.0,
    "saturation": 1.0,
    "frame_format": "rgba",
    "fps": DEFAULT_FPS,
    "output_dir": "./output",
    "use_sampling": True,
}

ERROR_MESSAGES = {
    "pupil_distance_range": "pupil distance out of range",
    "convergence_distance_range": "convergence distance out of range",
    "conversion_cancelled": "Conversion cancelled",
    "processing_cancelled": "Processing cancelled",
    "conversion_failed": "Conversion failed",
    "batch_failed": "Batch processing failed",
    "extraction_failed": "Frame extraction failed",
    "video_not_found": "Input video not found",
    "video_open_failed": "Cannot open video",
    "unsupported_format": "Unsupported frame format",
}

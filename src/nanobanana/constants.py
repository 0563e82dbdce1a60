"""
Constants used internally by nanobanana.

These are implementation-level values that should not be overridden
via config files or CLI arguments.
"""

import math

# Pixel layout
CHANNELS = 4
ALPHA_INDEX = 3
ALPHA_OPAQUE = 255
ALPHA_TRANSPARENT = 0
COLOR_MODE_RGBA = "RGBA"
COLOR_MODE_RGB = "RGB"

# Internal color constants
COLOR_WHITE = (255, 255, 255)
COLOR_TRANSPARENT = (0, 0, 0, 0)

# Transparency tolerance scale
TOLERANCE_MIN = 0.0
TOLERANCE_MAX = 100.0
TOLERANCE_WARN_THRESHOLD = 75.0
# Largest Euclidean distance between two RGB colors: sqrt(3) * 255
MAX_RGB_DISTANCE = math.sqrt(3 * 255**2)

# Exact rotations, clockwise degrees
RIGHT_ANGLES = (90, 180, 270)
FULL_TURN = 360

# Codec formats accepted by the encoder
FORMAT_PNG = "png"
FORMAT_JPEG = "jpeg"
FORMAT_WEBP = "webp"
SUFFIX_FORMATS = {
    ".png": FORMAT_PNG,
    ".jpg": FORMAT_JPEG,
    ".jpeg": FORMAT_JPEG,
    ".webp": FORMAT_WEBP,
}
JPEG_QUALITY_MIN = 1
JPEG_QUALITY_MAX = 95

# Generation request limits
COUNT_MIN = 1
COUNT_MAX = 10
ASPECT_RATIOS = (
    "1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9",
)
RESOLUTIONS = ("1K", "2K", "4K")
PRO_ONLY_RESOLUTIONS = frozenset({"4K"})
MODEL_ALIASES = {
    "flash": "gemini-2.5-flash-image",
    "pro": "gemini-3-pro-image-preview",
}
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")

# Icon batch
ICON_WORKERS_MAX = 32

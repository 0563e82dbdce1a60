"""Shared default values for user-facing configuration settings."""
from nanobanana.type_defs import Direction

# Transparency
DEFAULT_TOLERANCE = 10.0

# Combine
DEFAULT_DIRECTION: Direction = "horizontal"
DEFAULT_GAP = 0
DEFAULT_BACKGROUND = "#00000000"

# Icons
DEFAULT_ICON_SIZES: tuple[int, ...] = (16, 32, 64, 128, 256, 512)
DEFAULT_ICON_WORKERS = 4
DEFAULT_ICON_PREFIX = "icon"

# Generation
DEFAULT_MODEL = "flash"
DEFAULT_ASPECT_RATIO = "1:1"
DEFAULT_COUNT = 1
DEFAULT_TIMEOUT_SECONDS = 120.0

# Output
DEFAULT_OVERWRITE = True
DEFAULT_JPEG_BACKGROUND = "#ffffff"
DEFAULT_JPEG_QUALITY = 92

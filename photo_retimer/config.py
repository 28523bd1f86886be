"""
Configuration constants for the photo retimer.
"""
from enum import Enum


class WriteStrategy(str, Enum):
    EMBEDDED = "embedded"      # capture-time tags rewritten inside the file
    FILESYSTEM = "filesystem"  # only atime/mtime are changed


# --- File Type Definitions ---
JPEG_EXTS = {'.jpg', '.jpeg'}
PNG_EXTS = {'.png'}
TIFF_EXTS = {'.tif', '.tiff'}

# Extension to Strategy Mapping
# Adding a format is a change here, not in the writer
EXT_TO_STRATEGY = {}
for ext in JPEG_EXTS: EXT_TO_STRATEGY[ext] = WriteStrategy.EMBEDDED
for ext in PNG_EXTS: EXT_TO_STRATEGY[ext] = WriteStrategy.FILESYSTEM
for ext in TIFF_EXTS: EXT_TO_STRATEGY[ext] = WriteStrategy.FILESYSTEM

SUPPORTED_EXTS = frozenset(EXT_TO_STRATEGY)

# --- Metadata Parsing ---
# Most specific first; 'Image DateTime' is the generic last-modified field
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'EXIF DateTimeDigitized',
    'Image DateTime',
]

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"

# --- Filename Parsing ---
DEFAULT_FILENAME_FORMAT = "%Y%m%d_%H%M%S"
FILENAME_FALLBACK_FORMATS = [
    "%Y%m%d_%H%M%S",        # 20230101_101500
    "%Y-%m-%d_%H-%M-%S",    # 2023-01-01_10-15-00
    "%Y%m%d",               # 20230101
    "%Y-%m-%d",             # 2023-01-01
    "IMG_%Y%m%d_%H%M%S",
    "VID_%Y%m%d_%H%M%S",
]
# Compared case-insensitively
FILENAME_PREFIXES = ["IMG_", "VID_", "PHOTO_", "PIC_", "IMAGE_", "VIDEO_"]

# --- Embedded Write Backends ---
BACKENDS = ("piexif", "exiftool")
DEFAULT_BACKEND = "piexif"

EXIFTOOL_EXECUTABLE = "exiftool"
EXIFTOOL_TIMEOUT_SEC = 60

"""
Configuration constants for the photo importer.
"""

# --- Metadata Parsing ---
# First non-empty tag wins. Names follow exiftool's human readable output.
DATE_TAGS = [
    'Date and Time (Original)',
    'Date/Time Original',
    'Media Create Date',
    'Track Create Date',
    'Create Date',
]

# EXIF dates are "YYYY:MM:DD HH:MM:SS"; trailing subseconds/offsets are ignored
EXIF_DATE_PATTERN = r'(\d{4}):(\d{2}):(\d{2}) (\d{2}):(\d{2}):(\d{2})'

# --- Naming ---
UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
UNKNOWN_TITLE = "Unknown Title"
DEFAULT_AUDIO_EXT = ".mp3"
HASH_PREFIX_LEN = 4

# English names regardless of the host locale
MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)
WEEKDAY_NAMES = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')

ACCENT_MAP = {
    'a': 'áäâãà',
    'e': 'éëêẽè',
    'i': 'íïîĩì',
    'o': 'óöôõò',
    'u': 'úüûũù',
    'n': 'ñ',
}

# --- File Type Definitions ---
# Used to route files to the native metadata backend
AUDIO_EXTS = {'.mp3', '.m4a', '.flac', '.ogg', '.wav', '.aac', '.wma'}
VIDEO_EXTS = {'.mp4', '.mov', '.m4v', '.avi', '.mts', '.m2ts', '.3gp', '.mpg', '.mpeg', '.tod', '.mkv'}

# --- Hashing ---
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading

# --- External tools ---
EXIFTOOL_BIN = "exiftool"
EXIFTOOL_TIMEOUT = 30.0  # seconds per file

BACKEND_NATIVE = "native"
BACKEND_EXIFTOOL = "exiftool"

import logging
import re
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

import exifread
from pymediainfo import MediaInfo

from .. import config
from ..exceptions import MetadataExtractionError

# exifread key -> exiftool style tag name
EXIFREAD_TAGS = {
    'EXIF DateTimeOriginal': 'Date/Time Original',
    'EXIF DateTimeDigitized': 'Create Date',
    'Image DateTime': 'Modify Date',
    'Image Make': 'Make',
    'Image Model': 'Camera Model Name',
    'Image Artist': 'Artist',
    'EXIF LensModel': 'Lens Model',
}

# MediaInfo reports "2021-05-07 14:30:00 UTC", "UTC 2021-05-07 14:30:00" or ISO
_MEDIAINFO_DATE = re.compile(r'(\d{4})-(\d{2})-(\d{2})[ T](\d{2}):(\d{2}):(\d{2})')


class MetadataProvider(Protocol):
    def extract(self, path: Path) -> Dict[str, str]:
        """Returns tag name -> value, or raises MetadataExtractionError."""
        ...


class ExifReadProvider:
    """Still images through 'exifread' (fast, Python-native)."""

    def extract(self, path: Path) -> Dict[str, str]:
        try:
            with path.open('rb') as f:
                # details=False skips makernotes and thumbnails
                raw = exifread.process_file(f, details=False)
        except Exception as e:
            raise MetadataExtractionError(f"ExifRead failed for {path}: {e}") from e

        if not raw:
            raise MetadataExtractionError(f"No EXIF data in {path}")

        tags = {}
        for key, name in EXIFREAD_TAGS.items():
            if key in raw:
                value = str(raw[key]).strip()
                if value:
                    tags[name] = value
        return tags


class MediaInfoProvider:
    """Audio and video containers through 'pymediainfo'."""

    def extract(self, path: Path) -> Dict[str, str]:
        try:
            mi = MediaInfo.parse(str(path))
        except Exception as e:
            raise MetadataExtractionError(f"MediaInfo failed for {path}: {e}") from e

        tags: Dict[str, str] = {}
        for track in mi.tracks:
            if track.track_type == "General":
                self._read_general(track, tags)
            elif track.track_type == "Video":
                encoded = self._exif_date(getattr(track, "encoded_date", None))
                if encoded:
                    tags.setdefault('Track Create Date', encoded)

        if not tags:
            raise MetadataExtractionError(f"No usable MediaInfo tags in {path}")
        return tags

    def _read_general(self, track, tags: Dict[str, str]):
        if getattr(track, "format", None) == "MPEG Audio":
            tags['File Type'] = 'MP3'

        for attr, name in (("performer", "Artist"),
                           ("album", "Album"),
                           ("track_name", "Title"),
                           ("track_name_position", "Track")):
            value = getattr(track, attr, None)
            if value not in (None, ""):
                tags[name] = str(value)

        for attr, name in (("recorded_date", "Date/Time Original"),
                           ("tagged_date", "Media Create Date"),
                           ("encoded_date", "Create Date")):
            value = self._exif_date(getattr(track, attr, None))
            if value:
                tags[name] = value

    def _exif_date(self, value) -> Optional[str]:
        """Rewrites MediaInfo dates to "YYYY:MM:DD HH:MM:SS"; None if not a full timestamp."""
        if not value:
            return None
        match = _MEDIAINFO_DATE.search(str(value))
        if not match:
            return None
        y, mo, d, h, mi, s = match.groups()
        return f"{y}:{mo}:{d} {h}:{mi}:{s}"


class ExifToolProvider:
    """
    Wraps the 'exiftool' command line utility.
    Must be installed and on the system PATH. Slower, but reads everything.
    """

    def __init__(self, binary: str = config.EXIFTOOL_BIN, timeout: float = config.EXIFTOOL_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    def extract(self, path: Path) -> Dict[str, str]:
        cmd = [self.binary, str(path)]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True,
                                  errors='replace', timeout=self.timeout)
        except FileNotFoundError as e:
            raise MetadataExtractionError(f"{self.binary} is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise MetadataExtractionError(f"{self.binary} timed out after {self.timeout}s on {path}") from e

        if proc.returncode != 0:
            raise MetadataExtractionError(
                f"{self.binary} exited with {proc.returncode} for {path}: {proc.stderr.strip()}")

        tags = parse_exiftool_output(proc.stdout)
        if not tags:
            raise MetadataExtractionError(f"{self.binary} returned no tags for {path}")
        return tags


def parse_exiftool_output(text: str) -> Dict[str, str]:
    """
    Parses exiftool's default "Tag Name      : value" listing.
    Only the first colon separates name from value; dates keep theirs.
    """
    tags = {}
    for line in text.splitlines():
        key, sep, value = line.partition(':')
        key = key.strip()
        if sep and key:
            tags[key] = value.strip()
    return tags


class NativeProvider:
    """Picks the Python-native backend by file extension."""

    def __init__(self):
        self.images = ExifReadProvider()
        self.media = MediaInfoProvider()

    def extract(self, path: Path) -> Dict[str, str]:
        ext = path.suffix.lower()
        if ext in config.AUDIO_EXTS or ext in config.VIDEO_EXTS:
            return self.media.extract(path)
        return self.images.extract(path)


class FallbackProvider:
    """Tries each provider in turn; the first one that succeeds wins."""

    def __init__(self, providers: Iterable[MetadataProvider]):
        self.providers: List[MetadataProvider] = list(providers)

    def extract(self, path: Path) -> Dict[str, str]:
        errors = []
        for provider in self.providers:
            try:
                return provider.extract(path)
            except MetadataExtractionError as e:
                logging.debug(f"{type(provider).__name__} failed for {path}: {e}")
                errors.append(str(e))
        raise MetadataExtractionError("; ".join(errors) or f"No metadata provider for {path}")


def build_provider(backend: str = config.BACKEND_NATIVE,
                   exiftool_fallback: bool = False,
                   timeout: float = config.EXIFTOOL_TIMEOUT) -> MetadataProvider:
    """
    native               -> exifread / pymediainfo only
    native + fallback    -> native first, exiftool when it fails
    exiftool             -> exiftool only
    """
    if backend == config.BACKEND_EXIFTOOL:
        return ExifToolProvider(timeout=timeout)
    if backend != config.BACKEND_NATIVE:
        raise ValueError(f"Unknown metadata backend: {backend}")
    if exiftool_fallback:
        return FallbackProvider([NativeProvider(), ExifToolProvider(timeout=timeout)])
    return NativeProvider()

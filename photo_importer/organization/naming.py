"""
Destination naming rules.

Every function here is pure apart from the injected content hash, so the
layout of the destination tree depends only on a file's tags, its name
and its bytes:

    MP3s:         <dest>/<artist>/<album>/<track><ext>
    Dated media:  <dest>/<YYYY>/<MM-Month>/<DD-Weekday>/<HHMMSS>-<HASH4><ext>
"""
import re
from datetime import datetime
from pathlib import Path
from typing import Callable

from .. import config
from ..exceptions import DateParseError
from ..models import Category, Classification, TagSet

# Lower-case accented vowels -> plain ASCII, built once
_ACCENTS = str.maketrans({
    accented: plain
    for plain, variants in config.ACCENT_MAP.items()
    for accented in variants
})
_NON_ALNUM = re.compile(r'[^a-z0-9]+')
_DATE_RE = re.compile(config.EXIF_DATE_PATTERN)


def _slug(text: str) -> str:
    text = text.lower().translate(_ACCENTS)
    # Runs of anything else collapse to a single separator
    return _NON_ALNUM.sub(' ', text).strip().replace(' ', '-')


def normalize(*chunks: str) -> str:
    """
    Turns free-form tag text into a path-safe token.

    >>> normalize("É Motñ-ñé  Río")
    'e-motn-ne-rio'
    >>> normalize("Daft Punk", "Discovery")
    'daft-punk-discovery'
    """
    parts = [_slug(chunk) for chunk in chunks if chunk]
    return '-'.join(p for p in parts if p)


def pick(*candidates: str) -> str:
    """Returns the first candidate with non-blank content, stripped."""
    for value in candidates:
        value = (value or '').strip()
        if value:
            return value
    return ''


def parse_timestamp(value: str) -> datetime:
    """
    Parses an EXIF style "YYYY:MM:DD HH:MM:SS" value as naive UTC.
    Trailing data (subseconds, offsets) is ignored, no timezone conversion.
    """
    match = _DATE_RE.search(value or '')
    if not match:
        raise DateParseError(f"Unrecognised date value: {value!r}")
    try:
        return datetime(*(int(g) for g in match.groups()))
    except ValueError as e:
        # e.g. "0000:00:00 00:00:00" written by cameras with no clock set
        raise DateParseError(f"Invalid date value: {value!r} ({e})") from e


def find_capture_date(tags: TagSet) -> str:
    for field in config.DATE_TAGS:
        value = pick(tags.get(field, ''))
        if value:
            return value
    return ''


def classify(tags: TagSet,
             source: Path,
             dest_root: Path,
             content_hash: Callable[[Path], str]) -> Classification:
    """
    Decides where `source` goes under `dest_root`.

    `content_hash` is only called for classifiable files. Raises
    DateParseError when the winning date tag holds garbage.
    """
    if tags.get('File Type') == 'MP3':
        return Classification(Category.AUDIO, _audio_destination(tags, source, dest_root, content_hash))

    taken = find_capture_date(tags)
    if not taken:
        return Classification(Category.UNCLASSIFIABLE)

    dt = parse_timestamp(taken)
    digest = content_hash(source)
    return Classification(Category.DATED_MEDIA, dated_destination(dt, digest, source, dest_root))


def _audio_destination(tags: TagSet,
                       source: Path,
                       dest_root: Path,
                       content_hash: Callable[[Path], str]) -> Path:
    # Tags that normalise to nothing (e.g. non-Latin scripts) use the defaults
    artist = normalize(pick(tags.get('Artist', ''))) or normalize(config.UNKNOWN_ARTIST)
    album = normalize(pick(tags.get('Album', ''))) or normalize(config.UNKNOWN_ALBUM)

    name = normalize(pick(tags.get('Track', '')))
    if not name:
        title = pick(tags.get('Title', ''), config.UNKNOWN_TITLE)
        digest = content_hash(source)
        name = normalize(f"{title}-{digest[:config.HASH_PREFIX_LEN]}")

    ext = source.suffix.lower() or config.DEFAULT_AUDIO_EXT
    return dest_root / artist / album / f"{name}{ext}"


def dated_destination(dt: datetime, digest: str, source: Path, dest_root: Path) -> Path:
    month = f"{dt.month:02d}-{config.MONTH_NAMES[dt.month - 1]}"
    day = f"{dt.day:02d}-{config.WEEKDAY_NAMES[dt.weekday()]}"
    # Dotfiles such as ".hidden" have no suffix and get no extension
    filename = f"{dt:%H%M%S}-{digest[:config.HASH_PREFIX_LEN].upper()}{source.suffix.lower()}"
    return dest_root / str(dt.year) / month / day / filename

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from . import config

# Tag name -> value, as produced by a metadata provider. Keys may be missing.
TagSet = Dict[str, str]


class Category(Enum):
    AUDIO = "audio"
    DATED_MEDIA = "dated-media"
    UNCLASSIFIABLE = "unclassifiable"


class PlacementOutcome(Enum):
    COPIED = "copied"
    MOVED = "moved"
    SKIPPED = "skipped"
    NO_METADATA = "no-metadata"
    FAILED = "failed"


@dataclass(frozen=True)
class Classification:
    """
    Where a file belongs in the destination tree, and why.
    Unclassifiable files have no destination.
    """
    category: Category
    destination: Optional[Path] = None


@dataclass
class PlacementResult:
    outcome: PlacementOutcome
    source: Path
    destination: Optional[Path] = None
    simulated: bool = False  # dry-run preview, nothing touched
    error: Optional[str] = None


@dataclass(frozen=True)
class ImportConfig:
    """
    Run-wide settings. Built once at startup, never mutated.
    """
    src_root: Path
    dest_root: Path
    move: bool = False
    dry_run: bool = False
    max_procs: int = os.cpu_count() or 1

    # Metadata backend selection
    backend: str = config.BACKEND_NATIVE
    exiftool_fallback: bool = False
    metadata_timeout: float = config.EXIFTOOL_TIMEOUT

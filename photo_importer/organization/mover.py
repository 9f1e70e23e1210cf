import shutil
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from ..exceptions import FileOperationError
from ..models import ImportConfig, PlacementOutcome, PlacementResult


class PathLocks:
    """
    One lock per destination path.

    Two workers can resolve to the same destination (same timestamp and
    hash prefix); holding the path's lock across the existence check and
    the write means only one of them ever writes it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = defaultdict(threading.Lock)
        self._users = defaultdict(int)

    @contextmanager
    def hold(self, path: Path):
        key = str(path)
        with self._guard:
            lock = self._locks[key]
            self._users[key] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    # Nobody else is waiting; keep the table small on big imports
                    del self._users[key]
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


class FileMover:
    def __init__(self, cfg: ImportConfig, locks: Optional[PathLocks] = None):
        self.move_mode = cfg.move
        self.dry_run = cfg.dry_run
        self.locks = locks if locks is not None else PathLocks()

    def place(self, src: Path, dest: Path) -> PlacementResult:
        """
        Copies or moves `src` to `dest` unless something already lives there.

        Existing destinations are never overwritten. In dry-run mode the
        intended action is logged and reported as simulated; nothing on
        disk is touched. Raises FileOperationError on I/O failure.
        """
        action = PlacementOutcome.MOVED if self.move_mode else PlacementOutcome.COPIED

        with self.locks.hold(dest):
            try:
                taken = dest.exists()
            except OSError as e:
                # e.g. a name over the filesystem limit from a long tag
                raise FileOperationError(f"Cannot check {dest}: {e}") from e

            if taken:
                logging.info(f"Skipping file: {dest}")
                return PlacementResult(PlacementOutcome.SKIPPED, src, dest)

            if self.dry_run:
                logging.info(f"[DRY RUN] {'Move' if self.move_mode else 'Copy'} {src} -> {dest}")
                return PlacementResult(action, src, dest, simulated=True)

            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileOperationError(f"Cannot create {dest.parent}: {e}") from e

            if self.move_mode:
                logging.info(f"Moving file: {src} -> {dest}")
                self._move(src, dest)
            else:
                logging.info(f"Copying file: {src} -> {dest}")
                self._copy(src, dest)

        return PlacementResult(action, src, dest)

    def _move(self, src: Path, dest: Path):
        # Atomic rename when possible; across devices shutil falls back
        # to copy + delete of the source.
        try:
            shutil.move(str(src), str(dest))
        except OSError as e:
            self._discard_partial(src, dest)
            raise FileOperationError(f"Failed to move {src} -> {dest}: {e}") from e

    def _copy(self, src: Path, dest: Path):
        try:
            shutil.copy2(str(src), str(dest))
        except OSError as e:
            self._discard_partial(src, dest)
            raise FileOperationError(f"Failed to copy {src} -> {dest}: {e}") from e

    def _discard_partial(self, src: Path, dest: Path):
        # Only called while holding dest's lock, after dest was found missing,
        # so anything there now is our own half-written file.
        try:
            if src.exists() and dest.exists():
                dest.unlink()
        except OSError as e:
            logging.warning(f"Could not remove partial file {dest}: {e}")

import os
import logging
from pathlib import Path
from typing import Callable, Iterator

from ..exceptions import InvalidRootError, UnreadableDirectoryError
from .dispatch import BoundedDispatcher


def verify_directory(path: Path, label: str = "Directory") -> Path:
    """Raises InvalidRootError unless `path` is an existing directory."""
    if not path.exists():
        raise InvalidRootError(f"{label} {path}: no such directory.")
    if not path.is_dir():
        raise InvalidRootError(f"{label} {path}: is not a directory.")
    return path


class DirectoryWalker:
    """
    Single-threaded depth-first traversal of the source tree.

    Only leaf files are handed to the dispatcher; recursion itself never
    runs in parallel.
    """

    def walk(self, root: Path, dispatcher: BoundedDispatcher, task: Callable[[Path], object]) -> int:
        """
        Submits `task(path)` for every regular file below `root`.
        Returns the number of files submitted.
        """
        verify_directory(root, "Source")

        count = 0
        for path in self.iter_files(root):
            if not dispatcher.submit(task, path):
                logging.info(f"Traversal stopped after {count} files.")
                break
            count += 1
        return count

    def iter_files(self, root: Path) -> Iterator[Path]:
        """
        Yields regular files in a stable order (directory by directory,
        names compared case-insensitively). Symlinks are not followed.
        """
        try:
            entries = self._list(root)
        except OSError as e:
            raise UnreadableDirectoryError(f"Cannot list {root}: {e}") from e

        stack = [(root, entries)]
        while stack:
            current, entries = stack.pop()
            if entries is None:
                try:
                    entries = self._list(current)
                except OSError as e:
                    # Lose this subtree, keep its siblings
                    logging.warning(f"Cannot list {current}: {e}")
                    continue

            dirs = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    yield Path(e.path)
                else:
                    logging.debug(f"Not a regular file (symlink or special), skipped: {e.path}")

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append((d, None))

    def _list(self, directory: Path) -> list:
        with os.scandir(directory) as it:
            entries = list(it)
        entries.sort(key=lambda e: e.name.lower())
        return entries

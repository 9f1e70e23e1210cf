import hashlib
from pathlib import Path

from .. import config
from ..exceptions import FileHashError


class FileHasher:
    """
    Content fingerprints used to disambiguate destination file names.

    Only the first few hex characters end up in a path, so SHA-1 is
    plenty and keeps names compatible with libraries imported before.
    """

    def __init__(self, chunk_size: int = config.HASH_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def __call__(self, path: Path) -> str:
        return self.sha1_hex(path)

    def sha1_hex(self, path: Path) -> str:
        """Reads entire file and returns the lower-case hex digest."""
        h = hashlib.sha1()
        try:
            with open(path, 'rb') as f:
                while chunk := f.read(self.chunk_size):
                    h.update(chunk)
        except OSError as e:
            raise FileHashError(f"Cannot hash {path}: {e}") from e
        return h.hexdigest()

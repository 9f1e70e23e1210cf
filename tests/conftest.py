import pytest
from pathlib import Path
from photo_importer.models import ImportConfig
from photo_importer.exceptions import MetadataExtractionError


class FakeProvider:
    """Returns canned tags per file name; unknown files have no metadata."""

    def __init__(self, tags_by_name=None):
        self.tags_by_name = dict(tags_by_name or {})
        self.calls = []

    def extract(self, path: Path):
        self.calls.append(path)
        if path.name not in self.tags_by_name:
            raise MetadataExtractionError(f"no tags for {path.name}")
        return dict(self.tags_by_name[path.name])


def fixed_hash(digest):
    def _hash(path):
        return digest
    return _hash


@pytest.fixture
def roots(tmp_path):
    """Returns (src, dest) directories that exist."""
    src = tmp_path / "from"
    dest = tmp_path / "to"
    src.mkdir()
    dest.mkdir()
    return src, dest


@pytest.fixture
def make_config(roots):
    src, dest = roots

    def _make(**overrides):
        params = dict(src_root=src, dest_root=dest, max_procs=2)
        params.update(overrides)
        return ImportConfig(**params)
    return _make

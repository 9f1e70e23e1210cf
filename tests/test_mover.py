import os
import shutil
import threading

import pytest

from photo_importer.exceptions import FileOperationError
from photo_importer.models import PlacementOutcome
from photo_importer.organization.mover import FileMover, PathLocks


def test_copy_creates_parents_and_keeps_source(make_config, roots):
    src_root, dest_root = roots
    src = src_root / "IMG_0001.JPG"
    src.write_bytes(b"jpeg bytes")
    dest = dest_root / "2021" / "05-May" / "07-Friday" / "143000-AB12.jpg"

    result = FileMover(make_config()).place(src, dest)

    assert result.outcome is PlacementOutcome.COPIED
    assert not result.simulated
    assert dest.read_bytes() == b"jpeg bytes"
    assert src.exists()


def test_move_removes_source(make_config, roots):
    src_root, dest_root = roots
    src = src_root / "song.mp3"
    src.write_bytes(b"id3")
    dest = dest_root / "artist" / "album" / "1.mp3"

    result = FileMover(make_config(move=True)).place(src, dest)

    assert result.outcome is PlacementOutcome.MOVED
    assert dest.read_bytes() == b"id3"
    assert not src.exists()


def test_move_falls_back_to_copy_when_rename_fails(monkeypatch, make_config, roots):
    src_root, dest_root = roots
    src = src_root / "clip.mov"
    src.write_bytes(b"video")
    dest = dest_root / "2020" / "clip.mov"

    def cross_device(a, b):
        raise OSError(18, "Invalid cross-device link")

    monkeypatch.setattr(os, "rename", cross_device)

    result = FileMover(make_config(move=True)).place(src, dest)

    assert result.outcome is PlacementOutcome.MOVED
    assert dest.read_bytes() == b"video"
    assert not src.exists()


def test_existing_destination_is_skipped(make_config, roots):
    src_root, dest_root = roots
    src = src_root / "a.jpg"
    src.write_bytes(b"new")
    dest = dest_root / "a.jpg"
    dest.write_bytes(b"old")

    result = FileMover(make_config(move=True)).place(src, dest)

    assert result.outcome is PlacementOutcome.SKIPPED
    assert dest.read_bytes() == b"old"
    assert src.exists()


def test_dry_run_touches_nothing(make_config, roots):
    src_root, dest_root = roots
    src = src_root / "a.jpg"
    src.write_bytes(b"data")
    dest = dest_root / "2021" / "a.jpg"

    for move in (False, True):
        result = FileMover(make_config(dry_run=True, move=move)).place(src, dest)
        assert result.simulated
        assert result.outcome is (PlacementOutcome.MOVED if move else PlacementOutcome.COPIED)

    assert src.exists()
    assert list(dest_root.iterdir()) == []


def test_dry_run_still_reports_collisions(make_config, roots):
    src_root, dest_root = roots
    src = src_root / "a.jpg"
    src.write_bytes(b"data")
    dest = dest_root / "a.jpg"
    dest.write_bytes(b"taken")

    result = FileMover(make_config(dry_run=True)).place(src, dest)
    assert result.outcome is PlacementOutcome.SKIPPED
    assert not result.simulated


def test_copy_failure_raises_and_cleans_up(monkeypatch, make_config, roots):
    src_root, dest_root = roots
    src = src_root / "a.jpg"
    src.write_bytes(b"data")
    dest = dest_root / "x" / "a.jpg"

    def broken_copy(a, b, **kwargs):
        with open(b, "wb") as f:
            f.write(b"da")
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(shutil, "copy2", broken_copy)

    with pytest.raises(FileOperationError):
        FileMover(make_config()).place(src, dest)

    assert not dest.exists()
    assert src.read_bytes() == b"data"


def test_mkdir_failure_raises(make_config, roots):
    src_root, dest_root = roots
    src = src_root / "a.jpg"
    src.write_bytes(b"data")
    blocker = dest_root / "2021"
    blocker.write_bytes(b"a file where a folder should be")

    with pytest.raises(FileOperationError):
        FileMover(make_config()).place(src, blocker / "05-May" / "a.jpg")


def test_same_destination_written_once(make_config, roots):
    src_root, dest_root = roots
    sources = []
    for i in range(8):
        p = src_root / f"{i}.jpg"
        p.write_bytes(f"payload-{i}".encode() * 1000)
        sources.append(p)
    dest = dest_root / "2021" / "143000-AB12.jpg"

    mover = FileMover(make_config())
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(sources))

    def worker(src):
        barrier.wait()
        r = mover.place(src, dest)
        with lock:
            results.append(r)

    threads = [threading.Thread(target=worker, args=(s,)) for s in sources]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    outcomes = [r.outcome for r in results]
    assert outcomes.count(PlacementOutcome.COPIED) == 1
    assert outcomes.count(PlacementOutcome.SKIPPED) == len(sources) - 1

    winner = next(r.source for r in results if r.outcome is PlacementOutcome.COPIED)
    assert dest.read_bytes() == winner.read_bytes()


def test_path_locks_are_released():
    locks = PathLocks()
    with locks.hold("/a"):
        assert len(locks) == 1
    assert len(locks) == 0


def test_unusable_destination_name_raises_operation_error(make_config, roots):
    src_root, dest_root = roots
    src = src_root / "song.mp3"
    src.write_bytes(b"id3")
    dest = dest_root / "band" / "unknown-album" / ("t" * 300 + ".mp3")

    with pytest.raises(FileOperationError):
        FileMover(make_config()).place(src, dest)

    assert src.read_bytes() == b"id3"


def test_discard_partial_tolerates_stat_errors(monkeypatch, make_config, roots):
    src_root, dest_root = roots
    src = src_root / "a.jpg"
    src.write_bytes(b"data")

    def broken_exists(self):
        raise OSError(36, "File name too long")

    monkeypatch.setattr(type(src), "exists", broken_exists)
    # Logs a warning instead of raising
    FileMover(make_config())._discard_partial(src, dest_root / "a.jpg")

"""Tests for the concurrent traverser."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path

import pytest

from cachedetect.core.classifier import Classifier
from cachedetect.core.control import CancelToken, ProgressCounter
from cachedetect.core.traverser import ScanRootError, Traverser
from cachedetect.models.category import CacheCategory


def _names(results) -> list[str]:
    return sorted(entry.name for entry, _ in results)


class _FailingStat:
    """Directory entry stand-in whose stat call fails."""

    def __init__(self, entry: os.DirEntry) -> None:
        self.name = entry.name
        self.path = entry.path

    def is_dir(self, *, follow_symlinks: bool = True) -> bool:
        return False

    def is_symlink(self) -> bool:
        return False

    def stat(self, *, follow_symlinks: bool = True):
        raise PermissionError(13, "Permission denied", self.path)


class TestTraverser:
    def test_visits_every_file_once(self, make_tree):
        root = make_tree({"a.txt": 1, "one/b.tmp": 2, "one/two/c.log": 3, "three/d.bak": 4})
        traverser = Traverser(Classifier(), workers=3)

        results = list(traverser.scan(root))

        assert _names(results) == ["a.txt", "b.tmp", "c.log", "d.bak"]
        assert traverser.errors == []
        assert traverser.truncated is False

    def test_yields_classification_and_metadata(self, make_tree):
        root = make_tree({"tmp/cache.tmp": 7, "home/doc.txt": 5})
        results = {entry.name: (entry, category) for entry, category in Traverser(Classifier()).scan(root)}

        entry, category = results["cache.tmp"]
        assert category is CacheCategory.TEMPORARY
        assert entry.size_bytes == 7
        assert entry.extension == ".tmp"
        assert entry.parents == ("root", "tmp")
        assert entry.path == root.resolve() / "tmp" / "cache.tmp"
        assert results["doc.txt"][1] is None

    def test_directories_are_not_yielded(self, make_tree):
        root = make_tree({"cache/inner/file.bin": 1})
        (root / "empty").mkdir()

        results = list(Traverser(Classifier()).scan(root))

        assert _names(results) == ["file.bin"]

    def test_missing_root_fails_before_iteration(self, tmp_path):
        traverser = Traverser(Classifier())
        with pytest.raises(ScanRootError):
            traverser.scan(tmp_path / "missing")

    def test_file_root_fails(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(ScanRootError):
            Traverser(Classifier()).scan(target)

    @pytest.mark.parametrize("workers", [0, -2])
    def test_rejects_non_positive_workers(self, workers):
        with pytest.raises(ValueError):
            Traverser(Classifier(), workers=workers)

    def test_symlink_cycle_terminates(self, make_tree):
        root = make_tree({"a/file.tmp": 1, "b.log": 1})
        try:
            os.symlink(root, root / "a" / "loop", target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")

        traverser = Traverser(Classifier(), workers=2)
        results = list(traverser.scan(root))

        assert _names(results) == ["b.log", "file.tmp", "loop"]
        loop = next(entry for entry, _ in results if entry.name == "loop")
        assert loop.is_symlink
        assert not loop.is_dir

    def test_unreadable_directory_is_skipped(self, make_tree, monkeypatch):
        root = make_tree({"good/x.tmp": 1, "bad/y.tmp": 1, "bad/deeper/z.tmp": 1}).resolve()
        bad = root / "bad"
        real_scandir = os.scandir

        def fake_scandir(path="."):
            if Path(path) == bad:
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", fake_scandir)
        traverser = Traverser(Classifier(), workers=2)
        results = list(traverser.scan(root))

        assert _names(results) == ["x.tmp"]
        assert len(traverser.errors) == 1
        assert traverser.errors[0].path == bad
        assert "Permission denied" in traverser.errors[0].message

    def test_unstatable_file_is_skipped(self, make_tree, monkeypatch, caplog):
        root = make_tree({"dir/broken.tmp": 1, "dir/ok.tmp": 2, "sibling.log": 3})
        real_scandir = os.scandir

        @contextmanager
        def fake_scandir(path="."):
            with real_scandir(path) as it:
                yield [_FailingStat(e) if e.name == "broken.tmp" else e for e in it]

        monkeypatch.setattr(os, "scandir", fake_scandir)
        traverser = Traverser(Classifier(), workers=2)
        with caplog.at_level(logging.DEBUG, logger="cachedetect.core.traverser"):
            results = list(traverser.scan(root))

        assert _names(results) == ["ok.tmp", "sibling.log"]
        assert len(traverser.errors) == 1
        assert traverser.errors[0].path.name == "broken.tmp"
        assert "Permission denied" in traverser.errors[0].message
        assert "Cannot access" in caplog.text

    @pytest.mark.skipif(not hasattr(os, "geteuid") or os.geteuid() == 0, reason="root ignores permissions")
    def test_chmod_unreadable_directory(self, make_tree):
        root = make_tree({"good/x.tmp": 1, "locked/y.tmp": 1})
        locked = root / "locked"
        locked.chmod(0)
        try:
            traverser = Traverser(Classifier())
            results = list(traverser.scan(root))
        finally:
            locked.chmod(0o755)

        assert _names(results) == ["x.tmp"]
        assert [e.path.name for e in traverser.errors] == ["locked"]

    def test_cancel_stops_dispatching(self, make_tree):
        root = make_tree({"a.tmp": 1, "sub/b.tmp": 1, "sub/deeper/c.tmp": 1})
        token = CancelToken()
        traverser = Traverser(Classifier(), workers=1, token=token, on_progress=lambda _count: token.cancel())

        results = list(traverser.scan(root))

        assert _names(results) == ["a.tmp"]
        assert traverser.truncated is True

    def test_cancel_before_start(self, make_tree):
        root = make_tree({"a.tmp": 1})
        token = CancelToken()
        token.cancel()
        traverser = Traverser(Classifier(), token=token)

        assert list(traverser.scan(root)) == []
        assert traverser.truncated is True

    def test_progress_is_monotonic(self, make_tree):
        root = make_tree({"a.tmp": 1, "x/b.tmp": 1, "x/y/c.tmp": 1, "z/d.tmp": 1})
        seen: list[int] = []
        counter = ProgressCounter()

        list(Traverser(Classifier(), workers=4, progress=counter, on_progress=seen.append).scan(root))

        assert seen == sorted(seen)
        # 4 files + 3 directories below the root
        assert counter.value == 7
        assert seen[-1] == 7

    def test_same_files_for_any_worker_count(self, make_tree):
        files = {f"d{i}/e{j}/f{k}.tmp": 1 for i in range(3) for j in range(3) for k in range(2)}
        root = make_tree(files)

        single = _names(Traverser(Classifier(), workers=1).scan(root))
        many = _names(Traverser(Classifier(), workers=8).scan(root))

        assert single == many
        assert len(single) == len(files)


class TestProgressCounter:
    def test_increment_returns_new_value(self):
        counter = ProgressCounter()
        assert counter.increment() == 1
        assert counter.increment(4) == 5
        assert counter.value == 5

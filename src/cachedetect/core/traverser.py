"""Concurrent directory traversal."""

from __future__ import annotations

import logging
import os
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator

from cachedetect.core.classifier import Classifier
from cachedetect.core.control import CancelToken, ProgressCounter
from cachedetect.models.category import CacheCategory
from cachedetect.models.scan_result import FileEntry, ScanError

log = logging.getLogger(__name__)

Classified = tuple[FileEntry, CacheCategory | None]
ProgressCallback = Callable[[int], None]  # (entries_visited)


class ScanRootError(Exception):
    """Raised when the scan root is missing or is not a directory."""


def default_workers() -> int:
    """Worker count used when none is given: the host's CPU count."""
    return os.cpu_count() or 1


@dataclass(slots=True)
class _Listing:
    """Everything one worker found in one directory."""

    results: list[Classified] = field(default_factory=list)
    subdirs: list[tuple[Path, tuple[str, ...]]] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)


class Traverser:
    """Walks a directory tree with a bounded pool of worker threads.

    Pending directories live in an explicit FIFO queue owned by the
    calling thread.  Workers list one directory each, classify its files
    inline and hand back the subdirectories they found, so the tree is
    never held in memory and no recursion is involved.  Symlinks are
    reported as files and never followed.

    A Traverser is single-use: ``errors`` and ``truncated`` describe the
    last scan once its stream has been exhausted.
    """

    def __init__(
        self,
        classifier: Classifier,
        *,
        workers: int | None = None,
        token: CancelToken | None = None,
        progress: ProgressCounter | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if workers is None:
            workers = default_workers()
        if workers < 1:
            raise ValueError(f"Worker count must be a positive integer, got {workers}")
        self.classifier = classifier
        self.workers = workers
        self.token = token or CancelToken()
        self.progress = progress or ProgressCounter()
        self.on_progress = on_progress
        self.errors: list[ScanError] = []
        self.truncated = False

    def scan(self, root: Path | str) -> Iterator[Classified]:
        """Validate ``root`` and return a lazy stream of classified files.

        Raises:
            ScanRootError: Immediately, if ``root`` does not exist or is
                not a directory.
        """
        root = Path(root)
        if not root.exists():
            raise ScanRootError(f"Scan root does not exist: {root}")
        if not root.is_dir():
            raise ScanRootError(f"Scan root is not a directory: {root}")
        root = root.resolve()
        return self._walk(root)

    def _walk(self, root: Path) -> Iterator[Classified]:
        pending: deque[tuple[Path, tuple[str, ...]]] = deque([(root, (root.name,))])
        running: set[Future[_Listing]] = set()

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="cachedetect-scan") as executor:
            while pending or running:
                while pending and len(running) < self.workers and not self.token.cancelled:
                    path, parents = pending.popleft()
                    running.add(executor.submit(self._list_dir, path, parents))

                if not running:
                    break

                done, running = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    listing = future.result()
                    self.errors.extend(listing.errors)
                    pending.extend(listing.subdirs)
                    if self.on_progress:
                        self.on_progress(self.progress.value)
                    yield from listing.results

        if pending:
            self.truncated = True
            log.info("Scan cancelled with %d directories left unvisited", len(pending))

    def _list_dir(self, path: Path, parents: tuple[str, ...]) -> _Listing:
        """List one directory and classify its non-directory children."""
        listing = _Listing()
        try:
            with os.scandir(path) as it:
                children = list(it)
        except OSError as e:
            log.warning("Skipping unreadable directory %s: %s", path, e.strerror or e)
            listing.errors.append(ScanError(path=path, message=str(e.strerror or e)))
            return listing

        self.progress.increment(len(children))

        for child in children:
            child_path = Path(child.path)
            try:
                if child.is_dir(follow_symlinks=False):
                    listing.subdirs.append((child_path, (*parents, child.name)))
                    continue
                stat = child.stat(follow_symlinks=False)
                is_symlink = child.is_symlink()
            except OSError as e:
                log.debug("Cannot access: %s (%s)", child_path, e)
                listing.errors.append(ScanError(path=child_path, message=str(e.strerror or e)))
                continue

            entry = FileEntry(
                path=child_path,
                name=child.name,
                extension=os.path.splitext(child.name)[1].lower(),
                size_bytes=stat.st_size,
                parents=parents,
                is_symlink=is_symlink,
            )
            listing.results.append((entry, self.classifier.classify(entry)))

        return listing

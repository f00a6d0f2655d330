"""Fold a classified entry stream into a ScanReport."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from cachedetect.models.category import CacheCategory
from cachedetect.models.scan_result import CategoryTotals, FileEntry, MatchedFile, ScanReport


class Aggregator:
    """Accumulates per-category statistics for one scan."""

    def __init__(self, root: Path | str = ".") -> None:
        self.report = ScanReport(root=Path(root))

    def add(self, entry: FileEntry, category: CacheCategory | None) -> None:
        report = self.report
        report.total_scanned += 1
        if category is None:
            return
        report.matches.append(MatchedFile(entry=entry, category=category))
        totals = report.categories.setdefault(category, CategoryTotals())
        totals.count += 1
        totals.total_bytes += entry.size_bytes


def aggregate(
    stream: Iterable[tuple[FileEntry, CacheCategory | None]],
    *,
    root: Path | str = ".",
) -> ScanReport:
    """Consume ``stream`` and return the resulting report.

    Matched files keep the stream's order.
    """
    aggregator = Aggregator(root)
    for entry, category in stream:
        aggregator.add(entry, category)
    return aggregator.report

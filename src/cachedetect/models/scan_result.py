"""Scan result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cachedetect.models.category import CacheCategory


@dataclass(frozen=True, slots=True)
class FileEntry:
    """Single filesystem node visited during a scan.

    ``parents`` lists ancestor directory names from the scan root's own
    name down to the entry's immediate parent.  ``extension`` is lower-case
    and includes the leading dot, or is empty.
    """

    path: Path
    name: str
    extension: str
    size_bytes: int
    parents: tuple[str, ...] = ()
    is_dir: bool = False
    is_symlink: bool = False


@dataclass(frozen=True, slots=True)
class MatchedFile:
    """A FileEntry confirmed to belong to a cache category."""

    entry: FileEntry
    category: CacheCategory

    @property
    def path(self) -> Path:
        return self.entry.path

    @property
    def size_bytes(self) -> int:
        return self.entry.size_bytes


@dataclass(slots=True)
class CategoryTotals:
    """Running count and byte total for one category."""

    count: int = 0
    total_bytes: int = 0


@dataclass(frozen=True, slots=True)
class ScanError:
    """An entry that could not be listed or stat'ed and was skipped."""

    path: Path
    message: str


@dataclass(slots=True)
class ScanReport:
    """Aggregate result of one scan.

    ``matches`` follows the order in which workers finished their
    directories, which is not stable across runs with different worker
    counts.  Category totals do not depend on that order.
    """

    root: Path
    total_scanned: int = 0
    categories: dict[CacheCategory, CategoryTotals] = field(default_factory=dict)
    matches: list[MatchedFile] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)
    truncated: bool = False
    elapsed: float = 0.0

    @property
    def total_matched(self) -> int:
        return len(self.matches)

    @property
    def total_bytes(self) -> int:
        return sum(totals.total_bytes for totals in self.categories.values())

    @property
    def skipped(self) -> int:
        """Number of entries skipped because of read errors."""
        return len(self.errors)

    def by_category(self, category: CacheCategory) -> list[MatchedFile]:
        return [m for m in self.matches if m.category is category]

    def paths(self) -> list[Path]:
        """Absolute paths of every matched file, in report order."""
        return [m.path for m in self.matches]

"""Deletion result dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class DeletionFailure:
    """A matched file that could not be removed."""

    path: Path
    message: str


@dataclass(slots=True)
class DeletionResult:
    """Result of deleting a set of matched files."""

    freed_bytes: int = 0
    files_removed: int = 0
    deleted: list[Path] = field(default_factory=list)
    failures: list[DeletionFailure] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [f"{f.path}: {f.message}" for f in self.failures]

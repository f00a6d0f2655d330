"""Cache categories."""

from __future__ import annotations

from enum import Enum


class CacheCategory(Enum):
    """Closed set of categories a cache file can belong to."""

    BROWSER = "Browser"
    SYSTEM = "System"
    APPLICATION = "Application"
    LOG = "Log"
    TEMPORARY = "Temporary"
    BACKUP = "Backup"
    OTHER = "Other"

    @classmethod
    def from_name(cls, name: str) -> CacheCategory:
        """Look up a category by value or member name, ignoring case."""
        wanted = name.strip().lower()
        for category in cls:
            if wanted in (category.value.lower(), category.name.lower()):
                return category
        raise ValueError(f"Unknown cache category: {name!r}")

    def __str__(self) -> str:
        return self.value


# Specific signals (named browsers and applications) come before generic ones.
DEFAULT_PRIORITY: tuple[CacheCategory, ...] = (
    CacheCategory.BROWSER,
    CacheCategory.SYSTEM,
    CacheCategory.APPLICATION,
    CacheCategory.LOG,
    CacheCategory.TEMPORARY,
    CacheCategory.BACKUP,
    CacheCategory.OTHER,
)

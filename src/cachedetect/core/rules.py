"""Built-in detection rules and the rule registry."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

from cachedetect.models.category import DEFAULT_PRIORITY, CacheCategory
from cachedetect.models.rule import DetectionRule, RuleKind

log = logging.getLogger(__name__)

_BROWSER_DIRS = (
    "chrome",
    "google-chrome",
    "chromium",
    "firefox",
    "mozilla",
    "edge",
    "microsoft-edge",
    "safari",
    "brave-browser",
    "opera",
    "vivaldi",
)

_BROWSER_CACHE_DIRS = (
    "cache",
    "cache2",
    "code cache",
    "gpucache",
    "cache_data",
    "cachestorage",
    "startupcache",
    "media cache",
)

_BROWSER_BUNDLES = (
    "com.apple.safari",
    "com.google.chrome",
    "org.mozilla.firefox",
    "com.microsoft.edgemac",
    "com.brave.browser",
)

_B = CacheCategory.BROWSER
_S = CacheCategory.SYSTEM
_A = CacheCategory.APPLICATION
_L = CacheCategory.LOG
_T = CacheCategory.TEMPORARY
_K = CacheCategory.BACKUP
_O = CacheCategory.OTHER

DEFAULT_RULES: tuple[DetectionRule, ...] = (
    # Browser
    DetectionRule(_B, RuleKind.MARKER, _BROWSER_CACHE_DIRS, within=_BROWSER_DIRS,
                  description="Browser profile cache directory"),
    DetectionRule(_B, RuleKind.MARKER, _BROWSER_BUNDLES, within=("caches",),
                  description="macOS browser cache bundle"),
    # System
    DetectionRule(_S, RuleKind.MARKER, (".cache", "cache", "caches"), description="Cache directory"),
    DetectionRule(_S, RuleKind.MARKER, ("thumbnails", ".thumbnails"), description="Thumbnail cache"),
    DetectionRule(_S, RuleKind.NAME,
                  ("thumbs.db", ".ds_store", "desktop.ini", "iconcache*.db", "thumbcache_*.db"),
                  description="Desktop metadata file"),
    # Application
    DetectionRule(_A, RuleKind.MARKER,
                  ("__pycache__", ".pytest_cache", ".mypy_cache", ".ruff_cache",
                   ".sass-cache", ".parcel-cache", ".gradle", ".npm"),
                  description="Tool or build cache directory"),
    DetectionRule(_A, RuleKind.EXTENSION, (".pyc", ".pyo"), description="Compiled bytecode"),
    # Log
    DetectionRule(_L, RuleKind.EXTENSION, (".log",), description="Log file"),
    DetectionRule(_L, RuleKind.NAME, ("*.log.[0-9]*", "*.log.gz", "*.log.old"), description="Rotated log"),
    DetectionRule(_L, RuleKind.MARKER, ("log", "logs", ".logs"), description="Log directory"),
    # Temporary
    DetectionRule(_T, RuleKind.EXTENSION,
                  (".tmp", ".temp", ".swp", ".swo", ".crdownload", ".part", ".partial"),
                  description="Temporary or partial file"),
    DetectionRule(_T, RuleKind.MARKER, ("tmp", ".tmp", "temp", ".temp"), description="Temporary directory"),
    # Backup
    DetectionRule(_K, RuleKind.EXTENSION, (".bak", ".backup", ".old", ".orig"), description="Backup file"),
    DetectionRule(_K, RuleKind.NAME, ("*~",), description="Editor backup"),
    DetectionRule(_K, RuleKind.MARKER, ("backup", ".backup", "old", ".old"), description="Backup directory"),
    # Other
    DetectionRule(_O, RuleKind.EXTENSION, (".cache",), description="Generic cache file"),
    DetectionRule(_O, RuleKind.NAME, ("~$*", "*.cache.*"), description="Lock or cache artifact"),
)


class RuleSet:
    """Read-only registry of detection rules grouped by category.

    Rules keep their declaration order within a category.
    """

    def __init__(self, rules: Iterable[DetectionRule]) -> None:
        grouped: dict[CacheCategory, list[DetectionRule]] = {c: [] for c in CacheCategory}
        for rule in rules:
            grouped[rule.category].append(rule)
        self._rules: dict[CacheCategory, tuple[DetectionRule, ...]] = {
            category: tuple(items) for category, items in grouped.items()
        }

    @classmethod
    def default(cls) -> RuleSet:
        """Return the built-in rule table."""
        return cls(DEFAULT_RULES)

    def extended(self, extra: Iterable[DetectionRule]) -> RuleSet:
        """Return a new set with ``extra`` appended after each category's rules."""
        return RuleSet([*self, *extra])

    def rules_for(self, category: CacheCategory) -> tuple[DetectionRule, ...]:
        """Rules for a category, in evaluation order."""
        return self._rules[category]

    def categories(self) -> list[CacheCategory]:
        """Categories that have at least one rule."""
        return [c for c in CacheCategory if self._rules[c]]

    def __len__(self) -> int:
        return sum(len(r) for r in self._rules.values())

    def __iter__(self) -> Iterator[DetectionRule]:
        for category in DEFAULT_PRIORITY:
            yield from self._rules[category]


def rule_from_dict(data: dict[str, Any]) -> DetectionRule:
    """Build a rule from a settings entry.

    Raises:
        ValueError: If the entry is missing fields or names an unknown
            category or kind.
    """
    try:
        category = CacheCategory.from_name(str(data["category"]))
        kind = RuleKind(str(data["kind"]).lower())
        raw_patterns = data["patterns"]
    except KeyError as e:
        raise ValueError(f"Rule is missing field {e}") from None

    patterns = _string_list(raw_patterns, "patterns")
    if not patterns:
        raise ValueError("Rule has no patterns")
    within = _string_list(data.get("within", ()), "within")

    return DetectionRule(
        category=category,
        kind=kind,
        patterns=patterns,
        within=within,
        description=str(data.get("description", "User rule")),
    )


def _string_list(value: Any, field_name: str) -> tuple[str, ...]:
    """Lower-case a string or a list of strings from a settings entry."""
    if isinstance(value, str):
        return (value.lower(),)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{field_name}' must be a string or a list, got {type(value).__name__}")
    return tuple(str(v).lower() for v in value)


def rules_from_config(entries: Iterable[Any]) -> list[DetectionRule]:
    """Convert settings entries to rules, skipping invalid ones."""
    rules: list[DetectionRule] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            log.warning("Ignoring extra rule #%d: expected an object, got %s", index, type(entry).__name__)
            continue
        try:
            rules.append(rule_from_dict(entry))
        except ValueError as e:
            log.warning("Ignoring extra rule #%d: %s", index, e)
    return rules

"""Classify filesystem entries into cache categories."""

from __future__ import annotations

from typing import Iterable

from cachedetect.core.rules import RuleSet
from cachedetect.models.category import DEFAULT_PRIORITY, CacheCategory
from cachedetect.models.scan_result import FileEntry


class Classifier:
    """Evaluates a RuleSet against file entries.

    Categories are tried in priority order and the first one with a
    satisfied rule wins, so a ``.log`` file inside a browser cache is
    Browser rather than Log.  Classification is a pure function of the
    entry and is safe to call from several threads.
    """

    def __init__(
        self,
        rule_set: RuleSet | None = None,
        priority: Iterable[CacheCategory] | None = None,
    ) -> None:
        self.rule_set = rule_set or RuleSet.default()
        self.priority = _normalize_priority(priority)

    def classify(self, entry: FileEntry) -> CacheCategory | None:
        """Return the entry's category, or None if it is not a cache file."""
        if entry.is_dir:
            return None

        name = entry.name.lower()
        extension = entry.extension.lower()
        parents = tuple(p.lower() for p in entry.parents)

        for category in self.priority:
            for rule in self.rule_set.rules_for(category):
                if rule.matches(name, extension, parents):
                    return category
        return None


def _normalize_priority(priority: Iterable[CacheCategory] | None) -> tuple[CacheCategory, ...]:
    """Validate a priority order and append any categories it leaves out."""
    if priority is None:
        return DEFAULT_PRIORITY
    order = list(priority)
    if len(set(order)) != len(order):
        raise ValueError("Category priority lists a category more than once")
    order.extend(c for c in DEFAULT_PRIORITY if c not in order)
    return tuple(order)

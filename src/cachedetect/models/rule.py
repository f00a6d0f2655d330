"""Detection rule dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase

from cachedetect.models.category import CacheCategory


class RuleKind(Enum):
    """How a rule's patterns are compared against an entry."""

    EXTENSION = "extension"
    NAME = "name"
    MARKER = "marker"


@dataclass(frozen=True, slots=True)
class DetectionRule:
    """A single pattern-to-category mapping.

    ``patterns`` and ``within`` hold lower-case strings.  For MARKER rules,
    ``within`` optionally names directories that must appear above the
    matched marker, e.g. a ``cache`` directory somewhere below ``chrome``.
    """

    category: CacheCategory
    kind: RuleKind
    patterns: tuple[str, ...]
    within: tuple[str, ...] = ()
    description: str = ""

    def matches(self, name: str, extension: str, parents: tuple[str, ...]) -> bool:
        """Test the rule against an already lower-cased name, extension and ancestor list."""
        match self.kind:
            case RuleKind.EXTENSION:
                return extension in self.patterns
            case RuleKind.NAME:
                return any(fnmatchcase(name, pattern) for pattern in self.patterns)
            case RuleKind.MARKER:
                return self._match_marker(parents)
        return False

    def _match_marker(self, parents: tuple[str, ...]) -> bool:
        for index, part in enumerate(parents):
            if part not in self.patterns:
                continue
            if not self.within:
                return True
            if any(outer in self.within for outer in parents[:index]):
                return True
        return False

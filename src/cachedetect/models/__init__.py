"""cachedetect data models."""

from cachedetect.models.category import DEFAULT_PRIORITY, CacheCategory
from cachedetect.models.rule import DetectionRule, RuleKind
from cachedetect.models.scan_result import CategoryTotals, FileEntry, MatchedFile, ScanError, ScanReport
from cachedetect.models.deletion_result import DeletionFailure, DeletionResult

__all__ = [
    "CacheCategory",
    "CategoryTotals",
    "DEFAULT_PRIORITY",
    "DeletionFailure",
    "DeletionResult",
    "DetectionRule",
    "FileEntry",
    "MatchedFile",
    "RuleKind",
    "ScanError",
    "ScanReport",
]

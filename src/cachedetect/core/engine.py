"""Scan and delete orchestration engine."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from cachedetect.core.aggregator import aggregate
from cachedetect.core.classifier import Classifier
from cachedetect.core.control import CancelToken
from cachedetect.core.rules import RuleSet, rules_from_config
from cachedetect.core.traverser import ProgressCallback, Traverser
from cachedetect.models.category import CacheCategory
from cachedetect.models.deletion_result import DeletionResult
from cachedetect.models.scan_result import MatchedFile, ScanReport
from cachedetect.utils import DeletionCallback, remove_files

if TYPE_CHECKING:
    from cachedetect.settings import Settings

log = logging.getLogger(__name__)


class CacheEngine:
    """Orchestrates scanning for cache files and deleting them."""

    def __init__(
        self,
        rule_set: RuleSet | None = None,
        priority: Iterable[CacheCategory] | None = None,
    ) -> None:
        self.classifier = Classifier(rule_set, priority)

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheEngine:
        """Build an engine using extra rules and priority from user settings."""
        rule_set = RuleSet.default()
        extra = settings.get("rules.extra", [])
        if isinstance(extra, list) and extra:
            rule_set = rule_set.extended(rules_from_config(extra))
            log.debug("Loaded %d rules (%d extra)", len(rule_set), len(extra))

        names = settings.get("classifier.priority")
        if names:
            try:
                return cls(rule_set, [CacheCategory.from_name(str(n)) for n in names])
            except (TypeError, ValueError) as e:
                log.warning("Ignoring classifier.priority setting: %s", e)

        return cls(rule_set)

    @property
    def rule_set(self) -> RuleSet:
        return self.classifier.rule_set

    def scan(
        self,
        root: Path | str,
        *,
        workers: int | None = None,
        token: CancelToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ScanReport:
        """Scan ``root`` for cache files.

        Args:
            root: Directory to scan.
            workers: Number of listing threads. Defaults to the CPU count.
            token: Optional cancellation token; a cancelled scan returns
                a partial report with ``truncated`` set.
            on_progress: Optional callback receiving the number of
                entries visited so far.

        Returns:
            The scan report, including entries skipped due to errors.

        Raises:
            ScanRootError: If ``root`` is missing or not a directory.
        """
        traverser = Traverser(self.classifier, workers=workers, token=token, on_progress=on_progress)
        started = time.monotonic()
        stream = traverser.scan(root)

        report = aggregate(stream, root=Path(root).resolve())
        report.errors = list(traverser.errors)
        report.truncated = traverser.truncated
        report.elapsed = time.monotonic() - started

        log.info(
            "Scanned %d files under %s: %d matched, %d skipped%s",
            report.total_scanned,
            report.root,
            report.total_matched,
            report.skipped,
            " (truncated)" if report.truncated else "",
        )
        return report

    def delete(
        self,
        matches: Iterable[MatchedFile],
        *,
        on_result: DeletionCallback | None = None,
    ) -> DeletionResult:
        """Delete matched files sequentially, recording each failure."""
        result = remove_files(matches, on_result=on_result)
        log.info(
            "Deleted %d files (%d bytes), %d failed",
            result.files_removed,
            result.freed_bytes,
            len(result.failures),
        )
        return result

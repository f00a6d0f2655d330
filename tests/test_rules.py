"""Tests for detection rules and the rule registry."""

from __future__ import annotations

import logging

import pytest

from cachedetect.core.rules import DEFAULT_RULES, RuleSet, rule_from_dict, rules_from_config
from cachedetect.models.category import CacheCategory
from cachedetect.models.rule import DetectionRule, RuleKind


class TestDetectionRule:
    def test_extension_rule(self):
        rule = DetectionRule(CacheCategory.LOG, RuleKind.EXTENSION, (".log",))
        assert rule.matches("app.log", ".log", ())
        assert not rule.matches("app.txt", ".txt", ())

    def test_name_rule_uses_globs(self):
        rule = DetectionRule(CacheCategory.BACKUP, RuleKind.NAME, ("*~",))
        assert rule.matches("notes.txt~", "", ())
        assert not rule.matches("notes.txt", ".txt", ())

    def test_marker_rule_matches_any_ancestor(self):
        rule = DetectionRule(CacheCategory.TEMPORARY, RuleKind.MARKER, ("tmp",))
        assert rule.matches("x.png", ".png", ("root", "tmp", "nested"))
        assert not rule.matches("x.png", ".png", ("root", "tmpfiles"))

    def test_marker_within_requires_outer_directory_above(self):
        rule = DetectionRule(CacheCategory.BROWSER, RuleKind.MARKER, ("cache",), within=("chrome",))
        assert rule.matches("f", "", ("root", "chrome", "default", "cache"))
        assert not rule.matches("f", "", ("root", "cache", "chrome"))
        assert not rule.matches("f", "", ("root", "cache"))

    def test_rules_are_immutable(self):
        rule = DetectionRule(CacheCategory.LOG, RuleKind.EXTENSION, (".log",))
        with pytest.raises(AttributeError):
            rule.category = CacheCategory.OTHER  # type: ignore[misc]


class TestRuleSet:
    def test_default_covers_every_category(self):
        rule_set = RuleSet.default()
        assert set(rule_set.categories()) == set(CacheCategory)
        assert len(rule_set) == len(DEFAULT_RULES)

    def test_rules_for_keeps_declaration_order(self):
        rule_set = RuleSet.default()
        expected = tuple(r for r in DEFAULT_RULES if r.category is CacheCategory.TEMPORARY)
        assert rule_set.rules_for(CacheCategory.TEMPORARY) == expected

    def test_extended_appends_after_builtin_rules(self):
        extra = DetectionRule(CacheCategory.LOG, RuleKind.EXTENSION, (".trace",))
        base = RuleSet.default()
        extended = base.extended([extra])

        assert extended.rules_for(CacheCategory.LOG)[-1] is extra
        assert len(extended) == len(base) + 1
        assert extra not in base.rules_for(CacheCategory.LOG)

    def test_empty_rule_set(self):
        rule_set = RuleSet([])
        assert len(rule_set) == 0
        assert rule_set.categories() == []
        assert rule_set.rules_for(CacheCategory.OTHER) == ()


class TestRulesFromConfig:
    def test_rule_from_dict(self):
        rule = rule_from_dict(
            {"category": "application", "kind": "MARKER", "patterns": ["Target"], "within": ["Rust"]}
        )
        assert rule.category is CacheCategory.APPLICATION
        assert rule.kind is RuleKind.MARKER
        assert rule.patterns == ("target",)
        assert rule.within == ("rust",)

    def test_single_pattern_string(self):
        rule = rule_from_dict({"category": "Log", "kind": "extension", "patterns": ".OUT"})
        assert rule.patterns == (".out",)

    @pytest.mark.parametrize(
        "data",
        [
            {"kind": "name", "patterns": ["x"]},
            {"category": "nope", "kind": "name", "patterns": ["x"]},
            {"category": "log", "kind": "regex", "patterns": ["x"]},
            {"category": "log", "kind": "name", "patterns": []},
            {"category": "log", "kind": "name", "patterns": 5},
            {"category": "log", "kind": "marker", "patterns": ["x"], "within": 3},
        ],
    )
    def test_invalid_rule_raises(self, data):
        with pytest.raises(ValueError):
            rule_from_dict(data)

    def test_invalid_entries_are_skipped(self, caplog):
        entries = [
            {"category": "log", "kind": "extension", "patterns": [".trace"]},
            "not a rule",
            {"category": "log", "kind": "bogus", "patterns": ["x"]},
            {"category": "log", "kind": "name", "patterns": 5},
            {"category": "log", "kind": "marker", "patterns": ["x"], "within": 3},
        ]
        with caplog.at_level(logging.WARNING):
            rules = rules_from_config(entries)

        assert [r.patterns for r in rules] == [(".trace",)]
        for index in ("#1", "#2", "#3", "#4"):
            assert index in caplog.text
        assert "'patterns' must be a string or a list" in caplog.text
        assert "'within' must be a string or a list" in caplog.text

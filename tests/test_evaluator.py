"""Tests for valuecheck.validation.evaluator — one rule against one value."""

from __future__ import annotations

from typing import Any

import pytest

from valuecheck.errors import PredicateError, UnknownRuleError
from valuecheck.validation.evaluator import PASS, Fail, Pass, evaluate
from valuecheck.validation.registry import RuleRegistry
from valuecheck.validation.rules import NamedRule, custom, when
from valuecheck.validation.tree import SourceLocation

LOC = SourceLocation("schema.yml", 2)


def _named(registry: RuleRegistry, name: str, arg: object) -> NamedRule:
    return registry.lookup(name, {name: arg}, LOC)


# ---------------------------------------------------------------------------
# Named rules
# ---------------------------------------------------------------------------


class TestNamedRules:
    """Built-in predicates and failure details."""

    @pytest.mark.parametrize(
        ("name", "arg", "value", "detail"),
        [
            ("min_len", 1, "", "length of 0 is less than 1"),
            ("min_len", 2, ["a"], "length of 1 is less than 2"),
            ("min_len", 1, {}, "length of 0 is less than 1"),
            ("max_len", 63, "x" * 64, "length of 64 is more than 63"),
            ("min", 1024, 0, "0 is less than 1024"),
            ("min", 0.5, 0.25, "0.25 is less than 0.5"),
            ("max", 10, 11, "11 is more than 10"),
            ("one_of", ["dev", "prod"], "qa", '"qa" is not one of: "dev", "prod"'),
            ("one_of", [1, 2], True, "true is not one of: 1, 2"),
            ("not_null", True, None, "value is null"),
            ("not_null", False, "x", "value is not null"),
            ("one_not_null", True, {"a": None, "b": None}, "all values are null"),
            ("one_not_null", ["a", "b"], {"a": 1, "b": 2, "c": 3}, "multiple values are not null: a, b"),
        ],
    )
    def test_failures(
        self, registry: RuleRegistry, name: str, arg: object, value: Any, detail: str
    ) -> None:
        outcome = evaluate(_named(registry, name, arg), value, registry=registry)
        assert outcome == Fail(detail)

    @pytest.mark.parametrize(
        ("name", "arg", "value"),
        [
            ("min_len", 1, "a"),
            ("min_len", 0, ""),
            ("max_len", 63, "x" * 63),
            ("min", 1024, 1024),
            ("max", 10, 9.5),
            ("one_of", ["dev", "prod"], "prod"),
            ("one_of", [None, 1], None),
            ("not_null", True, 0),
            ("not_null", False, None),
            ("one_not_null", True, {"a": None, "b": "set"}),
            ("one_not_null", ["a", "b"], {"a": 1, "b": None, "c": 3}),
            ("one_not_null", ["a", "missing"], {"a": 1}),
        ],
    )
    def test_passes(self, registry: RuleRegistry, name: str, arg: object, value: Any) -> None:
        assert evaluate(_named(registry, name, arg), value, registry=registry) == PASS

    @pytest.mark.parametrize(
        ("name", "arg", "value", "detail"),
        [
            ("min_len", 1, 5, "expected a string, array or map, got integer"),
            ("max_len", 1, None, "expected a string, array or map, got null"),
            ("min", 1, "1", "expected a number, got string"),
            ("max", 1, True, "expected a number, got boolean"),
            ("one_not_null", True, ["a"], "expected a map, got array"),
        ],
    )
    def test_inapplicable_type_fails(
        self, registry: RuleRegistry, name: str, arg: object, value: Any, detail: str
    ) -> None:
        assert evaluate(_named(registry, name, arg), value, registry=registry) == Fail(detail)

    def test_rule_missing_from_registry(self, registry: RuleRegistry) -> None:
        rule = _named(registry, "min", 1)
        with pytest.raises(UnknownRuleError):
            evaluate(rule, 5, registry=RuleRegistry())


# ---------------------------------------------------------------------------
# Custom rules
# ---------------------------------------------------------------------------


class TestCustomRules:
    def test_false_fails_with_description(self, registry: RuleRegistry) -> None:
        rule = custom("not 'default'", lambda v: v != "default", LOC)
        assert evaluate(rule, "default", registry=registry) == Fail("not 'default'")

    def test_true_passes(self, registry: RuleRegistry) -> None:
        rule = custom("not 'default'", lambda v: v != "default", LOC)
        assert isinstance(evaluate(rule, "prod", registry=registry), Pass)

    def test_raising_predicate_is_fatal(self, registry: RuleRegistry) -> None:
        def boom(value: Any) -> bool:
            return value.startswith("x")

        rule = custom("starts with x", boom, LOC)
        with pytest.raises(PredicateError, match=r"\(by schema.yml:2\) raised AttributeError") as exc_info:
            evaluate(rule, 42, registry=registry)
        assert exc_info.value.rule is rule
        assert isinstance(exc_info.value.__cause__, AttributeError)

    def test_empty_description_rejected(self) -> None:
        from valuecheck.errors import AuthoringError

        with pytest.raises(AuthoringError):
            custom("", lambda _v: True, LOC)


# ---------------------------------------------------------------------------
# Conditional rules
# ---------------------------------------------------------------------------


class TestConditionalRules:
    """Guards see the value and its sibling values."""

    def test_guard_false_passes(self, registry: RuleRegistry) -> None:
        rule = when(_named(registry, "min_len", 1), lambda _v, s: s.get("enabled") is True)
        assert evaluate(rule, "", registry=registry, siblings={"enabled": False}) == PASS

    def test_guard_true_evaluates_inner(self, registry: RuleRegistry) -> None:
        rule = when(_named(registry, "min_len", 1), lambda _v, s: s.get("enabled") is True)
        outcome = evaluate(rule, "", registry=registry, siblings={"enabled": True})
        assert outcome == Fail("length of 0 is less than 1")

    def test_inherits_description_and_location(self, registry: RuleRegistry) -> None:
        inner = _named(registry, "max", 10)
        rule = when(inner, lambda _v, _s: True)
        assert rule.description == "a value less than or equal to 10"
        assert rule.declaration_location == LOC

    def test_missing_siblings_default_to_empty(self, registry: RuleRegistry) -> None:
        seen: list[object] = []

        def guard(_value: Any, siblings: Any) -> bool:
            seen.append(siblings)
            return False

        evaluate(when(_named(registry, "min", 1), guard), 0, registry=registry)
        assert seen == [{}]

    def test_raising_guard_is_fatal(self, registry: RuleRegistry) -> None:
        rule = when(_named(registry, "min", 1), lambda _v, s: s["absent"])
        with pytest.raises(PredicateError, match="KeyError"):
            evaluate(rule, 0, registry=registry, siblings={})

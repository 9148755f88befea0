"""Rule evaluator: one rule against one value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from valuecheck.errors import PredicateError
from valuecheck.validation.rules import ConditionalRule, CustomRule, NamedRule

if TYPE_CHECKING:
    from collections.abc import Mapping

    from valuecheck.validation.registry import RuleRegistry
    from valuecheck.validation.rules import Rule


@dataclass(frozen=True)
class Pass:
    """The value satisfies the rule."""


@dataclass(frozen=True)
class Fail:
    """The value violates the rule; *detail* explains how."""

    detail: str


Outcome = Pass | Fail

PASS = Pass()


def evaluate(
    rule: Rule,
    value: Any,
    *,
    registry: RuleRegistry,
    siblings: Mapping[str, Any] | None = None,
) -> Outcome:
    """Evaluate *rule* against *value*.

    *siblings* is the parent map's value, used only by conditional guards.

    Raises
    ------
    UnknownRuleError
        A named rule refers to a definition missing from *registry*.
    PredicateError
        A custom predicate or a conditional guard raised.
    """
    if isinstance(rule, NamedRule):
        definition = registry.get(rule.name, rule.declaration_location)
        detail = definition.check(value, rule.argument)
        return PASS if detail is None else Fail(detail)

    if isinstance(rule, CustomRule):
        try:
            ok = rule.predicate(value)
        except Exception as exc:
            raise PredicateError(rule, exc) from exc
        return PASS if ok else Fail(rule.description)

    if isinstance(rule, ConditionalRule):
        try:
            applies = rule.guard(value, siblings if siblings is not None else {})
        except Exception as exc:
            raise PredicateError(rule, exc) from exc
        if not applies:
            return PASS
        return evaluate(rule.rule, value, registry=registry, siblings=siblings)

    msg = f"unsupported rule type: {type(rule).__name__}"
    raise TypeError(msg)

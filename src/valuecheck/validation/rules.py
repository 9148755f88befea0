"""Rule variants attached to schema nodes.

A rule is one of three frozen dataclasses:

* :class:`NamedRule` — resolved from the registry by name; carries its
  validated parameters and the description rendered at lookup time.
* :class:`CustomRule` — an author-supplied description plus a predicate.
* :class:`ConditionalRule` — an inner rule guarded by a predicate over the
  value and its sibling values.

The evaluator switches on the variant; new named rules only extend the
registry table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from valuecheck.errors import AuthoringError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from valuecheck.validation.tree import SourceLocation


@dataclass(frozen=True)
class NamedRule:
    """A built-in (registry) rule with its parameters."""

    name: str
    parameters: Mapping[str, object]
    description: str
    declaration_location: SourceLocation

    @property
    def argument(self) -> object:
        """The single parameter value every built-in rule takes."""
        return next(iter(self.parameters.values()))


@dataclass(frozen=True)
class CustomRule:
    """An author-defined rule: fixed description, arbitrary predicate."""

    description: str
    predicate: Callable[[Any], bool]
    declaration_location: SourceLocation


@dataclass(frozen=True)
class ConditionalRule:
    """Evaluate *rule* only when *guard(value, siblings)* holds."""

    rule: Rule
    guard: Callable[[Any, Mapping[str, Any]], bool]

    @property
    def description(self) -> str:
        return self.rule.description

    @property
    def declaration_location(self) -> SourceLocation:
        return self.rule.declaration_location


Rule = NamedRule | CustomRule | ConditionalRule


def custom(
    description: str, predicate: Callable[[Any], bool], location: SourceLocation
) -> CustomRule:
    """Shorthand for building a :class:`CustomRule`."""
    if not description:
        msg = "custom rule requires a non-empty description"
        raise AuthoringError(msg)
    if not callable(predicate):
        msg = f'custom rule "{description}": predicate must be callable'
        raise AuthoringError(msg)
    return CustomRule(description=description, predicate=predicate, declaration_location=location)


def when(
    rule: Rule, guard: Callable[[Any, Mapping[str, Any]], bool]
) -> ConditionalRule:
    """Wrap *rule* so it only applies when *guard* returns true."""
    if not callable(guard):
        msg = f'conditional rule "{rule.description}": guard must be callable'
        raise AuthoringError(msg)
    return ConditionalRule(rule=rule, guard=guard)


def innermost(rule: Rule) -> NamedRule | CustomRule:
    """Strip any conditional wrappers off *rule*."""
    while isinstance(rule, ConditionalRule):
        rule = rule.rule
    return rule

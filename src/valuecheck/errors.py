"""Exception hierarchy.

Two families matter to callers:

* :class:`AuthoringError`: the schema itself is broken (unknown rule name,
  malformed parameters, a custom predicate that raises).  Fatal for the pass.
* Everything else under :class:`ValueCheckError`: inputs that could not be
  loaded or that break the structural precondition between schema and data.

Failing rules are *not* exceptions; they are collected as violations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from valuecheck.validation.rules import Rule
    from valuecheck.validation.tree import SourceLocation


class ValueCheckError(Exception):
    """Base class for all valuecheck errors."""


# ---------------------------------------------------------------------------
# Authoring defects
# ---------------------------------------------------------------------------


class AuthoringError(ValueCheckError):
    """The schema declares something that cannot be evaluated."""


class UnknownRuleError(AuthoringError):
    """A named rule is not present in the registry."""

    def __init__(self, name: str, location: SourceLocation | None = None) -> None:
        self.name = name
        self.location = location
        msg = f"unknown rule '{name}'"
        if location is not None:
            msg += f" (by {location})"
        super().__init__(msg)


class InvalidParametersError(AuthoringError):
    """A named rule was declared with parameters of the wrong shape or type."""


class AnnotationError(AuthoringError):
    """A ``#@schema/...`` annotation in a schema document is malformed."""


class PredicateError(AuthoringError):
    """A user-supplied predicate raised while being evaluated."""

    def __init__(self, rule: Rule, cause: BaseException) -> None:
        self.rule = rule
        self.cause = cause
        msg = (
            f'rule "{rule.description}" (by {rule.declaration_location}) raised '
            f"{type(cause).__name__}: {cause}"
        )
        super().__init__(msg)


# ---------------------------------------------------------------------------
# Input and precondition errors
# ---------------------------------------------------------------------------


class SchemaMismatchError(ValueCheckError):
    """The data tree does not have the shape the schema tree promises."""


class LoadError(ValueCheckError):
    """A schema or values document could not be loaded."""


class CheckError(ValueCheckError):
    """Raised by :func:`valuecheck.checker.check` on any non-validation failure."""

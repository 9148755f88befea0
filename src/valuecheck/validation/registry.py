"""Rule registry: the catalog of named rules, their parameter shapes and messages.

Each entry knows how to validate its single parameter (at schema-build
time), render the "requires ..." description, and check a value, returning
``None`` on success or a value-specific failure detail.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from valuecheck.errors import InvalidParametersError, UnknownRuleError
from valuecheck.validation.rules import NamedRule, innermost

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from valuecheck.validation.rules import Rule
    from valuecheck.validation.tree import SourceLocation

# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def type_name(value: object) -> str:
    """Name a value's type using data-value vocabulary, not Python's."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "map"
    return type(value).__name__


def format_literal(value: object) -> str:
    """Render a literal for messages: strings quoted, null/booleans lowercase."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, default=str)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _has_length(value: object) -> bool:
    return isinstance(value, (str, list, tuple, Mapping))


def _same_literal(a: object, b: object) -> bool:
    # True == 1 in Python; literals of different types never match here.
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b


# ---------------------------------------------------------------------------
# Rule definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleDefinition:
    """A named rule in the catalog."""

    name: str
    parameter: str  # name of the single parameter, e.g. "n"
    applies_to: str  # human-readable, used by `valuecheck rules`
    coerce: Callable[[str, object], object]  # validate/normalize the argument
    describe: Callable[[object], str]  # argument -> "requires ..." phrase
    check: Callable[[object, object], str | None]  # (value, argument) -> failure detail
    nullity: bool = False  # still evaluated when a nullable node is null


# -- parameter coercion -----------------------------------------------------


def _non_negative_int(name: str, arg: object) -> object:
    if not isinstance(arg, int) or isinstance(arg, bool) or arg < 0:
        msg = f"{name}: expected a non-negative integer, got {type_name(arg)} {format_literal(arg)}"
        raise InvalidParametersError(msg)
    return arg


def _number(name: str, arg: object) -> object:
    if not _is_number(arg):
        msg = f"{name}: expected a number, got {type_name(arg)} {format_literal(arg)}"
        raise InvalidParametersError(msg)
    return arg


def _literal_set(name: str, arg: object) -> object:
    if not isinstance(arg, (list, tuple)):
        msg = f"{name}: expected a list of literals, got {type_name(arg)}"
        raise InvalidParametersError(msg)
    if not arg:
        msg = f"{name}: the set of allowed values must not be empty"
        raise InvalidParametersError(msg)
    members: list[object] = []
    for member in arg:
        if member is not None and not isinstance(member, (str, int, float, bool)):
            msg = f"{name}: set members must be literals, got {type_name(member)}"
            raise InvalidParametersError(msg)
        if not any(_same_literal(member, seen) for seen in members):
            members.append(member)
    return tuple(members)


def _boolean(name: str, arg: object) -> object:
    if not isinstance(arg, bool):
        msg = f"{name}: expected a boolean, got {type_name(arg)} {format_literal(arg)}"
        raise InvalidParametersError(msg)
    return arg


def _key_selection(name: str, arg: object) -> object:
    if arg is True:
        return True
    if isinstance(arg, (list, tuple)) and arg and all(isinstance(k, str) for k in arg):
        return tuple(arg)
    msg = f"{name}: expected true or a non-empty list of keys, got {format_literal(arg)}"
    raise InvalidParametersError(msg)


# -- checks -------------------------------------------------------------------


def _length_error(value: object) -> str:
    return f"expected a string, array or map, got {type_name(value)}"


def _number_error(value: object) -> str:
    return f"expected a number, got {type_name(value)}"


def _check_min_len(value: object, n: Any) -> str | None:
    if not _has_length(value):
        return _length_error(value)
    actual = len(value)  # type: ignore[arg-type]
    if actual < n:
        return f"length of {actual} is less than {n}"
    return None


def _check_max_len(value: object, n: Any) -> str | None:
    if not _has_length(value):
        return _length_error(value)
    actual = len(value)  # type: ignore[arg-type]
    if actual > n:
        return f"length of {actual} is more than {n}"
    return None


def _check_min(value: Any, n: Any) -> str | None:
    if not _is_number(value):
        return _number_error(value)
    if value < n:
        return f"{format_literal(value)} is less than {format_literal(n)}"
    return None


def _check_max(value: Any, n: Any) -> str | None:
    if not _is_number(value):
        return _number_error(value)
    if value > n:
        return f"{format_literal(value)} is more than {format_literal(n)}"
    return None


def _describe_set(members: Any) -> str:
    return ", ".join(format_literal(m) for m in members)


def _check_one_of(value: object, members: Any) -> str | None:
    if any(_same_literal(value, m) for m in members):
        return None
    return f"{format_literal(value)} is not one of: {_describe_set(members)}"


def _check_not_null(value: object, expected: Any) -> str | None:
    if (value is None) == (not expected):
        return None
    return "value is null" if expected else "value is not null"


def _describe_one_not_null(keys: Any) -> str:
    if keys is True:
        return "exactly one child not null"
    return f"exactly one of: {', '.join(keys)} not null"


def _check_one_not_null(value: object, keys: Any) -> str | None:
    if not isinstance(value, Mapping):
        return f"expected a map, got {type_name(value)}"
    selected = list(value) if keys is True else list(keys)
    present = [str(k) for k in selected if value.get(k) is not None]
    if len(present) == 1:
        return None
    if not present:
        return "all values are null"
    return f"multiple values are not null: {', '.join(present)}"


BUILTIN_DEFINITIONS: tuple[RuleDefinition, ...] = (
    RuleDefinition(
        name="min_len",
        parameter="n",
        applies_to="string, array, map",
        coerce=_non_negative_int,
        describe=lambda n: f"length greater or equal to {n}",
        check=_check_min_len,
    ),
    RuleDefinition(
        name="max_len",
        parameter="n",
        applies_to="string, array, map",
        coerce=_non_negative_int,
        describe=lambda n: f"length less than or equal to {n}",
        check=_check_max_len,
    ),
    RuleDefinition(
        name="min",
        parameter="n",
        applies_to="number",
        coerce=_number,
        describe=lambda n: f"a value greater or equal to {format_literal(n)}",
        check=_check_min,
    ),
    RuleDefinition(
        name="max",
        parameter="n",
        applies_to="number",
        coerce=_number,
        describe=lambda n: f"a value less than or equal to {format_literal(n)}",
        check=_check_max,
    ),
    RuleDefinition(
        name="one_of",
        parameter="set",
        applies_to="any",
        coerce=_literal_set,
        describe=lambda members: f"one of: {_describe_set(members)}",
        check=_check_one_of,
    ),
    RuleDefinition(
        name="not_null",
        parameter="expected",
        applies_to="any",
        coerce=_boolean,
        describe=lambda expected: "not null" if expected else "null",
        check=_check_not_null,
        nullity=True,
    ),
    RuleDefinition(
        name="one_not_null",
        parameter="keys",
        applies_to="map",
        coerce=_key_selection,
        describe=_describe_one_not_null,
        check=_check_one_not_null,
    ),
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class RuleRegistry:
    """Immutable name -> :class:`RuleDefinition` table.

    Build it once and pass it to validators explicitly; it holds no
    per-pass state, so one instance can serve concurrent passes.
    """

    def __init__(self, definitions: Iterable[RuleDefinition] = ()) -> None:
        table: dict[str, RuleDefinition] = {}
        for definition in definitions:
            if definition.name in table:
                msg = f"duplicate rule definition '{definition.name}'"
                raise ValueError(msg)
            table[definition.name] = definition
        self._definitions: Mapping[str, RuleDefinition] = MappingProxyType(table)

    @classmethod
    def with_builtins(cls) -> RuleRegistry:
        return cls(BUILTIN_DEFINITIONS)

    def extended(self, *definitions: RuleDefinition) -> RuleRegistry:
        """Return a new registry with *definitions* added."""
        return RuleRegistry((*self._definitions.values(), *definitions))

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[RuleDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, name: str, location: SourceLocation | None = None) -> RuleDefinition:
        definition = self._definitions.get(name)
        if definition is None:
            raise UnknownRuleError(name, location)
        return definition

    def lookup(
        self, name: str, parameters: Mapping[str, object], location: SourceLocation
    ) -> NamedRule:
        """Resolve a named rule declaration into a :class:`NamedRule`.

        *parameters* holds exactly one entry keyed by the definition's
        parameter name (``{"n": 1}``) or by the rule name itself
        (``{"min_len": 1}``, as written in annotations).

        Raises
        ------
        UnknownRuleError
            *name* is not in the catalog.
        InvalidParametersError
            The parameter is missing, extra, or of the wrong type.
        """
        definition = self.get(name, location)
        if len(parameters) != 1:
            msg = (
                f"{name}: expected exactly one parameter '{definition.parameter}', "
                f"got {sorted(parameters)} (by {location})"
            )
            raise InvalidParametersError(msg)
        key, raw = next(iter(parameters.items()))
        if key not in (definition.parameter, name):
            msg = f"{name}: unknown parameter '{key}', expected '{definition.parameter}' (by {location})"
            raise InvalidParametersError(msg)
        try:
            argument = definition.coerce(name, raw)
        except InvalidParametersError as exc:
            msg = f"{exc} (by {location})"
            raise InvalidParametersError(msg) from exc
        return NamedRule(
            name=name,
            parameters=MappingProxyType({definition.parameter: argument}),
            description=definition.describe(argument),
            declaration_location=location,
        )

    def rules_from_kwargs(
        self, declarations: Mapping[str, object], location: SourceLocation
    ) -> tuple[NamedRule, ...]:
        """Resolve ``min_len=1, max_len=63``-style declarations, keeping their order."""
        return tuple(
            self.lookup(name, {name: value}, location) for name, value in declarations.items()
        )

    def is_nullity_rule(self, rule: Rule) -> bool:
        """True for rules that still apply when a nullable node holds null."""
        inner = innermost(rule)
        if not isinstance(inner, NamedRule):
            return False
        definition = self._definitions.get(inner.name)
        return definition is not None and definition.nullity


DEFAULT_REGISTRY = RuleRegistry.with_builtins()

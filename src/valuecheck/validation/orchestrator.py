"""Validation orchestrator: walk the schema tree against the data tree, collect violations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from valuecheck.errors import SchemaMismatchError
from valuecheck.validation.evaluator import Fail, evaluate
from valuecheck.validation.registry import DEFAULT_REGISTRY
from valuecheck.validation.tree import KIND_ARRAY, KIND_MAP, format_path

if TYPE_CHECKING:
    from collections.abc import Iterator

    from valuecheck.validation.registry import RuleRegistry
    from valuecheck.validation.rules import Rule
    from valuecheck.validation.tree import DataValueNode, Path, SchemaNode, SourceLocation

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """One rule failing against one resolved value."""

    path: Path
    violation_location: SourceLocation  # where the offending value came from
    declaration_location: SourceLocation  # where the rule was declared
    rule_description: str
    failure_detail: str

    @property
    def path_str(self) -> str:
        return format_path(self.path)


@dataclass(frozen=True)
class Report:
    """All violations from one validation pass, in schema pre-order.

    An empty report means every value is valid.
    """

    violations: tuple[Violation, ...] = ()
    nodes_visited: int = 0
    rules_evaluated: int = 0

    @property
    def ok(self) -> bool:
        return not self.violations

    def __len__(self) -> int:
        return len(self.violations)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)


@dataclass
class _Pass:
    """Mutable accumulator for a single traversal."""

    violations: list[Violation] = field(default_factory=list)
    nodes_visited: int = 0
    rules_evaluated: int = 0


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class Validator:
    """Validates data trees against schema trees using one rule registry."""

    def __init__(self, registry: RuleRegistry = DEFAULT_REGISTRY) -> None:
        self.registry = registry

    def validate(self, schema: SchemaNode, data: DataValueNode) -> Report:
        """Run one full pass and return every violation found.

        Never stops at the first violation.  Authoring defects
        (:class:`~valuecheck.errors.AuthoringError`) abort the pass.

        Raises
        ------
        SchemaMismatchError
            A schema position has no corresponding data value.
        PredicateError
            A custom predicate or conditional guard raised.
        """
        state = _Pass()
        self._visit(schema, data, None, state)
        logger.debug(
            "Validated %d nodes, %d rules evaluated, %d violations",
            state.nodes_visited,
            state.rules_evaluated,
            len(state.violations),
        )
        return Report(
            violations=tuple(state.violations),
            nodes_visited=state.nodes_visited,
            rules_evaluated=state.rules_evaluated,
        )

    def _visit(
        self,
        node: SchemaNode,
        data: DataValueNode,
        siblings: Mapping[str, object] | None,
        state: _Pass,
    ) -> None:
        state.nodes_visited += 1

        if data.value is None and node.nullable:
            # Absent optional value: only nullity rules apply, nothing below to visit.
            null_rules = [r for r in node.rules if self.registry.is_nullity_rule(r)]
            self._apply(null_rules, data, siblings, state)
            return

        self._apply(node.rules, data, siblings, state)

        if node.kind == KIND_MAP:
            value = data.value if isinstance(data.value, Mapping) else {}
            for key, child in node.children.items():
                child_data = data.find((*data.path, key))
                if child_data is None:
                    msg = f"no data value for schema path '{format_path(child.path)}'"
                    raise SchemaMismatchError(msg)
                self._visit(child, child_data, value, state)
        elif node.kind == KIND_ARRAY and node.item is not None:
            if any(n.rules for n in node.item.walk()):
                for item_data in data.items:
                    self._visit(node.item, item_data, None, state)

    def _apply(
        self,
        rules: tuple[Rule, ...] | list[Rule],
        data: DataValueNode,
        siblings: Mapping[str, object] | None,
        state: _Pass,
    ) -> None:
        for rule in rules:
            state.rules_evaluated += 1
            outcome = evaluate(rule, data.value, registry=self.registry, siblings=siblings)
            if isinstance(outcome, Fail):
                state.violations.append(
                    Violation(
                        path=data.path,
                        violation_location=data.source_location,
                        declaration_location=rule.declaration_location,
                        rule_description=rule.description,
                        failure_detail=outcome.detail,
                    )
                )


def validate(
    schema: SchemaNode, data: DataValueNode, *, registry: RuleRegistry = DEFAULT_REGISTRY
) -> Report:
    """Validate *data* against *schema*; see :meth:`Validator.validate`."""
    return Validator(registry).validate(schema, data)

"""Validation engine — rule registry, evaluator, orchestrator, reporter."""

from valuecheck.validation.evaluator import Fail, Outcome, Pass, evaluate
from valuecheck.validation.orchestrator import Report, Validator, Violation, validate
from valuecheck.validation.registry import (
    BUILTIN_DEFINITIONS,
    DEFAULT_REGISTRY,
    RuleDefinition,
    RuleRegistry,
)
from valuecheck.validation.reporter import (
    format_json,
    format_porcelain,
    render,
    render_violation,
    report_to_dict,
)
from valuecheck.validation.rules import (
    ConditionalRule,
    CustomRule,
    NamedRule,
    Rule,
    custom,
    when,
)
from valuecheck.validation.tree import (
    ANY_ITEM,
    DataValueNode,
    SchemaNode,
    SourceLocation,
    format_path,
)

__all__ = [
    "ANY_ITEM",
    "BUILTIN_DEFINITIONS",
    "DEFAULT_REGISTRY",
    "ConditionalRule",
    "CustomRule",
    "DataValueNode",
    "Fail",
    "NamedRule",
    "Outcome",
    "Pass",
    "Report",
    "Rule",
    "RuleDefinition",
    "RuleRegistry",
    "SchemaNode",
    "SourceLocation",
    "Validator",
    "Violation",
    "custom",
    "evaluate",
    "format_json",
    "format_path",
    "format_porcelain",
    "render",
    "render_violation",
    "report_to_dict",
    "validate",
    "when",
]

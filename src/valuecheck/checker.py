"""Check orchestrator: load schema and values, validate, and format results."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from valuecheck.config import load_config
from valuecheck.errors import CheckError, LoadError, SchemaMismatchError, ValueCheckError
from valuecheck.loader import load_schema, load_values
from valuecheck.validation.orchestrator import Report, Validator
from valuecheck.validation.registry import DEFAULT_REGISTRY
from valuecheck.validation.reporter import format_json as _report_json
from valuecheck.validation.reporter import format_porcelain as _report_porcelain
from valuecheck.validation.reporter import render

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from valuecheck.config import CheckConfig
    from valuecheck.validation.registry import RuleRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class CheckResult:
    """Result of a check run."""

    report: Report = field(default_factory=Report)
    schema_file: str = ""
    values_files: tuple[str, ...] = ()
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.report.ok


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def check(
    project_root: Path,
    *,
    schema_path: Path | None = None,
    values_paths: Sequence[Path] | None = None,
    registry: RuleRegistry = DEFAULT_REGISTRY,
    config: CheckConfig | None = None,
) -> CheckResult:
    """Load the schema and values for a project and validate them.

    Parameters
    ----------
    project_root:
        Directory holding ``valuecheck.yml`` (optional); relative paths
        from the config are resolved against it.
    schema_path:
        Explicit schema document; overrides the config's ``schema``.
    values_paths:
        Explicit values documents, applied in order; override the
        config's ``values`` when given.
    registry:
        Rule catalog used both to resolve annotations and to evaluate.
    config:
        Settings already loaded by the caller; read from *project_root*
        when omitted.

    Raises
    ------
    CheckError
        Wraps load failures, authoring defects, and structural mismatches.
    """
    start = time.monotonic()
    if config is None:
        config = load_config(project_root)

    if schema_path is None:
        schema_path = project_root / config.schema
    if values_paths is None:
        values_paths = [project_root / v for v in config.values]

    if not schema_path.is_file():
        msg = f"schema file not found: {schema_path}"
        raise CheckError(msg)

    try:
        document = load_schema(schema_path, registry=registry)
        data = load_values(document, values_paths)
        report = Validator(registry).validate(document.root, data)
    except (LoadError, SchemaMismatchError) as exc:
        msg = f"Invalid input: {exc}"
        raise CheckError(msg) from exc
    except ValueCheckError as exc:
        msg = f"Invalid schema: {exc}"
        raise CheckError(msg) from exc

    elapsed = (time.monotonic() - start) * 1000
    logger.info(
        "Checked %s against %d values file(s): %d violation(s)",
        schema_path,
        len(values_paths),
        len(report),
    )
    return CheckResult(
        report=report,
        schema_file=str(schema_path),
        values_files=tuple(str(p) for p in values_paths),
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(result: CheckResult) -> str:
    """Format a CheckResult as human-readable text.

    Example output with violations::

        One or more data values were invalid:
        "port" (values.yml:1) requires "a value greater or equal to 1024"; fail: 0 is less than 1024 (by schema.yml:1)

        1 violation found (3 rules evaluated, 0.0s)

    Example output without violations::

        ✓ All data values are valid (3 rules evaluated, 0.0s)
    """  # noqa: E501
    report = result.report
    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"

    if report.ok:
        return f"✓ All data values are valid ({report.rules_evaluated} rules evaluated, {elapsed_str})"

    count = len(report)
    noun = "violation" if count == 1 else "violations"
    return (
        f"{render(report)}\n\n"
        f"{count} {noun} found ({report.rules_evaluated} rules evaluated, {elapsed_str})"
    )


def format_json(result: CheckResult) -> str:
    return _report_json(result.report)


def format_porcelain(result: CheckResult) -> str:
    return _report_porcelain(result.report)

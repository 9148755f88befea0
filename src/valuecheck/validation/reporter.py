"""Reporter: render a :class:`Report` as text, JSON, or porcelain lines.

Pure formatting; order is whatever the orchestrator produced.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from valuecheck.validation.orchestrator import Report, Violation

HEADER = "One or more data values were invalid:"


def render_violation(v: Violation) -> str:
    """One report line::

        "port" (values.yml:3) requires "a value greater or equal to 1024"; fail: 0 is less than 1024 (by schema.yml:2)
    """  # noqa: E501
    return (
        f'"{v.path_str}" ({v.violation_location}) requires "{v.rule_description}"; '
        f"fail: {v.failure_detail} (by {v.declaration_location})"
    )


def render(report: Report) -> str:
    """Render *report* as the human-readable error text.

    Returns an empty string for an empty report (all values valid).
    """
    if report.ok:
        return ""
    lines = [HEADER]
    lines.extend(render_violation(v) for v in report.violations)
    return "\n".join(lines)


def report_to_dict(report: Report) -> dict[str, object]:
    """Structured form of *report* for machine consumers."""
    violations: list[dict[str, object]] = [
        {
            "path": v.path_str,
            "segments": list(v.path),
            "violation_location": str(v.violation_location),
            "declaration_location": str(v.declaration_location),
            "rule_description": v.rule_description,
            "failure_detail": v.failure_detail,
        }
        for v in report.violations
    ]
    return {
        "violations": violations,
        "summary": {
            "valid": report.ok,
            "violations_count": len(report.violations),
            "nodes_visited": report.nodes_visited,
            "rules_evaluated": report.rules_evaluated,
        },
    }


def format_json(report: Report) -> str:
    return json.dumps(report_to_dict(report), indent=2)


def format_porcelain(report: Report) -> str:
    """One tab-separated line per violation.

    Format: ``path<TAB>violation_location<TAB>declaration_location<TAB>description<TAB>detail``

    Returns an empty string when there are no violations.
    """
    return "\n".join(
        "\t".join(
            (
                v.path_str,
                str(v.violation_location),
                str(v.declaration_location),
                v.rule_description,
                v.failure_detail,
            )
        )
        for v in report.violations
    )

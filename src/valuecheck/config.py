"""Project configuration: ``valuecheck.yml`` in the project root."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "valuecheck.yml"
VALID_FORMATS: frozenset[str] = frozenset({"rich", "json", "porcelain"})


@dataclass(frozen=True)
class CheckConfig:
    """Settings for ``valuecheck check``; CLI flags take precedence."""

    schema: str = "schema.yml"
    values: tuple[str, ...] = ()
    output_format: str | None = None  # None -> detect from TTY
    strict: bool = True


def load_config(project_root: Path) -> CheckConfig:
    """Load ``valuecheck.yml`` from *project_root*.

    Falls back to defaults for a missing file, unreadable YAML, or
    individual keys with the wrong type.
    """
    config_path = project_root / CONFIG_FILENAME
    if not config_path.is_file():
        return CheckConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", CONFIG_FILENAME)
        return CheckConfig()

    if not isinstance(data, dict):
        return CheckConfig()

    defaults = CheckConfig()

    schema = data.get("schema", defaults.schema)
    if not isinstance(schema, str) or not schema.strip():
        logger.warning("Ignoring invalid 'schema' in %s", CONFIG_FILENAME)
        schema = defaults.schema

    values_raw = data.get("values", [])
    if isinstance(values_raw, str):
        values_raw = [values_raw]
    if not isinstance(values_raw, list):
        logger.warning("Ignoring invalid 'values' in %s", CONFIG_FILENAME)
        values_raw = []
    values = tuple(str(v) for v in values_raw)

    output_format = data.get("format")
    if output_format is not None and output_format not in VALID_FORMATS:
        logger.warning(
            "Ignoring unknown format '%s' in %s, expected one of %s",
            output_format,
            CONFIG_FILENAME,
            sorted(VALID_FORMATS),
        )
        output_format = None

    strict = data.get("strict", defaults.strict)
    if not isinstance(strict, bool):
        logger.warning("Ignoring invalid 'strict' in %s", CONFIG_FILENAME)
        strict = defaults.strict

    return CheckConfig(
        schema=schema,
        values=values,
        output_format=output_format,
        strict=strict,
    )

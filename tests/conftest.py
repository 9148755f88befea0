"""Shared test fixtures for valuecheck."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from valuecheck.validation.registry import RuleRegistry

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def registry() -> RuleRegistry:
    """A fresh registry with the built-in catalog."""
    return RuleRegistry.with_builtins()


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a project with the namespace/username schema and no config."""
    (tmp_path / "schema.yml").write_text(
        "#@schema/validation min_len=1, max_len=63\n"
        'namespace: ""\n'
        "#@schema/validation min_len=1\n"
        'username: ""\n'
    )
    return tmp_path

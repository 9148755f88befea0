"""Tests for valuecheck.validation.tree — locations, paths, schema and data nodes."""

from __future__ import annotations

import pytest

from valuecheck.validation.tree import (
    ANY_ITEM,
    KIND_ARRAY,
    KIND_MAP,
    DataValueNode,
    SchemaNode,
    SourceLocation,
    format_path,
)

LOC = SourceLocation("values.yml", 3)


class TestSourceLocation:
    def test_with_line(self) -> None:
        assert str(SourceLocation("schema.yml", 12)) == "schema.yml:12"

    def test_without_line(self) -> None:
        assert str(SourceLocation("schema.yml")) == "schema.yml"


class TestFormatPath:
    """Tests for format_path()."""

    def test_single_key(self) -> None:
        assert format_path(("port",)) == "port"

    def test_nested_keys_are_dotted(self) -> None:
        assert format_path(("db", "host")) == "db.host"

    def test_indices_are_bracketed(self) -> None:
        assert format_path(("db", "replicas", 0, "host")) == "db.replicas[0].host"

    def test_item_template_placeholder(self) -> None:
        assert format_path(("servers", ANY_ITEM, "port")) == "servers[*].port"

    def test_root_is_empty(self) -> None:
        assert format_path(()) == ""


class TestSchemaNode:
    """Tests for SchemaNode construction checks and traversal."""

    def test_invalid_kind_rejected(self) -> None:
        with pytest.raises(ValueError, match="invalid node kind"):
            SchemaNode(path=("x",), kind="tuple")

    def test_children_only_on_maps(self) -> None:
        with pytest.raises(ValueError, match="only map nodes"):
            SchemaNode(path=(), children={"a": SchemaNode(path=("a",))})

    def test_item_only_on_arrays(self) -> None:
        with pytest.raises(ValueError, match="item template"):
            SchemaNode(path=("xs",), kind=KIND_MAP, item=SchemaNode(path=("xs", ANY_ITEM)))

    def test_walk_is_pre_order_in_declaration_order(self) -> None:
        root = SchemaNode(
            path=(),
            kind=KIND_MAP,
            children={
                "b": SchemaNode(
                    path=("b",),
                    kind=KIND_MAP,
                    children={"z": SchemaNode(path=("b", "z"))},
                ),
                "a": SchemaNode(
                    path=("a",),
                    kind=KIND_ARRAY,
                    item=SchemaNode(path=("a", ANY_ITEM)),
                ),
            },
        )
        assert [n.path for n in root.walk()] == [(), ("b",), ("b", "z"), ("a",), ("a", ANY_ITEM)]


class TestDataValueNode:
    """Tests for DataValueNode builders and lookup."""

    def test_mapping_value_is_plain_dict(self) -> None:
        node = DataValueNode.mapping(
            (),
            {"port": DataValueNode.scalar(("port",), 8080, LOC)},
            SourceLocation("values.yml"),
        )
        assert node.value == {"port": 8080}

    def test_sequence_value_is_plain_list(self) -> None:
        items = (
            DataValueNode.scalar(("xs", 0), "a", LOC),
            DataValueNode.scalar(("xs", 1), "b", LOC),
        )
        node = DataValueNode.sequence(("xs",), items, LOC)
        assert node.value == ["a", "b"]

    def test_find_nested(self) -> None:
        host = DataValueNode.scalar(("db", "replicas", 0, "host"), "h0", LOC)
        replica = DataValueNode.mapping(("db", "replicas", 0), {"host": host}, LOC)
        replicas = DataValueNode.sequence(("db", "replicas"), (replica,), LOC)
        db = DataValueNode.mapping(("db",), {"replicas": replicas}, LOC)
        root = DataValueNode.mapping((), {"db": db}, LOC)

        assert root.find(("db", "replicas", 0, "host")) is host
        assert root.find(()) is root

    def test_find_missing_returns_none(self) -> None:
        root = DataValueNode.mapping((), {}, LOC)
        assert root.find(("nope",)) is None
        assert root.find((0,)) is None

"""YAML loaders: schema documents with ``#@schema/...`` annotations, and values overlays.

A schema document is plain YAML whose values are the defaults.  Rules and
nullability are declared in comment lines directly above a key::

    #@schema/validation min_len=1, max_len=63
    namespace: ""
    #@schema/nullable
    proxy:
      host: ""

Values documents are overlaid on the defaults in order; every resulting
:class:`DataValueNode` remembers the file and line that last supplied it.
"""

from __future__ import annotations

import ast
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml
from yaml.constructor import SafeConstructor

from valuecheck.errors import AnnotationError, InvalidParametersError, LoadError
from valuecheck.validation.registry import DEFAULT_REGISTRY
from valuecheck.validation.rules import NamedRule, innermost
from valuecheck.validation.tree import (
    ANY_ITEM,
    KIND_ARRAY,
    KIND_MAP,
    KIND_SCALAR,
    DataValueNode,
    SchemaNode,
    SourceLocation,
    format_path,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path as FilePath

    from valuecheck.validation.registry import RuleRegistry
    from valuecheck.validation.rules import Rule
    from valuecheck.validation.tree import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ANNOTATION_PREFIX = "#@schema/"
VALIDATION_ANNOTATION = "validation"
NULLABLE_ANNOTATION = "nullable"

_ANNOTATION_RE = re.compile(r"^#@schema/(?P<name>[A-Za-z_][\w-]*)\s*(?P<args>.*)$")
_NULL_TAG = "tag:yaml.org,2002:null"
_KEY_SELECTION_RULE = "one_not_null"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaDocument:
    """A parsed schema: the node tree plus the data tree of its defaults."""

    file: str
    root: SchemaNode
    defaults: DataValueNode

    @property
    def rule_count(self) -> int:
        return sum(len(node.rules) for node in self.root.walk())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read(path: FilePath) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"cannot read {path}: {exc}"
        raise LoadError(msg) from exc


def _compose(text: str, file: str) -> yaml.Node | None:
    try:
        return yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as exc:
        msg = f"{file}: invalid YAML: {exc}"
        raise LoadError(msg) from exc


def _describe_node(node: yaml.Node) -> str:
    if isinstance(node, yaml.MappingNode):
        return "map"
    if isinstance(node, yaml.SequenceNode):
        return "array"
    if node.tag == _NULL_TAG:
        return "null"
    return "scalar"


def _line_of(node: yaml.Node) -> int:
    """0-based line where *node* starts."""
    return int(node.start_mark.line)


def _construct(node: yaml.Node) -> object:
    return SafeConstructor().construct_object(node, deep=True)


def _parse_rule_arguments(args: str, location: SourceLocation) -> dict[str, object]:
    """Parse ``min_len=1, one_of=["a", "b"]`` into an ordered dict of literals."""
    try:
        tree = ast.parse(f"f({args})", mode="eval")
    except SyntaxError as exc:
        msg = f"{location}: cannot parse validation arguments: {args!r}"
        raise AnnotationError(msg) from exc

    call = tree.body
    if not isinstance(call, ast.Call):
        msg = f"{location}: cannot parse validation arguments: {args!r}"
        raise AnnotationError(msg)
    if call.args:
        msg = (
            f"{location}: positional validation arguments are not supported in schema "
            f"files; declare custom rules through the Python API"
        )
        raise AnnotationError(msg)

    declarations: dict[str, object] = {}
    for keyword in call.keywords:
        if keyword.arg is None:
            msg = f"{location}: '**' arguments are not supported in validation annotations"
            raise AnnotationError(msg)
        if keyword.arg in declarations:
            msg = f"{location}: rule '{keyword.arg}' declared twice"
            raise AnnotationError(msg)
        try:
            declarations[keyword.arg] = ast.literal_eval(keyword.value)
        except (ValueError, TypeError, SyntaxError) as exc:
            msg = f"{location}: {keyword.arg}: parameter must be a literal"
            raise AnnotationError(msg) from exc

    if not declarations:
        msg = f"{location}: validation annotation declares no rules"
        raise AnnotationError(msg)
    return declarations


def _check_key_selections(
    rules: tuple[Rule, ...], path: Path, children: dict[str, SchemaNode] | None
) -> None:
    """Reject 'one_not_null' off a map node, or naming keys the map does not have."""
    for rule in rules:
        named = innermost(rule)
        if not isinstance(named, NamedRule) or named.name != _KEY_SELECTION_RULE:
            continue
        where = named.declaration_location
        if children is None:
            msg = f"{where}: '{named.name}' only applies to map nodes, not '{format_path(path)}'"
            raise InvalidParametersError(msg)
        keys = named.argument
        if not isinstance(keys, tuple):
            continue
        unknown = [key for key in keys if key not in children]
        if unknown:
            msg = (
                f"{where}: '{named.name}' names keys not in map '{format_path(path)}': "
                f"{', '.join(unknown)}"
            )
            raise InvalidParametersError(msg)


# ---------------------------------------------------------------------------
# Schema parsing
# ---------------------------------------------------------------------------


class _SchemaBuilder:
    """Turns a composed YAML tree into :class:`SchemaNode` objects."""

    def __init__(self, text: str, file: str, registry: RuleRegistry) -> None:
        self._lines = text.splitlines()
        self._file = file
        self._registry = registry
        # An array item and the first key of a map item share a line;
        # annotations above that line belong to the item only.
        self._consumed: set[int] = set()

    def _location(self, line: int | None) -> SourceLocation:
        return SourceLocation(self._file, None if line is None else line + 1)

    def _annotations_above(self, line: int) -> list[tuple[int, str]]:
        if line in self._consumed:
            return []
        self._consumed.add(line)
        found: list[tuple[int, str]] = []
        idx = line - 1
        while idx >= 0:
            stripped = self._lines[idx].strip()
            if not stripped.startswith("#"):
                break
            if stripped.startswith(ANNOTATION_PREFIX):
                found.append((idx, stripped))
            idx -= 1
        found.reverse()
        return found

    def _declarations(self, line: int | None) -> tuple[tuple[Rule, ...], bool]:
        if line is None:
            return (), False
        rules: list[Rule] = []
        nullable = False
        for ann_line, text in self._annotations_above(line):
            location = self._location(ann_line)
            match = _ANNOTATION_RE.match(text)
            if match is None:
                msg = f"{location}: malformed annotation {text!r}"
                raise AnnotationError(msg)
            name = match.group("name")
            args = match.group("args").strip()
            if name == VALIDATION_ANNOTATION:
                declarations = _parse_rule_arguments(args, location)
                rules.extend(self._registry.rules_from_kwargs(declarations, location))
            elif name == NULLABLE_ANNOTATION:
                if args:
                    msg = f"{location}: @schema/nullable takes no arguments"
                    raise AnnotationError(msg)
                nullable = True
            else:
                msg = f"{location}: unknown annotation '@schema/{name}'"
                raise AnnotationError(msg)
        return tuple(rules), nullable

    def build(self, node: yaml.Node, path: Path, line: int | None) -> SchemaNode:
        rules, nullable = self._declarations(line)
        location = self._location(line)

        if isinstance(node, yaml.MappingNode):
            children: dict[str, SchemaNode] = {}
            for key_node, value_node in node.value:
                if not isinstance(key_node, yaml.ScalarNode):
                    msg = f"{self._location(_line_of(key_node))}: map keys must be scalars"
                    raise LoadError(msg)
                key = str(key_node.value)
                if key in children:
                    msg = f"{self._location(_line_of(key_node))}: duplicate key '{key}'"
                    raise LoadError(msg)
                children[key] = self.build(value_node, (*path, key), _line_of(key_node))
            _check_key_selections(rules, path, children)
            return SchemaNode(
                path=path,
                kind=KIND_MAP,
                rules=rules,
                nullable=nullable,
                children=children,
                location=location,
            )

        if isinstance(node, yaml.SequenceNode):
            if len(node.value) != 1:
                msg = (
                    f"{location}: array '{format_path(path)}' must contain exactly one item "
                    f"(the element template), got {len(node.value)}"
                )
                raise LoadError(msg)
            item_node = node.value[0]
            item = self.build(item_node, (*path, ANY_ITEM), _line_of(item_node))
            _check_key_selections(rules, path, None)
            return SchemaNode(
                path=path,
                kind=KIND_ARRAY,
                rules=rules,
                nullable=nullable,
                item=item,
                default=[],
                location=location,
            )

        _check_key_selections(rules, path, None)
        return SchemaNode(
            path=path,
            kind=KIND_SCALAR,
            rules=rules,
            nullable=nullable,
            default=_construct(node),
            location=location,
        )


def parse_schema(
    text: str, file: str, *, registry: RuleRegistry = DEFAULT_REGISTRY
) -> SchemaDocument:
    """Parse schema *text*; *file* labels locations in messages and reports.

    Raises
    ------
    LoadError
        Invalid YAML, a non-map document, or a malformed array template.
    AuthoringError
        A malformed annotation, unknown rule, or invalid rule parameters.
    """
    node = _compose(text, file)
    if node is None:
        root = SchemaNode(path=(), kind=KIND_MAP, location=SourceLocation(file))
    elif not isinstance(node, yaml.MappingNode):
        msg = f"{file}: schema document must be a map, got {_describe_node(node)}"
        raise LoadError(msg)
    else:
        root = _SchemaBuilder(text, file, registry).build(node, (), None)

    document = SchemaDocument(file=file, root=root, defaults=default_value(root))
    logger.debug("Loaded schema %s with %d rules", file, document.rule_count)
    return document


def load_schema(
    schema_path: FilePath, *, registry: RuleRegistry = DEFAULT_REGISTRY
) -> SchemaDocument:
    """Read and parse a schema document from disk."""
    return parse_schema(_read(schema_path), str(schema_path), registry=registry)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def default_value(node: SchemaNode, path: Path | None = None) -> DataValueNode:
    """Build the data tree of *node*'s defaults (null for nullable nodes).

    *path* overrides the node's own path, for concrete array elements.
    """
    path = node.path if path is None else path
    if node.nullable:
        return DataValueNode.scalar(path, None, node.location or SourceLocation("<schema>"))
    return _declared_default(node, path)


def _declared_default(node: SchemaNode, path: Path) -> DataValueNode:
    location = node.location or SourceLocation("<schema>")
    if node.kind == KIND_MAP:
        children = {key: default_value(child, (*path, key)) for key, child in node.children.items()}
        return DataValueNode.mapping(path, children, location)
    if node.kind == KIND_ARRAY:
        return DataValueNode.sequence(path, (), location)
    return DataValueNode.scalar(path, node.default, location)


# ---------------------------------------------------------------------------
# Values overlays
# ---------------------------------------------------------------------------


def _overlay(
    schema: SchemaNode, base: DataValueNode, node: yaml.Node, location: SourceLocation
) -> DataValueNode:
    path = base.path
    file = location.file

    if isinstance(node, yaml.ScalarNode) and node.tag == _NULL_TAG:
        if schema.nullable or schema.kind == KIND_SCALAR:
            return DataValueNode.scalar(path, None, location)
        msg = f"{location}: '{format_path(path)}' is not nullable"
        raise LoadError(msg)

    if schema.kind == KIND_MAP:
        if not isinstance(node, yaml.MappingNode):
            msg = f"{location}: expected a map for '{format_path(path)}', got {_describe_node(node)}"
            raise LoadError(msg)
        current = base if base.value is not None else _declared_default(schema, path)
        children = dict(current.children)
        for key_node, value_node in node.value:
            key = str(key_node.value)
            key_location = SourceLocation(file, _line_of(key_node) + 1)
            child_schema = schema.children.get(key)
            if child_schema is None:
                msg = f"{key_location}: '{format_path((*path, key))}' is not declared in schema"
                raise LoadError(msg)
            children[key] = _overlay(child_schema, children[key], value_node, key_location)
        return DataValueNode.mapping(path, children, location)

    if schema.kind == KIND_ARRAY:
        if not isinstance(node, yaml.SequenceNode):
            msg = (
                f"{location}: expected an array for '{format_path(path)}', "
                f"got {_describe_node(node)}"
            )
            raise LoadError(msg)
        if schema.item is None:
            msg = f"{location}: array '{format_path(path)}' has no element template"
            raise LoadError(msg)
        items: list[DataValueNode] = []
        for idx, item_node in enumerate(node.value):
            item_path = (*path, idx)
            item_location = SourceLocation(file, _line_of(item_node) + 1)
            base_item = default_value(schema.item, item_path)
            items.append(_overlay(schema.item, base_item, item_node, item_location))
        return DataValueNode.sequence(path, tuple(items), location)

    if not isinstance(node, yaml.ScalarNode):
        msg = f"{location}: expected a scalar for '{format_path(path)}', got {_describe_node(node)}"
        raise LoadError(msg)
    return DataValueNode.scalar(path, _construct(node), location)


def overlay_values(
    schema: SchemaNode, base: DataValueNode, text: str, file: str
) -> DataValueNode:
    """Overlay one values document (*text*) onto *base*.

    Raises
    ------
    LoadError
        Invalid YAML, a key missing from the schema, or a shape mismatch.
    """
    node = _compose(text, file)
    if node is None:
        return base
    return _overlay(schema, base, node, SourceLocation(file))


def load_values(
    document: SchemaDocument, values_paths: Sequence[FilePath] = ()
) -> DataValueNode:
    """Merge *values_paths* (in order) onto the schema's defaults."""
    data = document.defaults
    for values_path in values_paths:
        data = overlay_values(document.root, data, _read(values_path), str(values_path))
        logger.debug("Applied values from %s", values_path)
    return data

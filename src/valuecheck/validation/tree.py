"""Schema and data value trees: the two structures a validation pass walks in parallel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from valuecheck.validation.rules import Rule

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

KIND_MAP = "map"
KIND_ARRAY = "array"
KIND_SCALAR = "scalar"
VALID_NODE_KINDS: frozenset[str] = frozenset({KIND_MAP, KIND_ARRAY, KIND_SCALAR})

# Path segment standing in for "any element" in array templates.
ANY_ITEM = "[*]"

PathSegment = str | int
Path = tuple[PathSegment, ...]


# ---------------------------------------------------------------------------
# Locations and paths
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceLocation:
    """A position in a source document: file name plus 1-based line."""

    file: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"


def format_path(path: Path) -> str:
    """Render a path the way it appears in reports.

    Map keys are joined with dots, array indices are bracketed::

        ("db", "replicas", 0, "host")  ->  "db.replicas[0].host"
    """
    out = ""
    for segment in path:
        if isinstance(segment, int):
            out += f"[{segment}]"
        elif segment == ANY_ITEM:
            out += ANY_ITEM
        elif out:
            out += f".{segment}"
        else:
            out = segment
    return out


# ---------------------------------------------------------------------------
# Schema tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaNode:
    """One addressable position in the declared configuration shape.

    ``children`` is used by map nodes (insertion order is traversal order);
    ``item`` is the element template of array nodes.  ``default`` and
    ``location`` are filled in by loaders that derive defaults from the
    schema document and are not consulted during validation.
    """

    path: Path
    kind: str = KIND_SCALAR
    rules: tuple[Rule, ...] = ()
    nullable: bool = False
    children: dict[str, SchemaNode] = field(default_factory=dict)
    item: SchemaNode | None = None
    default: object = None
    location: SourceLocation | None = None

    def __post_init__(self) -> None:
        if self.kind not in VALID_NODE_KINDS:
            msg = f"invalid node kind '{self.kind}', must be one of {sorted(VALID_NODE_KINDS)}"
            raise ValueError(msg)
        if self.children and self.kind != KIND_MAP:
            msg = f"node '{format_path(self.path)}': only map nodes may have children"
            raise ValueError(msg)
        if self.item is not None and self.kind != KIND_ARRAY:
            msg = f"node '{format_path(self.path)}': only array nodes may have an item template"
            raise ValueError(msg)

    def walk(self) -> Iterator[SchemaNode]:
        """Yield this node and its descendants in pre-order."""
        yield self
        for child in self.children.values():
            yield from child.walk()
        if self.item is not None:
            yield from self.item.walk()


# ---------------------------------------------------------------------------
# Data value tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DataValueNode:
    """One resolved value in the merged tree, with the location that supplied it."""

    path: Path
    value: object
    source_location: SourceLocation
    children: dict[str, DataValueNode] = field(default_factory=dict)
    items: tuple[DataValueNode, ...] = ()

    @classmethod
    def scalar(cls, path: Path, value: object, location: SourceLocation) -> DataValueNode:
        return cls(path=path, value=value, source_location=location)

    @classmethod
    def mapping(
        cls, path: Path, children: dict[str, DataValueNode], location: SourceLocation
    ) -> DataValueNode:
        """Build a map node; its ``value`` is the plain dict of the children's values."""
        value = {key: child.value for key, child in children.items()}
        return cls(path=path, value=value, source_location=location, children=children)

    @classmethod
    def sequence(
        cls, path: Path, items: tuple[DataValueNode, ...], location: SourceLocation
    ) -> DataValueNode:
        """Build an array node; its ``value`` is the plain list of the items' values."""
        value = [item.value for item in items]
        return cls(path=path, value=value, source_location=location, items=items)

    def find(self, path: Path) -> DataValueNode | None:
        """Return the descendant at *path* (absolute), or ``None`` if absent."""
        if path[: len(self.path)] != self.path:
            return None
        node: DataValueNode = self
        for segment in path[len(self.path) :]:
            if isinstance(segment, int):
                if not 0 <= segment < len(node.items):
                    return None
                node = node.items[segment]
            else:
                child = node.children.get(segment)
                if child is None:
                    return None
                node = child
        return node

"""Declarative tags describing the graph role of a type and its members.

Member tags are attached with ``typing.Annotated``; type-level tags with the
``graph_vertex`` / ``graph_edge`` class decorators:

    @graph_vertex(label="Country_sector")
    class CountrySector(BaseModel):
        id: Annotated[str, GraphId()]
        pk: Annotated[str, GraphPartitionKey()]
        country: Annotated[str, GraphProperty("country")]

    @graph_edge(partition_key="pk")
    class Supplies(BaseModel):
        source: Annotated[EndpointSnapshot, EdgeVertex(Direction.SOURCE)]
        destination: Annotated[EndpointSnapshot, EdgeVertex(Direction.DESTINATION)]
        label: Annotated[str, GraphLabel()]
        id: Annotated[str | None, GraphId()] = None
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, TypeVar

T = TypeVar("T", bound=type)
F = TypeVar("F", bound=Callable)

SHAPE_ATTR = "__graph_shape__"
LABEL_ACCESSOR_ATTR = "__graph_label_accessor__"


class ShapeKind(str, Enum):
    VERTEX = "vertex"
    EDGE = "edge"


class Direction(str, Enum):
    SOURCE = "source"
    DESTINATION = "destination"


class ShapeTag:
    """Type-level tag: marks a class as a vertex or edge shape.

    Args:
        kind: Whether instances become vertices or edges.
        label: Literal label used when no member supplies one.
        partition_key: Partition-key field name override.
    """

    def __init__(self, kind: ShapeKind, label: str | None = None, partition_key: str | None = None):
        self.kind = kind
        self.label = label
        self.partition_key = partition_key

    def __repr__(self):
        return f"ShapeTag(kind={self.kind.value!r}, label={self.label!r}, partition_key={self.partition_key!r})"


class MemberTag:
    """Base for member-level tags."""

    role = "member"

    def __repr__(self):
        return f"{type(self).__name__}()"


class GraphId(MemberTag):
    """The member holding the document id."""

    role = "id"


class GraphLabel(MemberTag):
    """The member holding the document label."""

    role = "label"


class GraphPartitionKey(MemberTag):
    """The member holding the partition-key value; its name is the field name."""

    role = "partition_key"


class GraphProperty(MemberTag):
    """A member copied into the document properties, optionally under another name."""

    role = "property"

    def __init__(self, name: str | None = None):
        self.name = name

    def __repr__(self):
        return f"GraphProperty(name={self.name!r})"


class EdgeVertex(MemberTag):
    """An edge endpoint member; its value must be snapshot-able as a vertex."""

    role = "endpoint"

    def __init__(self, direction: Direction):
        self.direction = Direction(direction)

    def __repr__(self):
        return f"EdgeVertex(direction={self.direction.value!r})"


def _shape_decorator(kind: ShapeKind, label: str | None, partition_key: str | None) -> Callable[[T], T]:
    def decorator(cls: T) -> T:
        # Set on the class itself so subclasses don't silently inherit the tag
        setattr(cls, SHAPE_ATTR, ShapeTag(kind, label=label, partition_key=partition_key))
        return cls

    return decorator


def graph_vertex(label: str | None = None, partition_key: str | None = None) -> Callable[[T], T]:
    """Class decorator marking a type as a vertex shape."""
    return _shape_decorator(ShapeKind.VERTEX, label, partition_key)


def graph_edge(label: str | None = None, partition_key: str | None = None) -> Callable[[T], T]:
    """Class decorator marking a type as an edge shape.

    When ``partition_key`` names no member, edges take the partition-key value
    of their source endpoint and store it under that field name.
    """
    return _shape_decorator(ShapeKind.EDGE, label, partition_key)


def graph_label(fn: F) -> F:
    """Mark a zero-argument method as the label accessor of its class."""
    setattr(fn, LABEL_ACCESSOR_ATTR, True)
    return fn


def shape_tag_of(cls: type) -> ShapeTag | None:
    """Return the type-level tag declared directly on ``cls``, if any."""
    return cls.__dict__.get(SHAPE_ATTR)

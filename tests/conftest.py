"""Shared test fixtures."""

from typing import Annotated

import pytest
from pydantic import BaseModel

from age_bulk.tags import (
    Direction,
    EdgeVertex,
    GraphId,
    GraphLabel,
    GraphPartitionKey,
    GraphProperty,
    graph_edge,
    graph_label,
    graph_vertex,
)
from age_bulk.icio import CountrySectorVertex
from age_bulk.models import EndpointSnapshot, OperationOutcome, WriteOperation
from age_bulk.shape import ShapeDescriptorBuilder


# --- Test Model Definitions ---


@graph_vertex(label="Person")
class Person(BaseModel):
    id: Annotated[str, GraphId()]
    city: Annotated[str, GraphPartitionKey()]
    name: Annotated[str, GraphProperty()]
    age: Annotated[int | None, GraphProperty("years")] = None
    tags: Annotated[list[str], GraphProperty()] = []
    notes: str = ""


@graph_vertex()
class Document(BaseModel):
    """Label comes from a member instead of the class tag."""

    id: Annotated[str, GraphId()]
    kind: Annotated[str, GraphLabel()]
    title: Annotated[str, GraphProperty()]


@graph_vertex(label="Ignored")
class Animal(BaseModel):
    id: Annotated[str, GraphId()]
    species: str

    @graph_label
    def label(self) -> str:
        return self.species.capitalize()


@graph_edge(label="KNOWS")
class Knows(BaseModel):
    source: Annotated[Person, EdgeVertex(Direction.SOURCE)]
    destination: Annotated[Person, EdgeVertex(Direction.DESTINATION)]
    since: Annotated[int, GraphProperty()]
    id: Annotated[str | None, GraphId()] = None


@graph_edge(label="LINKS", partition_key="region")
class Link(BaseModel):
    """Edge with no partition-key member; the value comes from its source endpoint."""

    source: Annotated[EndpointSnapshot, EdgeVertex(Direction.SOURCE)]
    destination: Annotated[EndpointSnapshot, EdgeVertex(Direction.DESTINATION)]
    id: Annotated[str | None, GraphId()] = None


@graph_vertex(label="Broken")
class TwoIdVertex(BaseModel):
    first: Annotated[str, GraphId()]
    second: Annotated[str, GraphId()]


@graph_edge(label="BROKEN")
class TwoIdEdge(BaseModel):
    source: Annotated[EndpointSnapshot, EdgeVertex(Direction.SOURCE)]
    destination: Annotated[EndpointSnapshot, EdgeVertex(Direction.DESTINATION)]
    first: Annotated[str, GraphId()]
    second: Annotated[str, GraphId()]


class Untagged(BaseModel):
    id: str


# --- Fixtures ---


@pytest.fixture
def builder():
    return ShapeDescriptorBuilder()


@pytest.fixture
def alice():
    return Person(id="alice", city="Berlin", name="Alice", age=30, tags=["admin"])


@pytest.fixture
def bob():
    return Person(id="bob", city="Paris", name="Bob")


@pytest.fixture
def usa_manufacturing():
    return CountrySectorVertex.from_id("USA_MANUFACTURING")


@pytest.fixture
def chn_services():
    return CountrySectorVertex.from_id("CHN_SERVICES")


class RecordingSink:
    """BulkSink double that records every batch and reports success."""

    def __init__(self, fail_ids: set[str] | None = None):
        self.batches: list[list[WriteOperation]] = []
        self.destinations: list = []
        self.fail_ids = fail_ids or set()
        self.active = False
        self.overlapped = False

    def execute(self, operations, destination=None):
        if self.active:
            self.overlapped = True
        self.active = True
        try:
            batch = list(operations)
            self.batches.append(batch)
            self.destinations.append(destination)
            return [
                OperationOutcome.failure(op, "rejected", status="409")
                if op.document.id in self.fail_ids
                else OperationOutcome.success(op, status=op.mode.value)
                for op in batch
            ]
        finally:
            self.active = False

    @property
    def sizes(self) -> list[int]:
        return [len(batch) for batch in self.batches]

    @property
    def edges(self) -> list[WriteOperation]:
        return [op for batch in self.batches for op in batch if op.is_edge]

    @property
    def vertices(self) -> list[WriteOperation]:
        return [op for batch in self.batches for op in batch if not op.is_edge]


@pytest.fixture
def sink():
    return RecordingSink()

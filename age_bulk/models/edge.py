"""Edge document model and the endpoint snapshot it embeds."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from .base import GraphDocument, PartitionKey
from .vertex import VertexDocument


class EndpointSnapshot(BaseModel):
    """Immutable copy of a vertex's identity, embedded in edges.

    Taken by value when an edge is converted: later changes to the originating
    vertex object are not reflected here.
    """

    model_config: ClassVar[dict] = ConfigDict(frozen=True)

    id: str
    label: str
    partition_key: PartitionKey | None = None

    @classmethod
    def from_vertex(cls, vertex: VertexDocument) -> "EndpointSnapshot":
        return cls(id=vertex.id, label=vertex.label, partition_key=vertex.partition_key)


class EdgeDocument(GraphDocument):
    """A normalized graph relationship between two endpoint snapshots."""

    source: EndpointSnapshot
    destination: EndpointSnapshot

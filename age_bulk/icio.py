"""Inter-Country Input-Output (ICIO) domain model.

Each vertex is a country-sector such as ``USA_MANUFACTURING``; each edge is a
monetary supply flow from one country-sector to another.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel

from age_bulk.tags import (
    Direction,
    EdgeVertex,
    GraphId,
    GraphLabel,
    GraphPartitionKey,
    GraphProperty,
    graph_edge,
    graph_vertex,
)
from age_bulk.exceptions import InvalidEntityIdError
from age_bulk.models import EndpointSnapshot

ENTITY_SEPARATOR = "_"
COUNTRY_SECTOR_LABEL = "Country_sector"
SUPPLY_LABEL = "million_USD"


def is_entity_id(value: str | None) -> bool:
    return bool(value) and ENTITY_SEPARATOR in value


def split_entity_id(entity_id: str) -> tuple[str, str]:
    """Split ``GROUP_CATEGORY`` on the first separator."""
    if not is_entity_id(entity_id):
        raise InvalidEntityIdError(f"Country-sector id must be in format 'COUNTRY_SECTOR', got {entity_id!r}")
    country, sector = entity_id.split(ENTITY_SEPARATOR, 1)
    return country, sector


@graph_vertex(label=COUNTRY_SECTOR_LABEL)
class CountrySectorVertex(BaseModel):
    id: Annotated[str, GraphId()]
    pk: Annotated[str, GraphPartitionKey()]
    country: Annotated[str, GraphProperty("country")]
    sector: Annotated[str, GraphProperty("sector")]
    id_str: Annotated[str, GraphProperty("id_str")]

    @classmethod
    def from_id(cls, entity_id: str) -> "CountrySectorVertex":
        """Build the vertex for ``COUNTRY_SECTOR``, e.g. ``USA_MANUFACTURING``."""
        country, sector = split_entity_id(entity_id)
        return cls(id=entity_id, pk=entity_id, country=country, sector=sector, id_str=entity_id)


@graph_edge(partition_key="pk")
class SupplyEdge(BaseModel):
    """Supply flow; stored in the partition of its source country-sector."""

    source: Annotated[EndpointSnapshot, EdgeVertex(Direction.SOURCE)]
    destination: Annotated[EndpointSnapshot, EdgeVertex(Direction.DESTINATION)]
    label: Annotated[str, GraphLabel()] = SUPPLY_LABEL
    value: Annotated[float | None, GraphProperty("value")] = None
    id: Annotated[str | None, GraphId()] = None

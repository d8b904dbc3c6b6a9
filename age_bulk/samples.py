"""Synthetic ICIO sample data, as tagged domain objects or as ready-made documents."""

from __future__ import annotations

import random as _random

from age_bulk.convert import VertexConverter
from age_bulk.exceptions import SampleGenerationError
from age_bulk.icio import COUNTRY_SECTOR_LABEL, SUPPLY_LABEL, CountrySectorVertex, SupplyEdge
from age_bulk.models import EdgeDocument, EndpointSnapshot, PartitionKey, VertexDocument
from age_bulk.utils.ids import new_document_id, strong_random

COUNTRIES = (
    "AFG", "USA", "ALB", "BHS", "BRA", "CHN", "CZE", "EGY", "GUM", "GIN", "HND", "HUN", "MDG", "MLI",
)

SECTORS = (
    "MANUFACTURING", "AGRICULTURE", "MINING", "CONSTRUCTION", "TRANSPORTATION", "FINANCE",
    "HEALTHCARE", "EDUCATION", "RETAIL", "TECHNOLOGY", "ENERGY", "TOURISM", "REAL_ESTATE",
    "ENTERTAINMENT", "FOOD_SERVICES", "TELECOMMUNICATIONS", "AUTOMOTIVE", "AEROSPACE",
    "CHEMICALS", "TEXTILES", "PHARMACEUTICALS", "UTILITIES", "GOVERNMENT", "DEFENSE",
)

MAX_FLOW = 1_000_000.0


def _pick_other(random: _random.Random, snapshots: list[EndpointSnapshot], exclude_id: str) -> EndpointSnapshot:
    candidates = [s for s in snapshots if s.id != exclude_id]
    if not candidates:
        raise SampleGenerationError("Need at least two distinct vertices to generate edges")
    return random.choice(candidates)


def generate_vertices(volume: int) -> list[CountrySectorVertex]:
    """Generate ``volume`` random country-sector vertices (ids may repeat)."""
    random = strong_random()
    return [
        CountrySectorVertex.from_id(f"{random.choice(COUNTRIES)}_{random.choice(SECTORS)}")
        for _ in range(volume)
    ]


def generate_edges(vertices: list[CountrySectorVertex], factor: int) -> list[SupplyEdge]:
    """Generate between 1 and ``factor`` supply edges out of every vertex."""
    random = strong_random()
    converter = VertexConverter()
    snapshots = [converter.snapshot(v) for v in vertices]
    edges = []
    for source in snapshots:
        for _ in range(random.randint(1, factor)):
            edges.append(
                SupplyEdge(
                    source=source,
                    destination=_pick_other(random, snapshots, source.id),
                    label="supplies",
                    value=random.random() * MAX_FLOW,
                )
            )
    return edges


def generate_documents(volume: int) -> list[VertexDocument]:
    """Generate vertex documents directly, partitioned by country."""
    random = strong_random()
    documents = []
    for _ in range(volume):
        country = random.choice(COUNTRIES)
        sector = random.choice(SECTORS)
        documents.append(
            VertexDocument(
                id=new_document_id(),
                label=COUNTRY_SECTOR_LABEL,
                partition_key=PartitionKey(field_name="country", value=country),
                properties={"country": country, "sector": sector, "id_str": f"{country}_{sector}"},
            )
        )
    return documents


def generate_edge_documents(vertices: list[VertexDocument], factor: int) -> list[EdgeDocument]:
    """Generate edge documents stored in the partition of their source vertex."""
    random = strong_random()
    snapshots = [EndpointSnapshot.from_vertex(v) for v in vertices]
    edges = []
    for source in snapshots:
        for _ in range(random.randint(1, factor)):
            edges.append(
                EdgeDocument(
                    id=new_document_id(),
                    label=SUPPLY_LABEL,
                    partition_key=source.partition_key,
                    source=source,
                    destination=_pick_other(random, snapshots, source.id),
                    properties={"value": random.random() * MAX_FLOW},
                )
            )
    return edges

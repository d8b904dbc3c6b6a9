"""Vertex document model."""

from __future__ import annotations

from pydantic import field_validator

from .base import GraphDocument


class VertexDocument(GraphDocument):
    """A normalized graph node ready to be written to the store."""

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("vertex id must not be blank")
        return value

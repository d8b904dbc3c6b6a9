"""Write operations handed to the bulk-write transport, and their outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from .edge import EdgeDocument
from .vertex import VertexDocument


class WriteMode(str, Enum):
    CREATE = "create"
    UPSERT = "upsert"


class WriteOperation(BaseModel):
    """A converted document, how to write it, and the value the store routes it by."""

    document: VertexDocument | EdgeDocument
    mode: WriteMode
    partition_key_value: Any = None

    @property
    def is_edge(self) -> bool:
        return isinstance(self.document, EdgeDocument)


class OperationOutcome(BaseModel):
    """Result reported by the transport for a single operation."""

    operation: WriteOperation
    succeeded: bool
    status: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, operation: WriteOperation, status: str | None = None) -> "OperationOutcome":
        return cls(operation=operation, succeeded=True, status=status)

    @classmethod
    def failure(
        cls, operation: WriteOperation, error: BaseException | str, status: str | None = None
    ) -> "OperationOutcome":
        return cls(operation=operation, succeeded=False, status=status, error=str(error))

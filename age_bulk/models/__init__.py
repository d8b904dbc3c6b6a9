from .base import GraphDocument, PartitionKey
from .vertex import VertexDocument
from .edge import EdgeDocument, EndpointSnapshot
from .operation import OperationOutcome, WriteMode, WriteOperation

__all__ = [
    "GraphDocument",
    "PartitionKey",
    "VertexDocument",
    "EdgeDocument",
    "EndpointSnapshot",
    "WriteMode",
    "WriteOperation",
    "OperationOutcome",
]

"""age-bulk: map tagged Python objects to graph documents and bulk-load them into Apache AGE."""

from .tags import (
    Direction,
    EdgeVertex,
    GraphId,
    GraphLabel,
    GraphPartitionKey,
    GraphProperty,
    ShapeKind,
    graph_edge,
    graph_label,
    graph_vertex,
)
from .models import (
    EdgeDocument,
    EndpointSnapshot,
    OperationOutcome,
    PartitionKey,
    VertexDocument,
    WriteMode,
    WriteOperation,
)
from .shape import ShapeDescriptor, ShapeDescriptorBuilder, get_descriptor
from .convert import EdgeConverter, VertexConverter, to_edge, to_vertex
from .factory import OperationFactory
from .pipeline import IngestionConfig, IngestionReport, StreamingIngestionPipeline
from .sources import CsvMatrixSource, MatrixSource
from .sink import AgeSink, BulkSink
from .database import Database
from .exceptions import (
    AgeBulkError,
    GenerationCapabilityError,
    MetadataValidationError,
    SampleGenerationError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "Direction",
    "EdgeVertex",
    "GraphId",
    "GraphLabel",
    "GraphPartitionKey",
    "GraphProperty",
    "ShapeKind",
    "graph_edge",
    "graph_label",
    "graph_vertex",
    "EdgeDocument",
    "EndpointSnapshot",
    "OperationOutcome",
    "PartitionKey",
    "VertexDocument",
    "WriteMode",
    "WriteOperation",
    "ShapeDescriptor",
    "ShapeDescriptorBuilder",
    "get_descriptor",
    "EdgeConverter",
    "VertexConverter",
    "to_edge",
    "to_vertex",
    "OperationFactory",
    "IngestionConfig",
    "IngestionReport",
    "StreamingIngestionPipeline",
    "CsvMatrixSource",
    "MatrixSource",
    "AgeSink",
    "BulkSink",
    "Database",
    "AgeBulkError",
    "GenerationCapabilityError",
    "MetadataValidationError",
    "SampleGenerationError",
    "TransportError",
]

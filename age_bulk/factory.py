"""Lazy conversion of object sequences into write-operation sequences."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

from age_bulk.tags import ShapeKind
from age_bulk.convert import EdgeConverter, VertexConverter
from age_bulk.exceptions import MetadataValidationError
from age_bulk.models import EdgeDocument, VertexDocument, WriteMode, WriteOperation
from age_bulk.shape import ShapeDescriptorBuilder, Violation, default_builder

log = logging.getLogger(__name__)


class OperationFactory:
    """Wraps object iterables into single-pass generators of ``WriteOperation``s.

    Each operation is produced by converting exactly one input element when the
    consumer pulls it; nothing is buffered beyond the current element, and the
    consumer may stop at any time (closing the generator stops the input too).

    A conversion failure is raised from the ``next()`` call of the offending
    element and ends the sequence: later elements are never converted. Filter
    the input beforehand if bad elements should be skipped instead.

    Usage:
        factory = OperationFactory()
        for op in factory.upsert_operations(vertices):
            ...
    """

    def __init__(self, builder: ShapeDescriptorBuilder | None = None):
        self._builder = builder or default_builder
        self._vertices = VertexConverter(self._builder)
        self._edges = EdgeConverter(self._builder, self._vertices)

    @property
    def builder(self) -> ShapeDescriptorBuilder:
        return self._builder

    def create_operations(self, objects: Iterable[Any]) -> Iterator[WriteOperation]:
        return self.operations(objects, WriteMode.CREATE)

    def upsert_operations(self, objects: Iterable[Any]) -> Iterator[WriteOperation]:
        return self.operations(objects, WriteMode.UPSERT)

    def operations(self, objects: Iterable[Any], mode: WriteMode | str) -> Iterator[WriteOperation]:
        """Yield one operation per object, dispatching on the object's shape tag."""
        mode = WriteMode(mode)
        for position, obj in enumerate(objects):
            document = self._convert(obj, position)
            yield WriteOperation(document=document, mode=mode, partition_key_value=document.partition_key_value)

    def vertex_operations(self, objects: Iterable[Any], mode: WriteMode | str) -> Iterator[WriteOperation]:
        """Like ``operations`` but converts every element as a vertex."""
        mode = WriteMode(mode)
        for obj in objects:
            document = self._vertices.to_vertex(obj)
            yield WriteOperation(document=document, mode=mode, partition_key_value=document.partition_key_value)

    def edge_operations(self, objects: Iterable[Any], mode: WriteMode | str) -> Iterator[WriteOperation]:
        """Like ``operations`` but converts every element as an edge."""
        mode = WriteMode(mode)
        for obj in objects:
            document = self._edges.to_edge(obj)
            yield WriteOperation(document=document, mode=mode, partition_key_value=document.partition_key_value)

    def _convert(self, obj: Any, position: int) -> VertexDocument | EdgeDocument:
        if isinstance(obj, (VertexDocument, EdgeDocument)):
            return obj.model_copy(deep=True)
        kind = self._builder.kind_of(type(obj))
        try:
            if kind is ShapeKind.VERTEX:
                return self._vertices.to_vertex(obj)
            if kind is ShapeKind.EDGE:
                return self._edges.to_edge(obj)
        except MetadataValidationError:
            log.error("Conversion failed at position %d (%s); abandoning sequence", position, type(obj).__qualname__)
            raise
        log.error("Element at position %d (%s) has no graph shape tag", position, type(obj).__qualname__)
        raise MetadataValidationError(
            type(obj),
            [Violation(rule="shape-tag-missing", message="type has no @graph_vertex/@graph_edge tag")],
        )

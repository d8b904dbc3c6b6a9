"""Converters from tagged domain objects to vertex and edge documents."""

from __future__ import annotations

import copy
import logging
from typing import Any

from age_bulk.tags import ShapeKind
from age_bulk.exceptions import MetadataValidationError
from age_bulk.models import EdgeDocument, EndpointSnapshot, PartitionKey, VertexDocument
from age_bulk.shape import LabelSource, ShapeDescriptor, ShapeDescriptorBuilder, Violation, default_builder
from age_bulk.utils.ids import new_document_id

log = logging.getLogger(__name__)


def _fail(obj_or_cls: Any, rule: str, message: str) -> MetadataValidationError:
    cls = obj_or_cls if isinstance(obj_or_cls, type) else type(obj_or_cls)
    return MetadataValidationError(cls, [Violation(rule=rule, message=message)])


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _read_id(obj: Any, descriptor: ShapeDescriptor) -> str | None:
    value = getattr(obj, descriptor.id_member, None)
    return None if _is_blank(value) else str(value)


def _resolve_label(obj: Any, descriptor: ShapeDescriptor) -> str:
    if descriptor.label_source is LabelSource.LITERAL:
        return descriptor.label
    if descriptor.label_source is LabelSource.ACCESSOR:
        value = getattr(obj, descriptor.label)()
    else:
        value = getattr(obj, descriptor.label, None)
    if _is_blank(value):
        raise _fail(obj, "label-missing-value", f"label source '{descriptor.label}' resolved to {value!r}")
    return str(value)


def _collect_properties(obj: Any, descriptor: ShapeDescriptor) -> dict[str, Any]:
    props = {}
    for member, external in descriptor.properties:
        value = getattr(obj, member, None)
        if value is None:
            continue
        props[external] = copy.deepcopy(value)
    return props


class VertexConverter:
    """Turns vertex-tagged objects into ``VertexDocument``s."""

    def __init__(self, builder: ShapeDescriptorBuilder | None = None):
        self._builder = builder or default_builder

    def to_vertex(self, obj: Any) -> VertexDocument:
        """Convert one object into a new, independently owned vertex document.

        Raises:
            MetadataValidationError: If the type's shape is invalid, or the id or
                label resolves to an empty value.
        """
        if isinstance(obj, VertexDocument):
            return obj.model_copy(deep=True)

        descriptor = self._builder.build(type(obj), ShapeKind.VERTEX)
        doc_id = _read_id(obj, descriptor)
        if doc_id is None:
            raise _fail(obj, "identifier-missing-value", f"id member '{descriptor.id_member}' is not set")

        partition_key = None
        if descriptor.has_partition_key:
            value = getattr(obj, descriptor.partition_key_member, None)
            if value is None:
                raise _fail(
                    obj,
                    "partition-key-missing-value",
                    f"partition-key member '{descriptor.partition_key_member}' is not set",
                )
            partition_key = PartitionKey(field_name=descriptor.partition_key_field, value=value)

        return VertexDocument(
            id=doc_id,
            label=_resolve_label(obj, descriptor),
            partition_key=partition_key,
            properties=_collect_properties(obj, descriptor),
        )

    def snapshot(self, obj: Any) -> EndpointSnapshot:
        """Take an endpoint snapshot of a vertex-tagged object or vertex document."""
        return EndpointSnapshot.from_vertex(self.to_vertex(obj))


class EdgeConverter:
    """Turns edge-tagged objects into ``EdgeDocument``s.

    Endpoint members may hold an ``EndpointSnapshot``, a ``VertexDocument`` or a
    vertex-tagged domain object; all of them are copied into a fresh snapshot
    at conversion time.
    """

    def __init__(self, builder: ShapeDescriptorBuilder | None = None, vertex_converter: VertexConverter | None = None):
        self._builder = builder or default_builder
        self._vertices = vertex_converter or VertexConverter(self._builder)

    def to_edge(self, obj: Any) -> EdgeDocument:
        """Convert one object into a new edge document.

        An unset id member yields a freshly generated id on every call; a set
        id is echoed unchanged. The source object is never modified.

        Raises:
            MetadataValidationError: If the type's shape is invalid, or an
                endpoint or the label cannot be resolved.
            GenerationCapabilityError: If an id must be generated and no strong
                randomness source exists.
        """
        if isinstance(obj, EdgeDocument):
            return obj.model_copy(deep=True)

        descriptor = self._builder.build(type(obj), ShapeKind.EDGE)
        source = self._endpoint(obj, descriptor.source_member)
        destination = self._endpoint(obj, descriptor.destination_member)
        label = _resolve_label(obj, descriptor)

        partition_key = None
        if descriptor.has_partition_key:
            value = None
            if descriptor.partition_key_member is not None:
                value = getattr(obj, descriptor.partition_key_member, None)
            if value is None and source.partition_key is not None:
                value = source.partition_key.value
            if value is not None:
                partition_key = PartitionKey(field_name=descriptor.partition_key_field, value=value)
            else:
                log.debug("%s edge has no partition-key value", type(obj).__qualname__)

        doc_id = _read_id(obj, descriptor) or new_document_id()

        return EdgeDocument(
            id=doc_id,
            label=label,
            partition_key=partition_key,
            source=source,
            destination=destination,
            properties=_collect_properties(obj, descriptor),
        )

    def _endpoint(self, obj: Any, member: str) -> EndpointSnapshot:
        value = getattr(obj, member, None)
        if isinstance(value, EndpointSnapshot):
            if _is_blank(value.id):
                raise _fail(obj, "endpoint-invalid", f"endpoint '{member}' has no id")
            return value.model_copy(deep=True)
        if value is None:
            raise _fail(obj, "endpoint-invalid", f"endpoint '{member}' is not set")
        if not isinstance(value, VertexDocument) and self._builder.kind_of(type(value)) is not ShapeKind.VERTEX:
            raise _fail(
                obj,
                "endpoint-invalid",
                f"endpoint '{member}' holds {type(value).__name__}, which is not a vertex",
            )
        try:
            return self._vertices.snapshot(value)
        except MetadataValidationError as exc:
            raise _fail(obj, "endpoint-invalid", f"endpoint '{member}' cannot be snapshotted: {exc}") from exc


_vertex_converter = VertexConverter()
_edge_converter = EdgeConverter(vertex_converter=_vertex_converter)


def to_vertex(obj: Any) -> VertexDocument:
    """Convert with the default descriptor builder."""
    return _vertex_converter.to_vertex(obj)


def to_edge(obj: Any) -> EdgeDocument:
    """Convert with the default descriptor builder."""
    return _edge_converter.to_edge(obj)

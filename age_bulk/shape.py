"""Shape introspection: derive and validate the graph-document descriptor of a tagged type.

A descriptor is built at most once per (type, kind) and cached. Building never
raises half-way: every rule is checked and the result is either a complete
``ShapeDescriptor`` or the full list of ``Violation``s, which ``build`` turns
into a ``MetadataValidationError``.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections import Counter
from enum import Enum
from typing import Any, ClassVar, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict

from age_bulk.tags import (
    LABEL_ACCESSOR_ATTR,
    Direction,
    EdgeVertex,
    GraphProperty,
    MemberTag,
    ShapeKind,
    shape_tag_of,
)
from age_bulk.exceptions import MetadataValidationError

log = logging.getLogger(__name__)

RESERVED_KEYS = frozenset({"id", "label"})

# Roles a single member may combine; anything else is a tag conflict.
_COMPATIBLE_ROLES = frozenset({"id", "partition_key"})


class Capability(str, Enum):
    IDENTIFIED = "identified"
    LABELED = "labeled"
    PARTITION_KEYED = "partition_keyed"
    PROPERTY_BEARING = "property_bearing"


class LabelSource(str, Enum):
    LITERAL = "literal"
    MEMBER = "member"
    ACCESSOR = "accessor"


class Violation(BaseModel):
    """One broken shape rule."""

    model_config: ClassVar[dict] = ConfigDict(frozen=True)

    rule: str
    message: str


class ShapeDescriptor(BaseModel):
    """Immutable description of how instances of a type map onto a graph document.

    ``label`` holds the literal label, or the name of the member/accessor that
    supplies it, depending on ``label_source``.
    """

    model_config: ClassVar[dict] = ConfigDict(frozen=True, arbitrary_types_allowed=True, protected_namespaces=())

    model_class: type
    kind: ShapeKind
    id_member: str
    label_source: LabelSource
    label: str
    partition_key_member: str | None = None
    partition_key_field: str | None = None
    properties: tuple[tuple[str, str], ...] = ()
    source_member: str | None = None
    destination_member: str | None = None
    capabilities: frozenset[Capability] = frozenset()

    @property
    def has_partition_key(self) -> bool:
        return self.partition_key_field is not None

    @property
    def property_names(self) -> list[str]:
        return [external for _, external in self.properties]


def _tagged_members(cls: type) -> list[tuple[str, list[MemberTag]]]:
    """Return (member name, member tags) for every annotated member of cls, in declaration order."""
    fields = getattr(cls, "model_fields", None)
    if isinstance(fields, dict):
        items = [(name, list(info.metadata)) for name, info in fields.items()]
    else:
        hints = get_type_hints(cls, include_extras=True)
        items = [
            (name, list(getattr(hint, "__metadata__", ())))
            for name, hint in hints.items()
            if get_origin(hint) is not ClassVar
        ]
    return [(name, [m for m in meta if isinstance(m, MemberTag)]) for name, meta in items]


def _label_accessors(cls: type) -> list[tuple[str, Any]]:
    accessors = []
    for name in dir(cls):
        attr = inspect.getattr_static(cls, name, None)
        fn = attr.__func__ if isinstance(attr, (staticmethod, classmethod)) else attr
        if callable(fn) and getattr(fn, LABEL_ACCESSOR_ATTR, False):
            accessors.append((name, attr))
    return accessors


def _required_arguments(attr: Any) -> list[str]:
    fn = attr.__func__ if isinstance(attr, (staticmethod, classmethod)) else attr
    params = list(inspect.signature(fn).parameters.values())
    if not isinstance(attr, staticmethod) and params:
        params = params[1:]
    return [
        p.name
        for p in params
        if p.default is inspect.Parameter.empty
        and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]


class ShapeDescriptorBuilder:
    """Builds and caches shape descriptors.

    Reads are lock-free once a descriptor exists. The first build of a given
    (type, kind) happens under a lock, so racing threads trigger a single build
    and all observe its result. Failed builds are cached too: a broken type is
    inspected once and then fails fast on every conversion.

    Usage:
        builder = ShapeDescriptorBuilder()
        descriptor = builder.build(CountrySectorVertex)
    """

    def __init__(self):
        self._cache: dict[tuple[type, ShapeKind], ShapeDescriptor | tuple[Violation, ...]] = {}
        self._lock = threading.Lock()

    def build(self, cls: type, kind: ShapeKind | str | None = None) -> ShapeDescriptor:
        """Return the descriptor for ``cls``, building it on first use.

        Args:
            cls: The tagged domain type.
            kind: Shape to build. Defaults to the kind of the type-level tag.

        Raises:
            MetadataValidationError: When the type's tags break any shape rule.
        """
        entry = self._resolve(cls, kind)
        if isinstance(entry, ShapeDescriptor):
            return entry
        raise MetadataValidationError(cls, entry)

    def validate(self, cls: type, kind: ShapeKind | str | None = None) -> list[Violation]:
        """Return the violated rules for ``cls`` (empty when the shape is valid)."""
        entry = self._resolve(cls, kind)
        return [] if isinstance(entry, ShapeDescriptor) else list(entry)

    def kind_of(self, cls: type) -> ShapeKind | None:
        tag = shape_tag_of(cls)
        return tag.kind if tag is not None else None

    def is_cached(self, cls: type, kind: ShapeKind | str) -> bool:
        return (cls, ShapeKind(kind)) in self._cache

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def _resolve(self, cls: type, kind: ShapeKind | str | None) -> ShapeDescriptor | tuple[Violation, ...]:
        if kind is None:
            kind = self.kind_of(cls)
            if kind is None:
                return (
                    Violation(
                        rule="shape-tag-missing",
                        message="type has no @graph_vertex/@graph_edge tag and no kind was requested",
                    ),
                )
        key = (cls, ShapeKind(kind))
        entry = self._cache.get(key)
        if entry is not None:
            return entry
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                entry = self._inspect(cls, key[1])
                self._cache[key] = entry
        return entry

    def _inspect(self, cls: type, kind: ShapeKind) -> ShapeDescriptor | tuple[Violation, ...]:
        log.debug("Building %s descriptor for %s", kind.value, cls.__qualname__)
        violations: list[Violation] = []

        def violate(rule: str, message: str) -> None:
            violations.append(Violation(rule=rule, message=message))

        tag = shape_tag_of(cls)
        if tag is not None and tag.kind is not kind:
            violate(
                "shape-kind-mismatch",
                f"type is tagged as {tag.kind.value} but was converted as {kind.value}",
            )

        try:
            members = _tagged_members(cls)
        except NameError as exc:
            violate("annotations-unresolved", f"cannot resolve type annotations: {exc}")
            return tuple(violations)

        by_role: dict[str, list[str]] = {}
        for name, tags in members:
            roles = [t.role for t in tags]
            if len(roles) != len(set(roles)) or (len(roles) > 1 and not set(roles) <= _COMPATIBLE_ROLES):
                violate("member-tag-conflict", f"member '{name}' carries conflicting tags {tags!r}")
                continue
            for role in roles:
                by_role.setdefault(role, []).append(name)

        # --- identifier ---
        ids = by_role.get("id", [])
        if len(ids) != 1:
            violate(
                "identifier-cardinality",
                f"expected exactly one @GraphId member, found {len(ids)}" + (f": {ids}" if ids else ""),
            )

        # --- label ---
        accessors = _label_accessors(cls)
        label_fields = by_role.get("label", [])
        if len(accessors) > 1:
            violate("label-duplicate", f"more than one label accessor: {[n for n, _ in accessors]}")
        if len(label_fields) > 1:
            violate("label-duplicate", f"more than one @GraphLabel member: {label_fields}")

        label_source: LabelSource | None = None
        label: str | None = None
        if accessors:
            label_source, label = LabelSource.ACCESSOR, accessors[0][0]
            required = _required_arguments(accessors[0][1])
            if required:
                violate("label-accessor-signature", f"label accessor '{label}' requires arguments {required}")
        elif label_fields:
            label_source, label = LabelSource.MEMBER, label_fields[0]
        elif tag is not None and tag.label:
            label_source, label = LabelSource.LITERAL, tag.label
        else:
            violate("label-missing", "no class label, @GraphLabel member or label accessor")

        # --- partition key ---
        pk_members = by_role.get("partition_key", [])
        override = tag.partition_key if tag is not None else None
        pk_member: str | None = None
        pk_field: str | None = None
        if override is None:
            if len(pk_members) == 1:
                pk_member = pk_field = pk_members[0]
            elif len(pk_members) > 1:
                violate("partition-key-cardinality", f"more than one @GraphPartitionKey member: {pk_members}")
        elif len(pk_members) == 1:
            pk_member, pk_field = pk_members[0], override
        elif len(pk_members) > 1:
            if override in pk_members:
                pk_member = pk_field = override
            else:
                violate(
                    "partition-key-cardinality",
                    f"override '{override}' names none of the @GraphPartitionKey members {pk_members}",
                )
        elif override in {name for name, _ in members}:
            pk_member = pk_field = override
        elif kind is ShapeKind.EDGE:
            # value comes from the source endpoint at conversion time
            pk_field = override
        else:
            violate("partition-key-unresolved", f"partition-key override '{override}' names no member")

        # --- endpoints ---
        endpoints = [(name, t.direction) for name, tags in members for t in tags if isinstance(t, EdgeVertex)]
        sources = [name for name, d in endpoints if d is Direction.SOURCE]
        destinations = [name for name, d in endpoints if d is Direction.DESTINATION]
        if kind is ShapeKind.EDGE:
            if len(sources) != 1 or len(destinations) != 1:
                violate(
                    "endpoint-cardinality",
                    f"expected one SOURCE and one DESTINATION endpoint, "
                    f"found {len(sources)} and {len(destinations)}",
                )
        elif endpoints:
            violate("endpoint-cardinality", f"vertex shapes cannot declare endpoints: {[n for n, _ in endpoints]}")

        # --- properties ---
        properties = [
            (name, t.name or name) for name, tags in members for t in tags if isinstance(t, GraphProperty)
        ]
        reserved = set(RESERVED_KEYS) | set(ids) | {pk_member, pk_field} - {None}
        if label_source is LabelSource.MEMBER:
            reserved.add(label)
        counts = Counter(external for _, external in properties)
        duplicates = sorted(name for name, n in counts.items() if n > 1)
        if duplicates:
            violate("property-name-collision", f"duplicate property names {duplicates}")
        clashing = sorted({external for _, external in properties} & reserved)
        if clashing:
            violate("property-name-collision", f"property names {clashing} clash with id/label/partition-key")

        if violations:
            log.debug("%s failed shape validation: %s", cls.__qualname__, [v.rule for v in violations])
            return tuple(violations)

        capabilities = {Capability.IDENTIFIED, Capability.LABELED}
        if pk_field is not None:
            capabilities.add(Capability.PARTITION_KEYED)
        if properties:
            capabilities.add(Capability.PROPERTY_BEARING)

        return ShapeDescriptor(
            model_class=cls,
            kind=kind,
            id_member=ids[0],
            label_source=label_source,
            label=label,
            partition_key_member=pk_member,
            partition_key_field=pk_field,
            properties=tuple(properties),
            source_member=sources[0] if sources else None,
            destination_member=destinations[0] if destinations else None,
            capabilities=frozenset(capabilities),
        )


default_builder = ShapeDescriptorBuilder()


def get_descriptor(cls: type, kind: ShapeKind | str | None = None) -> ShapeDescriptor:
    """Build (or fetch) a descriptor from the process-wide default builder."""
    return default_builder.build(cls, kind)

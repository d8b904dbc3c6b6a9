"""Base document model shared by vertex and edge documents."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PartitionKey(BaseModel):
    """Field name and value used by the store to route and co-locate documents."""

    model_config: ClassVar[dict] = ConfigDict(frozen=True)

    field_name: str
    value: Any


class GraphDocument(BaseModel):
    """Fields common to every graph document."""

    model_config: ClassVar[dict] = ConfigDict(validate_assignment=True)

    id: str
    label: str
    partition_key: PartitionKey | None = None
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("label")
    @classmethod
    def _label_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("label must not be blank")
        return value

    @property
    def partition_key_value(self) -> Any:
        return self.partition_key.value if self.partition_key is not None else None

    def stored_properties(self) -> dict[str, Any]:
        """Properties as persisted: the document properties plus id and partition-key field."""
        props: dict[str, Any] = {"id": self.id}
        if self.partition_key is not None:
            props[self.partition_key.field_name] = self.partition_key.value
        props.update(self.properties)
        return props

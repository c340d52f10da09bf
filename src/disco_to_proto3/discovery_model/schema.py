"""Discovery Document schema nodes."""

from __future__ import annotations

import weakref
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DiscoveryFormatError(ValueError):
    """Raised when a Discovery Document node is malformed."""


class SchemaType(str, Enum):
    """Value of the ``type`` attribute of a schema."""

    ANY = "any"
    ARRAY = "array"
    BOOLEAN = "boolean"
    EMPTY = ""
    INTEGER = "integer"
    NUMBER = "number"
    OBJECT = "object"
    STRING = "string"

    @classmethod
    def parse(cls, text: str) -> SchemaType:
        try:
            return cls(text)
        except ValueError as exc:
            raise DiscoveryFormatError(f"unknown type: {text}") from exc


class SchemaFormat(str, Enum):
    """Value of the ``format`` attribute of a schema; unknown formats are ignored."""

    BYTE = "byte"
    DATE = "date"
    DATETIME = "date-time"
    DOUBLE = "double"
    EMPTY = ""
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    ANY = "google.protobuf.Any"
    LISTVALUE = "google.protobuf.ListValue"
    STRUCT = "google.protobuf.Struct"
    VALUE = "google.protobuf.Value"

    @classmethod
    def parse(cls, text: str) -> SchemaFormat:
        try:
            return cls(text)
        except ValueError:
            return cls.EMPTY


@dataclass(eq=False)
class Schema:
    """One node of the Discovery type system."""

    key: str
    type: SchemaType = SchemaType.EMPTY
    format: SchemaFormat = SchemaFormat.EMPTY
    id: str = ""
    reference: str = ""
    description: str = ""
    default_value: str = ""
    location: str = ""
    pattern: str = ""
    required: bool = False
    repeated: bool = False
    enum_values: tuple[str, ...] = ()
    enum_descriptions: tuple[str, ...] = ()
    properties: dict[str, Schema] = field(default_factory=dict)
    items: Schema | None = None
    additional_properties: Schema | None = None
    _parent: weakref.ReferenceType[Any] | None = field(default=None, repr=False)

    @classmethod
    def from_json(cls, node: Any, key: str, parent: object | None = None) -> Schema:
        """Build a schema (and its children) from a raw JSON object."""
        if node is None:
            node = {}
        if not isinstance(node, Mapping):
            raise DiscoveryFormatError(f"Schema '{key}' must be a JSON object.")

        schema = cls(
            key=key,
            type=SchemaType.parse(_string(node, "type")),
            format=SchemaFormat.parse(_string(node, "format")),
            id=_string(node, "id"),
            reference=_string(node, "$ref"),
            description=_string(node, "description"),
            default_value=_string(node, "default"),
            location=_string(node, "location"),
            pattern=_string(node, "pattern"),
            required=bool(node.get("required", False)),
            repeated=bool(node.get("repeated", False)),
        )
        schema.set_parent(parent)

        enum_values = node.get("enum") or []
        if enum_values:
            schema.enum_values = tuple(str(value) for value in enum_values)
            schema.enum_descriptions = tuple(
                str(value) for value in node.get("enumDescriptions") or []
            )

        properties = node.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise DiscoveryFormatError(f"Schema '{key}' properties must be a JSON object.")
        schema.properties = {
            name: cls.from_json(child, name, schema) for name, child in properties.items()
        }
        if node.get("items") is not None:
            schema.items = _optional_child(cls.from_json(node["items"], key, schema))
        if node.get("additionalProperties") is not None:
            schema.additional_properties = _optional_child(
                cls.from_json(node["additionalProperties"], key, schema)
            )
        return schema

    @property
    def parent(self) -> Any:
        return self._parent() if self._parent is not None else None

    def set_parent(self, parent: object | None) -> None:
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def identifier(self) -> str:
        """Declared type name, falling back to the key inside the parent."""
        return self.id or self.key

    @property
    def is_enum(self) -> bool:
        return bool(self.enum_values)

    @property
    def is_map(self) -> bool:
        return self.additional_properties is not None

    @property
    def is_repeated(self) -> bool:
        return self.type is SchemaType.ARRAY

    def get_document(self) -> Any:
        """Walk the parent links up to the owning document."""
        node: Any = self
        while node is not None and getattr(node, "parent", None) is not None:
            node = node.parent
        return node if node is not self else None


def _optional_child(schema: Schema) -> Schema | None:
    if schema.type is SchemaType.EMPTY and not schema.reference:
        return None
    return schema


def _string(node: Mapping[str, Any], key: str) -> str:
    value = node.get(key)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)

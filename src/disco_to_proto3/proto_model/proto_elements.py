"""Proto3 file model: messages, fields, options and services."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Union

from .field_numbering import fields_with_numbers


class OptionValue(str, Enum):
    """Bare enum literals used as option values."""

    REQUIRED = "REQUIRED"
    NAME = "NAME"
    STATUS = "STATUS"
    ERROR_CODE = "ERROR_CODE"
    ERROR_MESSAGE = "ERROR_MESSAGE"


OptionScalar = Union[str, bool, OptionValue]


@dataclass
class Option:
    """A proto option; scalar options keep their value under the empty key."""

    name: str
    properties: dict[str, OptionScalar] = field(default_factory=dict)

    @classmethod
    def scalar(cls, name: str, value: OptionScalar) -> Option:
        return cls(name, {"": value})

    @property
    def value(self) -> OptionScalar | None:
        return self.properties.get("")

    @property
    def is_scalar(self) -> bool:
        return list(self.properties) == [""]

    def copy(self) -> Option:
        return Option(self.name, dict(self.properties))


@dataclass(eq=False)
class Message:
    """A proto message or enum.

    ``is_ref`` marks a placeholder that names a message built elsewhere; it is
    replaced by the real message during reference resolution. Fields and nested
    enums are keyed by name, and the first one registered under a name wins.
    """

    name: str
    is_ref: bool = False
    is_enum: bool = False
    description: str = ""
    fields: dict[str, Field] = field(default_factory=dict)
    enums: dict[str, Message] = field(default_factory=dict)

    def add_field(self, new_field: Field) -> None:
        self.fields.setdefault(new_field.name, new_field)

    def replace_field(self, new_field: Field) -> None:
        self.fields[new_field.name] = new_field

    def add_enum(self, enum: Message) -> None:
        self.enums.setdefault(enum.name, enum)

    def append_description(self, text: str) -> None:
        self.description = (self.description or "") + text

    def sorted_fields(self) -> list[Field]:
        """Fields ordered by name, with an enum zero value first."""
        return sorted(self.fields.values(), key=lambda item: (not item.first_in_order, item.name))

    def sorted_enums(self) -> list[Message]:
        return [self.enums[name] for name in sorted(self.enums)]

    def fields_with_numbers(self) -> dict[int, Field]:
        return fields_with_numbers(self)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Message):
            return NotImplemented
        return (
            self.name == other.name
            and self.is_ref == other.is_ref
            and self.is_enum == other.is_enum
            and self.fields == other.fields
            and self.enums == other.enums
        )

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class Field:
    """A message field or enum value. A non-null ``key_type`` makes it a map field."""

    name: str
    value_type: Message
    repeated: bool = False
    optional: bool = False
    key_type: Message | None = None
    description: str = ""
    first_in_order: bool = False
    options: list[Option] = field(default_factory=list)

    @property
    def is_map(self) -> bool:
        return self.key_type is not None

    def option(self, name: str) -> Option | None:
        return next((option for option in self.options if option.name == name), None)

    def has_option(self, name: str) -> bool:
        return self.option(name) is not None

    def copy(self, **changes: object) -> Field:
        """Return a copy with its own option list, applying ``changes``."""
        changes.setdefault("options", [option.copy() for option in self.options])
        return dataclasses.replace(self, **changes)  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Field):
            return NotImplemented
        return (
            self.name == other.name
            and _type_name(self.value_type) == _type_name(other.value_type)
            and _type_name(self.key_type) == _type_name(other.key_type)
            and self.repeated == other.repeated
            and self.optional == other.optional
            and self.first_in_order == other.first_in_order
            and self.options == other.options
        )

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        if self.key_type is not None:
            return f"map<{self.key_type}, {self.value_type}> {self.name}"
        if self.repeated:
            return f"repeated {self.value_type} {self.name}"
        return f"{self.value_type} {self.name}"


@dataclass(eq=False)
class GrpcMethod:
    """An rpc of a service."""

    name: str
    input: Message
    output: Message
    description: str = ""
    options: list[Option] = field(default_factory=list)

    def option(self, name: str) -> Option | None:
        return next((option for option in self.options if option.name == name), None)

    def __str__(self) -> str:
        return f"rpc {self.name}({self.input}) returns ({self.output})"


@dataclass(eq=False)
class GrpcService:
    """A service with its rpcs in declaration order."""

    name: str
    description: str = ""
    methods: list[GrpcMethod] = field(default_factory=list)
    options: list[Option] = field(default_factory=list)

    def option(self, name: str) -> Option | None:
        return next((option for option in self.options if option.name == name), None)

    def method(self, name: str) -> GrpcMethod | None:
        return next((method for method in self.methods if method.name == name), None)


@dataclass(frozen=True)
class ProtoFileMetadata:
    """Where a proto file came from."""

    source_file_name: str
    api_name: str
    api_version: str
    revision: str
    package: str
    package_version: str

    @property
    def copyright_year(self) -> str:
        return self.revision[:4]


@dataclass(eq=False)
class ProtoFile:
    """A complete proto3 file."""

    metadata: ProtoFileMetadata
    messages: dict[str, Message] = field(default_factory=dict)
    services: dict[str, GrpcService] = field(default_factory=dict)
    resource_options: list[Option] = field(default_factory=list)
    has_lro_definitions: bool = False
    has_any_fields: bool = False
    uses_struct_types: bool = False

    def sorted_messages(self) -> list[Message]:
        return [self.messages[name] for name in sorted(self.messages)]

    def sorted_services(self) -> list[GrpcService]:
        return [self.services[name] for name in sorted(self.services)]

    def update_well_known_type_flags(self) -> None:
        """Recompute which well-known type imports the message fields need."""
        used = {
            field.value_type.name
            for message in self.messages.values()
            for field in message.fields.values()
        }
        self.has_any_fields = "google.protobuf.Any" in used
        self.uses_struct_types = bool(used & STRUCT_TYPES)


def _type_name(message: Message | None) -> str | None:
    return message.name if message is not None else None


_NO_FORMAT = ""

PRIMITIVES: MappingProxyType[str, Message] = MappingProxyType(
    {
        name: Message(name)
        for name in (
            "bool",
            "string",
            "bytes",
            "int32",
            "int64",
            "uint32",
            "uint64",
            "fixed32",
            "fixed64",
            "float",
            "double",
            "google.protobuf.Any",
            "google.protobuf.Struct",
            "google.protobuf.Value",
            "google.protobuf.ListValue",
            _NO_FORMAT,
        )
    }
)

STRUCT_TYPES = frozenset(
    {"google.protobuf.Struct", "google.protobuf.Value", "google.protobuf.ListValue"}
)


def primitive(name: str) -> Message:
    """Return the shared primitive or well-known type named ``name``."""
    return PRIMITIVES[name]


def is_primitive(message: Message | None) -> bool:
    return message is not None and PRIMITIVES.get(message.name) is message

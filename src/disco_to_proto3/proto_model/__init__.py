"""Proto model exports."""

from .field_numbering import (
    MAX_FIELD_NUMBER,
    field_number_for_name,
    fields_with_numbers,
    java_string_hash,
    next_field_number,
)
from .proto_elements import (
    PRIMITIVES,
    STRUCT_TYPES,
    Field,
    GrpcMethod,
    GrpcService,
    Message,
    Option,
    OptionScalar,
    OptionValue,
    ProtoFile,
    ProtoFileMetadata,
    is_primitive,
    primitive,
)
from .reference_resolution import UnresolvedReferenceError, resolve_references

__all__ = [
    "MAX_FIELD_NUMBER",
    "PRIMITIVES",
    "STRUCT_TYPES",
    "Field",
    "GrpcMethod",
    "GrpcService",
    "Message",
    "Option",
    "OptionScalar",
    "OptionValue",
    "ProtoFile",
    "ProtoFileMetadata",
    "UnresolvedReferenceError",
    "field_number_for_name",
    "fields_with_numbers",
    "is_primitive",
    "java_string_hash",
    "next_field_number",
    "primitive",
    "resolve_references",
]

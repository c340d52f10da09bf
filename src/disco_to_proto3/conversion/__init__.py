"""Discovery to proto conversion exports."""

from .document_converter import (
    ConversionError,
    ConversionOptions,
    DocumentToProtoConverter,
    IllegalAnyFieldError,
    InconsistentApiVersionsError,
    MessageCollisionError,
    RpcRequestMessageConflictError,
    ServiceNameCollisionError,
    UnsupportedSchemaError,
    convert_document,
)
from .enum_rewrites import cleanup_enum_naming_conflicts, convert_enum_fields_to_strings
from .lro_annotations import LroConfigurationError, apply_lro_configuration

__all__ = [
    "ConversionError",
    "ConversionOptions",
    "DocumentToProtoConverter",
    "IllegalAnyFieldError",
    "InconsistentApiVersionsError",
    "LroConfigurationError",
    "MessageCollisionError",
    "RpcRequestMessageConflictError",
    "ServiceNameCollisionError",
    "UnsupportedSchemaError",
    "apply_lro_configuration",
    "cleanup_enum_naming_conflicts",
    "convert_document",
    "convert_enum_fields_to_strings",
]

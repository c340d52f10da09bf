"""Conversion configuration exports."""

from .inline_schema_registry import (
    ConfigurationDriftError,
    ConversionConfiguration,
    InlineFieldDefinition,
    InlineSchemaGroup,
)
from .loader import (
    ConfigurationFileError,
    load_conversion_configuration,
    write_conversion_configuration,
)
from .schema_descriptions import describe_schema

__all__ = [
    "ConfigurationDriftError",
    "ConfigurationFileError",
    "ConversionConfiguration",
    "InlineFieldDefinition",
    "InlineSchemaGroup",
    "describe_schema",
    "load_conversion_configuration",
    "write_conversion_configuration",
]

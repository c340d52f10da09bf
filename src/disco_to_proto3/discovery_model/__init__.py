"""Discovery model exports."""

from .document import Document, load_discovery_document
from .method import Method
from .path_templates import PathTemplateError, UnsupportedPathTemplateError, normalize_path
from .schema import DiscoveryFormatError, Schema, SchemaFormat, SchemaType

__all__ = [
    "Document",
    "DiscoveryFormatError",
    "Method",
    "PathTemplateError",
    "Schema",
    "SchemaFormat",
    "SchemaType",
    "UnsupportedPathTemplateError",
    "load_discovery_document",
    "normalize_path",
]

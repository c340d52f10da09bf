"""Naming exports."""

from .identifier_names import (
    CaseFormat,
    Name,
    NameFormatError,
    NamePiece,
    convert_case,
    split_by_upper_acronyms,
)
from .inflection import singularize

__all__ = [
    "CaseFormat",
    "Name",
    "NameFormatError",
    "NamePiece",
    "convert_case",
    "split_by_upper_acronyms",
    "singularize",
]

"""Conversion run exports."""

from .conversion_run_use_case import (
    ConversionRunError,
    converter_version,
    execute_conversion_run,
)
from .run_contracts import ConversionOutcome, ConversionRequest, OutputKind

__all__ = [
    "ConversionOutcome",
    "ConversionRequest",
    "ConversionRunError",
    "OutputKind",
    "converter_version",
    "execute_conversion_run",
]

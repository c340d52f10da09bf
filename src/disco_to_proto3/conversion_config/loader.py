"""Conversion configuration file loading and writing."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml

from .inline_schema_registry import ConversionConfiguration


class ConfigurationFileError(Exception):
    """Raised when the conversion configuration file cannot be read or written."""


def load_conversion_configuration(config_path: Path | str) -> ConversionConfiguration:
    """Load a stored configuration; JSON and YAML documents are both accepted."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationFileError(f"Conversion configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationFileError(
            f"Failed to parse conversion configuration file: {exc}"
        ) from exc

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, Mapping):
        raise ConfigurationFileError("Conversion configuration root must be a mapping.")
    return ConversionConfiguration.from_mapping(parsed)


def write_conversion_configuration(
    config: ConversionConfiguration, output_path: Path | str
) -> Path:
    """Validate and write ``config`` as pretty-printed JSON."""
    path = Path(output_path)
    content = config.to_json()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ConfigurationFileError(f"Failed to write conversion configuration: {exc}") from exc
    return path.resolve()

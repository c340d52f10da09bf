"""Canonical text descriptions of inline schemas."""

from __future__ import annotations

import json
from typing import Any

from disco_to_proto3.discovery_model import Schema, SchemaFormat


def describe_schema(schema: Schema) -> str:
    """Describe the structure of ``schema`` as compact JSON with sorted keys.

    Descriptions, defaults and patterns are left out, so documentation edits do
    not count as schema changes.
    """
    return json.dumps(_shape(schema), sort_keys=True, separators=(",", ":"))


def _shape(schema: Schema) -> dict[str, Any]:
    shape: dict[str, Any] = {"type": schema.type.value}
    if schema.format is not SchemaFormat.EMPTY:
        shape["format"] = schema.format.value
    if schema.reference:
        shape["$ref"] = schema.reference
    if schema.enum_values:
        shape["enum"] = list(schema.enum_values)
    if schema.properties:
        shape["properties"] = {key: _shape(child) for key, child in schema.properties.items()}
    if schema.items is not None:
        shape["items"] = _shape(schema.items)
    if schema.additional_properties is not None:
        shape["additionalProperties"] = _shape(schema.additional_properties)
    return shape

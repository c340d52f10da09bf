"""Stable message names for inline schemas across regenerations."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


class ConfigurationDriftError(Exception):
    """Raised with every inconsistency found between a stored configuration and a run."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = tuple(errors)
        super().__init__("\n".join(self.errors))


@dataclass
class InlineFieldDefinition:
    """The message name and schema recorded for one structural path.

    Definitions loaded from a stored configuration start unused; a converter run
    marks them used when it registers the same path again.
    """

    message_name: str
    schema: str
    location: str | None = None
    schema_used: bool = False

    def update(
        self,
        path: str,
        message_name: str,
        schema: str,
        *,
        reading_from_file: bool,
        errors: list[str],
    ) -> None:
        if self.location is not None and self.location != path:
            errors.append(
                "- inconsistency: trying to update location of inline schema instance "
                f"{self.location} -> {path}"
            )
        if self.schema_used:
            errors.append(
                "- inconsistency: this inline field definition was already used: "
                f"{message_name}:{path}:{schema}"
            )
        if self.message_name != message_name:
            errors.append(
                f"- invalid update: trying to rename type for field {path} from "
                f"'{self.message_name}' to '{message_name}'"
            )
        self.location = path
        self.schema = schema
        self.schema_used = not reading_from_file

    def matches(self, other: InlineFieldDefinition, *, match_schema: bool) -> bool:
        return (
            self.message_name == other.message_name
            and (not match_schema or self.schema == other.schema)
            and self.location == other.location
        )


@dataclass
class InlineSchemaGroup:
    """All message names and locations that share one schema description."""

    schema: str
    locations: dict[str, list[str]] = field(default_factory=dict)

    @property
    def sort_key(self) -> str:
        location_count = sum(len(paths) for paths in self.locations.values())
        first_name = min(self.locations) if self.locations else ""
        return "%03d.%s" % (999 - location_count, first_name)

    def add_location(self, definition: InlineFieldDefinition, errors: list[str]) -> None:
        paths = self.locations.setdefault(definition.message_name, [])
        if definition.location in paths:
            errors.append(f"!! location was already registered: {definition.location}")
        paths.append(definition.location or "")

    def to_mapping(self) -> dict[str, Any]:
        return {
            "schema": self.schema,
            "locations": {name: sorted(self.locations[name]) for name in sorted(self.locations)},
        }


class ConversionConfiguration:
    """Configuration shared by successive conversions of one API.

    It maps structural field paths (``schemas.Lake.info``) to the message name
    generated for the inline schema at that path. Inconsistencies are collected
    as they are found and raised together as one :class:`ConfigurationDriftError`.
    """

    def __init__(
        self,
        *,
        converter_version: str = "",
        api_version: str = "",
        discovery_revision: str = "",
    ) -> None:
        self.converter_version = converter_version
        self.api_version = api_version
        self.discovery_revision = discovery_revision
        self._inline_fields: dict[str, InlineFieldDefinition] = {}
        self._errors: list[str] = []

    @classmethod
    def from_mapping(cls, document: Mapping[str, Any]) -> ConversionConfiguration:
        config = cls(
            converter_version=_text(document.get("converterVersion")),
            api_version=_text(document.get("apiVersion")),
            discovery_revision=_text(document.get("discoveryRevision")),
        )
        for group in document.get("inlineSchemas") or []:
            if not isinstance(group, Mapping):
                raise ConfigurationDriftError(["- inline schema entries must be objects"])
            schema = _text(group.get("schema"))
            for message_name, paths in (group.get("locations") or {}).items():
                for path in paths or []:
                    config.add_inline_field(
                        str(path), str(message_name), schema, reading_from_file=True
                    )
        config.raise_if_errors()
        return config

    @classmethod
    def from_json(cls, text: str) -> ConversionConfiguration:
        try:
            document = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise ConfigurationDriftError([f"- invalid configuration JSON: {exc}"]) from exc
        if not isinstance(document, Mapping):
            raise ConfigurationDriftError(["- configuration root must be an object"])
        return cls.from_mapping(document)

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(self._errors)

    @property
    def inline_fields(self) -> Mapping[str, InlineFieldDefinition]:
        return self._inline_fields

    def set_config_metadata(
        self, *, converter_version: str, api_version: str, discovery_revision: str
    ) -> None:
        """Record the run's metadata; the API version is fixed and revisions only move forward."""
        if self.api_version and self.api_version != api_version:
            raise ConfigurationDriftError(
                [f"- trying to override apiVersion {self.api_version} with {api_version}"]
            )
        if self.discovery_revision and self.discovery_revision > discovery_revision:
            raise ConfigurationDriftError(
                [
                    "- trying to override discoveryRevision "
                    f"{self.discovery_revision} with {discovery_revision}"
                ]
            )
        self.converter_version = converter_version
        self.api_version = api_version
        self.discovery_revision = discovery_revision

    def message_name_for_path(self, path: str) -> str | None:
        definition = self._inline_fields.get(path)
        if definition is None:
            return None
        if definition.location != path:
            self._errors.append(
                f'- requested name for path "{path}" in object with path {definition.location}'
            )
            return None
        return definition.message_name

    def add_inline_field(
        self, path: str, message_name: str, schema: str, *, reading_from_file: bool = False
    ) -> InlineFieldDefinition:
        """Record that the inline ``schema`` at ``path`` is emitted as ``message_name``."""
        definition = self._inline_fields.get(path)
        if definition is None:
            definition = InlineFieldDefinition(message_name, schema)
            self._inline_fields[path] = definition
        elif reading_from_file:
            self._errors.append(f"- field specified multiple times: {path}")
        definition.update(
            path, message_name, schema, reading_from_file=reading_from_file, errors=self._errors
        )
        return definition

    def inline_schema_groups(self) -> list[InlineSchemaGroup]:
        """Group used definitions by schema, most used first; records drift errors."""
        groups: dict[str, InlineSchemaGroup] = {}
        for path, definition in self._inline_fields.items():
            if not definition.schema_used:
                self._errors.append(
                    f"- previously specified field of type {definition.message_name} "
                    f"is no longer used: {path}"
                )
                continue
            group = groups.setdefault(definition.schema, InlineSchemaGroup(definition.schema))
            group.add_location(definition, self._errors)
        ordered = sorted(groups.values(), key=lambda group: group.sort_key)
        self._verify_groups(ordered)
        return ordered

    def to_mapping(self) -> dict[str, Any]:
        groups = self.inline_schema_groups()
        self.raise_if_errors()
        return {
            "converterVersion": self.converter_version,
            "apiVersion": self.api_version,
            "discoveryRevision": self.discovery_revision,
            "inlineSchemas": [group.to_mapping() for group in groups],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_mapping(), indent=2) + "\n"

    def public_fields_equal(
        self,
        other: ConversionConfiguration,
        *,
        match_discovery_revision: bool = True,
        match_converter_version: bool = True,
        match_schema: bool = True,
    ) -> bool:
        """Compare the persisted content, ignoring the order of groups, names and paths."""
        if match_converter_version and self.converter_version != other.converter_version:
            return False
        if self.api_version != other.api_version:
            return False
        if match_discovery_revision and self.discovery_revision != other.discovery_revision:
            return False
        if self._inline_fields.keys() != other.inline_fields.keys():
            return False
        return all(
            definition.matches(other.inline_fields[path], match_schema=match_schema)
            for path, definition in self._inline_fields.items()
        )

    def raise_if_errors(self) -> None:
        if self._errors:
            raise ConfigurationDriftError(self._errors)

    def _verify_groups(self, groups: Sequence[InlineSchemaGroup]) -> None:
        schemas_by_name: dict[str, set[str]] = {}
        for group in groups:
            for message_name, paths in group.locations.items():
                for path in paths:
                    definition = self._inline_fields.get(path)
                    if definition is None:
                        self._errors.append(
                            f"- inconsistency: did not find inline field definition at {path}"
                        )
                        continue
                    if definition.message_name != message_name:
                        self._errors.append(
                            f"- inconsistency: expected message name '{message_name}' but got "
                            f"'{definition.message_name}' at location {path}"
                        )
                    schemas_by_name.setdefault(message_name, set()).add(definition.schema)
        for message_name in sorted(schemas_by_name):
            schemas = schemas_by_name[message_name]
            if len(schemas) != 1:
                self._errors.append(
                    f"- invalid configuration: proto message '{message_name}' configured for "
                    f"multiple schemas: {', '.join(sorted(schemas))}"
                )


def _text(value: Any) -> str:
    return "" if value is None else str(value)

"""Post-processing passes that turn enum-typed fields into strings."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from disco_to_proto3.proto_model import Message, primitive

_LOGGER = logging.getLogger("disco_to_proto3.conversion")
_LOGGER.addHandler(logging.NullHandler())

OPERATION_FIELD_OPTION = "google.cloud.operation_field"


def cleanup_enum_naming_conflicts(messages: Iterable[Message]) -> None:
    """Drop nested enums whose member names clash with a sibling enum.

    Enum values share the namespace of the enclosing message, so two nested
    enums with a common member cannot both be emitted. Fields typed with a
    dropped enum become plain strings.
    """
    string_type = primitive("string")
    for message in messages:
        owners: dict[str, list[str]] = {}
        for enum in message.enums.values():
            for member_name in enum.fields:
                owners.setdefault(member_name, []).append(enum.name)
        colliding = {
            name for enum_names in owners.values() if len(enum_names) > 1 for name in enum_names
        }
        if not colliding:
            continue

        _LOGGER.debug(
            "Replacing enums %s of message %s with strings", sorted(colliding), message.name
        )
        for enum_name in colliding:
            del message.enums[enum_name]
        for field in list(message.fields.values()):
            if field.value_type.is_enum and field.value_type.name in colliding:
                message.replace_field(field.copy(value_type=string_type))


def convert_enum_fields_to_strings(messages: Iterable[Message]) -> None:
    """Retype enum fields as strings, pointing the description at the enum.

    Messages carrying long-running operation fields keep their enums.
    """
    string_type = primitive("string")
    for message in messages:
        fields = list(message.fields.values())
        if any(field.has_option(OPERATION_FIELD_OPTION) for field in fields):
            continue
        for field in fields:
            if not field.value_type.is_enum:
                continue
            description = (
                f"{field.description}\nCheck the {field.value_type.name} enum for the list of "
                "possible values."
            )
            message.replace_field(field.copy(value_type=string_type, description=description))

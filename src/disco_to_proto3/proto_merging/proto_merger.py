"""Reconcile a freshly converted proto model with a previously published one."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from disco_to_proto3.proto_model import PRIMITIVES, Field, GrpcService, Message, ProtoFile

_LOGGER = logging.getLogger("disco_to_proto3.merging")
_LOGGER.addHandler(logging.NullHandler())

METHOD_SIGNATURE_OPTION = "google.api.method_signature"


def merge_proto_files(new_proto: ProtoFile, old_proto: ProtoFile) -> ProtoFile:
    """Bring back into ``new_proto`` what ``old_proto`` published and the conversion lost.

    Only fields, enum values and method signatures are reconciled; messages,
    services and methods that no longer exist stay deleted. ``new_proto`` is
    modified in place and returned.
    """
    _merge_messages(new_proto.messages, old_proto.messages)
    _merge_services(new_proto.services, old_proto.services)
    new_proto.update_well_known_type_flags()
    return new_proto


def _merge_messages(new_messages: dict[str, Message], old_messages: Mapping[str, Message]) -> None:
    for name, old_message in old_messages.items():
        new_message = new_messages.get(name)
        if new_message is None:
            _LOGGER.debug("Message %s is gone from the new model", name)
            continue
        _merge_fields(new_message, old_message, new_messages)
        for enum_name, old_enum in old_message.enums.items():
            new_enum = new_message.enums.get(enum_name)
            if new_enum is not None:
                _merge_fields(new_enum, old_enum, new_messages)


def _merge_fields(
    new_message: Message, old_message: Message, new_messages: Mapping[str, Message]
) -> None:
    for old_field in old_message.sorted_fields():
        new_field = new_message.fields.get(old_field.name)
        if new_field is not None and not _old_shape_wins(new_field, old_field):
            continue
        merged = _copy_field(old_field, new_message, new_messages)
        if merged is None:
            _LOGGER.debug(
                "Dropping %s.%s: type %s has no counterpart in the new model",
                new_message.name,
                old_field.name,
                old_field.value_type.name,
            )
            continue
        if new_field is None:
            _LOGGER.debug("Reinstating %s.%s", new_message.name, old_field.name)
        else:
            _LOGGER.debug("Restoring published shape of %s.%s", new_message.name, new_field.name)
            merged.description = new_field.description
        new_message.replace_field(merged)


def _old_shape_wins(new_field: Field, old_field: Field) -> bool:
    return len(old_field.options) > len(new_field.options) or (
        old_field.optional != new_field.optional
    )


def _copy_field(
    old_field: Field, owner: Message, new_messages: Mapping[str, Message]
) -> Field | None:
    """Copy ``old_field`` onto the type objects of the new model, or ``None`` if one is missing."""
    value_type = _counterpart(old_field.value_type, owner, new_messages)
    if value_type is None:
        return None
    key_type = None
    if old_field.key_type is not None:
        key_type = _counterpart(old_field.key_type, owner, new_messages)
        if key_type is None:
            return None
    return old_field.copy(value_type=value_type, key_type=key_type)


def _counterpart(
    old_type: Message, owner: Message, new_messages: Mapping[str, Message]
) -> Message | None:
    return (
        PRIMITIVES.get(old_type.name)
        or owner.enums.get(old_type.name)
        or new_messages.get(old_type.name)
    )


def _merge_services(
    new_services: Mapping[str, GrpcService], old_services: Mapping[str, GrpcService]
) -> None:
    for name, old_service in old_services.items():
        new_service = new_services.get(name)
        if new_service is None:
            continue
        for old_method in old_service.methods:
            new_method = new_service.method(old_method.name)
            old_signature = old_method.option(METHOD_SIGNATURE_OPTION)
            if new_method is None or old_signature is None:
                continue
            new_signature = new_method.option(METHOD_SIGNATURE_OPTION)
            if new_signature is not None:
                new_signature.properties.update(old_signature.properties)

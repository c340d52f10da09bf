"""Second-pass resolution of message references."""

from __future__ import annotations

from collections.abc import Mapping

from .proto_elements import Field, Message


class UnresolvedReferenceError(LookupError):
    """Raised when a field still points at a message that was never built."""


def resolve_references(messages: Mapping[str, Message]) -> None:
    """Replace every reference placeholder reachable from ``messages`` with the built message."""
    visited: set[int] = set()
    for message in messages.values():
        _resolve_message(message, messages, visited)


def _resolve_message(
    message: Message, messages: Mapping[str, Message], visited: set[int]
) -> None:
    if id(message) in visited:
        return
    visited.add(id(message))
    for field in message.fields.values():
        field.value_type = _resolve_type(field, field.value_type, messages, visited)
        if field.key_type is not None:
            field.key_type = _resolve_type(field, field.key_type, messages, visited)


def _resolve_type(
    field: Field, value_type: Message, messages: Mapping[str, Message], visited: set[int]
) -> Message:
    if not value_type.is_ref:
        _resolve_message(value_type, messages, visited)
        return value_type
    resolved = messages.get(value_type.name)
    if resolved is None or resolved.is_ref:
        raise UnresolvedReferenceError(
            f"Field '{field.name}' references unknown message '{value_type.name}'."
        )
    return resolved

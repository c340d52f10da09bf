"""Deterministic field numbers derived from field names."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .proto_elements import Field, Message

MAX_FIELD_NUMBER = 1 << 29
RESERVED_RANGE = range(19000, 20000)
_HIGH_BAND_START = 20000
_HIGH_BAND_STRIDE = 536314


def java_string_hash(text: str) -> int:
    """Return the signed 32-bit ``String.hashCode`` of ``text`` (over UTF-16 code units)."""
    encoded = text.encode("utf-16-be")
    value = 0
    for index in range(0, len(encoded), 2):
        unit = (encoded[index] << 8) | encoded[index + 1]
        value = (31 * value + unit) & 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def field_number_for_name(name: str) -> int:
    """Map a field name into ``[1, 2**29)`` outside the reserved range."""
    number = java_string_hash(name) & (MAX_FIELD_NUMBER - 1)
    if number == 0 or number in RESERVED_RANGE:
        number = _HIGH_BAND_START + ((number % 19000) + 1) * _HIGH_BAND_STRIDE
    return number


def next_field_number(number: int) -> int:
    """Next candidate after a collision on ``number``."""
    candidate = number + 1
    if candidate in RESERVED_RANGE:
        return _HIGH_BAND_START
    if candidate >= MAX_FIELD_NUMBER:
        return 1
    return candidate


def fields_with_numbers(message: Message) -> dict[int, Field]:
    """Number the fields of ``message`` in name order.

    The first field of an enum (its zero value, flagged ``first_in_order``) always
    gets number 0.
    """
    numbered: dict[int, Field] = {}
    for field in message.sorted_fields():
        if message.is_enum and not numbered:
            numbered[0] = field
            continue
        number = field_number_for_name(field.name)
        while number in numbered:
            number = next_field_number(number)
        numbered[number] = field
    return numbered

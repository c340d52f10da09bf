"""Casing-aware identifier names."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class NameFormatError(ValueError):
    """Raised when a name fragment is not valid for the requested construction."""


class CaseFormat(Enum):
    """Source or target casing of one name piece."""

    LOWER_UNDERSCORE = "lower_underscore"
    UPPER_UNDERSCORE = "UPPER_UNDERSCORE"
    LOWER_CAMEL = "lowerCamel"
    UPPER_CAMEL = "UpperCamel"

    @property
    def is_underscore(self) -> bool:
        return self in (CaseFormat.LOWER_UNDERSCORE, CaseFormat.UPPER_UNDERSCORE)


# A run of two or more capitals (optionally followed by digits) that ends where a
# capitalized word starts or at the end of the fragment.
_UPPER_ACRONYM = re.compile(r"[A-Z]{2,}[0-9]*(?=[A-Z][a-z]|$)")
_CAMEL_BOUNDARY = re.compile(r"(?=[A-Z])")
_LOWER_UNDERSCORE = re.compile(r"^[a-z0-9_]*$")
_UPPER_UNDERSCORE = re.compile(r"^[A-Z0-9_]*$")
_CAMEL = re.compile(r"^[A-Za-z0-9]*$")


@dataclass(frozen=True)
class NamePiece:
    """One fragment of a name together with the casing it was written in."""

    identifier: str
    case_format: CaseFormat


def split_by_upper_acronyms(piece: str) -> list[tuple[str, bool]]:
    """Split a camel fragment into sub-pieces, flagging the upper-case acronyms."""
    result: list[tuple[str, bool]] = []
    position = 0
    for match in _UPPER_ACRONYM.finditer(piece):
        if match.start() > position:
            result.append((piece[position : match.start()], False))
        result.append((match.group(0), True))
        position = match.end()
    if position < len(piece):
        result.append((piece[position:], False))
    return result


def convert_case(text: str, source: CaseFormat, target: CaseFormat) -> str:
    """Convert ``text`` between casings, splitting words the way the source casing does."""
    if source is target:
        return text
    words = _split_words(text, source)
    separator = "_" if target.is_underscore else ""
    rendered = [_normalize_word(words[0], target, first=True)]
    rendered.extend(_normalize_word(word, target, first=False) for word in words[1:])
    return separator.join(rendered)


def _split_words(text: str, case_format: CaseFormat) -> list[str]:
    if case_format.is_underscore:
        return text.split("_")
    words = _CAMEL_BOUNDARY.split(text)
    if len(words) > 1 and not words[0]:
        words = words[1:]
    return words


def _normalize_word(word: str, target: CaseFormat, *, first: bool) -> str:
    if target is CaseFormat.LOWER_UNDERSCORE:
        return word.lower()
    if target is CaseFormat.UPPER_UNDERSCORE:
        return word.upper()
    if target is CaseFormat.LOWER_CAMEL and first:
        return word.lower()
    return word[:1].upper() + word[1:].lower()


class Name:
    """An identifier made of pieces that can be rendered in any supported casing.

    Names compare equal when their lower_underscore renderings are equal.
    """

    def __init__(self, pieces: Iterable[NamePiece] = ()) -> None:
        self._pieces: tuple[NamePiece, ...] = tuple(pieces)

    @classmethod
    def from_lower_underscore(cls, *pieces: str) -> Name:
        """Build a name from lower_underscore fragments."""
        return cls._from_underscore(pieces, CaseFormat.LOWER_UNDERSCORE, _LOWER_UNDERSCORE)

    @classmethod
    def upper_underscore(cls, *pieces: str) -> Name:
        return cls._from_underscore(pieces, CaseFormat.UPPER_UNDERSCORE, _UPPER_UNDERSCORE)

    @classmethod
    def upper_camel(cls, *pieces: str) -> Name:
        """Build a name from UpperCamel fragments only."""
        for piece in pieces:
            if piece and not piece[0].isupper():
                raise NameFormatError(f"Name: identifier not in upper-camel: '{piece}'")
        return cls.any_camel(*pieces)

    @classmethod
    def lower_camel(cls, *pieces: str) -> Name:
        """Build a name from lowerCamel fragments only."""
        for piece in pieces:
            if piece and not piece[0].islower():
                raise NameFormatError(f"Name: identifier not in lower-camel: '{piece}'")
        return cls.any_camel(*pieces)

    @classmethod
    def any_camel(cls, *pieces: str) -> Name:
        """Build a name from lowerCamel or UpperCamel fragments.

        Upper-case acronyms inside a fragment (``IPProtocol``) become their own
        pieces so they render as one word (``ip_protocol``, ``IpProtocol``).
        """
        name_pieces = []
        for piece in pieces:
            if not piece:
                continue
            if not _CAMEL.match(piece):
                raise NameFormatError(f"Name: identifier not in camel case: '{piece}'")
            for sub_piece, is_acronym in split_by_upper_acronyms(piece):
                if is_acronym:
                    case_format = CaseFormat.UPPER_UNDERSCORE
                elif sub_piece[0].isupper():
                    case_format = CaseFormat.UPPER_CAMEL
                else:
                    case_format = CaseFormat.LOWER_CAMEL
                name_pieces.append(NamePiece(sub_piece, case_format))
        return cls(name_pieces)

    @classmethod
    def _from_underscore(
        cls, pieces: Iterable[str], case_format: CaseFormat, pattern: re.Pattern[str]
    ) -> Name:
        name_pieces = []
        for piece in pieces:
            if not piece:
                continue
            if not pattern.match(piece):
                raise NameFormatError(f"Name: identifier not in {case_format.value}: '{piece}'")
            name_pieces.append(NamePiece(piece, case_format))
        return cls(name_pieces)

    @property
    def pieces(self) -> tuple[NamePiece, ...]:
        return self._pieces

    def join(self, other: Name | str) -> Name:
        """Append another name (or a lower_underscore fragment) to this one."""
        if isinstance(other, str):
            other = Name.from_lower_underscore(other)
        return Name(self._pieces + other.pieces)

    def to_lower_underscore(self) -> str:
        return self._to_underscore(CaseFormat.LOWER_UNDERSCORE)

    def to_upper_underscore(self) -> str:
        return self._to_underscore(CaseFormat.UPPER_UNDERSCORE)

    def to_capitalized_lower_underscore(self) -> str:
        """Render lower_underscore, keeping a leading capital of the first piece."""
        rendered: list[str] = []
        for piece in self._pieces:
            text = convert_case(piece.identifier, piece.case_format, CaseFormat.LOWER_UNDERSCORE)
            if not rendered and piece.identifier[0].isupper():
                text = text[:1].upper() + text[1:]
            rendered.append(text)
        return "_".join(rendered)

    def to_upper_camel(self) -> str:
        return self._to_camel(CaseFormat.UPPER_CAMEL)

    def to_lower_camel(self) -> str:
        return self._to_camel(CaseFormat.LOWER_CAMEL)

    def _to_underscore(self, target: CaseFormat) -> str:
        return "_".join(
            convert_case(piece.identifier, piece.case_format, target) for piece in self._pieces
        )

    def _to_camel(self, target: CaseFormat) -> str:
        rendered = []
        for index, piece in enumerate(self._pieces):
            piece_target = target if index == 0 else CaseFormat.UPPER_CAMEL
            rendered.append(convert_case(piece.identifier, piece.case_format, piece_target))
        return "".join(rendered)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Name):
            return NotImplemented
        return self.to_lower_underscore() == other.to_lower_underscore()

    def __hash__(self) -> int:
        return hash(self.to_lower_underscore())

    def __repr__(self) -> str:
        return f"Name({self.to_lower_underscore()})"

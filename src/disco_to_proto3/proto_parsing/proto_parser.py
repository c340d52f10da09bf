"""Parser for proto3 files written by this converter."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NoReturn

from disco_to_proto3.proto_model import (
    PRIMITIVES,
    Field,
    GrpcMethod,
    GrpcService,
    Message,
    Option,
    OptionScalar,
    OptionValue,
    ProtoFile,
    ProtoFileMetadata,
    primitive,
    resolve_references,
)

_OPERATION_SERVICE_OPTION = "google.cloud.operation_service"

_HEADER_PATTERNS = {
    "source_file_name": re.compile(r"^//\s*Source Discovery file:\s*(\S+)", re.MULTILINE),
    "revision": re.compile(r"^//\s*Source file revision:\s*(\S+)", re.MULTILINE),
    "api_name": re.compile(r"^//\s*API name:\s*(\S+)", re.MULTILINE),
    "api_version": re.compile(r"^//\s*API version:\s*(\S+)", re.MULTILINE),
}
_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    | (?P<word>-?[\w.]+)
    | (?P<symbol>[{}\[\]()<>=;:,])
    """,
    re.VERBOSE | re.DOTALL,
)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class ProtoParseError(ValueError):
    """Raised when proto text does not have the shape this converter writes."""


class OptionValueError(ValueError):
    """Raised when an option carries a bare literal that is not a known option value."""


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    line: int


def parse_proto(text: str) -> ProtoFile:
    """Rebuild the proto model from proto3 ``text``.

    Descriptions are not read back; everything else the writer emits is.
    """
    parser = _Parser(_tokenize(text))
    proto_file = ProtoFile(metadata=_metadata(text, ""))
    parser.parse_into(proto_file)
    proto_file.metadata = _metadata(text, parser.package)
    resolve_references(proto_file.messages)
    for service in proto_file.services.values():
        for method in service.methods:
            method.input = _declared_message(proto_file, method.input, method.name)
            method.output = _declared_message(proto_file, method.output, method.name)
    proto_file.update_well_known_type_flags()
    return proto_file


def parse_option_value(text: str) -> OptionScalar | dict[str, OptionScalar]:
    """Parse the right-hand side of an option assignment."""
    parser = _Parser(_tokenize(text))
    value = parser.option_value()
    parser.expect_end()
    return value


def _metadata(text: str, package: str) -> ProtoFileMetadata:
    found = {}
    for key, pattern in _HEADER_PATTERNS.items():
        match = pattern.search(text)
        found[key] = match.group(1) if match else ""
    return ProtoFileMetadata(
        source_file_name=found["source_file_name"],
        api_name=found["api_name"],
        api_version=found["api_version"],
        revision=found["revision"],
        package=package,
        package_version=found["api_version"],
    )


def _declared_message(proto_file: ProtoFile, placeholder: Message, rpc_name: str) -> Message:
    message = proto_file.messages.get(placeholder.name)
    if message is None:
        raise ProtoParseError(f"rpc {rpc_name} uses undeclared message {placeholder.name}")
    return message


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    position = 0
    line = 1
    while position < len(text):
        match = _TOKEN_PATTERN.match(text, position)
        if match is None:
            raise ProtoParseError(f"line {line}: unexpected character {text[position]!r}")
        kind = match.lastgroup or ""
        if kind not in ("space", "comment"):
            tokens.append(_Token(kind, match.group(), line))
        line += match.group().count("\n")
        position = match.end()
    return tokens


def _unquote(literal: str) -> str:
    return re.sub(
        r"\\(.)", lambda match: _ESCAPES.get(match.group(1), match.group(1)), literal[1:-1]
    )


class _Parser:
    def __init__(self, tokens: list[_Token]) -> None:
        self._tokens = tokens
        self._index = 0
        self.package = ""

    def parse_into(self, proto_file: ProtoFile) -> None:
        while not self._at_end():
            keyword = self._word()
            if keyword == "syntax":
                self._expect("=")
                self._string()
                self._expect(";")
            elif keyword == "package":
                self.package = self._word()
                self._expect(";")
            elif keyword == "import":
                self._string()
                self._expect(";")
            elif keyword == "option":
                option = self._option_statement()
                self._note_lro(option, proto_file)
                proto_file.resource_options.append(option)
            elif keyword in ("message", "enum"):
                message = self._message(is_enum=keyword == "enum")
                proto_file.messages[message.name] = message
            elif keyword == "service":
                service = self._service(proto_file)
                proto_file.services[service.name] = service
            else:
                self._fail(f"unexpected statement '{keyword}'")

    def option_value(self) -> OptionScalar | dict[str, OptionScalar]:
        if self._accept("{"):
            properties: dict[str, OptionScalar] = {}
            while not self._accept("}"):
                key = self._word()
                self._expect(":")
                properties[key] = self._scalar()
                if not self._accept(","):
                    self._accept(";")
            return properties
        return self._scalar()

    def expect_end(self) -> None:
        if not self._at_end():
            self._fail(f"unexpected '{self._peek().text}'")

    def _message(self, *, is_enum: bool) -> Message:
        message = Message(self._word(), is_enum=is_enum)
        self._expect("{")
        while not self._accept("}"):
            if self._accept(";"):
                continue
            if self._peek().text == "enum":
                self._word()
                message.add_enum(self._message(is_enum=True))
            elif self._peek().text in ("message", "option", "oneof", "reserved"):
                self._fail(f"'{self._peek().text}' inside message {message.name} is not supported")
            elif is_enum:
                message.add_field(self._enum_value())
            else:
                message.add_field(self._field())

        for field in message.fields.values():
            if field.value_type.is_ref and field.value_type.name in message.enums:
                field.value_type = message.enums[field.value_type.name]
        return message

    def _field(self) -> Field:
        repeated = optional = False
        key_type: Message | None = None
        label = self._word()
        if label == "map":
            self._expect("<")
            key_type = _type_reference(self._word())
            self._expect(",")
            type_name = self._word()
            self._expect(">")
            repeated = True
        elif label in ("repeated", "optional"):
            repeated = label == "repeated"
            optional = label == "optional"
            type_name = self._word()
        else:
            type_name = label
        name = self._word()
        self._expect("=")
        self._number()
        field = Field(
            name,
            _type_reference(type_name),
            repeated=repeated,
            optional=optional,
            key_type=key_type,
            options=self._field_options(),
        )
        self._expect(";")
        return field

    def _enum_value(self) -> Field:
        name = self._word()
        self._expect("=")
        number = self._number()
        value = Field(
            name, primitive(""), first_in_order=number == 0, options=self._field_options()
        )
        self._expect(";")
        return value

    def _field_options(self) -> list[Option]:
        options: list[Option] = []
        if not self._accept("["):
            return options
        while True:
            options.append(self._option_body())
            if self._accept("]"):
                return options
            self._expect(",")

    def _service(self, proto_file: ProtoFile) -> GrpcService:
        service = GrpcService(self._word())
        self._expect("{")
        while not self._accept("}"):
            if self._accept(";"):
                continue
            keyword = self._word()
            if keyword == "option":
                option = self._option_statement()
                self._note_lro(option, proto_file)
                service.options.append(option)
            elif keyword == "rpc":
                service.methods.append(self._rpc(proto_file))
            else:
                self._fail(f"unexpected '{keyword}' in service {service.name}")
        return service

    def _rpc(self, proto_file: ProtoFile) -> GrpcMethod:
        name = self._word()
        self._expect("(")
        input_name = self._word()
        self._expect(")")
        if self._word() != "returns":
            self._fail(f"rpc {name} is missing 'returns'")
        self._expect("(")
        output_name = self._word()
        self._expect(")")
        method = GrpcMethod(
            name, Message(input_name, is_ref=True), Message(output_name, is_ref=True)
        )
        if self._accept(";"):
            return method
        self._expect("{")
        while not self._accept("}"):
            if self._accept(";"):
                continue
            if self._word() != "option":
                self._fail(f"rpc {name} may only contain options")
            option = self._option_statement()
            self._note_lro(option, proto_file)
            method.options.append(option)
        return method

    def _option_statement(self) -> Option:
        option = self._option_body()
        self._expect(";")
        return option

    def _option_body(self) -> Option:
        if self._accept("("):
            name = self._word()
            self._expect(")")
        else:
            name = self._word()
        self._expect("=")
        value = self.option_value()
        if isinstance(value, dict):
            return Option(name, value)
        return Option.scalar(name, value)

    def _scalar(self) -> OptionScalar:
        token = self._next()
        if token.kind == "string":
            parts = [_unquote(token.text)]
            while not self._at_end() and self._peek().kind == "string":
                parts.append(_unquote(self._next().text))
            return "".join(parts)
        if token.kind != "word":
            self._fail(f"expected an option value, found '{token.text}'", token)
        if token.text in ("true", "false"):
            return token.text == "true"
        try:
            return OptionValue(token.text)
        except ValueError as exc:
            raise OptionValueError(
                f"line {token.line}: unknown option value '{token.text}'"
            ) from exc

    @staticmethod
    def _note_lro(option: Option, proto_file: ProtoFile) -> None:
        if option.name == _OPERATION_SERVICE_OPTION:
            proto_file.has_lro_definitions = True

    def _number(self) -> int:
        token = self._next()
        try:
            return int(token.text)
        except ValueError as exc:
            raise ProtoParseError(
                f"line {token.line}: expected a field number, found '{token.text}'"
            ) from exc

    def _word(self) -> str:
        token = self._next()
        if token.kind != "word":
            self._fail(f"expected a name, found '{token.text}'", token)
        return token.text

    def _string(self) -> str:
        token = self._next()
        if token.kind != "string":
            self._fail(f"expected a string, found '{token.text}'", token)
        return _unquote(token.text)

    def _expect(self, symbol: str) -> None:
        token = self._next()
        if token.text != symbol:
            self._fail(f"expected '{symbol}', found '{token.text}'", token)

    def _accept(self, symbol: str) -> bool:
        if not self._at_end() and self._peek().kind == "symbol" and self._peek().text == symbol:
            self._index += 1
            return True
        return False

    def _next(self) -> _Token:
        if self._at_end():
            raise ProtoParseError("unexpected end of proto file")
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _peek(self) -> _Token:
        if self._at_end():
            raise ProtoParseError("unexpected end of proto file")
        return self._tokens[self._index]

    def _at_end(self) -> bool:
        return self._index >= len(self._tokens)

    def _fail(self, message: str, token: _Token | None = None) -> NoReturn:
        if token is None and not self._at_end():
            token = self._peek()
        location = f"line {token.line}: " if token is not None else ""
        raise ProtoParseError(location + message)


def _type_reference(name: str) -> Message:
    if name in PRIMITIVES and name:
        return primitive(name)
    return Message(name, is_ref=True)

"""proto3 source rendering."""

from __future__ import annotations

import datetime

from disco_to_proto3.proto_model import (
    Field,
    GrpcMethod,
    GrpcService,
    Message,
    Option,
    OptionScalar,
    OptionValue,
    ProtoFile,
)

GENERATOR_NAME = "disco-to-proto3-converter"

_LICENSE = (
    "Copyright {year} {holder}",
    "",
    'Licensed under the Apache License, Version 2.0 (the "License");',
    "you may not use this file except in compliance with the License.",
    "You may obtain a copy of the License at",
    "",
    "    http://www.apache.org/licenses/LICENSE-2.0",
    "",
    "Unless required by applicable law or agreed to in writing, software",
    'distributed under the License is distributed on an "AS IS" BASIS,',
    "WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.",
    "See the License for the specific language governing permissions and",
    "limitations under the License.",
)
_BASE_IMPORTS = (
    "google/api/annotations.proto",
    "google/api/client.proto",
    "google/api/field_behavior.proto",
)
_INDENT = "  "


def render_proto3(
    proto_file: ProtoFile,
    *,
    output_comments: bool = True,
    copyright_holder: str = "Google LLC",
) -> str:
    """Render ``proto_file`` as proto3 source text.

    The header comments carry the source metadata so that the output can be
    parsed back into an equivalent model.
    """
    writer = _ProtoWriter(output_comments=output_comments)
    metadata = proto_file.metadata
    year = metadata.copyright_year or str(datetime.date.today().year)
    for line in _LICENSE:
        writer.comment(line.format(year=year, holder=copyright_holder), force=True)
    writer.line()
    writer.comment(f"Generated by the {GENERATOR_NAME}. DO NOT EDIT!", force=True)
    writer.comment(f"Source Discovery file: {metadata.source_file_name}", force=True)
    writer.comment(f"Source file revision: {metadata.revision}", force=True)
    writer.comment(f"API name: {metadata.api_name}", force=True)
    writer.comment(f"API version: {metadata.api_version}", force=True)
    writer.line()
    writer.line('syntax = "proto3";')
    writer.line()
    writer.line(f"package {metadata.package};")
    writer.line()
    for path in _imports(proto_file):
        writer.line(f'import "{path}";')
    writer.line()

    for option in proto_file.resource_options:
        writer.option_statement(option)
        writer.line()

    if proto_file.messages:
        writer.comment("", force=True)
        writer.comment("Messages", force=True)
        writer.comment("", force=True)
        for message in proto_file.sorted_messages():
            writer.message(message)
            writer.line()

    if proto_file.services:
        writer.comment("", force=True)
        writer.comment("Services", force=True)
        writer.comment("", force=True)
        for service in proto_file.sorted_services():
            writer.service(service)
            writer.line()

    return writer.text()


def _imports(proto_file: ProtoFile) -> list[str]:
    imports = list(_BASE_IMPORTS)
    if proto_file.has_lro_definitions:
        imports.append("google/cloud/extended_operations.proto")
    if proto_file.has_any_fields:
        imports.append("google/protobuf/any.proto")
    if proto_file.uses_struct_types:
        imports.append("google/protobuf/struct.proto")
    return imports


class _ProtoWriter:
    def __init__(self, *, output_comments: bool) -> None:
        self._output_comments = output_comments
        self._lines: list[str] = []
        self._depth = 0

    def text(self) -> str:
        while self._lines and not self._lines[-1]:
            self._lines.pop()
        return "\n".join(self._lines) + "\n"

    def line(self, text: str = "") -> None:
        self._lines.append(_INDENT * self._depth + text if text else "")

    def comment(self, text: str, *, force: bool = False) -> None:
        if not (force or self._output_comments):
            return
        for comment_line in text.splitlines() or [""]:
            comment_line = comment_line.rstrip()
            self.line(f"// {comment_line}" if comment_line else "//")

    def description(self, description: str) -> None:
        if description:
            self.comment(description)

    def option_statement(self, option: Option) -> None:
        if option.is_scalar:
            self.line(f"option ({option.name}) = {_scalar(option.value)};")
            return
        self.line(f"option ({option.name}) = {{")
        self._depth += 1
        for key, value in option.properties.items():
            self.line(f"{key}: {_scalar(value)}")
        self._depth -= 1
        self.line("};")

    def message(self, message: Message) -> None:
        self.description(message.description)
        self.line(f"{'enum' if message.is_enum else 'message'} {message.name} {{")
        self._depth += 1
        for enum in message.sorted_enums():
            self.message(enum)
            self.line()
        for number, field in message.fields_with_numbers().items():
            self.description(field.description)
            self.line(_field_declaration(field, number, is_enum_value=message.is_enum))
        self._depth -= 1
        self.line("}")

    def service(self, service: GrpcService) -> None:
        self.description(service.description)
        self.line(f"service {service.name} {{")
        self._depth += 1
        for option in service.options:
            self.option_statement(option)
        for method in service.methods:
            self.line()
            self.method(method)
        self._depth -= 1
        self.line("}")

    def method(self, method: GrpcMethod) -> None:
        self.description(method.description)
        self.line(f"rpc {method.name}({method.input.name}) returns ({method.output.name}) {{")
        self._depth += 1
        for option in method.options:
            self.option_statement(option)
        self._depth -= 1
        self.line("}")


def _field_declaration(field: Field, number: int, *, is_enum_value: bool) -> str:
    if is_enum_value:
        declaration = f"{field.name} = {number}"
    elif field.key_type is not None:
        declaration = f"map<{field.key_type.name}, {field.value_type.name}> {field.name} = {number}"
    else:
        label = "repeated " if field.repeated else "optional " if field.optional else ""
        declaration = f"{label}{field.value_type.name} {field.name} = {number}"
    if field.options:
        rendered = ", ".join(_inline_option(option) for option in field.options)
        declaration += f" [{rendered}]"
    return declaration + ";"


def _inline_option(option: Option) -> str:
    if option.is_scalar:
        return f"({option.name}) = {_scalar(option.value)}"
    pairs = " ".join(f"{key}: {_scalar(value)}" for key, value in option.properties.items())
    return f"({option.name}) = {{{pairs}}}"


def _scalar(value: OptionScalar | None) -> str:
    if isinstance(value, OptionValue):
        return value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    escaped = str(value or "").replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'

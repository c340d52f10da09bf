"""Discovery Document to proto3 model conversion."""

from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from disco_to_proto3.conversion_config import ConversionConfiguration, describe_schema
from disco_to_proto3.discovery_model import Document, Method, Schema, SchemaFormat, SchemaType
from disco_to_proto3.naming import Name, singularize
from disco_to_proto3.proto_model import (
    Field,
    GrpcMethod,
    GrpcService,
    Message,
    Option,
    OptionValue,
    ProtoFile,
    ProtoFileMetadata,
    UnresolvedReferenceError,
    is_primitive,
    primitive,
    resolve_references,
)

from .enum_rewrites import cleanup_enum_naming_conflicts, convert_enum_fields_to_strings
from .lro_annotations import HTTP_OPTION, apply_lro_configuration

_LOGGER = logging.getLogger("disco_to_proto3.conversion")
_LOGGER.addHandler(logging.NullHandler())

# ManagedInstanceLastAttempt nests an ``Errors`` message inside another ``Errors``
# message; both shapes are emitted under the same name.
_COLLISION_ALLOWLIST = frozenset({"Errors"})

_RELATIVE_LINK = re.compile(r"(\[[\w\s]+\])\(/")
_URL_SCHEME_OR_TRAILING_SLASH = re.compile(r"^https://|/$")

_ANY_TYPE = "google.protobuf.Any"

_ZERO_VALUE_DESCRIPTION = "A value indicating that the enum field is not set."
_BODY_DESCRIPTION = "The body resource for this request"

_WELL_KNOWN_FORMATS = {
    SchemaFormat.ANY: "google.protobuf.Any",
    SchemaFormat.STRUCT: "google.protobuf.Struct",
    SchemaFormat.VALUE: "google.protobuf.Value",
    SchemaFormat.LISTVALUE: "google.protobuf.ListValue",
}
_OBJECT_FORMATS = {
    SchemaFormat.ANY: "google.protobuf.Any",
    SchemaFormat.STRUCT: "google.protobuf.Struct",
}
_INTEGER_FORMATS = {
    SchemaFormat.EMPTY: "int32",
    SchemaFormat.INT32: "int32",
    SchemaFormat.INT64: "int64",
    SchemaFormat.UINT32: "uint32",
    SchemaFormat.UINT64: "uint64",
    SchemaFormat.FIXED32: "fixed32",
    SchemaFormat.FIXED64: "fixed64",
}
_NUMBER_FORMATS = {
    SchemaFormat.EMPTY: "float",
    SchemaFormat.FLOAT: "float",
    SchemaFormat.DOUBLE: "double",
}
_STRING_FORMATS = {
    SchemaFormat.EMPTY: "string",
    SchemaFormat.BYTE: "string",
    SchemaFormat.DATE: "string",
    SchemaFormat.DATETIME: "string",
    SchemaFormat.INT32: "int32",
    SchemaFormat.INT64: "int64",
    SchemaFormat.UINT32: "uint32",
    SchemaFormat.UINT64: "uint64",
    SchemaFormat.FIXED64: "fixed64",
    SchemaFormat.FLOAT: "float",
    SchemaFormat.DOUBLE: "double",
}


class ConversionError(Exception):
    """Raised when a Discovery Document cannot be converted to proto3."""


class UnsupportedSchemaError(ConversionError):
    """Raised for schemas that have no proto3 equivalent."""


class MessageCollisionError(ConversionError):
    """Raised when two different schemas produce the same message name."""


class ServiceNameCollisionError(ConversionError):
    """Raised when a service name cannot be made distinct from message names."""


class RpcRequestMessageConflictError(ConversionError):
    """Raised when no free name is left for an rpc request message."""


class InconsistentApiVersionsError(ConversionError):
    """Raised when the methods of one service declare different API versions."""

    def __init__(self, service_name: str, versions: Iterable[str]) -> None:
        self.service_name = service_name
        self.versions = tuple(sorted(versions))
        quoted = " ".join(f'"{version}"' for version in self.versions)
        super().__init__(
            f'methods for service "{service_name}" have inconsistent API version '
            f"designators: [{quoted}]"
        )


class IllegalAnyFieldError(ConversionError):
    """Raised when a google.protobuf.Any field sits outside an error details list."""


@dataclass(frozen=True)
class ConversionOptions:
    """Switches that shape one conversion."""

    service_ignorelist: frozenset[str] = frozenset()
    message_ignorelist: frozenset[str] = frozenset()
    relative_link_prefix: str = ""
    enums_as_strings: bool = False
    inline_configuration: ConversionConfiguration | None = None


class DocumentToProtoConverter:
    """Build a :class:`ProtoFile` from a Discovery :class:`Document`.

    Schemas are converted first so that request and response messages of the
    methods can refer to them; forward references between schemas are resolved
    once all schemas are built.
    """

    def __init__(
        self,
        document: Document,
        document_file_name: str,
        options: ConversionOptions | None = None,
    ) -> None:
        self._document = document
        self._options = options or ConversionOptions()
        self._metadata = ProtoFileMetadata(
            source_file_name=document_file_name,
            api_name=document.name,
            api_version=document.version,
            revision=document.revision,
            package=f"google.cloud.{document.name}.{document.version}",
            package_version=document.version,
        )
        self._messages: dict[str, Message] = {}
        self._services: dict[str, GrpcService] = {}

    def convert(self) -> ProtoFile:
        self._messages = {}
        self._services = {}
        self._read_schemas()
        self._read_resources()
        cleanup_enum_naming_conflicts(self._messages.values())

        proto_file = ProtoFile(
            metadata=self._metadata, messages=self._messages, services=self._services
        )
        proto_file.has_lro_definitions = apply_lro_configuration(proto_file)
        _check_any_field_placement(proto_file)
        proto_file.update_well_known_type_flags()
        if self._options.enums_as_strings:
            convert_enum_fields_to_strings(self._messages.values())

        _LOGGER.info(
            "Converted %s %s: %d messages, %d services",
            self._document.name,
            self._document.version,
            len(self._messages),
            len(self._services),
        )
        return proto_file

    def _read_schemas(self) -> None:
        for key, schema in self._document.schemas.items():
            self._schema_to_field(schema, optional=True, path=f"schemas.{key}")
        resolve_references(self._messages)

    def _schema_to_field(self, schema: Schema, *, optional: bool, path: str) -> Field:
        name = Name.any_camel(schema.key).to_capitalized_lower_underscore()
        description = self._sanitize(schema.description)
        value_type: Message | None = None
        repeated = False
        key_type: Message | None = None

        if schema.type is SchemaType.ANY:
            if schema.format not in _WELL_KNOWN_FORMATS:
                raise UnsupportedSchemaError(
                    f"Schema {path} has type 'any' without a well-known type format."
                )
            value_type = primitive(_WELL_KNOWN_FORMATS[schema.format])
        elif schema.type is SchemaType.ARRAY:
            if schema.format is SchemaFormat.LISTVALUE:
                value_type = primitive("google.protobuf.ListValue")
            else:
                repeated = True
        elif schema.type is SchemaType.BOOLEAN:
            value_type = primitive("bool")
        elif schema.type is SchemaType.EMPTY:
            if not schema.reference:
                raise UnsupportedSchemaError(f"Schema {path} has neither a type nor a $ref.")
            value_type = Message(schema.reference, is_ref=True)
        elif schema.type is SchemaType.INTEGER:
            value_type = _format_type(_INTEGER_FORMATS, schema, path)
        elif schema.type is SchemaType.NUMBER:
            value_type = _format_type(_NUMBER_FORMATS, schema, path)
        elif schema.type is SchemaType.OBJECT:
            if schema.format in _OBJECT_FORMATS:
                value_type = primitive(_OBJECT_FORMATS[schema.format])
            elif schema.format is not SchemaFormat.EMPTY:
                raise UnsupportedSchemaError(
                    f"Schema {path} has unexpected format '{schema.format.value}' for an object."
                )
            elif schema.additional_properties is not None:
                repeated = True
                key_type = primitive("string")
            else:
                value_type = Message(
                    self._inline_message_name(schema, path), description=description
                )
        elif schema.is_enum and schema.identifier:
            value_type = self._enum_message(schema)
        else:
            value_type = _format_type(_STRING_FORMATS, schema, path)

        if repeated:
            if key_type is None:
                element, element_path = schema.items, f"{path}.items"
            else:
                element, element_path = schema.additional_properties, f"{path}.additionalProperties"
            if element is None:
                raise UnsupportedSchemaError(f"Array schema {path} has no items.")
            value_type = self._schema_to_field(element, optional=True, path=element_path).value_type

        if value_type is None:
            raise UnsupportedSchemaError(f"Schema {path} has no resolvable type.")
        field = Field(
            name,
            value_type,
            repeated=repeated,
            optional=optional and not repeated,
            key_type=key_type,
            description=description,
        )
        if schema.type is not SchemaType.EMPTY and is_primitive(value_type):
            return field

        for key, child in schema.properties.items():
            child_field = self._schema_to_field(child, optional=True, path=f"{path}.{key}")
            value_type.add_field(child_field)
            if child_field.value_type.is_enum:
                value_type.add_enum(child_field.value_type)

        if not value_type.is_enum:
            self._register_message(value_type)
        return field

    def _register_message(self, message: Message) -> None:
        existing = self._messages.get(message.name)
        if existing is None or existing.is_ref:
            self._put_message(message)
        elif message.is_ref:
            return
        elif message != existing:
            if message.name in _COLLISION_ALLOWLIST:
                _LOGGER.debug("Keeping the first definition of message %s", message.name)
                return
            raise MessageCollisionError(
                f"Message collision detected for {message.name}: existing fields "
                f"{sorted(existing.fields)}, new fields {sorted(message.fields)}"
            )
        elif len(message.description) < len(existing.description):
            # The shorter description of two identical messages wins.
            self._put_message(message)

    def _put_message(self, message: Message) -> None:
        if message.name in self._options.message_ignorelist:
            _LOGGER.debug("Skipping ignored message %s", message.name)
            return
        self._messages[message.name] = message

    def _inline_message_name(self, schema: Schema, path: str) -> str:
        name = _message_name(schema, path)
        config = self._options.inline_configuration
        if config is None or schema.id:
            return name
        name = config.message_name_for_path(path) or name
        config.add_inline_field(path, name, describe_schema(schema))
        return name

    def _enum_message(self, schema: Schema) -> Message:
        identifier = schema.identifier
        if identifier[0].isupper():
            name = Name.any_camel(identifier).to_upper_camel() + "Enum"
        else:
            name = Name.any_camel(identifier).to_upper_camel()
        enum = Message(name, is_enum=True, description=self._sanitize(schema.description))

        no_format = primitive("")
        zero_value = Field(
            Name.any_camel("Undefined", name).to_upper_underscore(),
            no_format,
            description=self._sanitize(_ZERO_VALUE_DESCRIPTION),
            first_in_order=True,
        )
        enum.add_field(zero_value)
        descriptions = schema.enum_descriptions[: len(schema.enum_values)]
        for value, value_description in itertools.zip_longest(
            schema.enum_values, descriptions, fillvalue=""
        ):
            if value == zero_value.name:
                continue
            enum.add_field(
                Field(value, no_format, description=self._sanitize(value_description))
            )
        return enum

    def _read_resources(self) -> None:
        document = self._document
        endpoint_suffix = document.base_url[len(document.root_url) :]
        if not endpoint_suffix.startswith("/"):
            endpoint_suffix = "/" + endpoint_suffix
        endpoint_suffix = endpoint_suffix.rstrip("/")
        endpoint = _URL_SCHEME_OR_TRAILING_SLASH.sub("", document.root_url)

        for resource_key, methods in document.resources.items():
            original_name = Name.any_camel(resource_key).to_upper_camel()
            if original_name in self._options.service_ignorelist:
                _LOGGER.debug("Skipping ignored service %s", original_name)
                continue
            service_name = self._avoid_name_collisions(original_name)
            service = GrpcService(service_name, description=f"The {original_name} API.")
            service.options.append(Option.scalar("google.api.default_host", endpoint))

            api_versions: set[str] = set()
            scopes: list[str] | None = None
            for method in methods:
                scopes = list(method.scopes) if scopes is None else [
                    scope for scope in scopes if scope in method.scopes
                ]
                api_versions.add(method.api_version.strip())
                service.methods.append(self._convert_method(method, service_name, endpoint_suffix))

            if len(api_versions) != 1:
                raise InconsistentApiVersionsError(service_name, api_versions)
            if scopes:
                service.options.append(Option.scalar("google.api.oauth_scopes", ",".join(scopes)))
            api_version = next(iter(api_versions))
            if api_version:
                service.options.append(Option.scalar("google.api.api_version", api_version))
            self._services[service_name] = service

    def _convert_method(
        self, method: Method, service_name: str, endpoint_suffix: str
    ) -> GrpcMethod:
        method_name = Name.any_camel(method.id.split(".")[-1]).to_upper_camel()

        request_name = _rpc_message_name(method, "request")
        if request_name in self._messages:
            alternative = _rpc_message_name(method, "rpc", "request")
            if alternative in self._messages:
                raise RpcRequestMessageConflictError(
                    f"could not construct request message name for {service_name}.{method_name}: "
                    f"tried '{request_name}', '{alternative}'"
                )
            request_name = alternative
        request = Message(
            request_name,
            description=self._sanitize(
                f"A request message for {service_name}.{method_name}. "
                "See the method description for details."
            ),
        )

        http_path = method.flat_path
        signature: dict[str, str | None] = dict.fromkeys(method.required_param_names)
        for parameters, in_path in ((method.path_params, True), (method.query_params, False)):
            for parameter in parameters.values():
                identifier = parameter.identifier
                required = identifier in signature
                parameter_field = self._schema_to_field(
                    parameter, optional=not required, path=f"methods.{method.id}.{identifier}"
                )
                if required:
                    parameter_field.options.append(
                        Option.scalar("google.api.field_behavior", OptionValue.REQUIRED)
                    )
                    signature[identifier] = parameter_field.name
                request.add_field(parameter_field)
                if parameter_field.value_type.is_enum:
                    request.add_enum(parameter_field.value_type)
                if in_path:
                    http_path = http_path.replace(
                        "{" + identifier + "}", "{" + parameter_field.name + "}"
                    )

        http = Option(HTTP_OPTION, {method.http_method.lower(): f"{endpoint_suffix}/{http_path}"})
        if method.request is not None:
            body_type = self._referenced_message(method, method.request.reference)
            body_name = Name.any_camel(body_type.name, "resource").to_lower_underscore()
            request.add_field(
                Field(
                    body_name,
                    body_type,
                    description=self._sanitize(_BODY_DESCRIPTION),
                    options=[Option.scalar("google.api.field_behavior", OptionValue.REQUIRED)],
                )
            )
            http.properties["body"] = body_name
            signature[""] = body_name
        self._put_message(request)

        if method.response is not None:
            output = self._referenced_message(method, method.response.reference)
        else:
            output = Message(
                _rpc_message_name(method, "response"),
                description=(
                    f"A response message for {service_name}.{method_name}. "
                    "See the method description for details."
                ),
            )
            self._put_message(output)

        grpc_method = GrpcMethod(
            method_name, request, output, description=self._sanitize(method.description)
        )
        grpc_method.options.append(http)
        signature_fields = [name for name in signature.values() if name]
        if signature_fields:
            grpc_method.options.append(
                Option.scalar("google.api.method_signature", ",".join(signature_fields))
            )
        return grpc_method

    def _referenced_message(self, method: Method, reference: str) -> Message:
        message = self._messages.get(reference)
        if message is None:
            raise UnresolvedReferenceError(
                f"Method {method.id} references unknown message '{reference}'."
            )
        return message

    def _avoid_name_collisions(self, original_name: str) -> str:
        service_name = original_name
        if original_name in self._messages:
            service_name = original_name + "Service"
            if service_name in self._messages:
                raise ServiceNameCollisionError(
                    f'could not resolve name collision for service "{original_name}": '
                    f'messages "{original_name}" and "{service_name}" both exist'
                )
        if service_name in self._services:
            raise ServiceNameCollisionError(
                f'multiple definitions of services named "{service_name}"'
            )
        return service_name

    def _sanitize(self, description: str) -> str:
        if not description:
            return description
        prefix = self._options.relative_link_prefix
        if prefix:
            description = _RELATIVE_LINK.sub(
                lambda match: f"{match.group(1)}({prefix}/", description
            )
        return description.replace("{$api_version}", self._metadata.package_version)


def convert_document(
    document: Document, document_file_name: str, options: ConversionOptions | None = None
) -> ProtoFile:
    """Convert ``document`` in one call."""
    return DocumentToProtoConverter(document, document_file_name, options).convert()


def _check_any_field_placement(proto_file: ProtoFile) -> None:
    """Allow ``google.protobuf.Any`` only as ``*.error.details`` below rpc messages.

    Only request and response messages are walked; a message reached from
    several places is checked once per field name that leads to it.
    """
    visited: set[tuple[int, str]] = set()
    for service in proto_file.services.values():
        for method in service.methods:
            for root in (method.input, method.output):
                _check_any_fields(root, root.name, visited)


def _check_any_fields(message: Message, path: str, visited: set[tuple[int, str]]) -> None:
    for field in message.sorted_fields():
        field_path = f"{path}.{field.name}"
        if field.value_type.name == _ANY_TYPE:
            if not field_path.endswith(".error.details"):
                raise IllegalAnyFieldError(
                    f'illegal ANY type not under "*.error.details": {field_path}'
                )
            continue
        marker = (id(field.value_type), field.name)
        if marker not in visited:
            visited.add(marker)
            _check_any_fields(field.value_type, field_path, visited)


def _format_type(formats: dict[SchemaFormat, str], schema: Schema, path: str) -> Message:
    type_name = formats.get(schema.format)
    if type_name is None:
        raise UnsupportedSchemaError(
            f"Schema {path} has unexpected format '{schema.format.value}' for type "
            f"'{schema.type.value}'."
        )
    return primitive(type_name)


def _message_name(schema: Schema, path: str) -> str:
    identifier = schema.identifier
    if not identifier:
        raise UnsupportedSchemaError(f"Schema {path} has no name to derive a message from.")
    if identifier[0].islower():
        return Name.any_camel(identifier).to_upper_camel()
    return identifier


def _rpc_message_name(method: Method, *suffixes: str) -> str:
    pieces = method.id.split(".")
    resource_name = pieces[-2] if len(pieces) > 1 else ""
    if not method.is_plural_method:
        resource_name = singularize(resource_name)
    return Name.any_camel(pieces[-1], resource_name, *suffixes).to_upper_camel()

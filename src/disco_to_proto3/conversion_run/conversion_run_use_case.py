"""Conversion run use-case service."""

from __future__ import annotations

import logging
from importlib import metadata
from pathlib import Path

from disco_to_proto3.conversion import (
    ConversionError,
    ConversionOptions,
    DocumentToProtoConverter,
    LroConfigurationError,
)
from disco_to_proto3.conversion_config import (
    ConfigurationDriftError,
    ConfigurationFileError,
    ConversionConfiguration,
    load_conversion_configuration,
    write_conversion_configuration,
)
from disco_to_proto3.discovery_model import (
    DiscoveryFormatError,
    Document,
    PathTemplateError,
    load_discovery_document,
)
from disco_to_proto3.emitters import render_gapic_yaml, render_proto3, render_service_config
from disco_to_proto3.naming import NameFormatError
from disco_to_proto3.proto_merging import merge_proto_files
from disco_to_proto3.proto_model import ProtoFile, UnresolvedReferenceError
from disco_to_proto3.proto_parsing import OptionValueError, ProtoParseError, parse_proto

from .run_contracts import ConversionOutcome, ConversionRequest, OutputKind

DISTRIBUTION_NAME = "disco-to-proto3-converter"

_LOGGER = logging.getLogger("disco_to_proto3.run")
_LOGGER.addHandler(logging.NullHandler())

_DOMAIN_ERRORS = (
    ConversionError,
    LroConfigurationError,
    ConfigurationDriftError,
    ConfigurationFileError,
    DiscoveryFormatError,
    PathTemplateError,
    NameFormatError,
    UnresolvedReferenceError,
    ProtoParseError,
    OptionValueError,
    OSError,
)


class ConversionRunError(Exception):
    """Raised when a conversion run cannot be completed."""


def execute_conversion_run(request: ConversionRequest) -> ConversionOutcome:
    """Convert, merge and render; files are written only after every step succeeded."""
    if not request.discovery_doc_path and not request.previous_proto_path:
        raise ConversionRunError("Provide a Discovery Document, a previous proto file, or both.")
    if request.inline_config_path and not request.discovery_doc_path:
        raise ConversionRunError("An inline schema configuration needs a Discovery Document.")

    try:
        previous = _read_previous_proto(request.previous_proto_path)
        configuration: ConversionConfiguration | None = None
        if request.discovery_doc_path:
            document = load_discovery_document(request.discovery_doc_path)
            configuration = _prepare_configuration(request, document)
            proto_file = _convert(request, document, configuration)
            if previous is not None:
                merge_proto_files(proto_file, previous)
        elif previous is None:
            raise ConversionRunError(
                "Provide a Discovery Document, a previous proto file, or both."
            )
        else:
            _LOGGER.info("No Discovery Document, re-emitting %s", request.previous_proto_path)
            proto_file = previous
        rendered = _render(request, proto_file)
        if configuration is not None:
            # Drift errors surface here, before any file is written.
            configuration.to_mapping()
    except _DOMAIN_ERRORS as exc:
        raise ConversionRunError(str(exc)) from exc

    try:
        written = _write_outputs(request.output_dir, rendered)
        written_configuration = None
        if configuration is not None:
            written_configuration = write_conversion_configuration(
                configuration, _configuration_output_path(request)
            )
    except (ConfigurationFileError, ConfigurationDriftError, OSError) as exc:
        raise ConversionRunError(str(exc)) from exc

    return ConversionOutcome(
        written_paths=written,
        message_count=len(proto_file.messages),
        service_count=len(proto_file.services),
        inline_config_path=written_configuration,
    )


def converter_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _read_previous_proto(path: str | None) -> ProtoFile | None:
    if not path:
        return None
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ProtoParseError(f"Invalid proto file {path}: {exc}") from exc
    return parse_proto(text)


def _prepare_configuration(
    request: ConversionRequest, document: Document
) -> ConversionConfiguration | None:
    if request.inline_config_path:
        configuration = load_conversion_configuration(request.inline_config_path)
    elif request.inline_config_output_path:
        configuration = ConversionConfiguration()
    else:
        return None
    configuration.set_config_metadata(
        converter_version=converter_version(),
        api_version=document.version,
        discovery_revision=document.revision,
    )
    return configuration


def _convert(
    request: ConversionRequest,
    document: Document,
    configuration: ConversionConfiguration | None,
) -> ProtoFile:
    options = ConversionOptions(
        service_ignorelist=frozenset(request.service_ignorelist),
        message_ignorelist=frozenset(request.message_ignorelist),
        relative_link_prefix=request.relative_link_prefix,
        enums_as_strings=request.enums_as_strings,
        inline_configuration=configuration,
    )
    file_name = Path(request.discovery_doc_path or "").name
    return DocumentToProtoConverter(document, file_name, options).convert()


def _render(request: ConversionRequest, proto_file: ProtoFile) -> dict[Path, str]:
    stem = request.output_stem or proto_file.metadata.api_name or "output"
    rendered: dict[Path, str] = {}
    for kind in request.output_kinds:
        if kind is OutputKind.PROTO:
            text = render_proto3(proto_file, output_comments=request.output_comments)
        elif kind is OutputKind.SERVICE_CONFIG:
            text = render_service_config(proto_file)
        else:
            text = render_gapic_yaml(proto_file)
        rendered[Path(f"{stem}{kind.file_suffix}")] = text
    return rendered


def _write_outputs(output_dir: str, rendered: dict[Path, str]) -> tuple[Path, ...]:
    destination = Path(output_dir)
    destination.mkdir(parents=True, exist_ok=True)
    written = []
    for file_name, text in rendered.items():
        path = destination / file_name
        path.write_text(text, encoding="utf-8")
        written.append(path.resolve())
    return tuple(written)


def _configuration_output_path(request: ConversionRequest) -> str:
    return request.inline_config_output_path or request.inline_config_path or ""

"""GAPIC v2 yaml rendering."""

from __future__ import annotations

from typing import Any

import yaml

from disco_to_proto3.conversion.lro_annotations import OPERATION_SERVICE_OPTION
from disco_to_proto3.proto_model import ProtoFile

from .proto3_writer import GENERATOR_NAME

_LONG_RUNNING = {
    "initial_poll_delay_millis": 500,
    "poll_delay_multiplier": 1.5,
    "max_poll_delay_millis": 20000,
    "total_poll_timeout_millis": 600000,
}


def build_gapic_config(proto_file: ProtoFile) -> dict[str, Any]:
    """GAPIC settings; only services with long-running methods are listed."""
    package = proto_file.metadata.package
    interfaces = []
    for service in proto_file.sorted_services():
        methods = [
            {"name": method.name, "long_running": dict(_LONG_RUNNING)}
            for method in service.methods
            if method.option(OPERATION_SERVICE_OPTION) is not None
        ]
        if methods:
            interfaces.append({"name": f"{package}.{service.name}", "methods": methods})
    return {
        "type": "com.google.api.codegen.ConfigProto",
        "config_schema_version": "2.0.0",
        "language_settings": {"java": {"package_name": f"com.{package}"}},
        "interfaces": interfaces,
    }


def render_gapic_yaml(proto_file: ProtoFile) -> str:
    metadata = proto_file.metadata
    header = [
        f"# Generated by the {GENERATOR_NAME}. DO NOT EDIT!",
        f"# Source Discovery file: {metadata.source_file_name}",
        f"# Source file revision: {metadata.revision}",
        f"# API name: {metadata.api_name}",
        f"# API version: {metadata.api_version}",
        "",
    ]
    body = yaml.safe_dump(build_gapic_config(proto_file), sort_keys=False)
    return "\n".join(header) + body

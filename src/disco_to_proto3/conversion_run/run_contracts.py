"""Conversion run entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class OutputKind(str, Enum):
    """Artifacts a run can write, each with its file name suffix."""

    PROTO = "proto"
    SERVICE_CONFIG = "service_config"
    GAPIC_YAML = "gapic_yaml"

    @property
    def file_suffix(self) -> str:
        return _FILE_SUFFIXES[self]


_FILE_SUFFIXES = {
    OutputKind.PROTO: ".proto",
    OutputKind.SERVICE_CONFIG: "_grpc_service_config.json",
    OutputKind.GAPIC_YAML: "_gapic.yaml",
}


@dataclass(frozen=True)
class ConversionRequest:
    """Input contract for one conversion run."""

    output_dir: str
    output_kinds: tuple[OutputKind, ...] = (OutputKind.PROTO,)
    discovery_doc_path: str | None = None
    previous_proto_path: str | None = None
    output_stem: str | None = None
    service_ignorelist: tuple[str, ...] = ()
    message_ignorelist: tuple[str, ...] = ()
    relative_link_prefix: str = ""
    enums_as_strings: bool = False
    output_comments: bool = True
    inline_config_path: str | None = None
    inline_config_output_path: str | None = None


@dataclass(frozen=True)
class ConversionOutcome:
    """Output contract for one completed run."""

    written_paths: tuple[Path, ...]
    message_count: int
    service_count: int
    inline_config_path: Path | None = None

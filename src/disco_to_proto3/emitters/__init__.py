"""Emitter exports."""

from .gapic_yaml_writer import build_gapic_config, render_gapic_yaml
from .proto3_writer import GENERATOR_NAME, render_proto3
from .service_config_writer import build_service_config, render_service_config

__all__ = [
    "GENERATOR_NAME",
    "build_gapic_config",
    "build_service_config",
    "render_gapic_yaml",
    "render_proto3",
    "render_service_config",
]

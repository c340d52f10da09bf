"""Flat path normalization for single-segment expansion markers."""

from __future__ import annotations

import re

from disco_to_proto3.naming import Name

_EXPANSION_MARKER = re.compile(r"\{\+([a-zA-Z0-9]+)\}")
_SUBRESOURCE_TOKEN = re.compile(r"\{[^}]*\}")


class PathTemplateError(ValueError):
    """Raised when a flat path cannot be matched against its path template."""


class UnsupportedPathTemplateError(PathTemplateError):
    """Raised when a path template uses more than one expansion marker."""


def normalize_path(path: str | None, flat_path: str) -> str:
    """Rewrite ``flat_path`` so the ``{+token}`` expansion of ``path`` becomes ``{token=...}``.

    The part of ``flat_path`` that the marker covers is kept with every nested
    ``{...}`` replaced by ``*``:

    >>> normalize_path("projects/{+project}/zones", "projects/{project}/zones")
    'projects/{project=*}/zones'
    """
    if path is None:
        return flat_path
    markers = list(_EXPANSION_MARKER.finditer(path))
    if not markers:
        return flat_path
    if len(markers) > 1:
        raise UnsupportedPathTemplateError(
            f"Path template '{path}' has more than one expansion marker."
        )

    marker = markers[0]
    prefix = path[: marker.start()]
    suffix = path[marker.end() :]
    if (
        not flat_path.startswith(prefix)
        or not flat_path.endswith(suffix)
        or len(flat_path) < len(prefix) + len(suffix)
    ):
        raise PathTemplateError(
            f"Flat path '{flat_path}' does not match path template '{path}'."
        )

    subresource = flat_path[len(prefix) : len(flat_path) - len(suffix)]
    collapsed = _SUBRESOURCE_TOKEN.sub("*", subresource)
    token = Name.any_camel(marker.group(1)).to_lower_underscore()
    return f"{prefix}{{{token}={collapsed}}}{suffix}"

"""Discovery Document root and loader."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .method import Method
from .schema import DiscoveryFormatError, Schema


@dataclass(eq=False)
class Document:
    """Root of a parsed Discovery Document."""

    name: str
    version: str
    revision: str = ""
    title: str = ""
    description: str = ""
    root_url: str = ""
    service_path: str = ""
    base_url: str = ""
    schemas: dict[str, Schema] = field(default_factory=dict)
    resources: dict[str, list[Method]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, root: Any) -> Document:
        if not isinstance(root, Mapping):
            raise DiscoveryFormatError("Discovery Document root must be a JSON object.")
        name = _required_string(root, "name")
        version = _required_string(root, "version")
        root_url = str(root.get("rootUrl") or "")
        service_path = str(root.get("servicePath") or "")
        document = cls(
            name=name,
            version=version,
            revision=str(root.get("revision") or ""),
            title=str(root.get("title") or ""),
            description=str(root.get("description") or ""),
            root_url=root_url,
            service_path=service_path,
            base_url=str(root.get("baseUrl") or root_url + service_path),
        )

        schemas = root.get("schemas") or {}
        if not isinstance(schemas, Mapping):
            raise DiscoveryFormatError("Discovery Document schemas must be a JSON object.")
        document.schemas = {
            key: Schema.from_json(node, key, document) for key, node in schemas.items()
        }
        _collect_resources(root.get("resources") or {}, "", document)
        return document


def load_discovery_document(path: Path | str) -> Document:
    """Read and parse a Discovery Document JSON file."""
    document_path = Path(path)
    if not document_path.exists():
        raise DiscoveryFormatError(f"Discovery Document not found: {document_path}")
    try:
        root = json.loads(document_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DiscoveryFormatError(f"Invalid Discovery Document {document_path}: {exc}") from exc
    return Document.from_json(root)


def _collect_resources(resources: Any, prefix: str, document: Document) -> None:
    if not isinstance(resources, Mapping):
        raise DiscoveryFormatError("Discovery Document resources must be a JSON object.")
    for resource_name, resource_node in resources.items():
        if not isinstance(resource_node, Mapping):
            raise DiscoveryFormatError(f"Resource '{resource_name}' must be a JSON object.")
        key = prefix + resource_name[:1].upper() + resource_name[1:] if prefix else resource_name
        methods_node = resource_node.get("methods") or {}
        if not isinstance(methods_node, Mapping):
            raise DiscoveryFormatError(
                f"Resource '{resource_name}' methods must be a JSON object."
            )
        methods = sorted(Method.from_json(node, document) for node in methods_node.values())
        if methods:
            document.resources[key] = methods
        _collect_resources(resource_node.get("resources") or {}, key, document)


def _required_string(root: Mapping[str, Any], key: str) -> str:
    value = root.get(key)
    if not isinstance(value, str) or not value.strip():
        raise DiscoveryFormatError(f"Discovery Document requires a non-empty '{key}'.")
    return value

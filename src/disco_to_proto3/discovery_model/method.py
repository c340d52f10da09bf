"""Discovery Document methods."""

from __future__ import annotations

import functools
import weakref
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .path_templates import normalize_path
from .schema import DiscoveryFormatError, Schema, SchemaType

_UNSERIALIZABLE_PARAMETER_TYPES = (SchemaType.ANY, SchemaType.ARRAY, SchemaType.OBJECT)


@functools.total_ordering
@dataclass(eq=False)
class Method:
    """One REST operation of a resource; methods compare and sort by ``id``."""

    id: str
    http_method: str
    path: str
    flat_path: str
    description: str = ""
    api_version: str = ""
    parameters: dict[str, Schema] = field(default_factory=dict)
    path_params: dict[str, Schema] = field(default_factory=dict)
    query_params: dict[str, Schema] = field(default_factory=dict)
    required_param_names: tuple[str, ...] = ()
    request: Schema | None = None
    response: Schema | None = None
    scopes: tuple[str, ...] = ()
    supports_media_download: bool = False
    supports_media_upload: bool = False
    _parent: weakref.ReferenceType[Any] | None = field(default=None, repr=False)

    @classmethod
    def from_json(cls, node: Any, parent: object | None = None) -> Method:
        if not isinstance(node, Mapping):
            raise DiscoveryFormatError("Method definition must be a JSON object.")
        method_id = str(node.get("id") or "")
        if not method_id:
            raise DiscoveryFormatError("Method definition requires an id.")
        path = str(node.get("path") or "")
        flat_path = str(node.get("flatPath") or path)

        method = cls(
            id=method_id,
            http_method=str(node.get("httpMethod") or ""),
            path=path,
            flat_path=normalize_path(path, flat_path),
            description=str(node.get("description") or ""),
            api_version=str(node.get("apiVersion") or ""),
            required_param_names=tuple(str(name) for name in node.get("parameterOrder") or []),
            scopes=tuple(str(scope) for scope in node.get("scopes") or []),
            supports_media_download=bool(node.get("supportsMediaDownload", False)),
            supports_media_upload=bool(node.get("supportsMediaUpload", False)),
        )
        method.set_parent(parent)

        for name, parameter_node in (node.get("parameters") or {}).items():
            parameter = Schema.from_json(parameter_node, name, method)
            if parameter.type in _UNSERIALIZABLE_PARAMETER_TYPES:
                raise DiscoveryFormatError(
                    f"Parameter '{name}' of method {method_id} has unsupported type "
                    f"'{parameter.type.value}'."
                )
            method.parameters[name] = parameter
            location = parameter.location.lower()
            if location == "path":
                method.path_params[name] = parameter
            elif location == "query":
                method.query_params[name] = parameter

        method.request = _referenced_schema(node.get("request"), "request", method)
        method.response = _referenced_schema(node.get("response"), "response", method)
        return method

    @property
    def parent(self) -> Any:
        return self._parent() if self._parent is not None else None

    def set_parent(self, parent: object | None) -> None:
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def is_plural_method(self) -> bool:
        return "maxResults" in self.parameters

    def get_document(self) -> Any:
        node: Any = self
        while node is not None and getattr(node, "parent", None) is not None:
            node = node.parent
        return node if node is not self else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Method):
            return NotImplemented
        return self.id == other.id

    def __lt__(self, other: Method) -> bool:
        return self.id < other.id

    def __hash__(self) -> int:
        return hash(self.id)


def _referenced_schema(node: Any, key: str, parent: Method) -> Schema | None:
    schema = Schema.from_json(node, key, parent)
    return schema if schema.reference else None

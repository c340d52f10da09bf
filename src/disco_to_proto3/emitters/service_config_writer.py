"""gRPC service config rendering."""

from __future__ import annotations

import json
from typing import Any

from disco_to_proto3.proto_model import ProtoFile

_TIMEOUT = "600s"
_IDEMPOTENT_RETRY_POLICY = {
    "initialBackoff": "0.100s",
    "maxBackoff": "60s",
    "backoffMultiplier": 1.3,
    "retryableStatusCodes": ["DEADLINE_EXCEEDED", "UNAVAILABLE"],
}


def build_service_config(proto_file: ProtoFile) -> dict[str, Any]:
    """Split the rpcs into a retried GET group and a timeout-only group."""
    package = proto_file.metadata.package
    idempotent: list[dict[str, str]] = []
    non_idempotent: list[dict[str, str]] = []
    for service in proto_file.sorted_services():
        for method in service.methods:
            name = {"service": f"{package}.{service.name}", "method": method.name}
            http = method.option("google.api.http")
            if http is not None and "get" in http.properties:
                idempotent.append(name)
            else:
                non_idempotent.append(name)
    return {
        "methodConfig": [
            {
                "name": idempotent,
                "timeout": _TIMEOUT,
                "retryPolicy": dict(_IDEMPOTENT_RETRY_POLICY),
            },
            {"name": non_idempotent, "timeout": _TIMEOUT},
        ]
    }


def render_service_config(proto_file: ProtoFile) -> str:
    return json.dumps(build_service_config(proto_file), indent=2) + "\n"

"""Long-running operation annotations."""

from __future__ import annotations

from disco_to_proto3.proto_model import Field, GrpcMethod, Message, Option, OptionValue, ProtoFile

from .enum_rewrites import OPERATION_FIELD_OPTION

OPERATION_MESSAGE = "Operation"
OPERATION_SERVICE_OPTION = "google.cloud.operation_service"
OPERATION_POLLING_METHOD_OPTION = "google.cloud.operation_polling_method"
OPERATION_RESPONSE_FIELD_OPTION = "google.cloud.operation_response_field"
OPERATION_REQUEST_FIELD_OPTION = "google.cloud.operation_request_field"
HTTP_OPTION = "google.api.http"

_POLLING_RESPONSE_FIELDS = ("name", "operation", "id")


class LroConfigurationError(Exception):
    """Raised when long-running methods cannot be paired with a polling service."""


def apply_lro_configuration(proto_file: ProtoFile) -> bool:
    """Annotate the ``Operation`` message, polling methods and operation-starting methods.

    Returns ``True`` when the file defines long-running operations.
    """
    operation = proto_file.messages.get(OPERATION_MESSAGE)
    if operation is None:
        return False
    operation_fields = _operation_fields(operation)
    if len(operation_fields) != 4:
        return False
    for value, field in operation_fields.items():
        field.options.append(Option.scalar(OPERATION_FIELD_OPTION, value))

    name_field = operation_fields[OptionValue.NAME]
    polling_fields_by_service: dict[str, dict[str, Field]] = {}
    fallback_service: str | None = None
    for service in proto_file.services.values():
        for method in service.methods:
            if not _returns_operation(method, operation) or not _is_bound_to(method, "get"):
                continue
            if service.name in polling_fields_by_service:
                raise LroConfigurationError(
                    f"{service.name} service has more than one LRO polling method"
                )
            method.options.append(Option.scalar(OPERATION_POLLING_METHOD_OPTION, True))
            request_fields: dict[str, Field] = {}
            for field in method.input.sorted_fields():
                if field.name in _POLLING_RESPONSE_FIELDS:
                    field.options.append(
                        Option.scalar(OPERATION_RESPONSE_FIELD_OPTION, name_field.name)
                    )
                else:
                    request_fields[field.name] = field
            if list(request_fields) == ["parent_id"]:
                fallback_service = service.name
            polling_fields_by_service[service.name] = request_fields

    if not polling_fields_by_service:
        return True

    for service in proto_file.services.values():
        for method in service.methods:
            if not _returns_operation(method, operation) or _is_bound_to(method, "get"):
                continue
            if _is_bound_to(method, "post") and method.name == "Wait":
                continue
            _link_polling_service(method, polling_fields_by_service, fallback_service)
    return True


def _operation_fields(operation: Message) -> dict[OptionValue, Field]:
    found: dict[OptionValue, Field] = {}
    for field in operation.sorted_fields():
        name = field.name
        if name == "name" or (name == "id" and OptionValue.NAME not in found):
            found[OptionValue.NAME] = field
        elif name == "done" or (name == "status" and OptionValue.STATUS not in found):
            found[OptionValue.STATUS] = field
        elif "error" in name:
            if "code" in name:
                found[OptionValue.ERROR_CODE] = field
            elif "message" in name:
                found[OptionValue.ERROR_MESSAGE] = field
            found.setdefault(OptionValue.ERROR_CODE, field)
            found.setdefault(OptionValue.ERROR_MESSAGE, field)
    return found


def _link_polling_service(
    method: GrpcMethod,
    polling_fields_by_service: dict[str, dict[str, Field]],
    fallback_service: str | None,
) -> None:
    best_service: str | None = None
    best_pairs: list[tuple[Field, Field]] = []
    most_matches = 0
    for service_name, polling_fields in polling_fields_by_service.items():
        pairs = [
            (field, polling_fields[field.name])
            for field in method.input.sorted_fields()
            if field.name in polling_fields and polling_fields[field.name] == field
        ]
        most_matches = max(most_matches, len(pairs))
        if len(pairs) < len(polling_fields):
            continue
        if best_service is None or len(pairs) > len(best_pairs):
            best_service, best_pairs = service_name, pairs

    if best_service is None:
        if most_matches or fallback_service is None:
            raise LroConfigurationError(f"{method.name} has no matching polling service")
        best_service, best_pairs = fallback_service, []

    method.options.append(Option.scalar(OPERATION_SERVICE_OPTION, best_service))
    for initiating_field, polling_field in best_pairs:
        initiating_field.options.append(
            Option.scalar(OPERATION_REQUEST_FIELD_OPTION, polling_field.name)
        )


def _returns_operation(method: GrpcMethod, operation: Message) -> bool:
    return method.output is operation or method.output == operation


def _is_bound_to(method: GrpcMethod, verb: str) -> bool:
    http = method.option(HTTP_OPTION)
    return http is not None and verb in http.properties

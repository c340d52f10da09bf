"""Discovery Document conversion tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from disco_to_proto3.conversion import (
    ConversionOptions,
    IllegalAnyFieldError,
    InconsistentApiVersionsError,
    MessageCollisionError,
    RpcRequestMessageConflictError,
    UnsupportedSchemaError,
    convert_document,
)
from disco_to_proto3.conversion_config import ConversionConfiguration
from disco_to_proto3.discovery_model import Document, load_discovery_document
from disco_to_proto3.proto_model import OptionValue, ProtoFile

SAMPLE_PATH = Path(__file__).resolve().parents[3] / "samples" / "compute-mini.v1.json"
CLOUD_PLATFORM = "https://www.googleapis.com/auth/cloud-platform"


def _convert_sample(**options: Any) -> ProtoFile:
    document = load_discovery_document(SAMPLE_PATH)
    return convert_document(document, SAMPLE_PATH.name, ConversionOptions(**options))


def _document(schemas: dict[str, Any], resources: dict[str, Any] | None = None) -> Document:
    return Document.from_json(
        {
            "name": "lakes",
            "version": "v1",
            "revision": "20250204",
            "rootUrl": "https://lakes.googleapis.com/",
            "servicePath": "",
            "schemas": schemas,
            "resources": resources or {},
        }
    )


def _get_method(resource: str, response: str, api_version: str = "") -> dict[str, Any]:
    return {
        "id": f"lakes.{resource}.get",
        "path": f"{resource}/{{name}}",
        "httpMethod": "GET",
        "parameters": {"name": {"type": "string", "required": True, "location": "path"}},
        "parameterOrder": ["name"],
        "response": {"$ref": response},
        "apiVersion": api_version,
    }


def test_sample_produces_schema_and_request_messages() -> None:
    proto_file = _convert_sample()

    assert sorted(proto_file.messages) == [
        "Address",
        "AddressList",
        "GetAddressRequest",
        "GetRegionOperationRequest",
        "InsertAddressRequest",
        "ListAddressesRequest",
        "Operation",
    ]
    assert sorted(proto_file.services) == ["Addresses", "RegionOperations"]
    assert proto_file.metadata.package == "google.cloud.compute.v1"
    assert proto_file.metadata.source_file_name == "compute-mini.v1.json"
    assert proto_file.metadata.copyright_year == "2024"


def test_schema_properties_map_to_field_types() -> None:
    address = _convert_sample().messages["Address"]
    fields = address.fields

    assert fields["address"].value_type.name == "string"
    assert fields["address"].optional
    assert fields["id"].value_type.name == "uint64"
    assert fields["labels"].is_map
    assert fields["labels"].key_type is not None
    assert fields["labels"].key_type.name == "string"
    assert fields["labels"].value_type.name == "string"
    assert fields["users"].repeated
    assert not fields["users"].optional
    assert fields["status"].value_type.is_enum
    assert fields["status"].value_type is address.enums["Status"]


def test_enum_gets_an_undefined_zero_value() -> None:
    status = _convert_sample().messages["Address"].enums["Status"]

    assert [field.name for field in status.sorted_fields()] == [
        "UNDEFINED_STATUS",
        "IN_USE",
        "RESERVED",
    ]
    assert status.fields["UNDEFINED_STATUS"].first_in_order
    assert status.fields["RESERVED"].description == "Address is reserved."


def test_references_are_resolved_to_the_real_message() -> None:
    proto_file = _convert_sample()

    items = proto_file.messages["AddressList"].fields["items"]

    assert items.repeated
    assert items.value_type is proto_file.messages["Address"]
    assert not items.value_type.is_ref


def test_services_carry_host_scopes_and_http_bindings() -> None:
    addresses = _convert_sample().services["Addresses"]

    assert addresses.option("google.api.default_host").value == "compute.googleapis.com"
    assert addresses.option("google.api.oauth_scopes").value == CLOUD_PLATFORM
    assert addresses.option("google.api.api_version") is None
    assert [method.name for method in addresses.methods] == ["Get", "Insert", "List"]

    insert = addresses.method("Insert")
    assert insert.option("google.api.http").properties == {
        "post": "/compute/v1/projects/{project}/regions/{region}/addresses",
        "body": "address_resource",
    }
    assert insert.option("google.api.method_signature").value == "project,region,address_resource"
    assert addresses.method("Get").option("google.api.method_signature").value == (
        "project,region,address"
    )


def test_request_message_marks_required_parameters() -> None:
    request = _convert_sample().messages["InsertAddressRequest"]

    project = request.fields["project"]
    request_id = request.fields["request_id"]

    assert project.option("google.api.field_behavior").value is OptionValue.REQUIRED
    assert not project.optional
    assert request_id.optional
    assert not request_id.has_option("google.api.field_behavior")
    assert request.fields["address_resource"].value_type.name == "Address"


def test_long_running_methods_are_linked_to_the_polling_service() -> None:
    proto_file = _convert_sample()
    polling = proto_file.services["RegionOperations"].method("Get")
    insert = proto_file.services["Addresses"].method("Insert")
    operation = proto_file.messages["Operation"]

    assert proto_file.has_lro_definitions
    assert polling.option("google.cloud.operation_polling_method").value is True
    assert polling.input.fields["operation"].option(
        "google.cloud.operation_response_field"
    ).value == "name"
    assert insert.option("google.cloud.operation_service").value == "RegionOperations"
    assert insert.input.fields["project"].option(
        "google.cloud.operation_request_field"
    ).value == "project"
    assert {
        name: field.option("google.cloud.operation_field").value
        for name, field in operation.fields.items()
    } == {
        "http_error_message": OptionValue.ERROR_MESSAGE,
        "http_error_status_code": OptionValue.ERROR_CODE,
        "name": OptionValue.NAME,
        "status": OptionValue.STATUS,
    }


def test_descriptions_get_link_prefix_and_api_version() -> None:
    plain = _convert_sample().messages["Address"].description
    prefixed = _convert_sample(relative_link_prefix="https://cloud.google.com").messages[
        "Address"
    ].description

    assert "(/compute/docs/ip-addresses) for the v1 API." in plain
    assert "(https://cloud.google.com/compute/docs/ip-addresses)" in prefixed
    assert "{$api_version}" not in prefixed


def test_enums_as_strings_keeps_operation_enums() -> None:
    proto_file = _convert_sample(enums_as_strings=True)

    address_status = proto_file.messages["Address"].fields["status"]
    operation_status = proto_file.messages["Operation"].fields["status"]

    assert address_status.value_type.name == "string"
    assert address_status.description.endswith(
        "Check the Status enum for the list of possible values."
    )
    assert operation_status.value_type.is_enum


def test_ignored_service_is_not_emitted() -> None:
    proto_file = _convert_sample(service_ignorelist=frozenset({"RegionOperations"}))

    assert sorted(proto_file.services) == ["Addresses"]
    assert "GetRegionOperationRequest" not in proto_file.messages
    insert = proto_file.services["Addresses"].method("Insert")
    assert insert.option("google.cloud.operation_service") is None


def test_ignored_message_is_not_emitted() -> None:
    document = _document(
        {
            "Lake": {"id": "Lake", "type": "object", "properties": {"name": {"type": "string"}}},
            "Unused": {"id": "Unused", "type": "object", "properties": {"a": {"type": "string"}}},
        }
    )

    proto_file = convert_document(
        document, "lakes.json", ConversionOptions(message_ignorelist=frozenset({"Unused"}))
    )

    assert sorted(proto_file.messages) == ["Lake"]


def test_inline_objects_become_messages() -> None:
    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {
                    "info": {"type": "object", "properties": {"depth": {"type": "number"}}}
                },
            }
        }
    )

    proto_file = convert_document(document, "lakes.json")

    assert proto_file.messages["Lake"].fields["info"].value_type is proto_file.messages["Info"]
    assert proto_file.messages["Info"].fields["depth"].value_type.name == "float"


def test_different_inline_objects_with_one_name_collide() -> None:
    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {"info": {"type": "object", "properties": {"a": {"type": "string"}}}},
            },
            "River": {
                "id": "River",
                "type": "object",
                "properties": {"info": {"type": "object", "properties": {"b": {"type": "string"}}}},
            },
        }
    )

    with pytest.raises(MessageCollisionError, match="Info"):
        convert_document(document, "lakes.json")


def test_errors_message_collision_keeps_the_first_definition() -> None:
    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {
                    "errors": {"type": "object", "properties": {"a": {"type": "string"}}}
                },
            },
            "River": {
                "id": "River",
                "type": "object",
                "properties": {
                    "errors": {"type": "object", "properties": {"b": {"type": "string"}}}
                },
            },
        }
    )

    proto_file = convert_document(document, "lakes.json")

    assert list(proto_file.messages["Errors"].fields) == ["a"]


def test_identical_inline_messages_keep_the_shorter_description() -> None:
    def info(description: str) -> dict[str, Any]:
        return {
            "type": "object",
            "description": description,
            "properties": {"depth": {"type": "integer"}},
        }

    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {"info": info("Measured facts about the water body.")},
            },
            "Pond": {"id": "Pond", "type": "object", "properties": {"info": info("Facts.")}},
        }
    )

    proto_file = convert_document(document, "lakes.json")

    assert proto_file.messages["Info"].description == "Facts."


def test_inline_configuration_names_inline_messages() -> None:
    schemas = {
        "Lake": {
            "id": "Lake",
            "type": "object",
            "properties": {"info": {"type": "object", "properties": {"a": {"type": "string"}}}},
        },
        "River": {
            "id": "River",
            "type": "object",
            "properties": {"info": {"type": "object", "properties": {"b": {"type": "string"}}}},
        },
    }
    config = ConversionConfiguration.from_mapping(
        {
            "inlineSchemas": [
                {"schema": "old", "locations": {"LakeInfo": ["schemas.Lake.info"]}},
                {"schema": "old", "locations": {"RiverInfo": ["schemas.River.info"]}},
            ]
        }
    )

    proto_file = convert_document(
        _document(schemas), "lakes.json", ConversionOptions(inline_configuration=config)
    )

    assert proto_file.messages["Lake"].fields["info"].value_type.name == "LakeInfo"
    assert proto_file.messages["River"].fields["info"].value_type.name == "RiverInfo"
    assert config.to_mapping()["inlineSchemas"][0]["schema"].startswith('{"properties"')


def test_fresh_inline_configuration_records_generated_names() -> None:
    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {"info": {"type": "object", "properties": {"a": {"type": "string"}}}},
            }
        }
    )
    config = ConversionConfiguration()

    convert_document(document, "lakes.json", ConversionOptions(inline_configuration=config))

    assert config.message_name_for_path("schemas.Lake.info") == "Info"
    assert config.message_name_for_path("schemas.Lake") is None


def test_untyped_any_is_rejected() -> None:
    document = _document(
        {"Lake": {"id": "Lake", "type": "object", "properties": {"extra": {"type": "any"}}}}
    )

    with pytest.raises(UnsupportedSchemaError, match="schemas.Lake.extra"):
        convert_document(document, "lakes.json")


def test_well_known_formats_set_import_flags() -> None:
    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {
                    "payload": {"type": "any", "format": "google.protobuf.Any"},
                    "attributes": {"type": "object", "format": "google.protobuf.Struct"},
                },
            }
        }
    )

    proto_file = convert_document(document, "lakes.json")

    assert proto_file.messages["Lake"].fields["payload"].value_type.name == "google.protobuf.Any"
    assert proto_file.has_any_fields
    assert proto_file.uses_struct_types


def _lake_with(properties: dict[str, Any]) -> Document:
    return _document(
        {"Lake": {"id": "Lake", "type": "object", "properties": properties}},
        {"lakes": {"methods": {"get": _get_method("lakes", "Lake")}}},
    )


def test_any_is_allowed_as_error_details_of_a_response() -> None:
    details = {"type": "array", "items": {"type": "any", "format": "google.protobuf.Any"}}
    document = _lake_with({"error": {"type": "object", "properties": {"details": details}}})

    proto_file = convert_document(document, "lakes.json")

    error_type = proto_file.messages["Lake"].fields["error"].value_type
    assert error_type.fields["details"].value_type.name == "google.protobuf.Any"
    assert proto_file.has_any_fields


def test_any_outside_error_details_of_a_response_is_rejected() -> None:
    document = _lake_with({"payload": {"type": "any", "format": "google.protobuf.Any"}})

    with pytest.raises(IllegalAnyFieldError, match=r"Lake\.payload"):
        convert_document(document, "lakes.json")


def test_unexpected_format_is_rejected() -> None:
    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {"depth": {"type": "number", "format": "int64"}},
            }
        }
    )

    with pytest.raises(UnsupportedSchemaError, match="unexpected format 'int64'"):
        convert_document(document, "lakes.json")


def test_colliding_enum_members_fall_back_to_strings() -> None:
    document = _document(
        {
            "Lake": {
                "id": "Lake",
                "type": "object",
                "properties": {
                    "kind": {"type": "string", "enum": ["FRESH", "SHARED"]},
                    "state": {"type": "string", "enum": ["SHARED", "FROZEN"]},
                    "usage": {"type": "string", "enum": ["SWIMMING"]},
                },
            }
        }
    )

    lake = convert_document(document, "lakes.json").messages["Lake"]

    assert sorted(lake.enums) == ["Usage"]
    assert lake.fields["kind"].value_type.name == "string"
    assert lake.fields["state"].value_type.name == "string"
    assert lake.fields["usage"].value_type.is_enum


def test_service_named_like_a_message_gets_a_suffix() -> None:
    document = _document(
        {"Widgets": {"id": "Widgets", "type": "object", "properties": {"a": {"type": "string"}}}},
        {"widgets": {"methods": {"get": _get_method("widgets", "Widgets")}}},
    )

    proto_file = convert_document(document, "lakes.json")

    assert sorted(proto_file.services) == ["WidgetsService"]
    assert proto_file.services["WidgetsService"].description == "The Widgets API."


def test_inconsistent_api_versions_are_rejected() -> None:
    delete = {**_get_method("lakes", "Lake", "v2"), "id": "lakes.lakes.delete"}
    document = _document(
        {"Lake": {"id": "Lake", "type": "object", "properties": {"a": {"type": "string"}}}},
        {"lakes": {"methods": {"get": _get_method("lakes", "Lake", "v1"), "delete": delete}}},
    )

    with pytest.raises(InconsistentApiVersionsError, match='\\["v1" "v2"\\]'):
        convert_document(document, "lakes.json")


def test_consistent_api_version_becomes_a_service_option() -> None:
    document = _document(
        {"Lake": {"id": "Lake", "type": "object", "properties": {"a": {"type": "string"}}}},
        {"lakes": {"methods": {"get": _get_method("lakes", "Lake", "v1_20250204")}}},
    )

    service = convert_document(document, "lakes.json").services["Lakes"]

    assert service.option("google.api.api_version").value == "v1_20250204"


def test_request_name_taken_by_a_schema_uses_the_rpc_suffix() -> None:
    document = _document(
        {
            "Lake": {"id": "Lake", "type": "object", "properties": {"a": {"type": "string"}}},
            "GetLakeRequest": {
                "id": "GetLakeRequest",
                "type": "object",
                "properties": {"b": {"type": "string"}},
            },
        },
        {"lakes": {"methods": {"get": _get_method("lakes", "Lake")}}},
    )

    proto_file = convert_document(document, "lakes.json")

    assert proto_file.services["Lakes"].method("Get").input.name == "GetLakeRpcRequest"


def test_request_name_without_free_alternative_is_rejected() -> None:
    taken = {"type": "object", "properties": {"b": {"type": "string"}}}
    document = _document(
        {
            "Lake": {"id": "Lake", "type": "object", "properties": {"a": {"type": "string"}}},
            "GetLakeRequest": {"id": "GetLakeRequest", **taken},
            "GetLakeRpcRequest": {"id": "GetLakeRpcRequest", **taken},
        },
        {"lakes": {"methods": {"get": _get_method("lakes", "Lake")}}},
    )

    with pytest.raises(RpcRequestMessageConflictError, match="GetLakeRpcRequest"):
        convert_document(document, "lakes.json")


def test_method_without_response_gets_an_empty_response_message() -> None:
    method = _get_method("lakes", "Lake")
    del method["response"]
    document = _document(
        {"Lake": {"id": "Lake", "type": "object", "properties": {"a": {"type": "string"}}}},
        {"lakes": {"methods": {"get": method}}},
    )

    proto_file = convert_document(document, "lakes.json")

    assert proto_file.services["Lakes"].method("Get").output.name == "GetLakeResponse"
    assert proto_file.messages["GetLakeResponse"].fields == {}

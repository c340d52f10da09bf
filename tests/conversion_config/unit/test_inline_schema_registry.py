"""Inline schema configuration tests."""

from __future__ import annotations

import json

import pytest
from disco_to_proto3.conversion_config import ConfigurationDriftError, ConversionConfiguration

_STORED = {
    "converterVersion": "some-identifier",
    "apiVersion": "gamma",
    "discoveryRevision": "20250204",
    "inlineSchemas": [
        {
            "schema": "an initial schema",
            "locations": {
                "LakeInfo": ["schemas.Lake.info", "schemas.BigLake.lakeInfo"],
                "PondInfo": ["schemas.Pond.info", "schemas.BigPond.pondInfo"],
            },
        }
    ],
}


def _stored_config() -> ConversionConfiguration:
    return ConversionConfiguration.from_json(json.dumps(_STORED))


def _register_all(config: ConversionConfiguration, schema: str) -> None:
    config.add_inline_field("schemas.Pond.info", "PondInfo", schema)
    config.add_inline_field("schemas.BigLake.lakeInfo", "LakeInfo", schema)
    config.add_inline_field("schemas.Lake.info", "LakeInfo", schema)
    config.add_inline_field("schemas.BigPond.pondInfo", "PondInfo", schema)


def _same_content(expected: dict, actual_json: str) -> bool:
    return ConversionConfiguration.from_mapping(expected).public_fields_equal(
        ConversionConfiguration.from_json(actual_json)
    )


def test_stored_names_are_returned_per_path() -> None:
    config = _stored_config()

    assert config.message_name_for_path("schemas.Lake.info") == "LakeInfo"
    assert config.message_name_for_path("schemas.BigLake.lakeInfo") == "LakeInfo"
    assert config.message_name_for_path("schemas.Pond.info") == "PondInfo"
    assert config.message_name_for_path("schemas.River.info") is None


def test_unchanged_run_writes_back_the_same_content() -> None:
    config = _stored_config()
    _register_all(config, "an initial schema")

    assert _same_content(_STORED, config.to_json())


def test_using_a_path_twice_in_one_run_is_drift() -> None:
    config = _stored_config()
    _register_all(config, "an initial schema")
    config.add_inline_field("schemas.Lake.info", "LakeInfo", "an initial schema")

    with pytest.raises(ConfigurationDriftError, match="already used"):
        config.to_json()


def test_stored_path_missing_from_the_run_is_drift() -> None:
    config = _stored_config()
    config.add_inline_field("schemas.Pond.info", "PondInfo", "current schema")
    config.add_inline_field("schemas.BigLake.lakeInfo", "LakeInfo", "current schema")
    config.add_inline_field("schemas.Lake.info", "LakeInfo", "current schema")

    missing = r"no longer used: schemas\.BigPond\.pondInfo"
    with pytest.raises(ConfigurationDriftError, match=missing):
        config.to_json()


def test_renaming_one_stored_path_is_drift() -> None:
    config = _stored_config()
    config.add_inline_field("schemas.Pond.info", "FirstPondInfo", "current schema")
    config.add_inline_field("schemas.BigLake.lakeInfo", "LakeInfo", "current schema")
    config.add_inline_field("schemas.Lake.info", "LakeInfo", "current schema")
    config.add_inline_field("schemas.BigPond.pondInfo", "PondInfo", "current schema")

    with pytest.raises(ConfigurationDriftError, match="rename type for field schemas.Pond.info"):
        config.to_json()


def test_new_schema_is_added_as_its_own_group() -> None:
    config = _stored_config()
    _register_all(config, "current schema")
    config.add_inline_field("schemas.River.info", "RiverInfo", "new schema")

    exported = json.loads(config.to_json())

    assert _same_content(
        {
            **_STORED,
            "inlineSchemas": [
                {
                    "schema": "current schema",
                    "locations": {
                        "LakeInfo": ["schemas.Lake.info", "schemas.BigLake.lakeInfo"],
                        "PondInfo": ["schemas.Pond.info", "schemas.BigPond.pondInfo"],
                    },
                },
                {"schema": "new schema", "locations": {"RiverInfo": ["schemas.River.info"]}},
            ],
        },
        config.to_json(),
    )
    assert exported["inlineSchemas"][0] == {
        "schema": "current schema",
        "locations": {
            "LakeInfo": ["schemas.BigLake.lakeInfo", "schemas.Lake.info"],
            "PondInfo": ["schemas.BigPond.pondInfo", "schemas.Pond.info"],
        },
    }
    assert exported["inlineSchemas"][1]["schema"] == "new schema"


def test_export_does_not_depend_on_registration_order() -> None:
    registrations = [
        ("schemas.Lake.info", "LakeInfo", "lake schema"),
        ("schemas.BigLake.lakeInfo", "LakeInfo", "lake schema"),
        ("schemas.River.info", "RiverInfo", "river schema"),
    ]
    forward = ConversionConfiguration(api_version="v1")
    backward = ConversionConfiguration(api_version="v1")
    for path, name, schema in registrations:
        forward.add_inline_field(path, name, schema)
    for path, name, schema in reversed(registrations):
        backward.add_inline_field(path, name, schema)

    assert forward.to_json() == backward.to_json()
    assert forward.to_json().endswith("}\n")


def test_one_name_for_two_schemas_is_drift() -> None:
    config = ConversionConfiguration()
    config.add_inline_field("schemas.Lake.info", "Info", "lake schema")
    config.add_inline_field("schemas.River.info", "Info", "river schema")

    with pytest.raises(ConfigurationDriftError, match="'Info' configured for multiple schemas"):
        config.to_json()


def test_path_listed_twice_in_stored_file_is_drift() -> None:
    stored = {
        "inlineSchemas": [
            {"schema": "s", "locations": {"Info": ["schemas.Lake.info", "schemas.Lake.info"]}}
        ]
    }

    with pytest.raises(ConfigurationDriftError, match="field specified multiple times"):
        ConversionConfiguration.from_mapping(stored)


def test_all_drift_errors_are_reported_together() -> None:
    config = _stored_config()
    config.add_inline_field("schemas.Pond.info", "FirstPondInfo", "current schema")

    with pytest.raises(ConfigurationDriftError) as excinfo:
        config.to_json()

    assert len(excinfo.value.errors) >= 4
    assert str(excinfo.value) == "\n".join(excinfo.value.errors)


def test_public_fields_ignore_ordering() -> None:
    reordered = {
        **_STORED,
        "inlineSchemas": [
            {
                "schema": "an initial schema",
                "locations": {
                    "PondInfo": ["schemas.BigPond.pondInfo", "schemas.Pond.info"],
                    "LakeInfo": ["schemas.BigLake.lakeInfo", "schemas.Lake.info"],
                },
            }
        ],
    }

    assert _stored_config().public_fields_equal(ConversionConfiguration.from_mapping(reordered))


def test_public_fields_compare_schema_and_locations() -> None:
    changed_schema = {
        **_STORED,
        "inlineSchemas": [{**_STORED["inlineSchemas"][0], "schema": "another schema"}],
    }
    changed_location = {
        **_STORED,
        "inlineSchemas": [
            {
                "schema": "an initial schema",
                "locations": {
                    "LakeInfo": ["schemas.Lake.info", "schemas.OtherLake.lakeInfo"],
                    "PondInfo": ["schemas.Pond.info", "schemas.BigPond.pondInfo"],
                },
            }
        ],
    }
    stored = _stored_config()

    assert not stored.public_fields_equal(ConversionConfiguration.from_mapping(changed_schema))
    assert stored.public_fields_equal(
        ConversionConfiguration.from_mapping(changed_schema), match_schema=False
    )
    assert not stored.public_fields_equal(ConversionConfiguration.from_mapping(changed_location))


def test_config_metadata_keeps_api_version_and_moves_revision_forward() -> None:
    config = _stored_config()

    config.set_config_metadata(
        converter_version="0.2.0", api_version="gamma", discovery_revision="20250301"
    )
    assert config.discovery_revision == "20250301"

    with pytest.raises(ConfigurationDriftError, match="override apiVersion gamma with delta"):
        config.set_config_metadata(
            converter_version="0.2.0", api_version="delta", discovery_revision="20250301"
        )
    with pytest.raises(ConfigurationDriftError, match="override discoveryRevision"):
        config.set_config_metadata(
            converter_version="0.2.0", api_version="gamma", discovery_revision="20240101"
        )

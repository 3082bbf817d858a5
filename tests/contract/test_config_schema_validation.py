from __future__ import annotations

import json

import jsonschema
import pytest
import yaml

from devcert_ingest.config.loader import SCHEMA_PATH

"""Packaged config schema contract."""


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_sample_config_is_valid(schema, sample_config_yaml: str):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_empty_config_is_valid(schema):
    jsonschema.validate({}, schema)


def test_extra_key_rejected(schema):
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate({"database": {"host": "x"}}, schema)

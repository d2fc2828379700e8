import json
import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.configuration import MAX_CHAIN_DEPTH, ConfigurationError
from providers import json_config

SAMPLE = {
    "entity": "account",
    "targetField": "name",
    "fields": [
        {"field": "name", "suffix": " - "},
        {"field": "createdon", "type": "date", "format": "yyyy"},
    ],
}


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv("NAME_BUILDER_CONFIG_PATH", raising=False)
    monkeypatch.delenv("NAME_BUILDER_DEFAULT_TIMEZONE_OFFSET", raising=False)


def test_parse_and_dump_are_sparse():
    configuration = json_config.parse_configuration(json.dumps(SAMPLE))

    assert configuration.entity == "account"
    assert json.loads(json_config.dump_configuration(configuration)) == SAMPLE


def test_pattern_only_configuration_is_accepted():
    configuration = json_config.parse_configuration('{"pattern": "name - code"}')
    assert [spec.field for spec in configuration.effective_fields()] == ["name", None, "code"]


@pytest.mark.parametrize(
    "text, message",
    [
        ("{not json", "not valid JSON"),
        ("[]", "JSON object"),
        ('{"entity": "account"}', "'fields' or 'pattern'"),
        ('{"fields": [{"field": "x", "maxLength": "long"}]}', "is invalid"),
    ],
)
def test_invalid_documents_raise_configuration_error(text, message):
    with pytest.raises(ConfigurationError) as excinfo:
        json_config.parse_configuration(text, source="upload")
    assert message in str(excinfo.value)
    assert str(excinfo.value).startswith("upload")


def test_over_deep_chain_is_rejected():
    node = {"field": "leaf"}
    for index in range(MAX_CHAIN_DEPTH):
        node = {"field": f"f{index}", "alternateField": node}

    with pytest.raises(ConfigurationError):
        json_config.configuration_from_mapping({"fields": [node]})


def test_load_configuration_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        json_config.load_configuration(tmp_path / "missing.json")


def test_save_applies_default_timezone_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("NAME_BUILDER_DEFAULT_TIMEZONE_OFFSET", "-5")
    configuration = json_config.parse_configuration(json.dumps(SAMPLE))

    path = json_config.save_configuration(configuration, tmp_path / "out" / "plugin.json")

    written = json.loads(path.read_text(encoding="utf-8"))
    assert "timezoneOffsetHours" not in written["fields"][0]
    assert written["fields"][1]["timezoneOffsetHours"] == -5
    assert path.read_text(encoding="utf-8").endswith("\n")

    reloaded = json_config.load_configuration(path)
    assert reloaded.fields[1].timezone_offset_hours == -5


def test_explicit_offset_overrides_env(tmp_path, monkeypatch):
    monkeypatch.setenv("NAME_BUILDER_DEFAULT_TIMEZONE_OFFSET", "-5")
    configuration = json_config.parse_configuration(json.dumps(SAMPLE))

    path = json_config.save_configuration(configuration, tmp_path / "plugin.json", default_timezone_offset=2)

    assert json.loads(path.read_text(encoding="utf-8"))["fields"][1]["timezoneOffsetHours"] == 2


def test_bad_timezone_env_raises(monkeypatch):
    monkeypatch.setenv("NAME_BUILDER_DEFAULT_TIMEZONE_OFFSET", "east")
    with pytest.raises(ConfigurationError):
        json_config.default_timezone_offset_from_env()


def test_load_default_configuration(tmp_path, monkeypatch):
    assert json_config.load_default_configuration() is None

    path = tmp_path / "plugin.json"
    path.write_text(json.dumps(SAMPLE), encoding="utf-8")
    monkeypatch.setenv("NAME_BUILDER_CONFIG_PATH", str(path))
    monkeypatch.setenv("NAME_BUILDER_DEFAULT_TIMEZONE_OFFSET", "1")

    configuration = json_config.load_default_configuration()

    assert configuration.fields[1].timezone_offset_hours == 1
    assert configuration.fields[0].timezone_offset_hours is None

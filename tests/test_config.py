from pathlib import Path

import pytest
from pydantic import ValidationError

from addbuilder.config import Settings, load_settings


def test_load_settings_defaults_when_file_missing(tmp_path: Path):
    settings = load_settings(tmp_path / "addbuilder.yaml")

    assert settings.builder_attributes == ["AddBuilder"]
    assert settings.default_attributes == ["Builder", "AddBuilder"]
    assert settings.builder_name == "Builder"
    assert settings.indent_width == 4
    assert settings.detect_cycles


def test_load_settings_reads_yaml(tmp_path: Path):
    config = tmp_path / "addbuilder.yaml"
    config.write_text(
        "indent_width: 2\n"
        "zero_constructible: [Money]\n"
        "literal_defaults:\n"
        "  Color: .clear\n"
        "detect_cycles: false\n"
    )
    settings = load_settings(config)

    assert settings.indent_width == 2
    assert settings.zero_constructible == ["Money"]
    assert settings.literal_defaults == {"Color": ".clear"}
    assert not settings.detect_cycles


def test_empty_yaml_uses_defaults(tmp_path: Path):
    config = tmp_path / "addbuilder.yaml"
    config.write_text("")
    assert load_settings(config) == Settings()


def test_attribute_names_drop_at_sign():
    settings = Settings(builder_attributes=["@Buildable", "Make"])
    assert settings.builder_attributes == ["Buildable", "Make"]


@pytest.mark.parametrize(
    "overrides",
    [{"indent_width": 0}, {"builder_name": "Not A Name"}],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)

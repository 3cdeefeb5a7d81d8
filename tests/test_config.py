"""Tests for configuration loading and validation."""

import pytest

from podtrack.config.config_loader import ConfigLoader, config
from podtrack.config.validators import validate_config
from podtrack.utils.exceptions import ConfigurationError


def test_global_config_uses_test_file():
    assert config.get("logging.to_file") is False
    assert config.get("recording.flush_timeout_seconds") == 2.0


def test_missing_file_gives_defaults(tmp_path):
    loader = ConfigLoader(str(tmp_path / "absent.yml"))

    assert loader.validation_error is None
    assert loader.get("silence.threshold") == 0.01
    assert loader.get("dead_air.missing_report_policy") == "no_silence"
    assert loader.get("export.default_format") == "mp3"
    assert loader.get("no.such.key", "fallback") == "fallback"


def test_yaml_values_are_loaded(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("silence:\n  padding: 0.5\ndead_air:\n  missing_report_policy: skip\n")

    loader = ConfigLoader(str(path))

    assert loader.get("silence.padding") == 0.5
    assert loader.get("silence.min_silence_duration") == 1.5
    assert loader.get("dead_air.missing_report_policy") == "skip"


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "alt.yml"
    path.write_text("storage:\n  save_folder: elsewhere\n")
    monkeypatch.setenv("PODTRACK_CONFIG", str(path))

    assert ConfigLoader().get("storage.save_folder") == "elsewhere"


def test_set_creates_nested_keys(tmp_path):
    loader = ConfigLoader(str(tmp_path / "absent.yml"))

    loader.set("app.extra.flag", True)

    assert loader.get("app.extra.flag") is True
    assert loader.get_all()["app"]["extra"] == {"flag": True}


def test_invalid_values_are_reported(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("silence:\n  threshold: 5\n")

    loader = ConfigLoader(str(path))

    assert isinstance(loader.validation_error, ConfigurationError)
    assert loader.get("silence.threshold") == 5


def test_legacy_threshold_key():
    validated = validate_config({"silence": {"silence_threshold": 0.02}})
    assert validated.silence.threshold == 0.02


@pytest.mark.parametrize(
    "section",
    [
        {"dead_air": {"missing_report_policy": "guess"}},
        {"recording": {"sample_rate": 12345}},
        {"export": {"default_format": "flac"}},
        {"logging": {"level": "LOUD"}},
    ],
)
def test_validation_rejects(section):
    with pytest.raises(ConfigurationError):
        validate_config(section)

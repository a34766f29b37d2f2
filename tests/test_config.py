"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from prtscan.config import EngineSettings, load_settings


def test_defaults():
    settings = EngineSettings()
    assert settings.communities == ["public", "private", "admin", "password"]
    assert settings.scan_batch_size == 80
    assert settings.probe_timeout == 6.0
    assert settings.extended_probe_timeout == 3.0
    assert settings.http_fallback_timeout == 5.0


def test_yaml_then_overrides(tmp_path):
    path = tmp_path / "prtscan.yaml"
    path.write_text(
        "communities: [corp-ro, public]\n"
        "scan_batch_size: 40\n"
        "enable_http_fallback: false\n"
    )

    settings = load_settings(path, scan_batch_size=20, communities=None)

    assert settings.communities == ["corp-ro", "public"]
    assert settings.scan_batch_size == 20
    assert settings.enable_http_fallback is False


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_settings(path) == EngineSettings()


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- public\n- private\n")
    with pytest.raises(ValueError):
        load_settings(path)


def test_invalid_value_rejected():
    with pytest.raises(ValidationError):
        load_settings(scan_batch_size=0)


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_settings("/nonexistent/prtscan.yaml")

"""Tests for configuration loading (settings.json + organization.yaml).

Uses isolated directories via tmp_path and WRVU_COMP_CONFIG_PATH
to avoid touching real configuration.
"""

import json

import pytest
import yaml

from wrvucomp.sdk.config import (
    DEFAULT_FALLBACK_CONVERSION_FACTOR,
    DEFAULT_HOLDBACK_PERCENT,
    get_data_path,
    get_organization_path,
    load_engine_settings,
    set_organization_value,
)
from wrvucomp.sdk.errors import ConfigError


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the SDK at an empty config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("WRVU_COMP_CONFIG_PATH", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    return config_dir


class TestEngineSettings:

    def test_defaults_without_organization_file(self, isolated_config):
        settings = load_engine_settings()
        assert settings.default_holdback_percent == DEFAULT_HOLDBACK_PERCENT == 20
        assert settings.fallback_conversion_factor == DEFAULT_FALLBACK_CONVERSION_FACTOR

    def test_reads_organization_yaml(self, isolated_config):
        (isolated_config / "organization.yaml").write_text(yaml.dump({
            "default_holdback_percent": 15,
            "fallback_conversion_factor": 52.5,
        }))
        settings = load_engine_settings()
        assert settings.default_holdback_percent == 15
        assert settings.fallback_conversion_factor == 52.5

    def test_set_value_round_trips(self, isolated_config):
        path = set_organization_value("default_holdback_percent", 12.5)
        assert path == isolated_config / "organization.yaml"
        assert load_engine_settings().default_holdback_percent == 12.5

    def test_invalid_value_is_rejected_and_not_saved(self, isolated_config):
        with pytest.raises(ConfigError, match="default_holdback_percent"):
            set_organization_value("default_holdback_percent", 150)
        assert not (isolated_config / "organization.yaml").exists()

    def test_unknown_key_is_rejected(self, isolated_config):
        (isolated_config / "organization.yaml").write_text("holdback: 10\n")
        with pytest.raises(ConfigError):
            load_engine_settings()

    def test_non_mapping_yaml_is_rejected(self, isolated_config):
        (isolated_config / "organization.yaml").write_text("- 10\n- 20\n")
        with pytest.raises(ConfigError):
            load_engine_settings()


class TestPaths:

    def test_custom_organization_path(self, isolated_config, tmp_path):
        custom = tmp_path / "shared" / "org.yaml"
        (isolated_config / "settings.json").write_text(json.dumps({"organization": str(custom)}))
        assert get_organization_path() == custom

    def test_data_dir_setting(self, isolated_config, tmp_path):
        data_dir = tmp_path / "metrics"
        (isolated_config / "settings.json").write_text(json.dumps({"data_dir": str(data_dir)}))
        assert get_data_path() == data_dir
        assert data_dir.is_dir()

    def test_default_data_dir_follows_xdg(self, isolated_config, tmp_path):
        assert get_data_path() == tmp_path / "xdg-data" / "wrvu-comp"

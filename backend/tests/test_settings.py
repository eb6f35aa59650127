"""
Tests for settings file loading and validation.
"""

import json
import os
from unittest.mock import patch

import pytest

from connhub.cache import ValkeyMode
from connhub.core import BootOptions
from connhub.utils import BootSettings, HubSettings, load_settings, read_settings_file
from connhub.utils.config import CONFIG_PATH_ENV

TOML_SETTINGS = """
[log]
level = "debug"
format = "json"

[boot]
ping_timeout = 3.5
rollback_on_failure = true

[mongo.main]
uri = "mongodb://db:27017"
database = "orders"

[valkey.sessions]
mode = "sentinel"
master_name = "mymaster"
slaves = ["10.0.0.1:26379", "10.0.0.2:26379"]

[database.default]
url = "postgresql://app:pw@db/app"
max_open = 20
"""


@pytest.fixture
def no_env_settings(monkeypatch, tmp_path):
    """Environment without a settings path and without a .env file."""
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    return str(tmp_path / "missing.env")


class TestLoadSettings:
    """Test loading hub settings."""

    def test_toml_file(self, tmp_path, no_env_settings):
        """Test a complete TOML settings file."""
        path = tmp_path / "connhub.toml"
        path.write_text(TOML_SETTINGS)

        settings = load_settings(path, env_file=no_env_settings)

        assert settings.log.level == "debug"
        assert settings.log.format == "json"
        assert settings.boot.ping_timeout == 3.5
        assert settings.boot.rollback_on_failure is True
        assert settings.mongo["main"].database == "orders"
        assert settings.valkey["sessions"].mode == ValkeyMode.SENTINEL
        assert settings.valkey["sessions"].slaves == ("10.0.0.1:26379", "10.0.0.2:26379")
        assert settings.database["default"].max_open == 20

    def test_json_file_from_environment(self, tmp_path, monkeypatch, no_env_settings):
        """Test that the settings path can come from the environment."""
        path = tmp_path / "connhub.json"
        path.write_text(json.dumps({"valkey": {"default": {"addr": "cache:6380"}}}))
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

        settings = load_settings(env_file=no_env_settings)

        assert list(settings.valkey) == ["default"]
        assert settings.valkey["default"].addr == "cache:6380"
        assert settings.mongo == {}

    def test_path_from_env_file(self, tmp_path):
        """Test that a .env file can point at the settings file."""
        path = tmp_path / "connhub.json"
        path.write_text(json.dumps({"boot": {"ping_timeout": 1.5}}))
        env_file = tmp_path / ".env"
        env_file.write_text(f"{CONFIG_PATH_ENV}={path}\n")

        with patch.dict(os.environ):
            os.environ.pop(CONFIG_PATH_ENV, None)
            settings = load_settings(env_file=str(env_file))

        assert settings.boot.ping_timeout == 1.5

    def test_defaults_without_file(self, no_env_settings):
        """Test that no configured file yields empty settings."""
        settings = load_settings(env_file=no_env_settings)

        assert settings == HubSettings()
        assert settings.database == {}

    def test_validation_error(self, tmp_path, no_env_settings):
        """Test that invalid sections are reported as ValueError."""
        path = tmp_path / "connhub.json"
        path.write_text(json.dumps({"valkey": {"bad": {"mode": "cluster"}}}))

        with pytest.raises(ValueError, match="Configuration validation failed"):
            load_settings(path, env_file=no_env_settings)

    def test_unknown_section(self, tmp_path, no_env_settings):
        """Test that unknown top-level keys are rejected."""
        path = tmp_path / "connhub.json"
        path.write_text(json.dumps({"memcached": {}}))

        with pytest.raises(ValueError, match="Configuration validation failed"):
            load_settings(path, env_file=no_env_settings)


class TestReadSettingsFile:
    """Test raw file parsing."""

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "connhub.yaml"
        path.write_text("log: {}")

        with pytest.raises(ValueError, match="Unsupported settings file type"):
            read_settings_file(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "connhub.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            read_settings_file(path)

    def test_malformed_toml(self, tmp_path):
        path = tmp_path / "connhub.toml"
        path.write_text("[log\nlevel = ")

        with pytest.raises(ValueError, match="Invalid TOML"):
            read_settings_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            read_settings_file(tmp_path / "missing.json")


class TestBootSettings:
    """Test conversion to boot options."""

    def test_to_options(self):
        options = BootSettings(ping_timeout=2.0, health_check_interval=60.0).to_options()

        assert isinstance(options, BootOptions)
        assert options.ping_timeout == 2.0
        assert options.health_check_interval == 60.0
        assert options.rollback_on_failure is False

    def test_non_positive_timeout_is_rejected(self):
        with pytest.raises(ValueError):
            BootSettings(ping_timeout=0)

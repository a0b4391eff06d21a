#!/usr/bin/env python3
"""Tests for the ConfigManager module."""

import threading
from unittest.mock import patch

import pytest

from datumflow.core.config import (
    CONFIG_SCHEMA,
    ConfigManager,
    ConfigSource,
    ConfigValue,
    get_config_manager,
    set_global_config,
)
from datumflow.core.constants import ConfigKey, ErrorCode
from datumflow.core.errors import ConfigError


class TestConfigSource:
    """Tests for ConfigSource enum."""

    def test_precedence_order(self):
        """Test config source precedence ordering."""
        sources = [
            ConfigSource.COMPILED_DEFAULTS,
            ConfigSource.SYSTEM_CONFIG,
            ConfigSource.USER_CONFIG,
            ConfigSource.ENVIRONMENT,
            ConfigSource.RUNTIME,
        ]
        for i in range(len(sources) - 1):
            assert sources[i].value < sources[i + 1].value


class TestDefaults:
    """Tests for compiled defaults."""

    def test_defaults(self, config):
        """Test compiled defaults are available."""
        assert config.get(ConfigKey.PAGE_SIZE) == 500
        assert config.get(ConfigKey.PAGE_CACHE_PAGES) == 8
        assert config.get(ConfigKey.MAX_WORKERS) == 8
        assert config.get(ConfigKey.DEFAULT_BRANCH) == "master"
        assert config.get(ConfigKey.DEFAULT_PROJECT) == "default"
        assert config.get(ConfigKey.OUTPUT_REPO) == "out"
        assert config.get(ConfigKey.LOG_FILE) is None

    def test_missing_key_default(self, config):
        """Test unknown keys return the given default."""
        assert config.get("datumflow.nothing.here", default=42) == 42

    def test_defaults_pass_schema(self, config):
        """Test compiled defaults satisfy the schema."""
        assert config.validate_schema(CONFIG_SCHEMA)


class TestLoadFile:
    """Tests for loading YAML files."""

    def test_load_file(self, config_file):
        """Test file values override defaults."""
        config = ConfigManager(str(config_file), load_environment=False)
        assert config.get(ConfigKey.PAGE_SIZE) == 3
        assert config.get(ConfigKey.OUTPUT_REPO) == "results"
        value = config.get_value(ConfigKey.DEFAULT_BRANCH)
        assert isinstance(value, ConfigValue)
        assert value.value == "main"
        assert value.source == ConfigSource.USER_CONFIG

    def test_partial_file_keeps_defaults(self, temp_dir):
        """Test keys missing from a file fall back to defaults."""
        path = temp_dir / "partial.yaml"
        path.write_text("datumflow:\n  enumeration:\n    page_size: 7\n")
        config = ConfigManager(str(path), load_environment=False)
        assert config.get(ConfigKey.PAGE_SIZE) == 7
        assert config.get(ConfigKey.PAGE_CACHE_PAGES) == 8

    def test_missing_file(self, temp_dir):
        """Test a missing file raises ConfigError with NOT_FOUND."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigManager(str(temp_dir / "missing.yaml"), load_environment=False)
        assert exc_info.value.error_code == ErrorCode.NOT_FOUND

    def test_invalid_yaml(self, temp_dir):
        """Test malformed YAML raises ConfigError."""
        path = temp_dir / "bad.yaml"
        path.write_text("datumflow: [unclosed\n")
        with pytest.raises(ConfigError, match="YAML parse error"):
            ConfigManager(str(path), load_environment=False)

    def test_non_mapping(self, temp_dir):
        """Test a YAML list is not a valid config."""
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Invalid config format"):
            ConfigManager(str(path), load_environment=False)


class TestEnvironment:
    """Tests for environment variable overrides."""

    def test_nested_key(self):
        """Test double underscores nest and values are parsed."""
        env = {
            "DATUMFLOW_ENUMERATION__PAGE_SIZE": "1000",
            "DATUMFLOW_SPEC__OUTPUT_REPO": "results",
            "UNRELATED": "x",
        }
        with patch.dict("os.environ", env, clear=True):
            config = ConfigManager()
        assert config.get(ConfigKey.PAGE_SIZE) == 1000
        assert config.get(ConfigKey.OUTPUT_REPO) == "results"
        assert config.get_value(ConfigKey.PAGE_SIZE).source == ConfigSource.ENVIRONMENT

    def test_environment_beats_file(self, config_file):
        """Test environment overrides file values."""
        with patch.dict("os.environ", {"DATUMFLOW_ENUMERATION__PAGE_SIZE": "11"}, clear=True):
            config = ConfigManager(str(config_file))
        assert config.get(ConfigKey.PAGE_SIZE) == 11

    @pytest.mark.parametrize(
        "raw,parsed",
        [("true", True), ("no", False), ("null", None), ("12", 12), ("0.5", 0.5), ("main", "main")],
    )
    def test_parse_env_value(self, config, raw, parsed):
        """Test environment value parsing."""
        assert config._parse_env_value(raw) == parsed


class TestAccess:
    """Tests for set, get_int and merging."""

    def test_runtime_set_wins(self, config_file):
        """Test runtime values override every other source."""
        config = ConfigManager(str(config_file), load_environment=False)
        config.set(ConfigKey.PAGE_SIZE, 64)
        assert config.get(ConfigKey.PAGE_SIZE) == 64
        assert config.get_all()["datumflow"]["enumeration"]["page_cache_pages"] == 2

    def test_get_int(self, config):
        """Test integer access with a minimum."""
        assert config.get_int(ConfigKey.PAGE_SIZE, 1) == 500
        config.set(ConfigKey.PAGE_SIZE, 0)
        with pytest.raises(ConfigError, match=">= 1"):
            config.get_int(ConfigKey.PAGE_SIZE, 1)
        config.set(ConfigKey.PAGE_SIZE, "many")
        with pytest.raises(ConfigError, match="Expected int"):
            config.get_int(ConfigKey.PAGE_SIZE, 1)

    def test_schema_violation(self, config):
        """Test a wrongly typed value fails schema validation."""
        config.set(ConfigKey.MAX_WORKERS, "eight")
        with pytest.raises(ConfigError, match="max_workers"):
            config.validate_schema(CONFIG_SCHEMA)

    def test_clear_keeps_defaults(self, config):
        """Test clear drops everything but compiled defaults."""
        config.set(ConfigKey.PAGE_SIZE, 9)
        config.clear()
        assert config.get(ConfigKey.PAGE_SIZE) == 500

    def test_load_dict(self, config):
        """Test loading a dictionary at a given source."""
        config.load_dict({"datumflow": {"spec": {"default_project": "lab"}}}, ConfigSource.SYSTEM_CONFIG)
        assert config.get(ConfigKey.DEFAULT_PROJECT) == "lab"

    def test_concurrent_sets(self, config):
        """Test concurrent writers don't corrupt the config."""

        def write(n):
            for i in range(100):
                config.set(f"datumflow.test.key{n}", i)

        threads = [threading.Thread(target=write, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert all(config.get(f"datumflow.test.key{n}") == 99 for n in range(4))


class TestGlobalConfig:
    """Tests for the global config manager."""

    def test_singleton(self):
        """Test the global manager is created once."""
        assert get_config_manager() is get_config_manager()

    def test_set_global(self, config):
        """Test replacing the global manager."""
        set_global_config(config)
        assert get_config_manager() is config

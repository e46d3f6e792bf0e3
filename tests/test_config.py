"""Tests for configuration loading and validation."""

from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from zoya.config import (
    get_config,
    get_config_or_default,
    load_config,
    validate_config_file,
)
from zoya.config_schema import AppConfig
from zoya.core.errors import ConfigLoadError, ConfigValidationError


class TestLoadConfig:
    """Tests for load_config()."""

    def test_loads_valid_file(self, config_file: Path) -> None:
        config = load_config(config_file)

        assert config.timezone == "Asia/Karachi"
        assert config.storage.backend == "memory"
        assert config.storage.seed_sample_data is False
        assert config.classifier.cooldown_seconds == 30

    def test_defaults_fill_missing_sections(self, config_file: Path) -> None:
        config = load_config(config_file)

        assert config.server.host == "127.0.0.1"
        assert config.server.port == 8000
        assert config.classifier.model == "claude-haiku-4-5-20251001"
        assert config.storage.pool_size == 5

    def test_missing_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_yaml_raises_load_error(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(path)

    def test_empty_file_gives_defaults(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("")

        config = load_config(path)

        assert config == AppConfig()

    def test_unknown_timezone_rejected(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text('timezone: "Mars/Olympus"\n')

        with pytest.raises(ConfigValidationError, match="timezone"):
            load_config(path)

    def test_newer_schema_version_rejected(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("schema_version: 99\n")

        with pytest.raises(ConfigValidationError, match="newer"):
            load_config(path)

    def test_db_path_traversal_rejected(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("storage:\n  db_path: ../outside.db\n")

        with pytest.raises(ConfigValidationError, match="traversal"):
            load_config(path)


class TestConfigSingleton:
    """Tests for get_config() and get_config_or_default()."""

    def test_get_config_reads_env_path(self, set_config_env: None) -> None:
        config = get_config()
        assert config.timezone == "Asia/Karachi"
        assert get_config() is config

    def test_get_config_or_default_without_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ZOYA_CONFIG_PATH", str(tmp_path / "missing.yaml"))

        config = get_config_or_default()

        assert config == AppConfig()
        assert get_config_or_default() is config

    def test_get_config_or_default_still_rejects_invalid_file(
        self, temp_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("classifier:\n  temperature: 5\n")
        monkeypatch.setenv("ZOYA_CONFIG_PATH", str(path))

        with pytest.raises(ConfigValidationError):
            get_config_or_default()


class TestValidateConfigFile:
    def test_valid(self, config_file: Path) -> None:
        is_valid, message = validate_config_file(config_file)
        assert is_valid
        assert "storage backend: memory" in message

    def test_invalid(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("storage:\n  backend: postgres\n")

        is_valid, message = validate_config_file(path)

        assert not is_valid
        assert message.startswith("Validation error")


def test_tzinfo_property(sample_config_dict: dict[str, Any]) -> None:
    sample_config_dict["timezone"] = "Asia/Karachi"
    config = AppConfig(**sample_config_dict)
    assert config.tzinfo == ZoneInfo("Asia/Karachi")


class TestEnvOverrides:
    def test_storage_backend_and_path(
        self, config_file: Path, data_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ZOYA_STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("ZOYA_DB_PATH", str(data_dir / "zoya.db"))

        config = load_config(config_file)

        assert config.storage.backend == "sqlite"
        assert config.storage.db_path == str(data_dir / "zoya.db")
        # Other storage keys from the file survive
        assert config.storage.seed_sample_data is False

    def test_timezone(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ZOYA_TIMEZONE", "Europe/London")
        assert load_config(config_file).timezone == "Europe/London"

    def test_applied_to_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ZOYA_CONFIG_PATH", str(tmp_path / "missing.yaml"))
        monkeypatch.setenv("ZOYA_TIMEZONE", "Asia/Karachi")

        assert get_config_or_default().timezone == "Asia/Karachi"

    def test_invalid_override_rejected(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ZOYA_STORAGE_BACKEND", "postgres")

        with pytest.raises(ConfigValidationError, match="storage.backend"):
            load_config(config_file)

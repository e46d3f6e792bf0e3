"""Pytest fixtures and configuration for Zoya assistant tests.

Provides common fixtures for configuration, stores, and mocking.
"""

import os
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from zoya.config import reset_config
from zoya.config_schema import AppConfig, ClassifierConfig
from zoya.db.memory import MemoryStore

# Tuesday morning, well inside the UTC day
FIXED_NOW = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset the config singleton before each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a minimal valid config.yaml content."""
    return """
schema_version: 1

timezone: "Asia/Karachi"

storage:
  backend: memory
  seed_sample_data: false

classifier:
  enabled: true
  timeout_seconds: 5
  cooldown_seconds: 30
"""


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Return a minimal valid config as a dictionary."""
    return {
        "schema_version": 1,
        "timezone": "UTC",
        "storage": {
            "backend": "memory",
            "seed_sample_data": False,
        },
        "classifier": {
            "enabled": True,
            "timeout_seconds": 5,
            "cooldown_seconds": 60,
        },
    }


@pytest.fixture
def sample_config(sample_config_dict: dict[str, Any]) -> AppConfig:
    """Return a minimal valid AppConfig instance."""
    return AppConfig(**sample_config_dict)


@pytest.fixture
def classifier_config() -> ClassifierConfig:
    """Return classifier settings with a short provider timeout."""
    return ClassifierConfig(timeout_seconds=0.5, cooldown_seconds=60)


@pytest.fixture
def config_file(temp_config_dir: Path, sample_config_yaml: str) -> Path:
    """Create a temporary config file with valid content."""
    config_path = temp_config_dir / "config.yaml"
    config_path.write_text(sample_config_yaml)
    return config_path


@pytest.fixture
def set_config_env(config_file: Path) -> Generator[None, None, None]:
    """Set the ZOYA_CONFIG_PATH environment variable."""
    old_value = os.environ.get("ZOYA_CONFIG_PATH")
    os.environ["ZOYA_CONFIG_PATH"] = str(config_file)
    yield
    if old_value is None:
        del os.environ["ZOYA_CONFIG_PATH"]
    else:
        os.environ["ZOYA_CONFIG_PATH"] = old_value


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory."""
    data = tmp_path / "data"
    data.mkdir()
    return data


@pytest.fixture
def memory_store() -> MemoryStore:
    """Return an empty MemoryStore with a frozen clock."""
    return MemoryStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def seeded_store() -> MemoryStore:
    """Return a MemoryStore holding the demo data, frozen at FIXED_NOW."""
    return MemoryStore(seed=True, clock=lambda: FIXED_NOW)


@pytest.fixture
def mock_anthropic_client() -> MagicMock:
    """Return a mocked AsyncAnthropic client.

    Tests set ``client.messages.create.return_value`` or ``side_effect``.
    """
    client = MagicMock()
    client.messages.create = AsyncMock()
    return client

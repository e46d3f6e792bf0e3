"""Tests for the click CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from zoya.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def offline_config(temp_config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Config with the provider disabled, so ask runs on the fallback matcher."""
    config_path = temp_config_dir / "config.yaml"
    config_path.write_text(
        "schema_version: 1\n"
        "timezone: UTC\n"
        "storage:\n"
        "  backend: memory\n"
        "  seed_sample_data: false\n"
        "classifier:\n"
        "  enabled: false\n"
    )
    monkeypatch.setenv("ZOYA_CONFIG_PATH", str(config_path))
    return config_path


class TestValidateConfig:
    def test_valid(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(cli, ["validate-config", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "✓" in result.output

    def test_invalid(self, runner: CliRunner, temp_config_dir: Path) -> None:
        bad = temp_config_dir / "bad.yaml"
        bad.write_text("schema_version: 1\ntimezone: Not/AZone\n")

        result = runner.invoke(cli, ["validate-config", "-c", str(bad)])

        assert result.exit_code == 1
        assert "✗" in result.output

    def test_missing(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["validate-config", "-c", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1


class TestAsk:
    def test_creates_task_with_fallback(self, runner: CliRunner, offline_config: Path) -> None:
        result = runner.invoke(cli, ["ask", "add a note buy groceries", "--language", "en"])

        assert result.exit_code == 0, result.output
        assert 'Task created successfully: "buy groceries"' in result.output
        assert "create_task" in result.output
        assert "completed" in result.output

    def test_empty_input_fails(self, runner: CliRunner, offline_config: Path) -> None:
        result = runner.invoke(cli, ["ask", "   ", "--language", "en"])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestInitDb:
    def test_creates_database(self, runner: CliRunner, data_dir: Path) -> None:
        db_path = data_dir / "zoya.db"

        result = runner.invoke(cli, ["init-db", "--db-path", str(db_path)])

        assert result.exit_code == 0, result.output
        assert db_path.exists()

"""Unit tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from dataplayground import __version__
from dataplayground.cli import cli
from dataplayground.core.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("DATAPLAYGROUND_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/cli.db")
    monkeypatch.setenv("DATAPLAYGROUND_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(cli, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_db_refuses_production(self, monkeypatch):
        monkeypatch.setenv("DATAPLAYGROUND_ENVIRONMENT", "production")
        monkeypatch.setenv("DATAPLAYGROUND_SECRET_KEY", "a-real-production-secret")
        result = CliRunner().invoke(cli, ["init-db"])
        assert result.exit_code == 1

    def test_init_db_creates_database(self, tmp_path):
        result = CliRunner().invoke(cli, ["init-db", "--force"])
        assert result.exit_code == 0, result.output
        assert "Database initialized successfully." in result.output
        assert (tmp_path / "cli.db").exists()

    def test_init_db_asks_for_confirmation(self, tmp_path):
        result = CliRunner().invoke(cli, ["init-db"], input="n\n")
        assert result.exit_code == 1
        assert not (tmp_path / "cli.db").exists()

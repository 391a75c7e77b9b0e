"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from dataplayground.core.config import DEFAULT_SECRET_KEY, Settings


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSettings:
    def test_defaults(self):
        settings = _settings()
        assert settings.api_prefix == "/api"
        assert settings.access_token_expire_minutes == 7 * 24 * 60
        assert settings.registration_code is None
        assert settings.default_page_size == 10

    def test_environment_flags(self):
        assert _settings(environment="development").is_development
        assert not _settings(environment="testing").is_development

    def test_production_requires_real_secret(self):
        with pytest.raises(ValidationError):
            _settings(environment="production", secret_key=DEFAULT_SECRET_KEY)
        assert _settings(environment="production", secret_key="real-secret").is_production

    def test_sqlite_rejects_multiple_workers(self):
        with pytest.raises(ValidationError):
            _settings(workers=4, database_url="sqlite+aiosqlite:///./data/app.db")

    def test_page_sizes(self):
        with pytest.raises(ValidationError):
            _settings(default_page_size=50, max_page_size=20)

    def test_cors_origins_from_comma_separated_string(self):
        settings = _settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_cors_origins_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATAPLAYGROUND_CORS_ORIGINS", '["http://a.test"]')
        assert _settings().cors_origins == ["http://a.test"]

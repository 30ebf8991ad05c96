"""Tests for startup configuration checks."""

import pytest

from app.core.config import Settings, settings, validate_settings_for_production


@pytest.fixture
def restore_settings():
    saved = settings.model_dump()
    yield settings
    for key, value in saved.items():
        setattr(settings, key, value)


class TestSettings:
    def test_database_url_overrides_postgres_parts(self):
        s = Settings(database_url="sqlite+aiosqlite:///./local.db")
        assert s.postgres_url == "sqlite+aiosqlite:///./local.db"

    def test_postgres_url_from_parts(self):
        s = Settings(database_url="", postgres_host="db", postgres_db="av", postgres_user="u", postgres_password="p")
        assert s.postgres_url == "postgresql+asyncpg://u:p@db:5432/av"
        assert s.postgres_url_sync == "postgresql+psycopg2://u:p@db:5432/av"


class TestValidateSettings:
    def test_development_defaults_pass(self, restore_settings):
        validate_settings_for_production()

    def test_openai_requires_key(self, restore_settings):
        settings.engine_fetcher = "openai"
        settings.openai_api_key = ""

        with pytest.raises(SystemExit, match="OPENAI_API_KEY"):
            validate_settings_for_production()

    def test_unknown_fetcher(self, restore_settings):
        settings.engine_fetcher = "bogus"

        with pytest.raises(SystemExit, match="ENGINE_FETCHER"):
            validate_settings_for_production()

    def test_production_rejects_template_and_debug(self, restore_settings):
        settings.app_env = "production"
        settings.app_debug = True
        settings.allowed_origins = "*"

        with pytest.raises(SystemExit) as exc_info:
            validate_settings_for_production()

        message = str(exc_info.value)
        assert "APP_DEBUG" in message
        assert "ALLOWED_ORIGINS" in message
        assert "ENGINE_FETCHER=template" in message

    def test_negative_retries(self, restore_settings):
        settings.fetch_max_retries = -1

        with pytest.raises(SystemExit, match="FETCH_MAX_RETRIES"):
            validate_settings_for_production()

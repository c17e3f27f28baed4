"""Tests for centralized configuration."""

import os
from unittest.mock import patch


class TestPostgresSettings:
    def test_postgres_default_values(self):
        from comit.config import PostgresSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = PostgresSettings()
            assert settings.host == "postgres"
            assert settings.port == 5432
            assert settings.database == "devdb"
            assert settings.pool_min_size == 2
            assert settings.pool_max_size == 10

    def test_postgres_dsn_generation(self):
        from comit.config import PostgresSettings

        env = {
            "POSTGRES_HOST": "dbhost",
            "POSTGRES_PORT": "5433",
            "POSTGRES_USER": "myuser",
            "POSTGRES_PASSWORD": "mypass",
            "POSTGRES_DB": "mydb",
        }
        with patch.dict(os.environ, env, clear=True):
            dsn = PostgresSettings().get_dsn()
            assert "host=dbhost" in dsn
            assert "port=5433" in dsn
            assert "user=myuser" in dsn
            assert "password=mypass" in dsn
            assert "dbname=mydb" in dsn


class TestCorsSettings:
    def test_cors_default_values(self):
        from comit.config import CorsSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = CorsSettings()
            assert settings.origins == ["http://localhost:3000"]
            assert settings.allow_credentials is True

    def test_cors_wildcard_disables_credentials(self):
        from comit.config import CorsSettings

        with patch.dict(os.environ, {"CORS_ORIGINS": "*"}, clear=True):
            settings = CorsSettings()
            assert settings.origins == ["*"]
            assert settings.allow_credentials is False


class TestSettings:
    def test_settings_singleton_pattern(self):
        from comit.config import get_settings

        assert get_settings() is get_settings()

    def test_clear_settings_cache(self):
        from comit.config import clear_settings_cache, get_settings

        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first

    def test_flags(self):
        from comit.config import Settings

        env = {"ENABLE_DB": "yes", "REQUEST_DEBUG": "1", "SCHEDULING_DEBUG": "false"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings()
            assert settings.features.database is True
            assert settings.debug.request is True
            assert settings.debug.scheduling is False

    def test_event_limits(self):
        from comit.config import Settings

        with patch.dict(os.environ, {"EVENT_MAX_NAME_LENGTH": "20"}, clear=True):
            settings = Settings()
            assert settings.events.max_name_length == 20
            assert settings.events.max_title_length == 200
            assert settings.events.max_dates == 31

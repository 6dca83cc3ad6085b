"""
Tests for configuration settings.
"""
import pytest

from elurinfo.config.settings import Settings, get_settings, reset_settings


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self):
        """It should default to port 3000, PostgreSQL and the stub provider."""
        settings = Settings(_env_file=None)

        assert settings.elurinfo_port == 3000
        assert settings.store_backend == "postgres"
        assert settings.forecast_provider == "stub"
        assert settings.aemet_base_url == "https://opendata.aemet.es/opendata/api"
        assert settings.local_timezone == "Europe/Madrid"
        assert settings.cache_avalanche_hours == 24
        assert settings.cache_snow_science_front_hours == 6
        assert settings.sweep_enabled is True
        assert settings.postgres_pool_max_overflow == 10
        assert settings.postgres_pool_max_overflow == 10

    def test_database_url(self):
        """It should build an asyncpg URL from the PostgreSQL settings."""
        settings = Settings(
            _env_file=None,
            POSTGRES_HOST="db",
            POSTGRES_PORT=5433,
            POSTGRES_DATABASE="nieve",
            POSTGRES_USER="app",
            POSTGRES_PASSWORD="secret",
        )

        assert settings.database_url == "postgresql+asyncpg://app:secret@db:5433/nieve"


class TestSettingsFromEnvironment:
    """Tests for environment loading."""

    def test_reads_environment(self, monkeypatch):
        """It should read values from environment variables."""
        monkeypatch.setenv("ELURINFO_PORT", "8080")
        monkeypatch.setenv("CACHE_MOUNTAIN_HOURS", "2")
        monkeypatch.setenv("FORECAST_PROVIDER", "aemet")
        monkeypatch.setenv("AEMET_API_KEY", "abc")

        settings = Settings(_env_file=None)

        assert settings.elurinfo_port == 8080
        assert settings.cache_mountain_hours == 2
        assert settings.forecast_provider == "aemet"
        assert settings.aemet_api_key == "abc"

    def test_cors_origins_are_split(self, monkeypatch):
        """It should split comma separated CORS origins."""
        monkeypatch.setenv("CORS_ORIGIN", "http://a.test, http://b.test,")

        assert Settings(_env_file=None).get_cors_origins() == ["http://a.test", "http://b.test"]


class TestProviderValidation:
    """Tests for validate_provider_config."""

    @pytest.mark.parametrize("provider, key, expected", [
        ("stub", None, True),
        ("aemet", "abc", True),
        ("aemet", None, False),
        ("AEMET", "", False),
    ])
    def test_validate_provider_config(self, provider, key, expected):
        """It should require an API key only for AEMET."""
        settings = Settings(_env_file=None, FORECAST_PROVIDER=provider, AEMET_API_KEY=key)

        assert settings.validate_provider_config() is expected

    def test_to_dict_hides_secrets(self):
        """It should mask the API key and database password."""
        data = Settings(_env_file=None, AEMET_API_KEY="abc", POSTGRES_PASSWORD="pw").to_dict()

        assert data["aemet_api_key"] == "***"
        assert data["postgres_password"] == "***"


class TestGlobalSettings:
    """Tests for the settings singleton."""

    def test_get_settings_is_cached_until_reset(self):
        """It should return the same instance until reset_settings is called."""
        reset_settings()
        try:
            first = get_settings()
            assert get_settings() is first

            reset_settings()
            assert get_settings() is not first
        finally:
            reset_settings()

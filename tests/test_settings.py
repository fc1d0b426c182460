"""Tests for application settings."""

import pytest

from studybuilder.settings import (
    Settings,
    clear_settings_cache,
    get_settings,
    load_settings_from_env,
)


@pytest.fixture(autouse=True)
def _fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self):
        settings = Settings()

        assert settings.duration_warning_minutes == 60
        assert settings.autosave_delay_seconds == 1.5
        assert settings.log_format == "text"
        assert settings.catalog_dir == "seed/catalog"
        assert settings.is_development
        assert not settings.is_production

    def test_rejects_non_positive_threshold(self):
        with pytest.raises(ValueError, match="DURATION_WARNING_MINUTES"):
            Settings(duration_warning_minutes=0)

    def test_rejects_non_positive_autosave_delay(self):
        with pytest.raises(ValueError, match="AUTOSAVE_DELAY_SECONDS"):
            Settings(autosave_delay_seconds=0)

    def test_rejects_unknown_log_format(self):
        with pytest.raises(ValueError, match="LOG_FORMAT"):
            Settings(log_format="xml")


class TestLoadSettingsFromEnv:
    """Tests for environment loading."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_FORMAT", "json")
        monkeypatch.setenv("DURATION_WARNING_MINUTES", "45")
        monkeypatch.setenv("AUTOSAVE_DELAY_SECONDS", "0.5")
        monkeypatch.setenv("USE_MEMORY_PERSISTENCE", "yes")
        monkeypatch.setenv("STUDY_API_URL", "https://studies.example.com/api")

        settings = load_settings_from_env()

        assert settings.is_production
        assert settings.log_format == "json"
        assert settings.duration_warning_minutes == 45
        assert settings.autosave_delay_seconds == 0.5
        assert settings.use_memory_persistence is True
        assert settings.study_api_url == "https://studies.example.com/api"

    def test_allowed_origins_list(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example.com, https://b.example.com")

        settings = load_settings_from_env()

        assert settings.allowed_origins == ["https://a.example.com", "https://b.example.com"]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

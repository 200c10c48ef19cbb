"""Tests for settings loading and validation."""

import pytest

from nested_fields.settings import (
    Settings,
    clear_settings_cache,
    get_settings,
    load_settings_from_env,
)


class TestSettingsDefaults:

    def test_defaults(self):
        settings = Settings()
        assert settings.controller_identifier == "nested-rondo"
        assert settings.destroy_field == "_destroy"
        assert settings.destroy_value == "1"
        assert settings.identifier_source == "clock"
        assert settings.is_development

    def test_strict_unless_production(self):
        assert Settings().strict is True
        assert Settings(environment="staging").strict is True
        assert Settings(environment="production").strict is False

    def test_explicit_strict_wins(self):
        assert Settings(environment="production", strict=True).strict is True

    def test_invalid_identifier_source(self):
        with pytest.raises(ValueError, match="identifier_source"):
            Settings(identifier_source="uuid")

    def test_empty_tokens_rejected(self):
        with pytest.raises(ValueError):
            Settings(controller_identifier="")
        with pytest.raises(ValueError):
            Settings(destroy_field="")


class TestLoadSettingsFromEnv:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("NESTED_FIELDS_CONTROLLER", "nested")
        monkeypatch.setenv("NESTED_FIELDS_DESTROY_VALUE", "true")
        monkeypatch.setenv("NESTED_FIELDS_ID_SOURCE", "counter")
        monkeypatch.setenv("NESTED_FIELDS_STRICT", "no")
        monkeypatch.setenv("LOG_FORMAT", "json")

        settings = load_settings_from_env()

        assert settings.controller_identifier == "nested"
        assert settings.destroy_value == "true"
        assert settings.identifier_source == "counter"
        assert settings.strict is False
        assert settings.log_format == "json"

    def test_unset_strict_follows_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert load_settings_from_env().strict is False

    def test_get_settings_is_cached(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("NESTED_FIELDS_CONTROLLER", "changed")
        assert get_settings() is first

        clear_settings_cache()
        assert get_settings().controller_identifier == "changed"

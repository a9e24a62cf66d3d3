"""
Unit tests for the configuration settings module.

Tests cover:
- Default values
- Field validation
- Environment-specific loading
- Startup validation
"""

import os
import pytest
from datetime import timedelta
from unittest.mock import patch

from config.settings import (
    Settings,
    Environment,
    ConfigurationError,
    get_settings,
    validate_startup,
    clear_settings_cache,
    create_settings_for_environment,
    _detect_environment,
    _get_env_files,
)
from session.dynamodb_store import DynamoDBSessionStore


def _settings(**env) -> Settings:
    with patch.dict(os.environ, env, clear=True):
        return Settings(_env_file=None)


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values_are_applied(self):
        """Test that an empty environment yields the standard table layout."""
        settings = _settings()

        assert settings.environment == Environment.DEVELOPMENT
        assert settings.session_table_name == "sessions"
        assert settings.session_hash_key == "sessionId"
        assert settings.session_hash_prefix == "sess:"
        assert settings.session_read_capacity_units == 5
        assert settings.session_write_capacity_units == 5
        assert settings.session_ttl_seconds == 86400
        assert settings.session_expires_attribute == "expires"
        assert settings.session_enable_ttl is False
        assert settings.aws_region is None
        assert settings.dynamodb_endpoint_url is None
        assert settings.session_cookie_name == "sid"
        assert settings.session_cookie_samesite == "lax"
        assert settings.session_rolling is True
        assert settings.log_level == "INFO"

    def test_values_from_environment(self):
        """Test that environment variables override defaults."""
        settings = _settings(
            SESSION_TABLE_NAME="app.sessions",
            SESSION_HASH_PREFIX="",
            SESSION_READ_CAPACITY_UNITS="20",
            SESSION_TTL_SECONDS="600",
            SESSION_ENABLE_TTL="true",
            AWS_REGION="eu-central-1",
            DYNAMODB_ENDPOINT_URL="http://localhost:8000",
        )

        assert settings.session_table_name == "app.sessions"
        assert settings.session_hash_prefix == ""
        assert settings.session_read_capacity_units == 20
        assert settings.session_ttl_seconds == 600
        assert settings.session_enable_ttl is True
        assert settings.aws_region == "eu-central-1"
        assert settings.dynamodb_endpoint_url == "http://localhost:8000"

    @pytest.mark.parametrize("name", ["ab", "has space", "bad/name", "x" * 256])
    def test_invalid_table_name_raises_error(self, name):
        with pytest.raises(Exception) as exc_info:
            _settings(SESSION_TABLE_NAME=name)

        assert "session_table_name" in str(exc_info.value).lower()

    def test_capacity_must_be_positive(self):
        with pytest.raises(Exception) as exc_info:
            _settings(SESSION_WRITE_CAPACITY_UNITS="0")

        assert "session_write_capacity_units" in str(exc_info.value).lower()

    def test_ttl_must_be_positive(self):
        with pytest.raises(Exception) as exc_info:
            _settings(SESSION_TTL_SECONDS="0")

        assert "session_ttl_seconds" in str(exc_info.value).lower()

    def test_empty_hash_key_raises_error(self):
        with pytest.raises(Exception) as exc_info:
            _settings(SESSION_HASH_KEY="  ")

        assert "session_hash_key" in str(exc_info.value).lower()

    def test_invalid_endpoint_url_raises_error(self):
        with pytest.raises(Exception) as exc_info:
            _settings(DYNAMODB_ENDPOINT_URL="localhost:8000")

        assert "http" in str(exc_info.value).lower()

    def test_invalid_log_level_raises_error(self):
        with pytest.raises(Exception) as exc_info:
            _settings(LOG_LEVEL="INVALID_LEVEL")

        assert "log_level" in str(exc_info.value).lower()

    def test_samesite_is_normalised(self):
        assert _settings(SESSION_COOKIE_SAMESITE="Strict").session_cookie_samesite == "strict"

    def test_invalid_samesite_raises_error(self):
        with pytest.raises(Exception) as exc_info:
            _settings(SESSION_COOKIE_SAMESITE="sometimes")

        assert "session_cookie_samesite" in str(exc_info.value).lower()

    def test_samesite_none_requires_secure(self):
        with pytest.raises(Exception) as exc_info:
            _settings(SESSION_COOKIE_SAMESITE="none")

        assert "session_cookie_secure" in str(exc_info.value).lower()

        settings = _settings(SESSION_COOKIE_SAMESITE="none", SESSION_COOKIE_SECURE="true")
        assert settings.session_cookie_samesite == "none"


class TestStoreFromSettings:
    """Tests for building the store from settings."""

    def test_from_settings_maps_all_fields(self):
        settings = _settings(
            SESSION_TABLE_NAME="web",
            SESSION_HASH_KEY="pk",
            SESSION_HASH_PREFIX="w:",
            SESSION_READ_CAPACITY_UNITS="7",
            SESSION_WRITE_CAPACITY_UNITS="8",
            SESSION_TTL_SECONDS="120",
            SESSION_EXPIRES_ATTRIBUTE="ttl",
            SESSION_ENABLE_TTL="true",
            AWS_REGION="us-east-2",
            DYNAMODB_ENDPOINT_URL="http://localhost:8000",
        )

        store = DynamoDBSessionStore.from_settings(settings)

        assert store.table_config.name == "web"
        assert store.table_config.hash_key == "pk"
        assert store.table_config.hash_prefix == "w:"
        assert store.table_config.read_capacity_units == 7
        assert store.table_config.write_capacity_units == 8
        assert store.table_config.expires_attribute == "ttl"
        assert store.table_config.enable_ttl is True
        assert store.default_ttl == timedelta(seconds=120)
        assert store.dynamo_params == {
            "region_name": "us-east-2",
            "endpoint_url": "http://localhost:8000",
        }

    def test_from_settings_omits_unset_aws_params(self):
        store = DynamoDBSessionStore.from_settings(_settings())

        assert store.dynamo_params == {}


class TestConfigurationError:
    """Tests for the ConfigurationError class."""

    def test_error_message_with_missing_fields(self):
        error = ConfigurationError("Configuration failed", missing_fields=["field1", "field2"])

        message = str(error)
        assert "Configuration failed" in message
        assert "Missing required fields: field1, field2" in message

    def test_error_message_with_invalid_fields(self):
        error = ConfigurationError(
            "Configuration failed",
            invalid_fields={"field1": "must be positive", "field2": "invalid format"}
        )

        message = str(error)
        assert "field1: must be positive" in message
        assert "field2: invalid format" in message


class TestGetSettings:
    """Tests for the get_settings function."""

    def test_get_settings_returns_cached_instance(self):
        clear_settings_cache()

        with patch.dict(os.environ, {}, clear=True):
            first = get_settings()
            second = get_settings()

        assert isinstance(first, Settings)
        assert first is second
        clear_settings_cache()

    def test_get_settings_raises_configuration_error_on_invalid_config(self):
        clear_settings_cache()

        with patch.dict(os.environ, {"SESSION_TABLE_NAME": "x"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                get_settings()

        assert "session_table_name" in str(exc_info.value)
        clear_settings_cache()

    def test_clear_settings_cache_allows_reload(self):
        clear_settings_cache()

        with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}, clear=True):
            assert get_settings().log_level == "DEBUG"

        clear_settings_cache()

        with patch.dict(os.environ, {"LOG_LEVEL": "ERROR"}, clear=True):
            assert get_settings().log_level == "ERROR"

        clear_settings_cache()


class TestValidateStartup:
    """Tests for the validate_startup function."""

    def test_development_defaults_pass(self):
        validate_startup(_settings())

    def test_production_requires_secure_cookie(self):
        settings = _settings(ENVIRONMENT="production")

        with pytest.raises(ConfigurationError) as exc_info:
            validate_startup(settings)

        assert "session_cookie_secure" in str(exc_info.value)

    def test_production_rejects_custom_endpoint(self):
        settings = _settings(
            ENVIRONMENT="production",
            SESSION_COOKIE_SECURE="true",
            DYNAMODB_ENDPOINT_URL="http://localhost:8000",
        )

        with pytest.raises(ConfigurationError) as exc_info:
            validate_startup(settings)

        assert "dynamodb_endpoint_url" in str(exc_info.value)

    def test_production_with_secure_cookie_passes(self):
        validate_startup(_settings(ENVIRONMENT="production", SESSION_COOKIE_SECURE="true"))


class TestEnvironmentSpecificConfiguration:
    """Tests for environment-specific configuration loading."""

    @pytest.mark.parametrize("value,expected", [
        ("development", Environment.DEVELOPMENT),
        ("staging", Environment.STAGING),
        ("PRODUCTION", Environment.PRODUCTION),
        ("invalid_env", Environment.DEVELOPMENT),
    ])
    def test_detect_environment(self, value, expected):
        with patch.dict(os.environ, {"ENVIRONMENT": value}, clear=True):
            assert _detect_environment() == expected

    def test_detect_environment_defaults_to_development(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _detect_environment() == Environment.DEVELOPMENT

    def test_get_env_files(self):
        assert _get_env_files(Environment.STAGING) == (".env", ".env.staging")
        assert _get_env_files(Environment.PRODUCTION) == (".env", ".env.production")

    def test_create_settings_for_environment(self, tmp_path, monkeypatch):
        """Test that the environment-specific file overrides the base file."""
        (tmp_path / ".env").write_text("SESSION_TABLE_NAME=base-sessions\nLOG_LEVEL=DEBUG\n")
        (tmp_path / ".env.staging").write_text("SESSION_TABLE_NAME=staging-sessions\n")
        monkeypatch.chdir(tmp_path)

        with patch.dict(os.environ, {"ENVIRONMENT": "staging"}, clear=True):
            settings = create_settings_for_environment()

        assert settings.environment == Environment.STAGING
        assert settings.session_table_name == "staging-sessions"
        assert settings.log_level == "DEBUG"

"""
Configuration management for the session store service.

This module provides centralized configuration loading and validation using
Pydantic settings. Values are loaded from environment variables or .env files,
with an environment-specific file layered on top of the base one.
"""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from session.constants import (
    DEFAULT_HASH_KEY,
    DEFAULT_HASH_PREFIX,
    DEFAULT_RCU,
    DEFAULT_SESSION_TTL,
    DEFAULT_TABLE_NAME,
    DEFAULT_WCU,
    EXPIRES_ATTRIBUTE,
)


# DynamoDB table naming rules
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]{3,255}$")


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set
        or not recognised.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the .env files to load for the given environment.

    Later files override earlier ones: the base .env first, then the
    environment-specific file.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    return (".env", env_file_map.get(environment, ".env.development"))


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default, so a bare environment yields a store that
    uses the standard ``sessions`` table in the ambient AWS region.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Session table configuration
    session_table_name: str = Field(
        default=DEFAULT_TABLE_NAME,
        description="DynamoDB table holding session records"
    )
    session_hash_key: str = Field(
        default=DEFAULT_HASH_KEY,
        description="Partition key attribute of the session table"
    )
    session_hash_prefix: str = Field(
        default=DEFAULT_HASH_PREFIX,
        description="Prefix prepended to session ids to form the partition key"
    )
    session_read_capacity_units: int = Field(
        default=DEFAULT_RCU,
        ge=1,
        le=40000,
        description="Provisioned read capacity used when creating the table"
    )
    session_write_capacity_units: int = Field(
        default=DEFAULT_WCU,
        ge=1,
        le=40000,
        description="Provisioned write capacity used when creating the table"
    )
    session_ttl_seconds: int = Field(
        default=int(DEFAULT_SESSION_TTL.total_seconds()),
        ge=1,
        description="Default session time-to-live in seconds"
    )
    session_expires_attribute: str = Field(
        default=EXPIRES_ATTRIBUTE,
        description="Attribute holding the record expiration (epoch seconds)"
    )
    session_enable_ttl: bool = Field(
        default=False,
        description="Enable native DynamoDB TTL on the expiration attribute at table creation"
    )

    # AWS configuration
    aws_region: Optional[str] = Field(
        default=None,
        description="AWS region of the session table (falls back to the AWS SDK default)"
    )
    dynamodb_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom DynamoDB endpoint, e.g. DynamoDB Local"
    )

    # Session cookie configuration
    session_cookie_name: str = Field(
        default="sid",
        description="Name of the cookie carrying the session id"
    )
    session_cookie_secure: bool = Field(
        default=False,
        description="Only send the session cookie over HTTPS"
    )
    session_cookie_samesite: str = Field(
        default="lax",
        description="SameSite attribute of the session cookie (lax, strict, none)"
    )
    session_rolling: bool = Field(
        default=True,
        description="Refresh the expiration of unchanged sessions on every request"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("session_table_name")
    @classmethod
    def validate_session_table_name(cls, v: str) -> str:
        """Validate the table name against DynamoDB naming rules."""
        v = v.strip()
        if not TABLE_NAME_PATTERN.match(v):
            raise ValueError(
                "session_table_name must be 3-255 characters of letters, "
                "digits, '_', '-' and '.'"
            )
        return v

    @field_validator("session_hash_key", "session_expires_attribute", "session_cookie_name")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate that attribute and cookie names are not empty."""
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()

    @field_validator("dynamodb_endpoint_url")
    @classmethod
    def validate_dynamodb_endpoint_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate that a custom endpoint is an HTTP/HTTPS URL."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("dynamodb_endpoint_url must be a valid HTTP/HTTPS URL")
        return v

    @field_validator("session_cookie_samesite")
    @classmethod
    def validate_session_cookie_samesite(cls, v: str) -> str:
        """Validate the SameSite cookie attribute."""
        v = v.strip().lower()
        if v not in {"lax", "strict", "none"}:
            raise ValueError("session_cookie_samesite must be 'lax', 'strict' or 'none'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @model_validator(mode="after")
    def validate_cookie_config(self) -> "Settings":
        """Browsers drop SameSite=None cookies that are not Secure."""
        if self.session_cookie_samesite == "none" and not self.session_cookie_secure:
            raise ValueError(
                "session_cookie_secure must be enabled when "
                "session_cookie_samesite is 'none'"
            )
        return self


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Create Settings for a specific environment.

    Args:
        environment: Optional environment override. Detected from the
            ENVIRONMENT variable when omitted.

    Returns:
        Settings: Validated settings for the environment.

    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)
    existing_env_files = [f for f in env_files if Path(f).exists()] or list(env_files)

    try:
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_file=tuple(existing_env_files),
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )

        return EnvironmentSettings()
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        # Pydantic ValidationError carries field-level errors
        if hasattr(e, "errors"):
            for error in e.errors():
                field_name = ".".join(str(loc) for loc in error.get("loc", [])) or "settings"
                if error.get("type", "") == "missing":
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error.get("msg", str(error))

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() reloads."""
    global _settings_cache
    _settings_cache = None


def validate_startup(settings: Optional[Settings] = None) -> None:
    """
    Validate environment-dependent settings before accepting requests.

    Production deployments must use Secure session cookies and the real
    DynamoDB endpoint.

    Raises:
        ConfigurationError: If any check fails.
    """
    if settings is None:
        settings = get_settings()

    validation_errors = {}

    if settings.environment == Environment.PRODUCTION:
        if not settings.session_cookie_secure:
            validation_errors["session_cookie_secure"] = (
                "Production environment requires Secure session cookies"
            )
        if settings.dynamodb_endpoint_url:
            validation_errors["dynamodb_endpoint_url"] = (
                f"Custom DynamoDB endpoint not allowed in production: "
                f"{settings.dynamodb_endpoint_url}"
            )

    if validation_errors:
        raise ConfigurationError(
            "Configuration validation failed during startup",
            invalid_fields=validation_errors
        )

# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_INSECURE_SECRETS = ("dev", "development", "test", "change-me", "")


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


class _Section(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
    )


class DatabaseConfig(_Section):
    url: str = Field("sqlite:///userauth.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")


class JwtConfig(_Section):
    secret: str = Field("change-me", alias="JWT_SECRET")
    algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    expiration: int = Field(604800, ge=1, alias="JWT_EXPIRATION")
    leeway: int = Field(60, ge=0, alias="JWT_LEEWAY")
    issuer: str = Field("userauth-api", alias="JWT_ISSUER")
    audience: str = Field("userauth-app", alias="JWT_AUDIENCE")
    confirmation_expiration: int = Field(3600, ge=1, alias="EMAIL_TOKEN_EXPIRATION")
    reset_expiration: int = Field(3600, ge=1, alias="RESET_TOKEN_EXPIRATION")

    @field_validator("algorithm")
    @classmethod
    def _hmac_only(cls, value: str) -> str:
        value = value.upper()
        if value not in ("HS256", "HS384", "HS512"):
            raise ValueError("only HMAC algorithms (HS256/HS384/HS512) are supported")
        return value


class PasswordPolicyConfig(_Section):
    min_length: int = Field(8, ge=1, alias="PASSWORD_MIN_LENGTH")
    max_length: int = Field(128, ge=1, alias="PASSWORD_MAX_LENGTH")
    require_letter: bool = Field(True, alias="PASSWORD_REQUIRE_LETTER")
    require_digit: bool = Field(True, alias="PASSWORD_REQUIRE_DIGIT")
    require_uppercase: bool = Field(False, alias="PASSWORD_REQUIRE_UPPERCASE")
    require_special: bool = Field(False, alias="PASSWORD_REQUIRE_SPECIAL")
    hash_method: str = Field("scrypt", alias="PASSWORD_HASH_METHOD")

    @field_validator(
        "require_letter", "require_digit", "require_uppercase", "require_special",
        mode="before",
    )
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PasswordPolicyConfig":
        if self.max_length < self.min_length:
            raise ValueError("PASSWORD_MAX_LENGTH must be >= PASSWORD_MIN_LENGTH")
        return self


class SmtpConfig(_Section):
    # Empty host means messages are logged instead of delivered
    host: str = Field("", alias="SMTP_HOST")
    port: int = Field(587, ge=1, le=65535, alias="SMTP_PORT")
    username: str = Field("", alias="SMTP_USERNAME")
    password: str = Field("", alias="SMTP_PASSWORD")
    encryption: str = Field("tls", alias="SMTP_ENCRYPTION")
    from_email: str = Field("no-reply@localhost", alias="SMTP_FROM_EMAIL")
    from_name: str = Field("userauth", alias="SMTP_FROM_NAME")
    timeout: float = Field(10.0, ge=0.1, alias="SMTP_TIMEOUT")
    confirmation_url: str = Field(
        "http://localhost:5000/api/users/confirm", alias="CONFIRMATION_URL"
    )
    password_reset_url: str = Field(
        "http://localhost:3000/reset-password", alias="PASSWORD_RESET_URL"
    )

    @field_validator("encryption", mode="before")
    @classmethod
    def _parse_encryption(cls, value: str) -> str:
        value = (value or "none").lower()
        if value not in ("tls", "ssl", "none"):
            raise ValueError("SMTP_ENCRYPTION must be one of tls, ssl, none")
        return value

    @field_validator("confirmation_url", "password_reset_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")


class SecurityConfig(_Section):
    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="ALLOWED_ORIGINS")

    # Rate limiting
    enable_rate_limit: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    rate_limit_requests: int = Field(10, alias="RL_LIMIT")
    rate_limit_window: float = Field(60.0, alias="RL_WINDOW")

    # User-Agent filtering
    enable_bot_filter: bool = Field(False, alias="ENABLE_BOT_FILTER")

    # HSTS
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    # Sign-in sessions kept per user; the oldest is dropped past this
    max_sessions_per_user: int = Field(6, ge=1, alias="MAX_SESSIONS_PER_USER")

    # Reverse proxies in front of the app whose X-Forwarded-For is trusted
    trusted_proxy_count: int = Field(0, ge=0, alias="TRUSTED_PROXY_COUNT")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("enable_rate_limit", "enable_bot_filter", "enable_hsts", mode="before")
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_bool(value)


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _jwt_config_factory() -> JwtConfig:
    return JwtConfig()  # type: ignore[call-arg]


def _password_policy_config_factory() -> PasswordPolicyConfig:
    return PasswordPolicyConfig()  # type: ignore[call-arg]


def _smtp_config_factory() -> SmtpConfig:
    return SmtpConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    jwt: JwtConfig = Field(default_factory=_jwt_config_factory)
    password_policy: PasswordPolicyConfig = Field(default_factory=_password_policy_config_factory)
    smtp: SmtpConfig = Field(default_factory=_smtp_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
        validate_assignment=True,
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.jwt.secret in _INSECURE_SECRETS:
            print(
                "\n❌ CRITICAL SECURITY ERROR: Insecure JWT_SECRET detected in production!\n"
                "   JWT_SECRET must be a strong random value in production.\n"
                "   Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(48))\"\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if "*" in self.security.allowed_origins:
            warnings.append("⚠️  CORS allows wildcard (*) origins")
        if not self.security.enable_hsts:
            warnings.append("⚠️  HSTS is DISABLED (recommended for HTTPS)")
        if not self.smtp.host:
            warnings.append("⚠️  SMTP_HOST is empty, confirmation emails will only be logged")
        if self.smtp.encryption == "none":
            warnings.append("⚠️  SMTP encryption is DISABLED")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)
            print(
                "   Consider enabling these security features in production.\n",
                file=sys.stderr,
            )

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "JwtConfig",
    "PasswordPolicyConfig",
    "SecurityConfig",
    "SmtpConfig",
    "load_config",
]

from __future__ import annotations

from pathlib import Path

import pytest

from userauth.shared.config import (
    AppConfig,
    DatabaseConfig,
    JwtConfig,
    PasswordPolicyConfig,
    SecurityConfig,
    SmtpConfig,
)


@pytest.fixture()
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        app_env="test",
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'userauth-test.db'}"),
        jwt=JwtConfig(secret="integration-test-secret", expiration=3600, leeway=60),
        password_policy=PasswordPolicyConfig(hash_method="pbkdf2:sha256:1000"),
        smtp=SmtpConfig(
            host="",
            confirmation_url="http://api.test/api/users/confirm",
            password_reset_url="http://app.test/reset-password",
        ),
        security=SecurityConfig(enable_rate_limit=False, allowed_origins=["http://app.test"]),
    )

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import cast
from unittest.mock import MagicMock

import pytest
from flask import Flask

from userauth.application.use_cases.users.register_user import RegisterUserUseCase
from userauth.domain.users.entities import PublicUser, Session, SignInResult
from userauth.domain.users.exceptions import (
    DuplicateEmailError,
    EmailNotConfirmedError,
    SessionRevokedError,
    TokenExpiredError,
    TokenInvalidError,
    TokenMalformedError,
)
from userauth.interfaces.http.controllers.users_controller import UsersController
from userauth.shared.errors import register_error_handler
from userauth.shared.middleware.rate_limit import InMemoryRateLimiter

CREATED = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
ALICE = PublicUser(id=1, email="alice@example.com", email_confirmed=False, created_at=CREATED)
ALICE_SESSION = Session(
    id=5, user_id=1, jti="jti-1", created_at=CREATED, expires_at=CREATED + timedelta(hours=1)
)


@pytest.fixture()
def flask_app() -> Flask:
    app = Flask(__name__)
    register_error_handler(app)
    return app


def _controller(**overrides) -> UsersController:
    deps = {
        "register_use_case": MagicMock(),
        "login_use_case": MagicMock(),
        "confirm_email_use_case": MagicMock(),
        "request_password_reset_use_case": MagicMock(),
        "reset_password_use_case": MagicMock(),
        "get_profile_use_case": MagicMock(),
        "authenticate_use_case": MagicMock(),
        "logout_use_case": MagicMock(),
        "logout_everywhere_use_case": MagicMock(),
    }
    deps.update(overrides)
    return UsersController(**deps)


def test_signup_returns_created_user(flask_app: Flask) -> None:
    register_called: dict[str, tuple[str, str, str | None]] = {}

    class StubRegister:
        def execute(self, email: str, password: str, full_name: str | None) -> PublicUser:
            register_called["args"] = (email, password, full_name)
            return ALICE

    controller = _controller(register_use_case=cast(RegisterUserUseCase, StubRegister()))
    flask_app.register_blueprint(controller.as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/users/signup", json={"email": "alice@example.com", "password": "secret123"}
        )

    assert response.status_code == 201
    assert register_called["args"] == ("alice@example.com", "secret123", None)
    assert response.get_json() == {
        "user": {
            "id": 1,
            "email": "alice@example.com",
            "fullName": None,
            "emailConfirmed": False,
            "createdAt": "2026-03-01T12:00:00Z",
        }
    }
    assert "passwordHash" not in response.get_data(as_text=True)


def test_signup_invalid_payload_returns_400(flask_app: Flask) -> None:
    register = MagicMock()
    flask_app.register_blueprint(_controller(register_use_case=register).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post("/api/users/signup", json={"email": "alice@example.com"})

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert payload["context"]["fields"] == ["password"]
    register.execute.assert_not_called()


def test_signup_non_json_body_returns_400(flask_app: Flask) -> None:
    flask_app.register_blueprint(_controller().as_blueprint())

    with flask_app.test_client() as client:
        response = client.post("/api/users/signup", data="email=a", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json()["context"]["fields"] == ["email", "password"]


def test_signup_duplicate_returns_409(flask_app: Flask) -> None:
    register = MagicMock()
    register.execute.side_effect = DuplicateEmailError()
    flask_app.register_blueprint(_controller(register_use_case=register).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/users/signup", json={"email": "alice@example.com", "password": "secret123"}
        )

    assert response.status_code == 409
    assert response.get_json() == {"error": "duplicate_email"}


def test_signin_returns_token_payload(flask_app: Flask) -> None:
    login = MagicMock()
    login.execute.return_value = SignInResult(
        user=ALICE,
        token="header.payload.sig",
        expires_at=CREATED + timedelta(seconds=3600),
        expires_in=3600,
    )
    flask_app.register_blueprint(_controller(login_use_case=login).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/users/signin", json={"email": "alice@example.com", "password": "secret123"}
        )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["token"] == "header.payload.sig"
    assert payload["expiresIn"] == 3600
    assert payload["expiresAt"] == "2026-03-01T13:00:00Z"
    assert payload["user"]["id"] == 1


def test_signin_unconfirmed_returns_403(flask_app: Flask) -> None:
    login = MagicMock()
    login.execute.side_effect = EmailNotConfirmedError()
    flask_app.register_blueprint(_controller(login_use_case=login).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/users/signin", json={"email": "alice@example.com", "password": "secret123"}
        )

    assert response.status_code == 403
    assert response.get_json() == {"error": "email_not_confirmed"}


def test_confirm_without_token_is_bad_request(flask_app: Flask) -> None:
    confirm = MagicMock()
    flask_app.register_blueprint(_controller(confirm_email_use_case=confirm).as_blueprint())

    with flask_app.test_client() as client:
        response = client.get("/api/users/confirm")

    assert response.status_code == 400
    assert response.get_json() == {
        "error": "confirmation_invalid",
        "context": {"reason": "missing_token"},
    }
    confirm.execute.assert_not_called()


def test_confirm_with_expired_link_is_bad_request(flask_app: Flask) -> None:
    confirm = MagicMock()
    confirm.execute.side_effect = TokenExpiredError()
    flask_app.register_blueprint(_controller(confirm_email_use_case=confirm).as_blueprint())

    with flask_app.test_client() as client:
        response = client.get("/api/users/confirm?token=abc")

    assert response.status_code == 400
    assert response.get_json()["context"] == {"reason": "token_expired"}
    confirm.execute.assert_called_once_with("abc")


def test_confirm_success(flask_app: Flask) -> None:
    confirm = MagicMock()
    confirm.execute.return_value = PublicUser(
        id=1, email="alice@example.com", email_confirmed=True, created_at=CREATED
    )
    flask_app.register_blueprint(_controller(confirm_email_use_case=confirm).as_blueprint())

    with flask_app.test_client() as client:
        response = client.get("/api/users/confirm?token=abc")

    assert response.status_code == 200
    assert response.get_json()["user"]["emailConfirmed"] is True


def test_password_reset_request_always_succeeds(flask_app: Flask) -> None:
    request_reset = MagicMock()
    flask_app.register_blueprint(
        _controller(request_password_reset_use_case=request_reset).as_blueprint()
    )

    with flask_app.test_client() as client:
        response = client.post("/api/users/password-reset", json={"email": "ghost@example.com"})

    assert response.status_code == 200
    assert response.get_json()["ok"] is True
    request_reset.execute.assert_called_once_with("ghost@example.com")


def test_password_reset_with_stale_token_is_bad_request(flask_app: Flask) -> None:
    reset = MagicMock()
    reset.execute.side_effect = TokenInvalidError()
    flask_app.register_blueprint(_controller(reset_password_use_case=reset).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/users/password-reset/confirm", json={"token": "t", "password": "secret123"}
        )

    assert response.status_code == 400
    assert response.get_json()["context"] == {"reason": "token_invalid"}


def test_profile_requires_bearer_token(flask_app: Flask) -> None:
    authenticate = MagicMock()
    flask_app.register_blueprint(_controller(authenticate_use_case=authenticate).as_blueprint())

    with flask_app.test_client() as client:
        missing = client.get("/api/users/profile")
        basic = client.get("/api/users/profile", headers={"Authorization": "Basic abc"})

    assert missing.status_code == 401
    assert missing.get_json() == {"error": "token_invalid"}
    assert basic.status_code == 401
    authenticate.execute.assert_not_called()


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (TokenExpiredError(), "token_expired"),
        (TokenMalformedError(), "token_malformed"),
        (SessionRevokedError(), "session_revoked"),
    ],
)
def test_profile_with_rejected_token(flask_app: Flask, error: Exception, code: str) -> None:
    authenticate = MagicMock()
    authenticate.execute.side_effect = error
    flask_app.register_blueprint(_controller(authenticate_use_case=authenticate).as_blueprint())

    with flask_app.test_client() as client:
        response = client.get("/api/users/profile", headers={"Authorization": "Bearer abc"})

    assert response.status_code == 401
    # Only the error code goes out; the reason stays in the logs
    assert response.get_json() == {"error": code}


def test_profile_returns_current_user(flask_app: Flask) -> None:
    authenticate = MagicMock()
    authenticate.execute.return_value = ALICE_SESSION
    profile = MagicMock()
    profile.execute.return_value = ALICE
    flask_app.register_blueprint(
        _controller(authenticate_use_case=authenticate, get_profile_use_case=profile).as_blueprint()
    )

    with flask_app.test_client() as client:
        response = client.get("/api/users/profile", headers={"Authorization": "Bearer abc"})

    assert response.status_code == 200
    assert response.get_json()["user"]["email"] == "alice@example.com"
    authenticate.execute.assert_called_once_with("abc")
    profile.execute.assert_called_once_with(1)


def test_signout_revokes_current_session(flask_app: Flask) -> None:
    authenticate = MagicMock()
    authenticate.execute.return_value = ALICE_SESSION
    logout = MagicMock()
    flask_app.register_blueprint(
        _controller(authenticate_use_case=authenticate, logout_use_case=logout).as_blueprint()
    )

    with flask_app.test_client() as client:
        response = client.post("/api/users/signout", headers={"Authorization": "Bearer abc"})
        anonymous = client.post("/api/users/signout")

    assert response.status_code == 200
    assert response.get_json()["ok"] is True
    logout.execute.assert_called_once_with(ALICE_SESSION)
    assert anonymous.status_code == 401


def test_signout_all_reports_revoked_count(flask_app: Flask) -> None:
    authenticate = MagicMock()
    authenticate.execute.return_value = ALICE_SESSION
    logout_everywhere = MagicMock()
    logout_everywhere.execute.return_value = 3
    flask_app.register_blueprint(
        _controller(
            authenticate_use_case=authenticate, logout_everywhere_use_case=logout_everywhere
        ).as_blueprint()
    )

    with flask_app.test_client() as client:
        response = client.post("/api/users/signout-all", headers={"Authorization": "Bearer abc"})

    assert response.status_code == 200
    assert response.get_json() == {
        "ok": True,
        "message": "Signed out from all devices.",
        "sessionsRevoked": 3,
    }
    logout_everywhere.execute.assert_called_once_with(1)


def test_signin_records_client_details(flask_app: Flask) -> None:
    login = MagicMock()
    login.execute.return_value = SignInResult(
        user=ALICE,
        token="header.payload.sig",
        expires_at=CREATED + timedelta(seconds=3600),
        expires_in=3600,
    )
    flask_app.register_blueprint(_controller(login_use_case=login).as_blueprint())

    with flask_app.test_client() as client:
        client.post(
            "/api/users/signin",
            json={"email": "alice@example.com", "password": "secret123"},
            headers={"User-Agent": "Firefox/128.0"},
        )

    client_info = login.execute.call_args.kwargs["client"]
    assert client_info.ip_address == "127.0.0.1"
    assert client_info.user_agent == "Firefox/128.0"


def test_signin_is_rate_limited(flask_app: Flask) -> None:
    login = MagicMock()
    login.execute.side_effect = EmailNotConfirmedError()
    controller = _controller(
        login_use_case=login, rate_limiter=InMemoryRateLimiter(limit=2, window_seconds=60)
    )
    flask_app.register_blueprint(controller.as_blueprint())
    body = {"email": "alice@example.com", "password": "secret123"}

    with flask_app.test_client() as client:
        statuses = [client.post("/api/users/signin", json=body).status_code for _ in range(3)]
        blocked = client.post("/api/users/signin", json=body)
        other_route = client.get("/api/users/profile")

    assert statuses == [403, 403, 429]
    assert blocked.get_json()["error"] == "rate_limited"
    assert int(blocked.headers["Retry-After"]) >= 1
    assert login.execute.call_count == 2
    assert other_route.status_code == 401


def test_unexpected_error_does_not_leak_details(flask_app: Flask) -> None:
    login = MagicMock()
    login.execute.side_effect = RuntimeError("database is locked at /var/db/users.db")
    flask_app.register_blueprint(_controller(login_use_case=login).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/users/signin", json={"email": "alice@example.com", "password": "secret123"}
        )

    assert response.status_code == 500
    assert response.get_json() == {"error": "internal_error"}


def test_spoofed_forwarded_for_does_not_escape_the_limit(flask_app: Flask) -> None:
    login = MagicMock()
    login.execute.side_effect = EmailNotConfirmedError()
    limiter = InMemoryRateLimiter(limit=2, window_seconds=60)
    flask_app.register_blueprint(
        _controller(login_use_case=login, rate_limiter=limiter).as_blueprint()
    )
    body = {"email": "alice@example.com", "password": "secret123"}

    with flask_app.test_client() as client:
        statuses = [
            client.post(
                "/api/users/signin", json=body, headers={"X-Forwarded-For": f"198.51.100.{i}"}
            ).status_code
            for i in range(10)
        ]

    assert statuses[:2] == [403, 403]
    assert set(statuses[2:]) == {429}
    assert login.execute.call_count == 2
    assert limiter.tracked_keys == 1

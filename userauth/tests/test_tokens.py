from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from userauth.application.services.tokens import JoseTokenService, extract_bearer
from userauth.domain.users.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
    TokenMalformedError,
)
from userauth.shared.config import JwtConfig

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
TTL = 3600
LEEWAY = 60


def _service(**overrides) -> JoseTokenService:
    options = {
        "secret": "token-test-secret",
        "expiration": TTL,
        "leeway": LEEWAY,
        "confirmation_expiration": 900,
        "reset_expiration": 900,
    }
    options.update(overrides)
    return JoseTokenService(**options)


def test_issue_then_verify_returns_subject() -> None:
    service = _service()
    issued = service.issue(7, NOW)

    assert issued.issued_at == NOW
    assert issued.expires_at == NOW + timedelta(seconds=TTL)
    assert issued.expires_in == TTL
    assert service.verify(issued.token, NOW) == 7


def test_leeway_is_honoured_at_both_edges() -> None:
    service = _service()
    token = service.issue(7, NOW).token

    assert service.verify(token, NOW + timedelta(seconds=TTL + LEEWAY)) == 7
    assert service.verify(token, NOW - timedelta(seconds=LEEWAY)) == 7

    with pytest.raises(TokenExpiredError):
        service.verify(token, NOW + timedelta(seconds=TTL + LEEWAY + 1))
    with pytest.raises(TokenExpiredError):
        service.verify(token, NOW - timedelta(seconds=LEEWAY + 1))


def test_naive_now_is_treated_as_utc() -> None:
    service = _service()
    token = service.issue(3, NOW.replace(tzinfo=None)).token

    assert service.verify(token, NOW) == 3


def test_token_errors_share_a_base() -> None:
    assert issubclass(TokenExpiredError, TokenInvalidError)
    assert issubclass(TokenMalformedError, TokenInvalidError)
    assert TokenExpiredError().code == "token_expired"


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer xyz"])
def test_garbage_is_malformed(garbage: str) -> None:
    with pytest.raises(TokenMalformedError):
        _service().verify(garbage, NOW)


def test_foreign_signature_is_rejected() -> None:
    token = _service(secret="someone-else").issue(7, NOW).token

    with pytest.raises(TokenMalformedError):
        _service().verify(token, NOW)


def test_swapped_payload_is_rejected() -> None:
    service = _service()
    header, _, signature = service.issue(1, NOW).token.split(".")
    _, payload, _ = service.issue(2, NOW).token.split(".")

    with pytest.raises(TokenMalformedError):
        service.verify(f"{header}.{payload}.{signature}", NOW)


def test_audience_and_issuer_are_checked() -> None:
    verifier = _service()

    with pytest.raises(TokenMalformedError):
        verifier.verify(_service(audience="other-app").issue(1, NOW).token, NOW)
    with pytest.raises(TokenMalformedError):
        verifier.verify(_service(issuer="other-api").issue(1, NOW).token, NOW)


def test_purposes_do_not_mix() -> None:
    service = _service()
    access = service.issue(5, NOW).token
    confirm = service.issue_confirmation(5, NOW).token
    reset = service.issue_password_reset(5, "f" * 32, NOW).token

    assert service.verify_confirmation(confirm, NOW) == 5
    assert service.verify_password_reset(reset, NOW) == (5, "f" * 32)

    with pytest.raises(TokenMalformedError):
        service.verify(confirm, NOW)
    with pytest.raises(TokenMalformedError):
        service.verify(reset, NOW)
    with pytest.raises(TokenMalformedError):
        service.verify_confirmation(access, NOW)
    with pytest.raises(TokenMalformedError):
        service.verify_password_reset(confirm, NOW)


def test_confirmation_tokens_use_their_own_lifetime() -> None:
    service = _service()
    token = service.issue_confirmation(5, NOW).token

    assert service.verify_confirmation(token, NOW + timedelta(seconds=900 + LEEWAY)) == 5
    with pytest.raises(TokenExpiredError):
        service.verify_confirmation(token, NOW + timedelta(seconds=900 + LEEWAY + 1))


def test_every_token_is_unique() -> None:
    service = _service()
    assert service.issue(1, NOW).token != service.issue(1, NOW).token


def test_injected_clock_is_used_by_default() -> None:
    service = _service(clock=lambda: NOW)
    issued = service.issue(9)

    assert issued.issued_at == NOW
    assert service.verify(issued.token) == 9


def test_from_config() -> None:
    config = JwtConfig(secret="cfg-secret", expiration=120, leeway=5)
    service = JoseTokenService.from_config(config)

    assert service.expiration == 120
    assert service.leeway == 5


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("Bearer   abc ", "abc"),
        ("Bearer ", None),
        ("Basic dXNlcjpwYXNz", None),
        ("bearer abc", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer(header: str | None, expected: str | None) -> None:
    assert extract_bearer(header) == expected


def test_verify_access_exposes_the_session_key() -> None:
    service = _service()
    issued = service.issue(7, NOW)

    claims = service.verify_access(issued.token, NOW)

    assert claims.user_id == 7
    assert claims.jti == issued.jti
    assert len(claims.jti) == 32
    assert claims.expires_at == issued.expires_at


@pytest.mark.parametrize(
    "token_for",
    [
        lambda s: "garbage",
        lambda s: _service(secret="someone-else").issue(7, NOW).token,
        lambda s: _service(audience="other-app").issue(7, NOW).token,
        lambda s: s.issue_confirmation(7, NOW).token,
    ],
)
def test_rejections_carry_no_internal_reason(token_for) -> None:
    service = _service()

    with pytest.raises(TokenMalformedError) as excinfo:
        service.verify(token_for(service), NOW)

    assert excinfo.value.context is None
    assert excinfo.value.to_dict() == {"error": "token_malformed"}

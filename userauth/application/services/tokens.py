"""Signed, time-limited bearer tokens."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError

from userauth.domain.users.entities import AccessClaims, IssuedToken
from userauth.domain.users.exceptions import TokenExpiredError, TokenMalformedError
from userauth.domain.users.repositories import TokenService
from userauth.shared.config import JwtConfig
from userauth.shared.logging import logger

PURPOSE_ACCESS = "access"
PURPOSE_CONFIRM_EMAIL = "confirm_email"
PURPOSE_RESET_PASSWORD = "reset_password"

_BEARER_PREFIX = "Bearer "


def _utcnow() -> datetime:
    return datetime.now(UTC)


def extract_bearer(header: str | None) -> str | None:
    if not header or not header.startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX):].strip()
    return token or None


class JoseTokenService(TokenService):
    """HMAC-signed JWTs with a validity window of ``[iat - leeway, exp + leeway]``.

    Every token carries a ``purpose`` claim so that a confirmation link can
    never be replayed as an access token and vice versa. Signature, issuer and
    audience are checked by jose; the time window is checked here against the
    caller-supplied ``now`` so verification stays a pure function of its inputs.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        expiration: int = 604800,
        leeway: int = 60,
        issuer: str = "userauth-api",
        audience: str = "userauth-app",
        confirmation_expiration: int = 3600,
        reset_expiration: int = 3600,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expiration = expiration
        self._leeway = leeway
        self._issuer = issuer
        self._audience = audience
        self._confirmation_expiration = confirmation_expiration
        self._reset_expiration = reset_expiration
        self._clock = clock

    @classmethod
    def from_config(cls, config: JwtConfig) -> JoseTokenService:
        return cls(
            secret=config.secret,
            algorithm=config.algorithm,
            expiration=config.expiration,
            leeway=config.leeway,
            issuer=config.issuer,
            audience=config.audience,
            confirmation_expiration=config.confirmation_expiration,
            reset_expiration=config.reset_expiration,
        )

    @property
    def expiration(self) -> int:
        return self._expiration

    @property
    def leeway(self) -> int:
        return self._leeway

    def issue(self, user_id: int, now: datetime | None = None) -> IssuedToken:
        issued = self._issue(user_id, PURPOSE_ACCESS, self._expiration, now)
        logger.debug(f"tokens.issue: user_id={user_id} expires_at={issued.expires_at.isoformat()}")
        return issued

    def verify(self, token: str, now: datetime | None = None) -> int:
        return self.verify_access(token, now).user_id

    def verify_access(self, token: str, now: datetime | None = None) -> AccessClaims:
        claims = self._decode(token, PURPOSE_ACCESS, now)
        jti = claims.get("jti")
        if not isinstance(jti, str) or not jti:
            logger.warning("tokens.verify: rejected reason=missing_jti")
            raise TokenMalformedError()
        return AccessClaims(
            user_id=self._subject(claims),
            jti=jti,
            expires_at=datetime.fromtimestamp(claims["exp"], UTC),
        )

    def issue_confirmation(self, user_id: int, now: datetime | None = None) -> IssuedToken:
        return self._issue(user_id, PURPOSE_CONFIRM_EMAIL, self._confirmation_expiration, now)

    def verify_confirmation(self, token: str, now: datetime | None = None) -> int:
        claims = self._decode(token, PURPOSE_CONFIRM_EMAIL, now)
        return self._subject(claims)

    def issue_password_reset(
        self, user_id: int, fingerprint: str, now: datetime | None = None
    ) -> IssuedToken:
        return self._issue(
            user_id,
            PURPOSE_RESET_PASSWORD,
            self._reset_expiration,
            now,
            extra={"pwd": fingerprint},
        )

    def verify_password_reset(
        self, token: str, now: datetime | None = None
    ) -> tuple[int, str]:
        claims = self._decode(token, PURPOSE_RESET_PASSWORD, now)
        fingerprint = claims.get("pwd")
        if not isinstance(fingerprint, str) or not fingerprint:
            logger.warning("tokens.verify: rejected reason=missing_fingerprint")
            raise TokenMalformedError()
        return self._subject(claims), fingerprint

    def _resolve_now(self, now: datetime | None) -> datetime:
        now = now or self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return now

    def _issue(
        self,
        user_id: int,
        purpose: str,
        ttl: int,
        now: datetime | None,
        extra: dict[str, Any] | None = None,
    ) -> IssuedToken:
        issued_at = int(self._resolve_now(now).timestamp())
        expires_at = issued_at + ttl
        jti = uuid.uuid4().hex
        claims: dict[str, Any] = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(user_id),
            "iat": issued_at,
            "exp": expires_at,
            "jti": jti,
            "purpose": purpose,
        }
        if extra:
            claims.update(extra)
        token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        return IssuedToken(
            token=token,
            issued_at=datetime.fromtimestamp(issued_at, UTC),
            expires_at=datetime.fromtimestamp(expires_at, UTC),
            jti=jti,
        )

    def _decode(self, token: str, purpose: str, now: datetime | None) -> dict[str, Any]:
        if not token or not isinstance(token, str):
            logger.warning("tokens.verify: rejected reason=empty")
            raise TokenMalformedError()

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_exp": False, "verify_nbf": False, "verify_iat": False},
            )
        except JWTClaimsError as exc:
            logger.warning(f"tokens.verify: rejected reason=claims ({exc})")
            raise TokenMalformedError() from exc
        except JWTError as exc:
            logger.warning(f"tokens.verify: rejected reason=signature ({exc})")
            raise TokenMalformedError() from exc

        if claims.get("purpose") != purpose:
            logger.warning(
                f"tokens.verify: rejected reason=purpose expected={purpose} "
                f"got={claims.get('purpose')}"
            )
            raise TokenMalformedError()

        issued_at = claims.get("iat")
        expires_at = claims.get("exp")
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            logger.warning("tokens.verify: rejected reason=timestamps")
            raise TokenMalformedError()

        moment = self._resolve_now(now).timestamp()
        if moment < issued_at - self._leeway or moment > expires_at + self._leeway:
            logger.info(f"tokens.verify: expired purpose={purpose} sub={claims.get('sub')}")
            raise TokenExpiredError()

        return claims

    @staticmethod
    def _subject(claims: dict[str, Any]) -> int:
        try:
            return int(claims["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("tokens.verify: rejected reason=subject")
            raise TokenMalformedError() from exc

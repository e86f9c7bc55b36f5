# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import TypeVar

from flask import Blueprint, Response, g, jsonify, request
from pydantic import BaseModel, ValidationError

from userauth.application.services.tokens import extract_bearer
from userauth.application.use_cases.users.authenticate_user import AuthenticateUserUseCase
from userauth.application.use_cases.users.confirm_email import ConfirmEmailUseCase
from userauth.application.use_cases.users.get_profile import GetProfileUseCase
from userauth.application.use_cases.users.login_user import LoginUserUseCase
from userauth.application.use_cases.users.logout_user import (
    LogoutEverywhereUseCase,
    LogoutUserUseCase,
)
from userauth.application.use_cases.users.password_reset import (
    RequestPasswordResetUseCase,
    ResetPasswordUseCase,
)
from userauth.application.use_cases.users.register_user import RegisterUserUseCase
from userauth.domain.users.entities import ClientInfo, Session
from userauth.domain.users.exceptions import InvalidConfirmationLinkError, TokenInvalidError
from userauth.interfaces.http.dto.auth import (
    MessageDTO,
    PasswordResetConfirmDTO,
    PasswordResetRequestDTO,
    SigninRequestDTO,
    SignInResponseDTO,
    SignOutAllResponseDTO,
    SignupRequestDTO,
    UserEnvelopeDTO,
)
from userauth.shared.errors.validation import raise_validation_error
from userauth.shared.logging import logger
from userauth.shared.middleware.rate_limit import InMemoryRateLimiter, rate_limit

_RESET_REQUESTED = "If that address belongs to an account, a reset link is on its way."
_SIGNED_OUT = "Signed out."
_SIGNED_OUT_EVERYWHERE = "Signed out from all devices."

_DTO = TypeVar("_DTO", bound=BaseModel)


def _parse(model: type[_DTO]) -> _DTO:
    try:
        return model.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        raise_validation_error(exc)


class UsersController:
    def __init__(
        self,
        *,
        register_use_case: RegisterUserUseCase,
        login_use_case: LoginUserUseCase,
        confirm_email_use_case: ConfirmEmailUseCase,
        request_password_reset_use_case: RequestPasswordResetUseCase,
        reset_password_use_case: ResetPasswordUseCase,
        get_profile_use_case: GetProfileUseCase,
        authenticate_use_case: AuthenticateUserUseCase,
        logout_use_case: LogoutUserUseCase,
        logout_everywhere_use_case: LogoutEverywhereUseCase,
        rate_limiter: InMemoryRateLimiter | None = None,
    ) -> None:
        self._register_use_case = register_use_case
        self._login_use_case = login_use_case
        self._confirm_email_use_case = confirm_email_use_case
        self._request_password_reset_use_case = request_password_reset_use_case
        self._reset_password_use_case = reset_password_use_case
        self._get_profile_use_case = get_profile_use_case
        self._authenticate_use_case = authenticate_use_case
        self._logout_use_case = logout_use_case
        self._logout_everywhere_use_case = logout_everywhere_use_case
        self._rate_limiter = rate_limiter

    def signup(self) -> tuple[Response, int]:
        dto = _parse(SignupRequestDTO)
        user = self._register_use_case.execute(dto.email, dto.password, dto.full_name)
        logger.info(f"users.signup: responded user_id={user.id}")
        return jsonify(UserEnvelopeDTO.from_user(user).to_json()), 201

    def signin(self) -> tuple[Response, int]:
        dto = _parse(SigninRequestDTO)
        client = ClientInfo(
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        result = self._login_use_case.execute(dto.email, dto.password, client=client)
        g.user_id = result.user.id
        return jsonify(SignInResponseDTO.from_result(result).to_json()), 200

    def confirm(self) -> tuple[Response, int]:
        token = request.args.get("token", "").strip()
        if not token:
            raise InvalidConfirmationLinkError(reason="missing_token")
        try:
            user = self._confirm_email_use_case.execute(token)
        except TokenInvalidError as exc:
            # Someone clicked a link in an email: a bad link is a bad request
            raise InvalidConfirmationLinkError(reason=exc.code) from exc
        return jsonify(UserEnvelopeDTO.from_user(user).to_json()), 200

    def request_password_reset(self) -> tuple[Response, int]:
        dto = _parse(PasswordResetRequestDTO)
        self._request_password_reset_use_case.execute(dto.email)
        return jsonify(MessageDTO(message=_RESET_REQUESTED).model_dump()), 200

    def reset_password(self) -> tuple[Response, int]:
        dto = _parse(PasswordResetConfirmDTO)
        try:
            user = self._reset_password_use_case.execute(dto.token, dto.password)
        except TokenInvalidError as exc:
            raise InvalidConfirmationLinkError(reason=exc.code) from exc
        return jsonify(UserEnvelopeDTO.from_user(user).to_json()), 200

    def profile(self) -> tuple[Response, int]:
        session = self._authenticate()
        user = self._get_profile_use_case.execute(session.user_id)
        return jsonify(UserEnvelopeDTO.from_user(user).to_json()), 200

    def signout(self) -> tuple[Response, int]:
        session = self._authenticate()
        self._logout_use_case.execute(session)
        return jsonify(MessageDTO(message=_SIGNED_OUT).model_dump()), 200

    def signout_all(self) -> tuple[Response, int]:
        session = self._authenticate()
        revoked = self._logout_everywhere_use_case.execute(session.user_id)
        payload = SignOutAllResponseDTO(message=_SIGNED_OUT_EVERYWHERE, sessions_revoked=revoked)
        return jsonify(payload.to_json()), 200

    def _authenticate(self) -> Session:
        token = extract_bearer(request.headers.get("Authorization"))
        if token is None:
            raise TokenInvalidError()
        session = self._authenticate_use_case.execute(token)
        g.user_id = session.user_id
        return session

    def as_blueprint(self) -> Blueprint:
        limited = rate_limit(self._rate_limiter)
        bp = Blueprint("users", __name__, url_prefix="/api/users")
        bp.add_url_rule("/signup", view_func=limited(self.signup), methods=["POST"])
        bp.add_url_rule("/signin", view_func=limited(self.signin), methods=["POST"])
        bp.add_url_rule("/confirm", view_func=self.confirm, methods=["GET"])
        bp.add_url_rule(
            "/password-reset",
            view_func=limited(self.request_password_reset),
            methods=["POST"],
        )
        bp.add_url_rule(
            "/password-reset/confirm",
            view_func=limited(self.reset_password),
            methods=["POST"],
        )
        bp.add_url_rule("/profile", view_func=self.profile, methods=["GET"])
        bp.add_url_rule("/signout", view_func=self.signout, methods=["POST"])
        bp.add_url_rule("/signout-all", view_func=self.signout_all, methods=["POST"])
        return bp

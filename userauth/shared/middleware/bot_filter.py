# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Heuristic filter that turns away obvious non-browser clients.

Off by default: it rejects curl, scripts and API tools, which is rarely what
a JSON API wants.
"""

from __future__ import annotations

import re

from flask import Flask, Request, request

from userauth.shared.errors import RequestBlockedError
from userauth.shared.logging import logger

_BOT_PATTERN = re.compile(
    r"bot|crawler|spider|scraper|curl|wget|python|php|java|go-http-client|postman",
    re.IGNORECASE,
)
_MIN_USER_AGENT_LENGTH = 10
_ACCEPTABLE_TYPES = ("text/html", "application/json", "*/*")


def suspicious_reason(req: Request) -> str | None:
    user_agent = req.headers.get("User-Agent", "")
    if not user_agent:
        return "missing_user_agent"
    if _BOT_PATTERN.search(user_agent):
        return "bot_user_agent"
    if len(user_agent) < _MIN_USER_AGENT_LENGTH:
        return "short_user_agent"

    accept = req.headers.get("Accept", "")
    if not accept:
        return "missing_accept"
    if not any(kind in accept for kind in _ACCEPTABLE_TYPES):
        return "unexpected_accept"
    return None


def configure_bot_filter(app: Flask, *, exempt_paths: tuple[str, ...] = ("/api/health",)) -> None:
    @app.before_request
    def _reject_bots() -> None:
        if request.method == "OPTIONS" or request.path in exempt_paths:
            return None
        reason = suspicious_reason(request)
        if reason is not None:
            logger.warning(f"Request blocked: {request.method} {request.path} reason={reason}")
            raise RequestBlockedError()
        return None


__all__ = ["configure_bot_filter", "suspicious_reason"]

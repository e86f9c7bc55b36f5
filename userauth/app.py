# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import importlib
from typing import Any, Protocol, cast

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from userauth.infrastructure.container import Container
from userauth.shared.config import AppConfig, load_config
from userauth.shared.errors import register_error_handler
from userauth.shared.logging import logger, setup_logging
from userauth.shared.middleware.bot_filter import configure_bot_filter
from userauth.shared.middleware.request_logger import configure_request_logging


class _CORSCallable(Protocol):
    def __call__(self, app: Flask, **kwargs: Any) -> Any: ...


_flask_cors = importlib.import_module("flask_cors")
CORS = cast(_CORSCallable, _flask_cors.CORS)


def create_app(
    config: AppConfig | None = None,
    *,
    container: Container | None = None,
    configure_logging: bool = True,
) -> Flask:
    config = config or (container.config if container else load_config())
    container = container or Container(config)

    if configure_logging:
        setup_logging(debug_mode=config.debug_logging)

    container.database.init_schema()

    app = Flask(__name__)
    if config.security.trusted_proxy_count:
        # remote_addr becomes the client address the trusted proxies report
        app.wsgi_app = ProxyFix(  # type: ignore[method-assign]
            app.wsgi_app,
            x_for=config.security.trusted_proxy_count,
            x_proto=config.security.trusted_proxy_count,
        )
    app.extensions["userauth.container"] = container
    app.json.sort_keys = False

    register_error_handler(app, debug_mode=config.debug_logging)
    configure_request_logging(app, debug_mode=config.debug_logging)
    if config.security.enable_bot_filter:
        configure_bot_filter(app)

    cors_kwargs: dict[str, object] = {
        "resources": {r"/api/*": {"origins": config.security.allowed_origins}},
        "expose_headers": ["X-Request-ID", "Retry-After"],
    }
    CORS(app, **cors_kwargs)

    app.register_blueprint(container.health_controller.as_blueprint())
    app.register_blueprint(container.users_controller.as_blueprint())

    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")

        resp.headers.setdefault("Referrer-Policy", "no-referrer")

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")

        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")

        # Responses carry tokens and personal data
        resp.headers.setdefault("Cache-Control", "no-store")

        if config.security.enable_hsts:
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )

        return resp

    logger.info(f"Flask app initialized env={config.app_env}")
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=False)

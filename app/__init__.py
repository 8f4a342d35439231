import logging
from typing import Any

from flask import Flask, jsonify
from flask_limiter.errors import RateLimitExceeded
from werkzeug.exceptions import HTTPException

from .blueprints_registry import register_blueprints
from .config import ENV_DIAGNOSTICS
from .extensions import limiter, mail
from .logging_config import configure_logging
from .services.otp_service import init_otp_service

logger = logging.getLogger(__name__)


def create_app(config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    _load_base_config(app, config)

    mail.init_app(app)
    _configure_rate_limiter(app)
    init_otp_service(app)

    register_blueprints(app)
    _add_core_routes(app)
    configure_logging(app)
    _install_error_handlers(app)

    return app


def _load_base_config(app: Flask, config: dict[str, Any] | None) -> None:
    app.config.from_object("app.config.Config")
    if config:
        app.config.update(config)
    app.config["ENV_DIAGNOSTICS"] = ENV_DIAGNOSTICS
    for warning in ENV_DIAGNOSTICS.get("warnings", ()):
        logger.warning("Environment configuration warning: %s", warning)


def _configure_rate_limiter(app: Flask) -> None:
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI") or "memory://"
    app.config["RATELIMIT_STORAGE_URI"] = storage_uri
    limiter.init_app(app)

    if app.config.get("ENV") == "production" and storage_uri.startswith("memory://"):
        logger.warning("Rate limiter is using in-process memory storage in production.")


def _install_error_handlers(app: Flask) -> None:
    """JSON error bodies for every failure the API can produce."""

    @app.errorhandler(RateLimitExceeded)
    def _rate_limited(err: RateLimitExceeded):
        return jsonify({
            "success": False,
            "message": "Too many requests. Please wait and try again.",
            "errors": {"rate_limit": [str(err.description)]},
        }), 429

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        return jsonify({
            "success": False,
            "message": err.description or err.name,
            "errors": {},
        }), err.code

    @app.errorhandler(Exception)
    def _unhandled(err: Exception):
        app.logger.exception("Unhandled error: %s", err)
        return jsonify({
            "success": False,
            "message": "Internal Server Error",
            "errors": {},
        }), 500


def _add_core_routes(app: Flask) -> None:
    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "environment": app.config.get("ENV_DIAGNOSTICS", {}).get("active"),
        })

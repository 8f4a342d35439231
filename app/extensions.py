from __future__ import annotations

from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_mail import Mail

__all__ = [
    "limiter",
    "mail",
]


def _default_rate_limits():
    """Resolve default rate limits from config or fall back to safe defaults."""
    config_value = current_app.config.get("RATELIMIT_DEFAULT")
    if isinstance(config_value, str) and config_value.strip():
        normalized = (
            config_value.replace(",", ";")
            .replace("|", ";")
            .split(";")
        )
        limits = [entry.strip() for entry in normalized if entry.strip()]
        if limits:
            return ";".join(limits)
    return "5000 per hour;1000 per minute"


def otp_send_limit():
    return current_app.config.get("OTP_SEND_RATE_LIMIT") or "5 per minute"


def otp_verify_limit():
    return current_app.config.get("OTP_VERIFY_RATE_LIMIT") or "20 per minute"


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_default_rate_limits],
)
mail = Mail()

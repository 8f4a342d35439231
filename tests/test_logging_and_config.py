import logging

import pytest

from app.config import EnvReader, _resolve_environment, _resolve_ratelimit_uri
from app.logging_config import PiiRedactionFilter, _coerce_level, redact


def test_redact_masks_contact_details_and_codes():
    message = redact("OTP stored for email_farmer@example.com, phone 9876543210, otp=482913")
    assert "farmer@example.com" not in message
    assert "9876543210" not in message
    assert "482913" not in message
    assert "[REDACTED_EMAIL]" in message
    assert "[REDACTED_PHONE]" in message


def test_redact_masks_tokens():
    assert redact("sent with Bearer abc.def") == "sent with Bearer [REDACTED]"
    assert redact("api_key=sk_live_123") == "api_key=[REDACTED]"


def test_redaction_filter_rewrites_formatted_message():
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "Email sent to %s", ("ravi@example.com",), None)
    assert PiiRedactionFilter().filter(record) is True
    assert record.getMessage() == "Email sent to [REDACTED_EMAIL]"


def test_coerce_level():
    assert _coerce_level("debug") == logging.DEBUG
    assert _coerce_level(logging.ERROR) == logging.ERROR
    assert _coerce_level("chatty") == logging.INFO


def test_env_reader_falls_back_and_warns():
    reader = EnvReader({"OTP_EXPIRY_MINUTES": "ten", "RATELIMIT_ENABLED": "maybe", "MAIL_PORT": " 465 "})
    assert reader.int("OTP_EXPIRY_MINUTES", 10) == 10
    assert reader.bool("RATELIMIT_ENABLED", True) is True
    assert reader.int("MAIL_PORT", 587) == 465
    assert len(reader.warnings) == 2


def test_environment_resolution():
    assert _resolve_environment(EnvReader({})).name == "development"
    assert _resolve_environment(EnvReader({"FLASK_ENV": " Production "})).name == "production"
    with pytest.raises(RuntimeError):
        _resolve_environment(EnvReader({"FLASK_ENV": "qa"}))
    with pytest.raises(RuntimeError):
        _resolve_environment(EnvReader({"APP_ENV": "production"}))


def test_ratelimit_uri_prefers_explicit_storage():
    assert _resolve_ratelimit_uri(EnvReader({})) == "memory://"
    assert _resolve_ratelimit_uri(EnvReader({"REDIS_URL": "redis://cache:6379/0"})) == "redis://cache:6379/0"
    assert _resolve_ratelimit_uri(EnvReader({
        "REDIS_URL": "redis://cache:6379/0",
        "RATELIMIT_STORAGE_URI": "memory://",
    })) == "memory://"


def test_app_uses_configured_otp_settings(app):
    service = app.extensions["otp_service"]
    assert service.expiry_minutes == 10
    assert service.max_attempts == 5

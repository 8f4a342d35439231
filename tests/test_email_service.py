from datetime import datetime, timezone

from app.services import email_service
from app.services.email_service import EmailService


class _RecordingMail:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, message):
        if self.fail:
            raise ConnectionRefusedError("smtp down")
        self.sent.append(message)


def test_otp_email_not_sent_when_unconfigured(app, monkeypatch):
    mail = _RecordingMail()
    monkeypatch.setattr(email_service, "mail", mail)

    with app.app_context():
        assert EmailService.send_otp_email("farmer@example.com", "123456") is False
    assert mail.sent == []


def test_otp_email_contains_code_and_expiry(app, monkeypatch):
    app.config["MAIL_USERNAME"] = "apikey"
    mail = _RecordingMail()
    monkeypatch.setattr(email_service, "mail", mail)

    expires_at = datetime(2026, 1, 15, 9, 40, tzinfo=timezone.utc)
    with app.app_context():
        assert EmailService.send_otp_email("farmer@example.com", "654321", 10, expires_at) is True

    message = mail.sent[0]
    assert message.recipients == ["farmer@example.com"]
    assert "654321" in message.html
    assert "654321" in message.body
    assert "10 minutes" in message.body
    # 09:40 UTC is 03:10 PM in India
    assert "03:10 PM IST" in message.body


def test_send_failure_returns_false(app, monkeypatch):
    app.config["MAIL_USERNAME"] = "apikey"
    monkeypatch.setattr(email_service, "mail", _RecordingMail(fail=True))

    with app.app_context():
        assert EmailService.send_waiting_for_approval_email("trader@example.com", "Ravi") is False


def test_waiting_for_approval_email(app, monkeypatch):
    app.config["MAIL_USERNAME"] = "apikey"
    mail = _RecordingMail()
    monkeypatch.setattr(email_service, "mail", mail)

    with app.app_context():
        assert EmailService.send_waiting_for_approval_email("trader@example.com", "Ravi") is True
    assert "Ravi" in mail.sent[0].html


def test_is_configured_outside_app_context():
    assert EmailService.is_configured() is False

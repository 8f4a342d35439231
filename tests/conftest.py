"""
Pytest configuration and shared fixtures for Grainology tests.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app import create_app
from app.services.otp_service import OTPService, OTPStore


class FakeClock:
    """Manually advanced UTC clock for expiry tests."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'OTP_SCHEDULE_EVICTION': False,
        'OTP_DEBUG_ENDPOINT_ENABLED': True,
        'OTP_SEND_RATE_LIMIT': '100 per minute',
        'OTP_VERIFY_RATE_LIMIT': '100 per minute',
        'MAIL_USERNAME': None,
        'LOG_LEVEL': 'DEBUG',
    })

    yield app

    app.extensions['otp_service'].shutdown()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Provide an application context for tests that need it."""
    with app.app_context():
        yield


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def otp_service(fake_clock):
    """OTP service on a fake clock with background eviction disabled."""
    service = OTPService(store=OTPStore(clock=fake_clock, schedule_eviction=False))
    yield service
    service.shutdown()

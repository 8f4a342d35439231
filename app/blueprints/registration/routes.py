"""Registration OTP routes.

Synopsis:
Issues email verification codes for new registrations and checks the codes
users type back in. Delivery goes through EmailService; the OTP service's
structured result is mapped to HTTP status and JSON here.

Glossary:
- Identifier: Namespaced OTP key, e.g. ``email_farmer@example.com``.
"""

from __future__ import annotations

import logging
import re

from flask import abort, current_app, jsonify, request

from ...extensions import limiter, otp_send_limit, otp_verify_limit
from ...services.email_service import EmailService
from ...services.otp_service import get_otp_service
from ...utils.api_responses import APIResponse
from . import registration_bp

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ALL_DOCUMENT_OPTIONS = (
    'aadhaar', 'pan', 'driving_license', 'voter_id', 'passport',
    'gstin', 'cin', 'other',
)
DOCUMENT_TYPE_LABELS = {
    'cin': 'Incorporation Certificate',
    'aadhaar': 'Aadhaar',
    'pan': 'PAN',
    'driving_license': 'Driving License',
    'voter_id': 'Voter ID',
    'passport': 'Passport',
    'gstin': 'GSTIN',
    'other': 'Other',
}


# --- Email identifier ---
# Purpose: Namespace OTP keys so email and phone codes never collide.
def email_identifier(email: str) -> str:
    return f"email_{email}"


# --- Clean email ---
# Purpose: Normalize and validate a submitted email address.
# Outputs: Lower-cased address, or None when missing/invalid.
def _clean_email(raw) -> str | None:
    if not raw or not isinstance(raw, str):
        return None
    cleaned = raw.strip().lower()
    if not EMAIL_PATTERN.match(cleaned):
        return None
    return cleaned


# --- Send email OTP ---
# Purpose: Issue a fresh code (replacing any earlier one) and email it.
# Inputs: JSON/form `email`.
# Outputs: 200 with the normalized email, 400 on missing/invalid email.
@registration_bp.route('/send-email-otp', methods=['POST'])
@limiter.limit(otp_send_limit)
def send_email_otp():
    payload = APIResponse.request_payload()
    raw_email = payload.get('email')
    if not raw_email:
        return jsonify({'success': False, 'error': 'Email is required'}), 400

    email = _clean_email(raw_email)
    if email is None:
        return jsonify({'success': False, 'error': 'Invalid email format'}), 400

    service = get_otp_service()
    otp = service.issue(email_identifier(email))
    info = service.get_otp_info(email_identifier(email)) or {}

    sent = EmailService.send_otp_email(
        email,
        otp,
        expiry_minutes=service.expiry_minutes,
        expires_at=info.get('expires_at'),
    )
    if not sent:
        # The code stays valid; the user can ask for a resend
        logger.warning("OTP email delivery failed for %s", email)

    return jsonify({
        'success': True,
        'message': 'OTP sent to email',
        'email': email,
    })


# --- Verify email OTP ---
# Purpose: Check a submitted code; each call consumes one attempt.
# Inputs: JSON/form `email` and `otp`.
# Outputs: 200 on success, 400 with the failure message and reason otherwise.
@registration_bp.route('/verify-email-otp', methods=['POST'])
@limiter.limit(otp_verify_limit)
def verify_email_otp():
    payload = APIResponse.request_payload()
    email = _clean_email(payload.get('email'))
    if email is None:
        return jsonify({'success': False, 'error': 'Invalid email format'}), 400

    otp = payload.get('otp') or payload.get('email_otp')
    if not otp:
        return jsonify({'success': False, 'error': 'Email OTP is required'}), 400

    result = get_otp_service().verify_otp(email_identifier(email), str(otp))
    if not result.valid:
        body = {'success': False, 'error': result.message, 'reason': result.reason}
        if result.remaining_attempts is not None:
            body['remaining_attempts'] = result.remaining_attempts
        return jsonify(body), 400

    return jsonify({'success': True, 'message': result.message, 'email': email})


# --- OTP diagnostics ---
# Purpose: Read-only record view for support/debugging; disabled unless configured.
@registration_bp.route('/otp-info', methods=['GET'])
def otp_info():
    if not current_app.config.get('OTP_DEBUG_ENDPOINT_ENABLED'):
        abort(404)

    identifier = (request.args.get('identifier') or '').strip()
    if not identifier:
        return APIResponse.validation_error({'identifier': ['identifier is required']})

    info = get_otp_service().get_otp_info(identifier)
    if info is None:
        return APIResponse.not_found('OTP')

    return APIResponse.success({
        'expires_at': info['expires_at'].isoformat(),
        'attempts': info['attempts'],
        'max_attempts': info['max_attempts'],
        'is_expired': info['is_expired'],
    })


@registration_bp.route('/get-document-options', methods=['POST'])
def get_document_options():
    return jsonify({
        'success': True,
        'document_options': [
            {
                'value': doc,
                'label': DOCUMENT_TYPE_LABELS.get(doc) or doc.replace('_', ' ').title(),
            }
            for doc in ALL_DOCUMENT_OPTIONS
        ],
    })

import logging
from flask import current_app
from flask_mail import Message
from ..extensions import mail
from ..utils.timezone_utils import TimezoneUtils

logger = logging.getLogger(__name__)

class EmailService:
    """Service for sending emails"""

    @staticmethod
    def send_otp_email(email, otp, expiry_minutes=10, expires_at=None):
        """Send a registration verification code"""
        try:
            subject = "Your Grainology verification code"
            expiry_line = f"This code will expire in {expiry_minutes} minutes."
            if expires_at is not None:
                expiry_line = f"{expiry_line} (at {TimezoneUtils.format_for_display(expires_at)})"

            html_body = f"""
            <h2>Verify your email address</h2>
            <p>Use the code below to complete your Grainology registration:</p>
            <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">{otp}</p>
            <p>{expiry_line}</p>
            <p>If you didn't request this code, please ignore this email.</p>
            <br>
            <p>Best regards,<br>The Grainology Team</p>
            """

            text_body = f"""
            Verify your email address

            Your Grainology verification code is: {otp}

            {expiry_line}

            If you didn't request this code, please ignore this email.

            Best regards,
            The Grainology Team
            """

            return EmailService._send_email(
                recipient=email,
                subject=subject,
                html_body=html_body,
                text_body=text_body
            )

        except Exception as e:
            logger.error(f"Error sending OTP email: {str(e)}")
            return False

    @staticmethod
    def send_waiting_for_approval_email(email, name=None):
        """
        Tell a newly registered user their account awaits admin approval.

        Called by the account-creation handler once registration details are
        saved; the OTP routes in this package stop at email verification.
        """
        try:
            subject = "Your Grainology registration is under review"

            html_body = f"""
            <h2>Thanks for registering, {name or 'there'}!</h2>
            <p>Your account has been created and is now waiting for approval by our team.</p>
            <p>You will receive another email as soon as your account is approved. Until then you won't be able to log in.</p>
            <br>
            <p>Best regards,<br>The Grainology Team</p>
            """

            return EmailService._send_email(
                recipient=email,
                subject=subject,
                html_body=html_body
            )

        except Exception as e:
            logger.error(f"Error sending waiting-for-approval email: {str(e)}")
            return False

    @staticmethod
    def _send_email(recipient, subject, html_body, text_body=None):
        """Internal method to send email"""
        if not EmailService.is_configured():
            logger.info(f"Email not configured - would send '{subject}' to {recipient}")
            return False

        try:
            msg = Message(
                subject=subject,
                recipients=[recipient],
                html=html_body,
                body=text_body
            )

            mail.send(msg)
            logger.info(f"Email sent successfully to {recipient}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {recipient}: {str(e)}")
            return False

    @staticmethod
    def is_configured():
        """Check if email is properly configured"""
        try:
            return bool(current_app.config.get('MAIL_SERVER') and
                        current_app.config.get('MAIL_USERNAME'))
        except RuntimeError:
            return False

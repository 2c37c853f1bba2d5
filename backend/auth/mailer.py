"""Outbound verification email over SMTP."""
import logging
import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from backend.core import config

logger = logging.getLogger(__name__)


def build_verification_url(token: str) -> str:
    return f"{config.BASE_URL.rstrip('/')}/api/auth/verify-email?{urlencode({'token': token})}"


def build_verification_message(to: str, token: str) -> EmailMessage:
    verify_url = build_verification_url(token)
    message = EmailMessage()
    message["From"] = config.SMTP_FROM
    message["To"] = to
    message["Subject"] = "Verify your email"
    message.set_content(f"Thank you for registering! Verify your email here: {verify_url}")
    message.add_alternative(
        "<p>Thank you for registering! Please verify your email by clicking "
        f'<a href="{verify_url}">here</a>.</p>',
        subtype="html",
    )
    return message


def send_verification_email(to: str, token: str) -> None:
    message = build_verification_message(to, token)
    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as smtp:
        if config.SMTP_STARTTLS:
            smtp.starttls()
        if config.SMTP_USER:
            smtp.login(config.SMTP_USER, config.SMTP_PASS)
        smtp.send_message(message)
    logger.info("Sent verification email to %s", to)

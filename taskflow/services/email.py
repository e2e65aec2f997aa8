"""Outbound email: welcome messages for provisioned users."""

import html
import logging
from email.message import EmailMessage
from enum import Enum

import aiosmtplib
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from taskflow.core.config import Settings

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to TaskFlow - Your Account Details"


class EmailDeliveryStatus(str, Enum):
    """Outcome of a best-effort email delivery."""

    SENT = "sent"
    FAILED = "failed"
    NOT_CONFIGURED = "not-configured"


def build_welcome_email(
    settings: Settings,
    recipient: str,
    name: str,
    temp_password: str,
) -> EmailMessage:
    """Build the welcome message with plain-text and HTML bodies."""
    login_url = f"{settings.frontend_url.rstrip('/')}/login"

    message = EmailMessage()
    message["From"] = settings.smtp_from or settings.smtp_user or "noreply@taskflow.local"
    message["To"] = recipient
    message["Subject"] = WELCOME_SUBJECT
    message.set_content(
        f"Hello {name},\n\n"
        "Your administrator has created a TaskFlow account for you.\n\n"
        f"Email: {recipient}\n"
        f"Temporary password: {temp_password}\n\n"
        "Please change your password after your first login.\n"
        f"Sign in at {login_url}\n"
    )
    message.add_alternative(
        "<html><body>"
        f"<h2>Hello {html.escape(name)},</h2>"
        "<p>Your administrator has created a TaskFlow account for you.</p>"
        f"<p><strong>Email:</strong> {html.escape(recipient)}<br>"
        f"<strong>Temporary password:</strong> <code>{html.escape(temp_password)}</code></p>"
        "<p>Please change your password after your first login and keep it private.</p>"
        f'<p><a href="{html.escape(login_url)}">Sign in to TaskFlow</a></p>'
        "</body></html>",
        subtype="html",
    )
    return message


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(aiosmtplib.SMTPConnectError),
    reraise=True,
)
async def _deliver(settings: Settings, message: EmailMessage) -> None:
    await aiosmtplib.send(
        message,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_password,
        start_tls=settings.smtp_start_tls,
    )


async def send_welcome_email(
    settings: Settings,
    recipient: str,
    name: str,
    temp_password: str,
) -> EmailDeliveryStatus:
    """Send the welcome email. Never raises; failures become a status."""
    if not settings.email_configured:
        logger.warning("Email not configured; skipped welcome email to %s", recipient)
        if not settings.is_production:
            logger.info("Login credentials for %s: %s / %s", name, recipient, temp_password)
        return EmailDeliveryStatus.NOT_CONFIGURED

    message = build_welcome_email(settings, recipient, name, temp_password)
    try:
        await _deliver(settings, message)
    except Exception:
        logger.exception("Failed to send welcome email to %s", recipient)
        return EmailDeliveryStatus.FAILED

    logger.info("Welcome email sent to %s", recipient)
    return EmailDeliveryStatus.SENT


async def verify_email_config(settings: Settings) -> bool:
    """Check that the SMTP server accepts our credentials."""
    if not settings.email_configured:
        logger.info("Email service not configured - emails will not be sent")
        return False

    client = aiosmtplib.SMTP(
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        start_tls=settings.smtp_start_tls,
    )
    try:
        await client.connect()
        await client.login(settings.smtp_user, settings.smtp_password)
        await client.quit()
    except aiosmtplib.SMTPException:
        logger.exception("Email configuration test failed")
        return False
    except OSError:
        logger.exception("Could not reach SMTP server %s:%s", settings.smtp_host, settings.smtp_port)
        return False

    logger.info("Email service is configured and ready")
    return True

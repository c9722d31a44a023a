"""
Transactional email notifications.

Sends are fire-and-forget: routes schedule them as background tasks, and
any failure is logged here and never reaches the caller.
"""
import logging
import smtplib
from email.message import EmailMessage

from rainmakers.config import Settings

logger = logging.getLogger(__name__)


def send_email(settings: Settings, to_email: str, subject: str, body: str) -> bool:
    """Send a plain-text message. Returns False when skipped or failed."""
    if not settings.smtp_configured:
        logger.info("SMTP not configured; skipping email to %s: %s", to_email, subject)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    msg.set_content(body)

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email to %s: %s", to_email, subject)
        return False
    return True


def send_pledge_confirmation(settings: Settings, to_email: str, pledge_id: str) -> bool:
    return send_email(
        settings,
        to_email,
        "Thanks for your pledge",
        "Your pledge has been recorded.\n\n"
        f"Edit it any time: {settings.app_url}/pledge/{pledge_id}/edit\n"
        "Once your cache is published, come back and confirm it with its GC code.\n"
    )


def send_submission_confirmation(settings: Settings, to_email: str, submission_id: str) -> bool:
    return send_email(
        settings,
        to_email,
        "Your cache is confirmed",
        "Thanks for confirming your published cache.\n\n"
        f"View or edit it: {settings.app_url}/submission/{submission_id}/edit\n"
    )


def send_magic_link(settings: Settings, to_email: str, token: str) -> bool:
    return send_email(
        settings,
        to_email,
        "Manage your pledges",
        "Use this link to view and edit your pledges and submissions:\n\n"
        f"{settings.app_url}/manage?token={token}\n\n"
        f"The link expires in {settings.edit_token_hours} hours.\n"
    )

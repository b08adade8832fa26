"""Email service for sending registration and auction notifications."""

import html
import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .delivery import EmailMessage

if TYPE_CHECKING:
    from config.settings import AppConfig

logger = logging.getLogger(__name__)

# Template directory
TEMPLATE_DIR = Path(__file__).parent / "templates"


def load_template(template_name: str) -> str:
    """Load email template from file.

    Args:
        template_name: Name of template file (e.g., 'player_registration.html')

    Returns:
        Template content as string
    """
    template_path = TEMPLATE_DIR / template_name
    try:
        with open(template_path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        logger.error(f"Email template not found: {template_path}")
        raise


def render_template(
    template_content: str, variables: dict[str, str], escape: bool = False
) -> str:
    """Render template by replacing {{variable}} placeholders.

    Args:
        template_content: Template string with {{variable}} placeholders
        variables: Dictionary mapping variable names to values
        escape: HTML-escape values, for the HTML part

    Returns:
        Rendered template string
    """
    result = template_content
    for key, value in variables.items():
        placeholder = f"{{{{{key}}}}}"
        text = str(value)
        result = result.replace(placeholder, html.escape(text) if escape else text)
    return result


def build_message(
    template_name: str, variables: dict[str, str], subject: str
) -> EmailMessage:
    """Render ``<template_name>.html`` and, when present, ``.txt``."""
    html_body = render_template(
        load_template(f"{template_name}.html"), variables, escape=True
    )
    text_body = None
    if (TEMPLATE_DIR / f"{template_name}.txt").exists():
        text_body = render_template(load_template(f"{template_name}.txt"), variables)
    return EmailMessage(subject=subject, html=html_body, text=text_body)


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self, smtp_server: str, smtp_port: int, smtp_user: str,
                 smtp_password: str, from_email: str, from_name: str,
                 enabled: bool = True, use_tls: bool = True,
                 timeout_seconds: float = 30.0):
        """Initialize email service with SMTP configuration."""
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.from_name = from_name
        self.enabled = enabled
        self.use_tls = use_tls
        self.timeout_seconds = timeout_seconds

    def send_email(self, to_email: str, subject: str, html_body: str,
                   text_body: Optional[str] = None) -> bool:
        """Send an email via SMTP.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_body: HTML email body
            text_body: Plain text fallback (optional)

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.enabled:
            logger.warning(f"Email service disabled. Would send to {to_email}: {subject}")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            if text_body:
                msg.attach(MIMEText(text_body, "plain"))
            msg.attach(MIMEText(html_body, "html"))

            with smtplib.SMTP(
                self.smtp_server, self.smtp_port, timeout=self.timeout_seconds
            ) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending email to {to_email}: {e}")
            return False


# Global email service instance (initialized by API startup)
_email_service: Optional[EmailService] = None


def initialize_email_service(config: "AppConfig") -> None:
    """Initialize the global email service from configuration.

    Args:
        config: Application configuration with email settings
    """
    global _email_service

    email_config = config.email

    if not email_config.enabled:
        logger.info("Email service explicitly disabled in configuration")
        _email_service = None
        return

    # Env var overrides config
    smtp_password = os.environ.get("SMTP_PASSWORD") or email_config.smtp_password

    if not all([
        email_config.smtp_server,
        email_config.smtp_user,
        smtp_password,
        email_config.from_email,
    ]):
        logger.warning("Incomplete email configuration, email service disabled")
        _email_service = None
        return

    assert smtp_password is not None

    _email_service = EmailService(
        smtp_server=email_config.smtp_server,
        smtp_port=email_config.smtp_port,
        smtp_user=email_config.smtp_user,
        smtp_password=smtp_password,
        from_email=email_config.from_email,
        from_name=email_config.from_name,
        enabled=email_config.enabled,
        use_tls=email_config.use_tls,
        timeout_seconds=email_config.timeout_seconds,
    )

    logger.info(
        f"Email service initialized: {email_config.smtp_server}:{email_config.smtp_port}"
    )


def get_email_service() -> Optional[EmailService]:
    """Get the global email service instance."""
    return _email_service

"""
Outbound email for report exports.

send_email builds a MIME message (HTML body, optional plain-text
alternative, optional attachments) and hands it to an SMTP connection
configured from app.config (SMTP_*). Port 465 or SMTP_USE_SSL selects
implicit TLS; any other port uses STARTTLS.

Tests swap the connection by putting a factory under
app.extensions["email_transport"]; it is called with the SMTP settings and
must return a context manager exposing send_message(msg).
"""

from __future__ import annotations

import smtplib
from contextlib import contextmanager
from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from flask import current_app

TRANSPORT_EXTENSION_KEY = "email_transport"


class EmailDeliveryError(Exception):
    """Raised when email configuration is incomplete or the SMTP exchange fails."""
    pass


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes | str
    subtype: str = "octet-stream"


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str
    use_ssl: bool
    timeout: float


def load_settings() -> SmtpSettings:
    config = current_app.config
    required = {
        "SMTP_HOST": config.get("SMTP_HOST"),
        "SMTP_USERNAME": config.get("SMTP_USERNAME"),
        "SMTP_PASSWORD": config.get("SMTP_PASSWORD"),
        "SMTP_FROM_EMAIL": config.get("SMTP_FROM_EMAIL"),
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise EmailDeliveryError(f"SMTP configuration not complete. Missing: {', '.join(missing)}")

    port = int(config.get("SMTP_PORT") or 587)
    return SmtpSettings(
        host=required["SMTP_HOST"],
        port=port,
        username=required["SMTP_USERNAME"],
        password=required["SMTP_PASSWORD"],
        from_email=required["SMTP_FROM_EMAIL"],
        from_name=config.get("SMTP_FROM_NAME") or "POSX",
        use_ssl=bool(config.get("SMTP_USE_SSL")) or port == 465,
        timeout=float(config.get("SMTP_TIMEOUT") or 20),
    )


@contextmanager
def smtp_connection(settings: SmtpSettings):
    """Logged-in SMTP connection, closed on exit."""
    if settings.use_ssl:
        server = smtplib.SMTP_SSL(settings.host, settings.port, timeout=settings.timeout)
    else:
        server = smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout)
    with server:
        if not settings.use_ssl:
            server.starttls()
        server.login(settings.username, settings.password)
        yield server


def build_message(
    settings: SmtpSettings,
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
    attachments=(),
) -> MIMEMultipart:
    msg = MIMEMultipart("mixed")
    msg["From"] = formataddr((settings.from_name, settings.from_email))
    msg["To"] = to
    msg["Subject"] = subject

    body = MIMEMultipart("alternative")
    if text:
        body.attach(MIMEText(text, "plain", "utf-8"))
    body.attach(MIMEText(html, "html", "utf-8"))
    msg.attach(body)

    for attachment in attachments:
        content = attachment.content
        if isinstance(content, str):
            content = content.encode("utf-8")
        part = MIMEApplication(content, _subtype=attachment.subtype)
        part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
        msg.attach(part)

    return msg


def send_email(to: str, subject: str, html: str, text: str | None = None, attachments=()) -> None:
    """
    Send one message. Raises EmailDeliveryError on any configuration or
    SMTP failure.
    """
    settings = load_settings()
    msg = build_message(settings, to, subject, html, text, attachments)
    connect = current_app.extensions.get(TRANSPORT_EXTENSION_KEY) or smtp_connection

    try:
        with connect(settings) as server:
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        current_app.logger.error("Email to %s failed: %s", to, e)
        raise EmailDeliveryError(f"Failed to send email: {e}") from e

    current_app.logger.info("Email '%s' sent to %s", subject, to)

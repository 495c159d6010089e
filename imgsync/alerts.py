from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .db import logger
from .settings import settings


def send_email(subject: str, body: str) -> bool:
    """Send a reconcile report by email if SMTP settings are configured.

    Environment variables:
      - IMGSYNC_ENABLE_EMAIL=true
      - IMGSYNC_SMTP_HOST / IMGSYNC_SMTP_PORT
      - IMGSYNC_SMTP_USER / IMGSYNC_SMTP_PASSWORD
      - IMGSYNC_EMAIL_FROM / IMGSYNC_EMAIL_TO
    """
    if not settings.enable_email:
        return False
    if not all(
        [
            settings.smtp_host,
            settings.smtp_port,
            settings.smtp_user,
            settings.smtp_password,
            settings.email_from,
            settings.email_to,
        ]
    ):
        return False

    msg = MIMEMultipart()
    msg["From"] = settings.email_from
    msg["To"] = settings.email_to
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "plain"))

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.email_from, [settings.email_to], msg.as_string())
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("Alert email not sent: %s", e)
        return False

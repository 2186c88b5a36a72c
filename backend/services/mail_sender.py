"""Email notifications about prioritization runs.

Delivery is fire-and-forget: failures are returned as a message instead of
raised, so a broken mailbox never stops a run.
"""

from email.message import EmailMessage
from typing import Optional
import logging
import smtplib

logger = logging.getLogger(__name__)

DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587


def send_mail(
    address_from: str,
    address_to: str,
    password: str,
    subject: str,
    body: str,
    host: str = DEFAULT_SMTP_HOST,
    port: int = DEFAULT_SMTP_PORT
) -> Optional[str]:
    """Send a plain-text email over SMTP with STARTTLS.

    Args:
        address_from: Sender address, also the SMTP username
        address_to: Recipient address
        password: SMTP password of the sender account
        subject: Message subject
        body: Plain-text message body
        host: SMTP server host
        port: SMTP server port

    Returns:
        None on success, otherwise a message describing the failure
    """
    message = EmailMessage()
    message["From"] = address_from
    message["To"] = address_to
    message["Subject"] = subject
    message.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=30) as smtp:
            smtp.starttls()
            smtp.login(address_from, password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        return f"The email notification could NOT be sent due to the following error: {e}"

    return None


class MailNotifier:
    """Sends notifications from one configured account to one recipient."""

    def __init__(self, address_from: str, address_to: str, password: str,
                 host: str = DEFAULT_SMTP_HOST, port: int = DEFAULT_SMTP_PORT):
        self.address_from = address_from
        self.address_to = address_to
        self.password = password
        self.host = host
        self.port = port

    def send(self, subject: str, body: str) -> Optional[str]:
        logger.info(f"Sending notification '{subject}' to {self.address_to}")
        return send_mail(
            self.address_from, self.address_to, self.password,
            subject, body, host=self.host, port=self.port
        )

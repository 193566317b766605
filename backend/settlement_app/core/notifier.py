from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional, Protocol, Sequence

from settlement_app.core.errors import NotificationError
from settlement_app.schemas.settlement_contract import DEFAULT_CONTENT_TYPE, Attachment

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Settlement Form Submission Confirmation"


def confirmation_message(name: Optional[str]) -> str:
    return (
        f"Dear {name or 'applicant'},\n\n"
        "Thank you for submitting your settlement form. "
        "Please find the attached documents.\n\n"
        "Best regards,\nYour Organization"
    )


class MailTransport(Protocol):
    def send_message(self, message: EmailMessage) -> None: ...


class SmtpTransport:
    """Implicit-TLS SMTP (Gmail style: smtp.gmail.com:465 with an app password)."""

    def __init__(self, host: str, port: int, user: Optional[str], password: Optional[str], timeout: float = 60.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send_message(self, message: EmailMessage) -> None:
        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
            if self.user:
                smtp.login(self.user, self.password or "")
            smtp.send_message(message)


def _split_mime(content_type: str):
    main, _, sub = (content_type or DEFAULT_CONTENT_TYPE).partition("/")
    if not main or not sub:
        return DEFAULT_CONTENT_TYPE.split("/")
    return main, sub.split(";")[0].strip()


class Notifier:
    def __init__(self, transport: MailTransport, sender: Optional[str]):
        self.transport = transport
        self.sender = sender

    def build_message(
        self, recipient: str, subject: str, body: str, attachments: Sequence[Attachment]
    ) -> EmailMessage:
        msg = EmailMessage()
        if self.sender:
            msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content(body)
        for a in attachments:
            maintype, subtype = _split_mime(a.content_type)
            msg.add_attachment(a.content, maintype=maintype, subtype=subtype, filename=a.filename)
        return msg

    def send(self, recipient: Optional[str], subject: str, body: str, attachments: Sequence[Attachment]) -> None:
        """One blocking send, no retry. Any failure raises ``NotificationError``."""
        if not recipient:
            raise NotificationError("no recipient address")
        try:
            self.transport.send_message(self.build_message(recipient, subject, body, attachments))
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(str(e)) from e
        logger.info("confirmation sent to %s with %d attachment(s)", recipient, len(attachments))

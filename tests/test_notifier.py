"""
Unit tests for the confirmation notifier and the SMTP transport.
"""

from unittest.mock import MagicMock, patch

import pytest

from settlement_app.core.errors import NotificationError
from settlement_app.core.notifier import (
    CONFIRMATION_SUBJECT,
    Notifier,
    SmtpTransport,
    confirmation_message,
)
from settlement_app.schemas.settlement_contract import Attachment

from conftest import make_attachments


class TestNotifier:
    def test_message_carries_every_attachment(self, transport):
        notifier = Notifier(transport, sender="office@example.org")
        notifier.send("a@b.com", CONFIRMATION_SUBJECT, confirmation_message("A"), make_attachments("x.txt", "y.txt"))

        assert len(transport.messages) == 1
        msg = transport.messages[0]
        assert msg["To"] == "a@b.com"
        assert msg["From"] == "office@example.org"
        assert msg["Subject"] == CONFIRMATION_SUBJECT
        names = [part.get_filename() for part in msg.iter_attachments()]
        assert names == ["x.txt", "y.txt"]
        assert [p.get_content() for p in msg.iter_attachments()] == ["x.txt", "y.txt"]

    def test_binary_attachment_round_trips_bytes(self, transport):
        payload = bytes(range(256))
        Notifier(transport, sender=None).send(
            "a@b.com", "s", "b", [Attachment("scan.pdf", "application/pdf", payload)]
        )
        part = next(transport.messages[0].iter_attachments())
        assert part.get_content_type() == "application/pdf"
        assert part.get_content() == payload

    def test_transport_failure_raises(self, transport):
        transport.fail = True
        with pytest.raises(NotificationError):
            Notifier(transport, sender=None).send("a@b.com", "s", "b", [])

    def test_missing_recipient_raises(self, transport):
        with pytest.raises(NotificationError, match="recipient"):
            Notifier(transport, sender=None).send(None, "s", "b", [])
        assert transport.messages == []

    def test_confirmation_body_addresses_submitter(self):
        body = confirmation_message("Rina")
        assert body.startswith("Dear Rina,")
        assert "attached documents" in body


class TestSmtpTransport:
    @patch("settlement_app.core.notifier.smtplib.SMTP_SSL")
    def test_logs_in_and_sends(self, mock_smtp_cls):
        smtp = MagicMock()
        mock_smtp_cls.return_value.__enter__.return_value = smtp
        message = MagicMock()

        SmtpTransport("smtp.gmail.com", 465, "user@example.org", "secret").send_message(message)

        mock_smtp_cls.assert_called_once_with("smtp.gmail.com", 465, timeout=60.0)
        smtp.login.assert_called_once_with("user@example.org", "secret")
        smtp.send_message.assert_called_once_with(message)

    @patch("settlement_app.core.notifier.smtplib.SMTP_SSL")
    def test_skips_login_without_account(self, mock_smtp_cls):
        smtp = MagicMock()
        mock_smtp_cls.return_value.__enter__.return_value = smtp

        SmtpTransport("localhost", 1465, None, None).send_message(MagicMock())

        smtp.login.assert_not_called()

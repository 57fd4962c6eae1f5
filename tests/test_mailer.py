"""
Mail Transport Tests

SMTP is exercised with a mocked smtplib; SendPulse with an httpx mock
transport.
"""
import smtplib
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.club.communications import mailer
from app.club.communications.mailer import (
    OutgoingMail,
    SendPulseTransport,
    SenderIdentity,
    SmtpTransport,
    build_transport,
    resolve_sender,
    text_to_html,
)
from app.club.errors import MailDeliveryError, MailNotConfiguredError
from app.config import mail_config

SMTP_SETTINGS = {
    "smtp_host": "smtp.demo.es",
    "smtp_port": 587,
    "smtp_user": "club@demo.es",
    "smtp_password": "secret",
    "smtp_from_email": "club@demo.es",
}
CLUB = {"id": "c1", "name": "CF Demo"}


def _mail(to="ana@demo.es"):
    return OutgoingMail(to=to, subject="Hola", html="<p>Hola</p>", text="Hola")


class TestTransportSelection:
    """build_transport / resolve_sender"""

    def test_smtp_when_complete(self):
        transport = build_transport(CLUB, SMTP_SETTINGS)
        assert isinstance(transport, SmtpTransport)
        assert transport.sender.from_email == "club@demo.es"
        assert transport.sender.club_name == "CF Demo"

    def test_sendpulse_when_selected(self):
        settings = {**SMTP_SETTINGS, "mail_provider": "sendpulse",
                    "sendpulse_api_user_id": "u", "sendpulse_api_secret": "s"}
        assert isinstance(build_transport(CLUB, settings), SendPulseTransport)

    def test_incomplete_settings(self):
        """Selected provider without credentials is not configured"""
        with pytest.raises(MailNotConfiguredError):
            build_transport(CLUB, {"mail_provider": "smtp", "smtp_host": "smtp.demo.es"})
        with pytest.raises(MailNotConfiguredError):
            build_transport(CLUB, {})

    def test_sender_needs_verification(self):
        settings = {"from_email": "hola@demo.es", "sender_verification_status": "pending"}
        assert resolve_sender(CLUB, settings).from_email == mail_config.default_from_email

        settings["sender_verification_status"] = "verified"
        assert resolve_sender(CLUB, settings).from_email == "hola@demo.es"

    def test_sender_header(self):
        sender = SenderIdentity(club_name="CF Demo", from_email="club@demo.es")
        assert sender.header == "CF Demo <club@demo.es>"

    def test_text_to_html(self):
        assert text_to_html("Hola\r\nAdiós\nFin") == "Hola<br>Adiós<br>Fin"


@pytest.mark.asyncio
class TestSmtpTransport:
    """SMTP delivery"""

    async def test_starttls_on_587(self):
        transport = build_transport(CLUB, SMTP_SETTINGS)
        with patch.object(mailer.smtplib, "SMTP") as smtp_cls:
            server = MagicMock()
            smtp_cls.return_value = server
            await transport.send(_mail())

        smtp_cls.assert_called_once()
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("club@demo.es", "secret")
        from_addr, to_addrs, message = server.sendmail.call_args[0]
        assert to_addrs == ["ana@demo.es"]
        assert "Subject: Hola" in message
        server.quit.assert_called_once()

    async def test_ssl_on_465(self):
        transport = build_transport(CLUB, {**SMTP_SETTINGS, "smtp_port": 465})
        with patch.object(mailer.smtplib, "SMTP_SSL") as ssl_cls:
            ssl_cls.return_value = MagicMock()
            await transport.send(_mail())
        ssl_cls.assert_called_once()

    async def test_failure_wrapped(self):
        transport = build_transport(CLUB, SMTP_SETTINGS)
        with patch.object(mailer.smtplib, "SMTP") as smtp_cls:
            server = MagicMock()
            server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
            smtp_cls.return_value = server
            with pytest.raises(MailDeliveryError):
                await transport.send(_mail())
            server.quit.assert_called_once()

    async def test_send_bulk_continues_after_failure(self):
        """One rejected recipient does not stop the others"""
        transport = build_transport(CLUB, SMTP_SETTINGS)
        with patch.object(mailer.smtplib, "SMTP") as smtp_cls:
            server = MagicMock()

            def sendmail(from_addr, to_addrs, message):
                if to_addrs == ["bad@demo.es"]:
                    raise smtplib.SMTPRecipientsRefused({"bad@demo.es": (550, b"unknown")})

            server.sendmail.side_effect = sendmail
            smtp_cls.return_value = server
            results = await transport.send_bulk([_mail("a@demo.es"), _mail("bad@demo.es"), _mail("c@demo.es")])

        assert [r.success for r in results] == [True, False, True]
        assert results[1].error

    async def test_non_ascii_address_fails_alone(self):
        """Addresses smtplib cannot encode are reported per recipient"""
        transport = build_transport(CLUB, SMTP_SETTINGS)
        with patch.object(mailer.smtplib, "SMTP") as smtp_cls:
            server = MagicMock()

            def sendmail(from_addr, to_addrs, message):
                if to_addrs == ["josé@demo.es"]:
                    "josé@demo.es".encode("ascii")

            server.sendmail.side_effect = sendmail
            smtp_cls.return_value = server
            results = await transport.send_bulk(
                [_mail("ana@demo.es"), _mail("josé@demo.es"), _mail("leo@demo.es")]
            )

        assert [r.success for r in results] == [True, False, True]
        assert "ascii" in results[1].error

    async def test_send_bulk_survives_unexpected_error(self):
        transport = build_transport(CLUB, SMTP_SETTINGS)
        with patch.object(transport, "send", AsyncMock(side_effect=[None, RuntimeError("boom")])):
            results = await transport.send_bulk([_mail("a@demo.es"), _mail("b@demo.es")])

        assert [r.success for r in results] == [True, False]
        assert results[1].error == "boom"


@pytest.mark.asyncio
class TestSendPulseTransport:
    """SendPulse API delivery"""

    @pytest.fixture
    def sendpulse(self, monkeypatch):
        calls = []
        state = {"send_status": 200}
        real_client = httpx.AsyncClient

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if request.url.path.endswith("/access_token"):
                return httpx.Response(200, json={"access_token": "tok-1"})
            return httpx.Response(state["send_status"], json={"result": True})

        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        monkeypatch.setattr(mailer.httpx, "AsyncClient", client_factory)
        transport = SendPulseTransport(
            SenderIdentity(club_name="CF Demo", from_email="club@demo.es"), "user", "secret"
        )
        return transport, calls, state

    async def test_token_then_send(self, sendpulse):
        transport, calls, _ = sendpulse
        await transport.send(_mail())
        await transport.send(_mail("biel@demo.es"))

        token_calls = [c for c in calls if c.url.path.endswith("/access_token")]
        send_calls = [c for c in calls if c.url.path.endswith("/emails")]
        assert len(token_calls) == 1
        assert len(send_calls) == 2
        assert send_calls[0].headers["Authorization"] == "Bearer tok-1"

    async def test_error_status(self, sendpulse):
        transport, _, state = sendpulse
        state["send_status"] = 422
        with pytest.raises(MailDeliveryError):
            await transport.send(_mail())

"""
Mail transports

Each club sends through its own configured provider:
- SMTP (TLS on port 465, STARTTLS otherwise)
- SendPulse SMTP API (OAuth client credentials)
"""
import asyncio
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional, List, Dict, Any

import httpx
from loguru import logger
from pydantic import BaseModel

from app.config import mail_config
from ..errors import MailDeliveryError, MailNotConfiguredError


class SenderIdentity(BaseModel):
    club_name: str
    from_email: str

    @property
    def header(self) -> str:
        return formataddr((self.club_name, self.from_email))


class OutgoingMail(BaseModel):
    to: str
    subject: str
    html: str
    text: Optional[str] = None
    recipient_id: Optional[str] = None


class MailResult(BaseModel):
    to: str
    recipient_id: Optional[str] = None
    success: bool
    error: Optional[str] = None


def resolve_sender(club: Dict[str, Any], settings: Dict[str, Any]) -> SenderIdentity:
    """
    Club name and sender address.

    The club's own address is used only once it is verified; until then mail
    goes out from the platform default sender.
    """
    club_name = (club or {}).get("name") or mail_config.default_club_name
    from_email = mail_config.default_from_email
    if settings.get("sender_verification_status") == "verified" and settings.get("from_email"):
        from_email = settings["from_email"]
    return SenderIdentity(club_name=club_name, from_email=from_email)


class MailTransport:
    """Base transport; send() raises MailDeliveryError on failure"""

    provider = "base"

    def __init__(self, sender: SenderIdentity):
        self.sender = sender

    async def send(self, mail: OutgoingMail) -> None:
        raise NotImplementedError

    async def send_bulk(self, mails: List[OutgoingMail]) -> List[MailResult]:
        """Send one message per recipient; a failure does not stop the rest"""
        results = []
        for mail in mails:
            try:
                await self.send(mail)
                results.append(MailResult(to=mail.to, recipient_id=mail.recipient_id, success=True))
            except MailDeliveryError as e:
                error = e.params.get("error") or str(e)
                logger.warning(f"[{self.provider}] delivery to {mail.to} failed: {error}")
                results.append(MailResult(
                    to=mail.to, recipient_id=mail.recipient_id, success=False, error=error
                ))
            except Exception as e:
                logger.exception(f"[{self.provider}] unexpected error sending to {mail.to}: {e}")
                results.append(MailResult(
                    to=mail.to, recipient_id=mail.recipient_id, success=False, error=str(e)
                ))
        return results


class SmtpTransport(MailTransport):
    """Club SMTP server"""

    provider = "smtp"

    def __init__(
        self,
        sender: SenderIdentity,
        host: str,
        port: int,
        user: str,
        password: str,
        timeout: int = 30
    ):
        super().__init__(sender)
        self.host = host
        self.port = int(port)
        self.user = user
        self.password = password
        self.timeout = timeout

    def _build_message(self, mail: OutgoingMail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = mail.subject
        msg["From"] = self.sender.header
        msg["To"] = mail.to
        if mail.text:
            msg.attach(MIMEText(mail.text, "plain", "utf-8"))
        msg.attach(MIMEText(mail.html, "html", "utf-8"))
        return msg

    def _send_sync(self, mail: OutgoingMail) -> None:
        msg = self._build_message(mail)
        context = ssl.create_default_context()
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            server.starttls(context=context)
        try:
            server.login(self.user, self.password)
            server.sendmail(self.sender.from_email, [mail.to], msg.as_string())
        finally:
            server.quit()

    async def send(self, mail: OutgoingMail) -> None:
        try:
            await asyncio.to_thread(self._send_sync, mail)
        except (smtplib.SMTPException, OSError, UnicodeError) as e:
            # non-ASCII addresses fail to encode on servers without SMTPUTF8
            raise MailDeliveryError("mail.delivery_failed", error=str(e))
        logger.debug(f"SMTP mail sent to {mail.to} via {self.host}")


class SendPulseTransport(MailTransport):
    """SendPulse SMTP API"""

    provider = "sendpulse"

    def __init__(self, sender: SenderIdentity, api_user_id: str, api_secret: str):
        super().__init__(sender)
        self.api_user_id = api_user_id
        self.api_secret = api_secret
        self._access_token: Optional[str] = None

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if self._access_token:
            return self._access_token

        response = await client.post(
            mail_config.sendpulse_token_url,
            json={
                "grant_type": "client_credentials",
                "client_id": self.api_user_id,
                "client_secret": self.api_secret,
            }
        )
        if response.status_code != 200:
            logger.error(f"SendPulse auth error: {response.status_code} - {response.text}")
            raise MailDeliveryError("mail.delivery_failed", error=f"SendPulse auth {response.status_code}")

        token = response.json().get("access_token")
        if not token:
            raise MailDeliveryError("mail.delivery_failed", error="SendPulse returned no access token")
        self._access_token = token
        return token

    async def send(self, mail: OutgoingMail) -> None:
        payload = {
            "email": {
                "html": mail.html,
                "text": mail.text or "",
                "subject": mail.subject,
                "from": {"name": self.sender.club_name, "email": self.sender.from_email},
                "to": [{"email": mail.to}],
            }
        }
        try:
            async with httpx.AsyncClient(timeout=mail_config.http_timeout) as client:
                token = await self._get_access_token(client)
                response = await client.post(
                    mail_config.sendpulse_send_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"}
                )
        except httpx.HTTPError as e:
            raise MailDeliveryError("mail.delivery_failed", error=str(e))

        if response.status_code != 200:
            logger.error(f"SendPulse send error: {response.status_code} - {response.text}")
            raise MailDeliveryError(
                "mail.delivery_failed",
                error=f"SendPulse {response.status_code}: {response.text[:200]}"
            )


def _smtp_complete(settings: Dict[str, Any]) -> bool:
    return all(settings.get(k) for k in (
        "smtp_host", "smtp_port", "smtp_user", "smtp_password", "smtp_from_email"
    ))


def _sendpulse_complete(settings: Dict[str, Any]) -> bool:
    return bool(settings.get("sendpulse_api_user_id") and settings.get("sendpulse_api_secret"))


def build_transport(club: Dict[str, Any], settings: Dict[str, Any]) -> MailTransport:
    """
    Transport for the club's configured provider.

    Raises MailNotConfiguredError when the credentials are incomplete.
    """
    provider = settings.get("mail_provider")
    if provider is None:
        if _smtp_complete(settings):
            provider = "smtp"
        elif _sendpulse_complete(settings):
            provider = "sendpulse"

    if provider == "smtp" and _smtp_complete(settings):
        # SMTP sends from the authenticated account address
        sender = SenderIdentity(
            club_name=(club or {}).get("name") or mail_config.default_club_name,
            from_email=settings["smtp_from_email"]
        )
        return SmtpTransport(
            sender,
            host=settings["smtp_host"],
            port=settings["smtp_port"],
            user=settings["smtp_user"],
            password=settings["smtp_password"],
            timeout=mail_config.smtp_timeout
        )

    if provider == "sendpulse" and _sendpulse_complete(settings):
        return SendPulseTransport(
            resolve_sender(club, settings),
            api_user_id=settings["sendpulse_api_user_id"],
            api_secret=settings["sendpulse_api_secret"]
        )

    raise MailNotConfiguredError("mail.not_configured")


def text_to_html(body: str) -> str:
    """Plain text body to HTML, keeping line breaks"""
    return body.replace("\r\n", "\n").replace("\n", "<br>")


def club_transport(club_id: str) -> MailTransport:
    """Transport built from the club's stored mail settings"""
    from ..settings import settings_service

    club = settings_service.get_club(club_id)
    settings = settings_service.get_settings(club_id)
    return build_transport(club, settings)

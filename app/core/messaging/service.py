"""Outbound messaging (email and SMS) used by automation actions."""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import aiosmtplib
import httpx
from pydantic import BaseModel

from app.core.config_file import Settings, get_settings
from app.core.logging import mask_email, mask_phone

logger = logging.getLogger(__name__)


class SendResult(BaseModel):
    """Result of one outbound message."""

    success: bool
    id: str | None = None
    simulated: bool = False
    error: str | None = None


class MessagingService:
    """Sends email over SMTP and SMS over the Twilio REST API.

    When a channel has no credentials configured the send is simulated: it is
    logged and reported as a successful, simulated delivery.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize messaging service.

        Args:
            settings: Application settings (defaults to cached settings)
            http_client: Optional HTTP client for the SMS provider
        """
        self.settings = settings or get_settings()
        self._http_client = http_client

    async def send_email(self, to: str, subject: str, html: str) -> SendResult:
        """Send an email.

        Args:
            to: Recipient address
            subject: Email subject
            html: Email body (HTML or plain text)

        Returns:
            SendResult

        Raises:
            aiosmtplib.SMTPException: If the SMTP relay rejects the message
        """
        settings = self.settings
        if not settings.smtp_configured:
            logger.warning(
                f"SMTP not configured, simulating email to {mask_email(to)}. "
                "Set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD to enable email sending."
            )
            return SendResult(success=True, simulated=True)

        message = MIMEMultipart("alternative")
        message["From"] = settings.SMTP_FROM
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.attach(MIMEText(html, "html" if "<" in html else "plain"))

        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER if settings.SMTP_USER else None,
            password=settings.SMTP_PASSWORD if settings.SMTP_PASSWORD else None,
            use_tls=settings.SMTP_USE_TLS,
        )

        logger.info(f"Email sent successfully to {mask_email(to)}")
        return SendResult(success=True, id=message["Message-ID"])

    async def send_sms(self, to: str, body: str) -> SendResult:
        """Send an SMS.

        Args:
            to: Recipient phone number (E.164)
            body: Message text

        Returns:
            SendResult; a provider rejection is reported with success=False

        Raises:
            httpx.HTTPError: On transport errors
        """
        settings = self.settings
        if not settings.twilio_configured:
            logger.warning(f"Twilio not configured, simulating SMS to {mask_phone(to)}")
            return SendResult(success=True, simulated=True)

        url = (
            f"{settings.TWILIO_API_BASE_URL}/Accounts/"
            f"{settings.TWILIO_ACCOUNT_SID}/Messages.json"
        )
        data = {"To": to, "From": settings.TWILIO_FROM_NUMBER, "Body": body}
        auth = (settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

        if self._http_client is not None:
            response = await self._http_client.post(url, data=data, auth=auth)
        else:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(url, data=data, auth=auth)

        if response.status_code >= 400:
            error = response.text
            try:
                error = response.json().get("message", error)
            except ValueError:
                pass
            logger.error(
                f"SMS to {mask_phone(to)} rejected with status {response.status_code}: {error}"
            )
            return SendResult(success=False, error=error)

        sid = response.json().get("sid")
        logger.info(f"SMS sent successfully to {mask_phone(to)} (sid={sid})")
        return SendResult(success=True, id=sid)

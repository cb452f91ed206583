"""Outbound quote email over SMTP.

When ``SMTP_HOST`` is not configured messages are only logged, so local
development and demos work without a mail server.
"""
import html
import logging
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from movefinder.core.config import settings
from movefinder.core.metrics import emails_sent
from movefinder.schemas.detection import ServiceStatus
from movefinder.schemas.notification import QuoteEmailData

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


def _format_cost(cost: Optional[float]) -> str:
    if cost is None:
        return "to be confirmed"
    return f"${cost:,.0f}"


def _row(label: str, value: str) -> str:
    return f"<p><strong>{label}:</strong> {html.escape(value)}</p>"


def render_quote_notification(data: QuoteEmailData) -> str:
    parts = [
        "<h1>New Moving Quote Request</h1>",
        f"<p><strong>Estimated Cost:</strong> {_format_cost(data.total_cost)}</p>",
        "<h2>Customer</h2>",
        _row("Name", data.customer_name),
        _row("Email", data.customer_email),
        _row("Phone", data.customer_phone),
        "<h2>Move</h2>",
        _row("Quote", f"#{data.quote_id}"),
        _row("Type", data.move_type),
        _row("Date", data.move_date.isoformat()),
        _row("From", data.from_address),
        _row("To", data.to_address or "-"),
        _row("Size", data.estimated_size),
    ]
    if data.special_items:
        parts.append(_row("Special Items", data.special_items))
    if data.notes:
        parts.append(_row("Notes", data.notes))
    if data.detected_items:
        parts.append(_row("AI Detected Items", data.detected_items))
    parts.append(_row("Media Files", str(data.media_file_count)))
    parts.append(_row("Submitted", data.submitted_at.strftime("%Y-%m-%d %H:%M")))
    return "\n".join(parts)


def render_customer_confirmation(data: QuoteEmailData) -> str:
    parts = [
        f"<h1>Thanks, {html.escape(data.customer_name)}!</h1>",
        "<p>We received your moving quote request and will contact you within 24 hours.</p>",
        _row("Move Type", data.move_type),
        _row("Move Date", data.move_date.isoformat()),
        _row("From", data.from_address),
        _row("To", data.to_address or "-"),
    ]
    if data.detected_items:
        parts.append(_row("Items We Spotted", data.detected_items))
    parts.append(f"<p><strong>Estimated Cost:</strong> {_format_cost(data.total_cost)}</p>")
    parts.append("<p>Austin Move Finder Team</p>")
    return "\n".join(parts)


def render_quote_update(data: QuoteEmailData, update_message: str) -> str:
    return "\n".join([
        f"<h1>Hi {html.escape(data.customer_name)},</h1>",
        f"<p>{html.escape(update_message)}</p>",
        _row("Quote", f"#{data.quote_id}"),
        _row("Move Date", data.move_date.isoformat()),
        "<p>Austin Move Finder Team</p>",
    ])


class EmailService:

    def __init__(self):
        self.host = settings.SMTP_HOST
        self.from_email = settings.FROM_EMAIL
        self.business_email = settings.TO_EMAIL

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def _build(self, to: str, subject: str, body: str, reply_to: Optional[str] = None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_email
        message["To"] = to
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(body, subtype="html")
        return message

    async def _send(self, message: EmailMessage, kind: str) -> None:
        if not self.enabled:
            logger.info(f"SMTP not configured | {kind} | to={message['To']} | subject='{message['Subject']}'")
            emails_sent.labels(kind=kind, status="logged").inc()
            return

        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER,
                password=settings.SMTP_PASS,
                start_tls=settings.SMTP_START_TLS,
                timeout=settings.SMTP_TIMEOUT,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            emails_sent.labels(kind=kind, status="failed").inc()
            logger.error(f"Email delivery failed ({kind}) to {message['To']}: {e}")
            raise EmailDeliveryError(str(e)) from e

        emails_sent.labels(kind=kind, status="sent").inc()
        logger.info(f"Email sent ({kind}) to {message['To']}")

    async def send_quote_notification(self, data: QuoteEmailData) -> None:
        message = self._build(
            to=self.business_email,
            subject=f"New Moving Quote Request - {data.customer_name}",
            body=render_quote_notification(data),
            reply_to=data.customer_email,
        )
        await self._send(message, "quote_notification")

    async def send_customer_confirmation(self, data: QuoteEmailData) -> None:
        message = self._build(
            to=data.customer_email,
            subject="Your Austin Move Quote Request Received!",
            body=render_customer_confirmation(data),
            reply_to=self.business_email,
        )
        await self._send(message, "customer_confirmation")

    async def send_quote_update(self, data: QuoteEmailData, update_message: str) -> None:
        message = self._build(
            to=data.customer_email,
            subject="Quote Update - Austin Move Finder",
            body=render_quote_update(data, update_message),
        )
        await self._send(message, "quote_update")

    async def test_connection(self) -> ServiceStatus:
        if not self.enabled:
            return ServiceStatus(status="disabled", message="SMTP not configured - emails are logged only")

        smtp = aiosmtplib.SMTP(
            hostname=self.host,
            port=settings.SMTP_PORT,
            start_tls=settings.SMTP_START_TLS,
            timeout=settings.SMTP_TIMEOUT,
        )
        try:
            await smtp.connect()
            if settings.SMTP_USER:
                await smtp.login(settings.SMTP_USER, settings.SMTP_PASS or "")
            await smtp.quit()
            return ServiceStatus(status="connected", message="Email service connection verified")
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning(f"SMTP connection check failed: {e}")
            return ServiceStatus(status="error", message=str(e))


def get_email_service() -> EmailService:
    return EmailService()

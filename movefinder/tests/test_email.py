import pytest
import aiosmtplib
from datetime import date, datetime
from unittest.mock import AsyncMock, patch
from movefinder.core.config import settings
from movefinder.schemas.notification import QuoteEmailData
from movefinder.services.email import (
    EmailDeliveryError,
    EmailService,
    render_customer_confirmation,
    render_quote_notification,
)


@pytest.fixture
def email_data():
    return QuoteEmailData(
        quote_id=7,
        customer_name="Jane <script>",
        customer_email="jane@example.com",
        customer_phone="512-555-0100",
        move_type="local",
        move_date=date(2025, 11, 12),
        from_address="123 Oak St",
        to_address="456 Elm St",
        estimated_size="2br",
        detected_items="couch (2x), tv (1x)",
        total_cost=1045,
        media_file_count=2,
        submitted_at=datetime(2025, 10, 1, 9, 30),
    )


@pytest.fixture
def smtp_settings(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.test")
    monkeypatch.setattr(settings, "SMTP_USER", "mailer")
    monkeypatch.setattr(settings, "SMTP_PASS", "secret")
    return settings


@pytest.mark.email
class TestEmailService:

    async def test_log_only_without_smtp_host(self, email_data):
        service = EmailService()
        assert not service.enabled
        with patch("movefinder.services.email.aiosmtplib.send", new=AsyncMock()) as send:
            await service.send_quote_notification(email_data)
            await service.send_customer_confirmation(email_data)
        send.assert_not_called()

    async def test_quote_notification_goes_to_business(self, smtp_settings, email_data):
        with patch("movefinder.services.email.aiosmtplib.send", new=AsyncMock()) as send:
            await EmailService().send_quote_notification(email_data)

        message = send.await_args.args[0]
        kwargs = send.await_args.kwargs
        assert message["To"] == settings.TO_EMAIL
        assert message["Reply-To"] == "jane@example.com"
        assert "New Moving Quote Request" in message["Subject"]
        assert kwargs["hostname"] == "smtp.test"
        assert kwargs["username"] == "mailer"

    async def test_confirmation_goes_to_customer(self, smtp_settings, email_data):
        with patch("movefinder.services.email.aiosmtplib.send", new=AsyncMock()) as send:
            await EmailService().send_customer_confirmation(email_data)

        message = send.await_args.args[0]
        assert message["To"] == "jane@example.com"
        assert message["From"] == settings.FROM_EMAIL

    async def test_delivery_failure_raises(self, smtp_settings, email_data):
        failing = AsyncMock(side_effect=aiosmtplib.SMTPConnectError("connection refused"))
        with patch("movefinder.services.email.aiosmtplib.send", new=failing):
            with pytest.raises(EmailDeliveryError):
                await EmailService().send_quote_update(email_data, "Your move is booked")

    async def test_connection_check_disabled(self):
        status = await EmailService().test_connection()
        assert status.status == "disabled"

    async def test_connection_check_error(self, smtp_settings):
        with patch("movefinder.services.email.aiosmtplib.SMTP.connect", new=AsyncMock(side_effect=OSError("unreachable"))):
            status = await EmailService().test_connection()
        assert status.status == "error"
        assert "unreachable" in status.message


@pytest.mark.email
class TestTemplates:

    def test_notification_escapes_customer_input(self, email_data):
        body = render_quote_notification(email_data)
        assert "<script>" not in body
        assert "Jane &lt;script&gt;" in body
        assert "$1,045" in body
        assert "couch (2x), tv (1x)" in body

    def test_confirmation_without_cost(self, email_data):
        body = render_customer_confirmation(email_data.model_copy(update={"total_cost": None}))
        assert "to be confirmed" in body

# tests/services/test_delivery_orchestrator.py
"""
Tests for DeliveryOrchestrator

Coverage:
- Channel eligibility (contact_type AND field presence)
- Concurrent settle-all fan-out
- Partial, total and zero-eligible outcomes
- Delivery event logging

Run with: pytest tests/services/test_delivery_orchestrator.py -v
"""

import asyncio
import pytest
from uuid import uuid4
from unittest.mock import AsyncMock, Mock

from sqlalchemy.exc import OperationalError

from lead_delivery.models import Lead, Product
from lead_delivery.services.channels import ChannelResult, DeliveryChannel
from lead_delivery.services.delivery_orchestrator import DeliveryOrchestrator, DeliveryReport
from lead_delivery.services.file_fetcher import FetchedFile


class FakeChannel(DeliveryChannel):
    """Channel returning a canned result and recording its calls"""

    def __init__(self, name, contact_field, event_type, result=None, error=None, before_send=None):
        self.name = name
        self.contact_field = contact_field
        self.event_type = event_type
        self.result = result or ChannelResult.ok(name)
        self.error = error
        self.before_send = before_send
        self.calls = []

    async def send(self, destination, content, file_name, message):
        self.calls.append(destination)
        if self.before_send:
            await self.before_send()
        if self.error:
            raise self.error
        return self.result

    def event_subject(self, message):
        return f"{self.name}: {message.product_name}"


def email_channel(**kwargs):
    return FakeChannel("email", "email", "email_delivery", **kwargs)


def whatsapp_channel(**kwargs):
    return FakeChannel("whatsapp", "phone", "whatsapp_delivery", **kwargs)


@pytest.fixture
def mock_event_logger():
    logger = Mock()
    logger.log_delivery = AsyncMock()
    logger.commit = AsyncMock(return_value=True)
    return logger


@pytest.fixture
def sample_product():
    return Product(id=uuid4(), name="Growth Guide", provider_path="files.example.com/g.pdf")


@pytest.fixture
def sample_file():
    return FetchedFile(content=b"pdf", file_name="Growth Guide.pdf")


def make_lead(contact_type, email=None, phone=None):
    return Lead(
        id=uuid4(),
        landing_source="checkout",
        name="Ana",
        email=email,
        phone=phone,
        contact_type=contact_type,
    )


# ============================================================================
# ELIGIBILITY
# ============================================================================

class TestEligibleChannels:

    def test_both_with_both_fields(self, mock_event_logger):
        email, whatsapp = email_channel(), whatsapp_channel()
        orchestrator = DeliveryOrchestrator({"email": email, "whatsapp": whatsapp}, mock_event_logger)

        eligible = orchestrator.eligible_channels(make_lead("both", "ana@example.com", "11987654321"))

        assert eligible == [(email, "ana@example.com"), (whatsapp, "11987654321")]

    def test_contact_type_limits_channels(self, mock_event_logger):
        orchestrator = DeliveryOrchestrator(
            {"email": email_channel(), "whatsapp": whatsapp_channel()}, mock_event_logger
        )

        eligible = orchestrator.eligible_channels(make_lead("email", "ana@example.com", "11987654321"))

        assert [channel.name for channel, _ in eligible] == ["email"]

    def test_both_with_cleared_phone_drops_whatsapp(self, mock_event_logger):
        orchestrator = DeliveryOrchestrator(
            {"email": email_channel(), "whatsapp": whatsapp_channel()}, mock_event_logger
        )

        eligible = orchestrator.eligible_channels(make_lead("both", "ana@example.com", None))

        assert [channel.name for channel, _ in eligible] == ["email"]


# ============================================================================
# DELIVERY
# ============================================================================

class TestDeliver:

    @pytest.mark.asyncio
    async def test_all_channels_succeed(self, mock_event_logger, sample_product, sample_file):
        email, whatsapp = email_channel(), whatsapp_channel()
        orchestrator = DeliveryOrchestrator({"email": email, "whatsapp": whatsapp}, mock_event_logger)
        lead = make_lead("both", "ana@example.com", "11987654321")

        report = await orchestrator.deliver(lead, sample_product, sample_file, "Ana")

        assert report.attempted
        assert report.sent_via == "both"
        assert report.to_response() == {"delivery_sent": "both"}
        assert email.calls == ["ana@example.com"]
        assert whatsapp.calls == ["11987654321"]

        assert mock_event_logger.log_delivery.await_count == 2
        first = mock_event_logger.log_delivery.await_args_list[0].kwargs
        assert first["event_type"] == "email_delivery"
        assert first["recipient"] == "ana@example.com"
        assert first["product_id"] == sample_product.id
        mock_event_logger.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_partial_failure(self, mock_event_logger, sample_product, sample_file):
        orchestrator = DeliveryOrchestrator({
            "email": email_channel(),
            "whatsapp": whatsapp_channel(result=ChannelResult.failed("whatsapp", "Instance not connected")),
        }, mock_event_logger)
        lead = make_lead("both", "ana@example.com", "11987654321")

        report = await orchestrator.deliver(lead, sample_product, sample_file, "Ana")

        assert report.to_response() == {
            "delivery_sent": "both",
            "delivery_errors": [{"channel": "whatsapp", "error": "Instance not connected"}],
        }
        assert mock_event_logger.log_delivery.await_count == 1
        assert mock_event_logger.log_delivery.await_args.kwargs["event_type"] == "email_delivery"

    @pytest.mark.asyncio
    async def test_total_failure(self, mock_event_logger, sample_product, sample_file):
        orchestrator = DeliveryOrchestrator({
            "email": email_channel(result=ChannelResult.failed("email", "Failed to send email")),
            "whatsapp": whatsapp_channel(result=ChannelResult.failed("whatsapp", "Failed to send WhatsApp document")),
        }, mock_event_logger)
        lead = make_lead("both", "ana@example.com", "11987654321")

        report = await orchestrator.deliver(lead, sample_product, sample_file, "Ana")

        response = report.to_response()
        assert "delivery_sent" not in response
        assert len(response["delivery_errors"]) == 2
        mock_event_logger.log_delivery.assert_not_awaited()
        mock_event_logger.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_eligible_channels(self, mock_event_logger, sample_product, sample_file):
        email = email_channel()
        orchestrator = DeliveryOrchestrator({"email": email, "whatsapp": whatsapp_channel()}, mock_event_logger)
        lead = make_lead("email", email=None, phone="11987654321")

        report = await orchestrator.deliver(lead, sample_product, sample_file, "Ana")

        assert not report.attempted
        assert report.to_response() == {}
        assert email.calls == []

    @pytest.mark.asyncio
    async def test_raising_channel_becomes_failed_result(self, mock_event_logger, sample_product, sample_file):
        orchestrator = DeliveryOrchestrator({
            "email": email_channel(error=RuntimeError("boom")),
            "whatsapp": whatsapp_channel(),
        }, mock_event_logger)
        lead = make_lead("both", "ana@example.com", "11987654321")

        report = await orchestrator.deliver(lead, sample_product, sample_file, "Ana")

        assert report.errors == [{"channel": "email", "error": "boom"}]
        assert report.sent_via == "both"

    @pytest.mark.asyncio
    async def test_channels_run_concurrently(self, mock_event_logger, sample_product, sample_file):
        email_started = asyncio.Event()
        whatsapp_started = asyncio.Event()

        async def email_waits():
            email_started.set()
            await whatsapp_started.wait()

        async def whatsapp_waits():
            whatsapp_started.set()
            await email_started.wait()

        orchestrator = DeliveryOrchestrator({
            "email": email_channel(before_send=email_waits),
            "whatsapp": whatsapp_channel(before_send=whatsapp_waits),
        }, mock_event_logger)
        lead = make_lead("both", "ana@example.com", "11987654321")

        # Sequential sends would deadlock on the events
        report = await asyncio.wait_for(
            orchestrator.deliver(lead, sample_product, sample_file, "Ana"),
            timeout=2
        )

        assert report.errors == []

    @pytest.mark.asyncio
    async def test_event_write_failure_keeps_delivery(self, mock_event_logger, sample_product, sample_file):
        mock_event_logger.log_delivery.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        orchestrator = DeliveryOrchestrator({"email": email_channel()}, mock_event_logger)
        lead = make_lead("email", "ana@example.com")

        report = await orchestrator.deliver(lead, sample_product, sample_file, "Ana")

        assert report.to_response() == {"delivery_sent": "email"}


class TestDeliveryReport:

    def test_empty_report(self):
        report = DeliveryReport("both")
        assert not report.attempted
        assert report.sent_via is None
        assert report.to_response() == {}

    def test_missing_error_text(self):
        report = DeliveryReport("email", [ChannelResult(channel="email", success=False)])
        assert report.errors == [{"channel": "email", "error": "Delivery failed"}]

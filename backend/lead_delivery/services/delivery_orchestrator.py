# backend/lead_delivery/services/delivery_orchestrator.py
"""
Delivery Orchestrator

Flow:
1. Pick channels from the lead's contact_type
2. Keep only channels whose destination is actually set on the lead
3. Send on all channels concurrently and wait for every outcome
4. Log one DeliveryEvent per successful channel
5. Report sent_via / per-channel errors

Channel failures are reported, never raised: the lead has already been
recorded when delivery starts.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple, Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from lead_delivery.models import Lead, Product
from lead_delivery.services.channels import (
    CHANNELS_BY_CONTACT_TYPE,
    ChannelResult,
    DeliveryChannel,
    DeliveryMessage,
)
from lead_delivery.services.delivery_event_logger import DeliveryEventLogger
from lead_delivery.services.file_fetcher import FetchedFile

logger = logging.getLogger(__name__)


class DeliveryReport:
    """Aggregated outcome of one delivery run"""

    def __init__(self, contact_type: str, results: Optional[List[ChannelResult]] = None):
        self.contact_type = contact_type
        self.results = results or []

    @property
    def attempted(self) -> bool:
        return bool(self.results)

    @property
    def delivered(self) -> bool:
        return any(r.success for r in self.results)

    @property
    def sent_via(self) -> Optional[str]:
        return self.contact_type if self.delivered else None

    @property
    def errors(self) -> List[Dict[str, str]]:
        return [
            {"channel": r.channel, "error": r.error or "Delivery failed"}
            for r in self.results
            if not r.success
        ]

    def to_response(self) -> Dict[str, Any]:
        """Keys merged into the API response; empty when nothing was attempted."""
        response: Dict[str, Any] = {}
        if self.delivered:
            response["delivery_sent"] = self.sent_via
        if self.errors:
            response["delivery_errors"] = self.errors
        return response


class DeliveryOrchestrator:
    """Fans a product file out to the lead's delivery channels"""

    def __init__(self, channels: Dict[str, DeliveryChannel], event_logger: DeliveryEventLogger):
        self.channels = channels
        self.event_logger = event_logger

    def eligible_channels(self, lead: Lead) -> List[Tuple[DeliveryChannel, str]]:
        """
        Channels allowed by contact_type AND with a destination on the lead.

        A stored contact_type can disagree with the fields (e.g. 'both' with
        the phone cleared); such channels are skipped.
        """
        eligible = []
        for name in CHANNELS_BY_CONTACT_TYPE.get(lead.contact_type, []):
            channel = self.channels.get(name)
            if channel is None:
                continue
            destination = getattr(lead, channel.contact_field, None)
            if destination:
                eligible.append((channel, destination))
            else:
                logger.info(
                    f"Lead {lead.id}: contact_type={lead.contact_type} but no "
                    f"{channel.contact_field}, skipping {name}"
                )
        return eligible

    async def deliver(
        self,
        lead: Lead,
        product: Product,
        file: FetchedFile,
        customer_name: str
    ) -> DeliveryReport:
        # Plain values only past this point: a failed event write rolls the
        # session back, which expires lead and product
        lead_id, contact_type, product_id = lead.id, lead.contact_type, product.id

        eligible = self.eligible_channels(lead)
        if not eligible:
            logger.info(f"No delivery channel eligible for lead {lead_id}")
            return DeliveryReport(contact_type)

        message = DeliveryMessage(customer_name=customer_name, product_name=product.name)

        outcomes = await asyncio.gather(
            *[
                self._send(channel, destination, file, message)
                for channel, destination in eligible
            ],
            return_exceptions=True
        )

        results: List[ChannelResult] = []
        for (channel, destination), outcome in zip(eligible, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"{channel.name} delivery crashed for lead {lead_id}: {outcome!r}")
                outcome = ChannelResult.failed(channel.name, str(outcome) or channel.fallback_error)
            results.append(outcome)

            if outcome.success:
                await self._log_event(channel, destination, message, product_id)

        if any(r.success for r in results):
            await self.event_logger.commit()

        report = DeliveryReport(contact_type, results)
        logger.info(
            f"Delivery for lead {lead_id}, product {product_id}: "
            f"sent_via={report.sent_via}, errors={len(report.errors)}"
        )
        return report

    async def _send(
        self,
        channel: DeliveryChannel,
        destination: str,
        file: FetchedFile,
        message: DeliveryMessage
    ) -> ChannelResult:
        try:
            return await channel.send(destination, file.content, file.file_name, message)
        except Exception as e:
            logger.error(f"Unexpected {channel.name} delivery error: {e}", exc_info=True)
            return ChannelResult.failed(channel.name, str(e) or channel.fallback_error)

    async def _log_event(
        self,
        channel: DeliveryChannel,
        destination: str,
        message: DeliveryMessage,
        product_id: UUID
    ) -> None:
        # Written after the join: one AsyncSession must not be shared by concurrent tasks
        try:
            await self.event_logger.log_delivery(
                event_type=channel.event_type,
                recipient=destination,
                subject=channel.event_subject(message),
                product_id=product_id
            )
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to record {channel.event_type} event for {destination}: {e}",
                exc_info=True
            )

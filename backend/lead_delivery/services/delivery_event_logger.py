# backend/lead_delivery/services/delivery_event_logger.py
"""
Delivery Event Logger - one append-only row per delivered file
"""

from typing import Optional, List, Union
from datetime import datetime, timezone
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from lead_delivery.models import DeliveryEvent

logger = logging.getLogger(__name__)


class DeliveryEventLogger:
    """Records delivery events"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _to_uuid(value):
        """Safely convert to UUID"""
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    async def log_delivery(
        self,
        event_type: str,
        recipient: str,
        subject: str,
        product_id: Optional[Union[str, uuid.UUID]],
        category: str = "sale"
    ) -> DeliveryEvent:
        """Log a delivery"""
        event = DeliveryEvent(
            type=event_type,
            category=category,
            recipient=recipient,
            subject=subject,
            product_id=self._to_uuid(product_id),
            sent_at=datetime.now(timezone.utc)
        )

        self.db.add(event)
        try:
            await self.db.flush()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        return event

    async def get_events_by_product_id(self, product_id: Union[str, uuid.UUID]) -> List[DeliveryEvent]:
        result = await self.db.execute(
            select(DeliveryEvent)
            .where(DeliveryEvent.product_id == self._to_uuid(product_id))
            .order_by(DeliveryEvent.created_at.desc())
        )
        return list(result.scalars().all())

    async def commit(self) -> bool:
        """Commit logged events. Failures are logged and reported as False."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to commit delivery events: {e}", exc_info=True)
            return False
        return True

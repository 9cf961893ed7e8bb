# backend/lead_delivery/services/lead_repository.py
"""
Lead persistence: lookup by contact, create, and the upsert used by
purchase events (existing lead is refreshed and marked converted,
otherwise a converted lead is inserted).
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lead_delivery.exceptions import LeadPersistenceError
from lead_delivery.models import Lead, CONVERTED
from lead_delivery.services.contact_normalizer import NormalizedContact

logger = logging.getLogger(__name__)


class LeadRepository:
    """Find, create and update leads. Callers own the commit."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email_or_phone(
        self,
        email: Optional[str],
        phone: Optional[str]
    ) -> Optional[Lead]:
        """Return the first lead matching either non-null field."""
        conditions = []
        if email:
            conditions.append(Lead.email == email)
        if phone:
            conditions.append(Lead.phone == phone)

        if not conditions:
            return None

        result = await self.db.execute(
            select(Lead).where(or_(*conditions)).limit(1)
        )
        return result.scalars().first()

    async def get(self, lead_id: UUID) -> Optional[Lead]:
        result = await self.db.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()

    async def create(self, **fields) -> Lead:
        """Insert a lead and flush to get its id."""
        lead = Lead(**fields)
        try:
            self.db.add(lead)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Lead insert failed: {e}", exc_info=True)
            raise LeadPersistenceError("Failed to create lead") from e

        logger.info(f"Lead created: {lead.id} (contact_type={lead.contact_type})")
        return lead

    async def upsert_converted(
        self,
        contact: NormalizedContact,
        name: str,
        product_id: Optional[UUID],
        landing_source: str = "checkout",
        user_type: str = "direct-customer",
        consent_marketing: bool = True
    ) -> Lead:
        """
        Mark the lead matching this contact as converted, or create one.

        On update, email/phone keep their stored value when the new one
        is absent. The row is re-read after the write.
        """
        existing = await self.find_by_email_or_phone(contact.email, contact.phone)

        if existing is None:
            return await self.create(
                landing_source=landing_source,
                name=name,
                email=contact.email,
                phone=contact.phone,
                contact_type=contact.contact_type,
                user_type=user_type,
                consent_marketing=consent_marketing,
                conversion_status=CONVERTED,
                product_id=product_id
            )

        lead_id = existing.id
        try:
            existing.name = name
            existing.email = contact.email or existing.email
            existing.phone = contact.phone or existing.phone
            existing.contact_type = contact.contact_type
            existing.product_id = product_id
            existing.conversion_status = CONVERTED
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Lead update failed for {lead_id}: {e}", exc_info=True)
            raise LeadPersistenceError("Failed to update lead") from e

        lead = await self.get(lead_id)
        if lead is None:
            raise LeadPersistenceError(f"Lead {lead_id} disappeared after update")

        logger.info(f"Lead updated and converted: {lead.id}")
        return lead

    async def update_user_type(self, lead: Lead, user_type: str) -> Lead:
        lead_id = lead.id
        try:
            lead.user_type = user_type
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"user_type update failed for {lead_id}: {e}", exc_info=True)
            raise LeadPersistenceError("Failed to update lead") from e
        return lead

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Lead commit failed: {e}", exc_info=True)
            raise LeadPersistenceError("Failed to save lead") from e

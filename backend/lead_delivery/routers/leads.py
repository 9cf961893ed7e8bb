"""
Lead API - bearer-token protected lead capture used by landing pages
and integrations.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
import logging

from lead_delivery.auth import require_api_token
from lead_delivery.database import get_db
from lead_delivery.dependencies import get_delivery_channels, get_file_fetcher
from lead_delivery.exceptions import (
    LeadConflictError,
    ProductNotFoundError,
    RequestDataError,
)
from lead_delivery.models import Lead
from lead_delivery.schemas import (
    LeadCreate,
    LeadDeliveryCreate,
    LeadResponse,
    LeadUserTypeUpdate,
)
from lead_delivery.services.channels import DeliveryChannel
from lead_delivery.services.contact_normalizer import NormalizedContact, normalize_contact
from lead_delivery.services.delivery_event_logger import DeliveryEventLogger
from lead_delivery.services.delivery_orchestrator import DeliveryOrchestrator
from lead_delivery.services.file_fetcher import FileFetcher
from lead_delivery.services.lead_repository import LeadRepository
from lead_delivery.services.product_service import ProductService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/leads",
    tags=["Leads"],
    dependencies=[Depends(require_api_token)]
)

CONTACT_REQUIRED = [{"field": "email", "message": "Email or phone is required"}]


def _require_contact(email, phone) -> NormalizedContact:
    contact = normalize_contact(email, phone)
    if not contact.has_contact:
        raise RequestDataError(CONTACT_REQUIRED)
    return contact


async def _ensure_not_duplicate(leads: LeadRepository, contact: NormalizedContact) -> None:
    existing = await leads.find_by_email_or_phone(contact.email, contact.phone)
    if existing:
        logger.info(f"Duplicate lead rejected, existing lead {existing.id}")
        raise LeadConflictError(existing.id)


def _lead_fields(data: LeadCreate, contact: NormalizedContact) -> dict:
    return {
        "landing_source": data.landing_source,
        "name": data.name,
        "email": contact.email,
        "phone": contact.phone,
        "contact_type": contact.contact_type,
        "user_type": data.user_type,
        "consent_marketing": data.consent_marketing,
        "conversion_status": data.conversion_status.value,
        "product_id": data.product_id,
    }


def _serialize(lead: Lead) -> dict:
    return LeadResponse.model_validate(lead).model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(
    data: LeadCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a lead.

    - 400 when neither email nor phone is given
    - 409 with the existing lead id when email or phone is taken
    - 404 when product_id does not exist
    """
    contact = _require_contact(data.email, data.phone)
    leads = LeadRepository(db)
    await _ensure_not_duplicate(leads, contact)

    if data.product_id:
        product = await ProductService(db).get_by_id(data.product_id)
        if product is None:
            raise ProductNotFoundError(str(data.product_id))

    lead = await leads.create(**_lead_fields(data, contact))
    await leads.commit()

    return {"success": True, "data": _serialize(lead)}


@router.post("/deliver", status_code=status.HTTP_201_CREATED)
async def create_lead_and_deliver(
    data: LeadDeliveryCreate,
    db: AsyncSession = Depends(get_db),
    file_fetcher: FileFetcher = Depends(get_file_fetcher),
    channels: Dict[str, DeliveryChannel] = Depends(get_delivery_channels)
):
    """
    Create a lead and deliver the product file to it.

    The product file is downloaded before the insert, so a failed
    download (500) leaves no lead behind. Channel failures come back in
    delivery_errors with a 201.
    """
    contact = _require_contact(data.email, data.phone)
    leads = LeadRepository(db)
    await _ensure_not_duplicate(leads, contact)

    product = await ProductService(db).get_by_id(data.product_id)
    if product is None:
        raise ProductNotFoundError(str(data.product_id))

    file = await file_fetcher.fetch_product_file(product)

    lead = await leads.create(**_lead_fields(data, contact))
    await leads.commit()
    response = {"success": True, "data": _serialize(lead)}

    orchestrator = DeliveryOrchestrator(channels, DeliveryEventLogger(db))
    report = await orchestrator.deliver(lead, product, file, data.name)
    response.update(report.to_response())
    return response


@router.patch("")
async def update_lead_user_type(
    data: LeadUserTypeUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Update only user_type on the lead matching email or phone."""
    contact = _require_contact(data.email, data.phone)
    leads = LeadRepository(db)

    lead = await leads.find_by_email_or_phone(contact.email, contact.phone)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    lead = await leads.update_user_type(lead, data.user_type)
    await leads.commit()

    logger.info(f"Lead {lead.id} user_type set to {data.user_type}")
    return {"success": True, "data": _serialize(lead)}

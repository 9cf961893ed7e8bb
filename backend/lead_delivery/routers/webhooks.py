"""
Purchase webhook - records the buyer as a converted lead and delivers
the purchased product file by email and/or WhatsApp.
"""

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from lead_delivery.auth import verify_webhook_secret
from lead_delivery.config import Settings, get_settings
from lead_delivery.database import get_db
from lead_delivery.dependencies import get_delivery_channels, get_file_fetcher
from lead_delivery.exceptions import ProductNotFoundError, RequestDataError
from lead_delivery.models import Product
from lead_delivery.services.channels import DeliveryChannel
from lead_delivery.services.contact_normalizer import ContactNormalizer, normalize_contact
from lead_delivery.services.delivery_event_logger import DeliveryEventLogger
from lead_delivery.services.delivery_orchestrator import DeliveryOrchestrator
from lead_delivery.services.file_fetcher import FileFetcher
from lead_delivery.services.lead_repository import LeadRepository
from lead_delivery.services.product_service import ProductService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])

PURCHASE_APPROVED = "purchase_approved"
DEFAULT_CUSTOMER_NAME = "Customer"


@router.post("/send-product")
async def send_product_webhook(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
    file_fetcher: FileFetcher = Depends(get_file_fetcher),
    channels: Dict[str, DeliveryChannel] = Depends(get_delivery_channels)
):
    """
    Purchase webhook; product resolved by the gateway's product id.

    - 401 on bad secret, 200 ignored for non purchase events
    - 400 on missing customer / product id / contact
    - 404 unknown product, 500 on download or persistence failure
    """
    return await _process_purchase(
        payload, db, config, file_fetcher, channels, by_internal_id=False
    )


@router.post("/send-product/by-id")
async def send_product_by_id_webhook(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
    file_fetcher: FileFetcher = Depends(get_file_fetcher),
    channels: Dict[str, DeliveryChannel] = Depends(get_delivery_channels)
):
    """Same as /send-product, with data.product.id being our product UUID."""
    return await _process_purchase(
        payload, db, config, file_fetcher, channels, by_internal_id=True
    )


async def _process_purchase(
    payload: Dict[str, Any],
    db: AsyncSession,
    config: Settings,
    file_fetcher: FileFetcher,
    channels: Dict[str, DeliveryChannel],
    by_internal_id: bool
) -> Dict[str, Any]:
    verify_webhook_secret(payload.get("secret"), config)

    event = payload.get("event")
    if event != PURCHASE_APPROVED:
        logger.info(f"Webhook event ignored: {event}")
        return {"ok": True, "ignored": True, "reason": "event not processed"}

    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    customer = data.get("customer")
    product_data = data.get("product")

    if not customer or not isinstance(customer, dict):
        raise RequestDataError([{"field": "data.customer", "message": "Customer data missing"}])

    product_ref = product_data.get("id") if isinstance(product_data, dict) else None
    if not product_ref:
        raise RequestDataError([{"field": "data.product.id", "message": "Product id missing"}])

    if by_internal_id:
        product_ref = _parse_product_uuid(product_ref)

    contact = normalize_contact(customer.get("email"), customer.get("phone"))
    if not contact.has_contact:
        raise RequestDataError([
            {"field": "data.customer", "message": "Customer email or phone is required"}
        ])
    customer_name = ContactNormalizer.clean(customer.get("name")) or DEFAULT_CUSTOMER_NAME

    product = await _lookup_product(ProductService(db), product_ref, by_internal_id)
    if product is None:
        logger.error(f"Webhook product not found: {product_ref}")
        raise ProductNotFoundError(str(product_ref))

    file = await file_fetcher.fetch_product_file(product)

    leads = LeadRepository(db)
    lead = await leads.upsert_converted(
        contact=contact,
        name=customer_name,
        product_id=product.id
    )
    await leads.commit()

    response = {
        "ok": True,
        "leadId": str(lead.id),
        "productId": str(product.id),
        "sentVia": lead.contact_type,
    }

    orchestrator = DeliveryOrchestrator(channels, DeliveryEventLogger(db))
    report = await orchestrator.deliver(lead, product, file, customer_name)
    response.update(report.to_response())
    return response


def _parse_product_uuid(product_ref: Any) -> UUID:
    try:
        return UUID(str(product_ref))
    except ValueError:
        raise RequestDataError([
            {"field": "data.product.id", "message": "Product id must be a valid UUID"}
        ]) from None


async def _lookup_product(
    products: ProductService,
    product_ref: Any,
    by_internal_id: bool
) -> Optional[Product]:
    if by_internal_id:
        return await products.get_by_id(product_ref)
    return await products.get_by_sale_product_id(str(product_ref))


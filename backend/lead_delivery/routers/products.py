"""Product catalogue and delivery history."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from lead_delivery.auth import require_api_token
from lead_delivery.database import get_db
from lead_delivery.exceptions import ProductNotFoundError
from lead_delivery.schemas import (
    DeliveryEventResponse,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
)
from lead_delivery.services.delivery_event_logger import DeliveryEventLogger
from lead_delivery.services.product_service import ProductService

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
    dependencies=[Depends(require_api_token)]
)


@router.get("", response_model=ProductListResponse)
async def list_products(
    order_by: str = Query("created_at", pattern="^(created_at|updated_at|name)$"),
    order_direction: str = Query("desc", pattern="^(asc|desc)$"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db)
):
    service = ProductService(db)
    products = await service.list_products(
        order_by=order_by,
        order_direction=order_direction,
        limit=limit,
        offset=offset
    )
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        total=await service.count_products()
    )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a product; 409 when sale_product_id is already used."""
    product = await ProductService(db).create_product(data)
    await db.commit()
    return ProductResponse.model_validate(product)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    product = await ProductService(db).get_by_id(product_id)
    if product is None:
        raise ProductNotFoundError(str(product_id))
    return ProductResponse.model_validate(product)


@router.get("/{product_id}/events", response_model=List[DeliveryEventResponse])
async def list_product_events(
    product_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    """Delivery events for a product, newest first."""
    product = await ProductService(db).get_by_id(product_id)
    if product is None:
        raise ProductNotFoundError(str(product_id))

    events = await DeliveryEventLogger(db).get_events_by_product_id(product_id)
    return [DeliveryEventResponse.model_validate(e) for e in events]

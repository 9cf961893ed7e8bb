"""Product lookup and catalogue service."""

import logging
from typing import Optional, List, Union
from uuid import UUID

from sqlalchemy import select, func, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lead_delivery.exceptions import ProductConflictError
from lead_delivery.models import Product
from lead_delivery.schemas import ProductCreate

logger = logging.getLogger(__name__)

ORDERABLE_COLUMNS = {
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
    "name": Product.name,
}


class ProductService:
    """Resolve products by internal or gateway id; absence returns None."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _to_uuid(value) -> Optional[UUID]:
        """Safely convert to UUID"""
        if isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except (ValueError, TypeError):
            return None

    async def get_by_id(self, product_id: Union[str, UUID]) -> Optional[Product]:
        product_uuid = self._to_uuid(product_id)
        if product_uuid is None:
            logger.debug(f"Malformed product id: {product_id}")
            return None

        result = await self.db.execute(
            select(Product).where(Product.id == product_uuid).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_sale_product_id(self, sale_product_id: str) -> Optional[Product]:
        result = await self.db.execute(
            select(Product).where(Product.sale_product_id == str(sale_product_id)).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_products(
        self,
        order_by: str = "created_at",
        order_direction: str = "desc",
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[Product]:
        column = ORDERABLE_COLUMNS.get(order_by, Product.name)
        ordering = desc(column) if order_direction == "desc" else asc(column)

        query = select(Product).order_by(ordering)
        if limit is not None:
            query = query.limit(limit)
        if offset is not None:
            query = query.offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_products(self) -> int:
        result = await self.db.execute(select(func.count(Product.id)))
        return result.scalar() or 0

    async def create_product(self, data: ProductCreate) -> Product:
        existing = await self.get_by_sale_product_id(data.sale_product_id)
        if existing:
            raise ProductConflictError(data.sale_product_id)

        product = Product(**data.model_dump())
        try:
            self.db.add(product)
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise ProductConflictError(data.sale_product_id) from e

        logger.info(f"Product created: {product.id} ({product.name})")
        return product

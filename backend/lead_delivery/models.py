# backend/lead_delivery/models.py
"""
SQLAlchemy ORM models.

Products are the deliverable files, leads are captured contacts and
delivery events are the append-only log of files sent to a lead.
Foreign keys to products use ON DELETE SET NULL so removing a product
never removes leads or delivery history.
"""

from sqlalchemy import (
    Column, String, Boolean, Integer, TIMESTAMP, ForeignKey, CheckConstraint, Uuid
)
from datetime import datetime, timezone
import uuid

from lead_delivery.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Contact types
CONTACT_EMAIL = "email"
CONTACT_PHONE = "phone"
CONTACT_BOTH = "both"

# Conversion statuses
NOT_CONVERTED = "not_converted"
CONVERTED = "converted"

# Delivery event types
EMAIL_DELIVERY = "email_delivery"
WHATSAPP_DELIVERY = "whatsapp_delivery"


# ============================================================================
# PRODUCT MODEL
# ============================================================================

class Product(Base):
    """Digital product with a stored file location."""
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sale_product_id = Column(String(255), unique=True, index=True)  # payment gateway id
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default="ebook")
    version = Column(Integer, nullable=False, default=1)
    storage_provider = Column(String(100), nullable=False)
    provider_path = Column(String(2048), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sale_product_id='{self.sale_product_id}')>"


# ============================================================================
# LEAD MODEL
# ============================================================================

class Lead(Base):
    """Captured prospective or actual customer."""
    __tablename__ = "leads"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    landing_source = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True)
    phone = Column(String(50), unique=True, index=True)
    contact_type = Column(String(20), nullable=False, default=CONTACT_EMAIL)
    user_type = Column(String(50), nullable=False, default="hobby")
    consent_marketing = Column(Boolean, nullable=False, default=True)
    conversion_status = Column(String(20), nullable=False, default=NOT_CONVERTED)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("contact_type IN ('email', 'phone', 'both')", name="chk_lead_contact_type"),
        CheckConstraint(
            "conversion_status IN ('not_converted', 'converted')",
            name="chk_lead_conversion_status"
        ),
    )

    def __repr__(self):
        return f"<Lead(id={self.id}, email='{self.email}', phone='{self.phone}')>"


# ============================================================================
# DELIVERY EVENT MODEL
# ============================================================================

class DeliveryEvent(Base):
    """One row per product file sent to a recipient. Never updated."""
    __tablename__ = "email_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type = Column(String(50), nullable=False, default=EMAIL_DELIVERY)
    category = Column(String(50), nullable=False, default="sale")  # sale, remarketing, upsell
    recipient = Column("to", String(255), nullable=False)
    subject = Column(String(500), nullable=False)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    sent_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "category IN ('sale', 'remarketing', 'upsell')",
            name="chk_event_category"
        ),
    )

    def __repr__(self):
        return f"<DeliveryEvent(id={self.id}, type='{self.type}', to='{self.recipient}')>"

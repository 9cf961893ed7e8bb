"""Pydantic schemas for request/response validation."""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from enum import Enum


class ContactType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


class ConversionStatus(str, Enum):
    NOT_CONVERTED = "not_converted"
    CONVERTED = "converted"


# Lead Schemas
class LeadCreate(BaseModel):
    """Create lead request. At least one of email/phone is checked by the route."""
    landing_source: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    user_type: str = Field(default="lead", min_length=1, max_length=50)
    consent_marketing: bool = True
    conversion_status: ConversionStatus = ConversionStatus.NOT_CONVERTED
    product_id: Optional[UUID] = None


class LeadDeliveryCreate(LeadCreate):
    """Create lead and deliver the product file right away."""
    product_id: UUID


class LeadUserTypeUpdate(BaseModel):
    """Update user_type of the lead matching email or phone."""
    user_type: str = Field(..., min_length=1, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class LeadResponse(BaseModel):
    id: UUID
    landing_source: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    contact_type: ContactType
    user_type: str
    consent_marketing: bool
    conversion_status: ConversionStatus
    product_id: Optional[UUID]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Product Schemas
class ProductCreate(BaseModel):
    """Register a deliverable product."""
    sale_product_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(default="ebook", min_length=1, max_length=50)
    version: int = Field(default=1, gt=0)
    storage_provider: str = Field(..., min_length=1, max_length=100)
    provider_path: str = Field(..., min_length=1, max_length=2048)


class ProductResponse(BaseModel):
    id: UUID
    sale_product_id: Optional[str]
    name: str
    type: str
    version: int
    storage_provider: str
    provider_path: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total: int


# Delivery Event Schemas
class DeliveryEventResponse(BaseModel):
    id: UUID
    type: str
    category: str
    to: str = Field(validation_alias="recipient")
    subject: str
    product_id: Optional[UUID]
    sent_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


"""
Quotation request and response models
"""
from typing import Any, List, Optional, Union
from datetime import date as Date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, ConfigDict

from quotedesk.schemas.common import QuotationItemResponse
from quotedesk.schemas.billing import BillResponse, ReceiptResponse


# ===== Enumerations =====
class QuotationStatus:
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    BILLED = "billed"

    ALL = (DRAFT, CONFIRMED, BILLED)


class DiscountType:
    NONE = "none"
    PERCENTAGE = "percentage"
    FLAT = "flat"

    ALL = (NONE, PERCENTAGE, FLAT)


def _check_discount_type(v):
    if v is not None and v not in DiscountType.ALL:
        raise ValueError(f"discount_type must be one of: {', '.join(DiscountType.ALL)}")
    return v


def _check_status(v):
    if v is not None and v not in QuotationStatus.ALL:
        raise ValueError(f"status must be one of: {', '.join(QuotationStatus.ALL)}")
    return v


# ===== Requests =====
class QuotationItemInput(BaseModel):
    """One table row; ``amount`` defaults to quantity x rate"""
    room_label: Optional[str] = Field(None, max_length=100, description="Room the item belongs to")
    item_name: str = Field(default="", description="Item description shown on documents")
    description: Optional[str] = None
    material: Optional[str] = Field(None, max_length=255)
    brand: Optional[str] = Field(None, max_length=255)
    unit: Optional[str] = Field(None, max_length=50)
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    rate: Decimal = Field(default=Decimal("0"), ge=0)
    amount: Optional[Decimal] = Field(None, ge=0, description="Line amount")
    remarks: Optional[str] = None
    custom_columns: dict = Field(default_factory=dict)


class PaymentMilestone(BaseModel):
    stage: str = Field(default="", description="Milestone name")
    percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    amount: Decimal = Field(default=Decimal("0"), ge=0)


PaymentPlanInput = Union[List[PaymentMilestone], str]


class QuotationCreateRequest(BaseModel):
    client_id: int = Field(..., description="Client the quotation is addressed to")
    date: Optional[Date] = Field(None, description="Business date, defaults to today")
    package_id: Optional[int] = None
    total_sqft: Decimal = Field(default=Decimal("0"), ge=0, description="Total area")
    rate_per_sqft: Decimal = Field(default=Decimal("0"), ge=0, description="Rate per unit area")
    bedroom_count: Optional[int] = Field(None, ge=0)
    bedroom_config: Optional[Any] = None
    items: List[QuotationItemInput] = Field(default_factory=list)
    column_config: Optional[Any] = None
    discount_type: Optional[str] = Field(None, description="none | percentage | flat")
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)
    cgst_percent: Optional[Decimal] = Field(None, ge=0, le=100, description="Defaults to 9")
    sgst_percent: Optional[Decimal] = Field(None, ge=0, le=100, description="Defaults to 9")
    terms_conditions: Optional[str] = None
    payment_plan: Optional[PaymentPlanInput] = None
    notes: Optional[str] = None
    status: str = Field(default=QuotationStatus.DRAFT)

    @field_validator("discount_type")
    @classmethod
    def validate_discount_type(cls, v):
        return _check_discount_type(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)


class QuotationUpdateRequest(BaseModel):
    """Omitted fields keep their value; ``items`` replaces every row when sent"""
    client_id: Optional[int] = None
    date: Optional[Date] = None
    package_id: Optional[int] = None
    total_sqft: Optional[Decimal] = Field(None, ge=0)
    rate_per_sqft: Optional[Decimal] = Field(None, ge=0)
    bedroom_count: Optional[int] = Field(None, ge=0)
    bedroom_config: Optional[Any] = None
    items: Optional[List[QuotationItemInput]] = None
    column_config: Optional[Any] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    cgst_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    sgst_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    terms_conditions: Optional[str] = None
    payment_plan: Optional[PaymentPlanInput] = None
    notes: Optional[str] = None
    status: Optional[str] = None

    @field_validator("discount_type")
    @classmethod
    def validate_discount_type(cls, v):
        return _check_discount_type(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)


class PricingPreviewRequest(BaseModel):
    """Pricing preview, nothing is stored"""
    total_sqft: Decimal = Field(default=Decimal("0"), ge=0)
    rate_per_sqft: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[QuotationItemInput] = Field(default_factory=list)
    discount_type: Optional[str] = None
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)
    cgst_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    sgst_percent: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator("discount_type")
    @classmethod
    def validate_discount_type(cls, v):
        return _check_discount_type(v)


# ===== Responses =====
class PricingPreviewResponse(BaseModel):
    subtotal: Decimal
    discount_type: str
    discount_amount: Decimal
    discount_percent: Decimal
    taxable_amount: Decimal
    cgst_percent: Decimal
    cgst_amount: Decimal
    sgst_percent: Decimal
    sgst_amount: Decimal
    total_tax: Decimal
    grand_total: Decimal


class QuotationSummaryResponse(BaseModel):
    """List row"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    quotation_number: str
    date: Date
    client_id: int
    client_name: Optional[str] = None
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    status: str
    created_at: Optional[datetime] = None


class QuotationDetailResponse(QuotationSummaryResponse):
    company_id: int
    package_id: Optional[int] = None
    client_address: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    project_location: Optional[str] = None
    total_sqft: Decimal = Decimal("0")
    rate_per_sqft: Decimal = Decimal("0")
    bedroom_count: Optional[int] = None
    bedroom_config: Optional[Any] = None
    column_config: Optional[Any] = None
    discount_type: str = DiscountType.NONE
    discount_value: Decimal = Decimal("0")
    cgst_percent: Decimal
    cgst_amount: Decimal
    sgst_percent: Decimal
    sgst_amount: Decimal
    terms_conditions: Optional[str] = None
    payment_plan: Optional[Any] = Field(None, description="Milestone list or free text")
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None
    items: List[QuotationItemResponse] = Field(default_factory=list)
    receipts: List[ReceiptResponse] = Field(default_factory=list, description="Receipts, newest first")
    bill: Optional[BillResponse] = None

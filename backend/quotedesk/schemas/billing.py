"""
Bill and receipt request and response models
"""
from typing import List, Optional
from datetime import date as Date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, ConfigDict

from quotedesk.schemas.common import QuotationItemResponse


class PaymentMode:
    CASH = "cash"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    CARD = "card"


# ===== Bills =====
class BillCreateRequest(BaseModel):
    """Raise the tax invoice for a quotation"""
    quotation_id: int = Field(..., description="Quotation to bill, at most one bill each")
    date: Optional[Date] = Field(None, description="Invoice date, defaults to today")
    notes: Optional[str] = None


class BillUpdateRequest(BaseModel):
    date: Optional[Date] = None
    notes: Optional[str] = None


class BillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    quotation_id: int
    bill_number: str
    date: Date
    subtotal: Decimal
    cgst_percent: Decimal
    cgst_amount: Decimal
    sgst_percent: Decimal
    sgst_amount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    status: str = Field(..., description="pending | partial | paid")
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    quotation_number: Optional[str] = None
    client_name: Optional[str] = None


# ===== Receipts =====
class ReceiptCreateRequest(BaseModel):
    quotation_id: int = Field(..., description="Quotation the payment is made against")
    date: Optional[Date] = Field(None, description="Payment date, defaults to today")
    amount: Decimal = Field(..., gt=0, description="Amount received")
    payment_mode: str = Field(..., min_length=1, max_length=50)
    transaction_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None

    @field_validator("payment_mode")
    @classmethod
    def normalize_payment_mode(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("payment_mode is required")
        return v


class ReceiptUpdateRequest(BaseModel):
    date: Optional[Date] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    payment_mode: Optional[str] = Field(None, min_length=1, max_length=50)
    transaction_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class ReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    quotation_id: int
    receipt_number: str
    date: Date
    amount: Decimal
    payment_mode: str
    transaction_reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    quotation_number: Optional[str] = None
    client_name: Optional[str] = None


class ReceiptDetailResponse(ReceiptResponse):
    quotation_total: Decimal = Decimal("0")
    total_received: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    client_address: Optional[str] = None
    client_phone: Optional[str] = None


class QuotationReceiptsResponse(BaseModel):
    receipts: List[ReceiptResponse]
    total_received: Decimal
    balance: Decimal = Field(..., description="Quotation grand total minus everything received")


class BillDetailResponse(BillResponse):
    total_sqft: Optional[Decimal] = None
    rate_per_sqft: Optional[Decimal] = None
    bedroom_count: Optional[int] = None
    client_address: Optional[str] = None
    client_phone: Optional[str] = None
    project_location: Optional[str] = None
    items: List[QuotationItemResponse] = Field(default_factory=list)
    receipts: List[ReceiptResponse] = Field(default_factory=list, description="Receipts by date")

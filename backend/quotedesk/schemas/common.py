"""
Models shared by quotation and billing responses
"""
from typing import Optional
from decimal import Decimal
from pydantic import BaseModel, ConfigDict


class QuotationItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_label: Optional[str] = None
    item_name: str = ""
    description: Optional[str] = None
    material: Optional[str] = None
    brand: Optional[str] = None
    unit: Optional[str] = None
    quantity: Decimal = Decimal("0")
    rate: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    remarks: Optional[str] = None
    custom_columns: Optional[dict] = None
    sort_order: int = 0


class DeleteResponse(BaseModel):
    success: bool = True
    message: str

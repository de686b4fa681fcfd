"""
Render inputs for PDF documents

Plain values decoupled from the ORM; anything missing degrades to an empty
string or zero so layout never fails on incomplete records.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.core.middleware import NotFoundException
from quotedesk.crud.billing import BillingCRUD
from quotedesk.crud.documents import DocumentStore
from quotedesk.crud.quotation import QuotationCRUD
from quotedesk.services.pricing_engine import to_decimal

ZERO = Decimal("0")


@dataclass(frozen=True)
class Party:
    name: str = ""
    address: str = ""
    phone: str = ""
    gst_number: str = ""
    project_location: str = ""
    bank_details: str = ""


@dataclass(frozen=True)
class ItemLine:
    item_name: str = ""
    room_label: str = ""
    unit: str = ""
    material: str = ""
    quantity: Decimal = ZERO
    rate: Decimal = ZERO
    amount: Decimal = ZERO


@dataclass(frozen=True)
class QuotationDocument:
    id: int
    number: str
    date: Optional[date]
    company: Party
    client: Party
    total_sqft: Decimal = ZERO
    rate_per_sqft: Decimal = ZERO
    items: List[ItemLine] = field(default_factory=list)
    subtotal: Decimal = ZERO
    discount_type: str = "none"
    discount_value: Decimal = ZERO
    discount_amount: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    cgst_percent: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_percent: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    grand_total: Decimal = ZERO
    payment_plan: Optional[str] = None
    terms_conditions: Optional[str] = None


@dataclass(frozen=True)
class BillDocument:
    number: str
    date: Optional[date]
    quotation_number: str
    company: Party
    client: Party
    items: List[ItemLine] = field(default_factory=list)
    subtotal: Decimal = ZERO
    cgst_percent: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_percent: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    grand_total: Decimal = ZERO
    paid_amount: Decimal = ZERO
    balance_amount: Decimal = ZERO
    status: str = ""


@dataclass(frozen=True)
class ReceiptDocument:
    number: str
    date: Optional[date]
    quotation_number: str
    company: Party
    client: Party
    amount: Decimal = ZERO
    payment_mode: str = ""
    transaction_reference: str = ""
    notes: str = ""
    quotation_total: Decimal = ZERO
    total_paid: Decimal = ZERO


def _s(value) -> str:
    return "" if value is None else str(value)


def company_party(company) -> Party:
    if company is None:
        return Party()
    return Party(
        name=_s(company.name),
        address=_s(company.address),
        phone=_s(company.phone),
        gst_number=_s(company.gst_number),
        bank_details=_s(company.bank_details),
    )


def client_party(client) -> Party:
    if client is None:
        return Party()
    return Party(
        name=_s(client.name),
        address=_s(client.address),
        phone=_s(client.phone),
        project_location=_s(client.project_location),
    )


def item_line(item) -> ItemLine:
    return ItemLine(
        item_name=_s(item.item_name),
        room_label=_s(item.room_label),
        unit=_s(item.unit),
        material=_s(item.material),
        quantity=to_decimal(item.quantity),
        rate=to_decimal(item.rate),
        amount=to_decimal(item.amount),
    )


# ===== Loaders =====

async def load_quotation_document(db: AsyncSession, company_id: int, quotation_id: int) -> QuotationDocument:
    row = await QuotationCRUD.get_quotation_with_parties(db, company_id, quotation_id)
    if not row:
        raise NotFoundException("Quotation", quotation_id)
    quotation, client, company = row
    items = await QuotationCRUD.get_items(db, quotation.id)

    return QuotationDocument(
        id=quotation.id,
        number=_s(quotation.quotation_number),
        date=quotation.date,
        company=company_party(company),
        client=client_party(client),
        total_sqft=to_decimal(quotation.total_sqft),
        rate_per_sqft=to_decimal(quotation.rate_per_sqft),
        items=[item_line(item) for item in items],
        subtotal=to_decimal(quotation.subtotal),
        discount_type=_s(quotation.discount_type) or "none",
        discount_value=to_decimal(quotation.discount_value),
        discount_amount=to_decimal(quotation.discount_amount),
        taxable_amount=to_decimal(quotation.taxable_amount),
        cgst_percent=to_decimal(quotation.cgst_percent),
        cgst_amount=to_decimal(quotation.cgst_amount),
        sgst_percent=to_decimal(quotation.sgst_percent),
        sgst_amount=to_decimal(quotation.sgst_amount),
        grand_total=to_decimal(quotation.grand_total),
        payment_plan=quotation.payment_plan,
        terms_conditions=quotation.terms_conditions,
    )


async def load_bill_document(db: AsyncSession, company_id: int, bill_id: int) -> BillDocument:
    row = await BillingCRUD.get_bill_with_parties(db, company_id, bill_id)
    if not row:
        raise NotFoundException("Bill", bill_id)
    bill, quotation, client, company = row
    items = await QuotationCRUD.get_items(db, bill.quotation_id)

    return BillDocument(
        number=_s(bill.bill_number),
        date=bill.date,
        quotation_number=_s(quotation.quotation_number if quotation else None),
        company=company_party(company),
        client=client_party(client),
        items=[item_line(item) for item in items],
        subtotal=to_decimal(bill.subtotal),
        cgst_percent=to_decimal(bill.cgst_percent),
        cgst_amount=to_decimal(bill.cgst_amount),
        sgst_percent=to_decimal(bill.sgst_percent),
        sgst_amount=to_decimal(bill.sgst_amount),
        grand_total=to_decimal(bill.grand_total),
        paid_amount=to_decimal(bill.paid_amount),
        balance_amount=to_decimal(bill.balance_amount),
        status=_s(bill.status),
    )


async def load_receipt_document(db: AsyncSession, company_id: int, receipt_id: int) -> ReceiptDocument:
    row = await BillingCRUD.get_receipt_with_parties(db, company_id, receipt_id)
    if not row:
        raise NotFoundException("Receipt", receipt_id)
    receipt, quotation, client, company = row
    total_paid = await DocumentStore.sum_receipts(db, receipt.quotation_id)

    return ReceiptDocument(
        number=_s(receipt.receipt_number),
        date=receipt.date,
        quotation_number=_s(quotation.quotation_number if quotation else None),
        company=company_party(company),
        client=client_party(client),
        amount=to_decimal(receipt.amount),
        payment_mode=_s(receipt.payment_mode),
        transaction_reference=_s(receipt.transaction_reference),
        notes=_s(receipt.notes),
        quotation_total=to_decimal(quotation.grand_total if quotation else None),
        total_paid=total_paid,
    )

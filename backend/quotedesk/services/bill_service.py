"""
Bill (tax invoice) service
"""
from typing import List, Optional
from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from quotedesk.core.database import model_to_dict
from quotedesk.core.middleware import NotFoundException, BusinessException
from quotedesk.core.security import CurrentUser
from quotedesk.crud.billing import BillingCRUD
from quotedesk.crud.documents import DocumentStore
from quotedesk.crud.quotation import QuotationCRUD
from quotedesk.models import Quotation
from quotedesk.schemas.billing import (
    BillCreateRequest, BillUpdateRequest, BillResponse, BillDetailResponse, ReceiptResponse
)
from quotedesk.schemas.common import QuotationItemResponse
from quotedesk.schemas.quotation import QuotationStatus
from quotedesk.services.numbering import DocumentType, document_number_allocator
from quotedesk.services.reconciliation import reconcile


def bill_exists(quotation_id: int) -> BusinessException:
    return BusinessException(
        "Bill already exists for this quotation",
        error_code="BILL_ALREADY_EXISTS",
        details={"quotation_id": quotation_id}
    )


class BillService:

    def __init__(self, allocator=None):
        self.allocator = allocator or document_number_allocator

    async def list_bills(
        self,
        db: AsyncSession,
        user: CurrentUser,
        limit: Optional[int] = None
    ) -> List[BillResponse]:
        rows = await BillingCRUD.list_bills(db, user.company_id, limit)
        return [
            BillResponse(**model_to_dict(bill), quotation_number=number, client_name=client_name)
            for bill, number, client_name in rows
        ]

    async def get_bill_detail(self, db: AsyncSession, user: CurrentUser, bill_id: int) -> BillDetailResponse:
        """Bill with the quotation items and the receipts in date order"""
        row = await BillingCRUD.get_bill_with_parties(db, user.company_id, bill_id)
        if not row:
            raise NotFoundException("Bill", bill_id)
        bill, quotation, client, _company = row

        items = await QuotationCRUD.get_items(db, bill.quotation_id)
        receipts = await BillingCRUD.receipts_for_quotation(db, bill.quotation_id, newest_first=False)

        return BillDetailResponse(
            **model_to_dict(bill),
            quotation_number=quotation.quotation_number if quotation else None,
            total_sqft=quotation.total_sqft if quotation else None,
            rate_per_sqft=quotation.rate_per_sqft if quotation else None,
            bedroom_count=quotation.bedroom_count if quotation else None,
            client_name=client.name if client else None,
            client_address=client.address if client else None,
            client_phone=client.phone if client else None,
            project_location=client.project_location if client else None,
            items=[QuotationItemResponse.model_validate(item) for item in items],
            receipts=[ReceiptResponse.model_validate(r) for r in receipts],
        )

    async def create_bill(self, db: AsyncSession, user: CurrentUser, data: BillCreateRequest) -> BillDetailResponse:
        """
        Raise the invoice for a quotation

        Copies the quotation's tax breakdown (bill subtotal is the taxable
        amount), seeds the payment state from receipts already recorded and
        marks the quotation billed.
        """
        try:
            quotation = await QuotationCRUD.get_quotation(db, user.company_id, data.quotation_id)
            if not quotation:
                raise NotFoundException("Quotation", data.quotation_id)

            if await DocumentStore.find_bill_by_quotation(db, quotation.id):
                raise bill_exists(quotation.id)

            receipts_sum = await DocumentStore.sum_receipts(db, quotation.id)
            state = reconcile(quotation.grand_total, receipts_sum)

            quotation_id = quotation.id
            fields = dict(
                company_id=user.company_id,
                quotation_id=quotation_id,
                date=data.date or date.today(),
                subtotal=quotation.taxable_amount,
                cgst_percent=quotation.cgst_percent,
                cgst_amount=quotation.cgst_amount,
                sgst_percent=quotation.sgst_percent,
                sgst_amount=quotation.sgst_amount,
                total_tax=quotation.total_tax,
                grand_total=quotation.grand_total,
                paid_amount=state.paid_amount,
                balance_amount=state.balance_amount,
                status=state.status,
                notes=data.notes,
            )

            async def build(number: str) -> int:
                bill_id = await DocumentStore.insert_document(
                    db, DocumentType.BILL, dict(fields, bill_number=number)
                )
                await db.execute(
                    update(Quotation)
                    .where(Quotation.id == quotation_id)
                    .values(status=QuotationStatus.BILLED)
                )
                return bill_id

            try:
                bill_id = await self.allocator.issue(db, DocumentType.BILL, user.company_code, build)
            except IntegrityError as e:
                # a concurrent request billed the same quotation first
                if "quotation_id" not in str(e.orig) and "uq_bill_quotation" not in str(e.orig):
                    raise
                raise bill_exists(quotation_id) from e
            detail = await self.get_bill_detail(db, user, bill_id)
            logger.info(f"Bill created: {detail.bill_number} | {state.status} | balance {state.balance_amount}")
            return detail
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create bill: {e}")
            raise

    async def update_bill(
        self,
        db: AsyncSession,
        user: CurrentUser,
        bill_id: int,
        data: BillUpdateRequest
    ) -> BillDetailResponse:
        """Only the date and notes are editable"""
        try:
            bill = await BillingCRUD.get_bill(db, user.company_id, bill_id)
            if not bill:
                raise NotFoundException("Bill", bill_id)

            update_data = data.model_dump(exclude_unset=True)
            if update_data.get("date") is not None:
                bill.date = update_data["date"]
            if "notes" in update_data:
                bill.notes = update_data["notes"]

            await db.commit()
            await db.refresh(bill)
            return await self.get_bill_detail(db, user, bill_id)
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to update bill {bill_id}: {e}")
            raise

    async def delete_bill(self, db: AsyncSession, user: CurrentUser, bill_id: int) -> bool:
        """Remove the invoice and put the quotation back to confirmed"""
        try:
            bill = await BillingCRUD.get_bill(db, user.company_id, bill_id)
            if not bill:
                raise NotFoundException("Bill", bill_id)

            bill_number = bill.bill_number
            await db.execute(
                update(Quotation)
                .where(Quotation.id == bill.quotation_id)
                .values(status=QuotationStatus.CONFIRMED)
            )
            await db.delete(bill)
            await db.commit()
            logger.info(f"Bill deleted: {bill_number}")
            return True
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to delete bill {bill_id}: {e}")
            raise


bill_service = BillService()

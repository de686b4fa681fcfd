"""
Payment receipt service

Every receipt mutation reconciles the bill of the quotation it belongs to
inside the same transaction.
"""
from typing import List, Optional
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from quotedesk.core.database import model_to_dict
from quotedesk.core.middleware import NotFoundException
from quotedesk.core.security import CurrentUser
from quotedesk.crud.billing import BillingCRUD
from quotedesk.crud.documents import DocumentStore
from quotedesk.crud.quotation import QuotationCRUD
from quotedesk.schemas.billing import (
    ReceiptCreateRequest, ReceiptUpdateRequest, ReceiptResponse,
    ReceiptDetailResponse, QuotationReceiptsResponse,
)
from quotedesk.services.numbering import DocumentType, document_number_allocator
from quotedesk.services.reconciliation import reconcile_quotation_bill


class ReceiptService:

    def __init__(self, allocator=None):
        self.allocator = allocator or document_number_allocator

    async def list_receipts(
        self,
        db: AsyncSession,
        user: CurrentUser,
        limit: Optional[int] = None
    ) -> List[ReceiptResponse]:
        rows = await BillingCRUD.list_receipts(db, user.company_id, limit)
        return [
            ReceiptResponse(**model_to_dict(receipt), quotation_number=number, client_name=client_name)
            for receipt, number, client_name in rows
        ]

    async def receipts_for_quotation(
        self,
        db: AsyncSession,
        user: CurrentUser,
        quotation_id: int
    ) -> QuotationReceiptsResponse:
        quotation = await QuotationCRUD.get_quotation(db, user.company_id, quotation_id)
        if not quotation:
            raise NotFoundException("Quotation", quotation_id)

        receipts = await BillingCRUD.receipts_for_quotation(db, quotation_id, newest_first=True)
        total_received = await DocumentStore.sum_receipts(db, quotation_id)
        return QuotationReceiptsResponse(
            receipts=[ReceiptResponse.model_validate(r) for r in receipts],
            total_received=total_received,
            balance=quotation.grand_total - total_received,
        )

    async def get_receipt_detail(
        self,
        db: AsyncSession,
        user: CurrentUser,
        receipt_id: int
    ) -> ReceiptDetailResponse:
        """Receipt with what has been received against its quotation so far"""
        row = await BillingCRUD.get_receipt_with_parties(db, user.company_id, receipt_id)
        if not row:
            raise NotFoundException("Receipt", receipt_id)
        receipt, quotation, client, _company = row

        total_received = await DocumentStore.sum_receipts(db, receipt.quotation_id)
        quotation_total = quotation.grand_total if quotation else 0

        return ReceiptDetailResponse(
            **model_to_dict(receipt),
            quotation_number=quotation.quotation_number if quotation else None,
            client_name=client.name if client else None,
            client_address=client.address if client else None,
            client_phone=client.phone if client else None,
            quotation_total=quotation_total,
            total_received=total_received,
            balance=quotation_total - total_received,
        )

    async def create_receipt(
        self,
        db: AsyncSession,
        user: CurrentUser,
        data: ReceiptCreateRequest
    ) -> ReceiptDetailResponse:
        try:
            quotation = await QuotationCRUD.get_quotation(db, user.company_id, data.quotation_id)
            if not quotation:
                raise NotFoundException("Quotation", data.quotation_id)

            quotation_id = quotation.id
            fields = dict(
                company_id=user.company_id,
                quotation_id=quotation_id,
                date=data.date or date.today(),
                amount=data.amount,
                payment_mode=data.payment_mode,
                transaction_reference=data.transaction_reference,
                notes=data.notes,
            )

            async def build(number: str) -> int:
                receipt_id = await DocumentStore.insert_document(
                    db, DocumentType.RECEIPT, dict(fields, receipt_number=number)
                )
                await reconcile_quotation_bill(db, quotation_id)
                return receipt_id

            receipt_id = await self.allocator.issue(db, DocumentType.RECEIPT, user.company_code, build)
            detail = await self.get_receipt_detail(db, user, receipt_id)
            logger.info(f"Receipt created: {detail.receipt_number} | amount {detail.amount}")
            return detail
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create receipt: {e}")
            raise

    async def update_receipt(
        self,
        db: AsyncSession,
        user: CurrentUser,
        receipt_id: int,
        data: ReceiptUpdateRequest
    ) -> ReceiptDetailResponse:
        try:
            receipt = await BillingCRUD.get_receipt(db, user.company_id, receipt_id)
            if not receipt:
                raise NotFoundException("Receipt", receipt_id)

            update_data = data.model_dump(exclude_unset=True)
            for key, value in update_data.items():
                # required columns keep their value when sent as null
                if value is None and key in ("date", "amount", "payment_mode"):
                    continue
                setattr(receipt, key, value)

            await reconcile_quotation_bill(db, receipt.quotation_id)
            await db.commit()
            await db.refresh(receipt)
            logger.info(f"Receipt updated: {receipt.receipt_number}")

            return await self.get_receipt_detail(db, user, receipt_id)
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to update receipt {receipt_id}: {e}")
            raise

    async def delete_receipt(self, db: AsyncSession, user: CurrentUser, receipt_id: int) -> bool:
        try:
            receipt = await BillingCRUD.get_receipt(db, user.company_id, receipt_id)
            if not receipt:
                raise NotFoundException("Receipt", receipt_id)

            quotation_id = receipt.quotation_id
            receipt_number = receipt.receipt_number
            await db.delete(receipt)
            await reconcile_quotation_bill(db, quotation_id)
            await db.commit()
            logger.info(f"Receipt deleted: {receipt_number}")
            return True
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to delete receipt {receipt_id}: {e}")
            raise


receipt_service = ReceiptService()

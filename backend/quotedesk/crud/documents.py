"""
Persistence operations used by numbering and payment reconciliation
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.models import Quotation, Bill, Receipt

# document type -> (model, number column name)
DOCUMENT_TABLES = {
    "quotation": (Quotation, "quotation_number"),
    "bill": (Bill, "bill_number"),
    "receipt": (Receipt, "receipt_number"),
}


class DocumentStore:
    """Document store contract"""

    @staticmethod
    def model_for(document_type: str):
        return DOCUMENT_TABLES[document_type][0]

    @staticmethod
    def number_column(document_type: str):
        model, column = DOCUMENT_TABLES[document_type]
        return getattr(model, column)

    @staticmethod
    async def find_last_document_number(
        db: AsyncSession,
        document_type: str,
        scope_prefix: str
    ) -> Optional[str]:
        """Most recently inserted number under ``scope_prefix``"""
        model = DocumentStore.model_for(document_type)
        column = DocumentStore.number_column(document_type)
        query = (
            select(column)
            .where(column.startswith(scope_prefix, autoescape=True))
            .order_by(model.id.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def insert_document(db: AsyncSession, document_type: str, fields: dict) -> int:
        """Add a document row and flush it to obtain its id"""
        document = DocumentStore.model_for(document_type)(**fields)
        db.add(document)
        await db.flush()
        return document.id

    @staticmethod
    async def sum_receipts(db: AsyncSession, quotation_id: int) -> Decimal:
        query = select(func.coalesce(func.sum(Receipt.amount), 0)).where(
            Receipt.quotation_id == quotation_id
        )
        result = await db.execute(query)
        return Decimal(str(result.scalar() or 0))

    @staticmethod
    async def find_bill_by_quotation(db: AsyncSession, quotation_id: int) -> Optional[Bill]:
        result = await db.execute(select(Bill).where(Bill.quotation_id == quotation_id))
        return result.scalars().first()

    @staticmethod
    async def update_bill_payment_state(
        db: AsyncSession,
        bill_id: int,
        paid: Decimal,
        balance: Decimal,
        status: str
    ) -> None:
        await db.execute(
            update(Bill)
            .where(Bill.id == bill_id)
            .values(paid_amount=paid, balance_amount=balance, status=status)
        )

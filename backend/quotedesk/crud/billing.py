"""
Bill and receipt queries
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.models import Bill, Receipt, Quotation, Client, Company


class BillingCRUD:

    @staticmethod
    async def get_bill(db: AsyncSession, company_id: int, bill_id: int) -> Optional[Bill]:
        query = select(Bill).where(Bill.id == bill_id, Bill.company_id == company_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_bill_with_parties(db: AsyncSession, company_id: int, bill_id: int):
        """(bill, quotation, client, company) or None"""
        query = (
            select(Bill, Quotation, Client, Company)
            .outerjoin(Quotation, Bill.quotation_id == Quotation.id)
            .outerjoin(Client, Quotation.client_id == Client.id)
            .outerjoin(Company, Bill.company_id == Company.id)
            .where(Bill.id == bill_id, Bill.company_id == company_id)
        )
        result = await db.execute(query)
        return result.first()

    @staticmethod
    async def list_bills(db: AsyncSession, company_id: int, limit: Optional[int] = None):
        """(bill, quotation number, client name) rows, newest first"""
        query = (
            select(Bill, Quotation.quotation_number, Client.name)
            .outerjoin(Quotation, Bill.quotation_id == Quotation.id)
            .outerjoin(Client, Quotation.client_id == Client.id)
            .where(Bill.company_id == company_id)
            .order_by(Bill.created_at.desc(), Bill.id.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return result.all()

    @staticmethod
    async def get_receipt(db: AsyncSession, company_id: int, receipt_id: int) -> Optional[Receipt]:
        query = select(Receipt).where(Receipt.id == receipt_id, Receipt.company_id == company_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_receipt_with_parties(db: AsyncSession, company_id: int, receipt_id: int):
        """(receipt, quotation, client, company) or None"""
        query = (
            select(Receipt, Quotation, Client, Company)
            .outerjoin(Quotation, Receipt.quotation_id == Quotation.id)
            .outerjoin(Client, Quotation.client_id == Client.id)
            .outerjoin(Company, Receipt.company_id == Company.id)
            .where(Receipt.id == receipt_id, Receipt.company_id == company_id)
        )
        result = await db.execute(query)
        return result.first()

    @staticmethod
    async def list_receipts(db: AsyncSession, company_id: int, limit: Optional[int] = None):
        """(receipt, quotation number, client name) rows, newest first"""
        query = (
            select(Receipt, Quotation.quotation_number, Client.name)
            .outerjoin(Quotation, Receipt.quotation_id == Quotation.id)
            .outerjoin(Client, Quotation.client_id == Client.id)
            .where(Receipt.company_id == company_id)
            .order_by(Receipt.created_at.desc(), Receipt.id.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return result.all()

    @staticmethod
    async def receipts_for_quotation(
        db: AsyncSession,
        quotation_id: int,
        newest_first: bool = True
    ) -> List[Receipt]:
        order = (Receipt.date.desc(), Receipt.id.desc()) if newest_first else (Receipt.date, Receipt.id)
        query = select(Receipt).where(Receipt.quotation_id == quotation_id).order_by(*order)
        result = await db.execute(query)
        return list(result.scalars().all())

"""
Quotation queries
"""
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.models import Quotation, QuotationItem, Client, Company, Receipt


class QuotationCRUD:
    """Company scoped quotation reads and item writes"""

    @staticmethod
    async def get_quotation(db: AsyncSession, company_id: int, quotation_id: int) -> Optional[Quotation]:
        query = select(Quotation).where(
            Quotation.id == quotation_id,
            Quotation.company_id == company_id
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_quotation_with_parties(db: AsyncSession, company_id: int, quotation_id: int):
        """(quotation, client, company) or None"""
        query = (
            select(Quotation, Client, Company)
            .outerjoin(Client, Quotation.client_id == Client.id)
            .outerjoin(Company, Quotation.company_id == Company.id)
            .where(Quotation.id == quotation_id, Quotation.company_id == company_id)
        )
        result = await db.execute(query)
        return result.first()

    @staticmethod
    async def list_quotations(db: AsyncSession, company_id: int, limit: Optional[int] = None):
        """(quotation, client name) rows, newest first"""
        query = (
            select(Quotation, Client.name)
            .outerjoin(Client, Quotation.client_id == Client.id)
            .where(Quotation.company_id == company_id)
            .order_by(Quotation.created_at.desc(), Quotation.id.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return result.all()

    @staticmethod
    async def get_items(db: AsyncSession, quotation_id: int) -> List[QuotationItem]:
        query = (
            select(QuotationItem)
            .where(QuotationItem.quotation_id == quotation_id)
            .order_by(QuotationItem.sort_order, QuotationItem.id)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def add_items(db: AsyncSession, quotation_id: int, items: List[dict]) -> None:
        """Stage items in submission order"""
        for index, item in enumerate(items):
            db.add(QuotationItem(quotation_id=quotation_id, sort_order=index, **item))

    @staticmethod
    async def replace_items(db: AsyncSession, quotation_id: int, items: List[dict]) -> None:
        await db.execute(delete(QuotationItem).where(QuotationItem.quotation_id == quotation_id))
        QuotationCRUD.add_items(db, quotation_id, items)

    @staticmethod
    async def delete_items(db: AsyncSession, quotation_id: int) -> None:
        await db.execute(delete(QuotationItem).where(QuotationItem.quotation_id == quotation_id))

    @staticmethod
    async def get_client(db: AsyncSession, company_id: int, client_id: int) -> Optional[Client]:
        query = select(Client).where(Client.id == client_id, Client.company_id == company_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_company(db: AsyncSession, company_id: int) -> Optional[Company]:
        result = await db.execute(select(Company).where(Company.id == company_id))
        return result.scalars().first()

    @staticmethod
    async def has_receipts(db: AsyncSession, quotation_id: int) -> bool:
        query = select(Receipt.id).where(Receipt.quotation_id == quotation_id).limit(1)
        result = await db.execute(query)
        return result.first() is not None

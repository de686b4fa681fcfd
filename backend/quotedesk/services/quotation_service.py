"""
Quotation management service
"""
from typing import List, Optional
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from quotedesk.core.database import model_to_dict
from quotedesk.core.middleware import NotFoundException, BusinessException
from quotedesk.core.security import CurrentUser
from quotedesk.crud.quotation import QuotationCRUD
from quotedesk.crud.billing import BillingCRUD
from quotedesk.crud.documents import DocumentStore
from quotedesk.schemas.quotation import (
    QuotationCreateRequest, QuotationUpdateRequest, QuotationItemInput,
    PricingPreviewRequest, PricingPreviewResponse,
    QuotationSummaryResponse, QuotationDetailResponse,
)
from quotedesk.schemas.common import QuotationItemResponse
from quotedesk.schemas.billing import BillResponse, ReceiptResponse
from quotedesk.services.numbering import DocumentType, document_number_allocator
from quotedesk.services.payment_plan import dump_payment_plan, plan_for_response
from quotedesk.services.pricing_engine import (
    pricing_engine, discount_from_fields, quantize, to_decimal, PricingResult
)


def item_rows(items: List[QuotationItemInput]) -> List[dict]:
    """Request items -> column dicts; a missing amount is quantity x rate"""
    rows = []
    for item in items:
        row = item.model_dump()
        if row["amount"] is None:
            row["amount"] = quantize(to_decimal(row["quantity"]) * to_decimal(row["rate"]))
        rows.append(row)
    return rows


class QuotationService:
    """Quotation lifecycle"""

    def __init__(self, allocator=None):
        self.allocator = allocator or document_number_allocator

    # ===== Pricing =====

    def price(
        self,
        items,
        total_sqft,
        rate_per_sqft,
        discount_type: Optional[str],
        discount_value,
        cgst_percent,
        sgst_percent,
    ) -> PricingResult:
        line_total = pricing_engine.line_total(items, total_sqft, rate_per_sqft)
        discount = discount_from_fields(discount_type, discount_value)
        return pricing_engine.compute(line_total, discount, cgst_percent, sgst_percent)

    def preview_pricing(self, data: PricingPreviewRequest) -> PricingPreviewResponse:
        """Price without persisting anything"""
        result = self.price(
            item_rows(data.items),
            data.total_sqft,
            data.rate_per_sqft,
            data.discount_type,
            data.discount_value,
            data.cgst_percent,
            data.sgst_percent,
        )
        return PricingPreviewResponse(
            discount_percent=quantize(result.discount_percent),
            **result.as_columns()
        )

    # ===== Reads =====

    async def get_quotation_detail(
        self,
        db: AsyncSession,
        user: CurrentUser,
        quotation_id: int
    ) -> QuotationDetailResponse:
        """Quotation with items, receipts and bill"""
        row = await QuotationCRUD.get_quotation_with_parties(db, user.company_id, quotation_id)
        if not row:
            raise NotFoundException("Quotation", quotation_id)
        quotation, client, _company = row

        items = await QuotationCRUD.get_items(db, quotation.id)
        receipts = await BillingCRUD.receipts_for_quotation(db, quotation.id, newest_first=True)
        bill = await DocumentStore.find_bill_by_quotation(db, quotation.id)

        data = model_to_dict(quotation)
        data["payment_plan"] = plan_for_response(quotation.payment_plan)
        return QuotationDetailResponse(
            **data,
            client_name=client.name if client else None,
            client_address=client.address if client else None,
            client_phone=client.phone if client else None,
            client_email=client.email if client else None,
            project_location=client.project_location if client else None,
            items=[QuotationItemResponse.model_validate(item) for item in items],
            receipts=[ReceiptResponse.model_validate(r) for r in receipts],
            bill=BillResponse.model_validate(bill) if bill else None,
        )

    async def list_quotations(
        self,
        db: AsyncSession,
        user: CurrentUser,
        limit: Optional[int] = None
    ) -> List[QuotationSummaryResponse]:
        rows = await QuotationCRUD.list_quotations(db, user.company_id, limit)
        return [
            QuotationSummaryResponse(**model_to_dict(quotation), client_name=client_name)
            for quotation, client_name in rows
        ]

    # ===== Writes =====

    async def create_quotation(
        self,
        db: AsyncSession,
        user: CurrentUser,
        data: QuotationCreateRequest
    ) -> QuotationDetailResponse:
        """
        Price, number and store a new quotation

        Terms and payment plan fall back to the company defaults. A discount
        above the ceiling fails before anything is written.
        """
        try:
            client = await QuotationCRUD.get_client(db, user.company_id, data.client_id)
            if not client:
                raise NotFoundException("Client", data.client_id)

            items = item_rows(data.items)
            pricing = self.price(
                items,
                data.total_sqft,
                data.rate_per_sqft,
                data.discount_type,
                data.discount_value,
                data.cgst_percent,
                data.sgst_percent,
            )

            terms = data.terms_conditions
            payment_plan = dump_payment_plan(data.payment_plan)
            if not terms or not payment_plan:
                company = await QuotationCRUD.get_company(db, user.company_id)
                if company:
                    terms = terms or company.default_terms_conditions
                    payment_plan = payment_plan or company.default_payment_plan

            fields = dict(
                company_id=user.company_id,
                client_id=data.client_id,
                package_id=data.package_id,
                date=data.date or date.today(),
                total_sqft=data.total_sqft,
                rate_per_sqft=data.rate_per_sqft,
                bedroom_count=data.bedroom_count,
                bedroom_config=data.bedroom_config,
                column_config=data.column_config,
                terms_conditions=terms,
                payment_plan=payment_plan,
                notes=data.notes,
                status=data.status,
                **pricing.as_columns()
            )

            async def build(number: str) -> int:
                quotation_id = await DocumentStore.insert_document(
                    db, DocumentType.QUOTATION, dict(fields, quotation_number=number)
                )
                QuotationCRUD.add_items(db, quotation_id, items)
                await db.flush()
                return quotation_id

            quotation_id = await self.allocator.issue(db, DocumentType.QUOTATION, user.company_code, build)
            detail = await self.get_quotation_detail(db, user, quotation_id)
            logger.info(f"Quotation created: {detail.quotation_number} | total {detail.grand_total}")
            return detail
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create quotation: {e}")
            raise

    async def update_quotation(
        self,
        db: AsyncSession,
        user: CurrentUser,
        quotation_id: int,
        data: QuotationUpdateRequest
    ) -> QuotationDetailResponse:
        """Apply changes and reprice; the number never changes"""
        try:
            quotation = await QuotationCRUD.get_quotation(db, user.company_id, quotation_id)
            if not quotation:
                raise NotFoundException("Quotation", quotation_id)

            update_data = data.model_dump(exclude_unset=True)

            if update_data.get("client_id") is not None:
                client = await QuotationCRUD.get_client(db, user.company_id, update_data["client_id"])
                if not client:
                    raise NotFoundException("Client", update_data["client_id"])

            if data.items is not None:
                items = item_rows(data.items)
            else:
                items = await QuotationCRUD.get_items(db, quotation.id)

            def merged(field):
                return update_data[field] if field in update_data else getattr(quotation, field)

            pricing = self.price(
                items,
                merged("total_sqft"),
                merged("rate_per_sqft"),
                merged("discount_type"),
                merged("discount_value"),
                merged("cgst_percent"),
                merged("sgst_percent"),
            )

            for key in ("items", "payment_plan", "discount_type", "discount_value",
                        "cgst_percent", "sgst_percent"):
                update_data.pop(key, None)
            if "payment_plan" in data.model_fields_set:
                quotation.payment_plan = dump_payment_plan(data.payment_plan)

            for key, value in update_data.items():
                if value is None and key in ("client_id", "date", "status", "total_sqft", "rate_per_sqft"):
                    continue
                setattr(quotation, key, value)
            for key, value in pricing.as_columns().items():
                setattr(quotation, key, value)

            if data.items is not None:
                await QuotationCRUD.replace_items(db, quotation.id, items)

            await db.commit()
            await db.refresh(quotation)
            logger.info(f"Quotation updated: {quotation.quotation_number}")

            return await self.get_quotation_detail(db, user, quotation_id)
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to update quotation {quotation_id}: {e}")
            raise

    async def delete_quotation(self, db: AsyncSession, user: CurrentUser, quotation_id: int) -> bool:
        """Hard delete; refused once money or an invoice is attached"""
        try:
            quotation = await QuotationCRUD.get_quotation(db, user.company_id, quotation_id)
            if not quotation:
                raise NotFoundException("Quotation", quotation_id)

            if await QuotationCRUD.has_receipts(db, quotation_id):
                raise BusinessException(
                    "Cannot delete quotation with receipts",
                    error_code="QUOTATION_HAS_RECEIPTS"
                )
            if await DocumentStore.find_bill_by_quotation(db, quotation_id):
                raise BusinessException(
                    "Cannot delete quotation with bills",
                    error_code="QUOTATION_HAS_BILL"
                )

            await QuotationCRUD.delete_items(db, quotation_id)
            await db.delete(quotation)
            await db.commit()
            logger.info(f"Quotation deleted: {quotation.quotation_number}")
            return True
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to delete quotation {quotation_id}: {e}")
            raise


quotation_service = QuotationService()

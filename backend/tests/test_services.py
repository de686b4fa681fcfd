"""
Quotation, bill and receipt service tests
"""
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from quotedesk.core.middleware import BusinessException, DiscountError, NotFoundException
from quotedesk.core.security import CurrentUser
from quotedesk.crud.documents import DocumentStore
from quotedesk.schemas.billing import BillCreateRequest, BillUpdateRequest, ReceiptCreateRequest
from quotedesk.schemas.quotation import (
    PaymentMilestone, PricingPreviewRequest, QuotationCreateRequest,
    QuotationItemInput, QuotationUpdateRequest, QuotationStatus,
)
from quotedesk.services.bill_service import BillService
from quotedesk.services.quotation_service import QuotationService
from quotedesk.services.receipt_service import ReceiptService


@pytest.fixture
def quotation_service(allocator):
    return QuotationService(allocator)


@pytest.fixture
def bill_service(allocator):
    return BillService(allocator)


@pytest.fixture
def receipt_service(allocator):
    return ReceiptService(allocator)


def item(room, name, quantity, rate, amount=None):
    return QuotationItemInput(
        room_label=room, item_name=name, unit="nos",
        quantity=Decimal(quantity), rate=Decimal(rate),
        amount=Decimal(amount) if amount is not None else None,
    )


class TestQuotationService:
    """Quotation lifecycle"""

    @pytest.mark.asyncio
    async def test_create_with_items(self, db_session, user, client_record, quotation_service):
        request = QuotationCreateRequest(
            client_id=client_record.id,
            date=date(2025, 1, 5),
            items=[
                item("Kitchen", "Modular kitchen base units", "1", "85000"),
                item("Kitchen", "Chimney", "1", "15000", amount="14000"),
                item("Master Bedroom", "Wardrobe", "2", "30000"),
            ],
            column_config={"columns": ["item_name", "unit", "quantity", "rate"]},
            discount_type="percentage",
            discount_value=Decimal("10"),
        )

        quotation = await quotation_service.create_quotation(db_session, user, request)

        assert quotation.quotation_number == "AARTI/2501/0001"
        assert quotation.client_name == "Rahul Sharma"
        assert quotation.subtotal == Decimal("159000.00")
        assert quotation.discount_amount == Decimal("15900.00")
        assert quotation.taxable_amount == Decimal("143100.00")
        assert quotation.grand_total == Decimal("168858.00")
        assert quotation.column_config == {"columns": ["item_name", "unit", "quantity", "rate"]}
        assert [i.item_name for i in quotation.items] == [
            "Modular kitchen base units", "Chimney", "Wardrobe"
        ]
        assert [i.sort_order for i in quotation.items] == [0, 1, 2]
        assert quotation.items[2].amount == Decimal("60000.00")

    @pytest.mark.asyncio
    async def test_company_defaults_fill_terms_and_plan(self, db_session, user, client_record, quotation_service):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("500"), rate_per_sqft=Decimal("1000")
        ))

        assert quotation.terms_conditions == "50% advance before work starts."
        assert quotation.payment_plan == [{"stage": "Advance", "percent": 50, "amount": 0}]

    @pytest.mark.asyncio
    async def test_explicit_plan_is_kept(self, db_session, user, client_record, quotation_service):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id,
            total_sqft=Decimal("500"),
            rate_per_sqft=Decimal("1000"),
            terms_conditions="Custom terms",
            payment_plan=[
                PaymentMilestone(stage="Booking", percent=Decimal("20"), amount=Decimal("118000")),
                PaymentMilestone(stage="Handover", percent=Decimal("80"), amount=Decimal("472000")),
            ],
        ))

        assert quotation.terms_conditions == "Custom terms"
        assert [m["stage"] for m in quotation.payment_plan] == ["Booking", "Handover"]

    @pytest.mark.asyncio
    async def test_discount_over_limit_stores_nothing(self, db_session, user, client_record, quotation_service):
        with pytest.raises(DiscountError):
            await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
                client_id=client_record.id,
                total_sqft=Decimal("100"),
                rate_per_sqft=Decimal("100"),
                discount_type="percentage",
                discount_value=Decimal("31"),
            ))

        assert await quotation_service.list_quotations(db_session, user) == []

    @pytest.mark.asyncio
    async def test_unknown_client(self, db_session, user, company, quotation_service):
        with pytest.raises(NotFoundException):
            await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(client_id=999))

    @pytest.mark.asyncio
    async def test_other_company_cannot_read(self, db_session, user, other_company, client_record, quotation_service):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("10"), rate_per_sqft=Decimal("10")
        ))
        outsider = CurrentUser(2, "outsider", other_company.id, "OTHER")

        with pytest.raises(NotFoundException):
            await quotation_service.get_quotation_detail(db_session, outsider, quotation.id)
        assert await quotation_service.list_quotations(db_session, outsider) == []

    @pytest.mark.asyncio
    async def test_update_reprices_and_keeps_number(self, db_session, user, client_record, quotation_service):
        created = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("1000"), rate_per_sqft=Decimal("100")
        ))

        updated = await quotation_service.update_quotation(db_session, user, created.id, QuotationUpdateRequest(
            rate_per_sqft=Decimal("120"),
            cgst_percent=Decimal("0"),
            sgst_percent=Decimal("0"),
            status=QuotationStatus.CONFIRMED,
        ))

        assert updated.quotation_number == created.quotation_number
        assert updated.subtotal == Decimal("120000.00")
        assert updated.total_tax == Decimal("0.00")
        assert updated.grand_total == Decimal("120000.00")
        assert updated.status == QuotationStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_update_replaces_items(self, db_session, user, client_record, quotation_service):
        created = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id,
            items=[item("Hall", "TV unit", "1", "40000"), item("Hall", "Sofa back panel", "1", "20000")],
        ))

        updated = await quotation_service.update_quotation(db_session, user, created.id, QuotationUpdateRequest(
            items=[item("Hall", "False ceiling", "200", "100")],
        ))

        assert [i.item_name for i in updated.items] == ["False ceiling"]
        assert updated.subtotal == Decimal("20000.00")

    @pytest.mark.asyncio
    async def test_update_with_existing_discount_revalidated(self, db_session, user, client_record, quotation_service):
        """Shrinking the subtotal below a flat discount's allowance is refused"""
        created = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id,
            total_sqft=Decimal("1000"),
            rate_per_sqft=Decimal("100"),
            discount_type="flat",
            discount_value=Decimal("20000"),
        ))

        with pytest.raises(DiscountError):
            await quotation_service.update_quotation(db_session, user, created.id, QuotationUpdateRequest(
                rate_per_sqft=Decimal("50"),
            ))

    @pytest.mark.asyncio
    async def test_delete_refused_with_receipts(
        self, db_session, user, client_record, quotation_service, receipt_service
    ):
        created = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("10"), rate_per_sqft=Decimal("10")
        ))
        await receipt_service.create_receipt(db_session, user, ReceiptCreateRequest(
            quotation_id=created.id, amount=Decimal("10"), payment_mode="cash"
        ))

        with pytest.raises(BusinessException) as exc_info:
            await quotation_service.delete_quotation(db_session, user, created.id)
        assert exc_info.value.error_code == "QUOTATION_HAS_RECEIPTS"

    @pytest.mark.asyncio
    async def test_delete(self, db_session, user, client_record, quotation_service):
        created = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, items=[item("Hall", "Sofa", "1", "100")]
        ))

        assert await quotation_service.delete_quotation(db_session, user, created.id) is True
        with pytest.raises(NotFoundException):
            await quotation_service.get_quotation_detail(db_session, user, created.id)

    def test_preview_pricing(self, quotation_service):
        preview = quotation_service.preview_pricing(PricingPreviewRequest(
            total_sqft=Decimal("1000"),
            rate_per_sqft=Decimal("100"),
            discount_type="flat",
            discount_value=Decimal("10000"),
        ))

        assert preview.discount_percent == Decimal("10.00")
        assert preview.taxable_amount == Decimal("90000.00")
        assert preview.grand_total == Decimal("106200.00")


class TestBillService:
    """Invoice lifecycle"""

    @pytest.mark.asyncio
    async def test_create_marks_quotation_billed(
        self, db_session, user, client_record, quotation_service, bill_service
    ):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, items=[item("Hall", "TV unit", "1", "40000")]
        ))

        bill = await bill_service.create_bill(db_session, user, BillCreateRequest(
            quotation_id=quotation.id, date=date(2025, 1, 20)
        ))

        assert bill.bill_number == "INV/AARTI/2501/0001"
        assert bill.quotation_number == quotation.quotation_number
        assert [i.item_name for i in bill.items] == ["TV unit"]
        detail = await quotation_service.get_quotation_detail(db_session, user, quotation.id)
        assert detail.status == QuotationStatus.BILLED
        assert detail.bill.bill_number == bill.bill_number

    @pytest.mark.asyncio
    async def test_second_bill_rejected(self, db_session, user, client_record, quotation_service, bill_service):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("10"), rate_per_sqft=Decimal("10")
        ))
        await bill_service.create_bill(db_session, user, BillCreateRequest(quotation_id=quotation.id))

        with pytest.raises(BusinessException) as exc_info:
            await bill_service.create_bill(db_session, user, BillCreateRequest(quotation_id=quotation.id))
        assert exc_info.value.error_code == "BILL_ALREADY_EXISTS"

    @pytest.mark.asyncio
    async def test_racing_second_bill_rejected(
        self, db_session, user, client_record, quotation_service, bill_service
    ):
        """A bill that lands after the existence check still maps to BILL_ALREADY_EXISTS"""
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("10"), rate_per_sqft=Decimal("10")
        ))
        first = await bill_service.create_bill(db_session, user, BillCreateRequest(quotation_id=quotation.id))

        with patch.object(DocumentStore, "find_bill_by_quotation", new=AsyncMock(return_value=None)):
            with pytest.raises(BusinessException) as exc_info:
                await bill_service.create_bill(db_session, user, BillCreateRequest(quotation_id=quotation.id))

        assert exc_info.value.error_code == "BILL_ALREADY_EXISTS"
        assert exc_info.value.status_code == 400
        bills = await bill_service.list_bills(db_session, user)
        assert [b.bill_number for b in bills] == [first.bill_number]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, db_session, user, client_record, quotation_service, bill_service):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("10"), rate_per_sqft=Decimal("10")
        ))
        bill = await bill_service.create_bill(db_session, user, BillCreateRequest(quotation_id=quotation.id))

        updated = await bill_service.update_bill(db_session, user, bill.id, BillUpdateRequest(notes="Site B"))
        assert updated.notes == "Site B"
        assert updated.bill_number == bill.bill_number

        assert await bill_service.delete_bill(db_session, user, bill.id) is True
        detail = await quotation_service.get_quotation_detail(db_session, user, quotation.id)
        assert detail.status == QuotationStatus.CONFIRMED
        assert detail.bill is None

    @pytest.mark.asyncio
    async def test_recent_bills_limit(self, db_session, user, client_record, quotation_service, bill_service):
        for _ in range(3):
            quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
                client_id=client_record.id, total_sqft=Decimal("10"), rate_per_sqft=Decimal("10")
            ))
            await bill_service.create_bill(db_session, user, BillCreateRequest(quotation_id=quotation.id))

        assert len(await bill_service.list_bills(db_session, user)) == 3
        assert len(await bill_service.list_bills(db_session, user, limit=2)) == 2


class TestReceiptService:

    @pytest.mark.asyncio
    async def test_receipts_for_quotation(
        self, db_session, user, client_record, quotation_service, receipt_service
    ):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("1000"), rate_per_sqft=Decimal("100")
        ))
        first = await receipt_service.create_receipt(db_session, user, ReceiptCreateRequest(
            quotation_id=quotation.id, date=date(2025, 1, 10), amount=Decimal("18000"), payment_mode="upi",
            transaction_reference="UPI-7781"
        ))
        second = await receipt_service.create_receipt(db_session, user, ReceiptCreateRequest(
            quotation_id=quotation.id, date=date(2025, 1, 12), amount=Decimal("50000"), payment_mode="cheque"
        ))

        assert first.receipt_number == "RCP/AARTI/2501/0001"
        assert second.receipt_number == "RCP/AARTI/2501/0002"
        assert second.total_received == Decimal("68000.00")
        assert second.balance == Decimal("50000.00")

        summary = await receipt_service.receipts_for_quotation(db_session, user, quotation.id)
        assert summary.total_received == Decimal("68000.00")
        assert summary.balance == Decimal("50000.00")
        assert [r.receipt_number for r in summary.receipts] == [second.receipt_number, first.receipt_number]

    @pytest.mark.asyncio
    async def test_receipt_for_unknown_quotation(self, db_session, user, company, receipt_service):
        with pytest.raises(NotFoundException):
            await receipt_service.create_receipt(db_session, user, ReceiptCreateRequest(
                quotation_id=404, amount=Decimal("1"), payment_mode="cash"
            ))

    @pytest.mark.asyncio
    async def test_receipt_of_other_company_hidden(
        self, db_session, user, other_company, client_record, quotation_service, receipt_service
    ):
        quotation = await quotation_service.create_quotation(db_session, user, QuotationCreateRequest(
            client_id=client_record.id, total_sqft=Decimal("10"), rate_per_sqft=Decimal("10")
        ))
        receipt = await receipt_service.create_receipt(db_session, user, ReceiptCreateRequest(
            quotation_id=quotation.id, amount=Decimal("5"), payment_mode="cash"
        ))
        outsider = CurrentUser(2, "outsider", other_company.id, "OTHER")

        with pytest.raises(NotFoundException):
            await receipt_service.get_receipt_detail(db_session, outsider, receipt.id)
        with pytest.raises(NotFoundException):
            await receipt_service.delete_receipt(db_session, outsider, receipt.id)

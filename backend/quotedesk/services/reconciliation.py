"""
Bill payment reconciliation

A bill's paid amount is always the sum of every receipt recorded against its
quotation; status follows from the remaining balance. Receipts may exceed the
bill total, which leaves a negative balance on a paid bill.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.crud.documents import DocumentStore
from quotedesk.services.pricing_engine import quantize, to_decimal


class PaymentStatus:
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


@dataclass(frozen=True)
class PaymentState:
    paid_amount: Decimal
    balance_amount: Decimal
    status: str


def reconcile(grand_total, receipts_sum=None) -> PaymentState:
    paid = quantize(to_decimal(receipts_sum))
    balance = quantize(to_decimal(grand_total)) - paid

    if balance <= 0:
        status = PaymentStatus.PAID
    elif paid > 0:
        status = PaymentStatus.PARTIAL
    else:
        status = PaymentStatus.PENDING

    return PaymentState(paid_amount=paid, balance_amount=balance, status=status)


async def reconcile_quotation_bill(db: AsyncSession, quotation_id: int) -> Optional[PaymentState]:
    """
    Recompute the payment state of the bill raised for ``quotation_id``

    Flushes pending receipt changes first so the sum sees them. Does nothing
    when the quotation has not been billed. The caller commits.
    """
    await db.flush()
    bill = await DocumentStore.find_bill_by_quotation(db, quotation_id)
    if bill is None:
        return None

    receipts_sum = await DocumentStore.sum_receipts(db, quotation_id)
    state = reconcile(bill.grand_total, receipts_sum)
    await DocumentStore.update_bill_payment_state(
        db, bill.id, state.paid_amount, state.balance_amount, state.status
    )
    logger.info(
        f"Bill {bill.bill_number} reconciled | paid {state.paid_amount} | "
        f"balance {state.balance_amount} | {state.status}"
    )
    return state

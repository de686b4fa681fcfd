"""
Bills (tax invoices) and payment receipts
"""
from sqlalchemy import (
    Column, String, DateTime, Date, Integer, ForeignKey, Index, Numeric, Text, UniqueConstraint
)
from sqlalchemy.sql import func

from quotedesk.core.database import Base


class Bill(Base):
    """Tax invoice; snapshot of one quotation plus its running payment state"""
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    quotation_id = Column(Integer, ForeignKey("quotations.id"), nullable=False)
    bill_number = Column(String(50), unique=True, nullable=False)
    date = Column(Date, nullable=False)
    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    cgst_percent = Column(Numeric(5, 2), nullable=False, default=9)
    cgst_amount = Column(Numeric(15, 2), nullable=False, default=0)
    sgst_percent = Column(Numeric(5, 2), nullable=False, default=9)
    sgst_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total_tax = Column(Numeric(15, 2), nullable=False, default=0)
    grand_total = Column(Numeric(15, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(15, 2), nullable=False, default=0)
    balance_amount = Column(Numeric(15, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending", comment="pending | partial | paid")
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("quotation_id", name="uq_bill_quotation"),
        Index("ix_bill_company", "company_id"),
    )


class Receipt(Base):
    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    quotation_id = Column(Integer, ForeignKey("quotations.id"), nullable=False)
    receipt_number = Column(String(50), unique=True, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_mode = Column(String(50), nullable=False)
    transaction_reference = Column(String(255))
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_receipt_company", "company_id"),
        Index("ix_receipt_quotation", "quotation_id"),
    )

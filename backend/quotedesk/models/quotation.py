"""
Quotation data model
"""
from sqlalchemy import Column, String, DateTime, Date, Integer, ForeignKey, Index, Numeric, Text, JSON
from sqlalchemy.sql import func

from quotedesk.core.database import Base


class Quotation(Base):
    """Quotation header with its pricing snapshot"""
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=True)
    quotation_number = Column(String(50), unique=True, nullable=False, comment="Immutable once assigned")
    date = Column(Date, nullable=False)
    total_sqft = Column(Numeric(15, 2), default=0)
    rate_per_sqft = Column(Numeric(15, 2), default=0)
    bedroom_count = Column(Integer)
    bedroom_config = Column(JSON)
    column_config = Column(JSON, comment="Client side table column layout")
    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=False, default="none", comment="none | percentage | flat")
    discount_value = Column(Numeric(15, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(15, 2), nullable=False, default=0)
    taxable_amount = Column(Numeric(15, 2), nullable=False, default=0)
    cgst_percent = Column(Numeric(5, 2), nullable=False, default=9)
    cgst_amount = Column(Numeric(15, 2), nullable=False, default=0)
    sgst_percent = Column(Numeric(5, 2), nullable=False, default=9)
    sgst_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total_tax = Column(Numeric(15, 2), nullable=False, default=0)
    grand_total = Column(Numeric(15, 2), nullable=False, default=0)
    terms_conditions = Column(Text)
    payment_plan = Column(Text, comment="JSON milestone list or free text")
    notes = Column(Text)
    status = Column(String(20), nullable=False, default="draft", comment="draft | confirmed | billed")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_quotation_company", "company_id"),
        Index("ix_quotation_client", "client_id"),
        Index("ix_quotation_created_at", "created_at"),
    )


class QuotationItem(Base):
    __tablename__ = "quotation_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False)
    room_label = Column(String(100))
    item_name = Column(Text, nullable=False, default="")
    description = Column(Text)
    material = Column(String(255))
    brand = Column(String(255))
    unit = Column(String(50))
    quantity = Column(Numeric(15, 2), default=0)
    rate = Column(Numeric(15, 2), default=0)
    amount = Column(Numeric(15, 2), default=0)
    remarks = Column(Text)
    custom_columns = Column(JSON)
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_item_quotation_sort", "quotation_id", "sort_order"),
    )

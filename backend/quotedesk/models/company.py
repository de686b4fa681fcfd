"""
Company and client master data
"""
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index, Numeric, Text
from sqlalchemy.sql import func

from quotedesk.core.database import Base


class Company(Base):
    """Tenant; every business document belongs to exactly one company"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, comment="Display name")
    code = Column(String(20), unique=True, nullable=False, comment="Short code used in document numbers")
    address = Column(Text)
    phone = Column(String(50))
    email = Column(String(255))
    gst_number = Column(String(50))
    bank_details = Column(Text)
    default_terms_conditions = Column(Text, comment="Copied onto new quotations without terms")
    default_payment_plan = Column(Text, comment="Copied onto new quotations without a payment plan")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    address = Column(Text)
    phone = Column(String(50))
    email = Column(String(255))
    project_location = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_client_company", "company_id"),
    )


class Package(Base):
    """Price package a quotation can be based on"""
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    rate_per_sqft = Column(Numeric(15, 2), default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

"""
API v1 router
"""
from fastapi import APIRouter

from quotedesk.api.v1.endpoints import bills, pdf, quotations, receipts

api_router = APIRouter()
api_router.include_router(quotations.router, prefix="/quotations", tags=["quotations"])
api_router.include_router(bills.router, prefix="/bills", tags=["bills"])
api_router.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
api_router.include_router(pdf.router, prefix="/pdf", tags=["pdf"])

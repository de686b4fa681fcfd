"""
Payment receipt API endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.core.database import get_db
from quotedesk.core.security import CurrentUser, get_current_user
from quotedesk.schemas.billing import (
    ReceiptCreateRequest, ReceiptUpdateRequest, ReceiptResponse,
    ReceiptDetailResponse, QuotationReceiptsResponse,
)
from quotedesk.schemas.common import DeleteResponse
from quotedesk.services.receipt_service import receipt_service

router = APIRouter()


@router.get("", response_model=List[ReceiptResponse])
async def list_receipts(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await receipt_service.list_receipts(db, user)


@router.get("/recent", response_model=List[ReceiptResponse])
async def recent_receipts(
    limit: int = Query(5, ge=1, le=100, description="Number of receipts"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await receipt_service.list_receipts(db, user, limit)


@router.get("/quotation/{quotation_id}", response_model=QuotationReceiptsResponse)
async def receipts_for_quotation(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Receipts of one quotation with the amount received and balance
    """
    return await receipt_service.receipts_for_quotation(db, user, quotation_id)


@router.get("/{receipt_id}", response_model=ReceiptDetailResponse)
async def get_receipt(
    receipt_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await receipt_service.get_receipt_detail(db, user, receipt_id)


@router.post("", response_model=ReceiptDetailResponse, status_code=201)
async def create_receipt(
    request: ReceiptCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Record a payment against a quotation

    Args:
        request: quotation id, amount, payment mode and reference

    Returns:
        The receipt with running totals; the quotation's bill is reconciled
    """
    return await receipt_service.create_receipt(db, user, request)


@router.put("/{receipt_id}", response_model=ReceiptDetailResponse)
async def update_receipt(
    receipt_id: int,
    request: ReceiptUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await receipt_service.update_receipt(db, user, receipt_id, request)


@router.delete("/{receipt_id}", response_model=DeleteResponse)
async def delete_receipt(
    receipt_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    await receipt_service.delete_receipt(db, user, receipt_id)
    return DeleteResponse(message="Receipt deleted")

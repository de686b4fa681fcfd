"""
Bill (tax invoice) API endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.core.database import get_db
from quotedesk.core.security import CurrentUser, get_current_user
from quotedesk.schemas.billing import (
    BillCreateRequest, BillUpdateRequest, BillResponse, BillDetailResponse
)
from quotedesk.schemas.common import DeleteResponse
from quotedesk.services.bill_service import bill_service

router = APIRouter()


@router.get("", response_model=List[BillResponse])
async def list_bills(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await bill_service.list_bills(db, user)


@router.get("/recent", response_model=List[BillResponse])
async def recent_bills(
    limit: int = Query(5, ge=1, le=100, description="Number of bills"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await bill_service.list_bills(db, user, limit)


@router.get("/{bill_id}", response_model=BillDetailResponse)
async def get_bill(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Bill detail with the quotation items and receipts
    """
    return await bill_service.get_bill_detail(db, user, bill_id)


@router.post("", response_model=BillDetailResponse, status_code=201)
async def create_bill(
    request: BillCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Raise the invoice for a quotation

    Args:
        request: quotation id, optional date and notes

    Returns:
        The bill with its number and current payment state
    """
    return await bill_service.create_bill(db, user, request)


@router.put("/{bill_id}", response_model=BillDetailResponse)
async def update_bill(
    bill_id: int,
    request: BillUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await bill_service.update_bill(db, user, bill_id, request)


@router.delete("/{bill_id}", response_model=DeleteResponse)
async def delete_bill(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    await bill_service.delete_bill(db, user, bill_id)
    return DeleteResponse(message="Bill deleted")

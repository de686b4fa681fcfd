"""
Quotation API endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.core.database import get_db
from quotedesk.core.security import CurrentUser, get_current_user
from quotedesk.schemas.common import DeleteResponse
from quotedesk.schemas.quotation import (
    QuotationCreateRequest, QuotationUpdateRequest,
    PricingPreviewRequest, PricingPreviewResponse,
    QuotationSummaryResponse, QuotationDetailResponse,
)
from quotedesk.services.quotation_service import quotation_service

router = APIRouter()


@router.get("", response_model=List[QuotationSummaryResponse])
async def list_quotations(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    List the company's quotations, newest first
    """
    return await quotation_service.list_quotations(db, user)


@router.get("/recent", response_model=List[QuotationSummaryResponse])
async def recent_quotations(
    limit: int = Query(5, ge=1, le=100, description="Number of quotations"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await quotation_service.list_quotations(db, user, limit)


@router.post("/calculate", response_model=PricingPreviewResponse)
async def calculate_pricing(
    request: PricingPreviewRequest,
    user: CurrentUser = Depends(get_current_user)
):
    """
    Price a quotation without saving it

    Args:
        request: area, rate, items, discount and tax inputs

    Returns:
        Subtotal, discount, tax breakdown and grand total
    """
    return quotation_service.preview_pricing(request)


@router.get("/{quotation_id}", response_model=QuotationDetailResponse)
async def get_quotation(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Quotation detail with items, receipts and bill
    """
    return await quotation_service.get_quotation_detail(db, user, quotation_id)


@router.post("", response_model=QuotationDetailResponse, status_code=201)
async def create_quotation(
    request: QuotationCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Create a quotation

    Args:
        request: client, area, items, discount, tax and terms

    Returns:
        The stored quotation with its allocated number
    """
    return await quotation_service.create_quotation(db, user, request)


@router.put("/{quotation_id}", response_model=QuotationDetailResponse)
async def update_quotation(
    quotation_id: int,
    request: QuotationUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    return await quotation_service.update_quotation(db, user, quotation_id, request)


@router.delete("/{quotation_id}", response_model=DeleteResponse)
async def delete_quotation(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    await quotation_service.delete_quotation(db, user, quotation_id)
    return DeleteResponse(message="Quotation deleted")

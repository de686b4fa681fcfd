"""
PDF download endpoints
"""
from io import BytesIO
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.core.database import get_db
from quotedesk.core.security import CurrentUser, get_current_user
from quotedesk.services.pdf_service import pdf_service

router = APIRouter()


def pdf_response(filename: str, content: bytes) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'}
    )


@router.get("/quotation/{quotation_id}")
async def quotation_pdf(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Render a quotation as PDF

    Args:
        quotation_id: quotation to render

    Returns:
        PDF stream, shown inline by the browser
    """
    filename, content = await pdf_service.quotation_pdf(db, user, quotation_id)
    return pdf_response(filename, content)


@router.get("/bill/{bill_id}")
async def bill_pdf(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    filename, content = await pdf_service.bill_pdf(db, user, bill_id)
    return pdf_response(filename, content)


@router.get("/receipt/{receipt_id}")
async def receipt_pdf(
    receipt_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    filename, content = await pdf_service.receipt_pdf(db, user, receipt_id)
    return pdf_response(filename, content)

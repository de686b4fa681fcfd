"""
PDF generation service

Loads a document, lays it out and renders it. Returns the download
filename with the bytes.
"""
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from quotedesk.core.security import CurrentUser
from quotedesk.services.pdf.documents import (
    load_bill_document, load_quotation_document, load_receipt_document
)
from quotedesk.services.pdf.layout import (
    TextMeasurer, layout_bill, layout_quotation, layout_receipt
)
from quotedesk.services.pdf.renderer import PdfRenderer, pdf_renderer, reportlab_text_height


def document_filename(label: str, number: str) -> str:
    """Quotation-AARTI-2501-0001.pdf; slashes are not valid in filenames"""
    return f"{label}-{(number or 'draft').replace('/', '-')}.pdf"


class PdfService:

    def __init__(self, renderer: PdfRenderer = None, measure: TextMeasurer = None):
        self.renderer = renderer or pdf_renderer
        self.measure = measure or reportlab_text_height

    async def quotation_pdf(self, db: AsyncSession, user: CurrentUser, quotation_id: int) -> Tuple[str, bytes]:
        doc = await load_quotation_document(db, user.company_id, quotation_id)
        layout = layout_quotation(doc, self.measure)
        content = self.renderer.render(layout, title=f"Quotation {doc.number}")
        logger.info(f"Quotation PDF generated: {doc.number} | {layout.page_count} pages")
        return document_filename("Quotation", doc.number), content

    async def bill_pdf(self, db: AsyncSession, user: CurrentUser, bill_id: int) -> Tuple[str, bytes]:
        doc = await load_bill_document(db, user.company_id, bill_id)
        layout = layout_bill(doc, self.measure)
        content = self.renderer.render(layout, title=f"Invoice {doc.number}")
        logger.info(f"Invoice PDF generated: {doc.number} | {layout.page_count} pages")
        return document_filename("Invoice", doc.number), content

    async def receipt_pdf(self, db: AsyncSession, user: CurrentUser, receipt_id: int) -> Tuple[str, bytes]:
        doc = await load_receipt_document(db, user.company_id, receipt_id)
        layout = layout_receipt(doc, self.measure)
        content = self.renderer.render(layout, title=f"Receipt {doc.number}")
        logger.info(f"Receipt PDF generated: {doc.number}")
        return document_filename("Receipt", doc.number), content


pdf_service = PdfService()

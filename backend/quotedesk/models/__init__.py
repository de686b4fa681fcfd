from quotedesk.models.company import Company, Client, Package
from quotedesk.models.quotation import Quotation, QuotationItem
from quotedesk.models.billing import Bill, Receipt

__all__ = [
    "Company",
    "Client",
    "Package",
    "Quotation",
    "QuotationItem",
    "Bill",
    "Receipt",
]

from quotedesk.crud.documents import DocumentStore
from quotedesk.crud.quotation import QuotationCRUD
from quotedesk.crud.billing import BillingCRUD

__all__ = ["DocumentStore", "QuotationCRUD", "BillingCRUD"]

"""
Hospital billing client: invoice pricing and a session-aware REST client.
"""

from hospital_billing.auth import AuthManager
from hospital_billing.billing import InvoiceDraft, can_transition, ensure_transition
from hospital_billing.client import ApiClient
from hospital_billing.exceptions import (
    ApiError,
    AuthenticationError,
    BillingClientError,
    DiscountNotAllowed,
    InvalidStatusTransition,
    ResponseValidationError,
    TransportError,
)
from hospital_billing.pricing import InvoiceTotals, invoice_totals, line_total, money
from hospital_billing.session import Session, SessionState
from hospital_billing.storage import FileTokenStore, MemoryTokenStore

__version__ = "1.0.0"

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthManager",
    "AuthenticationError",
    "BillingClientError",
    "DiscountNotAllowed",
    "FileTokenStore",
    "InvalidStatusTransition",
    "InvoiceDraft",
    "InvoiceTotals",
    "MemoryTokenStore",
    "ResponseValidationError",
    "Session",
    "SessionState",
    "TransportError",
    "can_transition",
    "ensure_transition",
    "invoice_totals",
    "line_total",
    "money",
]

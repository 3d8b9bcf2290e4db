from enum import Enum
from typing import Dict, Optional

from storefront.schemas.base import CamelBase
from storefront.schemas.order import PendingOrder


class PaymentState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CONFIRMING = "confirming"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Card entry on the payment page. Kept in memory only, never persisted.
class CardDetails(CamelBase):
    card_name: str = ""
    card_number: str = ""
    card_exp: str = "" # MM/YY
    card_cvc: str = ""


class AuthorizationResult(CamelBase):
    approved: bool
    message: Optional[str] = None


# Outcome of one payment attempt
class PaymentResult(CamelBase):
    state: PaymentState
    order_id: Optional[str] = None
    message: Optional[str] = None
    errors: Dict[str, str] = {}
    missing_order: bool = False
    cart_cleared: bool = False
    abandoned: bool = False


# Payment page view: "ready" with the order to pay, or "missing_order"
class PaymentView(CamelBase):
    status: str
    state: PaymentState
    in_progress: bool = False
    pending_order: Optional[PendingOrder] = None
    total: Optional[str] = None
    order_id: Optional[str] = None
    message: Optional[str] = None

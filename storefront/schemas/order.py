from datetime import datetime, timezone
from enum import Enum
from pydantic import Field
from typing import Dict, List, Optional

from storefront.schemas.base import CamelBase
from storefront.schemas.cart import CartLine, Totals
from storefront.schemas.customer import Customer


class ShippingMethod(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class PaymentMethod(str, Enum):
    CARD = "card"
    COD = "cod" # Cash on delivery


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Validated, not-yet-paid snapshot handed from checkout to payment.
# Also the body sent to POST /orders.
class PendingOrder(CamelBase):
    customer: Customer
    items: List[CartLine]
    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    payment_method: PaymentMethod = PaymentMethod.CARD
    totals: Totals
    promo_code: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


# Order accepted by the backend
class PlacedOrder(CamelBase):
    id: str
    cart_cleared: bool = True


# Input schema for the checkout form submission
class CheckoutPayload(CamelBase):
    customer: Customer
    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    payment_method: PaymentMethod = PaymentMethod.CARD


# Output schema for the checkout page
class CheckoutOut(CamelBase):
    customer: Customer
    items: List[CartLine]
    shipping_method: ShippingMethod
    totals: Totals
    total: str
    can_submit: bool
    errors: Dict[str, str] = {}


# Response after the pending order was committed
class CheckoutResult(CamelBase):
    pending_order: PendingOrder
    next: str = "/pay"

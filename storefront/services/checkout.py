# storefront/services/checkout.py
import logging
import re
from typing import Dict, List, Optional

from storefront.config import Settings, settings
from storefront.errors import ValidationError
from storefront.schemas.cart import CartLine, Totals
from storefront.schemas.customer import Customer
from storefront.schemas.order import PaymentMethod, PendingOrder, ShippingMethod
from storefront.services.cart_store import CartStore
from storefront.services.handoff import OrderHandoff

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NAME_LENGTH = 2
FORM_ERROR = "Please fill all required fields correctly."

REQUIRED_FIELDS = ("street", "city", "postal_code", "country")


class CheckoutValidator:
    """Field rules of the checkout form. Each rule is independent of the others."""

    def __init__(self, customer: Customer, items: List[CartLine]):
        self.customer = customer
        self.items = items

    def errors(self) -> Dict[str, str]:
        c = self.customer
        errors = {}
        for field in ("first_name", "last_name"):
            if len((getattr(c, field) or "").strip()) < MIN_NAME_LENGTH:
                errors[field] = f"At least {MIN_NAME_LENGTH} characters required"
        if not EMAIL_RE.match(c.email or ""):
            errors["email"] = "Enter a valid email address"
        for field in REQUIRED_FIELDS:
            if not (getattr(c, field) or "").strip():
                errors[field] = "Required"
        if not self.items:
            errors["cart"] = "Your cart is empty"
        return errors

    def is_valid(self) -> bool:
        return not self.errors()

    def validate(self) -> None:
        errors = self.errors()
        if errors:
            raise ValidationError(FORM_ERROR, errors)


class CheckoutFlow:
    """Checkout page: prefilled form, live totals, and the hand-off to payment."""

    def __init__(self, cart: CartStore, handoff: OrderHandoff, config: Settings = settings):
        self.cart = cart
        self.handoff = handoff
        self._config = config

    def prefill(self) -> Customer:
        saved = self.handoff.saved_customer()
        if saved is not None:
            return saved
        return Customer(country=self._config.DEFAULT_COUNTRY)

    def totals(self, shipping_method: ShippingMethod = ShippingMethod.STANDARD) -> Totals:
        return self.cart.totals(shipping_method)

    def submit(self, customer: Customer, shipping_method: ShippingMethod = ShippingMethod.STANDARD,
               payment_method: PaymentMethod = PaymentMethod.CARD) -> PendingOrder:
        self.cart.sync()
        items = self.cart.items
        CheckoutValidator(customer, items).validate()

        totals = self.cart.totals(shipping_method)
        return self.handoff.commit(
            customer,
            items,
            shipping_method,
            totals,
            payment_method=payment_method,
            promo_code=self._applied_promo(),
        )

    def _applied_promo(self) -> Optional[str]:
        # Only codes that actually produced a discount travel with the order
        code = self.cart.promo_code
        return code if code in self._config.PROMO_CODES else None

# storefront/services/handoff.py
import logging
from typing import List, Optional

from storefront.schemas.cart import CartLine, Totals
from storefront.schemas.customer import Customer
from storefront.schemas.order import PaymentMethod, PendingOrder, ShippingMethod
from storefront.utils.store import CUSTOMER_PROFILE, PENDING_ORDER, PersistentStore

logger = logging.getLogger(__name__)


class OrderHandoff:
    """Keeps the single pending order between the checkout and payment steps.

    The record is replaced on every checkout submission and deleted only after
    the order was placed; leaving or refreshing the payment page keeps it.
    """

    def __init__(self, store: PersistentStore):
        self._store = store

    def commit(self, customer: Customer, items: List[CartLine], shipping_method: ShippingMethod,
               totals: Totals, payment_method: PaymentMethod = PaymentMethod.CARD,
               promo_code: Optional[str] = None) -> PendingOrder:
        order = PendingOrder(
            customer=customer.model_copy(),
            items=[it.model_copy() for it in items],
            shipping_method=shipping_method,
            payment_method=payment_method,
            totals=totals.model_copy(),
            promo_code=promo_code,
        )

        # Profile and pending order land together or not at all
        values = {PENDING_ORDER: order}
        if customer.save_info:
            values[CUSTOMER_PROFILE] = customer
        self._store.set_many(values)

        self._store.log_event(
            "CHECKOUT_COMMIT",
            "orders",
            meta={"items": len(order.items), "total": order.totals.total_cents, "payment": order.payment_method.value},
        )
        return order

    def peek(self) -> Optional[PendingOrder]:
        return self._store.get(PENDING_ORDER)

    def discard(self) -> None:
        self._store.remove(PENDING_ORDER)

    def saved_customer(self) -> Optional[Customer]:
        return self._store.get(CUSTOMER_PROFILE)

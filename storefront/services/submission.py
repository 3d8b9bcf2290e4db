# storefront/services/submission.py
import logging

from storefront.errors import ApiError, StorageWriteError, SubmissionError
from storefront.schemas.order import PendingOrder, PlacedOrder
from storefront.services.cart_store import CartStore
from storefront.utils.api_client import StorefrontApiClient
from storefront.utils.store import CART, PENDING_ORDER, PersistentStore

logger = logging.getLogger(__name__)


class OrderSubmission:
    def __init__(self, api: StorefrontApiClient, store: PersistentStore, cart: CartStore):
        self._api = api
        self._store = store
        self._cart = cart

    async def submit(self, order: PendingOrder) -> PlacedOrder:
        """Places the order with the backend, then clears the cart and the pending order.

        On failure nothing local is touched, so the same pending order can be
        submitted again.
        """
        try:
            order_id = await self._api.create_order(order)
        except ApiError as e:
            self._store.log_event("ORDER_SUBMIT", "orders", status="FAIL",
                                  meta={"status_code": e.status_code, "error": e.message[:200]})
            raise SubmissionError(e.message, status_code=e.status_code) from e

        cleared = self._finalize(order_id, order)
        self._store.log_event("ORDER_SUBMIT", "orders",
                              meta={"order_id": order_id, "total": order.totals.total_cents, "cart_cleared": cleared})
        return PlacedOrder(id=order_id, cart_cleared=cleared)

    def _finalize(self, order_id: str, order: PendingOrder) -> bool:
        # The backend is the source of truth: a failed local clean-up does not undo the order
        if self._store.get(PENDING_ORDER) != order:
            # A newer checkout replaced the submitted order; its cart and pending order stay
            logger.warning("Order %s was placed but the pending order changed meanwhile, keeping local state", order_id)
            return False
        try:
            self._store.set_many({CART: [], PENDING_ORDER: None})
        except StorageWriteError:
            logger.exception("Order %s was placed but the cart and pending order could not be cleared", order_id)
            return False
        self._cart.load()
        return True

# storefront/utils/gateway.py
import abc
import asyncio
import logging

from storefront.config import settings
from storefront.schemas.order import PendingOrder
from storefront.schemas.payment import AuthorizationResult, CardDetails

logger = logging.getLogger(__name__)


class AuthorizationGateway(abc.ABC):
    """Confirms a card payment before the order is submitted."""

    @abc.abstractmethod
    async def authorize(self, order: PendingOrder, card: CardDetails) -> AuthorizationResult:
        ...


class MockAuthorizationGateway(AuthorizationGateway):
    # Stands in for a real provider: waits a fixed delay, then approves
    def __init__(self, delay_seconds: float = None):
        self.delay_seconds = settings.PAYMENT_CONFIRM_DELAY_SECONDS if delay_seconds is None else delay_seconds

    async def authorize(self, order: PendingOrder, card: CardDetails) -> AuthorizationResult:
        await asyncio.sleep(self.delay_seconds)
        last4 = card.card_number.replace(" ", "")[-4:]
        logger.info("Mock authorization approved %s cents on card ending %s", order.totals.total_cents, last4)
        return AuthorizationResult(approved=True)

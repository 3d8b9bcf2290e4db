# storefront/services/storefront.py
import httpx
from fastapi import Request

from storefront.config import Settings, settings
from storefront.database import init_db, make_engine, make_session_factory
from storefront.services.cart_store import CartStore
from storefront.services.checkout import CheckoutFlow
from storefront.services.handoff import OrderHandoff
from storefront.services.payment import PaymentProcessor
from storefront.services.submission import OrderSubmission
from storefront.utils.api_client import StorefrontApiClient
from storefront.utils.auth import AuthSession
from storefront.utils.gateway import AuthorizationGateway, MockAuthorizationGateway
from storefront.utils.store import PersistentStore


class Storefront:
    """The order pipeline of one tab, wired around a shared durable store."""

    def __init__(self, store: PersistentStore, *, config: Settings = settings,
                 api: StorefrontApiClient = None, gateway: AuthorizationGateway = None):
        self.config = config
        self.store = store
        self.auth = AuthSession(store)
        self.api = api or StorefrontApiClient(config.API_URL, auth=self.auth, timeout=config.ORDER_API_TIMEOUT_SECONDS)
        self.cart = CartStore(store, config)
        self.handoff = OrderHandoff(store)
        self.checkout = CheckoutFlow(self.cart, self.handoff, config)
        self.submission = OrderSubmission(self.api, store, self.cart)
        self.payment = PaymentProcessor(
            self.handoff,
            self.submission,
            gateway or MockAuthorizationGateway(config.PAYMENT_CONFIRM_DELAY_SECONDS),
        )

    @classmethod
    def from_settings(cls, config: Settings = settings, *, tab_id: str = None,
                      transport: httpx.AsyncBaseTransport = None, gateway: AuthorizationGateway = None):
        engine = make_engine(config.STORE_DATABASE_URL)
        init_db(engine)
        store = PersistentStore(make_session_factory(engine), tab_id=tab_id, prefix=config.STORE_KEY_PREFIX)
        storefront = cls(store, config=config, gateway=gateway)
        if transport is not None:
            storefront.api.transport = transport
        return storefront


def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront

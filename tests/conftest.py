import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from storefront.config import Settings
from storefront.database import init_db, make_session_factory
from storefront.schemas.cart import CartLine
from storefront.schemas.customer import Customer
from storefront.schemas.payment import CardDetails
from storefront.services.storefront import Storefront
from storefront.utils.store import PersistentStore


class FakeBackend:
    """Catalog and order backend double that records every request.

    Order responses are queued with ``reply()``; when the queue is empty an
    order is accepted with a generated id.
    """

    def __init__(self):
        self.requests = []
        self.responses = []
        self.perfumes = {}

    def reply(self, status_code, body=None, exc=None):
        self.responses.append((status_code, body, exc))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "GET" and path.startswith("/api/perfumes/"):
            slug = path.rsplit("/", 1)[-1]
            if slug in self.perfumes:
                return httpx.Response(200, json=self.perfumes[slug])
            return httpx.Response(404, json={"message": "Perfume not found"})

        if not self.responses:
            return httpx.Response(201, json={"id": f"ord_{len(self.order_requests)}"})
        status_code, body, exc = self.responses.pop(0)
        if exc is not None:
            raise exc
        if body is None:
            return httpx.Response(status_code)
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)

    @property
    def order_requests(self):
        return [r for r in self.requests if r.method == "POST" and r.url.path == "/api/orders"]

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)


@pytest.fixture()
def config():
    return Settings(API_URL="http://backend.test", PAYMENT_CONFIRM_DELAY_SECONDS=0, STORE_KEY_PREFIX="yulishop_")


@pytest.fixture()
def engine():
    # One in-memory database shared by every "tab" of a test
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def store(session_factory):
    return PersistentStore(session_factory, tab_id="tab-a", prefix="yulishop_")


@pytest.fixture()
def other_tab(session_factory):
    return PersistentStore(session_factory, tab_id="tab-b", prefix="yulishop_")


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def storefront(store, config, backend):
    sf = Storefront(store, config=config)
    sf.api.transport = backend.transport
    return sf


@pytest.fixture()
def make_line():
    def _make(**overrides):
        data = dict(
            id="P1-50",
            product_id="p1",
            sku="P1-50",
            name="Yuli A",
            brand="Yuli",
            variant_label="50 ml",
            unit_price_cents=7900,
            quantity=1,
            max_quantity=6,
        )
        data.update(overrides)
        if "sku" in overrides and "id" not in overrides:
            data["id"] = overrides["sku"]
        return CartLine(**data)

    return _make


@pytest.fixture()
def customer():
    return Customer(
        first_name="Joulia",
        last_name="Martin",
        email="joulia@example.com",
        street="Hauptstraße 5",
        city="Berlin",
        postal_code="10115",
        country="Germany",
    )


@pytest.fixture()
def card():
    return CardDetails(card_name="Joulia Martin", card_number="4242 4242 4242 4242", card_exp="12/29", card_cvc="123")

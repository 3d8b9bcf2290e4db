import pytest

from storefront.errors import ValidationError
from storefront.schemas.customer import Customer
from storefront.schemas.order import PaymentMethod, ShippingMethod
from storefront.services.cart_store import CartStore
from storefront.services.checkout import FORM_ERROR, CheckoutFlow, CheckoutValidator
from storefront.services.handoff import OrderHandoff
from storefront.utils.store import CUSTOMER_PROFILE, PENDING_ORDER


@pytest.fixture()
def cart(store, config):
    return CartStore(store, config)


@pytest.fixture()
def flow(cart, store, config):
    return CheckoutFlow(cart, OrderHandoff(store), config)


class TestValidator:
    def test_complete_form_is_valid(self, customer, make_line):
        validator = CheckoutValidator(customer, [make_line()])

        assert validator.errors() == {}
        assert validator.is_valid()

    def test_names_need_two_characters(self, customer, make_line):
        customer = customer.model_copy(update={"first_name": " J ", "last_name": "Li"})

        errors = CheckoutValidator(customer, [make_line()]).errors()

        assert set(errors) == {"first_name"}

    @pytest.mark.parametrize("email", ["", "joulia", "joulia@example", "jou lia@example.com", "@example.com"])
    def test_invalid_email(self, customer, make_line, email):
        customer = customer.model_copy(update={"email": email})

        assert "email" in CheckoutValidator(customer, [make_line()]).errors()

    @pytest.mark.parametrize("email", ["joulia@shop.test", "j.o+perfume@mail.example.de"])
    def test_any_local_at_domain_dot_tld_address_is_accepted(self, customer, make_line, email):
        customer = customer.model_copy(update={"email": email})

        assert "email" not in CheckoutValidator(customer, [make_line()]).errors()

    def test_blank_address_fields_are_required(self, customer, make_line):
        customer = customer.model_copy(update={"street": "  ", "city": "", "postal_code": "", "country": ""})

        errors = CheckoutValidator(customer, [make_line()]).errors()

        assert set(errors) == {"street", "city", "postal_code", "country"}

    def test_empty_cart_blocks_submission(self, customer):
        assert CheckoutValidator(customer, []).errors() == {"cart": "Your cart is empty"}

    def test_phone_and_notes_are_optional(self, customer, make_line):
        customer = customer.model_copy(update={"phone": None, "notes": None})

        assert CheckoutValidator(customer, [make_line()]).is_valid()

    def test_validate_raises_with_one_message(self, make_line):
        with pytest.raises(ValidationError) as exc_info:
            CheckoutValidator(Customer(), [make_line()]).validate()

        assert exc_info.value.message == FORM_ERROR
        assert {"first_name", "last_name", "email", "street"} <= set(exc_info.value.errors)


class TestPrefill:
    def test_defaults_to_configured_country(self, flow):
        customer = flow.prefill()

        assert customer.first_name == ""
        assert customer.country == "Germany"

    def test_uses_saved_profile(self, flow, store, customer):
        store.set(CUSTOMER_PROFILE, customer)

        assert flow.prefill() == customer


class TestSubmit:
    def test_commits_pending_order(self, flow, cart, store, customer, make_line):
        cart.add(make_line())
        cart.apply_promo("welcome10")

        pending = flow.submit(customer, ShippingMethod.STANDARD)

        assert store.get(PENDING_ORDER) == pending
        assert pending.items == cart.items
        assert pending.totals.total_cents == 7600
        assert pending.promo_code == "WELCOME10"
        assert pending.payment_method == PaymentMethod.CARD

    def test_express_shipping_changes_totals(self, flow, cart, customer, make_line):
        cart.add(make_line())

        pending = flow.submit(customer, ShippingMethod.EXPRESS)

        assert pending.totals.shipping_cents == 990
        assert pending.totals.total_cents == 8890

    def test_unknown_promo_does_not_travel_with_order(self, flow, cart, customer, make_line):
        cart.add(make_line())
        cart.apply_promo("BOGUS")

        assert flow.submit(customer).promo_code is None

    def test_saves_profile_when_asked(self, flow, cart, store, customer, make_line):
        cart.add(make_line())

        flow.submit(customer)

        assert store.get(CUSTOMER_PROFILE) == customer

    def test_does_not_save_profile_when_opted_out(self, flow, cart, store, customer, make_line):
        cart.add(make_line())

        flow.submit(customer.model_copy(update={"save_info": False}))

        assert store.get(CUSTOMER_PROFILE) is None
        assert store.get(PENDING_ORDER) is not None

    def test_invalid_form_writes_nothing(self, flow, cart, store, customer, make_line):
        cart.add(make_line())

        with pytest.raises(ValidationError):
            flow.submit(customer.model_copy(update={"email": "nope"}))

        assert store.get(PENDING_ORDER) is None
        assert store.get(CUSTOMER_PROFILE) is None

    def test_cart_emptied_in_other_tab_blocks_submission(self, flow, cart, other_tab, customer, make_line):
        cart.add(make_line())
        CartStore(other_tab).clear()

        with pytest.raises(ValidationError) as exc_info:
            flow.submit(customer)

        assert "cart" in exc_info.value.errors

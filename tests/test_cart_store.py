from unittest.mock import patch

import pytest

from storefront.errors import CartLineNotFoundError, OutOfStockError, StorageWriteError
from storefront.models.store_entry import StoreEntry
from storefront.schemas.catalog import Perfume
from storefront.schemas.order import ShippingMethod
from storefront.services.cart_store import CartStore, line_from_variant
from storefront.utils.store import CART, PROMO_CODE


@pytest.fixture()
def cart(store, config):
    return CartStore(store, config)


class TestAdd:
    def test_same_sku_merges_instead_of_duplicating(self, cart, make_line):
        cart.add(make_line(quantity=2))
        items = cart.add(make_line(quantity=1))

        assert len(items) == 1
        assert items[0].quantity == 3

    def test_merge_never_exceeds_max_quantity(self, cart, make_line):
        cart.add(make_line(quantity=4))
        items = cart.add(make_line(quantity=4))

        assert items[0].quantity == 6

    def test_new_line_is_clamped_to_stock(self, cart, make_line):
        # Lines built elsewhere may ask for more than the stock allows
        line = make_line(max_quantity=10)
        line.quantity = 8
        line.max_quantity = 3

        items = cart.add(line)

        assert items[0].quantity == 3

    def test_out_of_stock_line_is_not_added(self, cart, make_line):
        items = cart.add(make_line(max_quantity=0))

        assert items == []

    def test_fresher_stock_caps_existing_line(self, cart, make_line):
        cart.add(make_line(quantity=5))
        items = cart.add(make_line(quantity=1, max_quantity=4))

        assert items[0].max_quantity == 4
        assert items[0].quantity == 4

    def test_different_skus_are_separate_lines(self, cart, make_line):
        cart.add(make_line())
        items = cart.add(make_line(sku="P1-100", unit_price_cents=11900))

        assert [it.sku for it in items] == ["P1-50", "P1-100"]

    def test_add_persists(self, cart, store, make_line):
        cart.add(make_line())

        assert store.get(CART) == [make_line()]

    def test_failed_write_leaves_cart_unchanged(self, cart, store, make_line):
        cart.add(make_line())

        with patch.object(store, "set", side_effect=StorageWriteError("Could not save cart")):
            with pytest.raises(StorageWriteError):
                cart.add(make_line(sku="P2-50"))

        assert [it.sku for it in cart.items] == ["P1-50"]


class TestSetQuantity:
    def test_below_one_clamps_to_one(self, cart, make_line):
        cart.add(make_line(quantity=3))

        items = cart.set_quantity("P1-50", 0)

        assert items[0].quantity == 1

    def test_above_max_clamps_to_max(self, cart, make_line):
        cart.add(make_line())

        items = cart.set_quantity("P1-50", 50)

        assert items[0].quantity == 6

    def test_unknown_stock_uses_default_cap(self, cart, make_line):
        cart.add(make_line(max_quantity=None))

        items = cart.set_quantity("P1-50", 500)

        assert items[0].quantity == 99

    def test_unknown_line(self, cart):
        with pytest.raises(CartLineNotFoundError):
            cart.set_quantity("nope", 2)


class TestRemoveAndClear:
    def test_remove(self, cart, store, make_line):
        cart.add(make_line())
        cart.add(make_line(sku="P2-50"))

        items = cart.remove("P1-50")

        assert [it.sku for it in items] == ["P2-50"]
        assert [it.sku for it in store.get(CART)] == ["P2-50"]

    def test_remove_unknown_line(self, cart):
        with pytest.raises(CartLineNotFoundError):
            cart.remove("nope")

    def test_clear_persists_empty_list(self, cart, store, make_line):
        cart.add(make_line())

        assert cart.clear() == []
        assert store.get_raw(CART) == "[]"

    def test_reload_reads_persisted_lines(self, cart, store, config, make_line):
        cart.add(make_line(quantity=2))

        assert CartStore(store, config).items == cart.items

    def test_sold_out_lines_are_dropped_on_load(self, store, config, make_line):
        store.set(CART, [make_line(max_quantity=0), make_line(sku="P2-50")])

        cart = CartStore(store, config)

        assert [it.sku for it in cart.items] == ["P2-50"]
        assert cart.totals().subtotal_cents == 7900

    def test_stored_quantity_above_stock_is_capped(self, store, config, session_factory):
        legacy = '[{"productId": "p1", "sku": "P1-50", "name": "Yuli A", "priceCents": 7900, "qty": 5, "max": 3}]'
        db = session_factory()
        try:
            db.add(StoreEntry(key="yulishop_cart", value=legacy, version=1, writer="legacy"))
            db.commit()
        finally:
            db.close()

        assert CartStore(store, config).items[0].quantity == 3


class TestCrossTab:
    def test_clear_in_other_tab_is_seen_on_next_operation(self, store, other_tab, config, make_line):
        tab_a = CartStore(store, config)
        tab_b = CartStore(other_tab, config)
        tab_a.add(make_line())

        tab_b.clear()
        # Nothing observed yet in tab A
        assert len(tab_a.items) == 1

        totals = tab_a.totals()
        assert tab_a.items == []
        assert totals.total_cents == 0

    def test_mutation_builds_on_other_tab_write(self, store, other_tab, config, make_line):
        tab_a = CartStore(store, config)
        tab_b = CartStore(other_tab, config)
        tab_a.add(make_line())
        tab_b.load()

        tab_b.add(make_line(sku="P2-50"))
        items = tab_a.add(make_line(sku="P3-50"))

        assert [it.sku for it in items] == ["P1-50", "P2-50", "P3-50"]
        assert [it.sku for it in store.get(CART)] == ["P1-50", "P2-50", "P3-50"]


class TestPromo:
    def test_apply_promo_discounts_totals(self, cart, make_line):
        cart.add(make_line())

        assert cart.apply_promo(" welcome10 ") == "WELCOME10"
        totals = cart.totals(ShippingMethod.STANDARD)

        assert totals.discount_cents == 790
        assert totals.total_cents == 7600

    def test_unknown_code_is_kept_without_discount(self, cart, store, make_line):
        cart.add(make_line())

        cart.apply_promo("BOGUS")

        assert store.get(PROMO_CODE) == "BOGUS"
        assert cart.totals().discount_cents == 0

    def test_clear_promo(self, cart, make_line):
        cart.add(make_line())
        cart.apply_promo("WELCOME10")

        cart.clear_promo()

        assert cart.promo_code is None
        assert cart.totals().total_cents == 8390


class TestLineFromVariant:
    @pytest.fixture()
    def perfume(self):
        return Perfume.model_validate({
            "_id": "p1",
            "slug": "yuli-a",
            "name": "Yuli A",
            "brand": "Yuli",
            "images": ["https://cdn.example/yuli-a.jpg"],
            "variants": [
                {"sku": "P1-50", "volumeMl": 50, "priceCents": 7900, "stock": 6},
                {"sku": "P1-100", "volumeMl": 100, "priceCents": 11900, "stock": 0},
            ],
        })

    def test_builds_line_capped_at_stock(self, perfume):
        line = line_from_variant(perfume, perfume.variant("P1-50"), quantity=10)

        assert line.id == "P1-50"
        assert line.product_id == "p1"
        assert line.variant_label == "50 ml"
        assert line.image == "https://cdn.example/yuli-a.jpg"
        assert line.unit_price_cents == 7900
        assert line.quantity == 6
        assert line.max_quantity == 6

    def test_out_of_stock_variant(self, perfume):
        with pytest.raises(OutOfStockError):
            line_from_variant(perfume, perfume.variant("P1-100"))

    def test_unknown_sku_falls_back_to_first_variant(self, perfume):
        assert perfume.variant("nope").sku == "P1-50"

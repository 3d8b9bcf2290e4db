# storefront/services/cart_store.py
import logging
from typing import List, Optional

from storefront.config import Settings, settings
from storefront.errors import CartLineNotFoundError, OutOfStockError
from storefront.schemas.cart import CartLine, Totals
from storefront.schemas.catalog import Perfume, Variant
from storefront.schemas.order import ShippingMethod
from storefront.utils import pricing
from storefront.utils.store import CART, PROMO_CODE, PersistentStore

logger = logging.getLogger(__name__)


def clamp(n: int, low: int, high: int) -> int:
    return min(max(n, low), high)


def line_from_variant(perfume: Perfume, variant: Variant, quantity: int = 1) -> CartLine:
    """Builds a cart line from catalog data, capped at the variant's stock."""
    if variant.stock <= 0:
        raise OutOfStockError(f"{perfume.name} ({variant.volume_ml} ml) is out of stock", {"sku": "Out of stock"})
    return CartLine(
        id=variant.sku,
        product_id=perfume.id,
        sku=variant.sku,
        name=perfume.name,
        slug=perfume.slug,
        brand=perfume.brand,
        variant_label=f"{variant.volume_ml} ml" if variant.volume_ml else None,
        volume_ml=variant.volume_ml,
        image=perfume.cover,
        unit_price_cents=variant.price_cents,
        quantity=clamp(quantity, 1, variant.stock),
        max_quantity=variant.stock,
    )


class CartStore:
    """Owns the cart lines of this tab and keeps them in the durable store.

    Every operation first syncs with the store, so a change made in another
    tab (for instance a cart cleared there) is picked up before this tab
    reads or mutates the cart. Writes are last-write-wins.
    """

    def __init__(self, store: PersistentStore, config: Settings = settings):
        self._store = store
        self._config = config
        self._items: List[CartLine] = self.load()
        self._unsubscribe = store.on_external_change(CART, self._on_external_change)

    def _on_external_change(self, key: str) -> None:
        logger.info("Cart changed in another tab, reloading")
        self.load()

    def _max_for(self, line: CartLine) -> int:
        if line.max_quantity is None:
            return self._config.DEFAULT_MAX_QUANTITY
        return line.max_quantity

    def _persist(self, items: List[CartLine]) -> List[CartLine]:
        # Memory only follows a successful write
        self._store.set(CART, items)
        self._items = items
        return self.items

    def _find(self, line_id: str) -> CartLine:
        for it in self._items:
            if it.id == line_id:
                return it
        raise CartLineNotFoundError(f"Cart line {line_id!r} not found")

    @property
    def items(self) -> List[CartLine]:
        return [it.model_copy() for it in self._items]

    def load(self) -> List[CartLine]:
        """Reads the cart from the store; missing or malformed data gives an empty cart."""
        items = self._store.get(CART)
        sold_out = [it.sku for it in items if it.max_quantity == 0]
        if sold_out:
            logger.warning("Dropping sold-out lines from the cart: %s", ", ".join(sold_out))
        self._items = [it for it in items if it.max_quantity != 0]
        return self.items

    def sync(self) -> None:
        self._store.sync()

    def close(self) -> None:
        self._unsubscribe()

    def add(self, line: CartLine) -> List[CartLine]:
        self.sync()
        if line.max_quantity == 0:
            logger.warning("Not adding %s: no stock left", line.sku)
            return self.items

        items = self.items
        for existing in items:
            if existing.sku == line.sku:
                # The incoming line carries the freshest stock figure
                if line.max_quantity is not None:
                    existing.max_quantity = line.max_quantity
                existing.quantity = min(existing.quantity + line.quantity, self._max_for(existing))
                break
        else:
            new_line = line.model_copy()
            new_line.quantity = clamp(new_line.quantity, 1, self._max_for(new_line))
            items.append(new_line)

        items = self._persist(items)
        self._store.log_event("CART_ADD", "cart", meta={"sku": line.sku, "qty": line.quantity, "cart_items": len(items)})
        return items

    def set_quantity(self, line_id: str, quantity: int) -> List[CartLine]:
        self.sync()
        items = self.items
        line = next((it for it in items if it.id == line_id), None)
        if line is None:
            raise CartLineNotFoundError(f"Cart line {line_id!r} not found")
        line.quantity = clamp(quantity, 1, self._max_for(line))

        items = self._persist(items)
        self._store.log_event("CART_UPDATE", "cart", meta={"item_id": line_id, "qty": line.quantity})
        return items

    def remove(self, line_id: str) -> List[CartLine]:
        self.sync()
        self._find(line_id)
        items = self._persist([it for it in self.items if it.id != line_id])
        self._store.log_event("CART_DELETE", "cart", meta={"item_id": line_id, "cart_items": len(items)})
        return items

    def clear(self) -> List[CartLine]:
        self.sync()
        items = self._persist([])
        self._store.log_event("CART_CLEAR", "cart")
        return items

    # --- Promo code ---

    @property
    def promo_code(self) -> Optional[str]:
        return self._store.get(PROMO_CODE)

    def apply_promo(self, code: str) -> Optional[str]:
        # Stored even when unknown; it simply yields no discount
        code = pricing.normalize_promo_code(code)
        if code is None:
            return self.promo_code
        self._store.set(PROMO_CODE, code)
        if pricing.discount_rate(code, self._config) == 0:
            logger.info("Promo code %s is not known, no discount applied", code)
        return code

    def clear_promo(self) -> None:
        self._store.remove(PROMO_CODE)

    def totals(self, shipping_method: ShippingMethod = ShippingMethod.STANDARD) -> Totals:
        self.sync()
        return pricing.compute_totals(self._items, shipping_method, self.promo_code, self._config)

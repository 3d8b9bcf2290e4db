# storefront/utils/pricing.py
"""Price computation for the cart, checkout and payment pages.

Everything is in integer cents. Thresholds, shipping tiers and promo rates
come from :mod:`storefront.config`, so the functions take the settings
object as an optional last argument.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from storefront.config import Settings, settings
from storefront.schemas.cart import CartLine, Totals
from storefront.schemas.order import ShippingMethod


def subtotal_cents(items: Iterable[CartLine]) -> int:
    return sum(it.unit_price_cents * it.quantity for it in items)


def shipping_cents(items, method: ShippingMethod, subtotal: int, config: Settings = settings) -> int:
    if not items:
        return 0
    if subtotal >= config.FREE_SHIPPING_THRESHOLD_CENTS:
        return 0
    if ShippingMethod(method) == ShippingMethod.EXPRESS:
        return config.SHIPPING_EXPRESS_CENTS
    return config.SHIPPING_STANDARD_CENTS


def normalize_promo_code(code: Optional[str]) -> Optional[str]:
    code = (code or "").strip().upper()
    return code or None


def discount_rate(promo_code: Optional[str], config: Settings = settings) -> float:
    # Unknown codes are accepted and simply give no discount
    code = normalize_promo_code(promo_code)
    if code is None:
        return 0.0
    return config.PROMO_CODES.get(code, 0.0)


def discount_cents(subtotal: int, promo_code: Optional[str], config: Settings = settings) -> int:
    rate = Decimal(str(discount_rate(promo_code, config)))
    return int((Decimal(subtotal) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def total_cents(subtotal: int, shipping: int, discount: int) -> int:
    return max(0, subtotal - discount + shipping)


def compute_totals(items, method: ShippingMethod = ShippingMethod.STANDARD,
                   promo_code: Optional[str] = None, config: Settings = settings) -> Totals:
    items = list(items)
    subtotal = subtotal_cents(items)
    shipping = shipping_cents(items, method, subtotal, config)
    discount = discount_cents(subtotal, promo_code, config)
    return Totals(
        subtotal_cents=subtotal,
        shipping_cents=shipping,
        discount_cents=discount,
        total_cents=total_cents(subtotal, shipping, discount),
    )


def format_price(cents: int) -> str:
    """Display format of the shop (de-DE, EUR), e.g. ``7900`` -> ``"79,00 €"``."""
    sign = "-" if cents < 0 else ""
    whole, rest = divmod(abs(cents), 100)
    grouped = f"{whole:,}".replace(",", ".")
    return f"{sign}{grouped},{rest:02d} €"

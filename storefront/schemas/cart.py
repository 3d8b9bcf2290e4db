from pydantic import AliasChoices, Field, model_validator
from typing import List, Optional

from storefront.schemas.base import CamelBase


# A single product variant with its quantity in the active cart.
# Older product pages stored priceCents/qty/max/variant, which are still accepted.
class CartLine(CamelBase):
    id: str
    product_id: str
    sku: str
    name: str
    slug: Optional[str] = None
    brand: Optional[str] = None
    variant_label: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("variantLabel", "variant", "variant_label")
    )
    volume_ml: Optional[int] = None
    image: Optional[str] = None
    unit_price_cents: int = Field(
        ge=0, validation_alias=AliasChoices("unitPriceCents", "priceCents", "unit_price_cents")
    )
    quantity: int = Field(ge=1, validation_alias=AliasChoices("quantity", "qty"))
    max_quantity: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("maxQuantity", "max", "max_quantity")
    )

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data):
        # Lines added from the product page carry no id; the sku identifies them
        if isinstance(data, dict) and not data.get("id") and data.get("sku"):
            data = {**data, "id": data["sku"]}
        return data

    @model_validator(mode="after")
    def _cap_quantity(self):
        # maxQuantity 0 marks a sold-out line; CartStore drops those on load
        if self.max_quantity is not None and 0 < self.max_quantity < self.quantity:
            self.quantity = self.max_quantity
        return self

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


# Derived price breakdown, never stored apart from the lines it came from
class Totals(CamelBase):
    subtotal_cents: int = Field(ge=0)
    shipping_cents: int = Field(ge=0)
    discount_cents: int = Field(default=0, ge=0)
    total_cents: int = Field(ge=0)


# Request schema for adding a catalog variant to the cart
class CartAddItem(CamelBase):
    sku: Optional[str] = None # First variant when omitted
    quantity: int = Field(default=1, ge=1)


# Request schema for updating cart line quantity (clamped, not rejected)
class CartUpdateItem(CamelBase):
    quantity: int


class PromoCodeIn(CamelBase):
    code: str


# Response schema for a single cart line
class CartLineOut(CartLine):
    line_total: str
    unit_price: str


# Response schema for the cart page
class CartOut(CamelBase):
    items: List[CartLineOut]
    totals: Totals
    promo_code: Optional[str] = None
    total: str # Formatted grand total

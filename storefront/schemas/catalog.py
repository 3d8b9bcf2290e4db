# storefront/schemas/catalog.py
from pydantic import AliasChoices, Field
from typing import Optional, List

from storefront.schemas.base import CamelBase


# One sellable size of a perfume, as returned by the catalog service
class Variant(CamelBase):
    sku: str
    volume_ml: Optional[int] = None
    price_cents: int = Field(ge=0)
    stock: int = Field(default=0, ge=0)


# Catalog document consumed when a cart line is created
class Perfume(CamelBase):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    slug: str
    name: str
    brand: Optional[str] = None
    images: List[str] = []
    variants: List[Variant] = []

    def variant(self, sku: Optional[str] = None) -> Optional[Variant]:
        """Selected variant, falling back to the first one like the product page does."""
        if not self.variants:
            return None
        for v in self.variants:
            if v.sku == sku:
                return v
        return self.variants[0]

    @property
    def cover(self) -> Optional[str]:
        return self.images[0] if self.images else None

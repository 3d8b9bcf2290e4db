from typing import Optional

from storefront.config import settings
from storefront.schemas.base import CamelBase


# Checkout form contents. Fields stay loose here; CheckoutValidator decides
# whether the form may be submitted.
class Customer(CamelBase):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    street: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = settings.DEFAULT_COUNTRY
    notes: Optional[str] = None
    save_info: bool = True

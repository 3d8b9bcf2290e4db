# storefront/routes/catalog.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.errors import ApiError, OutOfStockError, StorageWriteError
from storefront.routes.cart import cart_to_out
from storefront.schemas.cart import CartAddItem, CartOut
from storefront.services.cart_store import line_from_variant
from storefront.services.storefront import Storefront, get_storefront

router = APIRouter(prefix="/catalog", tags=["Catalog"])


# Add the selected variant of a perfume to the cart
@router.post("/{slug}/add", response_model=CartOut)
async def add_to_cart(slug: str, payload: CartAddItem, sf: Storefront = Depends(get_storefront)):
    try:
        perfume = await sf.api.get_perfume(slug)
    except ApiError as e:
        status_code = 404 if e.status_code == 404 else 502
        raise HTTPException(status_code=status_code, detail=e.message)

    variant = perfume.variant(payload.sku)
    if variant is None or (payload.sku and variant.sku != payload.sku):
        raise HTTPException(status_code=404, detail="Variant not found")

    try:
        sf.cart.add(line_from_variant(perfume, variant, payload.quantity))
    except OutOfStockError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except StorageWriteError as e:
        raise HTTPException(status_code=503, detail=e.message)

    return cart_to_out(sf)

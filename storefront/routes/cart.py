# storefront/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException
from typing import Callable

from storefront.errors import CartLineNotFoundError, StorageWriteError
from storefront.schemas.cart import CartLineOut, CartOut, CartUpdateItem, PromoCodeIn
from storefront.schemas.order import ShippingMethod
from storefront.services.storefront import Storefront, get_storefront
from storefront.utils.pricing import format_price

router = APIRouter(prefix="/cart", tags=["Cart"])


def cart_to_out(sf: Storefront, shipping_method: ShippingMethod = ShippingMethod.STANDARD) -> CartOut:
    totals = sf.cart.totals(shipping_method)
    items_out = [
        CartLineOut(
            **it.model_dump(),
            unit_price=format_price(it.unit_price_cents),
            line_total=format_price(it.line_total_cents),
        )
        for it in sf.cart.items
    ]
    return CartOut(items=items_out, totals=totals, promo_code=sf.cart.promo_code, total=format_price(totals.total_cents))


def _mutate(action: Callable[[], object]) -> None:
    # Translate store failures for the HTTP layer
    try:
        action()
    except CartLineNotFoundError:
        raise HTTPException(status_code=404, detail="Cart item not found")
    except StorageWriteError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.get("", response_model=CartOut)
def get_cart(shipping_method: ShippingMethod = ShippingMethod.STANDARD, sf: Storefront = Depends(get_storefront)):
    return cart_to_out(sf, shipping_method)


# Quantity is clamped into [1, stock], never rejected
@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(item_id: str, payload: CartUpdateItem, sf: Storefront = Depends(get_storefront)):
    _mutate(lambda: sf.cart.set_quantity(item_id, payload.quantity))
    return cart_to_out(sf)


@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(item_id: str, sf: Storefront = Depends(get_storefront)):
    _mutate(lambda: sf.cart.remove(item_id))
    return cart_to_out(sf)


@router.delete("", response_model=CartOut)
def clear_cart(sf: Storefront = Depends(get_storefront)):
    _mutate(sf.cart.clear)
    return cart_to_out(sf)


@router.post("/promo", response_model=CartOut)
def apply_promo(payload: PromoCodeIn, sf: Storefront = Depends(get_storefront)):
    _mutate(lambda: sf.cart.apply_promo(payload.code))
    return cart_to_out(sf)


@router.delete("/promo", response_model=CartOut)
def clear_promo(sf: Storefront = Depends(get_storefront)):
    _mutate(sf.cart.clear_promo)
    return cart_to_out(sf)

# storefront/routes/checkout.py
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from storefront.errors import StorageWriteError, ValidationError
from storefront.schemas.order import CheckoutOut, CheckoutPayload, CheckoutResult, ShippingMethod
from storefront.services.checkout import CheckoutValidator
from storefront.services.storefront import Storefront, get_storefront
from storefront.utils.pricing import format_price

router = APIRouter(prefix="/checkout", tags=["Checkout"])
logger = logging.getLogger(__name__)


# Checkout page: prefilled customer form, cart lines and live totals
@router.get("", response_model=CheckoutOut)
def get_checkout(shipping_method: ShippingMethod = ShippingMethod.STANDARD, sf: Storefront = Depends(get_storefront)):
    sf.cart.sync()
    customer = sf.checkout.prefill()
    items = sf.cart.items
    totals = sf.checkout.totals(shipping_method)
    validator = CheckoutValidator(customer, items)
    return CheckoutOut(
        customer=customer,
        items=items,
        shipping_method=shipping_method,
        totals=totals,
        total=format_price(totals.total_cents),
        can_submit=validator.is_valid(),
        errors=validator.errors(),
    )


# Validate the form and hand the pending order over to the payment page
@router.post("", response_model=CheckoutResult, status_code=status.HTTP_201_CREATED)
def submit_checkout(payload: CheckoutPayload, sf: Storefront = Depends(get_storefront)):
    try:
        pending = sf.checkout.submit(payload.customer, payload.shipping_method, payload.payment_method)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": e.message, "errors": e.errors},
        )
    except StorageWriteError as e:
        logger.error("Pending order could not be saved: %s", e.message)
        raise HTTPException(status_code=503, detail=e.message)

    # A new order to pay means a new payment page
    sf.payment.enter()
    return CheckoutResult(pending_order=pending)

# storefront/routes/payment.py
import logging
from fastapi import APIRouter, Depends, HTTPException

from storefront.errors import PaymentInProgressError
from storefront.schemas.payment import CardDetails, PaymentResult, PaymentState, PaymentView
from storefront.services.storefront import Storefront, get_storefront

router = APIRouter(prefix="/pay", tags=["Payment"])
logger = logging.getLogger(__name__)


# Payment page; "missing_order" sends the user back to checkout
@router.get("", response_model=PaymentView)
def get_payment(sf: Storefront = Depends(get_storefront)):
    sf.store.sync()
    return sf.payment.view()


# Open the payment page afresh (e.g. after a reload); keeps the pending order
@router.post("/enter", response_model=PaymentView)
def enter_payment(sf: Storefront = Depends(get_storefront)):
    sf.store.sync()
    return sf.payment.enter()


@router.post("/leave", status_code=204)
def leave_payment(sf: Storefront = Depends(get_storefront)):
    sf.payment.leave()


@router.post("", response_model=PaymentResult)
async def pay(card: CardDetails, sf: Storefront = Depends(get_storefront)):
    try:
        result = await sf.payment.pay(card)
    except PaymentInProgressError as e:
        raise HTTPException(status_code=409, detail=e.message)

    if result.state == PaymentState.SUCCEEDED:
        return result

    if result.missing_order:
        raise HTTPException(status_code=404, detail={"message": result.message, "next": "/checkout"})
    if result.errors:
        raise HTTPException(status_code=400, detail={"message": result.message, "errors": result.errors})

    # Backend or authorization failure: pending order and cart are untouched, retry is possible
    logger.warning("Payment failed: %s", result.message)
    raise HTTPException(status_code=502, detail={"message": result.message, "retry": True})

# storefront/services/payment.py
"""Payment page: card checks, mock authorization, then order submission.

One ``PaymentProcessor`` backs one payment page. An attempt moves through
``idle -> validating -> confirming -> submitting -> succeeded | failed``.
Only one attempt may be in flight; ``enter()``/``leave()`` start a new page
instance, and an attempt that settles after that leaves the page state alone.
"""
import logging
import re
from typing import Dict, Optional

from storefront.errors import PaymentInProgressError, SubmissionError
from storefront.schemas.order import PendingOrder
from storefront.schemas.payment import CardDetails, PaymentResult, PaymentState, PaymentView
from storefront.services.handoff import OrderHandoff
from storefront.services.submission import OrderSubmission
from storefront.utils.gateway import AuthorizationGateway
from storefront.utils.pricing import format_price

logger = logging.getLogger(__name__)

CARD_NUMBER_RE = re.compile(r"^\d{12,19}$")
EXPIRY_RE = re.compile(r"^(\d{2})/(\d{2})$")
CVC_RE = re.compile(r"^\d{3,4}$")

CARD_ERROR = "Please fill valid card details."
MISSING_ORDER_ERROR = "No pending order. Please return to checkout."
DECLINED_ERROR = "Payment was declined. Please try another card."


def luhn_valid(number: str) -> bool:
    digits = re.sub(r"\s+", "", number or "")
    if not CARD_NUMBER_RE.match(digits):
        return False
    total = 0
    double = False
    for ch in reversed(digits):
        d = int(ch)
        if double:
            d *= 2
            if d > 9:
                d -= 9
        total += d
        double = not double
    return total % 10 == 0


def expiry_valid(value: str) -> bool:
    # MM/YY with a real month; 00 and 13+ match the shape but are rejected
    match = EXPIRY_RE.match((value or "").strip())
    if not match:
        return False
    return 1 <= int(match.group(1)) <= 12


def validate_card(card: Optional[CardDetails]) -> Dict[str, str]:
    card = card or CardDetails()
    errors = {}
    if len(card.card_name.strip()) <= 2:
        errors["card_name"] = "Enter the name on the card"
    if not luhn_valid(card.card_number):
        errors["card_number"] = "Invalid card number"
    if not expiry_valid(card.card_exp):
        errors["card_exp"] = "Use MM/YY"
    if not CVC_RE.match(card.card_cvc.strip()):
        errors["card_cvc"] = "3 or 4 digits"
    return errors


class PaymentProcessor:
    def __init__(self, handoff: OrderHandoff, submission: OrderSubmission, gateway: AuthorizationGateway):
        self._handoff = handoff
        self._submission = submission
        self._gateway = gateway
        self._generation = 0
        self._in_progress = False
        self.state = PaymentState.IDLE
        self.message: Optional[str] = None
        self.order_id: Optional[str] = None

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def generation(self) -> int:
        return self._generation

    def enter(self) -> PaymentView:
        """Opens a fresh payment page over the stored pending order."""
        self._generation += 1
        self.state = PaymentState.IDLE
        self.message = None
        self.order_id = None
        return self.view()

    def leave(self) -> None:
        # Whatever is still in flight belongs to a page that is gone
        self._generation += 1
        self.state = PaymentState.IDLE
        self.message = None

    def view(self) -> PaymentView:
        if self.state == PaymentState.SUCCEEDED:
            return PaymentView(status="succeeded", state=self.state, order_id=self.order_id, message=self.message)

        pending = self._handoff.peek()
        if pending is None:
            return PaymentView(status="missing_order", state=self.state,
                               in_progress=self._in_progress, message="No pending order was found.")
        return PaymentView(
            status="ready",
            state=self.state,
            in_progress=self._in_progress,
            pending_order=pending,
            total=format_price(pending.totals.total_cents),
            message=self.message,
        )

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _move(self, generation: int, state: PaymentState) -> None:
        if self._is_current(generation):
            self.state = state

    def _fail(self, generation: int, message: str, errors: Dict[str, str] = None) -> PaymentResult:
        if not self._is_current(generation):
            return self._abandoned(PaymentState.FAILED, message)
        self.state = PaymentState.FAILED
        self.message = message
        return PaymentResult(state=PaymentState.FAILED, message=message, errors=errors or {})

    def _abandoned(self, state: PaymentState, message: str = None, order_id: str = None) -> PaymentResult:
        logger.info("Payment attempt settled (%s) after its page was left", state.value)
        return PaymentResult(state=state, message=message, order_id=order_id, abandoned=True)

    async def pay(self, card: Optional[CardDetails] = None) -> PaymentResult:
        if self._in_progress:
            raise PaymentInProgressError("A payment is already being processed.")

        generation = self._generation
        pending = self._handoff.peek()
        if pending is None:
            self._move(generation, PaymentState.FAILED)
            self.message = MISSING_ORDER_ERROR
            return PaymentResult(state=PaymentState.FAILED, message=MISSING_ORDER_ERROR, missing_order=True)

        self._in_progress = True
        try:
            return await self._attempt(generation, pending, card)
        finally:
            self._in_progress = False

    async def _attempt(self, generation: int, pending: PendingOrder, card: Optional[CardDetails]) -> PaymentResult:
        self.message = None
        self._move(generation, PaymentState.VALIDATING)
        if not pending.items:
            return self._fail(generation, MISSING_ORDER_ERROR)

        errors = validate_card(card)
        if errors:
            return self._fail(generation, CARD_ERROR, errors)

        self._move(generation, PaymentState.CONFIRMING)
        try:
            authorization = await self._gateway.authorize(pending, card)
        except Exception as e:
            logger.warning("Card authorization failed: %s", e)
            return self._fail(generation, DECLINED_ERROR)
        if not authorization.approved:
            return self._fail(generation, authorization.message or DECLINED_ERROR)

        self._move(generation, PaymentState.SUBMITTING)
        try:
            placed = await self._submission.submit(pending)
        except SubmissionError as e:
            logger.warning("Order submission failed: %s", e.message)
            return self._fail(generation, e.message or "Payment failed. Please try again.")

        if not self._is_current(generation):
            return self._abandoned(PaymentState.SUCCEEDED, order_id=placed.id)

        self.state = PaymentState.SUCCEEDED
        self.order_id = placed.id
        self.message = f"Order {placed.id} confirmed."
        return PaymentResult(
            state=PaymentState.SUCCEEDED,
            order_id=placed.id,
            message=self.message,
            cart_cleared=placed.cart_cleared,
        )

"""Charging saved cards: PaymentIntent creation and status resolution."""

import asyncio
import enum
import logging
from dataclasses import dataclass

import stripe

from marketplace.billing.stripe_client import (
    cancel_payment_intent,
    confirm_payment_intent,
    create_payment_intent,
    retrieve_payment_intent,
)
from marketplace.config import settings
from marketplace.models.billing import BillingStatus

logger = logging.getLogger(__name__)


class ChargeOutcome(str, enum.Enum):
    SUCCESS = "SUCCESS"
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"
    RETRY_PAYMENT = "RETRY_PAYMENT"


RECEIPT_STATUS_BY_OUTCOME: dict[ChargeOutcome, BillingStatus] = {
    ChargeOutcome.SUCCESS: BillingStatus.PAID,
    ChargeOutcome.CONFIRMATION_REQUIRED: BillingStatus.PENDING,
    ChargeOutcome.RETRY_PAYMENT: BillingStatus.FAILED,
}


@dataclass(frozen=True)
class ChargeResult:
    """Final state of a charge attempt."""

    outcome: ChargeOutcome
    message: str
    payment_intent_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is ChargeOutcome.SUCCESS

    @property
    def receipt_status(self) -> BillingStatus:
        return RECEIPT_STATUS_BY_OUTCOME[self.outcome]


async def _resolve_confirmation(intent_id: str) -> ChargeResult:
    try:
        confirmed = await confirm_payment_intent(intent_id)
    except stripe.StripeError as e:
        logger.error("Error confirming payment intent %s: %s", intent_id, e)
        return ChargeResult(ChargeOutcome.RETRY_PAYMENT, "Error confirming payment. Please try again.", intent_id)

    if confirmed.status == "succeeded":
        return ChargeResult(ChargeOutcome.SUCCESS, "Payment successful after confirmation", intent_id)

    await cancel_payment_intent(intent_id)
    return ChargeResult(
        ChargeOutcome.RETRY_PAYMENT,
        f"Payment confirmation failed with status: {confirmed.status}",
        intent_id,
    )


async def wait_for_payment_status(
    intent_id: str,
    timeout: float | None = None,
    interval: float | None = None,
) -> ChargeResult:
    """Poll a PaymentIntent until it reaches a state we can act on.

    ``processing`` is the only status that keeps polling. Anything still
    unresolved when ``timeout`` elapses is reported as RETRY_PAYMENT.
    """
    timeout = settings.stripe_payment_poll_timeout_seconds if timeout is None else timeout
    interval = settings.stripe_payment_poll_interval_seconds if interval is None else interval

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while loop.time() < deadline:
        intent = await retrieve_payment_intent(intent_id)

        if intent.status == "succeeded":
            return ChargeResult(ChargeOutcome.SUCCESS, "Payment successful", intent_id)
        if intent.status == "requires_action":
            return ChargeResult(
                ChargeOutcome.CONFIRMATION_REQUIRED,
                "Payment requires authentication. Please complete payment in-session.",
                intent_id,
            )
        if intent.status == "requires_payment_method":
            return ChargeResult(
                ChargeOutcome.RETRY_PAYMENT,
                "Payment failed. Please try another payment method.",
                intent_id,
            )
        if intent.status == "requires_confirmation":
            return await _resolve_confirmation(intent_id)
        if intent.status == "requires_capture":
            await cancel_payment_intent(intent_id)
            return ChargeResult(ChargeOutcome.RETRY_PAYMENT, "Payment failed. Please try again.", intent_id)
        if intent.status == "canceled":
            return ChargeResult(
                ChargeOutcome.RETRY_PAYMENT, "Payment was canceled. Please try again.", intent_id
            )

        await asyncio.sleep(interval)

    logger.warning("Timed out waiting for payment intent %s", intent_id)
    return ChargeResult(ChargeOutcome.RETRY_PAYMENT, "Payment status check timed out.", intent_id)


async def charge_saved_card(
    amount_cents: int,
    customer_id: str,
    stripe_payment_method_id: str,
    description: str,
    metadata: dict[str, str],
    idempotency_key: str | None = None,
) -> ChargeResult:
    """Charge a saved card off-session and wait for the result.

    Card declines and other gateway errors before the PaymentIntent exists
    come back as RETRY_PAYMENT rather than raising, so callers can record a
    FAILED receipt. Once the intent exists the card may already be charged:
    a gateway error while checking on it comes back as CONFIRMATION_REQUIRED
    with the intent id, so the charge is recorded as PENDING and never lost.
    """
    try:
        intent = await create_payment_intent(
            amount_cents=amount_cents,
            customer_id=customer_id,
            payment_method_id=stripe_payment_method_id,
            description=description,
            metadata=metadata,
            idempotency_key=idempotency_key,
        )
    except stripe.StripeError as e:
        logger.error("Stripe charge error for customer %s: %s", customer_id, e)
        return ChargeResult(ChargeOutcome.RETRY_PAYMENT, "Payment failed. Please try again.")

    try:
        result = await wait_for_payment_status(intent.id)
    except stripe.StripeError as e:
        logger.error("Stripe error while checking payment intent %s: %s", intent.id, e)
        result = ChargeResult(
            ChargeOutcome.CONFIRMATION_REQUIRED,
            "Payment is still being processed. Check your billing history shortly.",
            intent.id,
        )
    logger.info("Charge %s for customer %s resolved as %s", intent.id, customer_id, result.outcome.value)
    return result

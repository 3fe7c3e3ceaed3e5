"""Async Stripe API wrapper for the API marketplace."""

import logging

import stripe
from stripe import StripeClient

from marketplace.config import settings

logger = logging.getLogger(__name__)


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


async def create_customer(email: str | None, name: str | None, user_id: str) -> stripe.Customer:
    """Create a Stripe customer linked to a marketplace user."""
    client = get_stripe_client()
    logger.info("Creating Stripe customer for user %s (%s)", user_id, email)
    params: dict = {"metadata": {"marketplace_user_id": user_id}}
    if email:
        params["email"] = email
    if name:
        params["name"] = name
    customer = await client.v1.customers.create_async(params=params)
    logger.info("Created Stripe customer %s for user %s", customer.id, user_id)
    return customer


async def create_setup_intent(customer_id: str) -> stripe.SetupIntent:
    """Create a SetupIntent so the frontend can collect a card for later charges."""
    client = get_stripe_client()
    logger.info("Creating setup intent for customer %s", customer_id)
    return await client.v1.setup_intents.create_async(params={"customer": customer_id})


async def attach_payment_method(payment_method_id: str, customer_id: str) -> stripe.PaymentMethod:
    """Attach a payment method to a customer."""
    client = get_stripe_client()
    logger.info("Attaching payment method %s to customer %s", payment_method_id, customer_id)
    return await client.v1.payment_methods.attach_async(
        payment_method_id, params={"customer": customer_id}
    )


async def retrieve_payment_method(payment_method_id: str) -> stripe.PaymentMethod:
    """Retrieve a payment method, including its card details."""
    client = get_stripe_client()
    return await client.v1.payment_methods.retrieve_async(payment_method_id)


async def detach_payment_method(payment_method_id: str) -> stripe.PaymentMethod:
    """Detach a payment method from whichever customer owns it."""
    client = get_stripe_client()
    logger.info("Detaching payment method %s", payment_method_id)
    return await client.v1.payment_methods.detach_async(payment_method_id)


async def create_payment_intent(
    amount_cents: int,
    customer_id: str,
    payment_method_id: str,
    description: str,
    metadata: dict[str, str],
    idempotency_key: str | None = None,
) -> stripe.PaymentIntent:
    """Create and confirm an off-session PaymentIntent against a saved card.

    Stripe replays the original response for a repeated ``idempotency_key``
    (kept for 24 hours), so a retried call never charges the card twice.
    """
    client = get_stripe_client()
    logger.info(
        "Creating payment intent for customer %s: %d %s",
        customer_id,
        amount_cents,
        settings.stripe_currency,
    )
    return await client.v1.payment_intents.create_async(
        params={
            "amount": amount_cents,
            "currency": settings.stripe_currency,
            "customer": customer_id,
            "payment_method": payment_method_id,
            "off_session": True,
            "confirm": True,
            "description": description,
            "metadata": metadata,
        },
        options={"idempotency_key": idempotency_key} if idempotency_key else {},
    )


async def retrieve_payment_intent(payment_intent_id: str) -> stripe.PaymentIntent:
    """Retrieve a PaymentIntent by ID."""
    client = get_stripe_client()
    return await client.v1.payment_intents.retrieve_async(payment_intent_id)


async def confirm_payment_intent(payment_intent_id: str) -> stripe.PaymentIntent:
    """Confirm a PaymentIntent that is waiting for confirmation."""
    client = get_stripe_client()
    logger.info("Confirming payment intent %s", payment_intent_id)
    return await client.v1.payment_intents.confirm_async(payment_intent_id)


async def cancel_payment_intent(payment_intent_id: str) -> stripe.PaymentIntent:
    """Cancel a PaymentIntent."""
    client = get_stripe_client()
    logger.info("Cancelling payment intent %s", payment_intent_id)
    return await client.v1.payment_intents.cancel_async(payment_intent_id)

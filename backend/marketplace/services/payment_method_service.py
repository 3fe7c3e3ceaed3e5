"""Payment method service: Stripe customers, setup intents, and saved cards."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.billing.stripe_client import (
    attach_payment_method,
    create_customer,
    create_setup_intent,
    detach_payment_method,
    retrieve_payment_method,
)
from marketplace.errors import ErrorKind, MarketplaceError, bad_request, forbidden, not_found
from marketplace.models.billing import PaymentMethod
from marketplace.models.user import User

logger = logging.getLogger(__name__)


async def get_owned_payment_method(
    db: AsyncSession, user: User, payment_method_id: uuid.UUID
) -> PaymentMethod:
    """Return the payment method if it exists and belongs to ``user``.

    Raises FORBIDDEN for both cases so callers cannot discover other users' IDs.
    """
    payment_method = await db.get(PaymentMethod, payment_method_id)
    if payment_method is None or payment_method.user_id != user.id:
        raise forbidden("Payment method not found or doesn't belong to user")
    return payment_method


async def ensure_stripe_customer(db: AsyncSession, user: User) -> str:
    """Ensure the user has a Stripe customer ID. Create one if missing."""
    if user.stripe_customer_id:
        return user.stripe_customer_id

    customer = await create_customer(
        email=user.email,
        name=user.name,
        user_id=str(user.id),
    )
    user.stripe_customer_id = customer.id
    await db.flush()
    logger.info("Linked Stripe customer %s to user %s", customer.id, user.id)
    return customer.id


async def initialize_setup_intent(db: AsyncSession, user: User) -> str:
    """Create a SetupIntent for the user and return its client secret."""
    if not user.email:
        raise bad_request(
            "Email is required to create a Stripe customer. Fix this in your profile settings."
        )
    if not user.name:
        raise bad_request(
            "A name is required to create a Stripe customer. Fix this in your profile settings."
        )

    customer_id = await ensure_stripe_customer(db, user)
    setup_intent = await create_setup_intent(customer_id)

    if not setup_intent.client_secret:
        logger.error("Setup intent %s returned without a client secret", setup_intent.id)
        raise MarketplaceError(ErrorKind.INTERNAL, "Failed to create SetupIntent")

    return setup_intent.client_secret


async def save_payment_method(
    db: AsyncSession,
    user: User,
    stripe_payment_method_id: str,
    address: dict[str, str | None] | None = None,
) -> PaymentMethod:
    """Attach a card collected by a SetupIntent and store a local mirror of it."""
    if not user.stripe_customer_id:
        raise not_found("User or Stripe customer ID not found")

    await attach_payment_method(stripe_payment_method_id, user.stripe_customer_id)
    pm = await retrieve_payment_method(stripe_payment_method_id)

    card = getattr(pm, "card", None)
    billing_details = getattr(pm, "billing_details", None)
    address = address or {}

    payment_method = PaymentMethod(
        user_id=user.id,
        stripe_customer_id=user.stripe_customer_id,
        stripe_payment_id=stripe_payment_method_id,
        card_brand=getattr(card, "brand", None),
        last4=getattr(card, "last4", None),
        exp_month=getattr(card, "exp_month", None),
        exp_year=getattr(card, "exp_year", None),
        cardholder_name=getattr(billing_details, "name", None),
        address_line1=address.get("address_line1"),
        address_line2=address.get("address_line2"),
        city=address.get("city"),
        state=address.get("state"),
        postal_code=address.get("postal_code"),
        country=address.get("country"),
    )
    db.add(payment_method)
    await db.flush()
    await db.refresh(payment_method)

    logger.info("Saved payment method %s for user %s", payment_method.id, user.id)
    return payment_method


async def list_payment_methods(db: AsyncSession, user: User) -> list[PaymentMethod]:
    """Return the user's saved payment methods, newest first."""
    result = await db.execute(
        select(PaymentMethod)
        .where(PaymentMethod.user_id == user.id)
        .order_by(PaymentMethod.created_at.desc())
    )
    return list(result.scalars().all())


async def delete_payment_method(
    db: AsyncSession, user: User, payment_method_id: uuid.UUID
) -> None:
    """Detach the card at Stripe, then delete the local row.

    A failed detach propagates as ``stripe.StripeError`` and leaves the local
    row untouched.
    """
    payment_method = await db.get(PaymentMethod, payment_method_id)
    if payment_method is None:
        raise not_found("Payment method not found.")
    if payment_method.user_id != user.id:
        raise forbidden("You do not have permission to delete this payment method.")

    await detach_payment_method(payment_method.stripe_payment_id)

    await db.delete(payment_method)
    await db.flush()
    logger.info("Deleted payment method %s for user %s", payment_method_id, user.id)

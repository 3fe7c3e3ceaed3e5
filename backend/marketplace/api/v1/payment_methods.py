"""Payment method API routes: Stripe SetupIntents and saved cards."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_current_active_user, get_db
from marketplace.models.user import User
from marketplace.schemas.billing import (
    PaymentMethodResponse,
    SavePaymentMethodRequest,
    SetupIntentResponse,
)
from marketplace.schemas.common import MessageResponse
from marketplace.services import payment_method_service

router = APIRouter(prefix="/api/v1/payment-methods", tags=["payment-methods"])


@router.post("/setup-intent", response_model=SetupIntentResponse)
async def initialize_setup_intent(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SetupIntentResponse:
    """Start collecting a card with Stripe Elements."""
    client_secret = await payment_method_service.initialize_setup_intent(db, current_user)
    return SetupIntentResponse(client_secret=client_secret)


@router.post("", response_model=PaymentMethodResponse, status_code=status.HTTP_201_CREATED)
async def save_payment_method(
    body: SavePaymentMethodRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PaymentMethodResponse:
    """Store a card confirmed by a SetupIntent."""
    payment_method = await payment_method_service.save_payment_method(
        db, current_user, body.payment_method_id, body.address()
    )
    return PaymentMethodResponse.model_validate(payment_method)


@router.get("", response_model=list[PaymentMethodResponse])
async def list_payment_methods(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[PaymentMethodResponse]:
    payment_methods = await payment_method_service.list_payment_methods(db, current_user)
    return [PaymentMethodResponse.model_validate(pm) for pm in payment_methods]


@router.delete("/{payment_method_id}", response_model=MessageResponse)
async def delete_payment_method(
    payment_method_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    await payment_method_service.delete_payment_method(db, current_user, payment_method_id)
    return MessageResponse(message="Payment method deleted")

"""Tests for charging saved cards and resolving PaymentIntent statuses."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import stripe

from marketplace.billing.payments import (
    ChargeOutcome,
    charge_saved_card,
    wait_for_payment_status,
)
from marketplace.models.billing import BillingStatus

PAYMENTS = "marketplace.billing.payments"


def _intent(status: str, intent_id: str = "pi_123") -> MagicMock:
    intent = MagicMock()
    intent.id = intent_id
    intent.status = status
    return intent


class TestWaitForPaymentStatus:
    """Each PaymentIntent status maps to one outcome."""

    @pytest.mark.parametrize(
        "status,outcome",
        [
            ("succeeded", ChargeOutcome.SUCCESS),
            ("requires_action", ChargeOutcome.CONFIRMATION_REQUIRED),
            ("requires_payment_method", ChargeOutcome.RETRY_PAYMENT),
            ("canceled", ChargeOutcome.RETRY_PAYMENT),
        ],
    )
    async def test_terminal_statuses(self, status, outcome):
        with patch(f"{PAYMENTS}.retrieve_payment_intent", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = _intent(status)
            result = await wait_for_payment_status("pi_123", timeout=1, interval=0)

        assert result.outcome is outcome
        assert result.payment_intent_id == "pi_123"

    async def test_processing_polls_until_resolved(self):
        with patch(f"{PAYMENTS}.retrieve_payment_intent", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = [_intent("processing"), _intent("processing"), _intent("succeeded")]
            result = await wait_for_payment_status("pi_123", timeout=5, interval=0)

        assert result.succeeded
        assert mock_get.await_count == 3

    async def test_requires_confirmation_confirmed(self):
        with (
            patch(f"{PAYMENTS}.retrieve_payment_intent", new_callable=AsyncMock) as mock_get,
            patch(f"{PAYMENTS}.confirm_payment_intent", new_callable=AsyncMock) as mock_confirm,
            patch(f"{PAYMENTS}.cancel_payment_intent", new_callable=AsyncMock) as mock_cancel,
        ):
            mock_get.return_value = _intent("requires_confirmation")
            mock_confirm.return_value = _intent("succeeded")
            result = await wait_for_payment_status("pi_123", timeout=1, interval=0)

        assert result.outcome is ChargeOutcome.SUCCESS
        mock_confirm.assert_awaited_once_with("pi_123")
        mock_cancel.assert_not_awaited()

    async def test_requires_confirmation_still_failing_is_cancelled(self):
        with (
            patch(f"{PAYMENTS}.retrieve_payment_intent", new_callable=AsyncMock) as mock_get,
            patch(f"{PAYMENTS}.confirm_payment_intent", new_callable=AsyncMock) as mock_confirm,
            patch(f"{PAYMENTS}.cancel_payment_intent", new_callable=AsyncMock) as mock_cancel,
        ):
            mock_get.return_value = _intent("requires_confirmation")
            mock_confirm.return_value = _intent("requires_payment_method")
            result = await wait_for_payment_status("pi_123", timeout=1, interval=0)

        assert result.outcome is ChargeOutcome.RETRY_PAYMENT
        mock_cancel.assert_awaited_once_with("pi_123")

    async def test_requires_capture_is_cancelled(self):
        with (
            patch(f"{PAYMENTS}.retrieve_payment_intent", new_callable=AsyncMock) as mock_get,
            patch(f"{PAYMENTS}.cancel_payment_intent", new_callable=AsyncMock) as mock_cancel,
        ):
            mock_get.return_value = _intent("requires_capture")
            result = await wait_for_payment_status("pi_123", timeout=1, interval=0)

        assert result.outcome is ChargeOutcome.RETRY_PAYMENT
        mock_cancel.assert_awaited_once_with("pi_123")

    async def test_timeout_is_retry_payment(self):
        with patch(f"{PAYMENTS}.retrieve_payment_intent", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = _intent("processing")
            result = await wait_for_payment_status("pi_123", timeout=0.05, interval=0.01)

        assert result.outcome is ChargeOutcome.RETRY_PAYMENT
        assert "timed out" in result.message


class TestChargeSavedCard:
    async def test_creates_off_session_intent_and_waits(self):
        with (
            patch(f"{PAYMENTS}.create_payment_intent", new_callable=AsyncMock) as mock_create,
            patch(f"{PAYMENTS}.wait_for_payment_status", new_callable=AsyncMock) as mock_wait,
        ):
            mock_create.return_value = _intent("processing", "pi_new")
            mock_wait.return_value = MagicMock(outcome=ChargeOutcome.SUCCESS)

            await charge_saved_card(
                amount_cents=1000,
                customer_id="cus_1",
                stripe_payment_method_id="pm_1",
                description="Subscription to Weather API, for Pro",
                metadata={"user_id": "u1"},
                idempotency_key="renewal-c1-2026-01-01",
            )

        mock_create.assert_awaited_once_with(
            amount_cents=1000,
            customer_id="cus_1",
            payment_method_id="pm_1",
            description="Subscription to Weather API, for Pro",
            metadata={"user_id": "u1"},
            idempotency_key="renewal-c1-2026-01-01",
        )
        mock_wait.assert_awaited_once_with("pi_new")

    async def test_card_error_is_retry_payment(self):
        with patch(f"{PAYMENTS}.create_payment_intent", new_callable=AsyncMock) as mock_create:
            mock_create.side_effect = stripe.CardError("Your card was declined.", None, "card_declined")
            result = await charge_saved_card(
                amount_cents=1000,
                customer_id="cus_1",
                stripe_payment_method_id="pm_1",
                description="x",
                metadata={},
            )

        assert result.outcome is ChargeOutcome.RETRY_PAYMENT
        assert result.payment_intent_id is None
        assert result.receipt_status is BillingStatus.FAILED

    async def test_gateway_error_while_polling_keeps_intent_as_pending(self):
        with (
            patch(f"{PAYMENTS}.create_payment_intent", new_callable=AsyncMock) as mock_create,
            patch(f"{PAYMENTS}.retrieve_payment_intent", new_callable=AsyncMock) as mock_get,
        ):
            mock_create.return_value = _intent("processing", "pi_charged")
            mock_get.side_effect = stripe.APIConnectionError("Network error")
            result = await charge_saved_card(
                amount_cents=1000,
                customer_id="cus_1",
                stripe_payment_method_id="pm_1",
                description="x",
                metadata={},
            )

        # the card may already be charged, so the intent must not be reported as failed
        assert result.outcome is ChargeOutcome.CONFIRMATION_REQUIRED
        assert result.payment_intent_id == "pi_charged"
        assert result.receipt_status is BillingStatus.PENDING

"""Tests for the Stripe wrapper: request parameters sent to the client."""

from unittest.mock import AsyncMock, MagicMock, patch

from marketplace.billing import stripe_client
from marketplace.config import settings


def _mock_client() -> MagicMock:
    client = MagicMock()
    client.v1.customers.create_async = AsyncMock(return_value=MagicMock(id="cus_new"))
    client.v1.payment_intents.create_async = AsyncMock(return_value=MagicMock(id="pi_new"))
    client.v1.payment_methods.attach_async = AsyncMock()
    return client


class TestStripeClient:
    async def test_create_customer_omits_missing_fields(self):
        client = _mock_client()
        with patch.object(stripe_client, "get_stripe_client", return_value=client):
            customer = await stripe_client.create_customer(email=None, name="Ada", user_id="u-1")

        assert customer.id == "cus_new"
        client.v1.customers.create_async.assert_awaited_once_with(
            params={"metadata": {"marketplace_user_id": "u-1"}, "name": "Ada"}
        )

    async def test_payment_intent_is_off_session_and_confirmed(self):
        client = _mock_client()
        with patch.object(stripe_client, "get_stripe_client", return_value=client):
            await stripe_client.create_payment_intent(
                amount_cents=1000,
                customer_id="cus_1",
                payment_method_id="pm_1",
                description="Subscription",
                metadata={"user_id": "u-1"},
            )

        params = client.v1.payment_intents.create_async.await_args.kwargs["params"]
        assert params["amount"] == 1000
        assert params["currency"] == settings.stripe_currency
        assert params["off_session"] is True
        assert params["confirm"] is True
        assert params["payment_method"] == "pm_1"
        assert client.v1.payment_intents.create_async.await_args.kwargs["options"] == {}

    async def test_payment_intent_forwards_idempotency_key(self):
        client = _mock_client()
        with patch.object(stripe_client, "get_stripe_client", return_value=client):
            await stripe_client.create_payment_intent(
                amount_cents=1000,
                customer_id="cus_1",
                payment_method_id="pm_1",
                description="Subscription",
                metadata={},
                idempotency_key="renewal-c1-2026-01-01",
            )

        options = client.v1.payment_intents.create_async.await_args.kwargs["options"]
        assert options == {"idempotency_key": "renewal-c1-2026-01-01"}

    async def test_attach_payment_method(self):
        client = _mock_client()
        with patch.object(stripe_client, "get_stripe_client", return_value=client):
            await stripe_client.attach_payment_method("pm_1", "cus_1")

        client.v1.payment_methods.attach_async.assert_awaited_once_with(
            "pm_1", params={"customer": "cus_1"}
        )

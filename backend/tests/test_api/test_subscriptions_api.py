"""Tests for subscription API endpoints with mocked Stripe charges."""

import uuid
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient

from marketplace.billing.payments import ChargeOutcome, ChargeResult

CHARGE_PATH = "marketplace.services.subscription_service.charge_saved_card"


class TestSubscribe:
    """Test POST /api/v1/subscriptions/subscribe."""

    async def test_free_tier(self, client: AsyncClient, auth_headers, test_service, free_tier):
        response = await client.post(
            "/api/v1/subscriptions/subscribe",
            json={"service_id": str(test_service.id), "tier_id": str(free_tier.id)},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["payment_status"] is None
        assert data["subscription"]["subscription_status"] == "ACTIVE"

    async def test_paid_tier_success(
        self, client: AsyncClient, auth_headers, test_service, paid_tier, payment_method
    ):
        with patch(CHARGE_PATH, new_callable=AsyncMock) as mock_charge:
            mock_charge.return_value = ChargeResult(ChargeOutcome.SUCCESS, "Payment successful", "pi_1")
            response = await client.post(
                "/api/v1/subscriptions/subscribe",
                json={
                    "service_id": str(test_service.id),
                    "tier_id": str(paid_tier.id),
                    "payment_method_id": str(payment_method.id),
                    "auto_renewal": True,
                },
                headers=auth_headers,
            )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["payment_status"] == "SUCCESS"
        assert data["subscription"]["renewing_subscription"] is True

        history = await client.get("/api/v1/subscriptions/billing-history", headers=auth_headers)
        assert history.status_code == 200
        receipts = history.json()
        assert len(receipts) == 1
        assert receipts[0]["amount_cents"] == 1000
        assert receipts[0]["status"] == "PAID"
        assert receipts[0]["sender"]["name"] == "Provider"

    async def test_paid_tier_declined(
        self, client: AsyncClient, auth_headers, test_service, paid_tier, payment_method
    ):
        with patch(CHARGE_PATH, new_callable=AsyncMock) as mock_charge:
            mock_charge.return_value = ChargeResult(
                ChargeOutcome.RETRY_PAYMENT, "Payment failed. Please try another payment method."
            )
            response = await client.post(
                "/api/v1/subscriptions/subscribe",
                json={
                    "service_id": str(test_service.id),
                    "tier_id": str(paid_tier.id),
                    "payment_method_id": str(payment_method.id),
                },
                headers=auth_headers,
            )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["payment_status"] == "RETRY_PAYMENT"
        assert data["subscription"]["subscription_status"] == "PAYMENT_FAILED"

    async def test_paid_tier_without_card(
        self, client: AsyncClient, auth_headers, test_service, paid_tier
    ):
        response = await client.post(
            "/api/v1/subscriptions/subscribe",
            json={"service_id": str(test_service.id), "tier_id": str(paid_tier.id)},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "code": "BAD_REQUEST",
            "message": "A payment method is required for paid tiers.",
        }

    async def test_unknown_service(self, client: AsyncClient, auth_headers, free_tier):
        response = await client.post(
            "/api/v1/subscriptions/subscribe",
            json={"service_id": str(uuid.uuid4()), "tier_id": str(free_tier.id)},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_requires_auth(self, client: AsyncClient, test_service, free_tier):
        response = await client.post(
            "/api/v1/subscriptions/subscribe",
            json={"service_id": str(test_service.id), "tier_id": str(free_tier.id)},
        )
        assert response.status_code == 401


class TestLifecycle:
    """Unsubscribe, resume, switch, payment method, delete, and listing."""

    async def _subscribe_paid(self, client, headers, service, tier, card) -> None:
        with patch(CHARGE_PATH, new_callable=AsyncMock) as mock_charge:
            mock_charge.return_value = ChargeResult(ChargeOutcome.SUCCESS, "Payment successful", "pi_1")
            response = await client.post(
                "/api/v1/subscriptions/subscribe",
                json={
                    "service_id": str(service.id),
                    "tier_id": str(tier.id),
                    "payment_method_id": str(card.id),
                },
                headers=headers,
            )
        assert response.status_code == 200

    async def test_unsubscribe_then_resume(
        self, client: AsyncClient, auth_headers, test_service, paid_tier, payment_method
    ):
        await self._subscribe_paid(client, auth_headers, test_service, paid_tier, payment_method)
        body = {"subscription_tier_id": str(paid_tier.id)}

        response = await client.post("/api/v1/subscriptions/unsubscribe", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["subscription"]["subscription_status"] == "PENDING_CANCELLATION"

        response = await client.post("/api/v1/subscriptions/resume", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Subscription resumed successfully."
        assert response.json()["subscription"]["subscription_status"] == "ACTIVE"

        response = await client.post("/api/v1/subscriptions/resume", json=body, headers=auth_headers)
        assert response.status_code == 400

    async def test_switch_tier(
        self, client: AsyncClient, auth_headers, test_service, free_tier, paid_tier
    ):
        await client.post(
            "/api/v1/subscriptions/subscribe",
            json={"service_id": str(test_service.id), "tier_id": str(free_tier.id)},
            headers=auth_headers,
        )

        response = await client.post(
            "/api/v1/subscriptions/switch-tier",
            json={"old_tier_id": str(free_tier.id), "new_tier_id": str(paid_tier.id)},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["subscription"]["subscription_tier_id"] == str(paid_tier.id)

        status = await client.get(
            f"/api/v1/subscriptions/status/{test_service.id}", headers=auth_headers
        )
        assert status.json() == {"is_subscribed": True, "subscription_tier_id": str(paid_tier.id)}

    async def test_update_payment_method(
        self, client: AsyncClient, auth_headers, test_service, paid_tier, payment_method
    ):
        await self._subscribe_paid(client, auth_headers, test_service, paid_tier, payment_method)

        response = await client.post(
            "/api/v1/subscriptions/payment-method",
            json={
                "subscription_tier_id": str(paid_tier.id),
                "payment_method_id": str(payment_method.id),
                "auto_renewal": True,
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["subscription"]["renewing_subscription"] is True

    async def test_list_and_delete(
        self, client: AsyncClient, auth_headers, test_service, free_tier
    ):
        await client.post(
            "/api/v1/subscriptions/subscribe",
            json={"service_id": str(test_service.id), "tier_id": str(free_tier.id)},
            headers=auth_headers,
        )

        response = await client.get("/api/v1/subscriptions", headers=auth_headers)
        assert response.status_code == 200
        subscriptions = response.json()["subscriptions"]
        assert len(subscriptions) == 1
        assert subscriptions[0]["subscription_tier"]["service"]["name"] == "Weather API"
        assert subscriptions[0]["payment_method"] is None

        response = await client.delete(f"/api/v1/subscriptions/{free_tier.id}", headers=auth_headers)
        assert response.status_code == 400

        await client.post(
            "/api/v1/subscriptions/unsubscribe",
            json={"subscription_tier_id": str(free_tier.id)},
            headers=auth_headers,
        )
        response = await client.delete(f"/api/v1/subscriptions/{free_tier.id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Subscription deleted"}

        response = await client.get("/api/v1/subscriptions", headers=auth_headers)
        assert response.json()["subscriptions"] == []

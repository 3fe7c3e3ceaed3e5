"""Tests for analytics API endpoints."""

from httpx import AsyncClient


class TestAnalyticsApi:
    async def _subscribe_free(self, client, headers, service, tier) -> None:
        response = await client.post(
            "/api/v1/subscriptions/subscribe",
            json={"service_id": str(service.id), "tier_id": str(tier.id)},
            headers=headers,
        )
        assert response.status_code == 200

    async def test_owner_dashboard(
        self, client: AsyncClient, owner_headers, auth_headers, test_service, free_tier
    ):
        await self._subscribe_free(client, auth_headers, test_service, free_tier)

        revenue = await client.get("/api/v1/analytics/revenue", headers=owner_headers)
        assert revenue.json() == {"total_revenue_cents": 0}

        customers = await client.get("/api/v1/analytics/customers", headers=owner_headers)
        assert customers.json() == [
            {
                "service_id": str(test_service.id),
                "service_name": "Weather API",
                "customer_count": 1,
            }
        ]

        total = await client.get("/api/v1/analytics/customers/total", headers=owner_headers)
        assert total.json() == {"total_customers": 1}

        popular = await client.get("/api/v1/analytics/popular-service", headers=owner_headers)
        assert popular.json()["service_id"] == str(test_service.id)

        tiers = await client.get(
            f"/api/v1/analytics/services/{test_service.id}/tiers", headers=owner_headers
        )
        assert [(t["tier_name"], t["customer_count"]) for t in tiers.json()] == [
            ("Free", 1),
            ("Pro", 0),
        ]

    async def test_no_owned_services(self, client: AsyncClient, auth_headers):
        popular = await client.get("/api/v1/analytics/popular-service", headers=auth_headers)
        assert popular.status_code == 200
        assert popular.json() is None

    async def test_tier_breakdown_forbidden_for_non_owner(
        self, client: AsyncClient, auth_headers, test_service
    ):
        response = await client.get(
            f"/api/v1/analytics/services/{test_service.id}/tiers", headers=auth_headers
        )
        assert response.status_code == 403

    async def test_daily_revenue(self, client: AsyncClient, owner_headers, test_service):
        response = await client.get(
            "/api/v1/analytics/revenue/daily", params={"days": 30}, headers=owner_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["services"] == [
            {"service_id": str(test_service.id), "service_name": "Weather API"}
        ]
        assert len(data["points"]) == 31
        assert data["points"][-1]["revenue_cents"] == {str(test_service.id): 0}

    async def test_daily_revenue_rejects_long_ranges(self, client: AsyncClient, owner_headers):
        response = await client.get(
            "/api/v1/analytics/revenue/daily", params={"days": 1000}, headers=owner_headers
        )
        assert response.status_code == 422

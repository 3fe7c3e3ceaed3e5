"""Tests for notification API endpoints."""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.notification import Notification


async def _notify(db_session: AsyncSession, sender, recipient, content: str) -> Notification:
    notification = Notification(content=content, recipient_id=recipient.id, sender_id=sender.id)
    db_session.add(notification)
    await db_session.flush()
    return notification


class TestNotificationsApi:
    async def test_inbox_read_and_delete(
        self, client: AsyncClient, db_session: AsyncSession, owner, test_user, auth_headers
    ):
        first = await _notify(db_session, owner, test_user, "v2 is out")
        await _notify(db_session, owner, test_user, "Price change")

        response = await client.get("/api/v1/notifications", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert {n["content"] for n in data["notifications"]} == {"v2 is out", "Price change"}
        assert data["notifications"][0]["sender"]["name"] == "Provider"
        assert data["next_cursor"] is None

        response = await client.post(f"/api/v1/notifications/{first.id}/read", headers=auth_headers)
        assert response.json() == {"success": True, "message": "Notification marked as read"}

        unread = (await client.get("/api/v1/notifications", headers=auth_headers)).json()
        assert [n["content"] for n in unread["notifications"]] == ["Price change"]

        response = await client.delete(f"/api/v1/notifications/{first.id}", headers=auth_headers)
        assert response.status_code == 200

        everything = await client.get(
            "/api/v1/notifications", params={"include_read": True}, headers=auth_headers
        )
        assert [n["content"] for n in everything.json()["notifications"]] == ["Price change"]

    async def test_read_all(
        self, client: AsyncClient, db_session: AsyncSession, owner, test_user, auth_headers
    ):
        await _notify(db_session, owner, test_user, "a")
        await _notify(db_session, owner, test_user, "b")

        response = await client.post("/api/v1/notifications/read-all", headers=auth_headers)

        assert response.json()["message"] == "Marked 2 notifications as read"
        unread = await client.get("/api/v1/notifications", headers=auth_headers)
        assert unread.json()["notifications"] == []

    async def test_paging(
        self, client: AsyncClient, db_session: AsyncSession, owner, test_user, auth_headers
    ):
        for i in range(3):
            await _notify(db_session, owner, test_user, f"n{i}")

        first_page = await client.get(
            "/api/v1/notifications", params={"limit": 2}, headers=auth_headers
        )
        data = first_page.json()
        assert len(data["notifications"]) == 2
        assert data["next_cursor"] == data["notifications"][-1]["id"]

        second_page = await client.get(
            "/api/v1/notifications",
            params={"limit": 2, "cursor": data["next_cursor"]},
            headers=auth_headers,
        )
        assert len(second_page.json()["notifications"]) == 1
        assert second_page.json()["next_cursor"] is None

    async def test_someone_elses_notification_forbidden(
        self, client: AsyncClient, db_session: AsyncSession, owner, test_user, auth_headers
    ):
        theirs = await _notify(db_session, test_user, owner, "not yours")

        response = await client.post(f"/api/v1/notifications/{theirs.id}/read", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/notifications")
        assert response.status_code == 401

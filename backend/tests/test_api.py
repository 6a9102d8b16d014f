"""
Places Backend: HTTP API Tests
================================

What:  End-to-end tests through the FastAPI app with HTTPX AsyncClient.
How:   get_db_session is overridden to use the per-test SQLite database;
       the geocoder is the static provider.

What we test:
    ✅ Full lifecycle: sign up → create → read → list by user → update → delete
    ✅ Status codes and envelopes for every route
    ✅ 422 for schema errors and unknown creators, 404 for unknown ids
    ✅ Error body shape and X-Request-ID propagation
    ✅ Health endpoint
"""

import uuid

import pytest

from app.config import settings


async def signup(client, name="Ada", email=None) -> dict:
    response = await client.post(
        "/api/users/signup",
        json={
            "name": name,
            "email": email or f"{uuid.uuid4().hex[:8]}@example.com",
            "password": "secret123",
        },
    )
    assert response.status_code == 201
    return response.json()["user"]


async def create_place(client, creator_id, title="Cafe") -> dict:
    response = await client.post(
        "/api/places",
        json={
            "title": title,
            "description": "Good coffee",
            "address": "20 W 34th St, New York",
            "creator": creator_id,
        },
    )
    assert response.status_code == 201
    return response.json()["place"]


class TestPlaceLifecycle:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, test_client):
        """Create, read, list, update and delete one place."""
        user = await signup(test_client)

        place = await create_place(test_client, user["id"])
        assert place["creator"] == user["id"]
        assert place["image"] == settings.default_place_image
        assert place["location"] == {"lat": 40.7484474, "lng": -73.9871516}

        response = await test_client.get(f"/api/places/{place['id']}")
        assert response.status_code == 200
        assert response.json() == {"place": place}

        response = await test_client.get(f"/api/places/user/{user['id']}")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["places"]] == [place["id"]]

        response = await test_client.patch(
            f"/api/places/{place['id']}",
            json={"title": "Bistro", "description": "Dinner as well"},
        )
        assert response.status_code == 200
        updated = response.json()["place"]
        assert updated["title"] == "Bistro"
        assert updated["description"] == "Dinner as well"
        assert updated["address"] == place["address"]
        assert updated["creator"] == user["id"]

        response = await test_client.delete(f"/api/places/{place['id']}")
        assert response.status_code == 200
        assert response.content == b""

        response = await test_client.get(f"/api/places/{place['id']}")
        assert response.status_code == 404

        response = await test_client.get(f"/api/places/user/{user['id']}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_back_reference_visible_in_users_list(self, test_client):
        user = await signup(test_client)
        first = await create_place(test_client, user["id"], "First")
        second = await create_place(test_client, user["id"], "Second")

        response = await test_client.get("/api/users")

        assert response.status_code == 200
        listed = {u["id"]: u for u in response.json()["users"]}
        assert listed[user["id"]]["places"] == [first["id"], second["id"]]
        assert "password" not in listed[user["id"]]

    @pytest.mark.asyncio
    async def test_owner_alias_route(self, test_client):
        user = await signup(test_client)
        place = await create_place(test_client, user["id"])

        response = await test_client.get(f"/api/places/owner/{user['id']}")

        assert response.status_code == 200
        assert response.json()["places"][0]["id"] == place["id"]


class TestPlaceErrors:

    @pytest.mark.asyncio
    async def test_create_short_description(self, test_client):
        user = await signup(test_client)
        response = await test_client.post(
            "/api/places",
            json={
                "title": "Cafe",
                "description": "abc",
                "address": "1 Main St",
                "creator": user["id"],
            },
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["errors"]

    @pytest.mark.asyncio
    async def test_create_missing_title(self, test_client):
        response = await test_client.post(
            "/api/places",
            json={"description": "Good coffee", "address": "1 Main St", "creator": "x"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_unknown_creator(self, test_client):
        response = await test_client.post(
            "/api/places",
            json={
                "title": "Cafe",
                "description": "Good coffee",
                "address": "1 Main St",
                "creator": "nonexistent",
            },
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Provided Creator ID does not exist"

    @pytest.mark.asyncio
    async def test_get_unknown_place(self, test_client):
        place_id = str(uuid.uuid4())
        response = await test_client.get(f"/api/places/{place_id}")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert place_id in body["message"]
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_places_of_unknown_user(self, test_client):
        response = await test_client.get(f"/api/places/user/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["details"]["reason"] == "user_not_found"

    @pytest.mark.asyncio
    async def test_places_of_user_without_places(self, test_client):
        user = await signup(test_client)
        response = await test_client.get(f"/api/places/user/{user['id']}")
        assert response.status_code == 404
        assert response.json()["details"]["reason"] == "no_places"

    @pytest.mark.asyncio
    async def test_update_unknown_place(self, test_client):
        response = await test_client.patch(
            f"/api/places/{uuid.uuid4()}",
            json={"title": "Bistro", "description": "Dinner as well"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_invalid_body(self, test_client):
        user = await signup(test_client)
        place = await create_place(test_client, user["id"])
        response = await test_client.patch(
            f"/api/places/{place['id']}",
            json={"title": "", "description": "Dinner as well"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_unknown_place(self, test_client):
        response = await test_client.delete(f"/api/places/{uuid.uuid4()}")
        assert response.status_code == 404


class TestUsersApi:

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, test_client):
        await signup(test_client, email="ada@example.com")
        response = await test_client.post(
            "/api/users/signup",
            json={"name": "Ada", "email": "ADA@example.com", "password": "secret123"},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "unprocessable_entity"

    @pytest.mark.asyncio
    async def test_signup_invalid_email(self, test_client):
        response = await test_client.post(
            "/api/users/signup",
            json={"name": "Ada", "email": "not-an-email", "password": "secret123"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_signup_short_password(self, test_client):
        response = await test_client.post(
            "/api/users/signup",
            json={"name": "Ada", "email": "ada@example.com", "password": "123"},
        )
        assert response.status_code == 422


class TestMiddlewareAndHealth:

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get(
            f"/api/places/{uuid.uuid4()}", headers={"X-Request-ID": "abc12345"}
        )
        assert response.headers["X-Request-ID"] == "abc12345"
        assert response.json()["request_id"] == "abc12345"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["geocoder"] == "available"

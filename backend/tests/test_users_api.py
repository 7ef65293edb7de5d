"""
Userbase Backend - HTTP API Tests
==================================

What:  End-to-end tests through the full middleware/handler stack.
How:   HTTPX AsyncClient over ASGITransport against an app built on a
       throwaway SQLite database (see conftest.py).

What we test:
    ✅ Envelope shape and status codes for every /api/users operation
    ✅ Create → Get round trip, partial update, delete-twice
    ✅ 400 violation lists, 404 catch-all, malformed JSON
    ✅ 500 responses never leak store detail
    ✅ Health, index, and the headers added by middleware
"""

import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.routes.users import get_user_repository


def parse_ts(value):
    # fromisoformat only accepts a "Z" suffix from Python 3.11
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def create(client, **overrides):
    payload = {
        "firstName": "Alice",
        "lastName": "Wilson",
        "email": "alice@example.com",
        "age": 28,
    }
    payload.update(overrides)
    response = await client.post("/api/users", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateAndGet:

    @pytest.mark.asyncio
    async def test_alice_round_trip(self, test_client, alice_payload):
        response = await test_client.post("/api/users", json=alice_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "SUCCESS"
        assert body["message"] == "User created successfully"
        assert isinstance(body["data"]["id"], int)
        assert "createdAt" in body["data"]
        assert "updatedAt" in body["data"]

        user_id = body["data"]["id"]
        fetched = await test_client.get(f"/api/users/{user_id}")

        assert fetched.status_code == 200
        assert fetched.json()["message"] == "User retrieved successfully"
        data = fetched.json()["data"]
        for key, value in alice_payload.items():
            assert data[key] == value
        assert data["id"] == user_id

    @pytest.mark.asyncio
    async def test_envelope_carries_version_and_timestamp(self, test_client):
        user = await create(test_client)

        body = (await test_client.get(f"/api/users/{user['id']}")).json()

        assert body["version"] == "1.0.0"
        assert body["timestamp"].endswith("Z")
        parse_ts(body["timestamp"])

    @pytest.mark.asyncio
    async def test_record_timestamps_carry_utc_offset(self, test_client):
        user = await create(test_client)

        fetched = (await test_client.get(f"/api/users/{user['id']}")).json()["data"]

        for stamp in (user["createdAt"], user["updatedAt"], fetched["createdAt"], fetched["updatedAt"]):
            assert parse_ts(stamp).utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_empty_first_name_is_400_with_violation(self, test_client, alice_payload):
        alice_payload["firstName"] = ""

        response = await test_client.post("/api/users", json=alice_payload)

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "FAILED"
        assert body["message"] == "Validation failed"
        assert body["data"] == [
            {"field": "firstName", "constraints": {"isNotEmpty": "First name is required"}},
        ]
        assert body["requestId"]

    @pytest.mark.asyncio
    async def test_validation_failure_stores_nothing(self, test_client):
        await test_client.post("/api/users", json={"firstName": "Only"})

        listing = (await test_client.get("/api/users")).json()

        assert listing["data"]["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_get_invalid_id_is_400(self, test_client):
        response = await test_client.get("/api/users/abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid user ID"

    @pytest.mark.asyncio
    async def test_get_missing_is_404(self, test_client):
        response = await test_client.get("/api/users/9999")

        assert response.status_code == 404
        assert response.json() == {
            "status": "FAILED",
            "message": "User not found",
            "version": "1.0.0",
            "timestamp": response.json()["timestamp"],
            "requestId": response.headers["X-Request-ID"],
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["99999999999999999999", "2147483648", "0"])
    async def test_id_no_row_can_have_is_404(self, test_client, user_id):
        response = await test_client.get(f"/api/users/{user_id}")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"
        assert "error" not in response.json()

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, test_client):
        response = await test_client.post(
            "/api/users",
            content=b'{"firstName": "Al',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["status"] == "FAILED"

    @pytest.mark.asyncio
    async def test_array_body_is_400(self, test_client):
        response = await test_client.post("/api/users", json=[1, 2])

        assert response.status_code == 400
        assert response.json()["message"] == "Request body must be a JSON object"


class TestListUsers:

    @pytest.mark.asyncio
    async def test_pagination_metadata(self, test_client):
        for i in range(5):
            await create(test_client, firstName=f"User{i}")

        response = await test_client.get("/api/users", params={"page": 2, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Users retrieved successfully"
        assert [u["firstName"] for u in body["data"]["results"]] == ["User2", "User1"]
        assert body["data"]["pagination"] == {
            "total": 5,
            "page": 2,
            "pageSize": 2,
            "totalPages": 3,
        }

    @pytest.mark.asyncio
    async def test_defaults(self, test_client):
        body = (await test_client.get("/api/users")).json()

        assert body["data"]["results"] == []
        assert body["data"]["pagination"] == {"total": 0, "page": 1, "pageSize": 10, "totalPages": 0}

    @pytest.mark.asyncio
    async def test_huge_page_is_empty_not_500(self, test_client):
        await create(test_client)

        response = await test_client.get("/api/users", params={"page": "99999999999999999999"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["results"] == []
        assert data["pagination"]["total"] == 1
        assert data["pagination"]["totalPages"] == 1

    @pytest.mark.asyncio
    async def test_last_queryable_page_is_empty(self, test_client):
        await create(test_client)

        response = await test_client.get("/api/users", params={"page": str(2**31 - 1), "limit": 100})

        assert response.status_code == 200
        assert response.json()["data"]["results"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params, message", [
        ({"page": 0}, "Page number must be greater than 0"),
        ({"page": "x"}, "Page number must be greater than 0"),
        ({"limit": 0}, "Limit must be between 1 and 100"),
        ({"limit": 101}, "Limit must be between 1 and 100"),
    ])
    async def test_out_of_range_is_400(self, test_client, params, message):
        response = await test_client.get("/api/users", params=params)

        assert response.status_code == 400
        assert response.json()["message"] == message


class TestUpdateUser:

    @pytest.mark.asyncio
    async def test_partial_update_advances_updated_at(self, test_client):
        user = await create(test_client)
        await asyncio.sleep(0.01)

        response = await test_client.put(f"/api/users/{user['id']}", json={"age": 29})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User updated successfully"
        data = body["data"]
        assert data["age"] == 29
        assert data["firstName"] == "Alice"
        assert data["email"] == "alice@example.com"
        assert data["createdAt"] == user["createdAt"]
        assert parse_ts(data["updatedAt"]) > parse_ts(user["updatedAt"])

    @pytest.mark.asyncio
    async def test_cannot_overwrite_id(self, test_client):
        user = await create(test_client)

        response = await test_client.put(f"/api/users/{user['id']}", json={"id": 500, "lastName": "Hale"})

        assert response.json()["data"]["id"] == user["id"]
        assert response.json()["data"]["lastName"] == "Hale"
        assert (await test_client.get("/api/users/500")).status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_merged_record_is_400(self, test_client):
        user = await create(test_client)

        response = await test_client.put(f"/api/users/{user['id']}", json={"age": "old"})

        assert response.status_code == 400
        assert response.json()["data"][0]["field"] == "age"
        unchanged = (await test_client.get(f"/api/users/{user['id']}")).json()["data"]
        assert unchanged["age"] == 28

    @pytest.mark.asyncio
    async def test_missing_is_404(self, test_client):
        response = await test_client.put("/api/users/321", json={"age": 40})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_id_is_400(self, test_client):
        response = await test_client.put("/api/users/1.5", json={"age": 40})

        assert response.status_code == 400


class TestDeleteUser:

    @pytest.mark.asyncio
    async def test_delete_once_then_404(self, test_client):
        user = await create(test_client)

        first = await test_client.delete(f"/api/users/{user['id']}")
        second = await test_client.delete(f"/api/users/{user['id']}")

        assert first.status_code == 200
        assert first.json()["message"] == "User deleted successfully"
        assert "data" not in first.json()
        assert second.status_code == 404
        assert (await test_client.get(f"/api/users/{user['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_id_is_400(self, test_client):
        response = await test_client.delete("/api/users/one")

        assert response.status_code == 400


class TestServerErrors:

    @pytest.mark.asyncio
    async def test_store_failure_is_generic_500(self, app, test_client):
        class BrokenRepository:
            async def get(self, user_id):
                raise OperationalError("SELECT users", {}, Exception("connection refused"))

        app.dependency_overrides[get_user_repository] = lambda: BrokenRepository()

        response = await test_client.get("/api/users/1")

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "Internal server error"
        assert "connection refused" not in response.text

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500_with_detail_outside_production(self, app, test_client):
        class ExplodingRepository:
            async def delete(self, user_id):
                raise RuntimeError("boom")

        app.dependency_overrides[get_user_repository] = lambda: ExplodingRepository()

        response = await test_client.delete("/api/users/1", headers={"X-Request-ID": "trace-500"})

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "FAILED"
        assert body["message"] == "Internal server error"
        assert body["error"] == "RuntimeError: boom"
        assert body["requestId"] == "trace-500"
        assert response.headers["X-Request-ID"] == "trace-500"

    @pytest.mark.asyncio
    async def test_unexpected_error_gets_generated_request_id(self, app, test_client):
        class ExplodingRepository:
            async def get(self, user_id):
                raise RuntimeError("boom")

        app.dependency_overrides[get_user_repository] = lambda: ExplodingRepository()

        response = await test_client.get("/api/users/1")

        assert response.status_code == 500
        assert len(response.json()["requestId"]) == 12
        assert response.headers["X-Request-ID"] == response.json()["requestId"]


class TestShell:

    @pytest.mark.asyncio
    async def test_unknown_route_is_404_envelope(self, test_client):
        response = await test_client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["message"] == (
            "Route /api/nothing-here not found, the requested resource does not exist"
        )

    @pytest.mark.asyncio
    async def test_wrong_method_is_405_envelope(self, test_client):
        response = await test_client.patch("/api/users/1", json={})

        assert response.status_code == 405
        assert response.json()["status"] == "FAILED"

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "SUCCESS"
        assert body["message"] == "userbase is running"
        assert body["version"] == "1.0.0"
        assert body["data"]["name"] == "userbase"
        assert body["data"]["database"] == "connected"

    @pytest.mark.asyncio
    async def test_openapi_documents_strict_pagination(self, test_client):
        schema = (await test_client.get("/openapi.json")).json()

        params = {p["name"]: p for p in schema["paths"]["/api/users"]["get"]["parameters"]}

        for name in ("page", "limit"):
            assert "non-integer value is a 400" in params[name]["description"]

    @pytest.mark.asyncio
    async def test_index_lists_endpoints(self, test_client):
        body = (await test_client.get("/")).json()

        assert body["data"]["endpoints"]["health"] == "/api/health"

    @pytest.mark.asyncio
    async def test_security_and_request_id_headers(self, test_client):
        response = await test_client.get("/api/users", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"

    @pytest.mark.asyncio
    async def test_cors_preflight(self, test_client):
        response = await test_client.options(
            "/api/users",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "DELETE",
            },
        )

        assert response.status_code == 200
        assert "DELETE" in response.headers["access-control-allow-methods"]

"""
API tests for the health probes and the root endpoint.
"""
from unittest.mock import AsyncMock


class TestHealthProbes:
    """Tests for /health, /health/ready and /health/live."""

    def test_health(self, stub_client):
        """It should report status, database and provider routing."""
        body = stub_client.get("/health").json()

        assert body["status"] == "OK"
        assert body["database"] == "connected"
        assert body["version"] == "1.0.0"
        assert body["uptime"] >= 0
        assert body["providers"]["primary"] == "stub"

    def test_health_with_database_down(self, client, store):
        """It should report the database as disconnected."""
        store.ping = AsyncMock(return_value=False)

        body = client.get("/health").json()

        assert body["database"] == "disconnected"

    def test_ready(self, client):
        """It should be ready when the store answers."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "READY"
        assert response.json()["checks"] == {"database": True}

    def test_not_ready(self, client, store):
        """It should answer 503 when the store does not answer."""
        store.ping = AsyncMock(return_value=False)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "NOT READY"

    def test_live(self, client):
        """It should always be alive."""
        body = client.get("/health/live").json()

        assert body["status"] == "ALIVE"
        assert isinstance(body["pid"], int)


class TestRoot:
    """Tests for the root endpoint."""

    def test_root_lists_endpoints(self, client):
        """It should list the API sections."""
        body = client.get("/").json()

        assert body["version"] == "1.0.0"
        assert "/avalancha" in body["endpoints"]

    def test_request_id_header(self, client):
        """It should echo a request id on every response."""
        response = client.get("/health/live", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

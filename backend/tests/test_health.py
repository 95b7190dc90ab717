"""
Tests for health check endpoints.
"""


class TestHealthEndpoints:
    """Test health check API endpoints."""

    def test_health_check(self, client):
        """Basic health check should return healthy status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "rest-api"
        assert data["environment"] == "test"

    def test_detailed_health_check(self, client):
        """Detailed check reports database, outbox worker and breakers."""
        response = client.get("/api/health/detailed")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["database"]["status"] == "healthy"
        # Disabled in tests
        assert data["outbox_processor"]["running"] is False
        assert data["circuit_breakers"]["twilio"]["state"] == "closed"

    def test_security_headers(self, client):
        response = client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in response.headers

    def test_non_json_body_is_rejected(self, client):
        response = client.patch(
            "/api/orders/some-order/items/status",
            content="status=ready",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 415

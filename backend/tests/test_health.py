def test_health_endpoint_returns_ok(client) -> None:
    response = client.get("/api/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["dialects"] == 16
    assert "timestamp" in data

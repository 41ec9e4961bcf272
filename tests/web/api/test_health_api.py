"""
Tests for health endpoints.
"""

from agent_memories import __version__


def test_health_needs_no_auth(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert "timestamp" in data


def test_detailed_health_reports_store_stats(client, auth_headers):
    response = client.get("/health/detailed", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["storage"]["backend"] == "memory"
    assert data["search_provider"] == "StubSearchProvider"
    assert isinstance(data["config_problems"], list)

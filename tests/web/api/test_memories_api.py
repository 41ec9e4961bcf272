# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Tests for Memory CRUD, search and resync API endpoints.
"""

from agent_memories.errors import StoreError
from agent_memories.models import Memory
from agent_memories.search.base import ReindexResponse
from agent_memories.web.dependencies import set_memory_context


def create(client, auth_headers, **body):
    response = client.post("/memories", json=body, headers=auth_headers)
    assert response.status_code == 200, response.text
    return response.json()["memory"]


def test_create_memory(client, auth_headers, search_provider):
    response = client.post(
        "/memories",
        json={"content": "Always use tabs for indentation", "tags": ["coding-style"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    memory = data["memory"]
    assert memory["content"] == "Always use tabs for indentation"
    assert memory["tags"] == ["coding-style"]
    assert memory["source"] == "user"
    assert memory["createdAt"].endswith("Z")
    assert search_provider.reindex_calls == 1


def test_create_then_get(client, auth_headers):
    memory = create(client, auth_headers, content="Prefer pytest", tags=["testing"], source="auto")

    response = client.get(f"/memories/{memory['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"memory": memory}


def test_get_unknown_memory_is_404(client, auth_headers):
    response = client.get("/memories/does-not-exist", headers=auth_headers)

    assert response.status_code == 404
    assert "error" in response.json()


def test_create_with_blank_content_is_400(client, auth_headers):
    response = client.post("/memories", json={"content": "   "}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "content is required and must be a string"}


def test_create_with_malformed_body_is_400(client, auth_headers):
    response = client.post("/memories", json={"content": 42}, headers=auth_headers)
    assert response.status_code == 400
    assert "error" in response.json()

    response = client.post("/memories", content=b"not json", headers={**auth_headers, "Content-Type": "application/json"})
    assert response.status_code == 400


def test_create_with_invalid_source_is_400(client, auth_headers):
    response = client.post("/memories", json={"content": "x", "source": "robot"}, headers=auth_headers)
    assert response.status_code == 400


def test_create_succeeds_when_resync_rejected(client, auth_headers, search_provider):
    search_provider.reindex_response = ReindexResponse(accepted=False, errors=["sync already running"])

    response = client.post("/memories", json={"content": "Durable anyway"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_search_returns_scored_memories(client, auth_headers, search_provider, memory_hit):
    stored = create(client, auth_headers, content="Always use tabs for indentation", tags=["coding-style"])
    search_provider.hits = [memory_hit(Memory.from_dict(stored), 0.82)]

    response = client.get("/memories/search", params={"q": "indentation preferences"}, headers=auth_headers)

    assert response.status_code == 200
    memories = response.json()["memories"]
    assert len(memories) == 1
    assert memories[0]["id"] == stored["id"]
    assert memories[0]["tags"] == ["coding-style"]
    assert memories[0]["score"] == 0.82
    assert search_provider.search_requests[0].max_num_results == 5


def test_search_limit_is_capped(client, auth_headers, search_provider):
    response = client.get("/memories/search", params={"q": "x", "limit": 500}, headers=auth_headers)

    assert response.status_code == 200
    assert search_provider.search_requests[0].max_num_results == 50


def test_search_without_query_is_400(client, auth_headers):
    response = client.get("/memories/search", headers=auth_headers)

    assert response.status_code == 400
    assert "error" in response.json()


def test_list_memories_paginates(client, auth_headers):
    ids = {create(client, auth_headers, content=f"memory {i}")["id"] for i in range(5)}

    first = client.get("/memories", params={"limit": 3}, headers=auth_headers).json()
    second = client.get("/memories", params={"limit": 3, "cursor": first["cursor"]}, headers=auth_headers).json()

    assert len(first["memories"]) == 3
    assert first["cursor"] is not None
    assert len(second["memories"]) == 2
    assert second["cursor"] is None
    assert {m["id"] for m in first["memories"] + second["memories"]} == ids


def test_list_default_page(client, auth_headers):
    response = client.get("/memories", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"memories": [], "cursor": None}


def test_list_with_invalid_limit_is_400(client, auth_headers):
    assert client.get("/memories", params={"limit": 0}, headers=auth_headers).status_code == 400
    assert client.get("/memories", params={"limit": 1001}, headers=auth_headers).status_code == 400
    assert client.get("/memories", params={"limit": "many"}, headers=auth_headers).status_code == 400


def test_delete_memory(client, auth_headers):
    memory = create(client, auth_headers, content="Short lived")

    response = client.delete(f"/memories/{memory['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "resync": {"jobId": "job-1"}}
    assert client.get(f"/memories/{memory['id']}", headers=auth_headers).status_code == 404


def test_delete_unknown_memory_succeeds(client, auth_headers, search_provider):
    search_provider.reindex_response = ReindexResponse(accepted=False, errors=["sync already running"])

    response = client.delete("/memories/never-existed", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["resync"]["error"] == "sync already running"


def test_manual_resync(client, auth_headers):
    response = client.post("/memories/resync", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "jobId": "job-1"}


def test_manual_resync_rejected_is_500(client, auth_headers, search_provider):
    search_provider.reindex_response = ReindexResponse(accepted=False)

    response = client.post("/memories/resync", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Unknown error"}


def test_store_failure_is_502(client, auth_headers, blob_store, monkeypatch):
    async def failing_put(*args, **kwargs):
        raise StoreError("bucket unavailable")

    monkeypatch.setattr(blob_store, "put", failing_put)

    response = client.post("/memories", json={"content": "lost"}, headers=auth_headers)

    assert response.status_code == 502
    assert response.json() == {"error": "bucket unavailable"}


def test_missing_context_is_503(client, auth_headers):
    set_memory_context(None)

    response = client.get("/memories", headers=auth_headers)

    assert response.status_code == 503
    assert response.json() == {"error": "Memory context not initialized"}

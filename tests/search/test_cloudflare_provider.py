"""
Tests for the Cloudflare AI Search provider against a mocked REST API.
"""

import json

import httpx
import pytest

from agent_memories.errors import SearchProviderError, TransportError
from agent_memories.search.base import SearchRequest
from agent_memories.search.cloudflare import CloudflareAISearchProvider, parse_hit

INSTANCE_PATH = "/client/v4/accounts/acct-1/ai-search/instances/memories"


def provider_for(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CloudflareAISearchProvider(
        account_id="acct-1",
        instance="memories",
        api_token="token-1",
        client=client,
    )


@pytest.mark.asyncio
async def test_search_posts_request_and_parses_hits():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={
            "success": True,
            "errors": [],
            "result": {
                "search_query": "indentation preferences",
                "data": [
                    {
                        "file_id": "memories/abc.json",
                        "filename": "memories/abc.json",
                        "score": 0.82,
                        "attributes": {"folder": "memories/"},
                        "content": [{"id": "c1", "type": "text", "text": "{\"id\": \"abc\"}"}],
                    },
                    "not-an-object",
                ],
            },
        })

    provider = provider_for(handler)
    hits = await provider.search(SearchRequest(
        query="indentation preferences",
        max_num_results=5,
        rewrite_query=True,
        score_threshold=0.1,
    ))

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == f"{INSTANCE_PATH}/search"
    assert request.headers["authorization"] == "Bearer token-1"
    assert json.loads(request.content) == {
        "query": "indentation preferences",
        "max_num_results": 5,
        "rewrite_query": True,
        "ranking_options": {"score_threshold": 0.1},
    }

    assert len(hits) == 1
    assert hits[0].file_id == "memories/abc.json"
    assert hits[0].score == 0.82
    assert hits[0].content[0].text == "{\"id\": \"abc\"}"
    assert hits[0].attributes == {"folder": "memories/"}


@pytest.mark.asyncio
async def test_search_failure_raises_provider_error():
    def handler(request):
        return httpx.Response(400, json={"success": False, "errors": [{"code": 7003, "message": "instance not found"}]})

    with pytest.raises(SearchProviderError, match="instance not found"):
        await provider_for(handler).search(SearchRequest(query="q", max_num_results=5))


@pytest.mark.asyncio
async def test_search_failure_without_message():
    def handler(request):
        return httpx.Response(500, json={"success": False, "errors": []})

    with pytest.raises(SearchProviderError, match="Unknown error"):
        await provider_for(handler).search(SearchRequest(query="q", max_num_results=5))


@pytest.mark.asyncio
async def test_non_json_response_raises_transport_error():
    def handler(request):
        return httpx.Response(502, text="<html>Bad gateway</html>")

    with pytest.raises(TransportError):
        await provider_for(handler).search(SearchRequest(query="q", max_num_results=5))


@pytest.mark.asyncio
async def test_network_failure_raises_transport_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(TransportError):
        await provider_for(handler).request_reindex()


@pytest.mark.asyncio
async def test_reindex_accepted():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"success": True, "errors": [], "result": {"id": "job-7"}})

    response = await provider_for(handler).request_reindex()

    assert seen[0].url.path == f"{INSTANCE_PATH}/jobs"
    assert response.accepted is True
    assert response.job_id == "job-7"


@pytest.mark.asyncio
async def test_reindex_rejected_returns_errors():
    def handler(request):
        return httpx.Response(429, json={"success": False, "errors": [{"message": "sync already running"}]})

    response = await provider_for(handler).request_reindex()

    assert response.accepted is False
    assert response.errors == ["sync already running"]


def test_parse_hit_tolerates_malformed_fields():
    hit = parse_hit({"filename": "notes.md", "score": "high", "content": [{"type": "text"}, "junk"]})

    assert hit.file_id == "notes.md"
    assert hit.score == 0.0
    assert hit.content == []
    assert parse_hit(None) is None

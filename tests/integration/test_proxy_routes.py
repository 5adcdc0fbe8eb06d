"""Tests d'intégration: application complète devant un backend simulé.

Le backend est un `httpx.MockTransport` injecté via `create_app(backend_transport=...)`;
aucune socket n'est ouverte.
"""

from __future__ import annotations

import asyncio
import json
from typing import AsyncGenerator, Callable, List

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from webai_proxy.config.settings import ProxyConfig
from webai_proxy.main import create_app
from webai_proxy.services.request_logger import NullRequestLogger


class FakeBackend:
    """Backend simulé qui enregistre les requêtes reçues."""

    def __init__(self, handler: Callable[[httpx.Request], object]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.handler(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


def chunked(*chunks: bytes) -> Callable[[httpx.Request], httpx.Response]:
    async def body():
        for chunk in chunks:
            yield chunk

    return lambda request: httpx.Response(200, content=body())


def delta(text: str) -> bytes:
    return json.dumps({"choices": [{"message": {"content": text}}]}).encode()


def build_app(backend: FakeBackend, config: ProxyConfig) -> FastAPI:
    return create_app(config=config, request_logger=NullRequestLogger(), backend_transport=backend.transport)


@pytest_asyncio.fixture
async def make_client(test_config) -> AsyncGenerator[Callable, None]:
    clients: List[httpx.AsyncClient] = []

    def factory(handler, config: ProxyConfig = test_config) -> tuple:
        backend = FakeBackend(handler)
        app = build_app(backend, config)
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://proxy.test")
        clients.append(client)
        return client, backend

    yield factory

    for client in clients:
        await client.aclose()


HELLO = {"model": "x", "messages": [{"role": "user", "content": "Hello?"}], "stream": False}


# ============================================================================
# CHAT OLLAMA
# ============================================================================

@pytest.mark.asyncio
async def test_ollama_buffered_chat(make_client):
    client, backend = make_client(lambda request: httpx.Response(200, content=delta("Hi there")))

    response = await client.post("/api/chat", json=HELLO)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == {"role": "assistant", "content": "Hi there"}
    assert data["done"] is True
    assert data["model"] == "x"
    assert data["total_duration"] > 0
    assert response.headers["access-control-allow-origin"] == "*"

    sent = backend.requests[-1]
    assert sent.method == "POST"
    assert sent.url.path == "/prompt"
    assert backend.last_json == {"message": HELLO["messages"]}
    assert "x-api-key" not in sent.headers


@pytest.mark.asyncio
async def test_ollama_streaming_chat(make_client):
    client, _ = make_client(chunked(delta("Hel"), delta("lo")))

    response = await client.post("/api/chat", json={**HELLO, "stream": True})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    lines = [json.loads(line) for line in response.text.splitlines() if line.strip()]
    assert len(lines) == 3
    assert [line["message"]["content"] for line in lines] == ["Hel", "lo", ""]
    assert [line["done"] for line in lines] == [False, False, True]
    assert all(line["model"] == "x" for line in lines)


@pytest.mark.asyncio
async def test_ollama_concatenated_backend_body(make_client):
    body = (
        b'{"choices":[{"message":{"content":"A"}}]}'
        b'{"usage":{"prompt_tokens":5,"completion_tokens":3},"model":"x","choices":[{"finish_reason":"stop"}]}'
    )
    client, _ = make_client(lambda request: httpx.Response(200, content=body))

    data = (await client.post("/api/chat", json=HELLO)).json()

    assert data["message"]["content"] == "A"
    assert data["prompt_eval_count"] == 5
    assert data["eval_count"] == 3
    assert data["done_reason"] == "stop"


@pytest.mark.asyncio
async def test_plain_text_backend_body(make_client):
    client, _ = make_client(lambda request: httpx.Response(200, text="just text"))
    data = (await client.post("/api/chat", json=HELLO)).json()
    assert data["message"]["content"] == "just text"


# ============================================================================
# CHAT OPENAI
# ============================================================================

@pytest.mark.asyncio
async def test_openai_buffered_chat(make_client):
    client, _ = make_client(lambda request: httpx.Response(200, content=delta("one two three")))

    payload = {"model": "gpt-4", "messages": [{"role": "user", "content": "Hello?"}]}
    response = await client.post("/v1/chat/completions", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["object"] == "chat.completion"
    assert data["model"] == "gpt-4"
    assert data["choices"][0]["message"]["content"] == "one two three"
    assert data["usage"] == {"prompt_tokens": 2, "completion_tokens": 4, "total_tokens": 6}


@pytest.mark.asyncio
async def test_openai_streaming_chat(make_client):
    client, _ = make_client(chunked(delta("Hi"), b"{broken", delta("!")))

    payload = {"model": "gpt-4", "messages": [], "stream": True}
    response = await client.post("/v1/chat/completions", json=payload)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    events = [block for block in response.text.split("\n\n") if block]
    assert events[-1] == "data: [DONE]"
    chunks = [json.loads(event[len("data: "):]) for event in events[:-1]]
    assert [chunk["choices"][0]["delta"]["content"] for chunk in chunks] == ["Hi", "!"]
    assert chunks[0]["id"] == chunks[1]["id"]


@pytest.mark.asyncio
async def test_malformed_json_body(make_client):
    client, backend = make_client(lambda request: httpx.Response(200))

    response = await client.post(
        "/v1/chat/completions",
        content=b'{"model": "gpt-4",',
        headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Invalid JSON in Request Body"
    assert data["details"]
    assert backend.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/chat", "/v1/chat/completions"])
async def test_null_chat_body(make_client, path):
    client, backend = make_client(lambda request: httpx.Response(200, content=delta("x")))

    response = await client.post(path, content=b"null", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON in Request Body"
    assert backend.requests == []


@pytest.mark.asyncio
async def test_missing_body(make_client):
    client, backend = make_client(lambda request: httpx.Response(200))

    response = await client.post("/api/chat")

    assert response.status_code == 400
    assert response.json()["error"] == "Missing Request Body"
    assert backend.requests == []


# ============================================================================
# ERREURS BACKEND
# ============================================================================

@pytest.mark.asyncio
async def test_backend_unauthorized(make_client):
    client, _ = make_client(lambda request: httpx.Response(401, json={"detail": "bad key"}))

    response = await client.post("/api/chat", json=HELLO)

    assert response.status_code == 401
    error = response.json()["error"]
    assert "TARGET_API_KEY" in error
    assert "Authorization: Bearer" in error


@pytest.mark.asyncio
async def test_backend_unauthorized_while_streaming(make_client):
    client, _ = make_client(lambda request: httpx.Response(401, text="nope"))
    response = await client.post("/api/chat", json={**HELLO, "stream": True})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_backend_error_is_relayed(make_client):
    client, _ = make_client(
        lambda request: httpx.Response(429, json={"error": "rate limited"}, headers={"Retry-After": "7"})
    )

    response = await client.post("/api/chat", json=HELLO)

    assert response.status_code == 429
    assert response.json() == {"error": "rate limited"}
    assert response.headers["retry-after"] == "7"


@pytest.mark.asyncio
async def test_backend_text_error_is_wrapped(make_client):
    client, _ = make_client(lambda request: httpx.Response(500, text="kaboom"))

    response = await client.post("/v1/chat/completions", json={"messages": []})

    assert response.status_code == 500
    assert response.json() == {"error": "Backend Error", "statusCode": 500, "details": "kaboom"}


@pytest.mark.asyncio
async def test_backend_timeout(make_client):
    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200, content=delta("too late"))

    config = ProxyConfig(target_domain="backend.test", target_timeout_ms=10)
    client, _ = make_client(slow, config)

    response = await client.post("/api/chat", json=HELLO)

    assert response.status_code == 504
    assert response.json() == {"error": "Backend server response timed out."}


@pytest.mark.asyncio
async def test_backend_unreachable(make_client):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = make_client(refuse)

    response = await client.post("/api/chat", json=HELLO)

    assert response.status_code == 502
    data = response.json()
    assert data["error"] == "Proxy Error"
    assert "connection refused" in data["details"]


# ============================================================================
# AUTHENTIFICATION BACKEND
# ============================================================================

@pytest.mark.asyncio
async def test_bearer_token_forwarded_as_api_key(make_client):
    client, backend = make_client(lambda request: httpx.Response(200, content=delta("ok")))

    await client.post("/api/chat", json=HELLO, headers={"Authorization": "Bearer client-token"})

    assert backend.requests[-1].headers["x-api-key"] == "client-token"


@pytest.mark.asyncio
async def test_configured_key_used_without_bearer(make_client, keyed_config):
    client, backend = make_client(lambda request: httpx.Response(200, content=delta("ok")), keyed_config)

    await client.post("/api/chat", json=HELLO)

    assert backend.requests[-1].headers["x-api-key"] == "config-key"


# ============================================================================
# ENDPOINTS DIRECTS ET PASS-THROUGH
# ============================================================================

@pytest.mark.asyncio
async def test_root_health(make_client):
    client, backend = make_client(lambda request: httpx.Response(200))

    response = await client.get("/")

    assert response.status_code == 200
    assert response.text == "Ollama is running"
    assert backend.requests == []


@pytest.mark.asyncio
async def test_ollama_tags(make_client):
    client, backend = make_client(lambda request: httpx.Response(200))

    data = (await client.get("/api/tags")).json()

    model = data["models"][0]
    assert model["name"] == "webai-llm"
    assert model["details"]["family"] == "webai"
    assert backend.requests == []


@pytest.mark.asyncio
async def test_openai_models(make_client):
    client, _ = make_client(lambda request: httpx.Response(200))

    data = (await client.get("/v1/models")).json()

    assert data["object"] == "list"
    assert data["data"][0]["id"] == "webai-llm"
    assert data["data"][0]["owned_by"] == "webai-proxy"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/chat", "/v1/chat/completions", "/anything/else"])
async def test_options_preflight(make_client, path):
    client, backend = make_client(lambda request: httpx.Response(200))

    response = await client.options(path, headers={"Origin": "http://ui.test"})

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert response.headers["access-control-max-age"] == "86400"
    assert backend.requests == []


@pytest.mark.asyncio
async def test_passthrough_forwards_path_and_body(make_client):
    client, backend = make_client(lambda request: httpx.Response(200, content=delta("shown")))

    response = await client.post("/api/show?verbose=true", json={"name": "llama3"})

    assert response.status_code == 200
    sent = backend.requests[-1]
    assert sent.url.path == "/api/show"
    assert sent.url.params["verbose"] == "true"
    assert backend.last_json == {"name": "llama3"}
    assert response.json()["content"] == "shown"


@pytest.mark.asyncio
async def test_passthrough_get_without_body(make_client):
    client, backend = make_client(lambda request: httpx.Response(200, content=delta("ps")))

    response = await client.get("/api/ps")

    assert response.status_code == 200
    assert backend.requests[-1].method == "GET"
    assert backend.requests[-1].content == b""


@pytest.mark.asyncio
async def test_passthrough_streaming_relays_bytes(make_client):
    client, _ = make_client(chunked(b"raw-", b"bytes"))

    response = await client.post("/api/pull", json={"name": "m", "stream": True})

    assert response.status_code == 200
    assert response.content == b"raw-bytes"


@pytest.mark.asyncio
async def test_simple_cors_request_uses_wildcard_without_credentials(make_client):
    client, _ = make_client(lambda request: httpx.Response(200))

    response = await client.get("/api/tags", headers={"Origin": "http://ui.test"})

    assert response.headers["access-control-allow-origin"] == "*"
    assert "access-control-allow-credentials" not in response.headers


@pytest.mark.asyncio
async def test_relayed_error_drops_backend_date_and_server(make_client):
    client, _ = make_client(
        lambda request: httpx.Response(
            503,
            json={"error": "busy"},
            headers={"Date": "Mon, 01 Jan 2024 00:00:00 GMT", "Server": "backend/1.0", "X-Trace": "t"},
        )
    )

    response = await client.post("/api/chat", json=HELLO)

    assert response.status_code == 503
    assert response.headers["x-trace"] == "t"
    assert "date" not in response.headers
    assert "server" not in response.headers

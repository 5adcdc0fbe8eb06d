"""
Tests unitaires pour le client HTTPX du proxy.
"""
import asyncio

import httpx
import pytest

from webai_proxy.config.settings import ProxyConfig
from webai_proxy.core.exceptions import BackendTimeoutError, BackendTransportError
from webai_proxy.core.models import BackendRequest
from webai_proxy.proxy.client import ProxyClient, create_proxy_client


def prompt_request(content=b'{"message":[]}'):
    return BackendRequest(
        method="POST",
        path="/prompt",
        headers={"Content-Type": "application/json"},
        content=content
    )


class TestProxyClient:

    def test_create_from_config(self):
        config = ProxyConfig(target_domain="example.com", target_port=443, target_timeout_ms=1500)
        client = create_proxy_client(config)
        assert client.base_url == "https://example.com:443"
        assert client.timeout == 1.5

    @pytest.mark.asyncio
    async def test_send_targets_prompt(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = request.content
            seen["key"] = request.headers.get("x-api-key")
            return httpx.Response(200, json={"ok": True})

        request = BackendRequest(
            method="POST",
            path="/prompt",
            headers={"Content-Type": "application/json", "x-api-key": "k"},
            content=b'{"message":[]}'
        )
        async with ProxyClient("http://backend.test:10501", transport=httpx.MockTransport(handler)) as client:
            response = await client.send(request)

        assert response.status_code == 200
        assert seen["url"] == "http://backend.test:10501/prompt"
        assert seen["body"] == b'{"message":[]}'
        assert seen["key"] == "k"

    @pytest.mark.asyncio
    async def test_timeout_raises_504_error(self):
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200)

        client = ProxyClient("http://backend.test", timeout=0.01, transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(BackendTimeoutError):
                await client.send(prompt_request())
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_connect_error_raises_502_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = ProxyClient("http://backend.test", transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(BackendTransportError) as exc_info:
                await client.send_streaming(prompt_request())
        finally:
            await client.aclose()
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self):
        client = ProxyClient("http://backend.test")
        _ = client.client
        await client.aclose()
        await client.aclose()
        assert client._client is None

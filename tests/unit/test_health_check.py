"""
Tests du health check du backend.
"""
import httpx
import pytest

from webai_proxy.services.health_check import check_target_connection, log_target_status


@pytest.mark.asyncio
async def test_reachable_backend(test_config):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(404)

    assert await check_target_connection(test_config, transport=httpx.MockTransport(handler)) is True
    assert seen == ["http://backend.test:10501/"]


@pytest.mark.asyncio
async def test_backend_server_error(test_config):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    assert await check_target_connection(test_config, transport=transport) is False


@pytest.mark.asyncio
async def test_unreachable_backend(test_config):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert await check_target_connection(test_config, transport=httpx.MockTransport(handler)) is False


def test_log_target_status(test_config, caplog):
    with caplog.at_level("WARNING", logger="webai_proxy.services.health_check"):
        log_target_status(test_config, False)
    assert "injoignable" in caplog.text

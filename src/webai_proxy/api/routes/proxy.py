"""
Routes proxy: `/api/chat`, `/v1/chat/completions` et pass-through.

Chaque requête entrante donne lieu à exactement un appel backend, sans
retry. Les erreurs sont levées sous forme de `WebAIProxyError` et rendues
en JSON par le handler enregistré dans `main.py`.
"""
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from ...config.settings import ProxyConfig
from ...core.constants import OLLAMA_CHAT_PATH, OPENAI_CHAT_PATH
from ...core.exceptions import InternalProxyError, WebAIProxyError
from ...core.models import BackendRequest, PathKind, ProxyRequestContext
from ...proxy.aggregator import aggregate_backend_response
from ...proxy.client import create_proxy_client
from ...proxy.errors import classify_backend_status
from ...proxy.formatters import create_ollama_response, create_openai_response
from ...proxy.request import BODY_METHODS, normalize_request
from ...proxy.stream import (
    STREAM_HEADERS,
    STREAM_MEDIA_TYPES,
    relay_generator,
    stream_generator,
)
from ...services.request_logger import RequestLogger
from ..dependencies import get_backend_transport, get_proxy_config, get_request_logger

logger = logging.getLogger(__name__)

router = APIRouter()

# Route attrape-tout, à inclure en dernier
passthrough_router = APIRouter()

PASSTHROUGH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@router.post(OLLAMA_CHAT_PATH)
async def ollama_chat(
    request: Request,
    config: ProxyConfig = Depends(get_proxy_config),
    request_logger: RequestLogger = Depends(get_request_logger),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_backend_transport),
):
    """Chat Ollama traduit vers le backend `/prompt`."""
    return await handle_proxy_request(request, config, request_logger, transport)


@router.post(OPENAI_CHAT_PATH)
async def openai_chat(
    request: Request,
    config: ProxyConfig = Depends(get_proxy_config),
    request_logger: RequestLogger = Depends(get_request_logger),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_backend_transport),
):
    """Chat OpenAI traduit vers le backend `/prompt`."""
    return await handle_proxy_request(request, config, request_logger, transport)


@passthrough_router.api_route("/{path:path}", methods=PASSTHROUGH_METHODS)
async def passthrough(
    request: Request,
    config: ProxyConfig = Depends(get_proxy_config),
    request_logger: RequestLogger = Depends(get_request_logger),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_backend_transport),
):
    """Chemins inconnus: body relayé tel quel vers le même chemin backend."""
    return await handle_proxy_request(request, config, request_logger, transport)


async def handle_proxy_request(
    request: Request,
    config: ProxyConfig,
    request_logger: RequestLogger,
    transport: Optional[httpx.AsyncBaseTransport] = None
):
    """
    Pipeline complet d'une requête proxifiée.

    normalisation -> appel backend -> classification d'erreur
    -> agrégation ou streaming -> formatage
    """
    method = request.method.upper()
    raw_body = await request.body() if method in BODY_METHODS else b""
    request_logger.log_request_body(raw_body)

    try:
        ctx, backend_request = normalize_request(
            method=method,
            path=request.url.path,
            headers=request.headers,
            raw_body=raw_body,
            config=config,
            query=request.url.query
        )
        return await _proxy_to_backend(ctx, backend_request, config, request_logger, transport)
    except WebAIProxyError:
        raise
    except Exception as e:
        logger.exception("🔴 [PROXY] Erreur interne sur %s %s", method, request.url.path)
        raise InternalProxyError() from e


async def _proxy_to_backend(
    ctx: ProxyRequestContext,
    backend_request: BackendRequest,
    config: ProxyConfig,
    request_logger: RequestLogger,
    transport: Optional[httpx.AsyncBaseTransport] = None
):
    """Effectue l'appel backend unique et construit la réponse client."""
    client = create_proxy_client(config, transport=transport)
    logger.info(
        "🔄 [PROXY] %s %s -> %s%s (model=%s, stream=%s)",
        ctx.method, ctx.path, config.target_base_url, backend_request.path,
        ctx.model, ctx.stream
    )

    if ctx.stream:
        return await _stream_from_backend(ctx, backend_request, client)

    try:
        response = await client.send(backend_request)
    finally:
        await client.aclose()

    if response.status_code >= 400:
        raise classify_backend_status(response.status_code, response.content, response.headers)

    try:
        body = _build_buffered_body(ctx, response.content)
    except Exception as e:
        logger.exception("🔴 [PROXY] Erreur de traitement de la réponse backend")
        raise InternalProxyError("Internal Server Error handling proxy response", details=None) from e

    request_logger.log_response_body(body)
    return JSONResponse(
        content=body,
        status_code=200,
        headers={"Access-Control-Allow-Origin": "*"}
    )


def _build_buffered_body(ctx: ProxyRequestContext, raw: bytes) -> dict:
    result = aggregate_backend_response(raw, ctx.model)

    if ctx.path_kind is PathKind.OPENAI_CHAT:
        return create_openai_response(result.content, ctx.model, ctx.prompt_messages, result.stats)
    if ctx.path_kind is PathKind.OLLAMA_CHAT:
        return create_ollama_response(result.content, ctx.model, result.stats, ctx.elapsed_ns)
    # Chemins inconnus: contenu brut + stats
    return result.to_dict()


async def _stream_from_backend(ctx, backend_request, client):
    try:
        response = await client.send_streaming(backend_request)
    except BaseException:
        await client.aclose()
        raise

    if response.status_code >= 400:
        try:
            error_body = await response.aread()
        finally:
            await response.aclose()
            await client.aclose()
        raise classify_backend_status(response.status_code, error_body, response.headers)

    if ctx.path_kind is PathKind.OTHER:
        return StreamingResponse(
            relay_generator(response, on_close=client.aclose),
            status_code=response.status_code,
            media_type=response.headers.get("content-type", "application/octet-stream"),
            headers={"Access-Control-Allow-Origin": "*"}
        )

    return StreamingResponse(
        stream_generator(response, ctx, on_close=client.aclose),
        status_code=200,
        media_type=STREAM_MEDIA_TYPES[ctx.path_kind],
        headers=STREAM_HEADERS[ctx.path_kind]
    )

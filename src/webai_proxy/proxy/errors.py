"""
Classification des échecs backend en réponses client.

- 401 backend        -> message fixe expliquant les deux façons de s'authentifier
- autre >= 400       -> corps backend relayé (ou enveloppé s'il n'est pas JSON)
- erreur de socket   -> 502
- timeout            -> 504
- reste              -> 500
"""
import asyncio
import json
import logging
from typing import Dict, Mapping, Optional

import httpx
from fastapi.responses import JSONResponse

from ..core.exceptions import (
    BackendTimeoutError,
    BackendTransportError,
    InternalProxyError,
    UpstreamAuthError,
    UpstreamError,
    WebAIProxyError,
)

logger = logging.getLogger(__name__)


def filter_response_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """
    Filtre les headers de réponse backend avant de les relayer.

    Pourquoi: le proxy renvoie un corps unique, déjà décompressé par httpx.
    Les headers de transfert et d'encodage du backend n'ont plus de sens.
    """
    filtered = {}
    skip_headers = {
        'content-encoding',   # Déjà décompressé par httpx
        'transfer-encoding',  # Chunked n'a plus de sens
        'content-length',     # Recalculé par Starlette
        'content-type',       # Forcé en JSON
        'connection',
        'date',               # Ajoutés par le serveur ASGI
        'server',
    }

    for key, value in headers.items():
        if key.lower() not in skip_headers:
            filtered[key] = value

    return filtered


def classify_backend_status(
    status_code: int,
    body: bytes,
    headers: Optional[Mapping[str, str]] = None
) -> WebAIProxyError:
    """
    Construit l'exception correspondant à un status backend >= 400.

    Args:
        status_code: Status renvoyé par le backend
        body: Corps brut de la réponse d'erreur
        headers: Headers backend (relayés, filtrés)
    """
    text = body.decode("utf-8", errors="replace")
    logger.error("❌ [PROXY] Erreur backend %s: %.500s", status_code, text)

    if status_code == 401:
        return UpstreamAuthError()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        payload = {
            "error": "Backend Error",
            "statusCode": status_code,
            "details": text,
        }

    return UpstreamError(
        status_code=status_code,
        body=payload,
        headers=filter_response_headers(headers or {})
    )


def classify_transport_error(
    error: BaseException,
    timeout_ms: Optional[int] = None
) -> WebAIProxyError:
    """Mappe une exception réseau/timeout vers l'erreur client."""
    if isinstance(error, WebAIProxyError):
        return error
    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        logger.error("🔴 [PROXY] Timeout backend (%sms): %s", timeout_ms, error)
        return BackendTimeoutError(timeout_ms)
    if isinstance(error, httpx.TransportError):
        logger.error("🔴 [PROXY] Erreur de connexion backend: %r", error)
        return BackendTransportError(str(error) or error.__class__.__name__)
    logger.error("🔴 [PROXY] Erreur inattendue: %r", error)
    return InternalProxyError()


def error_response(error: WebAIProxyError) -> JSONResponse:
    """Réponse JSON pour une erreur du proxy."""
    headers = {"Access-Control-Allow-Origin": "*"}
    if isinstance(error, UpstreamError):
        headers = {**error.headers, **headers}
    return JSONResponse(
        content=error.to_response_body(),
        status_code=error.status_code,
        headers=headers
    )

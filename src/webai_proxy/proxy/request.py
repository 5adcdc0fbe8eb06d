"""
Normalisation des requêtes entrantes et résolution de la clé backend.

Les deux dialectes (Ollama `/api/chat`, OpenAI `/v1/chat/completions`)
aboutissent au même format backend: `{"message": [...]}` sur `/prompt`.
"""
import json
import logging
from typing import Any, Mapping, Optional, Tuple

from ..config.settings import ProxyConfig
from ..core.constants import BACKEND_API_KEY_HEADER, BACKEND_PROMPT_PATH, DEFAULT_MODEL
from ..core.exceptions import InvalidBodyError, MissingBodyError
from ..core.models import BackendRequest, PathKind, ProxyRequestContext

logger = logging.getLogger(__name__)

# Seules ces méthodes transportent un body
BODY_METHODS = frozenset({"POST", "PUT"})


def parse_request_body(raw_body: bytes, method: str) -> Any:
    """
    Parse le body JSON entrant.

    Returns:
        L'objet JSON, ou `None` si la méthode n'a pas de body

    Raises:
        MissingBodyError: POST/PUT sans body
        InvalidBodyError: body présent mais pas du JSON
    """
    if method.upper() not in BODY_METHODS:
        return None
    if not raw_body:
        raise MissingBodyError()
    try:
        return json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidBodyError(str(e)) from e


def resolve_credential(
    authorization: Optional[str],
    config: ProxyConfig
) -> Optional[str]:
    """
    Détermine la clé à transmettre au backend.

    Ordre: token Bearer du client, puis TARGET_API_KEY, sinon rien.
    """
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            return token
    if config.target_api_key:
        return config.target_api_key
    return None


def build_backend_headers(content: bytes, credential: Optional[str]) -> dict:
    """Headers minimaux envoyés au backend."""
    headers = {
        "Content-Type": "application/json",
        "Content-Length": str(len(content)),
        "Connection": "keep-alive",
    }
    if credential:
        headers[BACKEND_API_KEY_HEADER] = credential
    return headers


def normalize_request(
    method: str,
    path: str,
    headers: Mapping[str, str],
    raw_body: bytes,
    config: ProxyConfig,
    query: str = ""
) -> Tuple[ProxyRequestContext, BackendRequest]:
    """
    Traduit une requête entrante en requête backend.

    Args:
        method: Méthode HTTP entrante
        path: Chemin entrant (sans query string)
        headers: Headers entrants (insensibles à la casse côté Starlette)
        raw_body: Body brut collecté
        config: Configuration du proxy
        query: Query string entrante, relayée sur les chemins pass-through

    Returns:
        (contexte de requête, requête backend)

    Raises:
        ClientInputError: Body absent ou invalide
    """
    method = method.upper()
    path_kind = PathKind.from_path(path)
    body = parse_request_body(raw_body, method)

    # `null` est du JSON valide mais pas un objet
    if path_kind.is_chat and method in BODY_METHODS and not isinstance(body, dict):
        raise InvalidBodyError("Request body must be a JSON object")

    ctx = ProxyRequestContext(path=path, path_kind=path_kind, method=method)

    if isinstance(body, dict):
        ctx.model = body.get("model") or DEFAULT_MODEL
        ctx.stream = bool(body.get("stream"))
        messages = body.get("messages")
        if isinstance(messages, list):
            ctx.prompt_messages = messages

    ctx.credential = resolve_credential(headers.get("authorization"), config)

    if path_kind.is_chat:
        content = b""
        if body is not None:
            content = json.dumps({"message": body.get("messages", [])}).encode("utf-8")
        backend_path = BACKEND_PROMPT_PATH
    else:
        content = raw_body if body is not None else b""
        backend_path = f"{path}?{query}" if query else path

    backend_request = BackendRequest(
        method=method,
        path=backend_path,
        headers=build_backend_headers(content, ctx.credential),
        content=content
    )

    logger.debug(
        "[PROXY] %s %s -> %s (model=%s, stream=%s, credential=%s)",
        method, path, backend_path, ctx.model, ctx.stream,
        "oui" if ctx.credential else "non"
    )
    return ctx, backend_request

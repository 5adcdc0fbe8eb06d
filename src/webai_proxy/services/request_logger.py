"""
Journalisation des requêtes entrantes et des réponses sortantes.

Le logger est injecté dans l'application (`create_app(request_logger=...)`)
plutôt que lu globalement; `NullRequestLogger` sert dans les tests.
Les appels restent synchrones et bon marché: ils ne bloquent pas la
réponse (pas d'I/O réseau, seulement le module logging).
"""
import json
import logging
from typing import Any, Mapping, Optional, Union

from ..core.constants import BACKEND_API_KEY_HEADER

SENSITIVE_HEADERS = {"authorization", BACKEND_API_KEY_HEADER, "cookie"}


def mask_headers(headers: Optional[Mapping[str, str]]) -> dict:
    """Copie des headers avec les secrets masqués."""
    masked = {}
    for key, value in (headers or {}).items():
        if key.lower() in SENSITIVE_HEADERS and value:
            masked[key] = value[:10] + "..." if len(value) > 16 else "***"
        else:
            masked[key] = value
    return masked


def _render_body(body: Union[bytes, str, Any, None]) -> str:
    if body is None or body == b"" or body == "":
        return "(empty)"
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        try:
            return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
        except (json.JSONDecodeError, ValueError):
            return f"(raw): {body}"
    try:
        return json.dumps(body, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return f"(unknown format): {body!r}"


class RequestLogger:
    """Interface de journalisation; l'implémentation de base ne fait rien."""

    def log_request(
        self,
        method: str,
        path: str,
        query: str = "",
        client: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> None:
        pass

    def log_request_body(self, body: Union[bytes, str, None]) -> None:
        pass

    def log_response(
        self,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None
    ) -> None:
        pass

    def log_response_body(self, body: Any) -> None:
        pass


class NullRequestLogger(RequestLogger):
    """Logger muet pour les tests."""


class LoggingRequestLogger(RequestLogger):
    """Implémentation par défaut basée sur le module logging."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("webai_proxy.requests")

    def log_request(self, method, path, query="", client=None, headers=None):
        target = f"{path}?{query}" if query else path
        self.logger.info(
            "=== Incoming Request ===\n  %s %s\n  From: %s\n  Headers: %s",
            method, target, client or "unknown", mask_headers(headers)
        )

    def log_request_body(self, body):
        self.logger.info("  Request body: %s", _render_body(body))

    def log_response(self, status_code, headers=None):
        self.logger.info(
            "--- Outgoing Response ---\n  Status: %s\n  Headers: %s",
            status_code, mask_headers(headers)
        )

    def log_response_body(self, body):
        self.logger.info("  Response body: %s", _render_body(body))


def create_request_logger(enabled: bool = True) -> RequestLogger:
    """Factory: logger réel ou muet."""
    return LoggingRequestLogger() if enabled else NullRequestLogger()

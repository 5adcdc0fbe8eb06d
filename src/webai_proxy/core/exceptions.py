"""
Exceptions personnalisées pour WebAI Proxy.

Chaque exception porte le status HTTP à renvoyer au client; le handler
FastAPI enregistré dans `main.py` la sérialise en `{error, details?}`.
"""
from typing import Any, Dict, Optional


class WebAIProxyError(Exception):
    """Exception de base pour toutes les erreurs du proxy."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = None,
        details: Any = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_response_body(self) -> Dict[str, Any]:
        """Corps JSON renvoyé au client."""
        if self.details is not None:
            return {"error": self.message, "details": self.details}
        return {"error": self.message}

    def __str__(self):
        if self.details is not None:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"


class ConfigurationError(WebAIProxyError):
    """Erreur de configuration (variable d'environnement invalide)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else None
        )


class ClientInputError(WebAIProxyError):
    """Requête client inexploitable (400). Jamais retentée."""

    status_code = 400


class InvalidBodyError(ClientInputError):
    """Body présent mais pas du JSON valide."""

    def __init__(self, details: str):
        super().__init__(
            message="Invalid JSON in Request Body",
            code="invalid_body",
            details=details
        )


class MissingBodyError(ClientInputError):
    """POST/PUT sans body."""

    def __init__(self):
        super().__init__(
            message="Missing Request Body",
            code="missing_body",
            details="This endpoint requires a JSON request body, but none was provided."
        )


class UpstreamAuthError(WebAIProxyError):
    """Le backend a répondu 401."""

    status_code = 401

    def __init__(self):
        super().__init__(
            message=(
                "Authentication error: Unauthorized access to the target server. "
                "Ensure the correct authentication token is provided. This can be done via: "
                "1) Setting the TARGET_API_KEY environment variable in the proxy's .env file, OR "
                "2) Sending an 'Authorization: Bearer <your-token>' header with your request."
            ),
            code="upstream_auth_error"
        )


class UpstreamError(WebAIProxyError):
    """
    Erreur 4xx/5xx du backend, relayée telle quelle.

    `body` est le JSON à renvoyer (celui du backend s'il est parsable,
    sinon l'enveloppe "Backend Error").
    """

    def __init__(self, status_code: int, body: Dict[str, Any], headers: Dict[str, str] = None):
        super().__init__(
            message="Backend Error",
            code="upstream_error",
            status_code=status_code
        )
        self.body = body
        self.headers = headers or {}

    def to_response_body(self) -> Any:
        return self.body


class BackendTransportError(WebAIProxyError):
    """Connexion au backend refusée ou interrompue (502)."""

    status_code = 502

    def __init__(self, details: str):
        super().__init__(message="Proxy Error", code="transport_error", details=details)


class BackendTimeoutError(WebAIProxyError):
    """Le backend n'a pas répondu dans le délai configuré (504)."""

    status_code = 504

    def __init__(self, timeout_ms: Optional[int] = None):
        super().__init__(message="Backend server response timed out.", code="timeout_error")
        self.timeout_ms = timeout_ms


class InternalProxyError(WebAIProxyError):
    """Faute interne du proxy (500)."""

    status_code = 500

    def __init__(
        self,
        message: str = "Proxy Internal Error",
        details: str = "The proxy encountered an unexpected error while processing your request."
    ):
        super().__init__(message=message, code="internal_error", details=details)

"""
Cœur métier de WebAI Proxy.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    WebAIProxyError,
    ConfigurationError,
    ClientInputError,
    InvalidBodyError,
    MissingBodyError,
    UpstreamAuthError,
    UpstreamError,
    BackendTransportError,
    BackendTimeoutError,
    InternalProxyError,
)
from .constants import (
    DEFAULT_MODEL,
    BACKEND_API_KEY_HEADER,
    BACKEND_PROMPT_PATH,
    DEFAULT_TARGET_TIMEOUT_MS,
)
from .tokens import approximate_tokens, approximate_prompt_tokens
from .models import (
    PathKind,
    ProxyRequestContext,
    BackendRequest,
    ContentDelta,
    UsageStats,
    OllamaTerminal,
    Unrecognized,
    BackendChunk,
    AggregatedResult,
)

__all__ = [
    # Exceptions
    "WebAIProxyError",
    "ConfigurationError",
    "ClientInputError",
    "InvalidBodyError",
    "MissingBodyError",
    "UpstreamAuthError",
    "UpstreamError",
    "BackendTransportError",
    "BackendTimeoutError",
    "InternalProxyError",
    # Constants
    "DEFAULT_MODEL",
    "BACKEND_API_KEY_HEADER",
    "BACKEND_PROMPT_PATH",
    "DEFAULT_TARGET_TIMEOUT_MS",
    # Tokens
    "approximate_tokens",
    "approximate_prompt_tokens",
    # Models
    "PathKind",
    "ProxyRequestContext",
    "BackendRequest",
    "ContentDelta",
    "UsageStats",
    "OllamaTerminal",
    "Unrecognized",
    "BackendChunk",
    "AggregatedResult",
]

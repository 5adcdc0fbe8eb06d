"""
Dépendances FastAPI.

La configuration, le logger de requêtes et le transport backend sont posés
sur `app.state` par `create_app`; les routes les reçoivent par injection.
"""
from typing import Optional

import httpx
from fastapi import Request

from ..config.settings import ProxyConfig
from ..services.request_logger import NullRequestLogger, RequestLogger


def get_proxy_config(request: Request) -> ProxyConfig:
    return request.app.state.config


def get_request_logger(request: Request) -> RequestLogger:
    return getattr(request.app.state, "request_logger", None) or NullRequestLogger()


def get_backend_transport(request: Request) -> Optional[httpx.AsyncBaseTransport]:
    """Transport HTTPX du backend (None = réseau réel)."""
    return getattr(request.app.state, "backend_transport", None)

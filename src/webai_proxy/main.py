"""
WebAI Proxy - Application FastAPI Factory.
Façade Ollama / OpenAI devant le backend d'inférence `/prompt`.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from . import __version__
from .api.router import api_router
from .config.loader import load_config
from .config.settings import ProxyConfig
from .core.constants import CORS_PREFLIGHT_HEADERS
from .core.exceptions import WebAIProxyError
from .proxy.errors import error_response
from .services.request_logger import RequestLogger, create_request_logger

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[ProxyConfig] = None,
    request_logger: Optional[RequestLogger] = None,
    backend_transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Args:
        config: Configuration immuable (chargée depuis l'environnement si absente)
        request_logger: Journal des requêtes/réponses (LoggingRequestLogger par défaut)
        backend_transport: Transport HTTPX vers le backend (tests)

    Returns:
        Instance configurée de FastAPI
    """
    if config is None:
        config = load_config()
    if request_logger is None:
        request_logger = create_request_logger()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        _startup(app)
        yield
        _shutdown(app)

    app = FastAPI(
        title="WebAI Proxy",
        description="Proxy Ollama / OpenAI vers un backend d'inférence /prompt",
        version=__version__,
        lifespan=lifespan
    )

    app.state.config = config
    app.state.request_logger = request_logger
    app.state.backend_transport = backend_transport

    # CORS pour les requêtes simples (le preflight est géré plus bas)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_and_preflight(request: Request, call_next):
        """
        Journalise chaque requête/réponse et répond aux preflight OPTIONS.

        Ajouté après CORSMiddleware: c'est donc le middleware le plus externe.
        """
        request_logger.log_request(
            request.method,
            request.url.path,
            request.url.query,
            request.client.host if request.client else None,
            request.headers
        )

        if request.method == "OPTIONS":
            response = Response(status_code=204, headers=CORS_PREFLIGHT_HEADERS)
        else:
            response = await call_next(request)

        request_logger.log_response(response.status_code, response.headers)
        return response

    @app.exception_handler(WebAIProxyError)
    async def proxy_error_handler(request: Request, exc: WebAIProxyError):
        logger.warning("[PROXY] %s %s -> %s %s", request.method, request.url.path, exc.status_code, exc)
        request_logger.log_response_body(exc.to_response_body())
        return error_response(exc)

    app.include_router(api_router)

    return app


def _startup(app: FastAPI):
    """Initialisation au démarrage."""
    config: ProxyConfig = app.state.config
    logger.info("🚀 Démarrage de WebAI Proxy...")
    logger.info("Proxy BETWEEN:   '%s'", config.target_base_url)
    logger.info("Proxy INTERFACE: 'http://%s:%s'", config.proxy_domain, config.proxy_port)
    if not config.target_api_key:
        logger.info("Aucune TARGET_API_KEY: seuls les tokens Bearer des clients seront relayés")


def _shutdown(app: FastAPI):
    """Arrêt de l'application."""
    logger.info("👋 Arrêt du proxy")

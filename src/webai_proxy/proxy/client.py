"""
Client HTTPX vers le backend avec timeout configurable.

Pourquoi pas de retry: un appel backend par requête entrante. Un timeout,
une erreur réseau ou une erreur backend est terminal pour la requête.
"""
import asyncio
from typing import Optional

import httpx

from ..config.settings import ProxyConfig
from ..core.exceptions import WebAIProxyError
from ..core.models import BackendRequest
from .errors import classify_transport_error


class ProxyClient:
    """
    Client HTTP pour le proxy vers le backend.

    Gère:
    - Le timeout global de la réponse (TARGET_TIMEOUT_MS)
    - L'annulation de la requête en vol au timeout
    - La fermeture des connexions
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Le read timeout borne aussi l'attente entre deux chunks en streaming
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport
            )
        return self._client

    async def __aenter__(self) -> "ProxyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_request(self, backend_request: BackendRequest) -> httpx.Request:
        """Construit une requête HTTPX."""
        return self.client.build_request(
            backend_request.method,
            backend_request.path,
            headers=backend_request.headers,
            content=backend_request.content
        )

    async def _send(self, backend_request: BackendRequest, stream: bool) -> httpx.Response:
        request = self.build_request(backend_request)
        try:
            # wait_for annule la requête en vol et libère la connexion
            return await asyncio.wait_for(
                self.client.send(request, stream=stream),
                timeout=self.timeout
            )
        except WebAIProxyError:
            raise
        except (asyncio.TimeoutError, httpx.TransportError) as e:
            raise classify_transport_error(e, int(self.timeout * 1000)) from e

    async def send(self, backend_request: BackendRequest) -> httpx.Response:
        """
        Envoie la requête et lit la réponse complète.

        Raises:
            BackendTimeoutError: Réponse incomplète après le timeout
            BackendTransportError: Connexion refusée/interrompue
        """
        return await self._send(backend_request, stream=False)

    async def send_streaming(self, backend_request: BackendRequest) -> httpx.Response:
        """
        Envoie la requête en mode streaming.

        Le timeout borne l'arrivée de l'en-tête de réponse; le corps doit être
        consommé puis fermé par l'appelant.
        """
        return await self._send(backend_request, stream=True)


def create_proxy_client(
    config: ProxyConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> ProxyClient:
    """
    Crée un client proxy pour le backend configuré.

    Args:
        config: Configuration du proxy
        transport: Transport HTTPX alternatif (tests)

    Returns:
        Instance de ProxyClient
    """
    return ProxyClient(
        base_url=config.target_base_url,
        timeout=config.timeout_seconds,
        transport=transport
    )

"""
Vérification ponctuelle de l'accessibilité du backend au démarrage.

Le proxy démarre même si le backend est injoignable: on se contente
d'avertir.
"""
import logging
from typing import Optional

import httpx

from ..config.settings import ProxyConfig
from ..core.constants import HEALTH_CHECK_TIMEOUT

logger = logging.getLogger(__name__)


async def check_target_connection(
    config: ProxyConfig,
    timeout: float = HEALTH_CHECK_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> bool:
    """
    Teste le backend avec un `GET /`.

    Returns:
        True si le backend répond avec un status < 500
    """
    try:
        async with httpx.AsyncClient(
            base_url=config.target_base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport
        ) as client:
            response = await client.get("/")
    except httpx.HTTPError as e:
        logger.debug("[HEALTH] Backend injoignable: %r", e)
        return False
    return response.status_code < 500


def log_target_status(config: ProxyConfig, reachable: bool) -> None:
    """Affiche le résultat du health check."""
    if reachable:
        logger.info("✅ [HEALTH] Backend accessible: %s", config.target_base_url)
        return
    logger.warning(
        "⚠️  [HEALTH] Le backend semble injoignable: %s\n"
        "   Vérifiez qu'il est démarré ou corrigez la configuration.\n"
        "   Le proxy démarre quand même, les requêtes échoueront tant qu'il est absent.",
        config.target_base_url
    )

"""
Point d'entrée pour `python -m webai_proxy`.
"""
import argparse
import asyncio
import logging
import sys

import uvicorn

from .config.loader import load_config
from .core.exceptions import ConfigurationError
from .main import create_app
from .services.health_check import check_target_connection, log_target_status

logger = logging.getLogger("webai_proxy")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WebAI Proxy (Ollama / OpenAI -> /prompt)")
    parser.add_argument("--host", default=None, help="Host (défaut: PROXY_DOMAIN)")
    parser.add_argument("--port", type=int, default=None, help="Port (défaut: PROXY_PORT)")
    parser.add_argument("--env-file", default=".env", help="Fichier .env (défaut: .env)")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Niveau de log (défaut: info)"
    )
    parser.add_argument(
        "--skip-health-check",
        action="store_true",
        help="Ne pas tester le backend avant de démarrer"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Fonction principale."""
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    )

    try:
        config = load_config(env_file=args.env_file)
    except ConfigurationError as e:
        logger.error("❌ %s", e)
        sys.exit(1)

    if not args.skip_health_check:
        reachable = asyncio.run(check_target_connection(config))
        log_target_status(config, reachable)

    host = args.host or config.proxy_domain
    port = args.port or config.proxy_port

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_level=args.log_level
    )


if __name__ == "__main__":
    main()

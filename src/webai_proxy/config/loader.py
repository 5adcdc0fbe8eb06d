"""src.webai_proxy.config.loader

Chargement de la configuration depuis l'environnement et un fichier `.env`.

Variables lues: TARGET_DOMAIN, TARGET_PORT, PROXY_DOMAIN, PROXY_PORT,
TARGET_API_KEY, TARGET_TIMEOUT_MS. Les variables du process priment sur
le fichier `.env`.
"""
import logging
from typing import Dict, Mapping, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.constants import DEFAULT_TARGET_TIMEOUT_MS
from ..core.exceptions import ConfigurationError
from .settings import ProxyConfig

logger = logging.getLogger(__name__)


class EnvSettings(BaseSettings):
    """Vue brute de l'environnement, validée par pydantic."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    target_domain: str = Field(default="localhost")
    target_port: int = Field(default=10501)
    proxy_domain: str = Field(default="localhost")
    proxy_port: int = Field(default=8080)
    target_api_key: Optional[str] = Field(default=None)
    target_timeout_ms: int = Field(default=DEFAULT_TARGET_TIMEOUT_MS)

    @field_validator("target_port", "proxy_port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port hors limites: {value}")
        return value

    @field_validator("target_timeout_ms")
    @classmethod
    def _check_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("le timeout doit être strictement positif")
        return value

    @field_validator("target_api_key")
    @classmethod
    def _blank_key_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


def load_config(
    env_file: Optional[str] = ".env",
    environ: Optional[Mapping[str, str]] = None
) -> ProxyConfig:
    """
    Charge la configuration.

    Args:
        env_file: Fichier .env à lire (None pour l'ignorer)
        environ: Variables explicites (priment sur l'environnement du process,
            utile pour les tests)

    Returns:
        ProxyConfig immuable

    Raises:
        ConfigurationError: Si une valeur est invalide
    """
    overrides: Dict[str, str] = {}
    if environ is not None:
        fields = EnvSettings.model_fields
        overrides = {
            key.lower(): value
            for key, value in environ.items()
            if key.lower() in fields
        }

    try:
        settings = EnvSettings(_env_file=env_file, **overrides)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigurationError(
            message=f"Configuration invalide: {first.get('msg', e)}",
            config_key=key.upper() if key else None
        ) from e

    config = ProxyConfig.from_dict(settings.model_dump())
    logger.debug("Configuration chargée: %s", config.to_display_dict())
    return config

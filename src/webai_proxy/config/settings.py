"""
Dataclass immuable pour la configuration.

Chargée une seule fois au démarrage puis passée explicitement à chaque
composant: aucun module du proxy ne lit l'environnement lui-même.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.constants import DEFAULT_TARGET_TIMEOUT_MS


@dataclass(frozen=True)
class ProxyConfig:
    """Configuration globale du proxy (durée de vie du process)."""
    target_domain: str = "localhost"
    target_port: int = 10501
    proxy_domain: str = "localhost"
    proxy_port: int = 8080
    target_api_key: Optional[str] = None
    target_timeout_ms: int = DEFAULT_TARGET_TIMEOUT_MS

    @property
    def target_scheme(self) -> str:
        return "https" if self.target_port == 443 else "http"

    @property
    def target_base_url(self) -> str:
        """URL de base du backend, ex: http://localhost:10501"""
        return f"{self.target_scheme}://{self.target_domain}:{self.target_port}"

    @property
    def timeout_seconds(self) -> float:
        return self.target_timeout_ms / 1000.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProxyConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            target_domain=data.get("target_domain", "localhost"),
            target_port=int(data.get("target_port", 10501)),
            proxy_domain=data.get("proxy_domain", "localhost"),
            proxy_port=int(data.get("proxy_port", 8080)),
            target_api_key=data.get("target_api_key") or None,
            target_timeout_ms=int(data.get("target_timeout_ms", DEFAULT_TARGET_TIMEOUT_MS))
        )

    def to_display_dict(self) -> Dict[str, Any]:
        """Vue loggable: la clé API n'est jamais affichée en clair."""
        key = self.target_api_key
        masked = None
        if key:
            masked = key[:4] + "..." if len(key) > 8 else "***"
        return {
            "target": self.target_base_url,
            "proxy": f"http://{self.proxy_domain}:{self.proxy_port}",
            "target_api_key": masked,
            "target_timeout_ms": self.target_timeout_ms,
        }

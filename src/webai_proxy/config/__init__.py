"""
Configuration de WebAI Proxy.
"""

from .loader import load_config, EnvSettings
from .settings import ProxyConfig

__all__ = [
    "load_config",
    "EnvSettings",
    "ProxyConfig",
]

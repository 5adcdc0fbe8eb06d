"""
Routes API par domaine.
"""

from . import health
from . import models
from . import proxy

__all__ = [
    "health",
    "models",
    "proxy",
]

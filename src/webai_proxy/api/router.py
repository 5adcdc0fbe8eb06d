"""
Router principal de l'API.

L'ordre d'inclusion compte: la route pass-through attrape tous les chemins
et doit rester en dernier.
"""
from fastapi import APIRouter

from .routes import health, models, proxy

# Router principal
api_router = APIRouter()

# Endpoints servis directement (pas d'appel backend)
api_router.include_router(health.router, prefix="", tags=["health"])
api_router.include_router(models.router, prefix="", tags=["models-ollama"])
api_router.include_router(models.openai_router, prefix="", tags=["models-openai"])

# Chat proxifié
api_router.include_router(proxy.router, prefix="", tags=["proxy"])

# Pass-through vers le backend
api_router.include_router(proxy.passthrough_router, prefix="", tags=["passthrough"])

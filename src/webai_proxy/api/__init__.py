"""
Couche HTTP (FastAPI) de WebAI Proxy.
"""

from .router import api_router

__all__ = ["api_router"]

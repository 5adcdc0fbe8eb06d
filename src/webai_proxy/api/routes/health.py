"""
Route de santé racine.

Les clients Ollama testent `GET /` et attendent exactement ce texte.
"""
import logging

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from ...core.constants import ROOT_HEALTH_TEXT

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root_health() -> PlainTextResponse:
    logger.debug("Health check request, responding OK")
    return PlainTextResponse(ROOT_HEALTH_TEXT)

"""Routes API pour la liste des modèles.

Le proxy n'expose qu'un seul modèle, le backend n'en connaît pas d'autre.
- `/api/tags`  : format Ollama (`models[]`).
- `/v1/models` : format OpenAI (object/list/data).
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...core.constants import (
    DEFAULT_MODEL,
    MODEL_FAMILY,
    MODEL_OWNER,
    OLLAMA_TAGS_PATH,
    OPENAI_MODELS_PATH,
)
from ...proxy.formatters import iso_now, unix_now

# Router Ollama
router = APIRouter()

# Router OpenAI-compatible
openai_router = APIRouter()


def _build_ollama_models_list() -> List[Dict[str, Any]]:
    return [
        {
            "name": DEFAULT_MODEL,
            "modified_at": iso_now(),
            "size": 0,
            "digest": MODEL_OWNER,
            "details": {
                "format": "gguf",
                "family": MODEL_FAMILY,
                "families": None,
                "parameter_size": "N/A",
                "quantization_level": "N/A",
            },
        }
    ]


def _build_openai_models_list() -> List[Dict[str, Any]]:
    return [
        {
            "id": DEFAULT_MODEL,
            "object": "model",
            "created": unix_now(),
            "owned_by": MODEL_OWNER,
        }
    ]


@router.get(OLLAMA_TAGS_PATH)
async def ollama_tags() -> JSONResponse:
    """Endpoint Ollama-compatible: GET /api/tags."""
    return JSONResponse(
        content={"models": _build_ollama_models_list()},
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, OPTIONS",
            "Access-Control-Allow-Headers": "content-type",
        },
    )


@openai_router.get(OPENAI_MODELS_PATH)
async def openai_models() -> JSONResponse:
    """Endpoint OpenAI-compatible: GET /v1/models."""
    return JSONResponse(
        content={
            "object": "list",
            "data": _build_openai_models_list(),
        },
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, OPTIONS",
            "Access-Control-Allow-Headers": "authorization, content-type",
        },
    )

"""
Construction des formats de sortie Ollama et OpenAI.

Fonctions pures: elles ne font aucune I/O. Le champ `model` renvoyé est
toujours le modèle demandé par le client, jamais celui du backend.
"""
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.constants import (
    COMPLETION_ID_PREFIX,
    DEFAULT_DONE_REASON,
    OLLAMA_STAT_FIELDS,
)
from ..core.tokens import approximate_prompt_tokens, approximate_tokens


# ============================================================================
# HORODATAGE
# ============================================================================

def unix_to_iso(seconds: float) -> str:
    """Timestamp Unix (secondes) -> ISO-8601 UTC, ex: 2024-01-01T00:00:00.000Z"""
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def iso_now() -> str:
    return unix_to_iso(time.time())


def unix_now() -> int:
    return int(time.time())


def iso_to_unix(value: Any) -> Optional[int]:
    """ISO-8601 -> secondes Unix, None si illisible."""
    if not isinstance(value, str) or not value:
        return None
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def new_completion_id() -> str:
    return f"{COMPLETION_ID_PREFIX}{uuid.uuid4()}"


def _dumps(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


# ============================================================================
# RÉPONSES COMPLÈTES
# ============================================================================

def create_ollama_response(
    content: str,
    model: str,
    stats: Optional[Dict[str, Any]] = None,
    duration_ns: Optional[int] = None
) -> Dict[str, Any]:
    """
    Réponse Ollama `/api/chat` non-streaming.

    Args:
        content: Texte agrégé
        model: Modèle demandé par le client
        stats: Statistiques agrégées depuis le backend
        duration_ns: Durée mesurée par le proxy, prioritaire sur celle du backend

    Returns:
        Dictionnaire au format Ollama
    """
    stats = stats or {}
    response: Dict[str, Any] = {
        "model": model,
        "created_at": stats.get("created_at") or iso_now(),
        "message": {
            "role": "assistant",
            "content": content,
        },
        "done_reason": stats.get("done_reason") or DEFAULT_DONE_REASON,
        "done": True,
    }

    total_duration = duration_ns if duration_ns is not None else stats.get("total_duration")
    if total_duration is not None:
        response["total_duration"] = int(total_duration)

    for key in OLLAMA_STAT_FIELDS:
        if stats.get(key) is not None:
            response[key] = stats[key]

    return response


def create_openai_response(
    content: str,
    model: str,
    prompt_messages: List[Dict[str, Any]],
    stats: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Réponse OpenAI `chat.completion` non-streaming.

    L'usage est approximé (mots x 1.3) car le backend ne le fournit pas de
    façon fiable. total_tokens == prompt_tokens + completion_tokens.
    """
    stats = stats or {}
    prompt_tokens = approximate_prompt_tokens(prompt_messages)
    completion_tokens = approximate_tokens(content)

    created = iso_to_unix(stats.get("created_at"))

    return {
        "id": new_completion_id(),
        "object": "chat.completion",
        "created": created if created is not None else unix_now(),
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": content,
                },
                "finish_reason": stats.get("done_reason") or DEFAULT_DONE_REASON,
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


# ============================================================================
# FRAMES DE STREAMING
# ============================================================================

def format_ollama_stream_chunk(content_delta: str, model: str) -> str:
    """Ligne NDJSON intermédiaire (done: false)."""
    chunk = {
        "model": model,
        "created_at": iso_now(),
        "message": {
            "role": "assistant",
            "content": content_delta,
        },
        "done": False,
    }
    return _dumps(chunk) + "\n"


def format_openai_stream_chunk(
    content_delta: str,
    model: str,
    chunk_id: Optional[str] = None
) -> str:
    """Événement SSE `chat.completion.chunk`."""
    chunk = {
        "id": chunk_id or new_completion_id(),
        "object": "chat.completion.chunk",
        "created": unix_now(),
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": {
                    "content": content_delta,
                },
                "finish_reason": None,
            }
        ],
    }
    return f"data: {_dumps(chunk)}\n\n"


def format_final_openai_chunk() -> str:
    return "data: [DONE]\n\n"


def format_final_ollama_chunk(
    model: str,
    stats: Optional[Dict[str, Any]] = None,
    duration_ns: Optional[int] = None
) -> str:
    """
    Ligne NDJSON terminale (done: true, contenu vide).

    En streaming le backend ne fournit pas de stats fiables: seule la durée
    mesurée par le proxy est normalement renseignée.
    """
    stats = stats or {}
    chunk: Dict[str, Any] = {
        "model": model,
        "created_at": stats.get("created_at") or iso_now(),
        "message": {
            "role": "assistant",
            "content": "",
        },
        "done_reason": stats.get("done_reason") or DEFAULT_DONE_REASON,
        "done": True,
    }

    total_duration = duration_ns if duration_ns is not None else stats.get("total_duration")
    if total_duration is not None:
        chunk["total_duration"] = int(total_duration)

    for key in OLLAMA_STAT_FIELDS:
        if stats.get(key) is not None:
            chunk[key] = stats[key]

    return _dumps(chunk) + "\n"

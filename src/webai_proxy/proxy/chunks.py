"""
Classification des objets émis par le backend.

Le backend n'a pas de champ discriminant: on décide de la variante à partir
des champs présents.
- `usage` présent        -> UsageStats
- `done: true`            -> OllamaTerminal
- contenu de choix        -> ContentDelta
- sinon                   -> Unrecognized
"""
import json
from typing import Any

from ..core.models import (
    BackendChunk,
    ContentDelta,
    OllamaTerminal,
    Unrecognized,
    UsageStats,
)


class BackendChunkParseError(ValueError):
    """Le texte reçu n'est pas un JSON valide."""


def extract_content(payload: Any) -> str:
    """Retourne `choices[0].message.content` ou une chaîne vide."""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


def _extract_finish_reason(payload: dict):
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0].get("finish_reason")
    return None


def classify_backend_payload(payload: Any) -> BackendChunk:
    """Transforme un objet JSON déjà parsé en variante typée."""
    if not isinstance(payload, dict):
        return Unrecognized(raw=payload)

    content = extract_content(payload)

    usage = payload.get("usage")
    if isinstance(usage, dict):
        created = payload.get("created")
        return UsageStats(
            content=content,
            usage=usage,
            finish_reason=_extract_finish_reason(payload),
            model=payload.get("model"),
            created=created if isinstance(created, (int, float)) and not isinstance(created, bool) else None,
            raw=payload
        )

    if payload.get("done") is True:
        return OllamaTerminal(content=content, fields=dict(payload), raw=payload)

    if content:
        return ContentDelta(content=content, raw=payload)

    return Unrecognized(raw=payload)


def parse_backend_chunk(text: str) -> BackendChunk:
    """
    Parse un objet JSON unique et le classe.

    Raises:
        BackendChunkParseError: Si le texte n'est pas du JSON
    """
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise BackendChunkParseError(str(e)) from e
    return classify_backend_payload(payload)

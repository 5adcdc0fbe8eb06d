"""
Agrégation d'une réponse backend non-streaming.

Le corps peut contenir un seul objet, plusieurs objets collés, du texte
brut, ou une fin tronquée. On extrait tout ce qui est exploitable sans
jamais lever d'exception sur un corps mal formé.
"""
import logging
from typing import Any, Dict, Union

from ..core.constants import DEFAULT_DONE_REASON
from ..core.models import AggregatedResult, OllamaTerminal, UsageStats
from .chunks import BackendChunkParseError, parse_backend_chunk
from .formatters import iso_now, unix_to_iso
from .json_scanner import ConcatenatedJsonScanner

logger = logging.getLogger(__name__)


def _set_if_missing(stats: Dict[str, Any], key: str, value: Any) -> None:
    # Les valeurs déjà posées par un objet précédent gagnent
    if value is not None and stats.get(key) is None:
        stats[key] = value


def _merge_usage(stats: Dict[str, Any], chunk: UsageStats, model_requested: str) -> None:
    usage = chunk.usage
    _set_if_missing(stats, "prompt_eval_count", usage.get("prompt_tokens"))
    _set_if_missing(stats, "eval_count", usage.get("completion_tokens"))
    _set_if_missing(stats, "done_reason", chunk.finish_reason or DEFAULT_DONE_REASON)
    _set_if_missing(stats, "model", chunk.model or model_requested)
    # created == 0 vaut absence: la date courante s'applique au formatage
    if chunk.created:
        try:
            _set_if_missing(stats, "created_at", unix_to_iso(chunk.created))
        except (OverflowError, OSError, ValueError):
            logger.warning("[AGGREGATOR] Timestamp 'created' invalide: %r", chunk.created)


def _merge_terminal(stats: Dict[str, Any], chunk: OllamaTerminal, model_requested: str) -> None:
    for key, value in chunk.fields.items():
        _set_if_missing(stats, key, value)
    _set_if_missing(stats, "model", model_requested)


def aggregate_backend_response(
    body: Union[bytes, str],
    model_requested: str
) -> AggregatedResult:
    """
    Reconstruit contenu + statistiques depuis le corps backend.

    Args:
        body: Corps brut renvoyé par le backend
        model_requested: Modèle demandé (fallback pour les stats)

    Returns:
        AggregatedResult
    """
    if isinstance(body, bytes):
        text = body.decode("utf-8", errors="replace").strip()
    else:
        text = (body or "").strip()

    if not text:
        return AggregatedResult(content="", stats={})

    parts = []
    stats: Dict[str, Any] = {}
    candidates = 0
    raw_fallback = False

    scanner = ConcatenatedJsonScanner(text)
    for span in scanner:
        candidates += 1
        try:
            chunk = parse_backend_chunk(span.text)
        except BackendChunkParseError as e:
            logger.warning("[AGGREGATOR] Segment JSON illisible (%s): %.200s", e, span.text)
            raw_fallback = candidates == 1
            break

        if chunk.content:
            parts.append(chunk.content)

        if isinstance(chunk, UsageStats):
            _merge_usage(stats, chunk, model_requested)
        elif isinstance(chunk, OllamaTerminal):
            _merge_terminal(stats, chunk, model_requested)

    if candidates == 0:
        # Aucun objet complet: texte brut ou accolades déséquilibrées
        if scanner.unbalanced:
            logger.warning("[AGGREGATOR] Accolades déséquilibrées, corps traité comme texte brut")
        else:
            logger.warning("[AGGREGATOR] Corps non JSON, traité comme texte brut")
        raw_fallback = True
    elif scanner.unbalanced:
        logger.warning("[AGGREGATOR] Fin de corps tronquée ignorée: %.200s", scanner.remainder)

    content = text if raw_fallback else "".join(parts)

    if not stats.get("model") and content:
        logger.debug("[AGGREGATOR] Pas de stats finales, valeurs par défaut")
        stats["model"] = model_requested
        _set_if_missing(stats, "done_reason", DEFAULT_DONE_REASON)
        _set_if_missing(stats, "created_at", iso_now())

    return AggregatedResult(content=content, stats=stats)

"""
Conversion du flux backend vers le dialecte du client.

Pourquoi un générateur:
- Les deltas doivent partir dans l'ordre de réception, sans tamponner
- Un chunk mal formé ne doit jamais interrompre le flux
- Une erreur réseau termine proprement la réponse (pas de réparation)
"""
import logging
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional

import httpx

from ..core.models import PathKind, ProxyRequestContext
from .chunks import BackendChunkParseError, parse_backend_chunk
from .formatters import (
    format_final_ollama_chunk,
    format_final_openai_chunk,
    format_ollama_stream_chunk,
    format_openai_stream_chunk,
    new_completion_id,
)

logger = logging.getLogger(__name__)

CloseCallback = Callable[[], Awaitable[None]]


# Headers fixés par dialecte, envoyés une seule fois avant le premier chunk
STREAM_HEADERS: Dict[PathKind, Dict[str, str]] = {
    PathKind.OPENAI_CHAT: {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "Access-Control-Allow-Origin": "*",
    },
    PathKind.OLLAMA_CHAT: {
        "Connection": "keep-alive",
        "Access-Control-Allow-Origin": "*",
    },
}

STREAM_MEDIA_TYPES: Dict[PathKind, str] = {
    PathKind.OPENAI_CHAT: "text/event-stream",
    PathKind.OLLAMA_CHAT: "application/json",
}


def format_delta(ctx: ProxyRequestContext, content_delta: str, completion_id: str) -> Optional[str]:
    """Frame intermédiaire pour le dialecte de la requête."""
    if ctx.path_kind is PathKind.OPENAI_CHAT:
        return format_openai_stream_chunk(content_delta, ctx.model, completion_id)
    if ctx.path_kind is PathKind.OLLAMA_CHAT:
        return format_ollama_stream_chunk(content_delta, ctx.model)
    return None


def format_terminal(ctx: ProxyRequestContext) -> Optional[str]:
    """Frame de fin de flux pour le dialecte de la requête."""
    if ctx.path_kind is PathKind.OPENAI_CHAT:
        return format_final_openai_chunk()
    if ctx.path_kind is PathKind.OLLAMA_CHAT:
        return format_final_ollama_chunk(ctx.model, duration_ns=ctx.elapsed_ns)
    return None


async def stream_generator(
    response: httpx.Response,
    ctx: ProxyRequestContext,
    completion_id: Optional[str] = None,
    on_close: Optional[CloseCallback] = None
) -> AsyncGenerator[bytes, None]:
    """
    Ré-émet le flux backend chunk par chunk au format du client.

    Args:
        response: Réponse HTTPX en streaming (status < 400)
        ctx: Contexte de la requête (dialecte, modèle, début)
        completion_id: Identifiant réutilisé pour tous les chunks OpenAI
        on_close: Fermeture du client HTTP backend

    Yields:
        Frames NDJSON ou SSE encodées en UTF-8

    Raises:
        Aucune: les erreurs sont loggées et le flux se termine
    """
    completion_id = completion_id or new_completion_id()
    chunk_count = 0
    delta_count = 0

    try:
        async for raw_chunk in response.aiter_bytes():
            chunk_count += 1
            text = raw_chunk.decode("utf-8", errors="replace").strip()
            if not text:
                continue

            try:
                chunk = parse_backend_chunk(text)
            except BackendChunkParseError as e:
                logger.warning(
                    "[STREAM %s] Chunk ignoré (JSON invalide): %.200s - %s",
                    ctx.path, text, e
                )
                continue

            # Les chunks de stats seuls n'ont pas de delta visible
            if not chunk.content:
                continue

            frame = format_delta(ctx, chunk.content, completion_id)
            if frame is not None:
                delta_count += 1
                yield frame.encode("utf-8")

        terminal = format_terminal(ctx)
        if terminal is not None:
            yield terminal.encode("utf-8")

        logger.info(
            "[STREAM %s] Terminé: %d chunk(s) backend, %d delta(s) émis",
            ctx.path, chunk_count, delta_count
        )

    except httpx.HTTPError as e:
        logger.error(
            "[STREAM %s] Erreur flux backend après %d chunk(s): %s",
            ctx.path, chunk_count, e
        )

    except Exception:
        # Les headers sont déjà partis: on ne peut que fermer la réponse
        logger.exception("[STREAM %s] Erreur inattendue, fermeture du flux", ctx.path)

    finally:
        await response.aclose()
        if on_close is not None:
            await on_close()


async def relay_generator(
    response: httpx.Response,
    on_close: Optional[CloseCallback] = None
) -> AsyncGenerator[bytes, None]:
    """Relaie le flux backend sans transformation (chemins pass-through)."""
    try:
        async for raw_chunk in response.aiter_bytes():
            yield raw_chunk
    except httpx.HTTPError as e:
        logger.error("[STREAM] Erreur flux pass-through: %s", e)
    finally:
        await response.aclose()
        if on_close is not None:
            await on_close()

"""
Estimation approximative des tokens.

Le backend ne renvoie pas toujours de `usage`: on approxime à partir du
nombre de mots (heuristique x1.3), comme le font les clients Ollama.
"""
import math
from typing import Any, Dict, Iterable

from .constants import TOKENS_PER_WORD


def approximate_tokens(text: Any) -> int:
    """
    Approxime le nombre de tokens d'un texte.

    Args:
        text: Texte (toute autre valeur compte pour 0)

    Returns:
        ceil(nombre_de_mots * 1.3), 0 pour un texte vide
    """
    if not isinstance(text, str) or not text.strip():
        return 0
    return math.ceil(len(text.split()) * TOKENS_PER_WORD)


def approximate_prompt_tokens(messages: Iterable[Dict[str, Any]]) -> int:
    """Somme des tokens approximés de chaque message du prompt."""
    total = 0
    for message in messages or []:
        if isinstance(message, dict):
            total += approximate_tokens(message.get("content"))
    return total

"""
Dataclasses métier pour WebAI Proxy.

Le backend n'a pas de discriminant explicite: les variantes `BackendChunk`
sont déterminées par la présence de champs au moment du parsing
(voir `proxy/chunks.py`).
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .constants import DEFAULT_MODEL, OLLAMA_CHAT_PATH, OPENAI_CHAT_PATH


class PathKind(str, Enum):
    """Type de chemin entrant."""
    OLLAMA_CHAT = "ollama-chat"
    OPENAI_CHAT = "openai-chat"
    OTHER = "other"

    @classmethod
    def from_path(cls, path: str) -> "PathKind":
        if path == OLLAMA_CHAT_PATH:
            return cls.OLLAMA_CHAT
        if path == OPENAI_CHAT_PATH:
            return cls.OPENAI_CHAT
        return cls.OTHER

    @property
    def is_chat(self) -> bool:
        return self is not PathKind.OTHER


@dataclass
class ProxyRequestContext:
    """État d'une requête entrante, détenu par le handler qui la traite."""
    path: str
    path_kind: PathKind
    method: str = "POST"
    model: str = DEFAULT_MODEL
    stream: bool = False
    started_ns: int = field(default_factory=time.monotonic_ns)
    credential: Optional[str] = None
    prompt_messages: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def elapsed_ns(self) -> int:
        """Durée écoulée depuis la réception de la requête (nanosecondes)."""
        return time.monotonic_ns() - self.started_ns


@dataclass(frozen=True)
class BackendRequest:
    """Requête traduite, prête à partir vers le backend."""
    method: str
    path: str
    headers: Dict[str, str]
    content: bytes


# ============================================================================
# VARIANTES DE CHUNK BACKEND
# ============================================================================

@dataclass(frozen=True)
class ContentDelta:
    """Objet `{choices:[{message:{content}}]}` sans statistiques."""
    content: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class UsageStats:
    """Objet portant un bloc `usage` (format OpenAI)."""
    content: str
    usage: Dict[str, Any]
    finish_reason: Optional[str] = None
    model: Optional[str] = None
    created: Optional[Union[int, float]] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class OllamaTerminal:
    """Objet terminal Ollama `{done: true, ...stats}`."""
    content: str
    fields: Dict[str, Any]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class Unrecognized:
    """JSON valide sans contenu ni statistiques exploitables."""
    raw: Any = None
    content: str = ""


BackendChunk = Union[ContentDelta, UsageStats, OllamaTerminal, Unrecognized]


@dataclass(frozen=True)
class AggregatedResult:
    """Réponse backend reconstituée (contenu + stats)."""
    content: str
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "stats": dict(self.stats)}

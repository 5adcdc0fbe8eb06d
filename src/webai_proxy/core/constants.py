"""
Constantes globales pour WebAI Proxy.
"""

# ============================================================================
# MODÈLE EXPOSÉ
# ============================================================================
DEFAULT_MODEL = "webai-llm"
MODEL_OWNER = "webai-proxy"
MODEL_FAMILY = "webai"

# ============================================================================
# CHEMINS
# ============================================================================
OLLAMA_CHAT_PATH = "/api/chat"
OPENAI_CHAT_PATH = "/v1/chat/completions"
OLLAMA_TAGS_PATH = "/api/tags"
OPENAI_MODELS_PATH = "/v1/models"
BACKEND_PROMPT_PATH = "/prompt"

# ============================================================================
# BACKEND
# ============================================================================
# Le backend authentifie sur ce header, pas sur Authorization
BACKEND_API_KEY_HEADER = "x-api-key"
DEFAULT_TARGET_TIMEOUT_MS = 120000
HEALTH_CHECK_TIMEOUT = 5.0

# ============================================================================
# RÉPONSES
# ============================================================================
ROOT_HEALTH_TEXT = "Ollama is running"
DEFAULT_DONE_REASON = "stop"
COMPLETION_ID_PREFIX = "chatcmpl-"
TOKENS_PER_WORD = 1.3

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, content-type",
    "Access-Control-Max-Age": "86400",
}

# Champs numériques Ollama recopiés seulement s'ils sont connus
OLLAMA_STAT_FIELDS = (
    "load_duration",
    "prompt_eval_count",
    "prompt_eval_duration",
    "eval_count",
    "eval_duration",
)

"""
Logique de proxy HTTP vers le backend `/prompt`.
"""

from .json_scanner import ConcatenatedJsonScanner, JsonSpan, ScanResult, scan_json_objects
from .chunks import (
    BackendChunkParseError,
    classify_backend_payload,
    parse_backend_chunk,
    extract_content,
)
from .formatters import (
    create_ollama_response,
    create_openai_response,
    format_ollama_stream_chunk,
    format_openai_stream_chunk,
    format_final_openai_chunk,
    format_final_ollama_chunk,
)
from .aggregator import aggregate_backend_response
from .stream import stream_generator, relay_generator, STREAM_HEADERS, STREAM_MEDIA_TYPES
from .request import normalize_request, parse_request_body, resolve_credential
from .errors import (
    classify_backend_status,
    classify_transport_error,
    filter_response_headers,
    error_response,
)
from .client import create_proxy_client, ProxyClient

__all__ = [
    "ConcatenatedJsonScanner",
    "JsonSpan",
    "ScanResult",
    "scan_json_objects",
    "BackendChunkParseError",
    "classify_backend_payload",
    "parse_backend_chunk",
    "extract_content",
    "create_ollama_response",
    "create_openai_response",
    "format_ollama_stream_chunk",
    "format_openai_stream_chunk",
    "format_final_openai_chunk",
    "format_final_ollama_chunk",
    "aggregate_backend_response",
    "stream_generator",
    "relay_generator",
    "STREAM_HEADERS",
    "STREAM_MEDIA_TYPES",
    "normalize_request",
    "parse_request_body",
    "resolve_credential",
    "classify_backend_status",
    "classify_transport_error",
    "filter_response_headers",
    "error_response",
    "create_proxy_client",
    "ProxyClient",
]

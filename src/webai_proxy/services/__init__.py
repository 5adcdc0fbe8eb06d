"""
Services transverses de WebAI Proxy.
"""

from .request_logger import (
    RequestLogger,
    NullRequestLogger,
    LoggingRequestLogger,
    create_request_logger,
    mask_headers,
)
from .health_check import check_target_connection, log_target_status

__all__ = [
    "RequestLogger",
    "NullRequestLogger",
    "LoggingRequestLogger",
    "create_request_logger",
    "mask_headers",
    "check_target_connection",
    "log_target_status",
]

"""
Tests du journal des requêtes.
"""
import logging

from webai_proxy.services.request_logger import (
    LoggingRequestLogger,
    NullRequestLogger,
    create_request_logger,
    mask_headers,
)


def test_mask_headers():
    masked = mask_headers({
        "Authorization": "Bearer abcdefghijklmnop",
        "x-api-key": "short",
        "Content-Type": "application/json",
    })
    assert masked["Authorization"] == "Bearer abc..."
    assert masked["x-api-key"] == "***"
    assert masked["Content-Type"] == "application/json"


def test_factory():
    assert isinstance(create_request_logger(False), NullRequestLogger)
    assert isinstance(create_request_logger(), LoggingRequestLogger)


def test_logging_request_logger(caplog):
    request_logger = LoggingRequestLogger()
    with caplog.at_level(logging.INFO, logger="webai_proxy.requests"):
        request_logger.log_request("POST", "/api/chat", "", "127.0.0.1", {"authorization": "Bearer 1234567890abcdefg"})
        request_logger.log_request_body(b'{"model": "llama3"}')
        request_logger.log_request_body(b"")
        request_logger.log_response(200, {})
        request_logger.log_response_body({"done": True})

    assert "POST /api/chat" in caplog.text
    assert "1234567890abcdefg" not in caplog.text
    assert '"model": "llama3"' in caplog.text
    assert "(empty)" in caplog.text
    assert "Status: 200" in caplog.text

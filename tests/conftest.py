"""
Configuration des tests pytest.
"""
import os
import sys

import pytest

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from webai_proxy.config.settings import ProxyConfig  # noqa: E402


@pytest.fixture
def test_config():
    """Configuration de test (backend fictif, sans clé)."""
    return ProxyConfig(
        target_domain="backend.test",
        target_port=10501,
        proxy_domain="localhost",
        proxy_port=8080,
        target_api_key=None,
        target_timeout_ms=2000
    )


@pytest.fixture
def keyed_config():
    """Configuration avec TARGET_API_KEY."""
    return ProxyConfig(
        target_domain="backend.test",
        target_port=10501,
        target_api_key="config-key",
        target_timeout_ms=2000
    )


@pytest.fixture
def sample_messages():
    """Messages de test."""
    return [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": "Hello, how are you?"},
    ]


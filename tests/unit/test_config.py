"""
Tests du chargement de la configuration.
"""
import pytest

from webai_proxy.config.loader import load_config
from webai_proxy.config.settings import ProxyConfig
from webai_proxy.core.exceptions import ConfigurationError

ENV_KEYS = [
    "TARGET_DOMAIN", "TARGET_PORT", "PROXY_DOMAIN",
    "PROXY_PORT", "TARGET_API_KEY", "TARGET_TIMEOUT_MS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestLoadConfig:

    def test_defaults(self):
        config = load_config(env_file=None)
        assert config == ProxyConfig()
        assert config.target_base_url == "http://localhost:10501"
        assert config.target_timeout_ms == 120000

    def test_process_environment(self, monkeypatch):
        monkeypatch.setenv("TARGET_DOMAIN", "inference.local")
        monkeypatch.setenv("TARGET_PORT", "9000")
        monkeypatch.setenv("TARGET_API_KEY", "secret")
        monkeypatch.setenv("TARGET_TIMEOUT_MS", "5000")

        config = load_config(env_file=None)
        assert config.target_base_url == "http://inference.local:9000"
        assert config.target_api_key == "secret"
        assert config.timeout_seconds == 5.0

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TARGET_PORT=443\nTARGET_DOMAIN=api.example.com\nPROXY_PORT=9090\n")

        config = load_config(env_file=str(env_file))
        assert config.target_base_url == "https://api.example.com:443"
        assert config.proxy_port == 9090

    def test_process_env_wins_over_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("TARGET_PORT=1111\n")
        monkeypatch.setenv("TARGET_PORT", "2222")

        assert load_config(env_file=str(env_file)).target_port == 2222

    def test_explicit_environ(self):
        config = load_config(env_file=None, environ={"TARGET_PORT": "7000", "UNRELATED": "x"})
        assert config.target_port == 7000

    def test_blank_api_key_is_none(self):
        config = load_config(env_file=None, environ={"TARGET_API_KEY": "   "})
        assert config.target_api_key is None

    @pytest.mark.parametrize("key,value", [
        ("TARGET_PORT", "0"),
        ("PROXY_PORT", "70000"),
        ("TARGET_PORT", "abc"),
        ("TARGET_TIMEOUT_MS", "0"),
    ])
    def test_invalid_values(self, key, value):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(env_file=None, environ={key: value})
        assert exc_info.value.details == {"key": key}


def test_display_dict_masks_key():
    config = ProxyConfig(target_api_key="super-secret-key")
    display = config.to_display_dict()
    assert display["target_api_key"] == "supe..."
    assert "super-secret-key" not in str(display)

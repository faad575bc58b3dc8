"""Tests for environment-driven configuration."""

from pathlib import Path

import pytest

from budstandart.config import (
    DEFAULT_BASE_URL,
    DEFAULT_CDP_URL,
    PortalConfig,
    load_portal_config,
    resolve_credentials,
)
from budstandart.errors import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for var in (
        "BUDSTANDART_BASE_URL",
        "BUDSTANDART_CDP_URL",
        "BUDSTANDART_TIMEOUT_MS",
        "BUDSTANDART_OUTPUT_DIR",
        "BUDSTANDART_STATE_DIR",
        "BUDSTANDART_USER_AGENT",
        "BUDSTANDART_EMAIL",
        "BUDSTANDART_PASSWORD",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


class TestLoadPortalConfig:
    def test_defaults(self, clean_env):
        config = load_portal_config()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.cdp_url == DEFAULT_CDP_URL
        assert config.timeout_ms == 30000
        assert config.output_dir == Path(".")

    def test_env_overrides(self, clean_env, tmp_path):
        clean_env.setenv("BUDSTANDART_CDP_URL", "http://127.0.0.1:9333")
        clean_env.setenv("BUDSTANDART_TIMEOUT_MS", "5000")
        clean_env.setenv("BUDSTANDART_STATE_DIR", str(tmp_path))

        config = load_portal_config()

        assert config.cdp_url == "http://127.0.0.1:9333"
        assert config.timeout_ms == 5000
        assert config.manifest_path == tmp_path / "gemini-stores.json"

    def test_explicit_override_wins(self, clean_env):
        clean_env.setenv("BUDSTANDART_CDP_URL", "http://127.0.0.1:9333")
        assert load_portal_config(cdp_url="http://other:9222").cdp_url == "http://other:9222"

    def test_none_override_ignored(self, clean_env):
        assert load_portal_config(cdp_url=None).cdp_url == DEFAULT_CDP_URL

    def test_bad_timeout(self, clean_env):
        clean_env.setenv("BUDSTANDART_TIMEOUT_MS", "soon")
        with pytest.raises(ConfigurationError):
            load_portal_config()

    def test_trailing_slash_stripped(self):
        assert PortalConfig(base_url="https://online.budstandart.com/").base_url == (
            "https://online.budstandart.com"
        )

    def test_invalid_base_url(self):
        with pytest.raises(ConfigurationError):
            PortalConfig(base_url="online.budstandart.com")

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError):
            PortalConfig(timeout_ms=0)


class TestResolveCredentials:
    def test_explicit_values(self, clean_env):
        creds = resolve_credentials("a@b.c", "pw")
        assert creds.identifier == "a@b.c"
        assert creds.secret == "pw"

    def test_env_fallback(self, clean_env):
        clean_env.setenv("BUDSTANDART_EMAIL", "env@b.c")
        clean_env.setenv("BUDSTANDART_PASSWORD", "envpw")
        creds = resolve_credentials(None, None)
        assert (creds.identifier, creds.secret) == ("env@b.c", "envpw")

    def test_flag_beats_env(self, clean_env):
        clean_env.setenv("BUDSTANDART_EMAIL", "env@b.c")
        clean_env.setenv("BUDSTANDART_PASSWORD", "envpw")
        assert resolve_credentials("cli@b.c", None).identifier == "cli@b.c"

    def test_missing(self, clean_env):
        with pytest.raises(ConfigurationError):
            resolve_credentials("a@b.c", None)

    def test_secret_not_in_repr(self, clean_env):
        assert "pw" not in repr(resolve_credentials("a@b.c", "pw"))

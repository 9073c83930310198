"""Tests for settings parsing."""

from __future__ import annotations

import pytest

from aggregator.config import Settings, load_settings
from aggregator.errors import ConfigError


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        for var in ("PORT", "LABEL", "FETCH_WORKERS", "PAYLOAD_FORMAT", "CONFLUENCE_HOST"):
            monkeypatch.delenv(var, raising=False)
        settings = load_settings([])
        assert settings.port == 8080
        assert settings.label == "about=true"
        assert settings.workers == 5
        assert settings.queue_size == 10
        assert settings.payload_format == "json"
        assert settings.kubernetes_token_path.endswith("serviceaccount/token")

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("CONFLUENCE_PAGE_ID", "1234")
        monkeypatch.setenv("REQUEST_TIMEOUT", "0")
        settings = load_settings([])
        assert settings.port == 9090
        assert settings.confluence_page_id == "1234"
        assert settings.request_timeout == 0.0

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("LABEL", "from=env")
        settings = load_settings(["--label", "from=flag", "--workers", "2"])
        assert settings.label == "from=flag"
        assert settings.workers == 2

    def test_unknown_payload_format(self):
        with pytest.raises(ConfigError):
            load_settings(["--payload-format", "xml"])

    def test_bad_numeric_environment(self, monkeypatch):
        monkeypatch.setenv("FETCH_WORKERS", "many")
        with pytest.raises(ConfigError):
            load_settings([])

    def test_validate_rejects_zero_workers(self):
        with pytest.raises(ConfigError):
            Settings(workers=0).validate()

    def test_validate_rejects_unknown_log_level(self):
        with pytest.raises(ConfigError):
            Settings(log_level="chatty").validate()

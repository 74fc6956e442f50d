"""Unit tests for AuditConfig."""

from pathlib import Path

import pytest

from webaudit.config import DEFAULT_USER_AGENT, AuditConfig


class TestDefaults:

    def test_defaults(self):
        config = AuditConfig()
        assert config.output_dir == Path("website-audit-reports")
        assert config.concurrency_limit == 1000
        assert config.timeout_seconds == 30.0
        assert config.user_agent == DEFAULT_USER_AGENT
        assert config.max_links is None

    @pytest.mark.parametrize("kwargs", [
        {"concurrency_limit": 0},
        {"timeout_ms": 0},
        {"network_idle_timeout_ms": -1},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            AuditConfig(**kwargs)

    def test_output_dir_coerced_to_path(self):
        assert AuditConfig(output_dir="out").output_dir == Path("out")


class TestFromEnv:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("WEBAUDIT_OUTPUT_DIR", "/tmp/audits")
        monkeypatch.setenv("WEBAUDIT_CONCURRENCY", "8")
        monkeypatch.setenv("WEBAUDIT_VERBOSE", "false")
        monkeypatch.setenv("WEBAUDIT_MAX_LINKS", "25")
        monkeypatch.setenv("WEBAUDIT_USER_AGENT", "audit-bot/1.0")

        config = AuditConfig.from_env()

        assert config.output_dir == Path("/tmp/audits")
        assert config.concurrency_limit == 8
        assert config.verbose is False
        assert config.max_links == 25
        assert config.user_agent == "audit-bot/1.0"

    def test_overrides_win_and_none_is_ignored(self, monkeypatch):
        monkeypatch.setenv("WEBAUDIT_CONCURRENCY", "8")
        monkeypatch.setenv("WEBAUDIT_TIMEOUT_MS", "5000")

        config = AuditConfig.from_env(concurrency_limit=2, timeout_ms=None)

        assert config.concurrency_limit == 2
        assert config.timeout_ms == 5000

    def test_empty_variable_ignored(self, monkeypatch):
        monkeypatch.setenv("WEBAUDIT_CONCURRENCY", "")
        assert AuditConfig.from_env().concurrency_limit == 1000

    def test_bad_value_raises(self, monkeypatch):
        monkeypatch.setenv("WEBAUDIT_CONCURRENCY", "0")
        with pytest.raises(ValueError):
            AuditConfig.from_env()

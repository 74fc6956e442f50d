"""Tests for the command-line entry point and logging setup."""

import json
import logging

import pytest
from rich.logging import RichHandler

import audit
from conftest import make_report
from webaudit.models.types import ProbeKind
from webaudit.utils.log import configure_logging


class FakeCoordinator:
    instances = []

    def __init__(self, config, on_progress, skip):
        self.config = config
        self.on_progress = on_progress
        self.skip = skip
        self.error = None
        FakeCoordinator.instances.append(self)

    async def run_full_audit(self, url):
        if self.config.concurrency_limit == 13:
            raise RuntimeError("Could not launch browser")
        self.on_progress("probe_start", {"probe": "performance", "position": 1, "total": 9})
        self.on_progress("probe_failed", {"probe": "performance", "error": "Lighthouse timed out"})
        return make_report(url=url, overall=43)


@pytest.fixture
def run_cli(monkeypatch, tmp_path):
    FakeCoordinator.instances.clear()
    monkeypatch.setattr(audit, "AuditCoordinator", FakeCoordinator)
    monkeypatch.setattr(audit, "configure_logging", lambda verbose: None)

    def run(*argv):
        monkeypatch.setattr("sys.argv", ["audit.py", *argv, "--output-dir", str(tmp_path)])
        audit.main()
        return FakeCoordinator.instances[-1]

    return run


def test_json_output(run_cli, capsys):
    coordinator = run_cli("example.com", "--json", "--concurrency", "5")
    out = capsys.readouterr().out

    report = json.loads(out[out.index("{"):])
    assert report["url"] == "https://example.com"
    assert report["overall_score"] == 43
    assert coordinator.config.concurrency_limit == 5
    assert "[FALLBACK] Lighthouse timed out" in out


def test_skip_flags(run_cli):
    coordinator = run_cli("https://example.com", "--skip", "backlinks", "screenshot_review")
    assert coordinator.skip == [ProbeKind.BACKLINKS, ProbeKind.SCREENSHOT_REVIEW]


def test_failure_exits_nonzero(run_cli, capsys):
    with pytest.raises(SystemExit) as exc:
        run_cli("https://example.com", "--concurrency", "13")
    assert exc.value.code == 1
    assert "Audit failed: Could not launch browser" in capsys.readouterr().out


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging(restore_root_logger):
    configure_logging(verbose=False)

    assert any(isinstance(h, RichHandler) for h in restore_root_logger.handlers)
    assert restore_root_logger.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(verbose=True)
    assert restore_root_logger.level == logging.INFO
    assert len(restore_root_logger.handlers) == 1

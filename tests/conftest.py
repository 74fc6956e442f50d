"""Shared test fixtures and fakes for WebAudit tests."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from webaudit.config import AuditConfig
from webaudit.models.types import (
    AccessibilityReport,
    AuditReport,
    BacklinkReport,
    InteractionSweep,
    PerformanceReport,
    ProbeKind,
    ProbeResult,
    PwaReport,
    ScreenshotReview,
    SecurityReport,
    ThirdPartyReport,
)
from webaudit.utils.dom import (
    CLICK_BY_INDEX_JS,
    QUERY_ELEMENTS_JS,
    SET_VALUE_BY_INDEX_JS,
)


class FakeSession:
    """Stands in for BrowserSession: hands out the same mock page every time."""

    def __init__(self, page=None):
        self.page = page or make_page()
        self.pages_opened = 0
        self.pages_closed = 0
        self.entered = 0
        self.exited = 0
        self.executable_path = None

    @asynccontextmanager
    async def new_page(self, **context_options):
        self.pages_opened += 1
        try:
            yield self.page
        finally:
            self.pages_closed += 1

    async def __aenter__(self):
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited += 1


def make_page(url="https://example.com/", evaluate=None):
    page = AsyncMock()
    page.url = url
    page.on = MagicMock()
    page.remove_listener = MagicMock()
    page.goto = AsyncMock(return_value=MagicMock(status=200))
    page.wait_for_load_state = AsyncMock()
    if evaluate is not None:
        page.evaluate = AsyncMock(side_effect=evaluate)
    return page


def dom_page(buttons=0, inputs=0, fail_clicks=(), fail_fills=(), url="https://example.com/"):
    """A page whose DOM commands behave like a document with N buttons and M inputs."""
    calls = []

    async def evaluate(script, arg=None):
        calls.append((script, arg))
        if script == QUERY_ELEMENTS_JS:
            if arg == "button":
                return [{"index": i, "text": f"Button {i}"} for i in range(buttons)]
            return [
                {"index": i, "type": "text", "placeholder": "No placeholder", "value": ""}
                for i in range(inputs)
            ]
        if script == CLICK_BY_INDEX_JS:
            if arg in fail_clicks:
                raise RuntimeError(f"click handler threw on button {arg}")
            return None
        if script == SET_VALUE_BY_INDEX_JS:
            index, value = arg
            if index in fail_fills:
                raise RuntimeError(f"input {index} is read-only")
            return value
        raise AssertionError(f"unexpected script: {script[:60]}")

    page = make_page(url=url, evaluate=evaluate)
    page.calls = calls
    return page


def no_cors_transport():
    return httpx.MockTransport(lambda request: httpx.Response(204))


def fallback_results(**overrides) -> dict:
    results = {
        ProbeKind.PERFORMANCE: PerformanceReport.fallback(),
        ProbeKind.SECURITY: SecurityReport.fallback(),
        ProbeKind.ACCESSIBILITY: AccessibilityReport.fallback(),
        ProbeKind.STRESS_TEST: InteractionSweep.fallback(),
        ProbeKind.THIRD_PARTY: ThirdPartyReport.fallback(),
        ProbeKind.FORMS: None,
        ProbeKind.PWA: PwaReport.fallback(),
        ProbeKind.BACKLINKS: BacklinkReport.fallback(),
        ProbeKind.SCREENSHOT_REVIEW: ScreenshotReview.fallback(),
    }
    results.update({ProbeKind(k): v for k, v in overrides.items()})
    return {
        kind: ProbeResult(kind=kind, ok=data is not None, data=data)
        for kind, data in results.items()
    }


def make_report(url="https://example.com/", timestamp="2024-05-01T12:30:45.123Z", overall=0, **overrides):
    return AuditReport(url=url, timestamp=timestamp, results=fallback_results(**overrides), overall_score=overall)


@pytest.fixture
def config(tmp_path):
    return AuditConfig(output_dir=tmp_path / "reports", timeout_ms=5000, network_idle_timeout_ms=1000)

"""Unit tests for BrowserSession lifecycle, with Playwright mocked out."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from webaudit.core import browser as browser_module
from webaudit.core.browser import LAUNCH_ARGS, VIEWPORT, BrowserSession
from webaudit.errors import LaunchError, SessionClosedError


@pytest.fixture
def playwright(monkeypatch):
    ctx = MagicMock()
    ctx.new_page = AsyncMock(return_value=MagicMock(name="page"))
    ctx.close = AsyncMock()

    chromium_browser = MagicMock()
    chromium_browser.new_context = AsyncMock(return_value=ctx)
    chromium_browser.close = AsyncMock()

    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=chromium_browser)
    pw.chromium.executable_path = "/opt/chromium/chrome"
    pw.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=pw)
    monkeypatch.setattr(browser_module, "async_playwright", lambda: starter)

    pw.browser = chromium_browser
    pw.ctx = ctx
    return pw


class TestLifecycle:

    async def test_open_and_close(self, config, playwright):
        async with BrowserSession(config) as session:
            assert session.is_open
            assert session.executable_path == "/opt/chromium/chrome"

        assert not session.is_open
        playwright.chromium.launch.assert_awaited_once_with(
            headless=True, args=LAUNCH_ARGS, timeout=config.timeout_ms,
        )
        playwright.browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()

    async def test_close_twice_releases_once(self, config, playwright):
        session = await BrowserSession(config).open()
        await session.close()
        await session.close()

        playwright.browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()

    async def test_launch_failure(self, config, playwright):
        playwright.chromium.launch.side_effect = RuntimeError("Executable doesn't exist")
        session = BrowserSession(config)

        with pytest.raises(LaunchError, match="Executable doesn't exist"):
            await session.open()
        playwright.stop.assert_awaited_once()

        with pytest.raises(SessionClosedError):
            await session.open()

    async def test_cannot_reopen_closed_session(self, config, playwright):
        session = await BrowserSession(config).open()
        await session.close()

        with pytest.raises(SessionClosedError):
            await session.open()


class TestNewPage:

    async def test_requires_open_session(self, config):
        with pytest.raises(SessionClosedError):
            async with BrowserSession(config).new_page():
                pass

    async def test_context_options(self, config, playwright):
        async with BrowserSession(config) as session:
            async with session.new_page() as page:
                assert page is playwright.ctx.new_page.return_value
            async with session.new_page(viewport={"width": 375, "height": 667}):
                pass

        first, second = playwright.browser.new_context.await_args_list
        assert first.kwargs == {"user_agent": config.user_agent, "viewport": VIEWPORT}
        assert second.kwargs["viewport"] == {"width": 375, "height": 667}
        playwright.ctx.set_default_timeout.assert_called_with(config.timeout_ms)
        assert playwright.ctx.close.await_count == 2

    async def test_context_closed_when_body_raises(self, config, playwright):
        async with BrowserSession(config) as session:
            with pytest.raises(ValueError):
                async with session.new_page():
                    raise ValueError("probe blew up")

        playwright.ctx.close.assert_awaited_once()

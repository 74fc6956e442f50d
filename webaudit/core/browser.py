"""One headless browser process and the pages opened on it."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Browser, Page, Playwright, async_playwright

from webaudit.config import AuditConfig
from webaudit.errors import LaunchError, SessionClosedError

logger = logging.getLogger(__name__)


LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
]

VIEWPORT = {"width": 1440, "height": 900}


class BrowserSession:
    """Owns a Chromium process. Use as ``async with BrowserSession(cfg) as s``."""

    def __init__(self, config: AuditConfig):
        self.config = config
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._state = "new"          # new | open | closed | failed

    @property
    def is_open(self) -> bool:
        return self._state == "open"

    @property
    def executable_path(self) -> str | None:
        """Path of the Chromium binary, for tools that launch their own instance."""
        if self._pw is None:
            return None
        return self._pw.chromium.executable_path

    async def open(self) -> BrowserSession:
        if self._state != "new":
            raise SessionClosedError(f"Session cannot be opened from state '{self._state}'")
        try:
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(
                headless=self.config.headless,
                args=LAUNCH_ARGS,
                timeout=self.config.timeout_ms,
            )
        except Exception as e:
            self._state = "failed"
            try:
                await self._teardown()
            except Exception:
                logger.debug("Cleanup after failed launch raised", exc_info=True)
            raise LaunchError(f"Could not launch browser: {e}") from e

        self._state = "open"
        logger.debug("Browser launched")
        return self

    @asynccontextmanager
    async def new_page(self, **context_options) -> AsyncIterator[Page]:
        """Yield a page in a fresh browser context; the context is always closed."""
        if not self.is_open:
            raise SessionClosedError("Browser session is not open")

        options = {"user_agent": self.config.user_agent, "viewport": VIEWPORT}
        options.update(context_options)
        ctx = await self._browser.new_context(**options)
        try:
            ctx.set_default_navigation_timeout(self.config.timeout_ms)
            ctx.set_default_timeout(self.config.timeout_ms)
            page = await ctx.new_page()
            yield page
        finally:
            await ctx.close()

    async def close(self):
        if self._state == "closed":
            return
        self._state = "closed"
        await self._teardown()
        logger.debug("Browser closed")

    async def _teardown(self):
        browser, pw = self._browser, self._pw
        self._browser = None
        self._pw = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if pw is not None:
                await pw.stop()

    async def __aenter__(self) -> BrowserSession:
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

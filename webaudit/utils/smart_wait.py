"""Bounded navigation helpers.

"Wait until the network is idle" never resolves on pages that poll
forever, so the idle wait always runs under its own deadline and a
timeout there is not an error.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


# Installed before navigation so buffered paint/LCP/CLS/long-task entries are kept.
WEB_VITALS_INIT_JS = """(() => {
    if (window.__webaudit_vitals) return;
    const vitals = window.__webaudit_vitals = { lcp: 0, cls: 0, tbt: 0 };
    const observe = (type, cb) => {
        try { new PerformanceObserver(list => list.getEntries().forEach(cb)).observe({ type, buffered: true }); } catch (e) {}
    };
    observe('largest-contentful-paint', e => { vitals.lcp = Math.max(vitals.lcp, e.renderTime || e.loadTime || e.startTime); });
    observe('layout-shift', e => { if (!e.hadRecentInput) vitals.cls += e.value; });
    observe('longtask', e => { vitals.tbt += Math.max(0, e.duration - 50); });
    const origWrite = document.write;
    document.write = function(...args) {
        window.__webaudit_document_write = true;
        return origWrite.apply(this, args);
    };
})();"""

_READ_WEB_VITALS_JS = """() => {
    const vitals = window.__webaudit_vitals || { lcp: 0, cls: 0, tbt: 0 };
    const nav = performance.getEntriesByType('navigation')[0];
    const fcp = performance.getEntriesByType('paint').find(p => p.name === 'first-contentful-paint');
    return {
        fcp: fcp ? fcp.startTime : 0,
        lcp: vitals.lcp,
        cls: vitals.cls,
        tbt: vitals.tbt,
        dom_content_loaded: nav ? nav.domContentLoadedEventEnd - nav.startTime : 0,
    };
}"""


async def navigate(page: Page, url: str, timeout_ms: int, idle_timeout_ms: int) -> Response | None:
    """Load ``url`` and wait for network idle, bounded by ``idle_timeout_ms``.

    Navigation errors propagate; an idle deadline that expires does not.
    """
    response = await page.goto(url, wait_until="load", timeout=timeout_ms)
    await wait_for_network_idle(page, idle_timeout_ms)
    return response


async def wait_for_network_idle(page: Page, timeout_ms: int) -> bool:
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        return True
    except PlaywrightTimeoutError:
        logger.debug("Network never went idle on %s within %dms", page.url, timeout_ms)
        return False


async def install_web_vitals(page: Page):
    await page.add_init_script(WEB_VITALS_INIT_JS)


async def read_web_vitals(page: Page) -> dict:
    return await page.evaluate(_READ_WEB_VITALS_JS)

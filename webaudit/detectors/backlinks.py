"""Link integrity: a lightweight existence check for every anchor on the page."""

from __future__ import annotations

import logging

import httpx

from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe
from webaudit.models.types import BacklinkReport, ProbeKind
from webaudit.utils.dom import READ_LINKS_JS
from webaudit.utils.smart_wait import navigate

logger = logging.getLogger(__name__)

# Servers that refuse HEAD get a second chance with GET.
HEAD_REJECTED = {405, 501}


def unique_links(links: list[str], limit: int | None = None) -> list[str]:
    seen: dict[str, None] = {}
    for link in links:
        seen.setdefault(link, None)
    ordered = list(seen)
    return ordered[:limit] if limit is not None else ordered


async def check_link(client: httpx.AsyncClient, url: str) -> dict:
    """Return ``{url, status}`` and, on connection failure, an ``error``."""
    try:
        response = await client.head(url)
        if response.status_code in HEAD_REJECTED:
            response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return {"url": url, "status": None, "error": str(e) or type(e).__name__}
    return {"url": url, "status": response.status_code}


class BacklinkProbe(Probe):
    kind = ProbeKind.BACKLINKS

    def __init__(self, config, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._transport = transport

    def fallback(self) -> BacklinkReport:
        return BacklinkReport.fallback()

    async def collect(self, session: BrowserSession, target: str) -> BacklinkReport:
        async with session.new_page() as page:
            await navigate(page, target, self.config.timeout_ms, self.config.network_idle_timeout_ms)
            raw_links = await page.evaluate(READ_LINKS_JS)
        return await self.check_links(raw_links)

    async def check_links(self, raw_links: list[str]) -> BacklinkReport:
        links = unique_links(raw_links, self.config.max_links)
        report = BacklinkReport(total_links=len(unique_links(raw_links)))

        async with httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for url in links:
                result = await check_link(client, url)
                report.checked_links += 1
                status = result["status"]
                if status is not None and 200 <= status < 300:
                    report.working_links += 1
                else:
                    report.broken_links.append(result)

        logger.info("Checked %d links, %d broken", report.checked_links, len(report.broken_links))
        return report

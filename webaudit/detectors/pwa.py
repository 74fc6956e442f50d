"""PWA readiness: manifest, service worker, icons, meta tags, offline support."""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import Page

from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe
from webaudit.models.types import ProbeKind, PwaReport
from webaudit.utils.dom import HAS_RENDERED_CONTENT_JS, READ_PWA_SIGNALS_JS
from webaudit.utils.smart_wait import navigate

logger = logging.getLogger(__name__)


async def check_offline(page: Page, timeout_ms: int) -> bool:
    """Reload with the network cut and see whether anything still renders.

    Online mode is restored whatever happens during the reload.
    """
    await page.context.set_offline(True)
    try:
        await page.reload(wait_until="load", timeout=timeout_ms)
        return bool(await page.evaluate(HAS_RENDERED_CONTENT_JS))
    except Exception as e:
        logger.debug("Offline reload failed: %s", e)
        return False
    finally:
        await page.context.set_offline(False)


def build_pwa_report(signals: dict, works_offline: bool) -> PwaReport:
    manifest = signals.get("manifest") or {}
    icons = manifest.get("icons") or []
    report = PwaReport(
        has_manifest=bool(signals.get("hasManifestLink")),
        manifest={
            "name": manifest.get("name") or manifest.get("short_name"),
            "start_url": manifest.get("start_url"),
            "display": manifest.get("display"),
            "loaded": bool(signals.get("manifest")),
        },
        service_worker_supported=bool(signals.get("swSupported")),
        service_worker_registrations=int(signals.get("registrations") or 0),
        has_apple_touch_icon=bool(signals.get("appleTouchIcon")),
        manifest_icons=len(icons) if isinstance(icons, list) else 0,
        meta_tags=dict(signals.get("meta") or {}),
        is_https=bool(signals.get("https")),
        works_offline=works_offline,
    )

    checks = [
        report.has_manifest,
        report.service_worker_registrations > 0,
        report.has_apple_touch_icon or report.manifest_icons > 0,
        report.meta_tags.get("viewport", False),
        report.meta_tags.get("theme_color", False),
        report.is_https,
        report.works_offline,
    ]
    report.readiness_score = round(100 * sum(checks) / len(checks))
    return report


class PwaProbe(Probe):
    kind = ProbeKind.PWA

    def fallback(self) -> PwaReport:
        return PwaReport.fallback()

    async def collect(self, session: BrowserSession, target: str) -> PwaReport:
        async with session.new_page() as page:
            await navigate(page, target, self.config.timeout_ms, self.config.network_idle_timeout_ms)
            signals = await self._read_signals(page)
            works_offline = await check_offline(page, self.config.timeout_ms)
        return build_pwa_report(signals, works_offline)

    async def _read_signals(self, page: Page) -> dict:
        # page.evaluate has no deadline of its own; the manifest fetch is also aborted in-page.
        try:
            return await asyncio.wait_for(
                page.evaluate(READ_PWA_SIGNALS_JS, self.config.network_idle_timeout_ms),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"PWA signals not read within {self.config.timeout_seconds:g}s") from None

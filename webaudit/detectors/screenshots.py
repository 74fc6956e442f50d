"""Per-device screenshot review by an external vision model."""

from __future__ import annotations

import logging

from webaudit.core.ai_engine import GeminiEngine, MissingCredentialError
from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe
from webaudit.models.types import ProbeKind, ScreenshotReview
from webaudit.utils.smart_wait import navigate

logger = logging.getLogger(__name__)


DEVICES = {
    "mobile": {"width": 375, "height": 667},
    "tablet": {"width": 768, "height": 1024},
    "desktop": {"width": 1440, "height": 900},
}


class ScreenshotReviewProbe(Probe):
    kind = ProbeKind.SCREENSHOT_REVIEW

    def __init__(self, config, engine: GeminiEngine | None = None):
        super().__init__(config)
        self.engine = engine or GeminiEngine(config.gemini_model)

    def fallback(self) -> ScreenshotReview:
        return ScreenshotReview.fallback()

    async def collect(self, session: BrowserSession, target: str) -> ScreenshotReview:
        # Fail before opening any pages when there is nothing to send them to.
        if not self.engine.available:
            raise MissingCredentialError("GEMINI_API_KEY not set; screenshot review skipped")

        review = ScreenshotReview()
        for device, viewport in DEVICES.items():
            logger.info("Capturing %s screenshot", device)
            async with session.new_page(viewport=viewport) as page:
                await navigate(page, target, self.config.timeout_ms, self.config.network_idle_timeout_ms)
                png = await page.screenshot(full_page=True, type="png")
            review.analyses[device] = await self.engine.review_screenshot(png, device)
            review.devices[device] = dict(viewport)
        return review

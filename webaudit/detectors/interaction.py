"""Probes wrapping the interaction sweep and third-party request capture."""

from __future__ import annotations

import httpx

from webaudit.core.browser import BrowserSession
from webaudit.core.interaction import ElementInteractionRunner
from webaudit.core.network import NetworkObserver
from webaudit.core.probe import Probe
from webaudit.models.types import InteractionSweep, ProbeKind, ThirdPartyReport
from webaudit.utils.smart_wait import navigate


class InteractionProbe(Probe):
    """Clicks every button and fills every input on the target page."""

    kind = ProbeKind.STRESS_TEST

    def __init__(self, config, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self.runner = ElementInteractionRunner(
            concurrency_limit=config.concurrency_limit,
            user_agent=config.user_agent,
            timeout_s=config.timeout_seconds,
            transport=transport,
        )

    def fallback(self) -> InteractionSweep:
        return InteractionSweep.fallback()

    async def collect(self, session: BrowserSession, target: str) -> InteractionSweep:
        async with session.new_page() as page:
            await navigate(page, target, self.config.timeout_ms, self.config.network_idle_timeout_ms)
            return await self.runner.run_interaction_sweep(page, target)


class ThirdPartyProbe(Probe):
    kind = ProbeKind.THIRD_PARTY

    def fallback(self) -> ThirdPartyReport:
        return ThirdPartyReport.fallback()

    async def collect(self, session: BrowserSession, target: str) -> ThirdPartyReport:
        observer = NetworkObserver(self.config.timeout_ms, self.config.network_idle_timeout_ms)
        async with session.new_page() as page:
            report = await observer.capture_requests(page, target)
        # A zero report from a failed load is not an empty page.
        if observer.error is not None:
            raise observer.error
        return report

"""Structural accessibility counts from the rendered DOM."""

from __future__ import annotations

from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe
from webaudit.models.types import AccessibilityReport, ProbeKind
from webaudit.utils.dom import read_document_metrics
from webaudit.utils.smart_wait import navigate


def build_accessibility_report(raw: dict) -> AccessibilityReport:
    return AccessibilityReport(
        images_total=raw["images"]["total"],
        images_with_alt=raw["images"]["withAlt"],
        headings_total=raw["headings"]["total"],
        heading_structure=list(raw["headings"]["structure"]),
        landmarks_total=raw["landmarks"]["total"],
        landmark_types=dict(raw["landmarks"]["types"]),
        forms_total=raw["forms"]["total"],
        forms_with_labels=raw["forms"]["withLabels"],
        aria_elements=raw.get("ariaElements", 0),
    )


class AccessibilityProbe(Probe):
    kind = ProbeKind.ACCESSIBILITY

    def fallback(self) -> AccessibilityReport:
        return AccessibilityReport.fallback()

    async def collect(self, session: BrowserSession, target: str) -> AccessibilityReport:
        async with session.new_page() as page:
            await navigate(page, target, self.config.timeout_ms, self.config.network_idle_timeout_ms)
            raw = await read_document_metrics(page)
        return build_accessibility_report(raw)

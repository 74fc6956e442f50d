"""Audit coordinator: runs every probe against one target and builds the report.

Probes run strictly one after another against a single browser process.
Each probe owns its own page for its lifetime. Probe failures are turned
into fallback payloads by the ProbeRunner; only a browser launch failure
or an error while assembling or persisting the report aborts the audit.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from webaudit.config import AuditConfig
from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe, ProbeRunner
from webaudit.core.report import save_report
from webaudit.detectors.accessibility import AccessibilityProbe
from webaudit.detectors.backlinks import BacklinkProbe
from webaudit.detectors.forms import FormsProbe
from webaudit.detectors.interaction import InteractionProbe, ThirdPartyProbe
from webaudit.detectors.performance import PerformanceProbe
from webaudit.detectors.pwa import PwaProbe
from webaudit.detectors.screenshots import ScreenshotReviewProbe
from webaudit.detectors.security import SecurityHeadersProbe
from webaudit.models.types import AuditReport, ProbeKind, ProbeResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict], None]
ReportSink = Callable[[AuditReport], Path | None]

# Accessibility is declared but not summed: the accessibility probe yields
# structural counts, not a 0-100 score.
SCORE_WEIGHTS = {
    "performance": 0.4,
    "security": 0.3,
    "accessibility": 0.3,
}


def overall_score(performance_score: float, security_score: float) -> int:
    raw = performance_score * SCORE_WEIGHTS["performance"] + security_score * SCORE_WEIGHTS["security"]
    # Half-up, not banker's rounding: 42.5 -> 43.
    return int(math.floor(raw + 0.5))


def utc_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def default_probes(config: AuditConfig) -> list[Probe]:
    return [
        PerformanceProbe(config),
        SecurityHeadersProbe(config),
        AccessibilityProbe(config),
        InteractionProbe(config),
        ThirdPartyProbe(config),
        FormsProbe(config),
        PwaProbe(config),
        BacklinkProbe(config),
        ScreenshotReviewProbe(config),
    ]


class AuditCoordinator:
    """Sequences all probes for one target URL into a single AuditReport."""

    def __init__(
        self,
        config: AuditConfig | None = None,
        probes: list[Probe] | None = None,
        sink: ReportSink | None = None,
        on_progress: ProgressCallback | None = None,
        skip: Iterable[ProbeKind] = (),
        session_factory: Callable[[AuditConfig], BrowserSession] = BrowserSession,
    ):
        self.config = config or AuditConfig()
        self.probes = probes if probes is not None else default_probes(self.config)
        self._sink = sink if sink is not None else self._write_report
        self._on_progress = on_progress
        self._skip = set(skip)
        self._session_factory = session_factory
        self.report_path: Path | None = None

        kinds = [p.kind for p in self.probes]
        duplicates = {k.value for k in kinds if kinds.count(k) > 1}
        if duplicates:
            raise ValueError(f"Probe kinds registered more than once: {', '.join(sorted(duplicates))}")
        missing = [k.value for k in ProbeKind if k not in kinds]
        if missing:
            raise ValueError(f"No probe registered for: {', '.join(missing)}")

    def _write_report(self, report: AuditReport) -> Path:
        return save_report(report, self.config.output_dir)

    def _emit(self, event_type: str, data: dict):
        if self._on_progress:
            self._on_progress(event_type, data)

    async def run_full_audit(self, target: str) -> AuditReport:
        logger.info("Starting full website audit for %s", target)
        self._emit("audit_start", {"url": target, "probes": [p.name for p in self.probes]})

        runner = ProbeRunner(on_error=lambda kind, msg: self._emit(
            "probe_failed", {"probe": kind.value, "error": msg},
        ))
        results: dict[ProbeKind, ProbeResult] = {}

        async with self._session_factory(self.config) as session:
            for position, probe in enumerate(self.probes, start=1):
                if probe.kind in self._skip:
                    logger.info("Skipping probe %s", probe.name)
                    results[probe.kind] = ProbeResult(
                        kind=probe.kind, ok=False, data=probe.fallback(), error="skipped",
                    )
                    continue
                self._emit("probe_start", {
                    "probe": probe.name, "position": position, "total": len(self.probes),
                })
                result = await runner.run(probe, session, target)
                results[probe.kind] = result
                self._emit("probe_complete", {"probe": probe.name, "ok": result.ok})

        report = self._build_report(target, results)
        self.report_path = self._sink(report)
        if self.report_path:
            logger.info("Audit completed successfully. Report saved to %s", self.report_path)

        self._emit("audit_complete", {
            "url": target,
            "overall_score": report.overall_score,
            "report_path": str(self.report_path) if self.report_path else None,
            "failed_probes": report.failed_probes,
        })
        return report

    def _build_report(self, target: str, results: dict[ProbeKind, ProbeResult]) -> AuditReport:
        performance = results[ProbeKind.PERFORMANCE].data
        security = results[ProbeKind.SECURITY].data
        return AuditReport(
            url=target,
            timestamp=utc_timestamp(),
            results=results,
            overall_score=overall_score(performance.performance_score, security.score),
        )

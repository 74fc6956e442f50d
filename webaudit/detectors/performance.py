"""Performance probe: category scores and five timing metrics.

Uses a local Lighthouse CLI when one is available. Otherwise the metrics
are measured in the page itself and scored against fixed benchmarks.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil

from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe
from webaudit.models.types import PerformanceReport, ProbeKind
from webaudit.utils.dom import READ_PAGE_CHECKS_JS
from webaudit.utils.smart_wait import install_web_vitals, navigate, read_web_vitals

logger = logging.getLogger(__name__)


LIGHTHOUSE_CATEGORIES = ["performance", "accessibility", "best-practices", "seo"]

LIGHTHOUSE_METRICS = {
    "first_contentful_paint": "first-contentful-paint",
    "largest_contentful_paint": "largest-contentful-paint",
    "speed_index": "speed-index",
    "total_blocking_time": "total-blocking-time",
    "cumulative_layout_shift": "cumulative-layout-shift",
}

# metric: (excellent, good, fair) upper bounds
BENCHMARKS = {
    "first_contentful_paint": (1800, 3000, 4500),
    "largest_contentful_paint": (2500, 4000, 6000),
    "speed_index": (3400, 5800, 8000),
    "total_blocking_time": (200, 600, 1000),
    "cumulative_layout_shift": (0.1, 0.25, 0.5),
}

METRIC_WEIGHTS = {
    "first_contentful_paint": 0.10,
    "speed_index": 0.10,
    "largest_contentful_paint": 0.25,
    "total_blocking_time": 0.30,
    "cumulative_layout_shift": 0.25,
}


def metric_score(metric: str, value: float) -> int:
    excellent, good, fair = BENCHMARKS[metric]
    if value <= excellent:
        return 100
    if value <= good:
        return 75
    if value <= fair:
        return 50
    return 25


def score_metrics(metrics: dict[str, float]) -> float:
    total = sum(metric_score(name, metrics[name]) * weight for name, weight in METRIC_WEIGHTS.items())
    return round(total, 1)


def ratio_score(checks: dict[str, bool]) -> float:
    if not checks:
        return 0
    return round(100 * sum(1 for passed in checks.values() if passed) / len(checks), 1)


def parse_lighthouse(lhr: dict) -> PerformanceReport:
    categories = lhr["categories"]
    audits = lhr["audits"]

    issues = []
    for ref in categories["accessibility"].get("auditRefs", []):
        audit = audits.get(ref["id"], {})
        if audit.get("scoreDisplayMode") in ("notApplicable", "manual", "informative"):
            continue
        if audit.get("score") is not None and audit["score"] < 1:
            issues.append({
                "title": audit.get("title", ref["id"]),
                "description": audit.get("description", ""),
                "score": audit["score"],
            })

    return PerformanceReport(
        performance_score=(categories["performance"]["score"] or 0) * 100,
        accessibility_score=(categories["accessibility"]["score"] or 0) * 100,
        best_practices_score=(categories["best-practices"]["score"] or 0) * 100,
        seo_score=(categories["seo"]["score"] or 0) * 100,
        metrics={name: audits[audit_id]["numericValue"] for name, audit_id in LIGHTHOUSE_METRICS.items()},
        accessibility_issues=issues,
        source="lighthouse",
    )


class PerformanceProbe(Probe):
    kind = ProbeKind.PERFORMANCE

    def fallback(self) -> PerformanceReport:
        return PerformanceReport.fallback()

    def _lighthouse_binary(self) -> str | None:
        return self.config.lighthouse_path or shutil.which("lighthouse")

    async def collect(self, session: BrowserSession, target: str) -> PerformanceReport:
        binary = self._lighthouse_binary()
        if binary:
            return await self._run_lighthouse(binary, session, target)
        return await self._measure_in_browser(session, target)

    async def _run_lighthouse(self, binary: str, session: BrowserSession, target: str) -> PerformanceReport:
        logger.info("Running Lighthouse for %s", target)
        args = [
            binary, target,
            "--output=json", "--output-path=stdout", "--quiet",
            f"--only-categories={','.join(LIGHTHOUSE_CATEGORIES)}",
            "--chrome-flags=--headless=new --no-sandbox --disable-gpu --disable-dev-shm-usage",
        ]
        env = None
        if session.executable_path:
            env = {**os.environ, "CHROME_PATH": session.executable_path}

        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            # Lighthouse runs several page loads, so it gets a multiple of the nav timeout.
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.config.timeout_seconds * 4,
            )
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        if proc.returncode != 0:
            raise RuntimeError(f"Lighthouse exited with {proc.returncode}: {stderr.decode(errors='replace')[:300]}")
        if not stdout:
            raise RuntimeError("Lighthouse failed to generate results")
        return parse_lighthouse(json.loads(stdout))

    async def _measure_in_browser(self, session: BrowserSession, target: str) -> PerformanceReport:
        logger.info("Lighthouse not found, measuring %s in the browser", target)
        async with session.new_page() as page:
            await install_web_vitals(page)
            await navigate(page, target, self.config.timeout_ms, self.config.network_idle_timeout_ms)
            vitals = await read_web_vitals(page)
            checks = await page.evaluate(READ_PAGE_CHECKS_JS)

        fcp = round(vitals.get("fcp") or 0, 1)
        lcp = round(vitals.get("lcp") or 0, 1)
        metrics = {
            "first_contentful_paint": fcp,
            "largest_contentful_paint": lcp,
            # No filmstrip in-page; approximated from the two paint milestones.
            "speed_index": round((fcp + lcp) / 2, 1) if lcp else fcp,
            "total_blocking_time": round(vitals.get("tbt") or 0, 1),
            "cumulative_layout_shift": round(vitals.get("cls") or 0, 4),
        }

        issues = [
            {"title": name.replace("_", " "), "description": "Check failed", "score": 0}
            for name, passed in checks["accessibility"].items() if not passed
        ]
        return PerformanceReport(
            performance_score=score_metrics(metrics),
            accessibility_score=ratio_score(checks["accessibility"]),
            best_practices_score=ratio_score(checks["best_practices"]),
            seo_score=ratio_score(checks["seo"]),
            metrics=metrics,
            accessibility_issues=issues,
            source="browser",
        )

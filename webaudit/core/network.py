"""Third-party request discovery during one page load."""

from __future__ import annotations

import logging

from playwright.async_api import Page, Request

from webaudit.models.types import (
    NetworkRequest,
    ServiceCategory,
    ThirdPartyReport,
    ThirdPartyService,
    host_of,
)
from webaudit.utils.smart_wait import navigate

logger = logging.getLogger(__name__)


# Checked in order; the first fragment found in the host wins.
CATEGORY_RULES: list[tuple[tuple[str, ...], ServiceCategory]] = [
    (("google",), ServiceCategory.ANALYTICS),
    (("facebook", "fb"), ServiceCategory.SOCIAL),
    (("ads", "doubleclick"), ServiceCategory.ADVERTISING),
    (("cdn",), ServiceCategory.CDN),
]


def classify_host(host: str) -> ServiceCategory:
    host = host.lower()
    for fragments, category in CATEGORY_RULES:
        if any(fragment in host for fragment in fragments):
            return category
    return ServiceCategory.UNKNOWN


def summarize_requests(requests: set[NetworkRequest], target: str) -> ThirdPartyReport:
    """Fold captured requests into per-host services, skipping first-party ones."""
    target_host = host_of(target)
    services: dict[str, ThirdPartyService] = {}

    for req in sorted(requests, key=lambda r: (r.url, r.resource_type, r.method)):
        host = req.host
        if not host or not req.is_third_party(target_host):
            continue
        service = services.get(host)
        if service is None:
            service = services[host] = ThirdPartyService(host=host, category=classify_host(host))
        service.request_count += 1
        service.resource_types.add(req.resource_type)

    summary = {c.value: 0 for c in ServiceCategory}
    for service in services.values():
        summary[service.category.value] += 1

    return ThirdPartyReport(
        total_third_party_hosts=len(services),
        category_summary=summary,
        details=services,
    )


class NetworkObserver:

    def __init__(self, timeout_ms: int = 30000, idle_timeout_ms: int = 10000):
        self.timeout_ms = timeout_ms
        self.idle_timeout_ms = idle_timeout_ms
        self.requests: set[NetworkRequest] = set()
        self.error: Exception | None = None

    def _on_request(self, request: Request):
        self.requests.add(NetworkRequest(
            url=request.url,
            resource_type=request.resource_type,
            method=request.method,
        ))

    async def capture_requests(self, page: Page, target: str) -> ThirdPartyReport:
        self.requests = set()
        self.error = None
        # Must be attached before goto or the earliest requests are lost.
        page.on("request", self._on_request)
        try:
            await navigate(page, target, self.timeout_ms, self.idle_timeout_ms)
        except Exception as e:
            logger.error("Request capture for %s failed: %s", target, e)
            self.error = e
            return ThirdPartyReport.fallback()
        finally:
            page.remove_listener("request", self._on_request)

        report = summarize_requests(self.requests, target)
        logger.info(
            "Captured %d requests, %d third-party hosts",
            len(self.requests), report.total_third_party_hosts,
        )
        return report

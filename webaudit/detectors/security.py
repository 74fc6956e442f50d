"""Security header presence check.

Only presence is scored. Header values are recorded verbatim and are not
validated.
"""

from __future__ import annotations

import httpx

from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe
from webaudit.models.types import ProbeKind, SecurityReport


HEADER_WEIGHTS = {
    "Strict-Transport-Security": 20,
    "Content-Security-Policy": 25,
    "X-Frame-Options": 15,
    "X-Content-Type-Options": 15,
    "Referrer-Policy": 10,
    "Permissions-Policy": 10,
    "X-XSS-Protection": 5,
}


def security_score(headers: dict[str, str | None]) -> int:
    return sum(HEADER_WEIGHTS[name] for name, value in headers.items() if value and name in HEADER_WEIGHTS)


def security_recommendations(headers: dict[str, str | None]) -> list[dict]:
    recommendations = []
    if not headers.get("Strict-Transport-Security"):
        recommendations.append({
            "priority": "High",
            "header": "Strict-Transport-Security",
            "message": "Implement HSTS to enforce HTTPS connections",
        })
    if not headers.get("Content-Security-Policy"):
        recommendations.append({
            "priority": "High",
            "header": "Content-Security-Policy",
            "message": "Implement Content Security Policy to prevent XSS attacks",
        })
    return recommendations


class SecurityHeadersProbe(Probe):
    kind = ProbeKind.SECURITY

    def __init__(self, config, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._transport = transport

    def fallback(self) -> SecurityReport:
        return SecurityReport.fallback()

    async def collect(self, session: BrowserSession, target: str) -> SecurityReport:
        async with httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            # Any status is accepted; error pages still carry headers.
            response = await client.get(target)

        headers = {name: response.headers.get(name) for name in HEADER_WEIGHTS}
        return SecurityReport(
            headers=headers,
            score=security_score(headers),
            recommendations=security_recommendations(headers),
            status_code=response.status_code,
        )

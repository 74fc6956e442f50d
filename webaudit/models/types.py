"""Data model for one website audit.

Probe payloads are closed per-kind dataclasses. Each one has a
``fallback()`` constructor returning the zero-value payload of the same
shape, so the report never needs to branch on a missing section.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import urlparse


class ProbeKind(str, Enum):
    PERFORMANCE = "performance"
    SECURITY = "security"
    ACCESSIBILITY = "accessibility"
    STRESS_TEST = "stress_test"
    THIRD_PARTY = "third_party"
    FORMS = "forms"
    PWA = "pwa"
    BACKLINKS = "backlinks"
    SCREENSHOT_REVIEW = "screenshot_review"


# Kinds reported at the top level of the report; the rest go under "additional".
PRIMARY_KINDS = (
    ProbeKind.PERFORMANCE,
    ProbeKind.SECURITY,
    ProbeKind.ACCESSIBILITY,
    ProbeKind.STRESS_TEST,
)
ADDITIONAL_KINDS = (
    ProbeKind.THIRD_PARTY,
    ProbeKind.FORMS,
    ProbeKind.PWA,
    ProbeKind.BACKLINKS,
    ProbeKind.SCREENSHOT_REVIEW,
)


class ServiceCategory(str, Enum):
    ANALYTICS = "analytics"
    SOCIAL = "social"
    ADVERTISING = "advertising"
    CDN = "cdn"
    UNKNOWN = "unknown"


def host_of(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


# ---------------------------------------------------------------------------
# Page-scoped records
# ---------------------------------------------------------------------------


@dataclass
class InteractiveElement:
    """A button or input discovered on one page load."""

    kind: str                  # button | input
    index: int                 # zero-based, per kind
    text: str = ""
    input_type: str = ""
    placeholder: str = ""
    value_before: str | None = None
    value_after: str | None = None
    attempted: bool = False
    succeeded: bool = False
    error_message: str | None = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "index": self.index,
            "attempted": self.attempted,
            "success": self.succeeded,
            "error": self.error_message,
        }
        if self.kind == "button":
            data["text"] = self.text
        else:
            data.update({
                "type": self.input_type,
                "placeholder": self.placeholder,
                "value_before": self.value_before,
                "value_after": self.value_after,
            })
        return data


@dataclass(frozen=True)
class NetworkRequest:
    url: str
    resource_type: str
    method: str

    @property
    def host(self) -> str:
        return host_of(self.url)

    def is_third_party(self, target_host: str) -> bool:
        return self.host != target_host.lower()


@dataclass
class ThirdPartyService:
    host: str
    category: ServiceCategory
    request_count: int = 0
    resource_types: set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "request_count": self.request_count,
            "resource_types": sorted(self.resource_types),
        }


# ---------------------------------------------------------------------------
# Probe payloads
# ---------------------------------------------------------------------------


@dataclass
class PerformanceReport:
    performance_score: float = 0
    accessibility_score: float = 0
    best_practices_score: float = 0
    seo_score: float = 0
    metrics: dict[str, float] = field(default_factory=dict)
    accessibility_issues: list[dict] = field(default_factory=list)
    source: str = "none"       # lighthouse | browser | none

    @classmethod
    def fallback(cls) -> PerformanceReport:
        return cls()

    def to_dict(self) -> dict:
        return {
            "performance": {"score": self.performance_score, "metrics": self.metrics},
            "accessibility": {"score": self.accessibility_score, "issues": self.accessibility_issues},
            "best_practices": {"score": self.best_practices_score},
            "seo": {"score": self.seo_score},
            "source": self.source,
        }


@dataclass
class SecurityReport:
    headers: dict[str, str | None] = field(default_factory=dict)
    score: int = 0
    recommendations: list[dict] = field(default_factory=list)
    status_code: int | None = None

    @classmethod
    def fallback(cls) -> SecurityReport:
        return cls()

    def to_dict(self) -> dict:
        return {
            "headers": self.headers,
            "score": self.score,
            "recommendations": self.recommendations,
            "status_code": self.status_code,
        }


@dataclass
class AccessibilityReport:
    images_total: int = 0
    images_with_alt: int = 0
    headings_total: int = 0
    heading_structure: list[str] = field(default_factory=list)
    landmarks_total: int = 0
    landmark_types: dict[str, int] = field(default_factory=dict)
    forms_total: int = 0
    forms_with_labels: int = 0
    aria_elements: int = 0

    @classmethod
    def fallback(cls) -> AccessibilityReport:
        return cls()

    @property
    def alt_ratio(self) -> float:
        if not self.images_total:
            return 0.0
        return self.images_with_alt / self.images_total

    def to_dict(self) -> dict:
        return {
            "images": {"total": self.images_total, "with_alt": self.images_with_alt},
            "headings": {"total": self.headings_total, "structure": self.heading_structure},
            "landmarks": {"total": self.landmarks_total, "types": self.landmark_types},
            "forms": {"total": self.forms_total, "with_labels": self.forms_with_labels},
            "aria_attributes": {"total": self.aria_elements},
        }


@dataclass
class InteractionSweep:
    buttons: list[InteractiveElement] = field(default_factory=list)
    inputs: list[InteractiveElement] = field(default_factory=list)
    cors: dict[str, bool] = field(default_factory=dict)
    button_batches: int = 0
    input_batches: int = 0

    @classmethod
    def fallback(cls) -> InteractionSweep:
        return cls()

    def to_dict(self) -> dict:
        return {
            "buttons": [b.to_dict() for b in self.buttons],
            "input_fields": [i.to_dict() for i in self.inputs],
            "cors": self.cors,
            "batches": {"buttons": self.button_batches, "inputs": self.input_batches},
        }


@dataclass
class ThirdPartyReport:
    total_third_party_hosts: int = 0
    category_summary: dict[str, int] = field(
        default_factory=lambda: {c.value: 0 for c in ServiceCategory}
    )
    details: dict[str, ThirdPartyService] = field(default_factory=dict)

    @classmethod
    def fallback(cls) -> ThirdPartyReport:
        return cls()

    def to_dict(self) -> dict:
        return {
            "total_third_party_hosts": self.total_third_party_hosts,
            "category_summary": self.category_summary,
            "details": {host: svc.to_dict() for host, svc in sorted(self.details.items())},
        }


@dataclass
class FormsReport:
    forms: list[dict] = field(default_factory=list)
    total_forms: int = 0
    total_fields: int = 0
    forms_with_validation: int = 0
    forms_with_csrf_token: int = 0
    forms_with_submit: int = 0

    @classmethod
    def fallback(cls) -> None:
        # Known exception to the zero-value rule: callers null-check forms data.
        return None

    def to_dict(self) -> dict:
        return {
            "forms": self.forms,
            "summary": {
                "total_forms": self.total_forms,
                "total_fields": self.total_fields,
                "forms_with_validation": self.forms_with_validation,
                "forms_with_csrf_token": self.forms_with_csrf_token,
                "forms_with_submit": self.forms_with_submit,
            },
        }


@dataclass
class PwaReport:
    has_manifest: bool = False
    manifest: dict = field(default_factory=dict)
    service_worker_supported: bool = False
    service_worker_registrations: int = 0
    has_apple_touch_icon: bool = False
    manifest_icons: int = 0
    meta_tags: dict[str, bool] = field(default_factory=dict)
    is_https: bool = False
    works_offline: bool = False
    readiness_score: int = 0

    @classmethod
    def fallback(cls) -> PwaReport:
        return cls()

    def to_dict(self) -> dict:
        return {
            "manifest": {"present": self.has_manifest, **self.manifest},
            "service_worker": {
                "supported": self.service_worker_supported,
                "registrations": self.service_worker_registrations,
            },
            "icons": {
                "apple_touch_icon": self.has_apple_touch_icon,
                "manifest_icons": self.manifest_icons,
            },
            "meta_tags": self.meta_tags,
            "https": self.is_https,
            "offline": {"works_offline": self.works_offline},
            "readiness_score": self.readiness_score,
        }


@dataclass
class BacklinkReport:
    total_links: int = 0
    checked_links: int = 0
    working_links: int = 0
    broken_links: list[dict] = field(default_factory=list)

    @classmethod
    def fallback(cls) -> BacklinkReport:
        return cls()

    def to_dict(self) -> dict:
        return {
            "total_links": self.total_links,
            "checked_links": self.checked_links,
            "working_links": self.working_links,
            "broken_links": self.broken_links,
        }


@dataclass
class ScreenshotReview:
    analyses: dict[str, str] = field(default_factory=dict)
    devices: dict[str, dict[str, int]] = field(default_factory=dict)

    @classmethod
    def fallback(cls) -> ScreenshotReview:
        return cls()

    def to_dict(self) -> dict:
        return {"analyses": self.analyses, "devices": self.devices}


# ---------------------------------------------------------------------------
# Results and the report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe: either its payload or its fallback."""

    kind: ProbeKind
    ok: bool
    data: Any
    error: str | None = None

    def to_dict(self) -> dict:
        payload = self.data.to_dict() if self.data is not None else None
        status = {"ok": self.ok, "error": self.error}
        if self.kind == ProbeKind.FORMS:
            return {"data": payload, "probe_status": status}
        return {**payload, "probe_status": status}


@dataclass(frozen=True)
class AuditReport:
    url: str
    timestamp: str
    results: Mapping[ProbeKind, ProbeResult]
    overall_score: int

    def __post_init__(self):
        # Detach from the caller's dict so the report cannot change after creation.
        object.__setattr__(self, "results", MappingProxyType(dict(self.results)))
        missing = [k.value for k in ProbeKind if k not in self.results]
        if missing:
            raise ValueError(f"Report is missing probe results: {', '.join(missing)}")
        for kind, result in self.results.items():
            if result.kind != kind:
                raise ValueError(f"Result for {kind.value} is tagged {result.kind.value}")

    def get(self, kind: ProbeKind) -> ProbeResult:
        return self.results[kind]

    @property
    def performance(self) -> PerformanceReport:
        return self.results[ProbeKind.PERFORMANCE].data

    @property
    def security(self) -> SecurityReport:
        return self.results[ProbeKind.SECURITY].data

    @property
    def accessibility(self) -> AccessibilityReport:
        return self.results[ProbeKind.ACCESSIBILITY].data

    @property
    def stress_test(self) -> InteractionSweep:
        return self.results[ProbeKind.STRESS_TEST].data

    @property
    def failed_probes(self) -> list[str]:
        return [k.value for k, r in self.results.items() if not r.ok]

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"url": self.url, "timestamp": self.timestamp}
        for kind in PRIMARY_KINDS:
            data[kind.value] = self.results[kind].to_dict()
        data["overall_score"] = self.overall_score
        data["additional"] = {kind.value: self.results[kind].to_dict() for kind in ADDITIONAL_KINDS}
        return data

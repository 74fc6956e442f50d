"""Form validation inspection: validation attributes, CSRF tokens, submit buttons."""

from __future__ import annotations

from webaudit.core.browser import BrowserSession
from webaudit.core.probe import Probe
from webaudit.models.types import FormsReport, ProbeKind
from webaudit.utils.dom import READ_FORMS_JS
from webaudit.utils.smart_wait import navigate

VALIDATION_ATTRIBUTES = ("required", "pattern", "minlength", "maxlength", "min", "max")

# Input types the browser validates on its own.
VALIDATING_TYPES = {"email", "url", "number", "tel", "date"}


def field_has_validation(field: dict) -> bool:
    if field.get("type") in VALIDATING_TYPES:
        return True
    return any(field.get(attr) not in (None, False, "") for attr in VALIDATION_ATTRIBUTES)


def build_forms_report(raw_forms: list[dict]) -> FormsReport:
    forms = []
    for raw in raw_forms:
        form = dict(raw)
        form["has_validation"] = any(field_has_validation(f) for f in raw["fields"])
        form["field_count"] = len(raw["fields"])
        forms.append(form)

    return FormsReport(
        forms=forms,
        total_forms=len(forms),
        total_fields=sum(f["field_count"] for f in forms),
        forms_with_validation=sum(1 for f in forms if f["has_validation"]),
        forms_with_csrf_token=sum(1 for f in forms if f["has_csrf_token"]),
        forms_with_submit=sum(1 for f in forms if f["has_submit_button"]),
    )


class FormsProbe(Probe):
    kind = ProbeKind.FORMS

    def fallback(self) -> None:
        return FormsReport.fallback()

    async def collect(self, session: BrowserSession, target: str) -> FormsReport:
        async with session.new_page() as page:
            await navigate(page, target, self.config.timeout_ms, self.config.network_idle_timeout_ms)
            raw_forms = await page.evaluate(READ_FORMS_JS)
        return build_forms_report(raw_forms)

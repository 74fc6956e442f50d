"""Failure containment around individual probes.

Whatever a probe raises while collecting data is caught here, logged with
the probe's name, and replaced by that probe's fallback payload. The
coordinator never sees a probe-local exception.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from webaudit.config import AuditConfig
from webaudit.core.browser import BrowserSession
from webaudit.models.types import ProbeKind, ProbeResult

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[ProbeKind, str], None]


class Probe:
    """Base class for one self-contained analysis."""

    kind: ProbeKind

    def __init__(self, config: AuditConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.kind.value

    async def collect(self, session: BrowserSession, target: str) -> Any:
        raise NotImplementedError

    def fallback(self) -> Any:
        raise NotImplementedError


class ProbeRunner:

    def __init__(self, on_error: ErrorCallback | None = None):
        self._on_error = on_error

    async def run(self, probe: Probe, session: BrowserSession, target: str) -> ProbeResult:
        started = time.monotonic()
        try:
            data = await probe.collect(session, target)
        except Exception as e:
            message = str(e)[:500] or type(e).__name__
            logger.error("Probe %s failed: %s", probe.name, message)
            if self._on_error:
                self._on_error(probe.kind, message)
            return ProbeResult(kind=probe.kind, ok=False, data=probe.fallback(), error=message)

        logger.info("Probe %s completed in %.1fs", probe.name, time.monotonic() - started)
        return ProbeResult(kind=probe.kind, ok=True, data=data)

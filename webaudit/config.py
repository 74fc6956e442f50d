"""Audit configuration with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_ENV_VARS = {
    "output_dir": "WEBAUDIT_OUTPUT_DIR",
    "verbose": "WEBAUDIT_VERBOSE",
    "timeout_ms": "WEBAUDIT_TIMEOUT_MS",
    "network_idle_timeout_ms": "WEBAUDIT_NETWORK_IDLE_TIMEOUT_MS",
    "user_agent": "WEBAUDIT_USER_AGENT",
    "concurrency_limit": "WEBAUDIT_CONCURRENCY",
    "max_links": "WEBAUDIT_MAX_LINKS",
    "lighthouse_path": "WEBAUDIT_LIGHTHOUSE",
    "gemini_model": "WEBAUDIT_GEMINI_MODEL",
}


@dataclass
class AuditConfig:
    output_dir: Path = Path("website-audit-reports")
    verbose: bool = True
    timeout_ms: int = 30000
    network_idle_timeout_ms: int = 10000
    user_agent: str = DEFAULT_USER_AGENT
    concurrency_limit: int = 1000
    max_links: int | None = None
    lighthouse_path: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    headless: bool = True

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        if self.concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        if self.timeout_ms <= 0 or self.network_idle_timeout_ms <= 0:
            raise ValueError("timeouts must be positive")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def from_env(cls, **overrides) -> AuditConfig:
        """Build a config from WEBAUDIT_* variables; explicit overrides win."""
        types = {f.name: f.type for f in fields(cls)}
        values = {}
        for name, var in _ENV_VARS.items():
            raw = os.environ.get(var)
            if raw is None or raw == "":
                continue
            values[name] = _coerce(raw, types[name])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _coerce(raw: str, type_name: str):
    # Field types are strings under `from __future__ import annotations`.
    if type_name == "bool":
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    if type_name.startswith("int"):
        return int(raw)
    if type_name == "Path":
        return Path(raw)
    return raw

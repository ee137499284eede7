from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProbeOutcome:
    success: bool
    latency_ms: int | None = None
    status_code: int | None = None
    error: str | None = None

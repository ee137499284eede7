from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Iterable

from pulsecheck.checks.results import ProbeOutcome
from pulsecheck.models import Target

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StatusRecord:
    name: str
    url: str
    priority: str = "high"
    up: bool | None = None
    last_checked: datetime | None = None
    response_time_ms: int | None = None
    status_code: int | None = None
    consecutive_failures: int = 0
    consecutive_successes: int = 0
    last_error: str | None = None


def apply_outcome(
    current: StatusRecord,
    outcome: ProbeOutcome,
    checked_at: datetime,
) -> StatusRecord:
    if outcome.success:
        return replace(
            current,
            up=True,
            last_checked=checked_at,
            response_time_ms=outcome.latency_ms,
            status_code=outcome.status_code,
            consecutive_failures=0,
            consecutive_successes=current.consecutive_successes + 1,
            last_error=None,
        )
    return replace(
        current,
        up=False,
        last_checked=checked_at,
        response_time_ms=outcome.latency_ms,
        status_code=outcome.status_code,
        consecutive_failures=current.consecutive_failures + 1,
        consecutive_successes=0,
        last_error=outcome.error or "unknown-error",
    )


class StatusStore:
    """
    Holds exactly one StatusRecord per configured target.

    Records are immutable; an update swaps the whole record under the lock,
    so a reader sees either the previous record or the next one, never a mix.
    """

    def __init__(self, targets: Iterable[Target]) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, StatusRecord] = {}
        for t in targets:
            if t.name in self._records:
                raise ValueError(f"Duplicate target name: {t.name}")
            self._records[t.name] = StatusRecord(
                name=t.name, url=str(t.url), priority=t.priority
            )

    def __len__(self) -> int:
        return len(self._records)

    def record(
        self,
        name: str,
        outcome: ProbeOutcome,
        checked_at: datetime | None = None,
    ) -> StatusRecord:
        checked_at = checked_at or utcnow()
        with self._lock:
            prev = self._records[name]
            cur = apply_outcome(prev, outcome, checked_at)
            self._records[name] = cur

        self._log_transition(prev, cur)
        return cur

    def _log_transition(self, prev: StatusRecord, cur: StatusRecord) -> None:
        if prev.up is None:
            logger.info(
                "%s first check: %s", cur.name, "UP" if cur.up else f"DOWN ({cur.last_error})"
            )
        elif prev.up and not cur.up:
            logger.warning("%s went DOWN: %s", cur.name, cur.last_error)
        elif not prev.up and cur.up:
            logger.info(
                "%s recovered after %d failures", cur.name, prev.consecutive_failures
            )

    def get(self, name: str) -> StatusRecord:
        with self._lock:
            return self._records[name]

    def snapshot(self) -> dict[str, StatusRecord]:
        with self._lock:
            return dict(self._records)

    def summary(self) -> dict[str, int]:
        snap = self.snapshot()
        return {
            "total": len(snap),
            "up": sum(1 for r in snap.values() if r.up is True),
            "down": sum(1 for r in snap.values() if r.up is False),
            "unknown": sum(1 for r in snap.values() if r.up is None),
        }

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Literal

from pulsecheck.state import StatusRecord

OverallStatus = Literal["up", "degraded", "down"]


def serialize_ts(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow_iso() -> str:
    return serialize_ts(datetime.now(timezone.utc)) or ""


def compute_overall_status(records: Iterable[StatusRecord]) -> OverallStatus:
    # unknown (never checked) counts as not up
    ups = [r.up is True for r in records]
    if all(ups):
        return "up"
    if not any(ups):
        return "down"
    return "degraded"


def service_payload(record: StatusRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": record.name,
        "url": record.url,
        "priority": record.priority,
        "up": record.up,
        "lastChecked": serialize_ts(record.last_checked),
        "responseTimeMs": record.response_time_ms,
        "statusCode": record.status_code,
        "failures": record.consecutive_failures,
        "successes": record.consecutive_successes,
    }
    if record.up is False:
        payload["error"] = record.last_error
    return payload


def build_health_report(
    snapshot: dict[str, StatusRecord],
    now: datetime | None = None,
) -> dict[str, Any]:
    records = list(snapshot.values())
    return {
        "overall": compute_overall_status(records),
        "timestamp": serialize_ts(now) if now else utcnow_iso(),
        "services": [service_payload(r) for r in records],
    }

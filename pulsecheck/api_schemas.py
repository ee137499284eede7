from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ServiceStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    url: str
    priority: str = "high"
    up: bool | None = Field(default=None, description="None until the first check completes")
    last_checked: str | None = Field(default=None, alias="lastChecked")
    response_time_ms: int | None = Field(default=None, alias="responseTimeMs")
    status_code: int | None = Field(default=None, alias="statusCode")
    failures: int = Field(default=0, ge=0, description="Consecutive failed checks")
    successes: int = Field(default=0, ge=0, description="Consecutive successful checks")
    error: str | None = Field(default=None, description="Only present when the last check failed")


class HealthReportResponse(BaseModel):
    overall: Literal["up", "degraded", "down"]
    timestamp: str
    services: list[ServiceStatusResponse]

from __future__ import annotations

from typing import Any, List, Literal

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, model_validator

from pulsecheck.config import settings

Priority = Literal["high", "medium", "low"]


class Defaults(BaseModel):
    interval_s: float = Field(default=settings.POLL_INTERVAL_S, gt=0)
    timeout_s: float = Field(default=settings.REQUEST_TIMEOUT_S, gt=0)


class Target(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    url: AnyHttpUrl
    priority: Priority = "high"

    @model_validator(mode="before")
    @classmethod
    def _name_from_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name") and data.get("url"):
            data = {**data, "name": str(data["url"])}
        return data


class TargetRegistry(BaseModel):
    model_config = ConfigDict(frozen=True)

    defaults: Defaults = Field(default_factory=Defaults)
    targets: List[Target] = Field(..., min_length=1)

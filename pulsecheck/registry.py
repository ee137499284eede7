from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import yaml

from pulsecheck.config import settings
from pulsecheck.models import Target, TargetRegistry

logger = logging.getLogger(__name__)

DEFAULT_TARGET_URLS = (
    "https://salak-codes.github.io/Simon-Game/",
    "https://api.github.com/",
    "https://pokeapi.co/api/v2/",
)


def _ensure_unique(reg: TargetRegistry) -> TargetRegistry:
    seen = set()
    for t in reg.targets:
        if t.name in seen:
            raise ValueError(f"Duplicate target name: {t.name}")
        seen.add(t.name)
    return reg


def registry_from_urls(urls: Iterable[str]) -> TargetRegistry:
    reg = TargetRegistry(targets=[Target(url=url) for url in urls])
    return _ensure_unique(reg)


def load_registry_file(path: Path) -> TargetRegistry:
    if not path.exists():
        raise FileNotFoundError(f"Missing targets file at {path}")

    data = yaml.safe_load(path.read_text()) or {}
    return _ensure_unique(TargetRegistry.model_validate(data))


def load_registry(
    path: Path | None = None,
    urls: Iterable[str] | None = None,
) -> TargetRegistry:
    """
    Resolve the monitored targets once at startup.

    Order: the YAML targets file if it exists, then the comma-separated
    PULSECHECK_TARGETS list, then the built-in defaults.
    """
    path = settings.TARGETS_PATH if path is None else path
    if path.exists():
        logger.info("Loading targets from %s", path)
        return load_registry_file(path)

    urls = settings.TARGET_URLS if urls is None else tuple(urls)
    if urls:
        logger.info("Loading %d targets from PULSECHECK_TARGETS", len(urls))
        return registry_from_urls(urls)

    logger.info("No targets configured, using built-in defaults")
    return registry_from_urls(DEFAULT_TARGET_URLS)

"""
Tariff registry — maps version strings to Tariff instances.

The active tariff comes from settings: TARIFF_PATH (a JSON file) wins over
TARIFF_VERSION (a registered version). It is resolved once, at startup or on
the first request, and cached: request handling never writes the registry.
"""

import logging
from typing import Optional

from ..config import settings
from .tariff import DEFAULT_TARIFF, Tariff, load_tariff

logger = logging.getLogger(__name__)

TARIFF_REGISTRY: dict[str, Tariff] = {
    DEFAULT_TARIFF.version: DEFAULT_TARIFF,
}


def register_tariff(tariff: Tariff) -> None:
    """Add or replace a tariff version."""
    TARIFF_REGISTRY[tariff.version] = tariff


def get_tariff(version: str) -> Tariff:
    """Returns the tariff for a version, or raises ValueError."""
    if version not in TARIFF_REGISTRY:
        raise ValueError(
            f"No tariff registered for version: {version}. "
            f"Available: {list(TARIFF_REGISTRY.keys())}"
        )
    return TARIFF_REGISTRY[version]


def has_tariff(version: str) -> bool:
    """Check if a tariff version is registered."""
    return version in TARIFF_REGISTRY


def list_tariffs() -> list[str]:
    """List all registered tariff versions."""
    return list(TARIFF_REGISTRY.keys())


_active: Optional[Tariff] = None


def active_tariff() -> Tariff:
    """Tariff used for live quotes. Loaded once, then cached."""
    global _active
    if _active is None:
        _active = _resolve_active_tariff()
    return _active


def reload_active_tariff() -> Tariff:
    """Drop the cached tariff and resolve it again from settings."""
    global _active
    _active = None
    return active_tariff()


def _resolve_active_tariff() -> Tariff:
    if settings.TARIFF_PATH:
        tariff = load_tariff(settings.TARIFF_PATH)
        register_tariff(tariff)
        return tariff
    if has_tariff(settings.TARIFF_VERSION):
        return get_tariff(settings.TARIFF_VERSION)
    logger.warning(
        "Tariff %s not registered — using default %s",
        settings.TARIFF_VERSION, DEFAULT_TARIFF.version,
    )
    return DEFAULT_TARIFF

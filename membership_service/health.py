"""Aggregated process health built from named indicators."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Mapping

from .database import Database

logger = logging.getLogger(__name__)

UP = "UP"
DOWN = "DOWN"

HealthIndicator = Callable[[], bool]


@dataclass(slots=True)
class HealthReport:
    status: str
    components: dict[str, str] = field(default_factory=dict)

    @property
    def is_up(self) -> bool:
        return self.status == UP


class HealthService:
    """Runs every registered indicator; the process is up only if all of them are."""

    def __init__(self, indicators: Mapping[str, HealthIndicator]) -> None:
        self._indicators = dict(indicators)

    def check(self) -> HealthReport:
        components: dict[str, str] = {}
        for name, indicator in self._indicators.items():
            try:
                healthy = indicator()
            except Exception:
                logger.exception("health indicator %s failed", name)
                healthy = False
            components[name] = UP if healthy else DOWN
        status = UP if all(state == UP for state in components.values()) else DOWN
        return HealthReport(status=status, components=components)


def database_indicator(db: Database) -> HealthIndicator:
    return db.ping

"""Core data models: telemetry records, time windows, normalization results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from balemetrics.config import DEFAULT_TIME_WINDOW, DEFAULT_WINDOW_DAYS, TIME_WINDOWS

logger = logging.getLogger(__name__)


class TimeWindow(Enum):
    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"
    ALL = "all"

    @classmethod
    def parse(cls, token: str | TimeWindow | None) -> TimeWindow:
        """Resolve a selector token, falling back to the 7-day window for unknown tokens."""
        if isinstance(token, TimeWindow):
            return token
        try:
            return cls(str(token).strip().lower())
        except ValueError:
            logger.warning("Unknown time window %r, using %s", token, DEFAULT_TIME_WINDOW)
            return cls(DEFAULT_TIME_WINDOW)

    @property
    def days(self) -> int | None:
        """Window length in days, or None for no lower bound."""
        return TIME_WINDOWS[self.value]

    @property
    def span_days(self) -> int:
        """Window length used for idle/active accounting (unbounded windows count as 7 days)."""
        return self.days or DEFAULT_WINDOW_DAYS


@dataclass(frozen=True)
class TelemetryRecord:
    """One machine duty cycle with its derived fields."""

    device_id: str
    cycle_started_at: datetime
    cycle_duration_ms: float
    runtime_hours: float
    energy_active_kwh: float = 0.0
    productivity_bale_count_increment: float = 0.0
    health_anomaly_score: float = 0.0
    anomaly: bool = False
    e_stop: bool = False
    overload: bool = False
    valve_issue: bool = False
    current_imbalance: float = 0.0  # %
    pressure_overshoot: float = 0.0  # %
    door_open_events: int = 0
    gate_open_events: int = 0

    @property
    def energy_per_cycle(self) -> float:
        return self.energy_active_kwh

    @property
    def has_error(self) -> bool:
        """E-stop or overload trip during the cycle."""
        return self.e_stop or self.overload

    @property
    def day_of_week(self) -> int:
        """0 = Sunday .. 6 = Saturday."""
        return (self.cycle_started_at.weekday() + 1) % 7

    @property
    def hour_of_day(self) -> int:
        return self.cycle_started_at.hour

    @property
    def date_key(self) -> date:
        return self.cycle_started_at.date()


@dataclass(frozen=True)
class RejectedRow:
    """A raw row that could not be normalized."""

    index: int  # position in the input sequence
    reason: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass
class NormalizationResult:
    """Valid records in input order plus the rows that were dropped."""

    records: list[TelemetryRecord] = field(default_factory=list)
    rejected: list[RejectedRow] = field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def input_count(self) -> int:
        return len(self.records) + len(self.rejected)

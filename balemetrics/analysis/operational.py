"""Operational analysis: day x hour heatmap, idle/active split, daily performance."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Sequence

import numpy as np
import pandas as pd

from balemetrics.analysis.trends import daily_series, mean_or_zero
from balemetrics.config import DAY_NAMES, HOURS_PER_DAY, IDLE_ACTIVE_TOP_N
from balemetrics.models.core import TelemetryRecord, TimeWindow
from balemetrics.parsers.normalizer import records_to_frame


@dataclass
class HeatmapCell:
    day: int  # 0 = Sunday
    hour: int
    day_name: str
    value: float  # runtime hours
    intensity: float  # % of the busiest cell


@dataclass
class DeviceUsage:
    device: str
    active_time: float  # hours
    idle_time: float  # hours
    utilization: float  # % of the selected window


@dataclass
class OperationalReport:
    heatmap: list[HeatmapCell] = field(default_factory=list)
    idle_active: list[DeviceUsage] = field(default_factory=list)
    performance_trends: list[dict] = field(default_factory=list)
    window_hours: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def compute_heatmap(df: pd.DataFrame) -> list[HeatmapCell]:
    """Runtime per (day of week, hour of day) bucket, 7 x 24 cells day-major."""
    if df.empty:
        return []

    grid = np.zeros((len(DAY_NAMES), HOURS_PER_DAY))
    for (day, hour), runtime in df.groupby(["day_of_week", "hour_of_day"])["runtime_hours"].sum().items():
        grid[int(day), int(hour)] = runtime

    peak = grid.max()
    cells = []
    for day, name in enumerate(DAY_NAMES):
        for hour in range(HOURS_PER_DAY):
            value = float(grid[day, hour])
            cells.append(HeatmapCell(
                day=day,
                hour=hour,
                day_name=name,
                value=value,
                intensity=value / peak * 100 if peak > 0 else 0.0,
            ))
    return cells


def compute_idle_active(
    df: pd.DataFrame,
    window: str | TimeWindow = TimeWindow.LAST_7D,
    n: int = IDLE_ACTIVE_TOP_N,
) -> list[DeviceUsage]:
    """Active vs idle hours per device over the selected window, busiest first."""
    if df.empty:
        return []

    total_hours = TimeWindow.parse(window).span_days * HOURS_PER_DAY
    usage = []
    for device, group in df.groupby("device_id", sort=False):
        active = float(group["runtime_hours"].sum())
        usage.append(DeviceUsage(
            device=device,
            active_time=active,
            idle_time=max(0.0, total_hours - active),
            utilization=active / total_hours * 100,
        ))
    usage.sort(key=lambda u: u.active_time, reverse=True)
    return usage[:n]


def compute_daily_performance(df: pd.DataFrame) -> list[dict]:
    return daily_series(df, lambda g: {
        "cycles": len(g),
        "runtime": float(g["runtime_hours"].sum()),
        "energy": float(g["energy_active_kwh"].sum()),
        "bales": float(g["productivity_bale_count_increment"].fillna(0).sum()),
        "avg_utilization": mean_or_zero(g["runtime_hours"] / HOURS_PER_DAY * 100),
    })


def compute_operational(
    records: Sequence[TelemetryRecord],
    window: str | TimeWindow = TimeWindow.LAST_7D,
) -> OperationalReport:
    window = TimeWindow.parse(window)
    df = records_to_frame(records)
    if df.empty:
        return OperationalReport()

    return OperationalReport(
        heatmap=compute_heatmap(df),
        idle_active=compute_idle_active(df, window),
        performance_trends=compute_daily_performance(df),
        window_hours=float(window.span_days * HOURS_PER_DAY),
    )

"""Maintenance planning: lifetime extrapolation, MTBF/MTTR, end-of-life flags."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Sequence

from balemetrics.analysis.trends import mean_or_zero
from balemetrics.config import (
    EOL_CYCLE_THRESHOLD,
    HEURISTIC_MTTR_HOURS,
    LIFETIME_EXTRAPOLATION_FACTOR,
    NEAR_EOL_ANOMALY_SCORE,
    NEAR_EOL_REMAINING_PCT,
    NEAR_EOL_TOP_N,
)
from balemetrics.models.core import TelemetryRecord
from balemetrics.parsers.normalizer import records_to_frame


@dataclass
class DeviceLife:
    device: str
    lifetime_cycles: int
    remaining_life_pct: float
    mtbf: float  # hours
    mttr: float  # hours
    avg_anomaly_score: float
    is_near_eol: bool


@dataclass
class MaintenanceReport:
    avg_mtbf: float = 0.0
    avg_mttr: float = 0.0
    avg_remaining_life: float = 0.0
    eol_machines: list[DeviceLife] = field(default_factory=list)
    devices: list[DeviceLife] = field(default_factory=list)  # worst remaining life first
    total_machines: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def remaining_life_pct(lifetime_cycles: int, threshold: int = EOL_CYCLE_THRESHOLD) -> float:
    return max(0.0, (threshold - lifetime_cycles) / threshold * 100)


def compute_maintenance(records: Sequence[TelemetryRecord], n: int = NEAR_EOL_TOP_N) -> MaintenanceReport:
    """Estimate remaining service life and reliability per device.

    Lifetime cycles extrapolate the observed record count as one week of
    operation over a 52-week year. MTTR is a fixed heuristic, not measured.
    """
    df = records_to_frame(records)
    if df.empty:
        return MaintenanceReport()

    devices = []
    for device, group in df.groupby("device_id", sort=False):
        lifetime = len(group) * LIFETIME_EXTRAPOLATION_FACTOR
        remaining = remaining_life_pct(lifetime)
        errors = int(group["has_error"].sum())
        runtime = float(group["runtime_hours"].sum())
        score = mean_or_zero(group["health_anomaly_score"])
        devices.append(DeviceLife(
            device=device,
            lifetime_cycles=lifetime,
            remaining_life_pct=remaining,
            mtbf=runtime / errors if errors > 0 else runtime,
            mttr=HEURISTIC_MTTR_HOURS if errors > 0 else 0.0,
            avg_anomaly_score=score,
            is_near_eol=remaining < NEAR_EOL_REMAINING_PCT or score > NEAR_EOL_ANOMALY_SCORE,
        ))
    devices.sort(key=lambda d: d.remaining_life_pct)

    count = len(devices)
    return MaintenanceReport(
        avg_mtbf=sum(d.mtbf for d in devices) / count,
        avg_mttr=sum(d.mttr for d in devices) / count,
        avg_remaining_life=sum(d.remaining_life_pct for d in devices) / count,
        eol_machines=[d for d in devices if d.is_near_eol][:n],
        devices=devices,
        total_machines=count,
    )

"""Fleet-wide summary statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Sequence

from balemetrics.models.core import TelemetryRecord
from balemetrics.parsers.normalizer import records_to_frame


@dataclass
class FleetOverview:
    """Whole-fleet KPIs. Every field is None when there is no data."""

    total_runtime: float | None = None  # hours
    utilization_rate: float | None = None  # %, capped at 100
    total_cycles: int | None = None
    error_count: int | None = None
    unique_devices: int | None = None
    avg_cycles_per_machine: float | None = None
    total_energy: float | None = None  # kWh
    total_bales: float | None = None
    window_hours: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.total_cycles is None

    def to_dict(self) -> dict:
        return asdict(self)


def compute_fleet_overview(records: Sequence[TelemetryRecord]) -> FleetOverview:
    """Compute fleet KPIs over the filtered records.

    Utilization is total runtime over (devices x observed span), with the
    span floored at one hour and the result capped at 100 %.
    """
    df = records_to_frame(records)
    if df.empty:
        return FleetOverview()

    total_runtime = float(df["runtime_hours"].sum())
    unique_devices = int(df["device_id"].nunique())
    span = df["cycle_started_at"].max() - df["cycle_started_at"].min()
    window_hours = max(span.total_seconds() / 3600, 1.0)
    utilization = total_runtime / (unique_devices * window_hours) * 100

    return FleetOverview(
        total_runtime=total_runtime,
        utilization_rate=min(utilization, 100.0),
        total_cycles=len(df),
        error_count=int(df["has_error"].sum()),
        unique_devices=unique_devices,
        avg_cycles_per_machine=len(df) / unique_devices,
        total_energy=float(df["energy_active_kwh"].sum()),
        total_bales=float(df["productivity_bale_count_increment"].fillna(0).sum()),
        window_hours=window_hours,
    )

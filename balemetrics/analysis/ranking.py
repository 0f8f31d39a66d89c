"""Per-machine ranking by runtime, with error-based health status."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Sequence

from balemetrics.config import RANKING_TOP_N, RANKING_UTILIZATION_HOURS
from balemetrics.models.core import TelemetryRecord
from balemetrics.parsers.normalizer import records_to_frame

STATUS_HEALTHY = "Healthy"
STATUS_WARNING = "Warning"


@dataclass
class MachineStats:
    device: str
    runtime: float  # hours
    cycles: int
    energy: float  # kWh
    errors: int
    efficiency: float  # runtime per error; raw runtime when error-free
    utilization: float  # % of a fixed 7-day week
    status: str


@dataclass
class MachineRanking:
    machines: list[MachineStats] = field(default_factory=list)  # runtime descending
    top5: list[MachineStats] = field(default_factory=list)
    bottom5: list[MachineStats] = field(default_factory=list)  # worst first

    def to_dict(self) -> dict:
        return {
            "machines": [asdict(m) for m in self.machines],
            "top5": [asdict(m) for m in self.top5],
            "bottom5": [asdict(m) for m in self.bottom5],
        }


def machine_stats(records: Sequence[TelemetryRecord]) -> list[MachineStats]:
    """Summarize each device, in first-seen device order."""
    df = records_to_frame(records)
    if df.empty:
        return []

    stats = []
    for device, group in df.groupby("device_id", sort=False):
        runtime = float(group["runtime_hours"].sum())
        errors = int(group["has_error"].sum())
        stats.append(MachineStats(
            device=device,
            runtime=runtime,
            cycles=len(group),
            energy=float(group["energy_active_kwh"].sum()),
            errors=errors,
            efficiency=runtime / errors if errors > 0 else runtime,
            # NOTE: fixed 7-day denominator, unlike the window-relative fleet utilization
            utilization=runtime / RANKING_UTILIZATION_HOURS * 100,
            status=STATUS_WARNING if errors > 0 else STATUS_HEALTHY,
        ))
    return stats


def rank_machines(records: Sequence[TelemetryRecord], n: int = RANKING_TOP_N) -> MachineRanking:
    """Rank devices by runtime.

    ``top5`` holds the first ``n`` devices by descending runtime and
    ``bottom5`` the last ``n`` reversed, so its first entry is the device
    with the least runtime. With fewer than ``2 * n`` devices the two lists
    overlap.
    """
    machines = sorted(machine_stats(records), key=lambda m: m.runtime, reverse=True)
    if not machines:
        return MachineRanking()
    return MachineRanking(
        machines=machines,
        top5=machines[:n],
        bottom5=machines[-n:][::-1],
    )

"""Fleet session state and the combined dashboard report."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from balemetrics.analysis.filtering import filter_records, latest_timestamp
from balemetrics.analysis.fleet_overview import FleetOverview, compute_fleet_overview
from balemetrics.analysis.maintenance import MaintenanceReport, compute_maintenance
from balemetrics.analysis.operational import OperationalReport, compute_operational
from balemetrics.analysis.ranking import MachineRanking, rank_machines
from balemetrics.analysis.safety_health import SafetyHealthReport, compute_safety_health
from balemetrics.config import ALL_DEVICES, DEFAULT_TIME_WINDOW
from balemetrics.models.core import RejectedRow, TelemetryRecord, TimeWindow
from balemetrics.parsers.normalizer import normalize_rows

logger = logging.getLogger(__name__)


@dataclass
class DashboardReport:
    """All aggregate results for one record selection."""

    fleet: FleetOverview
    ranking: MachineRanking
    safety_health: SafetyHealthReport
    maintenance: MaintenanceReport
    operational: OperationalReport
    device: str = ALL_DEVICES
    window: str = DEFAULT_TIME_WINDOW
    record_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "device": self.device,
            "window": self.window,
            "record_count": self.record_count,
            "fleet": self.fleet.to_dict(),
            "ranking": self.ranking.to_dict(),
            "safety_health": self.safety_health.to_dict(),
            "maintenance": self.maintenance.to_dict(),
            "operational": self.operational.to_dict(),
        }


def build_dashboard(
    records: Sequence[TelemetryRecord],
    window: str | TimeWindow = TimeWindow.LAST_7D,
    device: str = ALL_DEVICES,
    workers: int | None = None,
) -> DashboardReport:
    """Run every aggregator over an already-filtered record set.

    The aggregators only read ``records``; with ``workers`` > 1 they are
    evaluated in a thread pool.
    """
    window = TimeWindow.parse(window)
    tasks = {
        "fleet": (compute_fleet_overview, (records,)),
        "ranking": (rank_machines, (records,)),
        "safety_health": (compute_safety_health, (records,)),
        "maintenance": (compute_maintenance, (records,)),
        "operational": (compute_operational, (records, window)),
    }

    if workers and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {name: executor.submit(fn, *args) for name, (fn, args) in tasks.items()}
            results = {name: fut.result() for name, fut in futures.items()}
    else:
        results = {name: fn(*args) for name, (fn, args) in tasks.items()}

    return DashboardReport(
        device=device,
        window=window.value,
        record_count=len(records),
        **results,
    )


@dataclass
class FleetSession:
    """Working set of normalized records plus the current device/window selection.

    ``records`` is replaced wholesale by :meth:`load`; ``filtered`` is
    recomputed from it on every selection change and never edited in place.
    """

    records: list[TelemetryRecord] = field(default_factory=list)
    rejected: list[RejectedRow] = field(default_factory=list)
    device: str = ALL_DEVICES
    window: TimeWindow = TimeWindow.LAST_7D
    filtered: list[TelemetryRecord] = field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> FleetSession:
        session = cls()
        session.load(rows)
        return session

    def load(self, rows: Iterable[Mapping[str, Any]]) -> FleetSession:
        """Normalize raw rows and make them the new working set."""
        result = normalize_rows(rows)
        self.records = result.records
        self.rejected = result.rejected
        logger.info("Loaded %d records for %d devices", len(self.records), len(self.devices))
        self._refilter()
        return self

    @property
    def anchor(self) -> datetime | None:
        """Newest timestamp in the whole working set."""
        return latest_timestamp(self.records)

    @property
    def devices(self) -> list[str]:
        return sorted({r.device_id for r in self.records})

    def select(self, device: str | None = None, window: str | TimeWindow | None = None) -> list[TelemetryRecord]:
        """Change the device and/or window selection and return the new filtered set."""
        if device is not None:
            self.device = device
        if window is not None:
            self.window = TimeWindow.parse(window)
        self._refilter()
        return self.filtered

    def _refilter(self) -> None:
        self.filtered = filter_records(self.records, self.device, self.window, anchor=self.anchor)
        logger.debug(
            "Selection device=%s window=%s -> %d of %d records",
            self.device, self.window.value, len(self.filtered), len(self.records),
        )

    def dashboard(self, workers: int | None = None) -> DashboardReport:
        return build_dashboard(self.filtered, self.window, device=self.device, workers=workers)

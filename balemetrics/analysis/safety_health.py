"""Safety event counts, electrical/hydraulic health averages, and anomaly ranking.

Three independent computations over the same filtered records:

- safety: e-stops, overload trips, door/gate openings, valve feedback faults
- health: current imbalance, pressure overshoot, energy per cycle and
  cycle-time drift against the median cycle duration
- anomalies: devices with repeated high anomaly scores

Each also produces a daily trend series over the trailing date groups.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Sequence

import pandas as pd

from balemetrics.analysis.trends import daily_series, mean_or_zero
from balemetrics.config import HIGH_RISK_MIN_ANOMALIES, HIGH_RISK_TOP_N
from balemetrics.models.core import TelemetryRecord
from balemetrics.parsers.normalizer import records_to_frame


@dataclass
class SafetyMetrics:
    e_stop_count: int = 0
    overload_count: int = 0
    door_gate_violations: int = 0
    valve_issues: int = 0
    trend: list[dict] = field(default_factory=list)


@dataclass
class HealthMetrics:
    avg_current_imbalance: float = 0.0  # %
    avg_pressure_overshoot: float = 0.0  # %
    avg_energy_per_cycle: float = 0.0  # kWh
    cycle_time_drift: float = 0.0  # % vs median cycle duration
    baseline_cycle_ms: float = 1.0
    trend: list[dict] = field(default_factory=list)


@dataclass
class HighRiskMachine:
    device: str
    anomaly_count: int
    avg_score: float  # mean anomaly score x 100
    last_anomaly: pd.Timestamp


@dataclass
class AnomalyMetrics:
    anomaly_count: int = 0
    avg_anomaly_score: float = 0.0  # mean score x 100, over all records
    high_risk_machines: list[HighRiskMachine] = field(default_factory=list)
    trend: list[dict] = field(default_factory=list)


@dataclass
class SafetyHealthReport:
    safety: SafetyMetrics
    health: HealthMetrics
    anomalies: AnomalyMetrics

    def to_dict(self) -> dict:
        d = asdict(self)
        for m in d["anomalies"]["high_risk_machines"]:
            m["last_anomaly"] = m["last_anomaly"].isoformat()
        return d


def _door_gate(df: pd.DataFrame) -> int:
    return int(df["door_open_events"].sum() + df["gate_open_events"].sum())


def compute_safety_metrics(df: pd.DataFrame) -> SafetyMetrics:
    if df.empty:
        return SafetyMetrics()

    return SafetyMetrics(
        e_stop_count=int(df["e_stop"].sum()),
        overload_count=int(df["overload"].sum()),
        door_gate_violations=_door_gate(df),
        valve_issues=int(df["valve_issue"].sum()),
        trend=daily_series(df, lambda g: {
            "e_stops": int(g["e_stop"].sum()),
            "overloads": int(g["overload"].sum()),
            "door_gate": _door_gate(g),
            "valve_issues": int(g["valve_issue"].sum()),
        }),
    )


def median_cycle_baseline(durations: pd.Series) -> float:
    """Lower-middle element of the sorted durations (not averaged for even sizes).

    Falls back to 1 when empty or when the median is 0.
    """
    if durations.empty:
        return 1.0
    ordered = durations.sort_values().to_numpy()
    return float(ordered[len(ordered) // 2]) or 1.0


def _drift(durations: pd.Series, baseline: float) -> pd.Series:
    return (durations - baseline) / baseline * 100


def compute_health_metrics(df: pd.DataFrame) -> HealthMetrics:
    if df.empty:
        return HealthMetrics()

    baseline = median_cycle_baseline(df["cycle_duration_ms"])

    return HealthMetrics(
        avg_current_imbalance=mean_or_zero(df["current_imbalance"]),
        avg_pressure_overshoot=mean_or_zero(df["pressure_overshoot"]),
        avg_energy_per_cycle=mean_or_zero(df["energy_per_cycle"]),
        cycle_time_drift=mean_or_zero(_drift(df["cycle_duration_ms"], baseline)),
        baseline_cycle_ms=baseline,
        trend=daily_series(df, lambda g: {
            "current_imbalance": mean_or_zero(g["current_imbalance"]),
            "pressure_overshoot": mean_or_zero(g["pressure_overshoot"]),
            # drift per day is measured against the baseline of the whole set
            "cycle_time_drift": mean_or_zero(_drift(g["cycle_duration_ms"], baseline)),
            "energy_per_cycle": mean_or_zero(g["energy_per_cycle"]),
        }),
    )


def compute_anomaly_metrics(df: pd.DataFrame, n: int = HIGH_RISK_TOP_N) -> AnomalyMetrics:
    if df.empty:
        return AnomalyMetrics()

    anomalous = df[df["anomaly"].astype(bool)]

    high_risk = []
    for device, group in anomalous.groupby("device_id", sort=False):
        if len(group) <= HIGH_RISK_MIN_ANOMALIES:
            continue
        high_risk.append(HighRiskMachine(
            device=device,
            anomaly_count=len(group),
            avg_score=mean_or_zero(group["health_anomaly_score"]) * 100,
            last_anomaly=pd.Timestamp(group["cycle_started_at"].max()),
        ))
    high_risk.sort(key=lambda m: m.last_anomaly, reverse=True)

    return AnomalyMetrics(
        anomaly_count=len(anomalous),
        avg_anomaly_score=mean_or_zero(df["health_anomaly_score"]) * 100,
        high_risk_machines=high_risk[:n],
        trend=daily_series(df, lambda g: {
            "anomalies": int(g["anomaly"].sum()),
            "avg_score": mean_or_zero(g["health_anomaly_score"]) * 100,
        }),
    )


def compute_safety_health(records: Sequence[TelemetryRecord]) -> SafetyHealthReport:
    """Run the safety, health and anomaly computations over the same records."""
    df = records_to_frame(records)
    return SafetyHealthReport(
        safety=compute_safety_metrics(df),
        health=compute_health_metrics(df),
        anomalies=compute_anomaly_metrics(df),
    )

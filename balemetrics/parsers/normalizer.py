"""Normalize raw telemetry rows into TelemetryRecords with derived fields."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from balemetrics.config import ANOMALY_SCORE_THRESHOLD, MS_PER_HOUR
from balemetrics.harmonize.field_map import harmonize_row
from balemetrics.models.core import NormalizationResult, RejectedRow, TelemetryRecord

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "device_id",
    "cycle_started_at",
    "cycle_duration_ms",
    "runtime_hours",
    "energy_active_kwh",
    "productivity_bale_count_increment",
    "health_anomaly_score",
    "anomaly",
    "e_stop",
    "overload",
    "valve_issue",
    "current_imbalance",
    "pressure_overshoot",
    "door_open_events",
    "gate_open_events",
    "energy_per_cycle",
    "has_error",
    "day_of_week",
    "hour_of_day",
    "date_key",
]


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp cell; numbers are epoch milliseconds."""
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    try:
        if isinstance(value, (int, float, np.integer, np.floating)):
            if isinstance(value, (float, np.floating)) and not math.isfinite(value):
                return None
            ts = pd.to_datetime(value, unit="ms", errors="coerce")
        else:
            if isinstance(value, str) and not value.strip():
                return None
            ts = pd.to_datetime(value, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, str) and not value.strip():
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    if not math.isfinite(result):
        return default
    return result


def _is_true(value: Any) -> bool:
    """Boolean ``True`` or the literal string ``"True"``."""
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    return value == "True"


def _is_false(value: Any) -> bool:
    """Only the literal string ``"False"``; booleans and missing values are not faults."""
    return isinstance(value, str) and value == "False"


def current_imbalance(phase_a: float, phase_b: float, phase_c: float) -> float:
    """Spread between the highest and lowest phase current, as % of the phase mean."""
    phases = (phase_a, phase_b, phase_c)
    mean = sum(phases) / 3
    if mean == 0:
        return 0.0
    return (max(phases) - min(phases)) / mean * 100


def pressure_overshoot(max_pressure: float, avg_pressure: float) -> float:
    """Peak hydraulic pressure above the cycle average, as % of the average."""
    if avg_pressure == 0:
        return 0.0
    return (max_pressure - avg_pressure) / avg_pressure * 100


def normalize_row(row: Mapping[str, Any]) -> TelemetryRecord | None:
    """Build a TelemetryRecord from one raw row, or None if its timestamp is invalid."""
    fields = harmonize_row(row)

    started_at = _parse_timestamp(fields.get("cycle_started_at"))
    if started_at is None:
        return None

    duration_ms = max(0.0, _to_float(fields.get("cycle_duration_ms")))
    score = _to_float(fields.get("health_anomaly_score"))
    device = fields.get("device_id")

    return TelemetryRecord(
        device_id="" if device is None else str(device),
        cycle_started_at=started_at,
        cycle_duration_ms=duration_ms,
        runtime_hours=duration_ms / MS_PER_HOUR,
        energy_active_kwh=_to_float(fields.get("energy_active_kwh")),
        productivity_bale_count_increment=_to_float(fields.get("productivity_bale_count_increment")),
        health_anomaly_score=score,
        anomaly=score > ANOMALY_SCORE_THRESHOLD,
        e_stop=_is_true(fields.get("e_stop_triggered")),
        overload=_is_true(fields.get("overload_trip")),
        valve_issue=(
            _is_false(fields.get("valve_extend_feedback_ok"))
            or _is_false(fields.get("valve_retract_feedback_ok"))
        ),
        current_imbalance=current_imbalance(
            _to_float(fields.get("phase_a_current")),
            _to_float(fields.get("phase_b_current")),
            _to_float(fields.get("phase_c_current")),
        ),
        pressure_overshoot=pressure_overshoot(
            _to_float(fields.get("max_pressure")),
            _to_float(fields.get("avg_pressure")),
        ),
        door_open_events=int(_to_float(fields.get("door_open_events"))),
        gate_open_events=int(_to_float(fields.get("gate_open_events"))),
    )


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> NormalizationResult:
    """Normalize a batch of raw rows, keeping input order.

    Rows whose ``cycle_started_at`` does not parse are left out of
    ``records`` and reported in ``rejected``.
    """
    result = NormalizationResult()
    for i, row in enumerate(rows):
        record = normalize_row(row)
        if record is None:
            logger.debug("Dropping row %d: unparseable cycle_started_at %r", i, row.get("cycle_started_at"))
            result.rejected.append(RejectedRow(index=i, reason="invalid cycle_started_at", raw=dict(row)))
            continue
        result.records.append(record)

    if result.rejected:
        logger.info(
            "Normalized %d of %d rows (%d dropped with invalid timestamps)",
            len(result.records), result.input_count, result.rejected_count,
        )
    return result


def records_to_frame(records: Sequence[TelemetryRecord]) -> pd.DataFrame:
    """Convert records to a DataFrame (one row per cycle, input order kept)."""
    if not records:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    rows = []
    for r in records:
        d = asdict(r)
        d["energy_per_cycle"] = r.energy_per_cycle
        d["has_error"] = r.has_error
        d["day_of_week"] = r.day_of_week
        d["hour_of_day"] = r.hour_of_day
        d["date_key"] = r.date_key
        rows.append(d)
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)

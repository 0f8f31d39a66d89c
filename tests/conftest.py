"""Shared fixtures for balemetrics tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from balemetrics.parsers.normalizer import normalize_rows

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _raw_row(
    device: str = "M1",
    started: datetime | str = datetime(2024, 3, 4, 9, 0),
    duration_ms: int = 3_600_000,
    **overrides,
) -> dict:
    row = {
        "device_id": device,
        "cycle_started_at": started.isoformat() if isinstance(started, datetime) else started,
        "cycle_duration_ms": duration_ms,
        "energy_active_kwh": 1.0,
        "productivity_bale_count_increment": 1,
        "health_anomaly_score": 0.1,
        "di_e_stop_triggered": False,
        "di_overload_trip": False,
        "di_valve_extend_feedback_ok": True,
        "di_valve_retract_feedback_ok": True,
        "electrical_peak_current_rms_phase_a_a": 10.0,
        "electrical_peak_current_rms_phase_b_a": 10.0,
        "electrical_peak_current_rms_phase_c_a": 10.0,
        "hydraulic_max_pressure_psi": 2200.0,
        "hydraulic_avg_pressure_psi": 2000.0,
        "di_door_open_events": 0,
        "di_gate_open_events": 0,
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_row():
    """Factory for raw telemetry rows using the export's column names."""
    return _raw_row


@pytest.fixture
def make_records():
    """Factory turning raw rows into normalized records."""

    def _make(rows):
        return normalize_rows(rows).records

    return _make


@pytest.fixture
def hourly_rows():
    """Factory: ``n`` one-hour cycles for one device, one per hour from ``start``."""

    def _make(n: int, device: str = "M1", start: datetime = datetime(2024, 3, 4, 9, 0), **overrides):
        return [_raw_row(device, start + timedelta(hours=i), **overrides) for i in range(n)]

    return _make


@pytest.fixture
def telemetry_csv_path():
    return FIXTURES_DIR / "baler_telemetry.csv"

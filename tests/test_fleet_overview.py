"""Tests for fleet overview KPIs."""

from __future__ import annotations

from datetime import datetime

import pytest

from balemetrics.analysis.fleet_overview import compute_fleet_overview


class TestFleetOverview:
    def test_three_one_hour_cycles(self, make_records, hourly_rows):
        overview = compute_fleet_overview(make_records(hourly_rows(3)))
        assert overview.total_runtime == pytest.approx(3.0)
        assert overview.total_cycles == 3
        assert overview.error_count == 0
        assert overview.unique_devices == 1
        assert overview.avg_cycles_per_machine == pytest.approx(3.0)
        assert overview.total_energy == pytest.approx(3.0)
        assert overview.total_bales == pytest.approx(3.0)

    def test_utilization_capped_at_100(self, make_records, hourly_rows):
        # 3 h of runtime in a 2 h span
        overview = compute_fleet_overview(make_records(hourly_rows(3)))
        assert overview.window_hours == pytest.approx(2.0)
        assert overview.utilization_rate == 100.0

    def test_utilization_relative_to_span(self, make_row, make_records):
        records = make_records([
            make_row(device="A", started=datetime(2024, 3, 4, 0, 0)),
            make_row(device="B", started=datetime(2024, 3, 4, 10, 0)),
        ])
        overview = compute_fleet_overview(records)
        # 2 h runtime over 2 devices x 10 h
        assert overview.utilization_rate == pytest.approx(10.0)
        assert overview.avg_cycles_per_machine == pytest.approx(1.0)

    def test_single_instant_window_floored(self, make_row, make_records):
        records = make_records([make_row(duration_ms=1_800_000)])
        overview = compute_fleet_overview(records)
        assert overview.window_hours == 1.0
        assert overview.utilization_rate == pytest.approx(50.0)

    def test_large_runtime_still_capped(self, make_records, hourly_rows):
        records = make_records(hourly_rows(20, duration_ms=100 * 3_600_000))
        assert compute_fleet_overview(records).utilization_rate <= 100

    def test_error_count(self, make_row, make_records):
        records = make_records([
            make_row(di_e_stop_triggered=True),
            make_row(di_overload_trip="True"),
            make_row(di_e_stop_triggered=True, di_overload_trip=True),
            make_row(),
        ])
        assert compute_fleet_overview(records).error_count == 3

    def test_empty_is_undefined_not_zero(self):
        overview = compute_fleet_overview([])
        assert overview.is_empty
        assert all(v is None for v in overview.to_dict().values())

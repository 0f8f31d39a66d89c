"""Tests for device and time-window filtering."""

from __future__ import annotations

from datetime import datetime

import pytest

from balemetrics.analysis.filtering import filter_records, latest_timestamp, window_start
from balemetrics.models.core import TimeWindow


@pytest.fixture
def fleet_records(make_row, make_records):
    return make_records([
        make_row(device="M1", started="2024-03-10T12:00:00"),
        make_row(device="M2", started="2024-03-01T12:00:00"),
        make_row(device="M1", started="2024-02-01T12:00:00"),
        make_row(device="M2", started="2024-03-09T10:00:00"),
        make_row(device="M1", started="2024-03-09T11:59:59"),
        make_row(device="M3", started="2024-03-09T12:00:00"),
    ])


class TestTimeWindow:
    def test_known_tokens(self):
        assert TimeWindow.parse("24h").days == 1
        assert TimeWindow.parse("7d").days == 7
        assert TimeWindow.parse("30d").days == 30
        assert TimeWindow.parse("all").days is None

    def test_unknown_token_defaults_to_7d(self):
        assert TimeWindow.parse("fortnight") is TimeWindow.LAST_7D
        assert TimeWindow.parse(None) is TimeWindow.LAST_7D

    def test_span_days(self):
        assert TimeWindow.ALL.span_days == 7
        assert TimeWindow.LAST_24H.span_days == 1


class TestFilterRecords:
    def test_anchor_is_latest_record(self, fleet_records):
        assert latest_timestamp(fleet_records) == datetime(2024, 3, 10, 12, 0)
        assert latest_timestamp([]) is None

    def test_window_start(self):
        anchor = datetime(2024, 3, 10, 12, 0)
        assert window_start(anchor, TimeWindow.LAST_24H) == datetime(2024, 3, 9, 12, 0)
        assert window_start(anchor, TimeWindow.ALL) is None

    def test_24h_window_is_inclusive(self, fleet_records):
        result = filter_records(fleet_records, window="24h")
        assert [r.cycle_started_at for r in result] == [
            datetime(2024, 3, 10, 12, 0),
            datetime(2024, 3, 9, 12, 0),
        ]

    def test_all_window(self, fleet_records):
        assert filter_records(fleet_records, window="all") == fleet_records

    def test_order_preserved(self, fleet_records):
        result = filter_records(fleet_records, window="30d")
        assert [r.device_id for r in result] == ["M1", "M2", "M2", "M1", "M3"]

    def test_device_selection(self, fleet_records):
        result = filter_records(fleet_records, device="M2", window="all")
        assert {r.device_id for r in result} == {"M2"}
        assert len(result) == 2

    def test_anchor_from_whole_working_set(self, fleet_records):
        # M2's own newest record is 2024-03-09 10:00, but the window is
        # measured from the fleet-wide newest record.
        anchor = latest_timestamp(fleet_records)
        m2_only = [r for r in fleet_records if r.device_id == "M2"]
        with_fleet_anchor = filter_records(m2_only, window="24h", anchor=anchor)
        with_own_anchor = filter_records(m2_only, window="24h")
        assert with_fleet_anchor == []
        assert len(with_own_anchor) == 1
        assert filter_records(fleet_records, device="M2", window="24h", anchor=anchor) == with_fleet_anchor

    def test_unknown_device_gives_empty(self, fleet_records):
        assert filter_records(fleet_records, device="nope") == []

    def test_empty_input(self):
        assert filter_records([], window="24h") == []

    def test_idempotent(self, fleet_records):
        anchor = latest_timestamp(fleet_records)
        once = filter_records(fleet_records, device="M1", window="7d", anchor=anchor)
        twice = filter_records(once, device="M1", window="7d", anchor=anchor)
        assert once == twice

    def test_does_not_mutate_input(self, fleet_records):
        before = list(fleet_records)
        filter_records(fleet_records, device="M1", window="24h")
        assert fleet_records == before

    def test_unknown_window_uses_7d(self, fleet_records):
        assert filter_records(fleet_records, window="bogus") == filter_records(fleet_records, window="7d")

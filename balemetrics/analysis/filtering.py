"""Device and rolling time-window selection over normalized records."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

from balemetrics.config import ALL_DEVICES
from balemetrics.models.core import TelemetryRecord, TimeWindow


def latest_timestamp(records: Sequence[TelemetryRecord]) -> datetime | None:
    """Newest ``cycle_started_at`` in the set, used as the window anchor."""
    if not records:
        return None
    return max(r.cycle_started_at for r in records)


def window_start(anchor: datetime | None, window: TimeWindow) -> datetime | None:
    """Lower bound of the window, or None when the window is unbounded."""
    if anchor is None or window.days is None:
        return None
    return anchor - timedelta(days=window.days)


def filter_records(
    records: Sequence[TelemetryRecord],
    device: str = ALL_DEVICES,
    window: str | TimeWindow = TimeWindow.LAST_7D,
    anchor: datetime | None = None,
) -> list[TelemetryRecord]:
    """Select records for one device (or all) within a trailing time window.

    The window is measured back from ``anchor``. Callers should pass the
    newest timestamp of the whole working set so that the window does not
    shift with the device selection; when omitted it is taken from
    ``records``. Input order is preserved.
    """
    window = TimeWindow.parse(window)
    if anchor is None:
        anchor = latest_timestamp(records)
    start = window_start(anchor, window)

    return [
        r for r in records
        if (device == ALL_DEVICES or r.device_id == device)
        and (start is None or r.cycle_started_at >= start)
    ]

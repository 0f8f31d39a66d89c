"""Data models for telemetry records and time windows."""

from balemetrics.models.core import NormalizationResult, RejectedRow, TelemetryRecord, TimeWindow

__all__ = [
    "TelemetryRecord",
    "TimeWindow",
    "RejectedRow",
    "NormalizationResult",
]

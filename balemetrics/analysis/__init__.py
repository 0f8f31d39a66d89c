"""Filtering and aggregation of telemetry records."""

"""Ingestion and normalization of raw telemetry rows."""

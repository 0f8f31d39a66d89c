"""Telemetry derivation and fleet metrics for baling/compaction machines."""

__version__ = "0.1.0"

"""Thresholds, constants, and time-window configuration."""

from __future__ import annotations

# Anomaly detection
ANOMALY_SCORE_THRESHOLD = 0.5  # health_anomaly_score above this is an anomaly
HIGH_RISK_MIN_ANOMALIES = 3  # a device needs more than this many anomalies to be high-risk
HIGH_RISK_TOP_N = 5

# Maintenance / end-of-life
EOL_CYCLE_THRESHOLD = 50_000
LIFETIME_EXTRAPOLATION_FACTOR = 52  # observed records treated as one week, projected to a year
HEURISTIC_MTTR_HOURS = 2.5
NEAR_EOL_REMAINING_PCT = 10.0
NEAR_EOL_ANOMALY_SCORE = 0.7
NEAR_EOL_TOP_N = 5

# Machine ranking
# Always a 7-day denominator, whatever window is selected.
RANKING_UTILIZATION_HOURS = 7 * 24
RANKING_TOP_N = 5

# Operational analysis
IDLE_ACTIVE_TOP_N = 8
HOURS_PER_DAY = 24
DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

# Daily trend series keep this many date groups, in first-seen order
TRAILING_TREND_GROUPS = 7

# Time windows (selector token -> days; None means no lower bound)
TIME_WINDOWS = {
    "24h": 1,
    "7d": 7,
    "30d": 30,
    "all": None,
}
DEFAULT_TIME_WINDOW = "7d"
DEFAULT_WINDOW_DAYS = 7

ALL_DEVICES = "all"

MS_PER_HOUR = 3_600_000

"""Shared daily grouping for trend series."""

from __future__ import annotations

from datetime import date
from typing import Callable

import pandas as pd

from balemetrics.config import TRAILING_TREND_GROUPS


def date_label(day: date) -> str:
    """Short ``month/day`` label, e.g. ``3/7``."""
    return f"{day.month}/{day.day}"


def trailing_daily_groups(
    df: pd.DataFrame,
    n: int = TRAILING_TREND_GROUPS,
) -> list[tuple[date, pd.DataFrame]]:
    """Group a record frame by calendar date and keep the last ``n`` groups.

    Groups are in first-seen order, not calendar order, so the trailing
    slice follows the order dates appear in the data.
    """
    if df.empty:
        return []
    groups = list(df.groupby("date_key", sort=False))
    return groups[-n:]


def daily_series(
    df: pd.DataFrame,
    build: Callable[[pd.DataFrame], dict],
    n: int = TRAILING_TREND_GROUPS,
) -> list[dict]:
    """Build one labelled point per trailing date group."""
    series = []
    for day, group in trailing_daily_groups(df, n):
        point = {"date": date_label(day)}
        point.update(build(group))
        series.append(point)
    return series


def mean_or_zero(series: pd.Series) -> float:
    """Mean of a numeric series, 0 for an empty or all-NaN series."""
    if series.empty:
        return 0.0
    value = pd.to_numeric(series, errors="coerce").mean()
    return 0.0 if pd.isna(value) else float(value)

from __future__ import annotations

import math

import numpy as np
import pandas as pd


def as_utc(ts) -> pd.Timestamp:
    """Coerce anything pandas understands into a tz-aware UTC timestamp."""
    ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def days_between(start: pd.Timestamp, end: pd.Timestamp) -> int:
    """Whole days from start to end, truncated toward zero (negative if end < start)."""
    delta = as_utc(end) - as_utc(start)
    seconds = delta.total_seconds()
    return int(seconds / 86400.0)


def yearfrac(start: pd.Timestamp, end: pd.Timestamp, days_per_year: float = 365.0) -> float:
    """
    ACT/365 style year fraction on whole days.

    Returns 0.0 when end is not after start.
    """
    days = days_between(start, end)
    return max(0, days) / days_per_year


def period_grid(n_periods: float) -> np.ndarray:
    """
    Whole coupon periods 1, 2, ... up to and including floor(n_periods).

    A fractional count keeps floor(n) regular periods; the remainder only shows
    up in the terminal payment's discount exponent.
    """
    if not np.isfinite(n_periods) or n_periods < 1:
        return np.empty(0, dtype=float)
    return np.arange(1, math.floor(n_periods) + 1, dtype=float)


def discount_factors(periodic_rate: float, periods) -> np.ndarray:
    """1 / (1 + r)^t for each t. Degenerate rates (r = -1) give inf/nan, not errors."""
    t = np.asarray(periods, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        return 1.0 / np.power(1.0 + periodic_rate, t)

"""
Holding-period returns from end-of-day price records.

Records must already be in chronological order for a single symbol; sorting is
the data provider's job, this module only checks it.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
import structlog

from .config import AnalyticsConfig
from .stats import Statistics
from .utils import as_utc

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PriceRecord:
    """One end-of-day quote: OHLCV, adjusted variants, split factor and dividend."""
    date: pd.Timestamp
    symbol: str
    close: float
    open: float = float("nan")
    high: float = float("nan")
    low: float = float("nan")
    volume: float = 0.0
    adj_open: float = float("nan")
    adj_high: float = float("nan")
    adj_low: float = float("nan")
    adj_close: float = float("nan")
    adj_volume: float = 0.0
    split_factor: float = 1.0
    dividend: float = 0.0
    exchange: str = ""

    def __post_init__(self):
        object.__setattr__(self, "date", as_utc(self.date))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PriceRecord":
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for k, v in raw.items():
            if k not in known:
                continue
            if v is None:
                # Providers send null for missing adjusted fields.
                continue
            kwargs[k] = v
        for k in ("open", "high", "low", "close", "volume", "adj_open", "adj_high", "adj_low",
                  "adj_close", "adj_volume", "split_factor", "dividend"):
            if k in kwargs:
                kwargs[k] = float(kwargs[k])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["date"] = self.date.isoformat()
        return {k: (None if isinstance(v, float) and np.isnan(v) else v) for k, v in out.items()}


def records_to_frame(records: Iterable[PriceRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    columns = [f.name for f in fields(PriceRecord)]
    return pd.DataFrame(rows, columns=columns)


def load_price_records(path: Union[str, Path]) -> List[PriceRecord]:
    """
    Read price records from JSON.

    Accepts the end-of-day API response shape {"pagination": {...}, "data": [...]}
    or a bare list of record objects.
    """
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)

    raw = payload.get("data", []) if isinstance(payload, dict) else payload
    return [PriceRecord.from_dict(r) for r in raw]


class ReturnSeries(Statistics):
    """
    Holding-period returns, index 0 always 0.0.

    Immutable: `values()` hands out a copy.
    """

    def __init__(
        self,
        returns: Iterable[float],
        dates: Optional[Sequence[pd.Timestamp]] = None,
        symbol: str = "",
        config: Optional[AnalyticsConfig] = None,
    ):
        self._returns = np.asarray(list(returns), dtype=float)
        self._returns.setflags(write=False)
        self.dates = None if dates is None else pd.DatetimeIndex([as_utc(d) for d in dates])
        if self.dates is not None and len(self.dates) != len(self._returns):
            raise ValueError("dates and returns must have the same length")
        self.symbol = symbol
        if config is not None:
            self.config = config

    def values(self) -> np.ndarray:
        return self._returns.copy()

    def __len__(self) -> int:
        return len(self._returns)

    def __repr__(self) -> str:
        return f"ReturnSeries(symbol={self.symbol!r}, n={len(self._returns)})"

    def to_series(self) -> pd.Series:
        return pd.Series(self._returns, index=self.dates, name=self.symbol or "return")


def _validate_chronology(dates: pd.DatetimeIndex, symbol: str) -> None:
    if len(dates) == 0:
        logger.warning("returns_derivation_failed", reason="empty_input", symbol=symbol)
        raise ValueError("Cannot derive returns from an empty price history.")
    if not dates.is_monotonic_increasing:
        logger.warning("returns_derivation_failed", reason="unsorted_dates", symbol=symbol)
        raise ValueError(f"Price history for {symbol or 'series'} is not sorted by date.")
    if not dates.is_unique:
        dupes = sorted({str(d.date()) for d in dates[dates.duplicated()]})
        logger.warning("returns_derivation_failed", reason="duplicate_dates", symbol=symbol, dates=dupes)
        raise ValueError(f"Price history for {symbol or 'series'} has duplicate dates: {dupes}")


def holding_period_returns_array(close: np.ndarray, dividend: np.ndarray) -> np.ndarray:
    """(close[i] - close[i-1] + dividend[i]) / close[i-1], with a leading 0.0."""
    close = np.asarray(close, dtype=float)
    dividend = np.asarray(dividend, dtype=float)
    out = np.zeros(len(close), dtype=float)
    if len(close) > 1:
        with np.errstate(divide="ignore", invalid="ignore"):
            out[1:] = (close[1:] - close[:-1] + dividend[1:]) / close[:-1]
    return out


def holding_period_returns(
    records: Sequence[PriceRecord],
    config: Optional[AnalyticsConfig] = None,
) -> ReturnSeries:
    records = list(records)
    symbol = records[0].symbol if records else ""
    dates = pd.DatetimeIndex([r.date for r in records])
    _validate_chronology(dates, symbol)

    close = np.array([r.close for r in records], dtype=float)
    dividend = np.array([r.dividend for r in records], dtype=float)
    return ReturnSeries(holding_period_returns_array(close, dividend), dates=dates, symbol=symbol, config=config)


def returns_from_frame(
    prices: pd.DataFrame,
    price_col: str = "close",
    config: Optional[AnalyticsConfig] = None,
) -> ReturnSeries:
    """
    Same derivation over a DataFrame with 'date', `price_col` and optionally
    'dividend' and 'symbol' columns.
    """
    if prices is None or prices.empty:
        logger.warning("returns_derivation_failed", reason="empty_input", symbol="")
        raise ValueError("Cannot derive returns from an empty price history.")

    for col in ("date", price_col):
        if col not in prices.columns:
            raise ValueError(f"Price frame is missing the '{col}' column.")

    symbol = str(prices["symbol"].iloc[0]) if "symbol" in prices.columns else ""
    dates = pd.DatetimeIndex([as_utc(d) for d in prices["date"]])
    _validate_chronology(dates, symbol)

    dividend = prices["dividend"].fillna(0.0).to_numpy(dtype=float) if "dividend" in prices.columns else np.zeros(len(prices))
    returns = holding_period_returns_array(prices[price_col].to_numpy(dtype=float), dividend)
    return ReturnSeries(returns, dates=dates, symbol=symbol, config=config)

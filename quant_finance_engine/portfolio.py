"""
Portfolio bookkeeping: ticker -> asset with its price history.

Weights are never solved for here; they come from the caller (or from the
amounts invested) and are only used to aggregate asset returns.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
import structlog

from .returns import PriceRecord, ReturnSeries, holding_period_returns
from .utils import as_utc

logger = structlog.get_logger(__name__)


@dataclass
class Asset:
    ticker: str
    amount_invested: float = 0.0
    records: List[PriceRecord] = field(default_factory=list)

    def add_records(self, records: Iterable[PriceRecord]) -> None:
        self.records.extend(records)
        self.records.sort(key=lambda r: r.date)

    def returns(self) -> ReturnSeries:
        return holding_period_returns(self.records)


class Portfolio:
    def __init__(
        self,
        initial_value: float,
        initial_date: Optional[pd.Timestamp] = None,
        assets: Optional[Dict[str, Asset]] = None,
    ):
        self.initial_value = float(initial_value)
        self.initial_date = pd.Timestamp.now(tz="UTC") if initial_date is None else as_utc(initial_date)
        self.assets: Dict[str, Asset] = dict(assets or {})

    def __repr__(self) -> str:
        return f"Portfolio(initial_value={self.initial_value}, tickers={sorted(self.assets)})"

    def __getitem__(self, ticker: str) -> Asset:
        return self.assets[ticker]

    @property
    def tickers(self) -> List[str]:
        return sorted(self.assets)

    def add_asset(self, ticker: str, amount_invested: float = 0.0) -> Asset:
        asset = self.assets.setdefault(ticker, Asset(ticker=ticker))
        asset.amount_invested = float(amount_invested)
        return asset

    def add_price_records(self, records: Iterable[PriceRecord]) -> None:
        """Route records to their symbol's asset (created on demand) and keep every asset date-sorted."""
        by_symbol: Dict[str, List[PriceRecord]] = {}
        for r in records:
            by_symbol.setdefault(r.symbol, []).append(r)

        for symbol, recs in by_symbol.items():
            self.assets.setdefault(symbol, Asset(ticker=symbol)).add_records(recs)

        logger.info(
            "portfolio_records_added",
            symbols=sorted(by_symbol),
            n_records=sum(len(v) for v in by_symbol.values()),
        )

    # ---- analytics ----

    def asset_returns(self) -> Dict[str, ReturnSeries]:
        return {t: self.assets[t].returns() for t in self.tickers if self.assets[t].records}

    def returns_frame(self) -> pd.DataFrame:
        """Asset returns aligned on date (outer join); columns are tickers."""
        series = {t: r.to_series() for t, r in self.asset_returns().items()}
        if not series:
            return pd.DataFrame()
        return pd.DataFrame(series).sort_index()

    def default_weights(self) -> Dict[str, float]:
        total = sum(a.amount_invested for a in self.assets.values())
        if total <= 0:
            raise ValueError("No amounts invested; pass explicit weights.")
        return {t: a.amount_invested / total for t, a in self.assets.items()}

    def weighted_returns(self, weights: Optional[Mapping[str, float]] = None) -> ReturnSeries:
        """
        Per-date portfolio return sum(w_i * r_i) on dates where every weighted asset
        has a return. Weights are rescaled to sum to 1; zero-weight tickers are ignored.
        Raises ValueError if a ticker with non-zero weight has no price history.
        """
        weights = dict(self.default_weights() if weights is None else weights)
        unknown = set(weights) - set(self.assets)
        if unknown:
            raise KeyError(f"Unknown tickers in weights: {sorted(unknown)}")

        no_history = sorted(t for t, w in weights.items() if w != 0 and not self.assets[t].records)
        if no_history:
            logger.warning("portfolio_weights_rejected", reason="no_price_history", tickers=no_history)
            raise ValueError(f"Weighted tickers have no price history: {no_history}")

        total = sum(weights.values())
        if total == 0:
            raise ValueError("Weights sum to zero.")
        if total != 1.0:
            logger.debug("portfolio_weights_normalized", weight_sum=total)
            weights = {t: w / total for t, w in weights.items()}

        frame = self.returns_frame()
        cols = [t for t, w in weights.items() if w != 0]
        aligned = frame[cols].dropna()
        w = np.array([weights[t] for t in cols], dtype=float)
        combined = aligned.to_numpy(dtype=float) @ w

        return ReturnSeries(combined, dates=aligned.index, symbol="PORTFOLIO")

    # ---- persistence ----

    def to_dict(self) -> dict:
        return {
            "initial_value": self.initial_value,
            "initial_date": self.initial_date.isoformat(),
            "assets": {
                t: {
                    "ticker": a.ticker,
                    "amount_invested": a.amount_invested,
                    "records": [r.to_dict() for r in a.records],
                }
                for t, a in self.assets.items()
            },
        }

    @classmethod
    def from_dict(cls, raw: Mapping) -> "Portfolio":
        assets = {}
        for t, a in raw.get("assets", {}).items():
            assets[t] = Asset(
                ticker=a.get("ticker", t),
                amount_invested=float(a.get("amount_invested", 0.0)),
                records=[PriceRecord.from_dict(r) for r in a.get("records", [])],
            )
        return cls(raw["initial_value"], raw.get("initial_date"), assets)

    def save(self, path: Union[str, Path]) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(self.to_dict(), fh)
        logger.info("portfolio_saved", path=str(path), n_assets=len(self.assets))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Portfolio":
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
        portfolio = cls.from_dict(raw)
        logger.info("portfolio_loaded", path=str(path), n_assets=len(portfolio.assets))
        return portfolio

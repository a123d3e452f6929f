"""
Quant Finance Engine

Modules:
- bonds: Bond value object, issuance checks, PV/FV/yields, cash flows, duration
- cashflows: cash-flow table, NPV, IRR
- risk: rate-bump DV01/convexity/effective duration
- scenarios: annual-rate shock runner
- stats: Statistics mixin (moments, percentiles, covariance/correlation, empirical probability)
- returns: price records + holding-period return series
- portfolio: ticker -> asset bookkeeping, weighted aggregation, JSON persistence
- config: AnalyticsConfig (literal vs corrected formulas, percentile policy)
- utils: year fractions, period grid, discount factors
"""
from .config import AnalyticsConfig, DEFAULT_CONFIG, CORRECTED_CONFIG
from .bonds import Bond, Frequency, InvalidMaturityDate
from .stats import Statistics, Observations, PercentileOutOfRange
from .returns import PriceRecord, ReturnSeries, holding_period_returns

__all__ = [
    "AnalyticsConfig",
    "DEFAULT_CONFIG",
    "CORRECTED_CONFIG",
    "Bond",
    "Frequency",
    "InvalidMaturityDate",
    "Statistics",
    "Observations",
    "PercentileOutOfRange",
    "PriceRecord",
    "ReturnSeries",
    "holding_period_returns",
]

"""
Descriptive and risk statistics over an ordered sequence of observations.

`Statistics` is a mixin: subclasses supply `values()` and inherit every measure.

Centering: variance, standard deviation, downside deviation, coefficient of
variation, Sharpe ratio, z-scores, skewness, kurtosis and covariance are all
centered on `expected_probability()`, not on the arithmetic mean. That estimator
weights each observation by the empirical probability of its quantized bracket
(see `expected_probability`). It is a deliberate replacement for the mean; it has
no asymptotic guarantees for small or duplicate-heavy samples.

Degenerate inputs (empty series, n=1 for sample measures, zero deviation) return
nan/inf as data instead of raising.

The default `AnalyticsConfig` reproduces historical outputs exactly, including
several non-textbook formulas; pass `CORRECTED_CONFIG` for textbook versions.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence

import numpy as np
import structlog

from .config import AnalyticsConfig, DEFAULT_CONFIG

logger = structlog.get_logger(__name__)


class PercentileOutOfRange(ValueError):
    """Percentile rank falls outside the sorted sample."""


def _div(num, den) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.divide(np.float64(num), np.float64(den)))


def _sample_div(num, n: int) -> float:
    """num / (n - 1); an empty sample gives nan rather than dividing by -1."""
    if n == 0:
        return float("nan")
    return _div(num, n - 1)


class Statistics(ABC):
    config: AnalyticsConfig = DEFAULT_CONFIG

    @abstractmethod
    def values(self) -> np.ndarray:
        """Observations as a 1-D float array, in their original order."""

    def count(self) -> int:
        return len(self.values())

    # ---- central tendency ----

    def population_mean(self) -> float:
        return _div(np.sum(self.values()), self.count())

    def sample_mean(self) -> float:
        """
        Literal mode divides the plain sum by n - 1 (historical behaviour, not a
        textbook sample mean). Corrected mode returns the arithmetic mean.
        """
        if self.config.literal:
            return _sample_div(np.sum(self.values()), self.count())
        return self.population_mean()

    def geometric_mean(self) -> float:
        with np.errstate(all="ignore"):
            growth = np.prod(1.0 + self.values())
            return float(np.power(growth, _div(1.0, self.count())) - 1.0)

    def weighted_average(self, weights: Sequence[float]) -> float:
        """
        sum(v_i * w_i). Weights must match the sample length and sum to exactly 1.0
        (no tolerance); otherwise 0.0 is returned.
        """
        weights = [float(w) for w in weights]
        if len(weights) != self.count():
            logger.warning("weighted_average_rejected", reason="length_mismatch",
                           n_values=self.count(), n_weights=len(weights))
            return 0.0
        if sum(weights) != 1.0:
            logger.warning("weighted_average_rejected", reason="weights_do_not_sum_to_one",
                           weight_sum=sum(weights))
            return 0.0
        return float(np.dot(self.values(), np.asarray(weights, dtype=float)))

    def harmonic_mean(self) -> float:
        """Literal mode: (1 / sum(1/v)) / n. Corrected mode: n / sum(1/v)."""
        with np.errstate(divide="ignore", invalid="ignore"):
            reciprocal_sum = np.sum(1.0 / self.values())
        if self.config.literal:
            return _div(_div(1.0, reciprocal_sum), self.count())
        return _div(self.count(), reciprocal_sum)

    # ---- order statistics ----

    def percentile(self, target_percentile: float) -> float:
        """
        Rank-based percentile with linear interpolation.

        rank = (n + 1) * p / 100 is 1-based into the ascending sample. Integral ranks
        return that element directly; fractional ranks interpolate between the
        floor and ceil neighbours. A rank outside [1, n] raises PercentileOutOfRange,
        or is clamped when config.percentile_bounds == "clamp".
        """
        ordered = np.sort(self.values())
        n = len(ordered)
        rank = (n + 1) * (target_percentile / 100.0)

        if n == 0 or not np.isfinite(rank) or rank < 1 or rank > n:
            if self.config.percentile_bounds == "raise" or n == 0 or not np.isfinite(rank):
                raise PercentileOutOfRange(
                    f"Percentile {target_percentile} gives rank {rank:.4f} outside [1, {n}]."
                )
            clamped = min(max(rank, 1.0), float(n))
            logger.warning("percentile_rank_clamped", percentile=target_percentile, rank=rank, clamped=clamped, n=n)
            rank = clamped

        lo = math.floor(rank)
        if rank == lo:
            return float(ordered[lo - 1])

        hi = math.ceil(rank)
        value_lo = ordered[lo - 1]
        value_hi = ordered[hi - 1]
        return float(value_lo + (rank - lo) * (value_hi - value_lo))

    def max(self) -> float:
        """Literal mode scans from a 0.0 seed, so an all-negative sample reports 0.0."""
        vals = self.values()
        if self.config.literal:
            return float(np.max(vals, initial=0.0))
        return float(np.max(vals)) if len(vals) else float("nan")

    def min(self) -> float:
        """Literal mode scans from a 0.0 seed, so an all-positive sample reports 0.0."""
        vals = self.values()
        if self.config.literal:
            return float(np.min(vals, initial=0.0))
        return float(np.min(vals)) if len(vals) else float("nan")

    def range(self) -> float:
        return self.max() - self.min()

    # ---- dispersion (centered on expected_probability) ----

    def _squared_deviations(self) -> np.ndarray:
        return (self.values() - self.expected_probability()) ** 2

    def population_variance(self) -> float:
        return _div(np.sum(self._squared_deviations()), self.count())

    def sample_variance(self) -> float:
        return _sample_div(np.sum(self._squared_deviations()), self.count())

    def population_std_dev(self) -> float:
        with np.errstate(invalid="ignore"):
            return float(np.sqrt(self.population_variance()))

    def sample_std_dev(self) -> float:
        with np.errstate(invalid="ignore"):
            return float(np.sqrt(self.sample_variance()))

    def downside_deviation(self) -> float:
        """Semideviation: squared deviations of observations <= center, over n - 1."""
        center = self.expected_probability()
        vals = self.values()
        below = vals[vals <= center]
        variance = _sample_div(np.sum((below - center) ** 2), self.count())
        with np.errstate(invalid="ignore"):
            return float(np.sqrt(variance))

    def coefficient_of_variation(self) -> float:
        return _div(self.sample_std_dev(), self.expected_probability())

    def sharpe_ratio(self, risk_free_rate: float) -> float:
        return _div(self.expected_probability() - risk_free_rate, self.sample_std_dev())

    def z_scores(self) -> np.ndarray:
        """
        Literal mode computes v - (center / sd) per element (historical operator
        precedence). Corrected mode computes (v - center) / sd.
        """
        center = self.expected_probability()
        sd = np.float64(self.sample_std_dev())
        with np.errstate(divide="ignore", invalid="ignore"):
            if self.config.literal:
                return self.values() - center / sd
            return (self.values() - center) / sd

    # ---- shape ----

    def _moment_factor(self) -> float:
        n = self.count()
        if n == 0:
            return float("nan")
        # Literal mode truncates 1/n to an integer: 1 for n == 1, 0 otherwise.
        return float(1 // n) if self.config.literal else 1.0 / n

    def skewness(self) -> float:
        center = self.expected_probability()
        third = np.sum((self.values() - center) ** 3)
        return _div(self._moment_factor() * third, self.sample_std_dev() ** 3)

    def excess_kurtosis(self) -> float:
        center = self.expected_probability()
        fourth = np.sum((self.values() - center) ** 4)
        return _div(self._moment_factor() * fourth, self.sample_std_dev() ** 4) - 3.0

    # ---- pairwise ----

    def covariance(self, other: "Statistics") -> float:
        a = self.values()
        b = other.values()
        if len(a) != len(b):
            raise ValueError(f"Series lengths differ: {len(a)} vs {len(b)}")
        products = (a - self.expected_probability()) * (b - other.expected_probability())
        return _sample_div(np.sum(products), len(a))

    def correlation(self, other: "Statistics") -> float:
        return _div(self.covariance(other), self.sample_std_dev() * other.sample_std_dev())

    # ---- empirical probability ----

    def probability(self, value: float) -> float:
        """Share of observations exactly equal to value (float equality)."""
        vals = self.values()
        return _div(np.count_nonzero(vals == value), len(vals))

    def probability_bounds(self, lower_bound: float, upper_bound: float) -> float:
        """Share of observations in [lower_bound, upper_bound]."""
        vals = self.values()
        inside = (vals >= lower_bound) & (vals <= upper_bound)
        return _div(np.count_nonzero(inside), len(vals))

    def expected_probability(self) -> float:
        """
        Empirical, self-referential expectation.

        Each observation v is bracketed to [floor(v * 10^d) / 10^d, ceil(v * 10^d) / 10^d]
        with d = config.quantize_decimals; the share of the sample falling in that
        bracket weights v, and the weighted observations are summed.
        """
        vals = self.values()
        n = len(vals)
        if n == 0:
            return 0.0

        scale = 10.0 ** self.config.quantize_decimals
        lower = np.floor(vals * scale) / scale
        upper = np.ceil(vals * scale) / scale

        ordered = np.sort(vals)
        in_bracket = np.searchsorted(ordered, upper, side="right") - np.searchsorted(ordered, lower, side="left")
        probs = in_bracket / n
        return float(np.sum(probs * vals))


class Observations(Statistics):
    """Statistics over any iterable of floats (returns, yields, weights...)."""

    def __init__(self, data: Iterable[float], config: Optional[AnalyticsConfig] = None):
        self._data = np.asarray(list(data), dtype=float)
        self._data.setflags(write=False)
        if config is not None:
            self.config = config

    def values(self) -> np.ndarray:
        return self._data.copy()

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Observations(n={len(self._data)})"

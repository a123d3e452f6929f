from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import numpy as np
import pandas as pd
import structlog

from .config import AnalyticsConfig, DEFAULT_CONFIG
from .utils import as_utc, yearfrac, period_grid, discount_factors

logger = structlog.get_logger(__name__)


class InvalidMaturityDate(ValueError):
    """Maturity not after issuance, or less than one full compounding period."""


class Frequency(Enum):
    ANNUAL = 1
    SEMI_ANNUAL = 2
    QUARTERLY = 4
    MONTHLY = 12
    WEEKLY = 52
    DAILY = 365

    @property
    def periods_per_year(self) -> float:
        return float(self.value)

    @classmethod
    def parse(cls, value: Union["Frequency", int, str]) -> "Frequency":
        """Accepts a Frequency, its periods-per-year integer, or its name ("semi_annual", "SemiAnnual")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_").replace(" ", "_")
            aliases = {"SEMIANNUAL": "SEMI_ANNUAL"}
            key = aliases.get(key, key)
            try:
                return cls[key]
            except KeyError:
                raise ValueError(f"Unknown frequency: {value!r}") from None
        if isinstance(value, bool) or float(value) != int(value):
            raise ValueError(f"Frequency must be a whole number of periods per year: {value!r}")
        return cls(int(value))


@dataclass(frozen=True)
class Bond:
    """
    Fixed-rate bullet bond valued off its own coupon rate.

    All valuation accessors are pure functions of the fields. Degenerate inputs
    (e.g. annual_interest_rate = -frequency) produce nan/inf rather than errors.
    """
    issuance_date: pd.Timestamp
    maturity_date: pd.Timestamp
    frequency: Frequency
    par_value: float
    annual_interest_rate: float
    config: AnalyticsConfig = field(default=DEFAULT_CONFIG, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "issuance_date", as_utc(self.issuance_date))
        object.__setattr__(self, "maturity_date", as_utc(self.maturity_date))
        object.__setattr__(self, "frequency", Frequency.parse(self.frequency))

        if self.maturity_date <= self.issuance_date:
            logger.warning(
                "bond_issue_rejected",
                reason="maturity_not_after_issuance",
                issuance_date=str(self.issuance_date),
                maturity_date=str(self.maturity_date),
            )
            raise InvalidMaturityDate(
                f"Maturity {self.maturity_date} must be after issuance {self.issuance_date}."
            )

        n = self.compounding_periods()
        if n < 1.0:
            logger.warning(
                "bond_issue_rejected",
                reason="less_than_one_period",
                maturity_date=str(self.maturity_date),
                frequency=self.frequency.name,
                periods=n,
            )
            raise InvalidMaturityDate(
                f"Bond needs at least one {self.frequency.name} period before maturity (got {n:.4f})."
            )

    @classmethod
    def issue(
        cls,
        par_value: float,
        annual_interest_rate: float,
        frequency: Union[Frequency, int, str],
        maturity_date,
        as_of: Optional[pd.Timestamp] = None,
        config: AnalyticsConfig = DEFAULT_CONFIG,
    ) -> "Bond":
        """
        Issue a bond today (or at `as_of`) maturing on `maturity_date`.

        Raises InvalidMaturityDate when maturity is not strictly after issuance or
        the term holds less than one compounding period.
        """
        issuance_date = pd.Timestamp.now(tz="UTC") if as_of is None else as_utc(as_of)
        bond = cls(
            issuance_date=issuance_date,
            maturity_date=maturity_date,
            frequency=frequency,
            par_value=float(par_value),
            annual_interest_rate=float(annual_interest_rate),
            config=config,
        )
        logger.debug(
            "bond_issued",
            par_value=bond.par_value,
            annual_interest_rate=bond.annual_interest_rate,
            frequency=bond.frequency.name,
            periods=bond.compounding_periods(),
        )
        return bond

    def with_rate(self, annual_interest_rate: float) -> "Bond":
        """Same instrument (same issuance date) at a different annual rate."""
        return dataclasses.replace(self, annual_interest_rate=float(annual_interest_rate))

    # ---- rates and term ----

    def periodic_rate(self) -> float:
        return self.annual_interest_rate / self.frequency.periods_per_year

    def term_to_maturity(self) -> float:
        """Years from issuance to maturity on whole days; 0.0 if maturity is not after issuance."""
        return yearfrac(self.issuance_date, self.maturity_date, self.config.days_per_year)

    def compounding_periods(self) -> float:
        """Fractional number of compounding periods over the term."""
        return self.term_to_maturity() * self.frequency.periods_per_year

    def _growth(self, periods) -> np.ndarray:
        with np.errstate(all="ignore"):
            return np.power(np.float64(1.0 + self.periodic_rate()), periods)

    # ---- values and yields ----

    def coupon_payment(self) -> float:
        return self.par_value * self.periodic_rate()

    @np.errstate(all="ignore")
    def future_value(self) -> float:
        return float(self.par_value * self._growth(self.compounding_periods()))

    @np.errstate(all="ignore")
    def present_value(self) -> float:
        return float(np.float64(self.par_value) / self._growth(self.compounding_periods()))

    @np.errstate(all="ignore")
    def yield_to_maturity(self) -> float:
        # ((par / pv) - 1)^(1/n), kept as historically computed; not the periodic rate.
        ratio = np.float64(self.par_value) / np.float64(self.present_value())
        return float(np.power(ratio - 1.0, 1.0 / np.float64(self.compounding_periods())))

    def annual_cash_flow(self) -> float:
        return self.coupon_payment() * self.frequency.periods_per_year

    @np.errstate(all="ignore")
    def current_yield(self) -> float:
        return float(np.float64(self.annual_cash_flow()) / np.float64(self.present_value()))

    # ---- cash flows ----

    def cash_flows(self) -> np.ndarray:
        """
        One coupon per whole period, then a separate terminal par + coupon entry.

        Length is floor(compounding_periods()) + 1.
        """
        periods = period_grid(self.compounding_periods())
        coupon = self.coupon_payment()
        cfs = np.full(len(periods) + 1, coupon, dtype=float)
        cfs[-1] = self.par_value + coupon
        return cfs

    @np.errstate(all="ignore")
    def discounted_cash_flows(self) -> np.ndarray:
        """cash_flows() discounted at the periodic rate; the terminal entry uses the fractional period count."""
        n = self.compounding_periods()
        exponents = np.append(period_grid(n), n)
        return self.cash_flows() * discount_factors(self.periodic_rate(), exponents)

    # ---- duration ----

    @np.errstate(all="ignore")
    def duration(self, market_price: Optional[float] = None) -> float:
        """
        Macaulay duration: period-index-weighted discounted cash flows divided by
        `market_price` (present_value() if None).
        """
        n = self.compounding_periods()
        t = period_grid(n)
        coupon = self.coupon_payment()
        price = self.present_value() if market_price is None else market_price

        weighted = np.sum(t * coupon * discount_factors(self.periodic_rate(), t))
        weighted += n * (self.par_value + coupon) * discount_factors(self.periodic_rate(), n)
        return float(np.float64(weighted) / np.float64(price))

    @np.errstate(all="ignore")
    def modified_duration(self, market_price: Optional[float] = None) -> float:
        n = np.float64(self.compounding_periods())
        return float(np.float64(self.duration(market_price)) / (1.0 + self.yield_to_maturity() / n))

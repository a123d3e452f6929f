from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd
from scipy.optimize import brentq

from .bonds import Bond
from .utils import period_grid, discount_factors


def net_present_value(initial_cost: float, cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    NPV of flows received at the end of periods 1, 2, ... less the initial outlay.

    The outlay is always subtracted (its sign is ignored).
    """
    cfs = np.asarray(cash_flows, dtype=float)
    t = np.arange(1, len(cfs) + 1, dtype=float)
    with np.errstate(all="ignore"):
        pv = float(np.sum(cfs * discount_factors(discount_rate, t)))
    return pv - abs(initial_cost)


def internal_rate_of_return(
    initial_cost: float,
    cash_flows: Sequence[float],
    lower: float = -0.99,
    upper: float = 1.0,
) -> float:
    """
    Periodic rate at which net_present_value is zero.

    The upper bracket doubles until NPV changes sign (up to 1e6); raises ValueError
    if no root can be bracketed.
    """
    cfs = list(cash_flows)
    if not cfs:
        raise ValueError("Need at least one cash flow.")

    def npv(rate: float) -> float:
        return net_present_value(initial_cost, cfs, rate)

    f_lo = npv(lower)
    f_hi = npv(upper)
    while np.sign(f_lo) == np.sign(f_hi) and upper < 1e6:
        upper *= 2.0
        f_hi = npv(upper)

    if not (np.isfinite(f_lo) and np.isfinite(f_hi)) or np.sign(f_lo) == np.sign(f_hi):
        raise ValueError("IRR root not bracketed; cash flows never change NPV sign.")

    return float(brentq(npv, lower, upper, maxiter=300, xtol=1e-14))


def cash_flow_table(bond: Bond) -> pd.DataFrame:
    """
    One row per cash flow of `bond`: coupon periods 1..floor(n), then the terminal
    par + coupon row at the fractional period n.
    """
    n = bond.compounding_periods()
    periods = np.append(period_grid(n), n)
    cfs = bond.cash_flows()
    dfs = discount_factors(bond.periodic_rate(), periods)

    out = pd.DataFrame({
        "period": periods,
        "kind": ["coupon"] * (len(periods) - 1) + ["terminal"],
        "cashflow": cfs,
        "discount_factor": dfs,
    })
    out["pv"] = out["cashflow"] * out["discount_factor"]
    return out

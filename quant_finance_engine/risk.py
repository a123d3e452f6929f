from __future__ import annotations

from typing import Sequence

import pandas as pd

from .bonds import Bond

BP = 1 / 10000.0


def bumped_present_value(bond: Bond, shift_bp: float) -> float:
    """Present value with the annual rate shifted by `shift_bp` basis points, same issuance date."""
    return bond.with_rate(bond.annual_interest_rate + shift_bp * BP).present_value()


def dv01(bond: Bond) -> float:
    """PV change for a +1bp move in the annual rate (negative for a positive-rate bond)."""
    return bumped_present_value(bond, 1.0) - bond.present_value()


def convexity(bond: Bond) -> float:
    base = bond.present_value()
    up = bumped_present_value(bond, 1.0)
    down = bumped_present_value(bond, -1.0)
    return (up + down - 2 * base) / (base * BP**2)


def effective_duration(bond: Bond) -> float:
    """Central-difference duration in years: -(P+ - P-) / (2 * P * dy)."""
    base = bond.present_value()
    up = bumped_present_value(bond, 1.0)
    down = bumped_present_value(bond, -1.0)
    return -(up - down) / (2 * base * BP)


def risk_table(bonds: Sequence[Bond], labels: Sequence[str] = None) -> pd.DataFrame:
    """Per-bond PV, Macaulay/modified duration, DV01, convexity and effective duration."""
    if labels is None:
        labels = [f"BOND_{i:03d}" for i in range(len(bonds))]
    if len(labels) != len(bonds):
        raise ValueError("labels and bonds must have the same length")

    rows = []
    for label, bond in zip(labels, bonds):
        rows.append(
            {
                "bond_id": label,
                "maturity": bond.maturity_date,
                "frequency": bond.frequency.name,
                "annual_rate": bond.annual_interest_rate,
                "par_value": bond.par_value,
                "pv": bond.present_value(),
                "macaulay_duration": bond.duration(),
                "modified_duration": bond.modified_duration(),
                "dv01": dv01(bond),
                "convexity": convexity(bond),
                "effective_duration": effective_duration(bond),
            }
        )
    return pd.DataFrame(rows)

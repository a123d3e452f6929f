from __future__ import annotations

from typing import Sequence, Tuple

import pandas as pd
import structlog

from .bonds import Bond
from .risk import bumped_present_value

logger = structlog.get_logger(__name__)

DEFAULT_SHOCKS_BP = (-50, -25, 25, 50)


def run_rate_scenarios(
    bonds: Sequence[Bond],
    shocks_bp: Sequence[float] = DEFAULT_SHOCKS_BP,
    labels: Sequence[str] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Reprice each bond under parallel shifts of its annual rate.

    Returns (per_bond, summary): per_bond has the base PV, one PV column per shock
    ("RATE_+25bp") and its PnL ("RATE_+25bp_PnL"); summary totals PnL per shock.
    """
    if labels is None:
        labels = [f"BOND_{i:03d}" for i in range(len(bonds))]
    if len(labels) != len(bonds):
        raise ValueError("labels and bonds must have the same length")

    per_bond = pd.DataFrame({
        "bond_id": list(labels),
        "base": [b.present_value() for b in bonds],
    })

    for bp in shocks_bp:
        name = f"RATE_{bp:+g}bp"
        per_bond[name] = [bumped_present_value(b, bp) for b in bonds]
        per_bond[name + "_PnL"] = per_bond[name] - per_bond["base"]

    pnl_cols = [c for c in per_bond.columns if c.endswith("_PnL")]
    summary = pd.DataFrame({"scenario": pnl_cols, "total_pnl": [per_bond[c].sum() for c in pnl_cols]})

    logger.debug("rate_scenarios_run", n_bonds=len(per_bond), n_scenarios=len(pnl_cols))
    return per_bond, summary

from __future__ import annotations

from dataclasses import dataclass


FORMULA_MODES = ("literal", "corrected")
PERCENTILE_BOUNDS = ("raise", "clamp")


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Knobs shared by the statistics and bond modules.

    formulas:
      - "literal": reproduce the historical outputs exactly (sample mean over n-1,
        harmonic mean divided by n twice, zero-seeded max/min, v - mu/sd z-scores,
        integer-truncated 1/n factor in skewness/kurtosis).
      - "corrected": textbook versions of the same measures.

    percentile_bounds:
      - "raise": rank outside [1, n] raises PercentileOutOfRange
      - "clamp": rank is clamped into [1, n]
    """
    formulas: str = "literal"
    quantize_decimals: int = 5
    percentile_bounds: str = "raise"
    days_per_year: float = 365.0

    def __post_init__(self):
        if self.formulas not in FORMULA_MODES:
            raise ValueError(f"Unsupported formulas mode: {self.formulas}")
        if self.percentile_bounds not in PERCENTILE_BOUNDS:
            raise ValueError(f"Unsupported percentile bounds policy: {self.percentile_bounds}")
        if self.quantize_decimals < 0:
            raise ValueError("quantize_decimals must be non-negative")
        if self.days_per_year <= 0:
            raise ValueError("days_per_year must be positive")

    @property
    def literal(self) -> bool:
        return self.formulas == "literal"


DEFAULT_CONFIG = AnalyticsConfig()
CORRECTED_CONFIG = AnalyticsConfig(formulas="corrected")

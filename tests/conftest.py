import pandas as pd
import pytest

from quant_finance_engine.bonds import Bond, Frequency
from quant_finance_engine.returns import PriceRecord


@pytest.fixture(scope="module")
def as_of():
    return pd.Timestamp("2026-02-13", tz="UTC")


@pytest.fixture(scope="module")
def bond(as_of):
    """1000 par, 6% semiannual, exactly 3 x 365 days to maturity."""
    return Bond.issue(
        par_value=1000.0,
        annual_interest_rate=0.06,
        frequency=Frequency.SEMI_ANNUAL,
        maturity_date=as_of + pd.Timedelta(days=3 * 365),
        as_of=as_of,
    )


@pytest.fixture(scope="module")
def price_records():
    """Five AAPL closes and three MSFT closes, MSFT with a dividend on the last day."""
    dates = pd.date_range("2024-01-02", periods=5, freq="D", tz="UTC")
    aapl = [100.0, 102.0, 99.96, 101.0, 101.0]
    recs = [PriceRecord(date=d, symbol="AAPL", close=c, exchange="XNAS") for d, c in zip(dates, aapl)]
    recs += [
        PriceRecord(date=dates[0], symbol="MSFT", close=50.0, exchange="XNAS"),
        PriceRecord(date=dates[1], symbol="MSFT", close=55.0, exchange="XNAS"),
        PriceRecord(date=dates[2], symbol="MSFT", close=54.0, dividend=1.5, exchange="XNAS"),
    ]
    return recs

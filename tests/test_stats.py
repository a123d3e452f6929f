import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from quant_finance_engine.config import AnalyticsConfig, CORRECTED_CONFIG
from quant_finance_engine.stats import Observations, PercentileOutOfRange, Statistics


@pytest.fixture(scope="module")
def ints():
    # Whole numbers quantize exactly, so expected_probability equals the mean (2.5).
    return Observations([1.0, 2.0, 3.0, 4.0])


@pytest.fixture(scope="module")
def ints_corrected():
    return Observations([1.0, 2.0, 3.0, 4.0], config=CORRECTED_CONFIG)


class TestMeans:
    def test_count_and_population_mean(self, ints):
        assert ints.count() == 4
        assert ints.population_mean() == pytest.approx(2.5)

    def test_sample_mean_literal_uses_n_minus_one(self, ints):
        assert ints.sample_mean() == pytest.approx(10.0 / 3.0)

    def test_sample_mean_corrected(self, ints_corrected):
        assert ints_corrected.sample_mean() == pytest.approx(2.5)

    def test_geometric_mean(self):
        obs = Observations([0.0, 0.10, -0.10])
        assert obs.geometric_mean() == pytest.approx((1.0 * 1.10 * 0.90) ** (1 / 3) - 1)

    def test_weighted_average(self, ints):
        assert ints.weighted_average([0.25, 0.25, 0.25, 0.25]) == pytest.approx(2.5)
        assert ints.weighted_average([0.5, 0.0, 0.0, 0.5]) == pytest.approx(2.5)
        assert ints.weighted_average([1.0, 0.0, 0.0, 0.0]) == pytest.approx(1.0)

    def test_weighted_average_rejects_bad_weights(self, ints):
        assert ints.weighted_average([0.5, 0.5]) == 0.0, "Length mismatch returns 0.0"
        assert ints.weighted_average([0.5, 0.5, 0.5, 0.5]) == 0.0, "Weights must sum to exactly 1"

    def test_harmonic_mean_literal_and_corrected(self):
        data = [1.0, 2.0, 4.0]
        literal = Observations(data)
        corrected = Observations(data, config=CORRECTED_CONFIG)
        assert literal.harmonic_mean() == pytest.approx((1 / 1.75) / 3)
        assert corrected.harmonic_mean() == pytest.approx(3 / 1.75)


class TestPercentile:
    def test_median_of_five_is_exact_rank(self):
        assert Observations([5.0, 3.0, 1.0, 4.0, 2.0]).percentile(50) == 3.0

    def test_interpolated_rank(self):
        obs = Observations([1.0, 2.0, 3.0, 4.0, 5.0])
        # rank 6 * 0.25 = 1.5 -> halfway between 1st and 2nd
        assert obs.percentile(25) == pytest.approx(1.5)
        # rank 6 * 0.75 = 4.5
        assert obs.percentile(75) == pytest.approx(4.5)

    def test_out_of_range_raises_by_default(self):
        obs = Observations([1.0, 2.0, 3.0, 4.0, 5.0])
        with pytest.raises(PercentileOutOfRange):
            obs.percentile(99)
        with pytest.raises(PercentileOutOfRange):
            obs.percentile(5)
        with pytest.raises(PercentileOutOfRange):
            Observations([]).percentile(50)

    def test_out_of_range_clamps_when_configured(self):
        obs = Observations([1.0, 2.0, 3.0, 4.0, 5.0], config=AnalyticsConfig(percentile_bounds="clamp"))
        assert obs.percentile(99) == 5.0
        assert obs.percentile(5) == 1.0
        assert obs.percentile(0) == 1.0


class TestRange:
    def test_literal_min_is_zero_seeded(self):
        positive = Observations([0.02, 0.05, 0.01])
        assert positive.min() == 0.0
        assert positive.max() == pytest.approx(0.05)
        assert positive.range() == pytest.approx(0.05)

    def test_literal_max_is_zero_seeded(self):
        negative = Observations([-0.02, -0.05, -0.01])
        assert negative.max() == 0.0
        assert negative.min() == pytest.approx(-0.05)

    def test_corrected_min_max(self):
        positive = Observations([0.02, 0.05, 0.01], config=CORRECTED_CONFIG)
        assert positive.min() == pytest.approx(0.01)
        assert positive.range() == pytest.approx(0.04)


class TestDispersion:
    def test_variances_centered_on_expected_probability(self, ints):
        data = np.array([1.0, 2.0, 3.0, 4.0])
        assert ints.expected_probability() == pytest.approx(2.5)
        assert ints.population_variance() == pytest.approx(np.var(data))
        assert ints.sample_variance() == pytest.approx(np.var(data, ddof=1))
        assert ints.population_std_dev() == pytest.approx(np.std(data))
        assert ints.sample_std_dev() == pytest.approx(np.std(data, ddof=1))

    def test_duplicates_shift_the_center(self):
        obs = Observations([1.0, 1.0, 2.0])
        # weights 2/3, 2/3, 1/3 -> 2/3 + 2/3 + 2/3
        assert obs.expected_probability() == pytest.approx(2.0)
        assert obs.population_mean() == pytest.approx(4 / 3)
        assert obs.population_variance() == pytest.approx((1 + 1 + 0) / 3)

    def test_downside_deviation(self, ints):
        # below or at 2.5: 1, 2 -> (2.25 + 0.25) / 3
        assert ints.downside_deviation() == pytest.approx(math.sqrt(2.5 / 3))

    def test_coefficient_of_variation_and_sharpe(self, ints):
        sd = np.std([1.0, 2.0, 3.0, 4.0], ddof=1)
        assert ints.coefficient_of_variation() == pytest.approx(sd / 2.5)
        assert ints.sharpe_ratio(0.5) == pytest.approx(2.0 / sd)

    def test_z_scores_literal_precedence(self, ints):
        sd = np.std([1.0, 2.0, 3.0, 4.0], ddof=1)
        assert_allclose(ints.z_scores(), np.array([1.0, 2.0, 3.0, 4.0]) - 2.5 / sd)

    def test_z_scores_corrected(self, ints_corrected):
        sd = np.std([1.0, 2.0, 3.0, 4.0], ddof=1)
        assert_allclose(ints_corrected.z_scores(), (np.array([1.0, 2.0, 3.0, 4.0]) - 2.5) / sd)


class TestShape:
    def test_literal_moment_factor_truncates(self):
        obs = Observations([1.0, 2.0, 3.0, 10.0])
        assert obs.skewness() == 0.0
        assert obs.excess_kurtosis() == -3.0

    def test_corrected_skew_and_kurtosis(self):
        data = np.array([1.0, 2.0, 3.0, 10.0])
        obs = Observations(data, config=CORRECTED_CONFIG)
        center = data.mean()
        sd = data.std(ddof=1)
        assert obs.skewness() == pytest.approx(np.mean((data - center) ** 3) / sd**3)
        assert obs.excess_kurtosis() == pytest.approx(np.mean((data - center) ** 4) / sd**4 - 3.0)
        assert obs.skewness() > 0.0, "Right tail should give positive skew"


class TestPairwise:
    def test_self_correlation_is_one(self):
        x = Observations([0.01, -0.02, 0.035, 0.0, 0.012, -0.007])
        assert x.correlation(x) == pytest.approx(1.0)

    def test_covariance_matches_sample_variance_for_self(self, ints):
        assert ints.covariance(ints) == pytest.approx(ints.sample_variance())

    def test_negative_correlation(self):
        x = Observations([1.0, 2.0, 3.0, 4.0])
        y = Observations([8.0, 6.0, 4.0, 2.0])
        assert x.correlation(y) == pytest.approx(-1.0)

    def test_unequal_lengths_raise(self, ints):
        with pytest.raises(ValueError):
            ints.covariance(Observations([1.0, 2.0]))


class TestProbability:
    def test_probability_exact_match(self):
        obs = Observations([0.0, 0.0, 1.0, 2.0])
        assert obs.probability(0.0) == pytest.approx(0.5)
        assert obs.probability(3.0) == 0.0

    def test_probability_bounds_inclusive(self):
        obs = Observations([0.0, 0.5, 1.0, 2.0])
        assert obs.probability_bounds(0.5, 1.0) == pytest.approx(0.5)
        assert obs.probability_bounds(-1.0, 5.0) == pytest.approx(1.0)

    def test_quantization_buckets_near_duplicates(self):
        obs = Observations([1.0, 1.000001, 3.0])
        # 1.0 brackets to [1.0, 1.0]; 1.000001 brackets to [1.0, 1.00001] and sees both.
        expected = (1 / 3) * 1.0 + (2 / 3) * 1.000001 + (1 / 3) * 3.0
        assert obs.expected_probability() == pytest.approx(expected)


class TestDegenerate:
    def test_empty_series_yields_nan(self):
        empty = Observations([])
        assert empty.count() == 0
        assert math.isnan(empty.population_mean())
        assert empty.expected_probability() == 0.0
        assert math.isnan(empty.skewness())

    def test_single_observation_sample_stats_not_finite(self):
        one = Observations([0.05])
        assert not np.isfinite(one.sample_variance())
        assert not np.isfinite(one.sharpe_ratio(0.0))

    def test_constant_series_accumulates_full_weight(self):
        # Every observation sees the whole sample in its bracket.
        flat = Observations([2.0, 2.0, 2.0])
        assert flat.expected_probability() == pytest.approx(6.0)

    def test_zero_deviation_gives_non_finite_ratios(self):
        zeros = Observations([0.0, 0.0, 0.0])
        assert zeros.sample_std_dev() == 0.0
        assert zeros.sharpe_ratio(0.01) == -math.inf
        assert math.isnan(zeros.coefficient_of_variation())


def test_custom_source_only_needs_values():
    class Yields(Statistics):
        def __init__(self, quotes):
            self.quotes = quotes

        def values(self):
            return np.array([q["ytm"] for q in self.quotes], dtype=float)

    y = Yields([{"ytm": 1.0}, {"ytm": 3.0}])
    assert y.count() == 2
    assert y.population_mean() == pytest.approx(2.0)
    assert y.sample_variance() == pytest.approx(2.0)


def test_observations_are_read_only():
    obs = Observations([1.0, 2.0])
    vals = obs.values()
    vals[0] = 99.0
    assert obs.values()[0] == 1.0


def test_config_rejects_unknown_modes():
    with pytest.raises(ValueError):
        AnalyticsConfig(formulas="textbook")
    with pytest.raises(ValueError):
        AnalyticsConfig(percentile_bounds="wrap")
    with pytest.raises(ValueError):
        AnalyticsConfig(quantize_decimals=-1)


def test_quantize_decimals_changes_brackets():
    data = [1.0, 1.004, 3.0]
    fine = Observations(data)
    coarse = Observations(data, config=AnalyticsConfig(quantize_decimals=2))
    assert fine.expected_probability() == pytest.approx(sum(data) / 3)
    # 1.004 brackets to [1.0, 1.01] at two decimals and also sees 1.0
    assert coarse.expected_probability() == pytest.approx(1.0 / 3 + 1.004 * 2 / 3 + 1.0)


def test_empty_sample_measures_are_nan():
    empty = Observations([])
    assert math.isnan(empty.sample_mean())
    assert math.isnan(empty.sample_variance())
    assert math.isnan(empty.sample_std_dev())
    assert math.isnan(empty.downside_deviation())
    assert math.isnan(empty.covariance(Observations([])))


@pytest.mark.parametrize("config", [None, AnalyticsConfig(percentile_bounds="clamp")])
def test_non_finite_percentile_is_out_of_range(config):
    obs = Observations([1.0, 2.0, 3.0], config=config)
    with pytest.raises(PercentileOutOfRange):
        obs.percentile(float("nan"))
    with pytest.raises(PercentileOutOfRange):
        obs.percentile(float("inf"))

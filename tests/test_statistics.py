"""
Tests for statistics.py: descriptive statistics, t-tests, effect size and power
"""
import math

import pytest

from hypotest.errors import DegenerateInputError, InvalidInputError, NumericalInstabilityError
from hypotest.statistics import (
    DescriptiveStats,
    cohens_d,
    describe,
    effect_size,
    estimate_power,
    interpret_effect_size,
    required_sample_size,
    t_test,
)

BASELINE = [10, 12, 11, 13, 9]
ENHANCED = [15, 16, 14, 17, 15]


class TestDescribe:
    """describe()"""

    def test_known_values(self):
        stats = describe(BASELINE)
        assert stats.n == 5
        assert stats.mean == 11.0
        assert stats.stddev == pytest.approx(math.sqrt(2.5))

        stats = describe(ENHANCED)
        assert stats.mean == pytest.approx(15.4)
        assert stats.stddev == pytest.approx(math.sqrt(1.3))

    def test_uses_sample_denominator(self):
        # population sd of [1, 3] is 1, sample sd is sqrt(2)
        assert describe([1.0, 3.0]).stddev == pytest.approx(math.sqrt(2.0))

    def test_accepts_any_iterable(self):
        assert describe(x for x in (1, 2, 3)).mean == 2.0
        assert describe((2.5, 3.5)).n == 2

    @pytest.mark.parametrize("sample", [[], [4.2]])
    def test_too_small(self, sample):
        with pytest.raises(InvalidInputError):
            describe(sample)

    @pytest.mark.parametrize(
        "sample",
        [
            [1.0, "2"],
            [1.0, None],
            [True, 2.0],
            [1.0, float("nan")],
            [1.0, float("inf")],
            "12345",
            42,
        ],
    )
    def test_rejects_non_numeric(self, sample):
        with pytest.raises(InvalidInputError):
            describe(sample)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            describe([1.0])

    def test_huge_values_do_not_overflow(self):
        stats = describe([1e200, -1e200])
        assert stats.mean == 0.0
        assert stats.stddev == pytest.approx(math.sqrt(2) * 1e200)

    def test_tiny_values_keep_precision(self):
        stats = describe([0.0, 1e-160])
        assert stats.stddev == pytest.approx(math.sqrt(0.5) * 1e-160)

    def test_values_near_float_max(self):
        stats = describe([1.5e308, 1.7e308, 1.6e308])
        assert stats.mean == pytest.approx(1.6e308)
        assert stats.stddev == pytest.approx(1e307)


class TestTTest:
    """t_test()"""

    def test_welch_known_values(self):
        result = t_test(BASELINE, ENHANCED)
        # SE = sqrt(2.5/5 + 1.3/5) = sqrt(0.76)
        assert result.method == "welch"
        assert result.mean_difference == pytest.approx(4.4)
        assert result.standard_error == pytest.approx(math.sqrt(0.76))
        assert result.t_statistic == pytest.approx(4.4 / math.sqrt(0.76))
        assert result.degrees_of_freedom == pytest.approx(0.76 ** 2 / (0.5 ** 2 / 4 + 0.26 ** 2 / 4))
        assert result.p_value < 0.01
        assert result.significant is True
        assert result.confidence_level == 0.95

    def test_sign_follows_enhanced_minus_baseline(self):
        assert t_test(BASELINE, ENHANCED).t_statistic > 0
        assert t_test(ENHANCED, BASELINE).t_statistic < 0
        assert t_test(ENHANCED, BASELINE).p_value == t_test(BASELINE, ENHANCED).p_value

    def test_small_difference_not_significant(self):
        # t = 1, df = 8, two-tailed p = 0.3466
        result = t_test([1, 2, 3, 4, 5], [2, 3, 4, 5, 6])
        assert result.t_statistic == pytest.approx(1.0)
        assert result.degrees_of_freedom == pytest.approx(8.0)
        assert result.p_value == pytest.approx(0.3466, abs=1e-3)
        assert result.significant is False

    def test_welch_and_pooled_agree_for_equal_sizes(self):
        a = [3.1, 4.7, 5.0, 2.2, 6.3, 4.4]
        b = [5.9, 6.1, 4.8, 7.7, 5.5, 8.0]
        welch = t_test(a, b)
        pooled = t_test(a, b, equal_variance=True)
        assert pooled.method == "student"
        assert welch.t_statistic == pytest.approx(pooled.t_statistic, rel=1e-12)
        assert pooled.degrees_of_freedom == 10
        assert welch.degrees_of_freedom <= pooled.degrees_of_freedom

    def test_welch_df_equals_pooled_df_for_equal_variances(self):
        welch = t_test([1, 2, 3, 4, 5], [3, 4, 5, 6, 7])
        assert welch.degrees_of_freedom == pytest.approx(8.0)

    def test_pooled_known_values(self):
        # pooled variance 2.5, SE = 1, t = 1, df = 8
        result = t_test([1, 2, 3, 4, 5], [2, 3, 4, 5, 6], equal_variance=True)
        assert result.standard_error == pytest.approx(1.0)
        assert result.t_statistic == pytest.approx(1.0)
        assert result.degrees_of_freedom == 8

    def test_confidence_interval(self):
        result = t_test([1, 2, 3, 4, 5], [2, 3, 4, 5, 6], equal_variance=True)
        # 1 +/- t(0.975, 8) * 1
        assert result.confidence_interval.lower == pytest.approx(1 - 2.3060, abs=1e-3)
        assert result.confidence_interval.upper == pytest.approx(1 + 2.3060, abs=1e-3)

    def test_interval_widens_with_confidence(self):
        narrow = t_test(BASELINE, ENHANCED, confidence_level=0.9).confidence_interval
        wide = t_test(BASELINE, ENHANCED, confidence_level=0.99).confidence_interval
        assert wide.lower < narrow.lower
        assert wide.upper > narrow.upper

    def test_significance_uses_confidence_level(self):
        # p is about 0.3466: significant only at a very low confidence level
        a, b = [1, 2, 3, 4, 5], [2, 3, 4, 5, 6]
        assert t_test(a, b, confidence_level=0.95).significant is False
        assert t_test(a, b, confidence_level=0.6).significant is True

    def test_moderate_effect_is_significant(self):
        # sd sqrt(11) in both groups of 11: SE = sqrt(2), so a shift of 2.5 * sqrt(2) gives t = 2.5, df = 20
        baseline = [float(k) for k in range(-5, 6)]
        enhanced = [v + 2.5 * math.sqrt(2) for v in baseline]
        for equal_variance in (False, True):
            result = t_test(baseline, enhanced, confidence_level=0.95, equal_variance=equal_variance)
            assert result.t_statistic == pytest.approx(2.5)
            assert result.degrees_of_freedom == pytest.approx(20.0)
            assert result.p_value == pytest.approx(0.0212, abs=5e-4)
            assert result.significant is True

    def test_tiny_values(self):
        result = t_test([0.0, 1e-160], [0.0, 3e-160])
        assert result.method == "welch"
        # equal sizes: df = (r1 + r2)^2 / ((r1^2 + r2^2) / 1) with r1 = 1/9, r2 = 1
        assert result.degrees_of_freedom == pytest.approx((1 / 9 + 1) ** 2 / (1 / 81 + 1))
        assert result.t_statistic == pytest.approx(1 / math.sqrt(2.5))
        assert 0 < result.p_value < 1

    def test_tiny_values_pooled(self):
        result = t_test([0.0, 1e-160], [0.0, 3e-160], equal_variance=True)
        assert result.degrees_of_freedom == 2
        assert result.standard_error > 0

    def test_huge_values(self):
        result = t_test([1e200, -1e200, 0.0], [2e200, 0.0, 1e200])
        assert math.isfinite(result.t_statistic)
        assert math.isfinite(result.confidence_interval.upper)

    def test_out_of_range_difference(self):
        with pytest.raises(NumericalInstabilityError):
            t_test([-1.7e308, -1.6e308], [1.6e308, 1.7e308])
        with pytest.raises(NumericalInstabilityError):
            t_test([-1.7e308, 0.0], [1.7e308, 1.0], paired=True)

    def test_paired(self):
        # differences [1, 2, 2, 1]: mean 1.5, sd sqrt(1/3)
        result = t_test([1, 2, 3, 4], [2, 4, 5, 5], paired=True)
        assert result.method == "paired"
        assert result.degrees_of_freedom == 3
        assert result.t_statistic == pytest.approx(1.5 / (math.sqrt(1 / 3) / 2))

    def test_paired_requires_equal_lengths(self):
        with pytest.raises(InvalidInputError):
            t_test([1, 2, 3], [1, 2], paired=True)

    def test_paired_constant_shift_is_degenerate(self):
        with pytest.raises(DegenerateInputError):
            t_test([1, 2, 3], [2, 3, 4], paired=True)

    def test_zero_variance_different_means(self):
        with pytest.raises(DegenerateInputError):
            t_test([1.0, 1.0], [2.0, 2.0])
        with pytest.raises(DegenerateInputError):
            t_test([1.0, 1.0], [2.0, 2.0], equal_variance=True)

    def test_zero_variance_equal_means(self):
        with pytest.raises(DegenerateInputError):
            t_test([5, 5, 5, 5], [5, 5, 5, 5])

    def test_one_constant_sample_is_fine(self):
        result = t_test([5, 5, 5], [4, 6, 8])
        assert result.degrees_of_freedom == pytest.approx(2.0)

    @pytest.mark.parametrize("baseline, enhanced", [([1], [1, 2]), ([1, 2], []), ([], [])])
    def test_too_small(self, baseline, enhanced):
        with pytest.raises(InvalidInputError):
            t_test(baseline, enhanced)

    @pytest.mark.parametrize("level", [0, 1, 1.5, -0.2, "0.95"])
    def test_invalid_confidence_level(self, level):
        with pytest.raises(InvalidInputError):
            t_test(BASELINE, ENHANCED, confidence_level=level)

    def test_deterministic(self):
        assert t_test(BASELINE, ENHANCED) == t_test(list(BASELINE), list(ENHANCED))


class TestCohensD:
    """cohens_d() and its interpretation"""

    def test_known_value(self):
        assert cohens_d(11.0, 15.4, math.sqrt(2.5), math.sqrt(1.3)) == pytest.approx(4.4 / math.sqrt(1.9))

    def test_scenario_is_large(self):
        result = effect_size(describe(BASELINE), describe(ENHANCED))
        assert result.cohens_d > 0.8
        assert result.interpretation == "large"

    def test_symmetry(self):
        assert cohens_d(1.0, 3.0, 0.5, 2.0) == cohens_d(3.0, 1.0, 2.0, 0.5)

    def test_non_negative(self):
        assert cohens_d(10.0, 2.0, 1.0, 1.0) == pytest.approx(8.0)

    def test_zero_pooled_std_with_different_means(self):
        with pytest.raises(DegenerateInputError):
            cohens_d(1.0, 2.0, 0.0, 0.0)

    def test_zero_pooled_std_with_equal_means(self):
        stats = describe([5, 5, 5, 5])
        with pytest.raises(DegenerateInputError):
            cohens_d(stats.mean, stats.mean, stats.stddev, stats.stddev)

    def test_huge_standard_deviations(self):
        assert cohens_d(0.0, 1e200, 1e200, 1e200) == pytest.approx(1.0)

    def test_difference_out_of_range(self):
        with pytest.raises(NumericalInstabilityError):
            cohens_d(-1.7e308, 1.7e308, 1.0, 1.0)

    def test_negative_std(self):
        with pytest.raises(InvalidInputError):
            cohens_d(1.0, 2.0, -1.0, 1.0)

    @pytest.mark.parametrize(
        "d, label",
        [
            (0.0, "negligible"),
            (0.19999, "negligible"),
            (0.2, "small"),
            (0.49999, "small"),
            (0.5, "medium"),
            (0.79999, "medium"),
            (0.8, "large"),
            (3.0, "large"),
        ],
    )
    def test_interpretation_thresholds(self, d, label):
        assert interpret_effect_size(d) == label

    def test_effect_size_from_stats(self):
        result = effect_size(DescriptiveStats(mean=0.0, stddev=1.0, n=10), DescriptiveStats(mean=0.3, stddev=1.0, n=10))
        assert result.cohens_d == pytest.approx(0.3)
        assert result.interpretation == "small"


class TestPower:
    """estimate_power() and required_sample_size()"""

    def test_reference_scenario(self):
        result = estimate_power(0.8, 50, alpha=0.05)
        # ncp = 0.8 * sqrt(25) = 4
        assert result.power >= 0.8
        assert result.power == pytest.approx(0.979, abs=2e-3)
        assert result.adequate is True
        assert result.sample_size == 50
        assert result.method == "normal"

    def test_zero_effect_gives_alpha(self):
        assert estimate_power(0.0, 30, alpha=0.05).power == pytest.approx(0.05, abs=1e-6)
        assert estimate_power(0.0, 30, alpha=0.01).power == pytest.approx(0.01, abs=1e-6)

    def test_cohen_convention(self):
        # n = 8 gives sqrt(n / 2) = 2, so d = 1.4 is ncp 2.8 and d = 1.5 is ncp 3.0
        assert estimate_power(1.4, 8).power == pytest.approx(0.80, abs=0.01)
        assert estimate_power(1.5, 8).power >= 0.8

    def test_tends_to_one(self):
        assert estimate_power(2.0, 200).power == pytest.approx(1.0, abs=1e-9)

    def test_monotone_in_effect_size(self):
        powers = [estimate_power(d / 10, 20).power for d in range(0, 31)]
        assert all(a <= b for a, b in zip(powers, powers[1:]))

    def test_monotone_in_sample_size(self):
        powers = [estimate_power(0.4, n).power for n in range(1, 300)]
        assert all(a <= b for a, b in zip(powers, powers[1:]))

    def test_sign_of_effect_does_not_matter(self):
        assert estimate_power(-0.5, 40).power == estimate_power(0.5, 40).power

    def test_inadequate(self):
        result = estimate_power(0.2, 20)
        assert result.adequate is False
        assert 0.05 < result.power < 0.8

    def test_t_method_matches_tables(self):
        # d = 0.5 with 64 per group is the textbook 80% design
        assert estimate_power(0.5, 64, method="t").power == pytest.approx(0.8015, abs=5e-4)
        assert estimate_power(1.0, 20, method="t").power == pytest.approx(0.86895, abs=1e-4)

    def test_t_method_zero_effect_gives_alpha(self):
        assert estimate_power(0.0, 12, method="t").power == pytest.approx(0.05, abs=1e-9)

    def test_t_method_is_more_conservative_for_small_groups(self):
        assert estimate_power(1.4, 8, method="t").power < estimate_power(1.4, 8).power

    def test_t_method_monotone_in_sample_size(self):
        powers = [estimate_power(0.5, n, method="t").power for n in range(2, 150)]
        assert all(a <= b for a, b in zip(powers, powers[1:]))

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"effect_size": 0.5, "sample_size": 0},
            {"effect_size": 0.5, "sample_size": 2.5},
            {"effect_size": 0.5, "sample_size": True},
            {"effect_size": float("nan"), "sample_size": 10},
            {"effect_size": 0.5, "sample_size": 10, "alpha": 0},
            {"effect_size": 0.5, "sample_size": 10, "alpha": 1},
            {"effect_size": 0.5, "sample_size": 10, "method": "exact"},
            {"effect_size": 0.5, "sample_size": 1, "method": "t"},
        ],
    )
    def test_invalid_inputs(self, kwargs):
        with pytest.raises(InvalidInputError):
            estimate_power(**kwargs)

    def test_deterministic(self):
        assert estimate_power(0.37, 41, 0.05) == estimate_power(0.37, 41, 0.05)

    def test_required_sample_size_normal(self):
        n = required_sample_size(0.5)
        assert n == 63
        assert estimate_power(0.5, n).power >= 0.8
        assert estimate_power(0.5, n - 1).power < 0.8

    def test_required_sample_size_t(self):
        n = required_sample_size(0.5, method="t")
        assert n == 64
        assert estimate_power(0.5, n, method="t").power >= 0.8
        assert estimate_power(0.5, n - 1, method="t").power < 0.8

    def test_required_sample_size_grows_with_power(self):
        assert required_sample_size(0.5, power=0.9) > required_sample_size(0.5, power=0.8)

    def test_required_sample_size_large_effect(self):
        assert required_sample_size(10.0) == 1
        assert required_sample_size(10.0, method="t") == 2

    def test_required_sample_size_zero_effect(self):
        with pytest.raises(InvalidInputError):
            required_sample_size(0.0)

    @pytest.mark.parametrize("power", [0, 1, 1.2])
    def test_required_sample_size_invalid_power(self, power):
        with pytest.raises(InvalidInputError):
            required_sample_size(0.5, power=power)

    def test_required_sample_size_unreachable(self):
        with pytest.raises(NumericalInstabilityError):
            required_sample_size(1e-6)

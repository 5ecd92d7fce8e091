from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Iterable, List

from .config import (
    ADEQUATE_POWER,
    DEFAULT_ALPHA,
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_POWER_METHOD,
    FPMIN,
    LARGE_EFFECT,
    MAX_SAMPLE_SIZE,
    MEDIUM_EFFECT,
    POWER_METHODS,
    SMALL_EFFECT,
)
from .distributions import (
    inverse_normal_cdf,
    noncentral_t_cdf,
    standard_normal_cdf,
    student_t_ppf,
    two_tailed_p_value,
)
from .errors import DegenerateInputError, InvalidInputError, NumericalInstabilityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DescriptiveStats:
    mean: float
    stddev: float
    n: int

    @property
    def variance(self) -> float:
        return self.stddev * self.stddev


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float


@dataclass(frozen=True)
class TTestResult:
    t_statistic: float
    degrees_of_freedom: float
    p_value: float
    significant: bool
    confidence_level: float
    mean_difference: float
    standard_error: float
    confidence_interval: ConfidenceInterval
    method: str


@dataclass(frozen=True)
class EffectSizeResult:
    cohens_d: float
    interpretation: str


@dataclass(frozen=True)
class PowerResult:
    power: float
    adequate: bool
    effect_size: float
    sample_size: int
    alpha: float
    method: str


def _coerce_sample(sample: Iterable[float], name: str = "sample") -> List[float]:
    """Validate a sample and return its values as floats."""
    if isinstance(sample, (str, bytes)):
        raise InvalidInputError(f"{name} must be a sequence of numbers, not a string")
    try:
        values = list(sample)
    except TypeError:
        raise InvalidInputError(f"{name} must be a sequence of numbers") from None

    out: List[float] = []
    for i, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidInputError(f"{name}[{i}] is not a real number: {value!r}")
        value = float(value)
        if not math.isfinite(value):
            raise InvalidInputError(f"{name}[{i}] is not finite: {value!r}")
        out.append(value)
    return out


def _describe_values(values: List[float], name: str) -> DescriptiveStats:
    n = len(values)
    if n < 2:
        raise InvalidInputError(f"{name} needs at least 2 values, got {n}")
    try:
        mean = math.fsum(values) / n
        sum_sq = math.fsum((x - mean) * (x - mean) for x in values)
    except OverflowError:
        mean = sum_sq = math.inf
    if math.isfinite(sum_sq) and sum_sq >= FPMIN:
        return DescriptiveStats(mean=mean, stddev=math.sqrt(sum_sq / (n - 1)), n=n)

    # squared deviations overflow or underflow; work in units of the largest magnitude
    scale = max(abs(x) for x in values)
    if scale == 0:
        return DescriptiveStats(mean=0.0, stddev=0.0, n=n)
    scaled = [x / scale for x in values]
    scaled_mean = math.fsum(scaled) / n
    scaled_var = math.fsum((s - scaled_mean) * (s - scaled_mean) for s in scaled) / (n - 1)
    if not math.isfinite(mean):
        mean = scaled_mean * scale
    return DescriptiveStats(mean=mean, stddev=math.sqrt(scaled_var) * scale, n=n)


def describe(sample: Iterable[float]) -> DescriptiveStats:
    """Mean, sample standard deviation (n - 1 denominator) and count."""
    return _describe_values(_coerce_sample(sample), "sample")


def _check_confidence_level(confidence_level: float) -> None:
    if isinstance(confidence_level, bool) or not isinstance(confidence_level, numbers.Real):
        raise InvalidInputError(f"confidence_level must be a number, got {confidence_level!r}")
    if not (0 < confidence_level < 1):
        raise InvalidInputError(f"confidence_level must be in (0, 1), got {confidence_level!r}")


def _check_alpha(alpha: float) -> None:
    if isinstance(alpha, bool) or not isinstance(alpha, numbers.Real):
        raise InvalidInputError(f"alpha must be a number, got {alpha!r}")
    if not (0 < alpha < 1):
        raise InvalidInputError(f"alpha must be in (0, 1), got {alpha!r}")


def _zero_standard_error(mean_diff: float) -> DegenerateInputError:
    return DegenerateInputError(
        f"standard error is zero (no variability in the data, mean difference {mean_diff!r})"
    )


def t_test(
    baseline: Iterable[float],
    enhanced: Iterable[float],
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL,
    equal_variance: bool = False,
    paired: bool = False,
) -> TTestResult:
    """Two-sample t-test of enhanced against baseline.

    Welch's test by default, Student's pooled-variance test with
    ``equal_variance=True`` and a paired test on per-item differences with
    ``paired=True`` (``equal_variance`` is then ignored). The statistic is
    ``(mean_enhanced - mean_baseline) / standard_error``, so it is positive
    when the enhanced sample is higher.
    """
    _check_confidence_level(confidence_level)
    base_values = _coerce_sample(baseline, "baseline")
    enh_values = _coerce_sample(enhanced, "enhanced")

    if paired:
        if len(base_values) != len(enh_values):
            raise InvalidInputError(
                f"paired test needs samples of equal length, got {len(base_values)} and {len(enh_values)}"
            )
        differences = [e - b for b, e in zip(base_values, enh_values)]
        if not all(math.isfinite(d) for d in differences):
            raise NumericalInstabilityError("paired differences are out of floating point range")
        diffs = _describe_values(differences, "differences")
        mean_diff = diffs.mean
        standard_error = diffs.stddev / math.sqrt(diffs.n)
        df = float(diffs.n - 1)
        method = "paired"
    else:
        s1 = _describe_values(base_values, "baseline")
        s2 = _describe_values(enh_values, "enhanced")
        n1, n2 = s1.n, s2.n
        mean_diff = s2.mean - s1.mean

        if equal_variance:
            scale = max(s1.stddev, s2.stddev)
            if scale == 0:
                raise _zero_standard_error(mean_diff)
            r1, r2 = s1.stddev / scale, s2.stddev / scale
            pooled_std = scale * math.sqrt(((n1 - 1) * r1 * r1 + (n2 - 1) * r2 * r2) / (n1 + n2 - 2))
            standard_error = pooled_std * math.sqrt(1 / n1 + 1 / n2)
            df = float(n1 + n2 - 2)
            method = "student"
        else:
            e1 = s1.stddev / math.sqrt(n1)
            e2 = s2.stddev / math.sqrt(n2)
            standard_error = math.hypot(e1, e2)
            if standard_error == 0:
                raise _zero_standard_error(mean_diff)
            # Welch-Satterthwaite on variances relative to the larger one
            scale = max(e1, e2)
            r1 = (e1 / scale) * (e1 / scale)
            r2 = (e2 / scale) * (e2 / scale)
            df = (r1 + r2) * (r1 + r2) / (r1 * r1 / (n1 - 1) + r2 * r2 / (n2 - 1))
            method = "welch"

    if standard_error == 0:
        raise _zero_standard_error(mean_diff)
    if not (math.isfinite(mean_diff) and math.isfinite(standard_error)):
        raise NumericalInstabilityError(
            f"mean difference {mean_diff!r} or standard error {standard_error!r} is out of floating point range"
        )

    t_statistic = mean_diff / standard_error
    p_value = two_tailed_p_value(t_statistic, df)
    alpha = 1 - confidence_level

    t_crit = student_t_ppf(1 - alpha / 2, df)
    margin = t_crit * standard_error
    if not (math.isfinite(mean_diff - margin) and math.isfinite(mean_diff + margin)):
        raise NumericalInstabilityError(f"confidence interval overflows (margin {margin!r})")

    logger.debug(
        "%s t-test: t=%.6g df=%.6g p=%.6g", method, t_statistic, df, p_value
    )

    return TTestResult(
        t_statistic=t_statistic,
        degrees_of_freedom=df,
        p_value=p_value,
        significant=p_value < alpha,
        confidence_level=confidence_level,
        mean_difference=mean_diff,
        standard_error=standard_error,
        confidence_interval=ConfidenceInterval(lower=mean_diff - margin, upper=mean_diff + margin),
        method=method,
    )


def cohens_d(mean1: float, mean2: float, std1: float, std2: float) -> float:
    """Absolute standardized mean difference using the root-mean-square deviation."""
    for name, value in (("mean1", mean1), ("mean2", mean2), ("std1", std1), ("std2", std2)):
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number, got {value!r}")
    if std1 < 0 or std2 < 0:
        raise InvalidInputError("standard deviations must be non-negative")

    scale = max(std1, std2)
    if scale == 0:
        # equal means included: 0/0 has no meaningful effect size
        raise DegenerateInputError("pooled standard deviation is zero; Cohen's d is undefined")
    r1, r2 = std1 / scale, std2 / scale
    pooled_std = scale * math.sqrt((r1 * r1 + r2 * r2) / 2)
    d = abs(mean2 - mean1) / pooled_std
    if not math.isfinite(d):
        raise NumericalInstabilityError(f"Cohen's d overflows (mean difference {mean2 - mean1!r})")
    return d


def interpret_effect_size(d: float) -> str:
    d = abs(d)
    if d < SMALL_EFFECT:
        return "negligible"
    if d < MEDIUM_EFFECT:
        return "small"
    if d < LARGE_EFFECT:
        return "medium"
    return "large"


def effect_size(baseline: DescriptiveStats, enhanced: DescriptiveStats) -> EffectSizeResult:
    d = cohens_d(baseline.mean, enhanced.mean, baseline.stddev, enhanced.stddev)
    return EffectSizeResult(cohens_d=d, interpretation=interpret_effect_size(d))


def _power(effect: float, sample_size: int, alpha: float, method: str) -> float:
    ncp = abs(effect) * math.sqrt(sample_size / 2)

    if method == "normal":
        z_crit = inverse_normal_cdf(1 - alpha / 2)
        power = standard_normal_cdf(ncp - z_crit) + standard_normal_cdf(-ncp - z_crit)
    else:
        df = 2 * sample_size - 2
        t_crit = student_t_ppf(1 - alpha / 2, df)
        power = 1 - noncentral_t_cdf(t_crit, df, ncp) + noncentral_t_cdf(-t_crit, df, ncp)

    return min(1.0, max(0.0, power))


def _check_power_inputs(effect: float, sample_size: int, alpha: float, method: str) -> None:
    if isinstance(effect, bool) or not isinstance(effect, numbers.Real) or not math.isfinite(effect):
        raise InvalidInputError(f"effect_size must be a finite number, got {effect!r}")
    if isinstance(sample_size, bool) or not isinstance(sample_size, numbers.Integral):
        raise InvalidInputError(f"sample_size must be an integer, got {sample_size!r}")
    _check_alpha(alpha)
    if method not in POWER_METHODS:
        raise InvalidInputError(f"method must be one of {POWER_METHODS}, got {method!r}")
    minimum = 2 if method == "t" else 1
    if sample_size < minimum:
        raise InvalidInputError(f"sample_size must be >= {minimum} for method {method!r}, got {sample_size}")


def estimate_power(
    effect_size: float,
    sample_size: int,
    alpha: float = DEFAULT_ALPHA,
    method: str = DEFAULT_POWER_METHOD,
) -> PowerResult:
    """Power of a two-sided two-sample t-test with ``sample_size`` per group.

    The non-centrality parameter is ``|d| * sqrt(n / 2)``.

    ``method="normal"`` treats the statistic as normal, giving
    ``Phi(ncp - z) + Phi(-ncp - z)``: exactly ``alpha`` when ``ncp`` is 0,
    about 0.8 at ``ncp`` 2.8 and tending to 1.

    ``method="t"`` takes the critical value from the central t with
    ``2n - 2`` degrees of freedom and evaluates both rejection regions under
    the non-central t distribution. It is lower than the normal figure for
    small groups and agrees with standard power tables.
    """
    _check_power_inputs(effect_size, sample_size, alpha, method)
    power = _power(effect_size, int(sample_size), alpha, method)
    return PowerResult(
        power=power,
        adequate=power >= ADEQUATE_POWER,
        effect_size=float(effect_size),
        sample_size=int(sample_size),
        alpha=alpha,
        method=method,
    )


def required_sample_size(
    effect_size: float,
    power: float = ADEQUATE_POWER,
    alpha: float = DEFAULT_ALPHA,
    method: str = DEFAULT_POWER_METHOD,
) -> int:
    """Smallest per-group sample size whose estimated power reaches ``power``."""
    minimum = 2 if method == "t" else 1
    _check_power_inputs(effect_size, minimum, alpha, method)
    if isinstance(power, bool) or not isinstance(power, numbers.Real) or not (0 < power < 1):
        raise InvalidInputError(f"power must be in (0, 1), got {power!r}")
    if effect_size == 0:
        raise InvalidInputError("effect_size must be non-zero to size an experiment")

    if _power(effect_size, minimum, alpha, method) >= power:
        return minimum

    # exponential search for an upper bound, then bisect (power is monotone in n)
    lo, hi = minimum, minimum * 2
    while _power(effect_size, hi, alpha, method) < power:
        if hi >= MAX_SAMPLE_SIZE:
            raise NumericalInstabilityError(
                f"no sample size up to {MAX_SAMPLE_SIZE} reaches power {power} for effect size {effect_size}"
            )
        lo, hi = hi, min(hi * 2, MAX_SAMPLE_SIZE)

    while hi - lo > 1:
        mid = (lo + hi) // 2
        if _power(effect_size, mid, alpha, method) >= power:
            hi = mid
        else:
            lo = mid

    logger.debug("required sample size for d=%s power=%s alpha=%s: %d", effect_size, power, alpha, hi)
    return hi

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Optional

from .config import DEFAULT_CONFIDENCE_LEVEL, DEFAULT_POWER_METHOD
from .statistics import (
    DescriptiveStats,
    EffectSizeResult,
    PowerResult,
    TTestResult,
    _coerce_sample,
    _describe_values,
    effect_size,
    estimate_power,
    t_test,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Improvement:
    absolute: float
    relative: Optional[float]  # percent of the baseline mean; None when undefined

    @property
    def relative_defined(self) -> bool:
        return self.relative is not None


@dataclass(frozen=True)
class AnalysisReport:
    baseline: DescriptiveStats
    enhanced: DescriptiveStats
    t_test: TTestResult
    effect_size: EffectSizeResult
    power: PowerResult
    improvement: Improvement

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["improvement"]["relative_defined"] = self.improvement.relative_defined
        return out


def compute_improvement(baseline_mean: float, enhanced_mean: float) -> Improvement:
    absolute = enhanced_mean - baseline_mean
    if baseline_mean == 0:
        logger.warning("baseline mean is zero; relative improvement is undefined")
        return Improvement(absolute=absolute, relative=None)
    return Improvement(absolute=absolute, relative=absolute / baseline_mean * 100)


def analyze(
    baseline: Iterable[float],
    enhanced: Iterable[float],
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL,
    equal_variance: bool = False,
    paired: bool = False,
    power_method: str = DEFAULT_POWER_METHOD,
) -> AnalysisReport:
    """Full comparison of two samples.

    Power is evaluated for the observed Cohen's d at the smaller group size
    and ``alpha = 1 - confidence_level``.
    """
    base_values = _coerce_sample(baseline, "baseline")
    enh_values = _coerce_sample(enhanced, "enhanced")
    logger.debug("analyzing baseline n=%d against enhanced n=%d", len(base_values), len(enh_values))

    base_stats = _describe_values(base_values, "baseline")
    enh_stats = _describe_values(enh_values, "enhanced")

    test = t_test(
        base_values,
        enh_values,
        confidence_level=confidence_level,
        equal_variance=equal_variance,
        paired=paired,
    )
    effect = effect_size(base_stats, enh_stats)
    power = estimate_power(
        effect.cohens_d,
        min(base_stats.n, enh_stats.n),
        alpha=1 - confidence_level,
        method=power_method,
    )

    return AnalysisReport(
        baseline=base_stats,
        enhanced=enh_stats,
        t_test=test,
        effect_size=effect,
        power=power,
        improvement=compute_improvement(base_stats.mean, enh_stats.mean),
    )


def _format_relative(improvement: Improvement) -> str:
    if not improvement.relative_defined:
        return "an undefined relative change (baseline mean is zero)"
    return f"a {abs(improvement.relative):.2f}% {'increase' if improvement.relative >= 0 else 'decrease'}"


def generate_recommendation(report: AnalysisReport) -> str:
    test = report.t_test
    p_value = test.p_value
    improvement = report.improvement
    d = report.effect_size.cohens_d

    if not test.significant:
        message = (
            "No evidence of a difference. The test did not reach statistical significance "
            f"(p = {p_value:.4f}). The observed difference could be due to random chance."
        )
        if not report.power.adequate:
            message += (
                f" Power is only {report.power.power * 100:.1f}% for the observed effect; "
                "collect more data before concluding there is no effect."
            )
        return message

    if improvement.absolute < 0:
        return (
            "The enhanced sample performs worse. While statistically significant "
            f"(p = {p_value:.4f}), it shows {_format_relative(improvement)} "
            f"against the baseline (Cohen's d = {d:.2f}, {report.effect_size.interpretation})."
        )

    if report.effect_size.interpretation == "negligible":
        return (
            "Consider practical relevance. The test is statistically significant "
            f"(p = {p_value:.4f}), but the effect size is negligible (Cohen's d = {d:.2f}). "
            f"Evaluate if an absolute improvement of {improvement.absolute:.4g} justifies the change."
        )

    return (
        "The enhanced sample is better. The test shows statistical significance "
        f"(p = {p_value:.4f}) with {_format_relative(improvement)} "
        f"and a {report.effect_size.interpretation} effect (Cohen's d = {d:.2f})."
    )

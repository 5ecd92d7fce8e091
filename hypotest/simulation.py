"""Synthetic experiments: seeded sample generation and Monte Carlo power."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Union

import pandas as pd

from .config import DEFAULT_ALPHA
from .errors import DegenerateInputError, InvalidInputError
from .statistics import estimate_power, t_test

logger = logging.getLogger(__name__)

Seed = Optional[Union[int, str]]


@dataclass(frozen=True)
class SimulatedPowerResult:
    power: float
    significant_count: int
    simulations: int
    analytic_power: float


def generate_seed() -> str:
    """Fresh six-digit seed for runs where the user gave none, so they can be replayed."""
    return f"{random.SystemRandom().randrange(1_000_000):06d}"


def _normal_draws(rng: random.Random, mean: float, std: float, n: int) -> List[float]:
    return [rng.gauss(mean, std) for _ in range(n)]


def generate_samples(
    baseline_mean: float,
    effect_size: float,
    std: float,
    sample_size: int,
    seed: Seed = None,
) -> pd.DataFrame:
    """Draw a baseline and an enhanced normal sample of ``sample_size`` each.

    The enhanced mean is shifted by ``effect_size * std`` so the population
    Cohen's d equals ``effect_size``. Returns a DataFrame with columns
    ``group`` ("baseline" / "enhanced") and ``value``.
    """
    if std <= 0:
        raise InvalidInputError("std must be > 0")
    if sample_size < 2:
        raise InvalidInputError("sample_size must be >= 2")

    rng = random.Random(seed)
    enhanced_mean = baseline_mean + effect_size * std

    rows: list[dict] = []
    for group, mean in (("baseline", baseline_mean), ("enhanced", enhanced_mean)):
        for value in _normal_draws(rng, mean, std, sample_size):
            rows.append({"group": group, "value": value})

    return pd.DataFrame(rows, columns=["group", "value"])


def export_to_csv(df: pd.DataFrame) -> str:
    """Export samples in long format (group,value) as CSV text."""
    out = df.copy()
    for c in ("group", "value"):
        if c not in out.columns:
            raise InvalidInputError(f"missing column {c!r}")
    return out[["group", "value"]].to_csv(index=False)


def simulate_power(
    effect_size: float,
    sample_size: int,
    alpha: float = DEFAULT_ALPHA,
    simulations: int = 1000,
    seed: Seed = None,
) -> SimulatedPowerResult:
    """Monte Carlo power: the share of simulated Welch tests that reject H0."""
    if simulations <= 0:
        raise InvalidInputError("simulations must be > 0")
    if sample_size < 2:
        raise InvalidInputError("sample_size must be >= 2")

    rng = random.Random(seed)
    significant = 0
    for _ in range(simulations):
        baseline = _normal_draws(rng, 0.0, 1.0, sample_size)
        enhanced = _normal_draws(rng, effect_size, 1.0, sample_size)
        try:
            res = t_test(baseline, enhanced, confidence_level=1 - alpha)
        except DegenerateInputError:
            continue
        if res.significant:
            significant += 1

    analytic = estimate_power(effect_size, sample_size, alpha=alpha).power
    logger.debug(
        "simulated power %.4f over %d runs (analytic %.4f)", significant / simulations, simulations, analytic
    )
    return SimulatedPowerResult(
        power=significant / simulations,
        significant_count=significant,
        simulations=simulations,
        analytic_power=analytic,
    )

"""Two-sample hypothesis testing: t-tests, effect sizes and power."""

from .errors import (
    HypothesisTestError,
    InvalidInputError,
    DegenerateInputError,
    NumericalInstabilityError,
)
from .statistics import (
    DescriptiveStats,
    ConfidenceInterval,
    TTestResult,
    EffectSizeResult,
    PowerResult,
    describe,
    t_test,
    cohens_d,
    interpret_effect_size,
    effect_size,
    estimate_power,
    required_sample_size,
)
from .report import (
    AnalysisReport,
    Improvement,
    analyze,
    compute_improvement,
    generate_recommendation,
)
from .data_loader import load_samples, load_sample_file
from .simulation import generate_samples, generate_seed, export_to_csv, simulate_power

__version__ = "0.1.0"

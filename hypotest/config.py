"""Default parameters and numeric tolerances."""

DEFAULT_CONFIDENCE_LEVEL = 0.95
DEFAULT_ALPHA = 0.05

# power at or above this value is considered adequate (Cohen's convention)
ADEQUATE_POWER = 0.8

# Cohen's d boundaries: negligible < SMALL <= small < MEDIUM <= medium < LARGE <= large
SMALL_EFFECT = 0.2
MEDIUM_EFFECT = 0.5
LARGE_EFFECT = 0.8

POWER_METHODS = ("normal", "t")
DEFAULT_POWER_METHOD = "normal"

# iterative routines (continued fraction, quantile bisection)
MAX_ITERATIONS = 10_000
EPSILON = 1e-15
FPMIN = 1e-300

MAX_SAMPLE_SIZE = 10_000_000

# non-central t series: stopping tolerance and the range where it is used
NCT_ERRMAX = 1e-12
NCT_MAX_DF = 4e5
NCT_MAX_LAMBDA = 1415.0  # ncp**2 above this underflows the first Poisson weight

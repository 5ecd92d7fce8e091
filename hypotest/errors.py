from __future__ import annotations


class HypothesisTestError(ValueError):
    """Base class for every error raised by the engine."""


class InvalidInputError(HypothesisTestError):
    """Sample too small, non-numeric values or out-of-range parameters."""


class DegenerateInputError(HypothesisTestError):
    """Zero variance where a standard error or pooled deviation is needed."""


class NumericalInstabilityError(HypothesisTestError, ArithmeticError):
    """An iterative routine did not converge within its iteration budget."""

"""
Lord's Paradox Simulation - Custom Exceptions

All exceptions inherit from LordsParadoxError so callers can catch every
simulation error with a single except clause.
"""

from typing import Any, Dict, Optional


class LordsParadoxError(Exception):
    """
    Base exception for all simulation errors.

    Carries a free-form ``details`` dict and the wrapped original error,
    if any, so failures can be logged in structured form.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }
        if self.original_error:
            result["original_error"] = str(self.original_error)
        return result


class ConfigurationError(LordsParadoxError):
    """
    Raised when path coefficients cannot produce a standardized model.

    Examples:
    - Explained variance of a stochastic variable exceeds 1
    - A pass-through variable would have more than unit variance
    """

    def __init__(
        self,
        message: str,
        variable: Optional[str] = None,
        residual_variance: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, details, original_error)
        self.variable = variable
        self.residual_variance = residual_variance
        if variable:
            self.details["variable"] = variable
        if residual_variance is not None:
            self.details["residual_variance"] = residual_variance


class SamplingError(LordsParadoxError):
    """
    Raised when a structural model cannot be generated in causal order.

    Examples:
    - A variable lists a parent that is not declared
    - A parent is declared after its child
    - The parent graph contains a cycle
    - A sampled table fails its schema
    """

    pass


class EstimationError(LordsParadoxError):
    """
    Raised when a single estimator fails on a single replicate.

    Recovered by the estimator battery: the cell is recorded as missing.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, details, original_error)
        self.model = model
        if model:
            self.details["model"] = model


class AggregationError(LordsParadoxError):
    """
    Raised when a model column has too few values to summarize.

    Surfaced as a flagged summary row rather than aborting the summary.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        n_valid: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, details, original_error)
        self.model = model
        self.n_valid = n_valid
        if model:
            self.details["model"] = model
        if n_valid is not None:
            self.details["n_valid"] = n_valid

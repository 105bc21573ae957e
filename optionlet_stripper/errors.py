"""Exception taxonomy for the optionlet stripping pipeline.

Every failure surfaces synchronously to the caller of the read that
triggered the calculation. Nothing is retried.
"""


class StrippingError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInputError(StrippingError, ValueError):
    """Malformed construction arguments (empty, mismatched or unordered inputs)."""


class MismatchedConventionError(StrippingError, ValueError):
    """Two volatility sources were built on different day counters."""


class ConvergenceFailure(StrippingError, RuntimeError):
    """The root finder could not bracket a root or ran out of evaluations."""

    def __init__(self, message, evaluations=None):
        super().__init__(message)
        self.evaluations = evaluations


class ResultUnavailableError(StrippingError, LookupError):
    """A value was read before it was available (e.g. an empty quote)."""

"""Error types raised by the compounding engine.

Every error derives from ``ValueError`` so callers that already guard user
input with ``except ValueError`` keep working unchanged.
"""


class CalculationError(ValueError):
    """Base class for all calculator errors."""

    kind = "calculation_error"


class InvalidInput(CalculationError):
    """A value is negative, non-numeric, non-finite or missing."""

    kind = "invalid_input"


class DomainError(CalculationError):
    """A formula has no finite answer for the given values.

    Raised for divisions by zero, logarithms of non-positive ratios and any
    other computation that would otherwise yield NaN or Infinity.
    """

    kind = "domain_error"


class InvalidFrequency(CalculationError):
    """The compounding frequency is not one of the supported keys."""

    kind = "invalid_frequency"

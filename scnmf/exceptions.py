"""
Exceptions and warnings raised by the joint factorization.
"""


class InvalidArgumentError(ValueError):
    """Raised when a numeric argument (rank, dropout probability, iterations) is out of range."""


class InvalidInputError(ValueError):
    """Raised when an input table or matrix cannot be used as factorization input."""


class NumericalInstabilityWarning(RuntimeWarning):
    """Emitted when the objective stops being finite (overflow for very large lambda)."""

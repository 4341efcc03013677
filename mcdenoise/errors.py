"""Exceptions raised by mcdenoise.

Optimizer termination (iteration cap, tolerances, stalled line search) is
never raised; it is reported through :class:`mcdenoise.optim.Summary`.
"""


class McDenoiseError(Exception):
    """Base exception for mcdenoise errors."""

    pass


class DimensionMismatchError(McDenoiseError, ValueError):
    """Raised when a buffer or matrix does not have the expected size."""

    def __init__(self, message, expected=None, actual=None):
        super(DimensionMismatchError, self).__init__(message)
        self.expected = expected
        self.actual = actual

    def __str__(self):
        base_msg = super(DimensionMismatchError, self).__str__()
        if self.expected is not None and self.actual is not None:
            return "{} (expected={}, actual={})".format(
                base_msg, self.expected, self.actual)
        return base_msg


class NonFiniteError(McDenoiseError, ValueError):
    """Raised when an input matrix holds NaN or Inf entries."""

    pass

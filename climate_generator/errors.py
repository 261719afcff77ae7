# climate_generator/errors.py

"""
================================================================================
CLIMATE GENERATION ERRORS
================================================================================
Exception types raised inside a stage while it computes. A stage never lets
these escape its generate() call: it logs them through its logger, leaves its
previously published outputs untouched and reports failure to the caller.

Data Contract:
---------------
- ClimateError: Common base class.
- MissingUpstreamData: An upstream stage or provider could not supply data.
  Logged as a warning.
- InvalidConfiguration: A setting is out of range or degenerate. Raised
  before any buffer is allocated. Logged as an error.
- DependencyCycleError: A stage was requested while it was still generating.
- ResolutionMismatch: Two inputs that must share a grid do not.
================================================================================
"""


class ClimateError(Exception):
    """Base class for all climate generation failures."""


class MissingUpstreamData(ClimateError):
    """Raised when an upstream field or external provider is unavailable."""


class InvalidConfiguration(ClimateError):
    """Raised when a setting makes the computation meaningless."""


class DependencyCycleError(InvalidConfiguration):
    """Raised when stage wiring would make a stage depend on itself."""


class ResolutionMismatch(ClimateError):
    """Raised when two grids that must be aligned have different shapes."""

    def __init__(self, expected: tuple, actual: tuple, what: str = "grid"):
        super().__init__(f"{what} resolution {actual} does not match expected {expected}")
        self.expected = expected
        self.actual = actual

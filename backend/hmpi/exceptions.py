"""
exceptions.py - Error Taxonomy
===============================

Only conditions that callers must act on are exceptions. Model
unavailability is never raised: the ML adapters report it through
sentinel records (see records.MLPrediction).
"""


class InputError(ValueError):
    """A sample record is missing a field or carries a non-numeric value."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class DegenerateComputationError(ArithmeticError):
    """An index is mathematically undefined for the given sample.

    Raised by the Enrichment Factor when the reference metal concentration
    is zero.
    """

    def __init__(self, message: str, index: str):
        super().__init__(message)
        self.index = index

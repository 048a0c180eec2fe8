"""
Analytics error taxonomy.
"""


class AnalyticsError(Exception):
    """Base class for failures while producing a metric."""


class DataAccessFailure(AnalyticsError):
    """The data source could not satisfy a fetch or count."""

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


class ComputationFault(AnalyticsError):
    """An internal invariant was violated while computing a metric."""

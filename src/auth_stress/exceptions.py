"""Harness exception classes.

Per-request failures never surface as exceptions; they are recorded as
error outcomes. Only the conditions below propagate to the caller.
"""


class StressHarnessError(Exception):
    """Base exception for the stress harness.

    Attributes:
        message: Error message
    """

    def __init__(self, message: str = "Stress harness error") -> None:
        self.message = message
        super().__init__(self.message)


class ConfigurationError(StressHarnessError):
    """Invalid scenario parameters.

    Raised before any request of the batch is issued, e.g. zero groups or a
    payload builder that throws.
    """

    def __init__(self, message: str = "Invalid scenario configuration") -> None:
        super().__init__(message=message)


class TargetUnavailableError(StressHarnessError):
    """The target service could not be reached (connection refused, DNS, timeout)."""

    def __init__(self, message: str = "Target service is unavailable") -> None:
        super().__init__(message=message)

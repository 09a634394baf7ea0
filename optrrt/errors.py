class PlannerError(Exception):
    """Base class for errors raised by the planners in this package."""


class ConfigurationError(PlannerError, ValueError):
    """Missing or invalid start states, goal, state space or parameters.

    Raised before any iteration runs.
    """


class AllocationError(PlannerError, MemoryError):
    """A new motion could not be stored (arena cap reached or memory exhausted).

    Aborts the current run; the tree keeps whatever was grown so far.
    """

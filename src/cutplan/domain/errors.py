"""Exception hierarchy for the cutting optimizer.

Only two conditions are raised as exceptions by the core:

- InvalidInputError: the normalized problem is malformed. Raised before any
  search work begins; the run produces no Solution.
- InvariantViolationError: a geometric or arithmetic invariant broke during
  search. This is a programming error and aborts the run.

Infeasible pieces, exhausted budgets and cancellations are normal outcomes
reported through ``Solution.status``.
"""

from __future__ import annotations


class CutPlanError(Exception):
    """Base class for all cutplan errors."""


class InvalidInputError(CutPlanError, ValueError):
    """Raised when a problem definition is rejected before search.

    Attributes:
        message: Human-readable description of the problem.
        field: Name of the offending field or entity, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class InvariantViolationError(CutPlanError, AssertionError):
    """Raised when a split or solution breaks a geometric invariant."""

"""
Ingestion Events
================

Records produced while a submission is in flight.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """
    One completed decode within a submission.

    Attributes:
        completed: Decodes finished so far (1..total)
        total: Decodes in the submission, fixed at start
    """

    completed: int
    total: int

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0

    @property
    def percent(self) -> int:
        """Completion as an integer percentage, rounded half-up."""
        return int(math.floor(self.fraction * 100 + 0.5))


@dataclass(frozen=True, slots=True)
class DecodeFailure:
    """A candidate dropped because its content could not be decoded."""

    name: str
    index: int
    reason: str = ""

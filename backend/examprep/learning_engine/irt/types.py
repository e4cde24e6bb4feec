"""IRT domain types.

Item parameters are modelled as a sum type: an item is either calibrated
(``ItemParameters``) or ``UNCALIBRATED``. Store rows with nullable a/b/c
columns are converted at the boundary with ``item_state``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final, Hashable, TypeAlias


@dataclass(frozen=True)
class ItemParameters:
    """Calibrated 3PL parameters: discrimination a, difficulty b, guessing c."""

    a: float
    b: float
    c: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.a) and self.a > 0):
            raise ValueError(f"Discrimination a must be finite and > 0, got {self.a}")
        if not math.isfinite(self.b):
            raise ValueError(f"Difficulty b must be finite, got {self.b}")
        if not (0.0 <= self.c < 1.0):
            raise ValueError(f"Guessing c must be in [0, 1), got {self.c}")


class Uncalibrated:
    """Marker for an item that has no parameters yet."""

    _instance: Uncalibrated | None = None

    def __new__(cls) -> Uncalibrated:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCALIBRATED"


UNCALIBRATED: Final = Uncalibrated()

ItemState: TypeAlias = ItemParameters | Uncalibrated
ItemId: TypeAlias = Hashable


def item_state(a: float | None, b: float | None, c: float | None) -> ItemState:
    """Convert nullable store columns into an ItemState."""
    if a is None or b is None or c is None:
        return UNCALIBRATED
    return ItemParameters(a=float(a), b=float(b), c=float(c))


@dataclass(frozen=True)
class Attempt:
    """A recorded answer, with the item parameters as calibrated at evaluation time."""

    item_id: ItemId
    is_correct: bool
    item: ItemState
    answered_at: datetime | None = None


@dataclass(frozen=True)
class CandidateItem:
    """Item offered to the adaptive selector."""

    item_id: ItemId
    item: ItemState


@dataclass(frozen=True)
class ItemResponse:
    """One response to an item, with the responder's ability if known."""

    is_correct: bool
    responder_theta: float | None


@dataclass(frozen=True)
class QuestionRecord:
    """Question as seen by the IRT core."""

    item_id: ItemId
    exam_id: Any
    item: ItemState = UNCALIBRATED
    calibration_sample: int | None = None
    last_calibrated_at: datetime | None = None


@dataclass(frozen=True)
class AbilityProfile:
    """Stored ability for a (user, exam) pair."""

    user_id: Any
    exam_id: Any
    theta: float
    standard_error: float
    attempts_count: int


@dataclass(frozen=True)
class AbilityEstimate:
    """Result of ability estimation."""

    theta: float
    standard_error: float
    attempts_count: int
    iterations: int = 0


@dataclass(frozen=True)
class ProgressionPoint:
    """Ability re-estimated after the first ``attempt_number`` attempts."""

    attempt_number: int
    theta: float
    standard_error: float


@dataclass
class CalibrationResult:
    """Calibrated parameters for a single item."""

    a: float
    b: float
    c: float
    sample_size: int
    flags: dict[str, Any] = field(default_factory=dict)

    @property
    def parameters(self) -> ItemParameters:
        return ItemParameters(a=self.a, b=self.b, c=self.c)

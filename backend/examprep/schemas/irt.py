"""
Pydantic schemas for IRT service results.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

EntityId = UUID | int | str


class AbilityOut(BaseModel):
    """Current ability estimate for a user on an exam."""

    user_id: EntityId
    exam_id: EntityId
    theta: float
    standard_error: float = Field(gt=0)
    attempts_count: int = Field(ge=0)
    confidence_level: Literal["High", "Medium", "Low"]


class AbilityProfileOut(BaseModel):
    """Stored ability profile after an upsert."""

    user_id: EntityId
    exam_id: EntityId
    theta: float
    standard_error: float = Field(gt=0)
    attempts_count: int = Field(ge=0)


class ProgressionPointOut(BaseModel):
    """Ability after the first attempt_number calibrated attempts."""

    attempt_number: int = Field(ge=1)
    theta: float
    standard_error: float


class BatchCalibrationOut(BaseModel):
    """Outcome counts of a batch calibration run."""

    exam_id: EntityId
    calibrated: int = 0
    skipped: int = 0
    failed: int = 0


class QuestionStatisticsOut(BaseModel):
    """IRT parameters and raw attempt statistics for a question."""

    question_id: EntityId
    a: Optional[float] = None
    b: Optional[float] = None
    c: Optional[float] = None
    calibration_sample: Optional[int] = None
    last_calibrated_at: Optional[datetime] = None
    total_attempts: int = Field(ge=0)
    correct_rate: float = Field(ge=0.0, le=1.0)

    @computed_field
    @property
    def is_calibrated(self) -> bool:
        return self.a is not None and self.b is not None and self.c is not None

"""
Repository interfaces consumed by the IRT service.

The IRT core does not own persistence. Attempts, ability profiles and
question parameters live in the surrounding service's stores, reached
through these narrow async protocols:
- AttemptRepository: calibrated attempts per user/exam, responses per item
- ProfileStore: ability profile read + upsert
- QuestionStore: item parameters, calibration candidates, selection pool
"""

from collections.abc import Collection, Sequence
from datetime import datetime
from typing import Any, Protocol

from examprep.learning_engine.irt.types import (
    AbilityProfile,
    Attempt,
    CandidateItem,
    ItemId,
    ItemParameters,
    ItemResponse,
    QuestionRecord,
)


class AttemptRepository(Protocol):
    async def find_calibrated_attempts(self, user_id: Any, exam_id: Any) -> Sequence[Attempt]:
        """Attempts of a user on an exam's calibrated items, oldest first."""
        ...

    async def find_attempts_for_item(self, item_id: ItemId) -> Sequence[ItemResponse]:
        """Every response to an item with the responder's theta for that exam (None if unknown)."""
        ...

    async def count_outcomes(self, item_id: ItemId) -> tuple[int, int]:
        """(total_attempts, correct_attempts) for an item."""
        ...


class ProfileStore(Protocol):
    async def get(self, user_id: Any, exam_id: Any) -> AbilityProfile | None:
        ...

    async def upsert(
        self,
        user_id: Any,
        exam_id: Any,
        theta: float,
        standard_error: float,
        attempts_count: int,
    ) -> AbilityProfile:
        """Create or overwrite the (user_id, exam_id) profile in one write."""
        ...


class QuestionStore(Protocol):
    async def get_question(self, item_id: ItemId) -> QuestionRecord | None:
        ...

    async def get_parameters(self, item_id: ItemId) -> ItemParameters | None:
        ...

    async def set_parameters(
        self,
        item_id: ItemId,
        a: float,
        b: float,
        c: float,
        sample_size: int,
        calibrated_at: datetime,
    ) -> None:
        """Persist a, b, c, sample size and timestamp atomically."""
        ...

    async def list_for_calibration(self, exam_id: Any, min_attempts: int) -> Sequence[ItemId]:
        """Active items of an exam with at least min_attempts recorded attempts."""
        ...

    async def list_calibrated_in_exam(
        self, exam_id: Any, exclude_ids: Collection[ItemId]
    ) -> Sequence[CandidateItem]:
        """Active calibrated items of an exam, minus exclude_ids."""
        ...

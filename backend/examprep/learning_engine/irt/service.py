"""
IRT Service - orchestration layer.

Coordinates:
- Ability estimation and profile upserts
- Single-item and batch calibration (bounded fan-out, per-item failure isolation)
- Maximum-information next-question selection
- Question statistics and ability progression

All numerical work is delegated to the pure modules; the only suspension
points are the collaborator calls.
"""

import asyncio
from collections import Counter
from collections.abc import Collection
from datetime import UTC, datetime
from typing import Any, Literal

from examprep.core.app_exceptions import QuestionNotFoundError
from examprep.core.config import settings
from examprep.core.logging import get_logger
from examprep.learning_engine.config import IRT_THETA_INIT
from examprep.learning_engine.irt import selection
from examprep.learning_engine.irt.ability import (
    ability_progression,
    confidence_level,
    estimate_ability,
)
from examprep.learning_engine.irt.calibration import CalibrationConfig, fit_item_parameters
from examprep.learning_engine.irt.repo import AttemptRepository, ProfileStore, QuestionStore
from examprep.learning_engine.irt.types import (
    AbilityEstimate,
    CalibrationResult,
    ItemId,
    ItemParameters,
)
from examprep.schemas.irt import (
    AbilityOut,
    AbilityProfileOut,
    BatchCalibrationOut,
    ProgressionPointOut,
    QuestionStatisticsOut,
)

logger = get_logger(__name__)

CalibrationOutcome = Literal["calibrated", "skipped", "failed"]


class IrtService:
    """IRT operations over the attempt, profile and question stores."""

    def __init__(
        self,
        attempts: AttemptRepository,
        profiles: ProfileStore,
        questions: QuestionStore,
        *,
        calibration_config: CalibrationConfig | None = None,
        min_sample: int | None = None,
        concurrency: int | None = None,
        progression_step: int | None = None,
    ):
        self.attempts = attempts
        self.profiles = profiles
        self.questions = questions
        self.calibration_config = calibration_config or CalibrationConfig()
        self.min_sample = settings.IRT_MIN_CALIBRATION_SAMPLE if min_sample is None else min_sample
        self.concurrency = settings.IRT_CALIBRATION_CONCURRENCY if concurrency is None else concurrency
        self.progression_step = settings.IRT_PROGRESSION_STEP if progression_step is None else progression_step
        if self.min_sample < 0:
            raise ValueError(f"min_sample must be >= 0, got {self.min_sample}")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")

    # ------------------------------------------------------------------
    # Ability
    # ------------------------------------------------------------------

    async def estimate_ability(self, user_id: Any, exam_id: Any) -> AbilityEstimate:
        """Estimate ability from the user's calibrated attempts on the exam."""
        attempts = await self.attempts.find_calibrated_attempts(user_id, exam_id)
        estimate = estimate_ability(attempts)
        logger.info(
            "Estimated ability for user %s on exam %s: theta=%.3f se=%.3f attempts=%d iterations=%d",
            user_id,
            exam_id,
            estimate.theta,
            estimate.standard_error,
            estimate.attempts_count,
            estimate.iterations,
        )
        return estimate

    async def get_ability(self, user_id: Any, exam_id: Any) -> AbilityOut:
        """Current estimate with a confidence label, without persisting it."""
        estimate = await self.estimate_ability(user_id, exam_id)
        return AbilityOut(
            user_id=user_id,
            exam_id=exam_id,
            theta=estimate.theta,
            standard_error=estimate.standard_error,
            attempts_count=estimate.attempts_count,
            confidence_level=confidence_level(estimate.standard_error),
        )

    async def update_user_profile(self, user_id: Any, exam_id: Any) -> AbilityProfileOut:
        """Re-estimate and upsert the (user, exam) ability profile."""
        estimate = await self.estimate_ability(user_id, exam_id)
        profile = await self.profiles.upsert(
            user_id,
            exam_id,
            estimate.theta,
            estimate.standard_error,
            estimate.attempts_count,
        )
        return AbilityProfileOut(
            user_id=profile.user_id,
            exam_id=profile.exam_id,
            theta=profile.theta,
            standard_error=profile.standard_error,
            attempts_count=profile.attempts_count,
        )

    async def ability_progression(self, user_id: Any, exam_id: Any) -> list[ProgressionPointOut]:
        """Ability trend every progression_step calibrated attempts."""
        attempts = await self.attempts.find_calibrated_attempts(user_id, exam_id)
        return [
            ProgressionPointOut(
                attempt_number=point.attempt_number,
                theta=point.theta,
                standard_error=point.standard_error,
            )
            for point in ability_progression(attempts, step=self.progression_step)
        ]

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    async def calibrate_item(
        self, question_id: ItemId, min_sample: int | None = None
    ) -> CalibrationResult | None:
        """
        Calibrate one item from responses of users with an ability estimate.

        Returns None when fewer than min_sample such responses exist. Does
        not persist; calibrate_batch does.
        """
        if min_sample is None:
            min_sample = self.min_sample
        responses = await self.attempts.find_attempts_for_item(question_id)
        result = await asyncio.to_thread(
            fit_item_parameters,
            responses,
            min_sample=min_sample,
            config=self.calibration_config,
        )
        if result is None:
            logger.warning(
                "Question %s has %d responses; need %d with known ability for calibration",
                question_id,
                len(responses),
                min_sample,
            )
            return None

        previous = await self.questions.get_parameters(question_id)
        if isinstance(previous, ItemParameters):
            logger.info(
                "Recalibrated question %s: a %.3f->%.3f b %.3f->%.3f c %.3f->%.3f n=%d",
                question_id,
                previous.a,
                result.a,
                previous.b,
                result.b,
                previous.c,
                result.c,
                result.sample_size,
            )
        return result

    async def calibrate_batch(self, exam_id: Any, min_sample: int | None = None) -> BatchCalibrationOut:
        """
        Calibrate every exam item with at least min_sample recorded attempts.

        Items are processed concurrently, at most self.concurrency at a time.
        Each success is persisted with one set_parameters call. A failing item
        is logged and counted; it never aborts the rest of the batch.
        """
        if min_sample is None:
            min_sample = self.min_sample
        logger.info("Starting batch calibration for exam %s (min_sample=%d)", exam_id, min_sample)

        item_ids = await self.questions.list_for_calibration(exam_id, min_sample)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _calibrate_one(item_id: ItemId) -> CalibrationOutcome:
            async with semaphore:
                try:
                    result = await self.calibrate_item(item_id, min_sample=min_sample)
                    if result is None:
                        return "skipped"
                    await self.questions.set_parameters(
                        item_id,
                        result.a,
                        result.b,
                        result.c,
                        result.sample_size,
                        datetime.now(UTC),
                    )
                    return "calibrated"
                except Exception:
                    logger.exception(
                        "Failed to calibrate question %s", item_id, extra={"item_id": str(item_id)}
                    )
                    return "failed"

        outcomes = Counter(await asyncio.gather(*(_calibrate_one(i) for i in item_ids)))
        summary = BatchCalibrationOut(
            exam_id=exam_id,
            calibrated=outcomes["calibrated"],
            skipped=outcomes["skipped"],
            failed=outcomes["failed"],
        )
        logger.info(
            "Batch calibration complete for exam %s: %d calibrated, %d skipped, %d failed",
            exam_id,
            summary.calibrated,
            summary.skipped,
            summary.failed,
        )
        return summary

    # ------------------------------------------------------------------
    # Selection and statistics
    # ------------------------------------------------------------------

    async def next_question(
        self,
        user_id: Any,
        exam_id: Any,
        exclude_ids: Collection[ItemId] = (),
    ) -> ItemId | None:
        """Most informative unseen calibrated item at the user's stored ability."""
        profile = await self.profiles.get(user_id, exam_id)
        theta = profile.theta if profile is not None else IRT_THETA_INIT.value
        candidates = await self.questions.list_calibrated_in_exam(exam_id, exclude_ids)
        return selection.next_question(theta, candidates, exclude_ids)

    async def question_statistics(self, question_id: ItemId) -> QuestionStatisticsOut:
        """Parameters and correct rate for a question; raises QuestionNotFoundError."""
        question = await self.questions.get_question(question_id)
        if question is None:
            raise QuestionNotFoundError(question_id)

        total, correct = await self.attempts.count_outcomes(question_id)
        item = question.item
        calibrated = isinstance(item, ItemParameters)
        return QuestionStatisticsOut(
            question_id=question_id,
            a=item.a if calibrated else None,
            b=item.b if calibrated else None,
            c=item.c if calibrated else None,
            calibration_sample=question.calibration_sample,
            last_calibrated_at=question.last_calibrated_at,
            total_attempts=total,
            correct_rate=correct / total if total else 0.0,
        )

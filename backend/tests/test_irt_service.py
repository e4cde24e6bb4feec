"""Tests for the IRT service layer over in-memory stores."""

import logging

import pytest

from examprep.core.app_exceptions import NotFoundError, QuestionNotFoundError
from examprep.core.config import settings
from examprep.learning_engine.irt import service as service_module
from examprep.learning_engine.irt.ability import confidence_level
from examprep.learning_engine.irt.service import IrtService
from examprep.learning_engine.irt.types import (
    UNCALIBRATED,
    Attempt,
    ItemParameters,
    ItemResponse,
    QuestionRecord,
)
from tests.helpers.data import attempt, logistic_responses


def _seed_exam(question_store, attempt_repo, exam_id="exam-1"):
    """
    Three questions on one exam:
    - q-ready: 40 responses, all with responder theta
    - q-partial: 40 responses, only 25 with responder theta
    - q-sparse: 10 responses (below the listing threshold)
    """
    for item_id in ("q-ready", "q-partial", "q-sparse"):
        question_store.add_question(QuestionRecord(item_id=item_id, exam_id=exam_id))

    attempt_repo.add_responses("q-ready", logistic_responses(n=40))
    attempt_repo.add_responses(
        "q-partial",
        logistic_responses(n=25)
        + [ItemResponse(is_correct=i % 2 == 0, responder_theta=None) for i in range(15)],
    )
    attempt_repo.add_responses("q-sparse", logistic_responses(n=10))


def _seed_pool(question_store, exam_id="exam-1", c=0.0):
    for item_id, b in (("q-low", -1.0), ("q-mid", 0.5), ("q-high", 2.0)):
        question_store.add_question(
            QuestionRecord(item_id=item_id, exam_id=exam_id, item=ItemParameters(a=1.0, b=b, c=c))
        )


class TestAbility:
    @pytest.mark.asyncio
    async def test_estimate_without_attempts(self, irt_service):
        estimate = await irt_service.estimate_ability("user-1", "exam-1")
        assert estimate.theta == 0.0
        assert estimate.standard_error == 999.0
        assert estimate.attempts_count == 0

    @pytest.mark.asyncio
    async def test_estimate_uses_only_calibrated_attempts(self, irt_service, attempt_repo):
        for a in (attempt(True, 0.0), attempt(True, 0.5), attempt(False, 1.5)):
            attempt_repo.add_attempt("user-1", "exam-1", a)
        attempt_repo.add_attempt(
            "user-1", "exam-1", Attempt(item_id="q-raw", is_correct=False, item=UNCALIBRATED)
        )

        estimate = await irt_service.estimate_ability("user-1", "exam-1")
        assert estimate.attempts_count == 3
        assert -1 < estimate.theta < 3

    @pytest.mark.asyncio
    async def test_estimate_is_scoped_to_exam(self, irt_service, attempt_repo):
        attempt_repo.add_attempt("user-1", "exam-2", attempt(True, 0.0))
        estimate = await irt_service.estimate_ability("user-1", "exam-1")
        assert estimate.attempts_count == 0

    @pytest.mark.asyncio
    async def test_get_ability_labels_confidence(self, irt_service, attempt_repo):
        for a in (attempt(True, 0.0), attempt(False, 0.5)):
            attempt_repo.add_attempt("user-1", "exam-1", a)

        ability = await irt_service.get_ability("user-1", "exam-1")
        assert ability.user_id == "user-1"
        assert ability.attempts_count == 2
        assert ability.confidence_level == confidence_level(ability.standard_error)
        assert ability.confidence_level == "Low"

    @pytest.mark.asyncio
    async def test_get_ability_does_not_persist(self, irt_service, profile_store):
        await irt_service.get_ability("user-1", "exam-1")
        assert profile_store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_update_user_profile_upserts_once(self, irt_service, attempt_repo, profile_store):
        for a in (attempt(True, 0.0), attempt(True, 0.5), attempt(False, 1.5)):
            attempt_repo.add_attempt("user-1", "exam-1", a)

        profile = await irt_service.update_user_profile("user-1", "exam-1")
        estimate = await irt_service.estimate_ability("user-1", "exam-1")

        assert profile_store.upsert_calls == 1
        assert profile.theta == pytest.approx(estimate.theta)
        assert profile.standard_error == pytest.approx(estimate.standard_error)
        assert profile.attempts_count == 3
        stored = await profile_store.get("user-1", "exam-1")
        assert stored.theta == pytest.approx(estimate.theta)

    @pytest.mark.asyncio
    async def test_update_user_profile_overwrites(self, irt_service, attempt_repo, profile_store):
        attempt_repo.add_attempt("user-1", "exam-1", attempt(True, 0.0))
        first = await irt_service.update_user_profile("user-1", "exam-1")
        attempt_repo.add_attempt("user-1", "exam-1", attempt(False, 0.0))
        second = await irt_service.update_user_profile("user-1", "exam-1")

        assert profile_store.upsert_calls == 2
        assert second.attempts_count == 2
        assert second.theta < first.theta
        assert len(profile_store.profiles) == 1

    @pytest.mark.asyncio
    async def test_ability_progression(self, irt_service, attempt_repo):
        for i in range(20):
            attempt_repo.add_attempt("user-1", "exam-1", attempt(i < 15, 0.0))

        points = await irt_service.ability_progression("user-1", "exam-1")
        assert [p.attempt_number for p in points] == [5, 10, 15, 20]
        assert points[-1].theta < points[0].theta

    @pytest.mark.asyncio
    async def test_ability_progression_empty(self, irt_service):
        assert await irt_service.ability_progression("user-1", "exam-1") == []


class TestCalibration:
    @pytest.mark.asyncio
    async def test_calibrate_item(self, irt_service, attempt_repo, question_store):
        question_store.add_question(QuestionRecord(item_id="q1", exam_id="exam-1"))
        attempt_repo.add_responses("q1", logistic_responses(n=40))

        result = await irt_service.calibrate_item("q1")
        assert result is not None
        assert result.a > 0
        assert 0 < result.c < 1
        assert result.sample_size == 40
        # calibrate_item does not persist
        assert question_store.writes == []

    @pytest.mark.asyncio
    async def test_calibrate_item_insufficient(self, irt_service, attempt_repo, question_store):
        question_store.add_question(QuestionRecord(item_id="q1", exam_id="exam-1"))
        attempt_repo.add_responses("q1", logistic_responses(n=10))
        assert await irt_service.calibrate_item("q1") is None

    @pytest.mark.asyncio
    async def test_calibrate_item_insufficient_warns_once(self, irt_service, attempt_repo, question_store, caplog):
        question_store.add_question(QuestionRecord(item_id="q1", exam_id="exam-1"))
        attempt_repo.add_responses("q1", logistic_responses(n=10))

        with caplog.at_level(logging.DEBUG, logger="examprep"):
            assert await irt_service.calibrate_item("q1") is None

        warnings = [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].name == "examprep.learning_engine.irt.service"
        assert "q1" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_calibrate_item_explicit_zero_min_sample(self, irt_service, attempt_repo, question_store):
        question_store.add_question(QuestionRecord(item_id="q1", exam_id="exam-1"))
        attempt_repo.add_responses("q1", logistic_responses(n=10))

        result = await irt_service.calibrate_item("q1", min_sample=0)
        assert result is not None
        assert result.sample_size == 10

    @pytest.mark.asyncio
    async def test_calibrate_item_recalibration(self, irt_service, attempt_repo, question_store):
        question_store.add_question(
            QuestionRecord(item_id="q1", exam_id="exam-1", item=ItemParameters(a=1.0, b=2.0, c=0.2))
        )
        attempt_repo.add_responses("q1", logistic_responses(n=40))
        result = await irt_service.calibrate_item("q1")
        assert result is not None
        assert result.b < 2.0

    @pytest.mark.asyncio
    async def test_calibrate_batch_counts(self, irt_service, attempt_repo, question_store):
        _seed_exam(question_store, attempt_repo)

        summary = await irt_service.calibrate_batch("exam-1")

        assert summary.exam_id == "exam-1"
        assert (summary.calibrated, summary.skipped, summary.failed) == (1, 1, 0)
        assert len(question_store.writes) == 1

        item_id, a, b, c, sample_size, calibrated_at = question_store.writes[0]
        assert item_id == "q-ready"
        assert sample_size == 40
        assert calibrated_at.tzinfo is not None
        stored = question_store.questions["q-ready"]
        assert stored.item == ItemParameters(a=a, b=b, c=c)
        assert stored.calibration_sample == 40
        assert question_store.questions["q-partial"].item is UNCALIBRATED
        assert question_store.questions["q-sparse"].item is UNCALIBRATED

    @pytest.mark.asyncio
    async def test_calibrate_batch_isolates_failures(self, irt_service, attempt_repo, question_store):
        _seed_exam(question_store, attempt_repo)
        attempt_repo.failing_items.add("q-ready")

        summary = await irt_service.calibrate_batch("exam-1")

        assert (summary.calibrated, summary.skipped, summary.failed) == (0, 1, 1)
        assert question_store.writes == []

    @pytest.mark.asyncio
    async def test_calibrate_batch_other_exam_untouched(self, irt_service, attempt_repo, question_store):
        _seed_exam(question_store, attempt_repo)
        summary = await irt_service.calibrate_batch("exam-2")
        assert (summary.calibrated, summary.skipped, summary.failed) == (0, 0, 0)

    @pytest.mark.asyncio
    async def test_calibrate_batch_min_sample_override(self, irt_service, attempt_repo, question_store):
        _seed_exam(question_store, attempt_repo)
        summary = await irt_service.calibrate_batch("exam-1", min_sample=10)
        assert (summary.calibrated, summary.skipped, summary.failed) == (3, 0, 0)


class TestSelection:
    @pytest.mark.asyncio
    async def test_next_question_default_ability(self, irt_service, question_store):
        _seed_pool(question_store)
        assert await irt_service.next_question("user-1", "exam-1") == "q-mid"

    @pytest.mark.asyncio
    async def test_next_question_uses_stored_profile(self, irt_service, question_store, profile_store):
        _seed_pool(question_store)
        await profile_store.upsert("user-1", "exam-1", 2.0, 0.4, 20)
        assert await irt_service.next_question("user-1", "exam-1") == "q-high"

    @pytest.mark.asyncio
    async def test_next_question_excludes_seen(self, irt_service, question_store):
        _seed_pool(question_store)
        chosen = await irt_service.next_question("user-1", "exam-1", exclude_ids=["q-mid"])
        assert chosen in ("q-low", "q-high")

    @pytest.mark.asyncio
    async def test_next_question_skips_uncalibrated(self, irt_service, question_store):
        question_store.add_question(QuestionRecord(item_id="q-raw", exam_id="exam-1"))
        assert await irt_service.next_question("user-1", "exam-1") is None

    @pytest.mark.asyncio
    async def test_next_question_exhausted(self, irt_service, question_store):
        _seed_pool(question_store)
        chosen = await irt_service.next_question(
            "user-1", "exam-1", exclude_ids=["q-low", "q-mid", "q-high"]
        )
        assert chosen is None


class TestQuestionStatistics:
    @pytest.mark.asyncio
    async def test_unknown_question_raises(self, irt_service):
        with pytest.raises(QuestionNotFoundError) as exc_info:
            await irt_service.question_statistics("missing")
        assert exc_info.value.message == "Question missing not found"
        assert exc_info.value.code == "NOT_FOUND"
        assert isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.to_dict()["details"] == {"question_id": "missing"}

    @pytest.mark.asyncio
    async def test_uncalibrated_without_attempts(self, irt_service, question_store):
        question_store.add_question(QuestionRecord(item_id="q1", exam_id="exam-1"))
        stats = await irt_service.question_statistics("q1")
        assert stats.total_attempts == 0
        assert stats.correct_rate == 0.0
        assert stats.a is None and stats.b is None and stats.c is None
        assert not stats.is_calibrated
        assert stats.model_dump()["is_calibrated"] is False

    @pytest.mark.asyncio
    async def test_correct_rate(self, irt_service, attempt_repo, question_store):
        question_store.add_question(
            QuestionRecord(
                item_id="q1",
                exam_id="exam-1",
                item=ItemParameters(a=1.2, b=0.3, c=0.15),
                calibration_sample=40,
            )
        )
        attempt_repo.add_responses(
            "q1",
            [ItemResponse(is_correct=i < 30, responder_theta=0.0) for i in range(40)],
        )

        stats = await irt_service.question_statistics("q1")
        assert stats.total_attempts == 40
        assert stats.correct_rate == pytest.approx(0.75)
        assert (stats.a, stats.b, stats.c) == (1.2, 0.3, 0.15)
        assert stats.calibration_sample == 40
        assert stats.is_calibrated
        assert stats.model_dump()["is_calibrated"] is True
        assert '"is_calibrated":true' in stats.model_dump_json()


class TestServiceConstruction:
    def test_explicit_limits_are_kept(self, attempt_repo, profile_store, question_store):
        service = IrtService(
            attempt_repo,
            profile_store,
            question_store,
            min_sample=0,
            concurrency=1,
            progression_step=1,
        )
        assert service.min_sample == 0
        assert service.concurrency == 1
        assert service.progression_step == 1

    def test_omitted_limits_come_from_settings(self, attempt_repo, profile_store, question_store):
        service = IrtService(attempt_repo, profile_store, question_store)
        assert service.min_sample == settings.IRT_MIN_CALIBRATION_SAMPLE
        assert service.concurrency == settings.IRT_CALIBRATION_CONCURRENCY
        assert service.progression_step == settings.IRT_PROGRESSION_STEP

    @pytest.mark.parametrize("kwargs", [{"min_sample": -1}, {"concurrency": 0}])
    def test_invalid_limits_rejected(self, attempt_repo, profile_store, question_store, kwargs):
        with pytest.raises(ValueError):
            IrtService(attempt_repo, profile_store, question_store, **kwargs)

    def test_service_logger_name(self):
        assert service_module.logger.name == "examprep.learning_engine.irt.service"

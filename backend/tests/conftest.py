"""Pytest configuration and shared fixtures."""

import pytest

from examprep.learning_engine.irt.service import IrtService
from tests.helpers.stores import (
    InMemoryAttemptRepository,
    InMemoryProfileStore,
    InMemoryQuestionStore,
)


@pytest.fixture
def attempt_repo() -> InMemoryAttemptRepository:
    return InMemoryAttemptRepository()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def question_store(attempt_repo) -> InMemoryQuestionStore:
    return InMemoryQuestionStore(attempt_repo)


@pytest.fixture
def irt_service(attempt_repo, profile_store, question_store) -> IrtService:
    """Service wired to in-memory stores with explicit limits."""
    return IrtService(
        attempt_repo,
        profile_store,
        question_store,
        min_sample=30,
        concurrency=2,
        progression_step=5,
    )
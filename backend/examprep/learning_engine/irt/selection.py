"""
Maximum-information adaptive item selection.

The selector applies both preconditions itself: only calibrated items
that are not in the exclusion set are eligible.
"""

import logging
from collections.abc import Collection, Iterable

from examprep.learning_engine.irt.prob import information
from examprep.learning_engine.irt.types import CandidateItem, ItemId, ItemParameters

logger = logging.getLogger(__name__)


def eligible_candidates(
    candidate_items: Iterable[CandidateItem],
    exclude_ids: Collection[ItemId] = (),
) -> list[tuple[ItemId, ItemParameters]]:
    """Calibrated candidates not in exclude_ids, in input order."""
    excluded = set(exclude_ids)
    return [
        (candidate.item_id, candidate.item)
        for candidate in candidate_items
        if isinstance(candidate.item, ItemParameters) and candidate.item_id not in excluded
    ]


def next_question(
    theta: float,
    candidate_items: Iterable[CandidateItem],
    exclude_ids: Collection[ItemId] = (),
) -> ItemId | None:
    """
    Pick the eligible item with maximum Fisher information at theta.

    Returns None when nothing is eligible. Ties go to the first maximum in
    iteration order.
    """
    eligible = eligible_candidates(candidate_items, exclude_ids)
    if not eligible:
        return None

    best_id: ItemId | None = None
    best_info = -1.0
    for item_id, item in eligible:
        info = information(theta, item.a, item.b, item.c)
        if info > best_info:
            best_info = info
            best_id = item_id

    logger.debug(
        "Selected item %s with information %.3f for ability %.3f (%d eligible)",
        best_id,
        best_info,
        theta,
        len(eligible),
    )
    return best_id

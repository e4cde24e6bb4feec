"""IRT (Item Response Theory) subsystem: 3PL ability estimation, calibration and adaptive selection.

The numerical modules are pure and storage-free; IrtService binds them to
the attempt, profile and question stores.
"""

from examprep.learning_engine.irt.ability import (
    ability_progression,
    confidence_level,
    estimate_ability,
)
from examprep.learning_engine.irt.calibration import CalibrationConfig, fit_item_parameters
from examprep.learning_engine.irt.prob import information, information_curve, p_3pl, probability
from examprep.learning_engine.irt.selection import next_question
from examprep.learning_engine.irt.service import IrtService
from examprep.learning_engine.irt.types import (
    UNCALIBRATED,
    AbilityEstimate,
    Attempt,
    CalibrationResult,
    CandidateItem,
    ItemParameters,
    ItemResponse,
    ItemState,
    ProgressionPoint,
    QuestionRecord,
    Uncalibrated,
    item_state,
)

__all__ = [
    "UNCALIBRATED",
    "AbilityEstimate",
    "Attempt",
    "CalibrationConfig",
    "CalibrationResult",
    "CandidateItem",
    "IrtService",
    "ItemParameters",
    "ItemResponse",
    "ItemState",
    "ProgressionPoint",
    "QuestionRecord",
    "Uncalibrated",
    "ability_progression",
    "confidence_level",
    "estimate_ability",
    "fit_item_parameters",
    "information",
    "information_curve",
    "item_state",
    "next_question",
    "p_3pl",
    "probability",
]

"""
Learning Engine Configuration - Central Constants Registry.

All constants used by the IRT algorithms MUST be defined here with proper provenance.
No magic numbers allowed in algorithm implementations.

Each constant includes:
- value: The actual constant value
- source: Citation (paper, library docs, heuristic rationale, etc.)
- notes: Rationale and context
- validated: Whether the value has been validated against source
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SourcedValue:
    """
    A constant value with documented provenance.

    All learning algorithm constants must use this type to enforce documentation.
    """

    value: Any
    source: str
    notes: str = ""
    validated: bool = False

    def __post_init__(self):
        if not self.source or self.source.strip() == "":
            raise ValueError(f"SourcedValue must have non-empty source. Got: {self.source}")


# =============================================================================
# IRT Probability Model (3PL)
# =============================================================================

IRT_EXPONENT_CLAMP = SourcedValue(
    value=35.0,
    source="IEEE-754 double: exp(35) ~ 1.6e15 keeps 1 + exp(x) well inside range",
    notes="The logistic exponent a*(theta - b) is clamped to [-35, 35] before exp(). "
    "Beyond this range the probability is already within 1e-15 of its asymptote.",
    validated=True,
)

IRT_DEFAULT_GUESSING = SourcedValue(
    value=0.2,
    source="Guessing floor for 5-option MCQ: 1/K with K=5",
    notes="Start value for c during calibration and the centre of the c prior.",
    validated=True,
)

# =============================================================================
# IRT Ability Estimation (Newton-Raphson / Fisher scoring MLE)
# =============================================================================

IRT_THETA_MIN = SourcedValue(
    value=-4.0,
    source="Conventional reporting range of the standard-normal ability scale",
    notes="Lower clamp applied after every update. All-incorrect histories have no finite MLE "
    "and would otherwise diverge to -inf.",
    validated=True,
)

IRT_THETA_MAX = SourcedValue(
    value=4.0,
    source="Conventional reporting range of the standard-normal ability scale",
    notes="Upper clamp applied after every update. All-correct histories have no finite MLE.",
    validated=True,
)

IRT_THETA_INIT = SourcedValue(
    value=0.0,
    source="Population mean of the standardized ability scale",
    notes="Starting point for estimation and the ability assumed when no profile exists.",
    validated=True,
)

IRT_MAX_ITERATIONS = SourcedValue(
    value=50,
    source="Heuristic iteration cap; Fisher scoring settles in a handful of steps on typical histories",
    notes="Guarantees termination independent of input degeneracy.",
    validated=True,
)

IRT_CONVERGENCE_TOLERANCE = SourcedValue(
    value=1e-4,
    source="Standard numerical practice for scalar Newton iterations",
    notes="Stop when |theta_new - theta_old| falls below this value.",
    validated=False,
)

IRT_INFORMATION_EPSILON = SourcedValue(
    value=1e-10,
    source="Standard numerical practice for guarding divisions",
    notes="Total information at or below this is treated as zero (stop iterating, sentinel SE).",
    validated=True,
)

IRT_MAX_STEP_HALVINGS = SourcedValue(
    value=10,
    source="Standard step-halving line search for Newton-type likelihood ascent",
    notes="A scoring step is halved until the 3PL log-likelihood does not decrease; "
    "after this many halvings the iteration stops at the current theta.",
    validated=True,
)

IRT_THETA_SCAN_STEP = SourcedValue(
    value=0.005,
    source="Heuristic grid spacing for a global log-likelihood scan of the bounded theta range",
    notes="The 3PL likelihood can be multimodal for short histories. The estimator scans "
    "[IRT_THETA_MIN, IRT_THETA_MAX] at this spacing and restarts scoring from the best grid "
    "point when it beats the scoring result.",
    validated=False,
)

IRT_PROBABILITY_EPSILON = SourcedValue(
    value=1e-12,
    source="Standard numerical practice: clip probabilities away from 0 and 1 before log()",
    notes="Used by the ability log-likelihood and the calibration objective.",
    validated=True,
)

IRT_SE_SENTINEL = SourcedValue(
    value=999.0,
    source="Standard reporting convention for 'no information yet'",
    notes="Returned as standard error when there are no usable attempts or no information.",
    validated=True,
)

IRT_CONFIDENCE_HIGH_SE = SourcedValue(
    value=0.3,
    source="Heuristic confidence label thresholds for reporting (SE < 0.3 => High)",
    notes="Roughly reliability 0.91 on a unit-variance ability scale.",
    validated=False,
)

IRT_CONFIDENCE_MEDIUM_SE = SourcedValue(
    value=0.5,
    source="Heuristic confidence label thresholds for reporting (SE < 0.5 => Medium)",
    notes="Roughly reliability 0.75 on a unit-variance ability scale.",
    validated=False,
)

# =============================================================================
# IRT Item Calibration
# =============================================================================

IRT_MIN_CALIBRATION_SAMPLE = SourcedValue(
    value=30,
    source="Heuristic minimum sample for a stable single-item 3PL calibration",
    notes="Below this many responses with a known responder theta, calibration returns None. "
    "Overridable per call and via settings.IRT_MIN_CALIBRATION_SAMPLE.",
    validated=False,
)

IRT_A_MIN = SourcedValue(
    value=0.2,
    source="Typical discrimination range 0.3-3.0 (Baker, The Basics of IRT), widened slightly",
    notes="Lower clamp for calibrated a. Also absorbs samples with negative ability-outcome "
    "association, which a 3PL item with a > 0 cannot represent.",
    validated=False,
)

IRT_A_MAX = SourcedValue(
    value=3.0,
    source="Typical discrimination range 0.3-3.0 (Baker, The Basics of IRT)",
    notes="Upper clamp for calibrated a; larger values are almost always overfitting.",
    validated=False,
)

IRT_A_INIT = SourcedValue(
    value=1.0,
    source="Rasch-equivalent unit discrimination",
    notes="Heuristic start for a when the sample cannot separate correct/incorrect groups.",
    validated=True,
)

IRT_A_SEPARATION_SCALE = SourcedValue(
    value=1.5,
    source="Moment heuristic for start values: a = 1.5 / |mean_correct - mean_incorrect|",
    notes="Used only for the heuristic start value of a.",
    validated=False,
)

IRT_B_MIN = SourcedValue(
    value=-4.0,
    source="Matches the ability clamp range",
    notes="Difficulty outside the ability range carries no usable information.",
    validated=True,
)

IRT_B_MAX = SourcedValue(
    value=4.0,
    source="Matches the ability clamp range",
    notes="Difficulty outside the ability range carries no usable information.",
    validated=True,
)

IRT_C_MAX = SourcedValue(
    value=0.35,
    source="Guessing rarely exceeds 1/K + margin for 3-5 option MCQ (Lord, 1980)",
    notes="c is reparameterized as sigmoid(raw) * C_MAX, so calibrated c lies in (0, 0.35).",
    validated=False,
)

IRT_C_RAW_BOUND = SourcedValue(
    value=10.0,
    source="Heuristic box for the logit-scale guessing parameter in calibration",
    notes="sigmoid(+-10) keeps c strictly inside (0, IRT_C_MAX) so c never collapses to 0.",
    validated=False,
)

IRT_PRIOR_LOG_A_SD = SourcedValue(
    value=0.5,
    source="BILOG-MG default lognormal prior on a: log(a) ~ N(0, 0.5)",
    notes="Keeps a finite for samples with no ability-outcome association.",
    validated=True,
)

IRT_PRIOR_B_SD = SourcedValue(
    value=2.0,
    source="BILOG-MG style weak normal prior on b: b ~ N(0, 2)",
    notes="Keeps b finite for all-correct and all-incorrect samples.",
    validated=False,
)

IRT_PRIOR_C_RAW_SD = SourcedValue(
    value=1.0,
    source="Weak normal prior on the logit-scale guessing parameter",
    notes="Centred so that the prior mode of c equals IRT_DEFAULT_GUESSING.",
    validated=False,
)

IRT_FIT_MAXITER = SourcedValue(
    value=500,
    source="SciPy L-BFGS-B iteration cap; three free parameters converge in far fewer",
    notes="Cap for the per-item MAP optimization.",
    validated=False,
)

IRT_FIT_FTOL = SourcedValue(
    value=1e-9,
    source="SciPy L-BFGS-B relative objective tolerance",
    notes="Objective is a sum of at least IRT_MIN_CALIBRATION_SAMPLE log terms.",
    validated=False,
)

IRT_LOW_DISCRIMINATION_THRESHOLD = SourcedValue(
    value=0.3,
    source="Items with a < 0.3 are conventionally flagged as poorly discriminating",
    notes="Adds flags['low_discrimination'] to calibration results for review queues.",
    validated=False,
)

# =============================================================================
# Reporting
# =============================================================================

IRT_INFO_CURVE_GRID = SourcedValue(
    value=(-3.0, 3.0, 31),
    source="Test information reporting grid used by calibration summaries",
    notes="(start, stop, points) for numpy.linspace.",
    validated=True,
)


# =============================================================================
# Convenience Accessors
# =============================================================================


def get_ability_defaults() -> dict:
    """Get ability estimation defaults as a dict."""
    return {
        "theta_init": IRT_THETA_INIT.value,
        "theta_min": IRT_THETA_MIN.value,
        "theta_max": IRT_THETA_MAX.value,
        "max_iterations": IRT_MAX_ITERATIONS.value,
        "tolerance": IRT_CONVERGENCE_TOLERANCE.value,
        "info_epsilon": IRT_INFORMATION_EPSILON.value,
        "max_step_halvings": IRT_MAX_STEP_HALVINGS.value,
        "theta_scan_step": IRT_THETA_SCAN_STEP.value,
        "se_sentinel": IRT_SE_SENTINEL.value,
    }


def get_calibration_defaults() -> dict:
    """Get item calibration defaults as a dict."""
    return {
        "min_sample": IRT_MIN_CALIBRATION_SAMPLE.value,
        "a_min": IRT_A_MIN.value,
        "a_max": IRT_A_MAX.value,
        "a_init": IRT_A_INIT.value,
        "b_min": IRT_B_MIN.value,
        "b_max": IRT_B_MAX.value,
        "c_init": IRT_DEFAULT_GUESSING.value,
        "c_max": IRT_C_MAX.value,
        "c_raw_bound": IRT_C_RAW_BOUND.value,
        "probability_epsilon": IRT_PROBABILITY_EPSILON.value,
        "prior_log_a_sd": IRT_PRIOR_LOG_A_SD.value,
        "prior_b_sd": IRT_PRIOR_B_SD.value,
        "prior_c_raw_sd": IRT_PRIOR_C_RAW_SD.value,
        "maxiter": IRT_FIT_MAXITER.value,
        "ftol": IRT_FIT_FTOL.value,
        "low_discrimination_threshold": IRT_LOW_DISCRIMINATION_THRESHOLD.value,
    }

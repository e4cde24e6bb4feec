"""
IRT ability estimation.

Pure functions implementing:
- Maximum-likelihood theta via Fisher scoring (Newton-Raphson with expected information)
  with step halving, checked against a scan of the bounded theta range
- Standard error from total test information
- Ability progression at fixed attempt intervals
- Confidence label for a standard error

Termination is guaranteed by a hard iteration cap and a bounded theta range:
all-correct and all-incorrect histories have no finite MLE.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from typing import Literal

import numpy as np

from examprep.learning_engine.config import (
    IRT_CONFIDENCE_HIGH_SE,
    IRT_CONFIDENCE_MEDIUM_SE,
    IRT_CONVERGENCE_TOLERANCE,
    IRT_INFORMATION_EPSILON,
    IRT_MAX_ITERATIONS,
    IRT_MAX_STEP_HALVINGS,
    IRT_PROBABILITY_EPSILON,
    IRT_SE_SENTINEL,
    IRT_THETA_INIT,
    IRT_THETA_MAX,
    IRT_THETA_MIN,
    IRT_THETA_SCAN_STEP,
)
from examprep.learning_engine.irt.prob import information, p_3pl, probability
from examprep.learning_engine.irt.types import (
    AbilityEstimate,
    Attempt,
    ItemParameters,
    ProgressionPoint,
    item_state,
)

logger = logging.getLogger(__name__)

ConfidenceLevel = Literal["High", "Medium", "Low"]

# (is_correct, a, b, c) with nullable parameters, as read from attempt rows
AttemptTuple = tuple[bool, float | None, float | None, float | None]

Responses = Sequence[tuple[bool, ItemParameters]]


def clamp_theta(theta: float) -> float:
    """Clamp theta to [IRT_THETA_MIN, IRT_THETA_MAX]."""
    return max(IRT_THETA_MIN.value, min(IRT_THETA_MAX.value, theta))


def usable_responses(
    attempts: Iterable[Attempt | AttemptTuple],
) -> list[tuple[bool, ItemParameters]]:
    """
    Keep attempts on calibrated items, in input order.

    Accepts Attempt objects or (is_correct, a, b, c) tuples.
    """
    out: list[tuple[bool, ItemParameters]] = []
    for attempt in attempts:
        if isinstance(attempt, Attempt):
            is_correct, item = attempt.is_correct, attempt.item
        else:
            is_correct, a, b, c = attempt
            item = item_state(a, b, c)
        if isinstance(item, ItemParameters):
            out.append((bool(is_correct), item))
    return out


def score_and_information(
    theta: float,
    responses: Responses,
) -> tuple[float, float]:
    """
    First derivative of the 3PL log-likelihood and total Fisher information at theta.

    Score term per item:
        a * (u - P) * (P - c) / (P * (1 - c))
    """
    score = 0.0
    total_info = 0.0
    for is_correct, item in responses:
        p = probability(theta, item.a, item.b, item.c)
        if p <= 0.0 or p >= 1.0:
            continue
        u = 1.0 if is_correct else 0.0
        score += item.a * (u - p) * (p - item.c) / (p * (1.0 - item.c))
        total_info += information(theta, item.a, item.b, item.c)
    return score, total_info


def log_likelihood_grid(thetas: np.ndarray, responses: Responses) -> np.ndarray:
    """3PL log-likelihood of a response history at each theta in thetas."""
    thetas = np.asarray(thetas, dtype=np.float64)
    y = np.array([1.0 if is_correct else 0.0 for is_correct, _ in responses])
    a = np.array([item.a for _, item in responses])
    b = np.array([item.b for _, item in responses])
    c = np.array([item.c for _, item in responses])

    eps = IRT_PROBABILITY_EPSILON.value
    p = np.clip(p_3pl(thetas[:, None], a[None, :], b[None, :], c[None, :]), eps, 1.0 - eps)
    return np.sum(y * np.log(p) + (1.0 - y) * np.log(1.0 - p), axis=1)


def log_likelihood(theta: float, responses: Responses) -> float:
    return float(log_likelihood_grid(np.array([theta]), responses)[0])


def theta_scan_grid() -> np.ndarray:
    """Evenly spaced thetas covering [IRT_THETA_MIN, IRT_THETA_MAX], both ends included."""
    lo, hi = IRT_THETA_MIN.value, IRT_THETA_MAX.value
    points = int(round((hi - lo) / IRT_THETA_SCAN_STEP.value)) + 1
    return np.linspace(lo, hi, points)


def standard_error(total_information: float) -> float:
    """SE = 1 / sqrt(I); the sentinel when there is no information."""
    if not math.isfinite(total_information) or total_information <= IRT_INFORMATION_EPSILON.value:
        return IRT_SE_SENTINEL.value
    return 1.0 / math.sqrt(total_information)


def estimate_ability(
    attempts: Iterable[Attempt | AttemptTuple],
    *,
    theta_init: float = IRT_THETA_INIT.value,
    max_iterations: int = IRT_MAX_ITERATIONS.value,
    tolerance: float = IRT_CONVERGENCE_TOLERANCE.value,
) -> AbilityEstimate:
    """
    Estimate ability from a response history.

    Only attempts on calibrated items are used; filtering to the requested
    exam is the caller's job. Empty input (after filtering) returns
    theta=0, SE=sentinel, attempts_count=0.

    Update rule:
        theta <- clamp(theta + step), step = score / total_information,
        halved until the log-likelihood does not decrease

    Stops when the (post-clamp) step is below tolerance, when information
    vanishes, when no halving of the step ascends, or after max_iterations.
    The 3PL likelihood can have several local maxima, so the result is
    compared with the best point of a scan over the theta range and
    scoring restarts from that point when it is higher.
    """
    return _estimate(
        usable_responses(attempts),
        theta_init=theta_init,
        max_iterations=max_iterations,
        tolerance=tolerance,
    )


def _fisher_scoring(
    responses: Responses,
    theta: float,
    max_iterations: int,
    tolerance: float,
) -> tuple[float, float, int]:
    """Ascend from theta; returns (theta, log_likelihood, iterations)."""
    theta = clamp_theta(theta)
    current_ll = log_likelihood(theta, responses)
    iterations = 0
    while iterations < max_iterations:
        iterations += 1
        score, total_info = score_and_information(theta, responses)
        if total_info <= IRT_INFORMATION_EPSILON.value:
            break

        step = score / total_info
        for _ in range(IRT_MAX_STEP_HALVINGS.value + 1):
            candidate = clamp_theta(theta + step)
            candidate_ll = log_likelihood(candidate, responses)
            if candidate_ll >= current_ll:
                break
            step /= 2.0
        else:
            # No ascent along the scoring direction
            break

        moved = candidate - theta
        theta, current_ll = candidate, candidate_ll
        if abs(moved) < tolerance:
            break

    return theta, current_ll, iterations


def _estimate(
    responses: Responses,
    *,
    theta_init: float = IRT_THETA_INIT.value,
    max_iterations: int = IRT_MAX_ITERATIONS.value,
    tolerance: float = IRT_CONVERGENCE_TOLERANCE.value,
) -> AbilityEstimate:
    if not responses:
        return AbilityEstimate(
            theta=IRT_THETA_INIT.value,
            standard_error=IRT_SE_SENTINEL.value,
            attempts_count=0,
            iterations=0,
        )

    theta, best_ll, iterations = _fisher_scoring(responses, theta_init, max_iterations, tolerance)

    grid = theta_scan_grid()
    grid_ll = log_likelihood_grid(grid, responses)
    best = int(np.argmax(grid_ll))
    if grid_ll[best] > best_ll:
        logger.debug(
            "Scoring from theta=%.3f stopped at %.3f (loglik %.4f); restarting from scan maximum %.3f (loglik %.4f)",
            theta_init,
            theta,
            best_ll,
            grid[best],
            grid_ll[best],
        )
        theta, best_ll, extra = _fisher_scoring(responses, float(grid[best]), max_iterations, tolerance)
        iterations += extra

    _, total_info = score_and_information(theta, responses)
    se = standard_error(total_info)

    logger.debug(
        "Estimated ability: theta=%.3f se=%.3f loglik=%.4f attempts=%d iterations=%d",
        theta,
        se,
        best_ll,
        len(responses),
        iterations,
    )
    return AbilityEstimate(
        theta=theta,
        standard_error=se,
        attempts_count=len(responses),
        iterations=iterations,
    )


def ability_progression(
    attempts: Iterable[Attempt | AttemptTuple],
    step: int = 5,
) -> list[ProgressionPoint]:
    """
    Re-estimate ability on the first step, 2*step, ... calibrated attempts.

    Attempts must be in chronological order. A trailing remainder shorter
    than step produces no point.
    """
    if step < 1:
        raise ValueError(f"step must be >= 1, got {step}")
    responses = usable_responses(attempts)
    points: list[ProgressionPoint] = []
    for n in range(step, len(responses) + 1, step):
        estimate = _estimate(responses[:n])
        points.append(
            ProgressionPoint(
                attempt_number=n,
                theta=estimate.theta,
                standard_error=estimate.standard_error,
            )
        )
    return points


def confidence_level(se: float) -> ConfidenceLevel:
    """Human-readable confidence label for a standard error."""
    if se < IRT_CONFIDENCE_HIGH_SE.value:
        return "High"
    if se < IRT_CONFIDENCE_MEDIUM_SE.value:
        return "Medium"
    return "Low"

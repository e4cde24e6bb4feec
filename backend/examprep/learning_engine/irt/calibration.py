"""Single-item 3PL calibration against known responder abilities via MAP with SciPy."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
from scipy import optimize

from examprep.learning_engine.config import (
    IRT_A_INIT,
    IRT_A_MAX,
    IRT_A_MIN,
    IRT_A_SEPARATION_SCALE,
    IRT_B_MAX,
    IRT_B_MIN,
    IRT_C_MAX,
    IRT_C_RAW_BOUND,
    IRT_DEFAULT_GUESSING,
    IRT_FIT_FTOL,
    IRT_FIT_MAXITER,
    IRT_LOW_DISCRIMINATION_THRESHOLD,
    IRT_MIN_CALIBRATION_SAMPLE,
    IRT_PRIOR_B_SD,
    IRT_PRIOR_C_RAW_SD,
    IRT_PRIOR_LOG_A_SD,
    IRT_PROBABILITY_EPSILON,
)
from examprep.learning_engine.irt.prob import p_3pl
from examprep.learning_engine.irt.types import CalibrationResult, ItemResponse

logger = logging.getLogger(__name__)

@dataclass
class CalibrationConfig:
    """Item calibration configuration (boxes, priors, optimizer)."""

    a_min: float = IRT_A_MIN.value
    a_max: float = IRT_A_MAX.value
    a_init: float = IRT_A_INIT.value
    a_separation_scale: float = IRT_A_SEPARATION_SCALE.value
    b_min: float = IRT_B_MIN.value
    b_max: float = IRT_B_MAX.value
    c_init: float = IRT_DEFAULT_GUESSING.value
    c_max: float = IRT_C_MAX.value
    c_raw_bound: float = IRT_C_RAW_BOUND.value
    prior_log_a_sd: float = IRT_PRIOR_LOG_A_SD.value
    prior_b_sd: float = IRT_PRIOR_B_SD.value
    prior_c_raw_sd: float = IRT_PRIOR_C_RAW_SD.value
    maxiter: int = IRT_FIT_MAXITER.value
    ftol: float = IRT_FIT_FTOL.value
    probability_epsilon: float = IRT_PROBABILITY_EPSILON.value
    low_discrimination_threshold: float = IRT_LOW_DISCRIMINATION_THRESHOLD.value


def _sigmoid(x: np.ndarray | float) -> np.ndarray | float:
    x = np.clip(x, -500, 500)
    return 1.0 / (1.0 + np.exp(-x))


def _softplus(x: np.ndarray | float) -> np.ndarray | float:
    return np.logaddexp(0, x)


def _inv_softplus(a: float) -> float:
    return float(np.log(np.expm1(a)))


def _logit(p: float) -> float:
    return math.log(p / (1.0 - p))


def _collect(responses: Iterable[ItemResponse | tuple[bool, float | None]]) -> tuple[np.ndarray, np.ndarray]:
    """Keep responses with a finite responder theta; return (y, theta) arrays."""
    ys: list[float] = []
    thetas: list[float] = []
    for r in responses:
        if isinstance(r, ItemResponse):
            is_correct, theta = r.is_correct, r.responder_theta
        else:
            is_correct, theta = r
        if theta is None or not math.isfinite(theta):
            continue
        ys.append(1.0 if is_correct else 0.0)
        thetas.append(float(theta))
    return np.asarray(ys, dtype=np.float64), np.asarray(thetas, dtype=np.float64)


def heuristic_start(y: np.ndarray, theta: np.ndarray, config: CalibrationConfig) -> tuple[float, float, float]:
    """
    Three-stage start values.

    - c: the guessing floor (1/K).
    - b: midpoint of mean ability among correct and incorrect responders;
      for one-sided samples, the ability where the smoothed p-value would be
      reached under the start a and c.
    - a: IRT_A_SEPARATION_SCALE / |mean_correct - mean_incorrect|, else a_init.
    """
    c0 = config.c_init
    a0 = config.a_init
    correct = theta[y > 0.5]
    incorrect = theta[y <= 0.5]

    if correct.size and incorrect.size:
        mean_correct = float(np.mean(correct))
        mean_incorrect = float(np.mean(incorrect))
        b0 = (mean_correct + mean_incorrect) / 2.0
        spread = abs(mean_correct - mean_incorrect)
        if spread > 0:
            a0 = config.a_separation_scale / spread
    else:
        n = float(y.size)
        p_smoothed = (float(np.sum(y)) + 0.5) / (n + 1.0)
        p_star = (p_smoothed - c0) / (1.0 - c0)
        p_star = max(0.01, min(0.99, p_star))
        b0 = float(np.mean(theta)) - _logit(p_star) / a0

    a0 = max(config.a_min, min(config.a_max, a0))
    b0 = max(config.b_min, min(config.b_max, b0))
    return a0, b0, c0


def fit_item_parameters(
    responses: Iterable[ItemResponse | tuple[bool, float | None]],
    *,
    min_sample: int = IRT_MIN_CALIBRATION_SAMPLE.value,
    config: CalibrationConfig | None = None,
) -> CalibrationResult | None:
    """
    Fit a, b, c for one item from (is_correct, responder_theta) pairs.

    - Responses without a responder theta are dropped before counting.
    - No usable responses, or fewer than min_sample: None (not enough data yet).
    - a > 0: softplus reparameterization, boxed to [a_min, a_max].
    - c in (0, c_max): sigmoid(raw_c) * c_max.
    - Weak priors on log a, b and raw_c keep one-sided samples finite.
    - Non-finite optimizer output falls back to the heuristic start.
    """
    config = config or CalibrationConfig()
    y, theta = _collect(responses)
    n = int(y.size)
    if n == 0 or n < min_sample:
        logger.debug("Item has only %d usable responses; need %d for calibration", n, min_sample)
        return None

    a0, b0, c0 = heuristic_start(y, theta, config)
    raw_c0 = _logit(c0 / config.c_max)

    def unpack(x: np.ndarray) -> tuple[float, float, float]:
        a_ = float(_softplus(x[0]))
        b_ = float(x[1])
        c_ = float(_sigmoid(x[2])) * config.c_max
        return a_, b_, c_

    def obj(x: np.ndarray) -> float:
        a_, b_, c_ = unpack(x)
        eps = config.probability_epsilon
        p = np.clip(p_3pl(theta, a_, b_, c_), eps, 1.0 - eps)
        ll = float(np.sum(y * np.log(p) + (1.0 - y) * np.log(1.0 - p)))
        # Priors
        ll += -0.5 * (math.log(a_) / config.prior_log_a_sd) ** 2
        ll += -0.5 * (b_ / config.prior_b_sd) ** 2
        ll += -0.5 * ((x[2] - raw_c0) / config.prior_c_raw_sd) ** 2
        return -ll

    x0 = np.array([_inv_softplus(a0), b0, raw_c0], dtype=np.float64)
    bounds = [
        (_inv_softplus(config.a_min), _inv_softplus(config.a_max)),
        (config.b_min, config.b_max),
        (-config.c_raw_bound, config.c_raw_bound),
    ]
    res = optimize.minimize(
        obj,
        x0,
        method="L-BFGS-B",
        bounds=bounds,
        options={"maxiter": config.maxiter, "ftol": config.ftol},
    )

    if np.all(np.isfinite(res.x)):
        a, b, c = unpack(res.x)
    else:
        logger.warning("Calibration optimizer returned non-finite parameters; using heuristic start")
        a, b, c = a0, b0, c0
    if not res.success:
        logger.debug("L-BFGS-B did not report convergence: %s", res.message)

    a = max(config.a_min, min(config.a_max, a))
    b = max(config.b_min, min(config.b_max, b))
    c = max(0.0, min(config.c_max, c))

    flags: dict[str, bool] = {}
    if a < config.low_discrimination_threshold:
        flags["low_discrimination"] = True

    logger.info("Calibrated item: a=%.3f b=%.3f c=%.3f n=%d", a, b, c, n)
    return CalibrationResult(a=a, b=b, c=c, sample_size=n, flags=flags)

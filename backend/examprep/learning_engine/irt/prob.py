"""IRT 3PL probability, Fisher information and test information curve."""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import overload

import numpy as np

from examprep.learning_engine.config import IRT_EXPONENT_CLAMP, IRT_INFO_CURVE_GRID
from examprep.learning_engine.irt.types import CandidateItem, ItemParameters, ItemState


def sigmoid(x: float) -> float:
    """Logistic sigmoid 1 / (1 + exp(-x)) with the exponent clamped."""
    limit = IRT_EXPONENT_CLAMP.value
    x = max(-limit, min(limit, x))
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    ex = math.exp(x)
    return ex / (1.0 + ex)


@overload
def p_3pl(theta: float, a: float, b: float, c: float) -> float: ...
@overload
def p_3pl(theta: np.ndarray, a: np.ndarray | float, b: np.ndarray | float, c: np.ndarray | float) -> np.ndarray: ...


def p_3pl(
    theta: float | np.ndarray,
    a: float | np.ndarray,
    b: float | np.ndarray,
    c: float | np.ndarray,
) -> float | np.ndarray:
    """
    3PL: P = c + (1 - c) * sigmoid(a * (theta - b)).
    a > 0, 0 <= c < 1 enforced by caller (ItemParameters or the calibrator's reparameterization).
    """
    if isinstance(theta, np.ndarray):
        limit = IRT_EXPONENT_CLAMP.value
        x = np.clip(a * (theta - b), -limit, limit)
        return c + (1.0 - c) / (1.0 + np.exp(-x))
    return float(c) + (1.0 - float(c)) * sigmoid(float(a) * (float(theta) - float(b)))


def probability(theta: float, a: float, b: float, c: float) -> float:
    """
    Probability of a correct response under the 3PL model.

    Returns a value in [c, 1). Non-decreasing in theta; tends to c as
    theta -> -inf and to 1 as theta -> +inf.
    """
    return p_3pl(float(theta), float(a), float(b), float(c))


def information(theta: float, a: float, b: float, c: float) -> float:
    """
    Fisher information of a 3PL item at ability theta.

    Formula:
        I = a^2 * (P - c)^2 * (1 - P) / ((1 - c)^2 * P)

    Degenerate inputs (c >= 1, vanishing denominator, non-finite result)
    yield 0.0 instead of raising or returning NaN/Inf.
    """
    if c >= 1.0:
        return 0.0
    p = probability(theta, a, b, c)
    denominator = (1.0 - c) ** 2 * p
    if not denominator > 0.0:
        return 0.0
    info = (a * a) * (p - c) ** 2 * (1.0 - p) / denominator
    if not math.isfinite(info) or info < 0.0:
        return 0.0
    return info


def item_information(theta: float, item: ItemState) -> float:
    """Information of an item state; uncalibrated items carry none."""
    if not isinstance(item, ItemParameters):
        return 0.0
    return information(theta, item.a, item.b, item.c)


def information_curve(
    items: Iterable[CandidateItem | ItemState],
    thetas: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Test information summed over calibrated items on a theta grid.

    Returns (thetas, information); the default grid is IRT_INFO_CURVE_GRID.
    """
    if thetas is None:
        start, stop, points = IRT_INFO_CURVE_GRID.value
        thetas = np.linspace(start, stop, points)
    thetas = np.asarray(thetas, dtype=float)
    info = np.zeros_like(thetas)
    for entry in items:
        item = entry.item if isinstance(entry, CandidateItem) else entry
        if not isinstance(item, ItemParameters):
            continue
        p = p_3pl(thetas, item.a, item.b, item.c)
        info += (item.a**2) * (p - item.c) ** 2 * (1.0 - p) / ((1.0 - item.c) ** 2 * p)
    return thetas, info

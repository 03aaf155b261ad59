"""
Angle between two functions under the L2 inner product.

    cos(theta) = <f1, f2> / (||f1|| * ||f2||),   <f, g> = integral of f*g over [a, b]

The solver optionally normalises both functions first (unitary mode) and
optionally negates the second one when the inner product is negative, so the
reported angle is acute. A degenerate or non-finite computation gives
``None``; the caller throws the pair away and draws a new one.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .core import Expr, Const, Div, wrap_scaled, wrap_negated
from .integrate import DEFAULT_STEPS, inner_product, norm

logger = logging.getLogger(__name__)

BALANCE_SAMPLES = 100
MAX_MAGNITUDE_RATIO = 5.0


@dataclass(frozen=True)
class AngleResult:
    """Angle in degrees plus the expressions it was computed from."""
    angle: float
    f1_final: Expr
    f2_final: Expr
    inner_product: float


def compute_angle(f1: Expr, f2: Expr, interval: Sequence[float],
                  is_unitary: bool = False, ensure_acute: bool = False,
                  n: int = DEFAULT_STEPS) -> Optional[AngleResult]:
    """Angle between ``f1`` and ``f2`` on ``interval``, or ``None`` when undefined."""
    a, b = interval[0], interval[1]
    try:
        if is_unitary:
            norm1, norm2 = norm(f1, a, b, n), norm(f2, a, b, n)
            if not (math.isfinite(norm1) and math.isfinite(norm2)):
                logger.debug(f"Non-finite norm while normalising: {norm1}, {norm2}")
                return None
            if norm1 == 0 or norm2 == 0:
                return None
            f1 = Div(f1, Const(norm1))
            f2 = Div(f2, Const(norm2))

        ip = inner_product(f1, f2, a, b, n)
        if not math.isfinite(ip):
            logger.debug(f"Non-finite inner product for {f1} and {f2}")
            return None

        if ensure_acute and ip < 0:
            f2 = wrap_negated(f2)
            ip = -ip

        norm1, norm2 = norm(f1, a, b, n), norm(f2, a, b, n)
        if not (math.isfinite(norm1) and math.isfinite(norm2)):
            logger.debug(f"Non-finite norm: {norm1}, {norm2}")
            return None
        if norm1 == 0 or norm2 == 0:
            return None

        cos_theta = ip / (norm1 * norm2)
        if not math.isfinite(cos_theta):
            return None
        cos_theta = max(-1.0, min(1.0, cos_theta))
        angle = math.degrees(math.acos(cos_theta))
    except (ArithmeticError, ValueError) as e:
        logger.debug(f"Angle computation failed: {e}")
        return None

    return AngleResult(angle=angle, f1_final=f1, f2_final=f2, inner_product=ip)


def max_abs_value(f: Expr, interval: Sequence[float],
                  samples: int = BALANCE_SAMPLES) -> float:
    """Largest finite ``|f(x)|`` on an even grid; ``-inf`` if no sample is finite."""
    xs = np.linspace(interval[0], interval[1], samples)
    ys = np.abs(np.array([f(float(x)) for x in xs], dtype=float))
    finite = ys[np.isfinite(ys)]
    if finite.size == 0:
        return -math.inf
    return float(finite.max())


def balance_magnitudes(f1: Expr, f2: Expr, interval: Sequence[float],
                       samples: int = BALANCE_SAMPLES) -> Tuple[Expr, Expr]:
    """
    Scale the smaller function by ``ceil(ratio / 5)`` when the peak ratio
    exceeds 5, so both curves share a plot axis.
    """
    m1 = max_abs_value(f1, interval, samples)
    m2 = max_abs_value(f2, interval, samples)
    if not (m1 > 0 and m2 > 0):
        return f1, f2

    ratio = max(m1, m2) / min(m1, m2)
    if ratio <= MAX_MAGNITUDE_RATIO or not math.isfinite(ratio):
        return f1, f2

    k = math.ceil(ratio / MAX_MAGNITUDE_RATIO)
    logger.debug(f"Balancing magnitudes {m1:.4g} vs {m2:.4g} with factor {k}")
    if m1 > m2:
        return f1, wrap_scaled(f2, k)
    return wrap_scaled(f1, k), f2

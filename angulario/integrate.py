"""
Numerical integration over a closed interval.

Composite Simpson's rule: the interval is cut into ``n`` (even) panels of
width ``h``; endpoints get weight 1, odd interior nodes 4, even interior
nodes 2, and the weighted sum is scaled by ``h / 3``. Non-finite samples
are not filtered, so a single ``nan`` or ``inf`` makes the result
non-finite and the caller decides what to do with it.
"""

import math
from typing import Callable

import numpy as np

DEFAULT_STEPS = 200


def simpson_weights(n: int) -> np.ndarray:
    """Weights 1, 4, 2, 4, ..., 2, 4, 1 for ``n + 1`` nodes."""
    weights = np.ones(n + 1)
    weights[1:n:2] = 4.0
    weights[2:n - 1:2] = 2.0
    return weights


def simpsons_rule(func: Callable[[float], float], a: float, b: float,
                  n: int = DEFAULT_STEPS) -> float:
    """Definite integral of ``func`` over ``[a, b]``."""
    if n < 1:
        raise ValueError(f"Number of panels must be positive, got {n}")
    if n % 2 != 0:
        n += 1
    h = (b - a) / n
    nodes = a + np.arange(n + 1) * h
    samples = np.array([func(float(x)) for x in nodes], dtype=float)
    with np.errstate(invalid='ignore', over='ignore'):
        total = float(np.dot(simpson_weights(n), samples))
    return (h / 3.0) * total


def inner_product(f: Callable[[float], float], g: Callable[[float], float],
                  a: float, b: float, n: int = DEFAULT_STEPS) -> float:
    """L2 inner product of two functions on ``[a, b]``."""
    return simpsons_rule(lambda x: f(x) * g(x), a, b, n)


def norm(f: Callable[[float], float], a: float, b: float,
         n: int = DEFAULT_STEPS) -> float:
    """L2 norm; ``nan`` when the squared integral is not a non-negative number."""
    sq = inner_product(f, f, a, b, n)
    if not sq >= 0:
        return math.nan
    return math.sqrt(sq)

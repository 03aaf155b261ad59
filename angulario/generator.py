"""
Random function generation.

Functions are built from a fixed set of primitives. Each pick may be scaled
and negated, then one to three picks are combined by sum, product or
composition.
"""

import logging
import random
from typing import List, Optional, Sequence, Tuple

from .core import (
    Expr, Const, VarX, Add, Mul, Div, Pow,
    Sin, Cos, Tanh, Sinh, Atan, Asin, Exp, Cbrt,
    structurally_equal, wrap_scaled, wrap_negated,
)
from .exceptions import ExhaustedRetriesError

logger = logging.getLogger(__name__)

SCALARS = (0.5, 1.5, 2, 3)
SCALE_PROBABILITY = 1 / 3
NEGATE_PROBABILITY = 0.5
DEFAULT_MAX_ATTEMPTS = 1000


def base_functions(interval_limit: float) -> List[Expr]:
    """
    The primitive set. ``asin`` takes ``x / interval_limit`` so its argument
    stays inside [-1, 1] anywhere on the round's interval.
    """
    x = VarX()
    return [
        x,
        Pow(x, Const(2)),
        Pow(x, Const(3)),
        Pow(x, Const(4)),
        Sin(x),
        Cos(x),
        Exp(x),
        Tanh(x),
        Sinh(x),
        Atan(x),
        Div(Const(1), Add(Pow(x, Const(2)), Const(1))),
        Cbrt(x),
        Asin(Div(x, Const(interval_limit))),
    ]


def limit_for(interval: Sequence[float]) -> float:
    """Largest absolute endpoint of ``interval``."""
    return max(abs(interval[0]), abs(interval[1]))


def is_degenerate_pair(f1: Expr, f2: Expr) -> bool:
    """Syntactic check only: ``x + 1`` and ``1 + x`` count as different."""
    return (structurally_equal(f1, f2)
            or structurally_equal(f1, wrap_negated(f2))
            or structurally_equal(wrap_negated(f1), f2))


class FunctionGenerator:
    """Generate random single-variable functions from an injectable random source."""

    def __init__(self, rng: Optional[random.Random] = None,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.rng = rng if rng is not None else random.Random()
        self.max_attempts = max_attempts

    def modify(self, func: Expr) -> Expr:
        """Maybe scale by one of ``SCALARS``, then maybe negate."""
        if self.rng.random() < SCALE_PROBABILITY:
            func = wrap_scaled(func, self.rng.choice(SCALARS))
        if self.rng.random() < NEGATE_PROBABILITY:
            func = wrap_negated(func)
        return func

    def generate(self, interval_limit: float) -> Expr:
        num_to_combine = self.rng.randint(1, 3)
        chosen = self.rng.sample(base_functions(interval_limit), num_to_combine)
        funcs = [self.modify(f) for f in chosen]

        if num_to_combine == 1:
            return funcs[0]

        if num_to_combine == 2:
            f1, f2 = funcs
            op = self.rng.choice(['+', '*', 'compose'])
            if op == '+':
                return Add(f1, f2)
            if op == '*':
                return Mul(f1, f2)
            if self.rng.random() < 0.5:
                return f1.substitute(f2)
            return f2.substitute(f1)

        f1, f2, f3 = funcs
        combine = {'+': Add, '*': Mul}
        intermediate = combine[self.rng.choice(['+', '*'])](f1, f2)
        return combine[self.rng.choice(['+', '*'])](intermediate, f3)

    def generate_pair(self, interval: Sequence[float]) -> Tuple[Expr, Expr]:
        """
        Two functions for one round. The second is redrawn while it renders
        identically to the first, or either one renders as the other's negation.
        """
        limit = limit_for(interval)
        f1 = self.generate(limit)
        for attempt in range(self.max_attempts):
            f2 = self.generate(limit)
            if not is_degenerate_pair(f1, f2):
                return f1, f2
            logger.debug(f"Redrawing second function (attempt {attempt + 1}): {f2}")
        logger.error(f"No distinct second function after {self.max_attempts} draws")
        raise ExhaustedRetriesError(self.max_attempts, stage="function pair")


def generate(interval_limit: float, rng: Optional[random.Random] = None) -> Expr:
    """Generate one random function."""
    return FunctionGenerator(rng).generate(interval_limit)


def generate_pair(interval: Sequence[float],
                  rng: Optional[random.Random] = None) -> Tuple[Expr, Expr]:
    """Generate a non-degenerate pair of functions for ``interval``."""
    return FunctionGenerator(rng).generate_pair(interval)

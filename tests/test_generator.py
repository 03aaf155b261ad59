"""
Tests for random function generation.

Verifies:
1. Same seed produces identical functions (determinism)
2. Picks are scaled/negated with the configured scalars
3. Degenerate pairs are rejected and redrawn
"""

import math
import random

import pytest

from angulario.core import Op, Sin, VarX, Neg, parse
from angulario.exceptions import ExhaustedRetriesError
from angulario.generator import (
    SCALARS, FunctionGenerator, base_functions, generate, generate_pair,
    is_degenerate_pair, limit_for,
)


class AlwaysLow(random.Random):
    """random() always returns 0, so every optional step fires."""

    def random(self):
        return 0.0


class AlwaysHigh(random.Random):
    """random() always returns just under 1, so no optional step fires."""

    def random(self):
        return 0.999


class ScriptedGenerator(FunctionGenerator):
    """Returns a fixed sequence of functions instead of random ones."""

    def __init__(self, funcs, max_attempts=1000):
        super().__init__(random.Random(0), max_attempts)
        self.funcs = list(funcs)
        self.calls = 0

    def generate(self, interval_limit):
        func = self.funcs[min(self.calls, len(self.funcs) - 1)]
        self.calls += 1
        return func


class TestPrimitives:

    def test_primitive_set_size(self):
        assert len(base_functions(1.0)) == 13

    def test_asin_primitive_is_defined_on_whole_interval(self):
        asin = base_functions(5.0)[-1]
        assert asin.op == Op.ASIN
        assert asin.evaluate(5.0) == pytest.approx(math.pi / 2)
        assert asin.evaluate(-5.0) == pytest.approx(-math.pi / 2)

    def test_limit_is_largest_absolute_endpoint(self):
        assert limit_for((-3, 2)) == 3
        assert limit_for((1, 4)) == 4


class TestModify:

    def test_scale_and_negate_when_draws_are_low(self):
        expr = FunctionGenerator(AlwaysLow(1)).modify(VarX())
        assert expr.op == Op.NEG
        assert expr.left.op == Op.MUL
        assert expr.left.left.value in SCALARS
        assert expr.left.right.op == Op.VAR_X

    def test_unchanged_when_draws_are_high(self):
        assert FunctionGenerator(AlwaysHigh(1)).modify(VarX()).to_string() == "x"


class TestGenerate:

    def test_same_seed_produces_identical_functions(self):
        first = [generate(2.0, random.Random(42)).to_string() for _ in range(5)]
        second = [generate(2.0, random.Random(42)).to_string() for _ in range(5)]
        assert first == second

    def test_different_seeds_give_variety(self):
        drawn = {generate(1.0, random.Random(seed)).to_string() for seed in range(50)}
        assert len(drawn) > 20

    def test_generated_functions_only_use_known_tags(self, rng):
        gen = FunctionGenerator(rng)
        allowed = set(Op)

        def walk(node):
            assert node.op in allowed
            if node.left is not None:
                walk(node.left)
            if node.right is not None:
                walk(node.right)

        for _ in range(200):
            walk(gen.generate(3.0))

    def test_generated_functions_use_single_variable(self, rng):
        gen = FunctionGenerator(rng)
        for _ in range(100):
            assert "x" in gen.generate(1.0).to_string()


class TestGeneratePair:

    def test_identical_pair_is_degenerate(self, x):
        assert is_degenerate_pair(x, VarX())

    def test_negated_pair_is_degenerate_either_way(self, x, minus_x):
        assert is_degenerate_pair(x, minus_x)
        assert is_degenerate_pair(minus_x, x)

    def test_commuted_pair_is_not_degenerate(self):
        assert not is_degenerate_pair(parse("x + 1"), parse("1 + x"))

    def test_second_function_is_redrawn_until_distinct(self, x):
        gen = ScriptedGenerator([x, VarX(), Neg(VarX()), Sin(VarX())])
        f1, f2 = gen.generate_pair((-1, 1))
        assert f1.to_string() == "x"
        assert f2.to_string() == "sin(x)"
        assert gen.calls == 4

    def test_identical_pair_never_escapes(self, x):
        gen = ScriptedGenerator([x], max_attempts=10)
        with pytest.raises(ExhaustedRetriesError, match="10 attempts"):
            gen.generate_pair((-1, 1))

    def test_random_pairs_are_never_degenerate(self, rng):
        for _ in range(200):
            f1, f2 = generate_pair((-2, 3), rng)
            assert not is_degenerate_pair(f1, f2)

"""
Unit Tests for the Expression Tree

Construction, evaluation, rendering, substitution and parsing.
"""

import math

import pytest

from angulario.core import (
    Op, Expr, Const, VarX, Add, Mul, Div, Pow, Neg,
    Sin, Asin, Exp, Sinh, Cbrt,
    evaluate, to_display_string, substitute_variable, structurally_equal,
    wrap_scaled, wrap_negated, parse,
)
from angulario.exceptions import ExpressionParseError
from angulario.generator import FunctionGenerator


class TestConstruction:
    """Node arity and immutability."""

    def test_binary_node_without_right_operand_raises(self):
        with pytest.raises(ValueError, match="two operands"):
            Expr(Op.ADD, left=VarX())

    def test_unary_node_with_two_operands_raises(self):
        with pytest.raises(ValueError, match="exactly one operand"):
            Expr(Op.SIN, left=VarX(), right=VarX())

    def test_leaf_with_children_raises(self):
        with pytest.raises(ValueError, match="leaf"):
            Expr(Op.CONST, left=VarX())

    def test_nodes_are_immutable(self):
        expr = Sin(VarX())
        with pytest.raises(AttributeError):
            expr.left = Const(1)  # type: ignore
        with pytest.raises(AttributeError):
            del expr.op


class TestEvaluate:
    """Pointwise evaluation follows IEEE semantics instead of raising."""

    def test_polynomial(self):
        expr = Add(Pow(VarX(), Const(2)), Mul(Const(3), VarX()))
        assert evaluate(expr, 2.0) == 10.0

    def test_asin_outside_domain_is_nan(self):
        assert math.isnan(Asin(Mul(Const(2), VarX())).evaluate(1.0))

    def test_division_by_zero_is_signed_infinity(self):
        assert Div(Const(1), VarX()).evaluate(0.0) == math.inf
        assert Div(Const(-1), VarX()).evaluate(0.0) == -math.inf

    def test_zero_over_zero_is_nan(self):
        assert math.isnan(Div(VarX(), VarX()).evaluate(0.0))

    def test_overflow_is_infinite(self):
        assert Exp(VarX()).evaluate(1000.0) == math.inf
        assert Sinh(VarX()).evaluate(-1000.0) == -math.inf
        assert Pow(VarX(), Const(3)).evaluate(-1e200) == -math.inf

    def test_sin_of_infinity_is_nan(self):
        assert math.isnan(Sin(Div(Const(1), VarX())).evaluate(0.0))

    def test_cbrt_is_real_for_negative_input(self):
        assert Cbrt(VarX()).evaluate(-8.0) == pytest.approx(-2.0)

    def test_fractional_power_of_negative_base_is_nan(self):
        assert math.isnan(Pow(VarX(), Const(0.5)).evaluate(-4.0))

    def test_zero_to_negative_power_is_infinite(self):
        assert Pow(VarX(), Const(-1)).evaluate(0.0) == math.inf

    def test_repeated_evaluation_is_bit_identical(self, rng):
        gen = FunctionGenerator(rng)
        for _ in range(50):
            expr = gen.generate(1.0)
            first, second = expr.evaluate(0.37), expr.evaluate(0.37)
            assert (math.isnan(first) and math.isnan(second)) or first == second

    def test_expression_is_callable(self):
        assert Sin(VarX())(0.0) == 0.0


class TestRendering:
    """Canonical strings and TeX output."""

    def test_canonical_string_is_fully_parenthesised(self):
        expr = Add(Pow(VarX(), Const(2)), Sin(VarX()))
        assert to_display_string(expr) == "((x^2) + sin(x))"

    def test_constants_render_as_integers_when_integral(self):
        assert Const(3.0).to_string() == "3"
        assert Const(1.5).to_string() == "1.5"

    def test_wrap_helpers(self, x):
        assert wrap_scaled(x, 2).to_string() == "(2 * x)"
        assert wrap_negated(x).to_string() == "-(x)"

    def test_power_of_negation_keeps_its_parentheses(self):
        expr = Pow(Neg(Sin(VarX())), Const(2))
        assert expr.to_string() == "((-(sin(x)))^2)"
        assert parse(expr.to_string()) == expr

    def test_tex_rendering(self, x):
        assert Sin(x).to_tex() == r"\sin\left(x\right)"
        assert Div(Const(1), Add(Pow(x, Const(2)), Const(1))).to_tex() == r"\frac{1}{x^{2}+1}"
        assert Cbrt(x).to_tex() == r"\sqrt[3]{x}"
        assert Exp(x).to_tex() == "e^{x}"
        assert Neg(Add(x, Const(1))).to_tex() == r"-\left(x+1\right)"
        assert Mul(Const(2), Add(x, Const(1))).to_tex() == r"2 \cdot \left(x+1\right)"


class TestEquality:
    """Equality is syntactic: it compares canonical strings."""

    def test_identical_trees_are_equal(self):
        assert structurally_equal(parse("sin(x) * 2"), Mul(Sin(VarX()), Const(2)))
        assert parse("x^2") == Pow(VarX(), Const(2))
        assert hash(parse("x^2")) == hash(Pow(VarX(), Const(2)))

    def test_commuted_sum_is_not_equal(self):
        assert not structurally_equal(parse("x + 1"), parse("1 + x"))

    def test_double_negation_is_not_collapsed(self, x):
        assert not structurally_equal(Neg(Neg(x)), x)


class TestSubstitution:
    """Composition replaces every x with a whole tree."""

    def test_substitute_replaces_every_variable(self, x):
        expr = Add(Sin(x), Mul(x, x))
        composed = substitute_variable(expr, Pow(x, Const(2)))
        assert composed.to_string() == "(sin((x^2)) + ((x^2) * (x^2)))"

    def test_substitute_leaves_original_untouched(self, x):
        expr = Sin(x)
        expr.substitute(Exp(x))
        assert expr.to_string() == "sin(x)"

    def test_composition_evaluates_as_nested_call(self, x):
        composed = Sin(x).substitute(Mul(Const(2), x))
        assert composed.evaluate(0.3) == pytest.approx(math.sin(0.6))


class TestParser:
    """Parsing the function grammar."""

    def test_subtraction_becomes_addition_of_negation(self):
        expr = parse("x - 1")
        assert expr.to_string() == "(x + -(1))"
        assert expr.evaluate(3) == 2

    def test_power_is_right_associative(self):
        assert parse("2^3^2").evaluate(0) == 512

    def test_unary_minus_binds_looser_than_power(self):
        assert parse("-x^2").evaluate(3) == -9

    def test_named_functions(self):
        expr = parse("asin(x / 5) + cbrt(x) * tanh(x) - sinh(x) + atan(x) + cos(x)")
        assert math.isfinite(expr.evaluate(2.5))

    def test_double_star_is_power(self):
        assert parse("x ** 3").evaluate(2) == 8

    def test_constants(self):
        assert parse("pi").evaluate(0) == pytest.approx(math.pi)
        assert parse("e").evaluate(0) == pytest.approx(math.e)

    @pytest.mark.parametrize("text", ["", "foo(x)", "(x", "x)", "sin x", "x $ 2", "y + 1"])
    def test_invalid_text_raises(self, text):
        with pytest.raises(ExpressionParseError):
            parse(text)

    def test_generated_functions_survive_a_round_trip(self, rng):
        gen = FunctionGenerator(rng)
        for limit in (1.0, 3.0, 5.0):
            for _ in range(100):
                expr = gen.generate(limit)
                assert parse(expr.to_string()).to_string() == expr.to_string()


class TestExactConstants:
    """Canonical strings keep every bit of a constant."""

    def test_small_constant_reads_back(self):
        expr = parse("0.00001 * x + 1")
        assert expr.to_string() == "((1e-05 * x) + 1)"
        assert parse(expr.to_string()) == expr

    def test_near_integer_constant_is_not_snapped(self, x):
        assert Mul(Const(1.0000001), x) != Mul(Const(1), x)
        assert Const(1.0000001).to_string() == "1.0000001"

    def test_exponent_notation_parses(self):
        assert parse("1.44209e+06").evaluate(0) == 1442090.0
        assert parse("2E-3 * x").evaluate(1) == 0.002

    def test_reparsed_constant_gives_the_same_value(self):
        expr = Div(Sin(VarX()), Const(math.sqrt(2) / 7))
        assert parse(expr.to_string()).evaluate(0.3) == expr.evaluate(0.3)

    def test_negative_constant_reads_back(self, x):
        expr = Mul(Const(-2), x)
        assert expr.to_string() == "(-(2) * x)"
        assert parse(expr.to_string()) == expr
        assert Pow(Const(-2), x).to_string() == "((-(2))^x)"

    def test_tex_keeps_a_short_form(self):
        assert Const(1.0000001).to_tex() == "1"
        assert Const(math.pi).to_tex() == "3.14159"


class TestSize:

    def test_counts_every_node(self, x):
        assert x.size() == 1
        assert Add(Sin(x), Mul(Const(2), x)).size() == 6

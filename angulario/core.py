"""
Core components: Expression system, Parser
"""

import math
import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from .exceptions import ExpressionParseError


# ============================================================================
# EXPRESSION SYSTEM
# ============================================================================

class Op(Enum):
    """All supported node tags."""
    VAR_X = 0
    CONST = 1
    ADD = 2
    MUL = 3
    DIV = 4
    POW = 5
    NEG = 6
    SIN = 10
    COS = 11
    TANH = 12
    SINH = 13
    ATAN = 14
    ASIN = 15
    EXP = 16
    CBRT = 17


BINARY_OPS = (Op.ADD, Op.MUL, Op.DIV, Op.POW)
UNARY_FUNCS = (Op.SIN, Op.COS, Op.TANH, Op.SINH, Op.ATAN, Op.ASIN, Op.EXP, Op.CBRT)

_SYMBOLS = {Op.ADD: '+', Op.MUL: '*', Op.DIV: '/', Op.POW: '^'}

FUNC_NAMES = {
    Op.SIN: 'sin', Op.COS: 'cos', Op.TANH: 'tanh', Op.SINH: 'sinh',
    Op.ATAN: 'atan', Op.ASIN: 'asin', Op.EXP: 'exp', Op.CBRT: 'cbrt',
}

_TEX_NAMES = {
    Op.SIN: r'\sin', Op.COS: r'\cos', Op.TANH: r'\tanh', Op.SINH: r'\sinh',
    Op.ATAN: r'\arctan', Op.ASIN: r'\arcsin',
}


def _cbrt(v: float) -> float:
    return math.copysign(abs(v) ** (1.0 / 3.0), v)


_FUNCS: Dict[Op, Callable[[float], float]] = {
    Op.SIN: math.sin, Op.COS: math.cos, Op.TANH: math.tanh, Op.SINH: math.sinh,
    Op.ATAN: math.atan, Op.ASIN: math.asin, Op.EXP: math.exp, Op.CBRT: _cbrt,
}


def _format_number(v: float) -> str:
    """Exact text for ``v``: ``float(_format_number(v)) == v``."""
    if math.isnan(v):
        return "nan"
    if math.isinf(v):
        return "inf" if v > 0 else "-inf"
    if v == int(v) and abs(v) < 1e16:
        return str(int(v))
    return repr(v)


def _display_number(v: float) -> str:
    if math.isfinite(v) and abs(v - round(v)) < 1e-9:
        return str(int(round(v)))
    return f"{v:.6g}"


def _divide(l: float, r: float) -> float:
    if r == 0:
        if l == 0 or math.isnan(l):
            return math.nan
        return math.copysign(math.inf, l) * math.copysign(1.0, r)
    return l / r


def _power(l: float, r: float) -> float:
    try:
        return math.pow(l, r)
    except ValueError:
        # 0 to a negative power, or a negative base to a fractional power
        return math.inf if l == 0 else math.nan
    except OverflowError:
        if l < 0 and r == int(r) and int(r) % 2:
            return -math.inf
        return math.inf


def _apply(op: Op, v: float) -> float:
    try:
        return _FUNCS[op](v)
    except ValueError:
        return math.nan
    except OverflowError:
        return math.copysign(math.inf, v) if op == Op.SINH else math.inf


class Expr:
    """
    Immutable expression tree node.

    Leaves are ``VAR_X`` or ``CONST``. ``ADD``, ``MUL``, ``DIV`` and ``POW`` use
    ``left`` and ``right``; ``NEG`` and the named functions use ``left`` only.
    Two trees are equal when their canonical strings are equal.
    """

    __slots__ = ('op', 'value', 'left', 'right', '_key')

    def __init__(self, op: Op, value: float = 0.0,
                 left: 'Expr' = None, right: 'Expr' = None):
        if op in BINARY_OPS:
            if left is None or right is None:
                raise ValueError(f"{op.name} needs two operands")
        elif op in UNARY_FUNCS or op == Op.NEG:
            if left is None or right is not None:
                raise ValueError(f"{op.name} needs exactly one operand")
        elif left is not None or right is not None:
            raise ValueError(f"{op.name} is a leaf")
        object.__setattr__(self, 'op', op)
        object.__setattr__(self, 'value', float(value))
        object.__setattr__(self, 'left', left)
        object.__setattr__(self, 'right', right)
        object.__setattr__(self, '_key', None)

    def __setattr__(self, name, value):
        raise AttributeError(f"Expr is immutable; cannot set {name!r}")

    def __delattr__(self, name):
        raise AttributeError(f"Expr is immutable; cannot delete {name!r}")

    def __repr__(self):
        return f"Expr({self.to_string()!r})"

    def __str__(self):
        return self.to_string()

    def __eq__(self, other):
        if not isinstance(other, Expr):
            return NotImplemented
        return self.to_string() == other.to_string()

    def __hash__(self):
        return hash(self.to_string())

    def __call__(self, x: float) -> float:
        return self.evaluate(x)

    def to_string(self) -> str:
        """Canonical, fully parenthesised rendering; doubles as the equality key."""
        if self._key is None:
            object.__setattr__(self, '_key', self._render())
        return self._key

    def _render(self) -> str:
        if self.op == Op.CONST:
            if self.value < 0:
                return f"-({_format_number(-self.value)})"
            return _format_number(self.value)
        elif self.op == Op.VAR_X: return "x"
        elif self.op == Op.NEG: return f"-({self.left.to_string()})"
        elif self.op in _SYMBOLS:
            sym = _SYMBOLS[self.op]
            if self.op == Op.POW:
                base = self.left.to_string()
                if self.left.op == Op.NEG or (self.left.op == Op.CONST and self.left.value < 0):
                    base = f"({base})"
                return f"({base}^{self.right.to_string()})"
            return f"({self.left.to_string()} {sym} {self.right.to_string()})"
        return f"{FUNC_NAMES[self.op]}({self.left.to_string()})"

    def to_tex(self) -> str:
        """LaTeX rendering with parentheses only where precedence needs them."""
        return _tex(self)

    def evaluate(self, x: float) -> float:
        """
        Numerically evaluate at ``x``.

        Domain violations come back as ``nan`` or ``±inf``; nothing raises.
        """
        op = self.op
        if op == Op.CONST: return self.value
        elif op == Op.VAR_X: return float(x)
        elif op == Op.NEG: return -self.left.evaluate(x)
        elif op == Op.ADD: return self.left.evaluate(x) + self.right.evaluate(x)
        elif op == Op.MUL: return self.left.evaluate(x) * self.right.evaluate(x)
        elif op == Op.DIV: return _divide(self.left.evaluate(x), self.right.evaluate(x))
        elif op == Op.POW: return _power(self.left.evaluate(x), self.right.evaluate(x))
        return _apply(op, self.left.evaluate(x))

    def substitute(self, replacement: 'Expr') -> 'Expr':
        """Return a new tree with every ``x`` replaced by ``replacement``."""
        if self.op == Op.VAR_X:
            return replacement
        if self.op == Op.CONST:
            return self
        left = self.left.substitute(replacement)
        right = self.right.substitute(replacement) if self.right is not None else None
        return Expr(self.op, self.value, left, right)

    def size(self) -> int:
        """Number of nodes in the tree."""
        n = 1
        if self.left is not None:
            n += self.left.size()
        if self.right is not None:
            n += self.right.size()
        return n


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def Const(v): return Expr(Op.CONST, value=float(v))
def VarX(): return Expr(Op.VAR_X)
def Add(l, r): return Expr(Op.ADD, left=l, right=r)
def Mul(l, r): return Expr(Op.MUL, left=l, right=r)
def Div(l, r): return Expr(Op.DIV, left=l, right=r)
def Pow(b, e): return Expr(Op.POW, left=b, right=e)
def Neg(e): return Expr(Op.NEG, left=e)
def Sin(e): return Expr(Op.SIN, left=e)
def Cos(e): return Expr(Op.COS, left=e)
def Tanh(e): return Expr(Op.TANH, left=e)
def Sinh(e): return Expr(Op.SINH, left=e)
def Atan(e): return Expr(Op.ATAN, left=e)
def Asin(e): return Expr(Op.ASIN, left=e)
def Exp(e): return Expr(Op.EXP, left=e)
def Cbrt(e): return Expr(Op.CBRT, left=e)


# Functional interface over the tree
def evaluate(expr: Expr, x: float) -> float: return expr.evaluate(x)
def to_display_string(expr: Expr) -> str: return expr.to_string()
def substitute_variable(expr: Expr, replacement: Expr) -> Expr: return expr.substitute(replacement)
def structurally_equal(a: Expr, b: Expr) -> bool: return a.to_string() == b.to_string()
def wrap_scaled(expr: Expr, k: float) -> Expr: return Mul(Const(k), expr)
def wrap_negated(expr: Expr) -> Expr: return Neg(expr)


# ============================================================================
# TEX RENDERING
# ============================================================================

_PRECEDENCE = {Op.ADD: 1, Op.MUL: 2, Op.NEG: 3, Op.POW: 4}


def _precedence(expr: Expr) -> int:
    if expr.op == Op.CONST and expr.value < 0:
        return 3
    return _PRECEDENCE.get(expr.op, 5)


def _paren(tex: str) -> str:
    return rf"\left({tex}\right)"


def _tex(expr: Expr) -> str:
    op = expr.op
    if op == Op.CONST:
        return _display_number(expr.value).replace("inf", r"\infty")
    if op == Op.VAR_X:
        return "x"
    if op == Op.DIV:
        return rf"\frac{{{_tex(expr.left)}}}{{{_tex(expr.right)}}}"
    if op == Op.EXP:
        return rf"e^{{{_tex(expr.left)}}}"
    if op == Op.CBRT:
        return rf"\sqrt[3]{{{_tex(expr.left)}}}"
    if op in _TEX_NAMES:
        return rf"{_TEX_NAMES[op]}{_paren(_tex(expr.left))}"
    if op == Op.NEG:
        inner = _tex(expr.left)
        if _precedence(expr.left) <= _PRECEDENCE[Op.NEG]:
            inner = _paren(inner)
        return f"-{inner}"
    if op == Op.POW:
        base = _tex(expr.left)
        if _precedence(expr.left) <= _PRECEDENCE[Op.POW] or expr.left.op in UNARY_FUNCS:
            base = _paren(base)
        return f"{base}^{{{_tex(expr.right)}}}"

    mine = _PRECEDENCE[op]
    left, right = _tex(expr.left), _tex(expr.right)
    if _precedence(expr.left) < mine:
        left = _paren(left)
    if op == Op.ADD:
        if right.startswith("-"):
            return f"{left}{right}"
        return f"{left}+{right}"
    if _precedence(expr.right) <= mine or expr.right.op == Op.NEG:
        right = _paren(right)
    return rf"{left} \cdot {right}"


# ============================================================================
# PARSER
# ============================================================================

_TOKEN_RE = re.compile(r"\s*(?:(\d+(?:\.\d*)?(?:[eE][-+]?\d+)?|\.\d+(?:[eE][-+]?\d+)?)|([A-Za-z_]\w*)|(\*\*|[-+*/^(),]))")

_FUNC_MAP = {name: op for op, name in FUNC_NAMES.items()}


class MathParser:
    """Parse the function grammar (``x``, numbers, ``+ - * / ^`` and named calls) to a tree."""

    def __init__(self):
        self.tokens: List[Union[float, str]] = []
        self.pos = 0

    def parse(self, text: str) -> Expr:
        self._tokenize(text)
        self.pos = 0
        if not self.tokens:
            raise ExpressionParseError(f"Empty expression: {text!r}")
        expr = self._parse_additive()
        if self._current() is not None:
            raise ExpressionParseError(f"Unexpected token {self._current()!r} in {text!r}")
        return expr

    def _tokenize(self, text: str):
        self.tokens = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            match = _TOKEN_RE.match(text, pos)
            if not match:
                raise ExpressionParseError(f"Unexpected character {text[pos]!r} at {pos}")
            number, name, symbol = match.groups()
            if number is not None:
                self.tokens.append(float(number))
            elif name is not None:
                if name != 'x' and name not in _FUNC_MAP and name not in ('e', 'pi'):
                    raise ExpressionParseError(f"Unknown identifier {name!r}")
                self.tokens.append(name)
            else:
                self.tokens.append('^' if symbol == '**' else symbol)
            pos = match.end()

    def _current(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _consume(self, expected: Optional[str] = None):
        token = self._current()
        if expected is not None and token != expected:
            raise ExpressionParseError(f"Expected {expected!r}, got {token!r}")
        self.pos += 1
        return token

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while self._current() in ('+', '-'):
            op = self._consume()
            right = self._parse_multiplicative()
            left = Add(left, right) if op == '+' else Add(left, Neg(right))
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while self._current() in ('*', '/'):
            op = self._consume()
            right = self._parse_unary()
            left = Mul(left, right) if op == '*' else Div(left, right)
        return left

    def _parse_unary(self) -> Expr:
        if self._current() == '-':
            self._consume()
            return Neg(self._parse_unary())
        if self._current() == '+':
            self._consume()
            return self._parse_unary()
        return self._parse_power()

    def _parse_power(self) -> Expr:
        base = self._parse_primary()
        if self._current() == '^':
            self._consume()
            return Pow(base, self._parse_unary())
        return base

    def _parse_primary(self) -> Expr:
        token = self._current()

        if isinstance(token, float):
            self._consume()
            return Const(token)

        if token == '(':
            self._consume()
            expr = self._parse_additive()
            self._consume(')')
            return expr

        if token in _FUNC_MAP:
            self._consume()
            self._consume('(')
            arg = self._parse_additive()
            self._consume(')')
            return Expr(_FUNC_MAP[token], left=arg)

        if token == 'x':
            self._consume()
            return VarX()
        if token == 'e':
            self._consume()
            return Const(math.e)
        if token == 'pi':
            self._consume()
            return Const(math.pi)

        raise ExpressionParseError(f"Unexpected token {token!r}")


def parse(text: str) -> Expr:
    """Parse ``text`` into an expression tree."""
    return MathParser().parse(text)

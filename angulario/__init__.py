"""
Angulario
=========
Angles between functions under the L2 inner product, as a guessing game.

Usage:
    from angulario import parse, compute_angle, start_round, score_guess, ModeFlags, GameSession

    # Angle between two fixed functions
    result = compute_angle(parse("x"), parse("-x"), (-1, 1))
    result.angle            # 180.0

    # A random round, reproducible from a seed
    import random
    outcome = start_round(mode=ModeFlags(acute_only=True), rng=random.Random(7))
    outcome.f1, outcome.f2, outcome.angle
    score_guess(outcome, 45).score

    # A scored session with history and statistics
    session = GameSession()
    session.new_round()
    session.submit_guess(60)
    session.stats()
"""

from .core import (
    # Expression system
    Op, Expr,
    Const, VarX, Add, Mul, Div, Pow, Neg,
    Sin, Cos, Tanh, Sinh, Atan, Asin, Exp, Cbrt,
    evaluate, to_display_string, substitute_variable, structurally_equal,
    wrap_scaled, wrap_negated,

    # Parser
    MathParser, parse,
)

from .integrate import simpsons_rule, inner_product, norm

from .generator import FunctionGenerator, base_functions, generate, generate_pair, is_degenerate_pair

from .solver import AngleResult, compute_angle, balance_magnitudes

from .game import (
    Interval, ModeFlags, PlotData, RoundOutcome, GuessResult,
    RoundOrchestrator, RoundRecord, SessionStats, GameSession,
    choose_interval, sample_plot, start_round, score_guess,
)

from .config import GameConfig

from .exceptions import (
    AngularioError, ExpressionParseError, ExhaustedRetriesError,
    InvalidGuessError, RoundStateError,
)

__version__ = "1.0.0"
__all__ = [
    # Core
    'Op', 'Expr',
    'Const', 'VarX', 'Add', 'Mul', 'Div', 'Pow', 'Neg',
    'Sin', 'Cos', 'Tanh', 'Sinh', 'Atan', 'Asin', 'Exp', 'Cbrt',
    'evaluate', 'to_display_string', 'substitute_variable', 'structurally_equal',
    'wrap_scaled', 'wrap_negated',
    'MathParser', 'parse',

    # Numerics
    'simpsons_rule', 'inner_product', 'norm',
    'FunctionGenerator', 'base_functions', 'generate', 'generate_pair', 'is_degenerate_pair',
    'AngleResult', 'compute_angle', 'balance_magnitudes',

    # Rounds
    'Interval', 'ModeFlags', 'PlotData', 'RoundOutcome', 'GuessResult',
    'RoundOrchestrator', 'RoundRecord', 'SessionStats', 'GameSession',
    'choose_interval', 'sample_plot', 'start_round', 'score_guess',
    'GameConfig',

    # Errors
    'AngularioError', 'ExpressionParseError', 'ExhaustedRetriesError',
    'InvalidGuessError', 'RoundStateError',
]

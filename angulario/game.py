"""Round orchestration, scoring and session bookkeeping."""

import logging
import math
import random
import statistics
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional, Sequence

import numpy as np

from .core import Expr
from .exceptions import ExhaustedRetriesError, InvalidGuessError, RoundStateError
from .generator import DEFAULT_MAX_ATTEMPTS, FunctionGenerator
from .integrate import DEFAULT_STEPS
from .solver import AngleResult, balance_magnitudes, compute_angle

logger = logging.getLogger(__name__)

PLOT_SAMPLES = 200
EASY_INTERVAL = (-1, 1)
HARD_RANGE = (-5, 5)
RECENT_ROUNDS = 10


@dataclass(frozen=True)
class Interval:
    """Closed interval ``[a, b]`` with ``a < b``; indexes like a pair."""
    a: float
    b: float

    def __post_init__(self):
        if not self.a < self.b:
            raise ValueError(f"Interval needs a < b, got [{self.a}, {self.b}]")

    def __iter__(self) -> Iterator[float]:
        return iter((self.a, self.b))

    def __getitem__(self, index: int) -> float:
        return (self.a, self.b)[index]

    def __len__(self) -> int:
        return 2

    def __str__(self):
        return f"[{self.a:g}, {self.b:g}]"

    @property
    def limit(self) -> float:
        return max(abs(self.a), abs(self.b))

    @classmethod
    def easy(cls) -> "Interval":
        return cls(*EASY_INTERVAL)

    @classmethod
    def random(cls, rng: random.Random) -> "Interval":
        """Integer endpoints drawn from [-5, 5], redrawn until distinct."""
        lo, hi = HARD_RANGE
        while True:
            a, b = rng.randint(lo, hi), rng.randint(lo, hi)
            if a != b:
                return cls(min(a, b), max(a, b))


def choose_interval(easy: bool, rng: random.Random) -> Interval:
    return Interval.easy() if easy else Interval.random(rng)


@dataclass(frozen=True)
class ModeFlags:
    """Per-round switches supplied by the settings layer."""
    is_unitary: bool = False
    acute_only: bool = False
    easy_interval: bool = True

    @property
    def max_angle(self) -> float:
        return 90.0 if self.acute_only else 180.0


@dataclass(frozen=True)
class PlotData:
    """Sampled curves; ``None`` marks a gap where the function is undefined."""
    x_values: List[float]
    y1_values: List[Optional[float]]
    y2_values: List[Optional[float]]


def _gap_safe(f: Expr, xs: np.ndarray) -> List[Optional[float]]:
    values = []
    for x in xs:
        y = f(float(x))
        values.append(y if math.isfinite(y) else None)
    return values


def sample_plot(f1: Expr, f2: Expr, interval: Sequence[float],
                samples: int = PLOT_SAMPLES) -> PlotData:
    """Evaluate both functions on ``samples`` evenly spaced points."""
    xs = np.linspace(interval[0], interval[1], samples)
    return PlotData(
        x_values=[float(x) for x in xs],
        y1_values=_gap_safe(f1, xs),
        y2_values=_gap_safe(f2, xs),
    )


@dataclass(frozen=True)
class RoundOutcome:
    """Everything one round hands to presentation and scoring."""
    angle: float
    f1: Expr
    f2: Expr
    interval: Interval
    mode: ModeFlags
    plot: PlotData
    attempts: int = 1

    @property
    def f1_tex(self) -> str:
        return self.f1.to_tex()

    @property
    def f2_tex(self) -> str:
        return self.f2.to_tex()


@dataclass(frozen=True)
class GuessResult:
    guess: float
    actual: float
    diff: float
    score: float


def score_for_diff(diff: float) -> float:
    """100 for a perfect guess, falling off cubically to 0 at 180 degrees."""
    return 100.0 * max(0.0, 1.0 - diff / 180.0) ** 3


def score_guess(outcome: RoundOutcome, guess: float) -> GuessResult:
    """Score ``guess`` (degrees) against the round's angle."""
    try:
        guess = float(guess)
    except (TypeError, ValueError):
        raise InvalidGuessError(f"Guess must be a number, got {guess!r}")
    max_angle = outcome.mode.max_angle
    if not (math.isfinite(guess) and 0 <= guess <= max_angle):
        raise InvalidGuessError(f"Guess must be between 0 and {max_angle:g} degrees, got {guess}")

    diff = abs(outcome.angle - guess)
    return GuessResult(guess=guess, actual=outcome.angle, diff=diff, score=score_for_diff(diff))


class RoundOrchestrator:
    """Draws function pairs until one gives a well-defined angle."""

    def __init__(self, rng: Optional[random.Random] = None,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 integration_steps: int = DEFAULT_STEPS,
                 plot_samples: int = PLOT_SAMPLES):
        self.rng = rng if rng is not None else random.Random()
        self.generator = FunctionGenerator(self.rng, max_attempts)
        self.max_attempts = max_attempts
        self.integration_steps = integration_steps
        self.plot_samples = plot_samples

    def solve_pair(self, f1: Expr, f2: Expr, interval: Sequence[float],
                   mode: ModeFlags) -> Optional[AngleResult]:
        """Balance magnitudes, then compute the angle."""
        f1, f2 = balance_magnitudes(f1, f2, interval)
        return compute_angle(f1, f2, interval, mode.is_unitary, mode.acute_only,
                             n=self.integration_steps)

    def start_round(self, mode: Optional[ModeFlags] = None,
                    interval: Optional[Interval] = None) -> RoundOutcome:
        mode = mode or ModeFlags()
        if interval is None:
            interval = choose_interval(mode.easy_interval, self.rng)

        for attempt in range(1, self.max_attempts + 1):
            f1, f2 = self.generator.generate_pair(interval)
            result = self.solve_pair(f1, f2, interval, mode)
            if result is None:
                logger.debug(f"Discarding pair {f1} | {f2} on {interval} "
                             f"({f1.size()} + {f2.size()} nodes)")
                continue

            logger.info(f"Round ready on {interval} after {attempt} attempt(s): {result.angle:.2f} deg")
            return RoundOutcome(
                angle=result.angle,
                f1=result.f1_final,
                f2=result.f2_final,
                interval=interval,
                mode=mode,
                plot=sample_plot(result.f1_final, result.f2_final, interval, self.plot_samples),
                attempts=attempt,
            )

        logger.error(f"Could not generate a valid round on {interval} in {self.max_attempts} attempts")
        raise ExhaustedRetriesError(self.max_attempts)


def start_round(interval: Optional[Interval] = None, mode: Optional[ModeFlags] = None,
                rng: Optional[random.Random] = None) -> RoundOutcome:
    """Play out one round with a fresh orchestrator."""
    return RoundOrchestrator(rng).start_round(mode, interval)


# ============================================================================
# SESSION
# ============================================================================

@dataclass(frozen=True)
class RoundRecord:
    guess: float
    actual: float
    diff: float
    score: float
    is_easy: bool


@dataclass(frozen=True)
class SessionStats:
    rounds: int = 0
    avg_score: float = 0.0
    avg_diff: float = 0.0
    avg_diff_last10: float = 0.0
    median_diff: float = 0.0

    @classmethod
    def from_history(cls, history: Sequence[RoundRecord]) -> "SessionStats":
        if not history:
            return cls()
        diffs = [r.diff for r in history]
        recent = diffs[-RECENT_ROUNDS:]
        return cls(
            rounds=len(history),
            avg_score=statistics.fmean(r.score for r in history),
            avg_diff=statistics.fmean(diffs),
            avg_diff_last10=statistics.fmean(recent),
            median_diff=statistics.median(diffs),
        )


@dataclass
class GameSession:
    """
    A run of rounds sharing one set of mode flags.

    Changing the flags wipes the score and history and starts over at round 1.
    """
    orchestrator: RoundOrchestrator = field(default_factory=RoundOrchestrator)
    mode: ModeFlags = field(default_factory=ModeFlags)
    current: Optional[RoundOutcome] = None
    last_result: Optional[GuessResult] = None
    round_number: int = 0
    total_score: float = 0.0
    history: List[RoundRecord] = field(default_factory=list)

    @property
    def awaiting_guess(self) -> bool:
        return self.current is not None and self.last_result is None

    def new_round(self) -> RoundOutcome:
        self.current = self.orchestrator.start_round(self.mode)
        self.last_result = None
        self.round_number += 1
        return self.current

    def submit_guess(self, guess: float) -> GuessResult:
        if self.current is None:
            raise RoundStateError("No round in progress")
        if self.last_result is not None:
            raise RoundStateError(f"Round {self.round_number} has already been scored")

        result = score_guess(self.current, guess)
        self.last_result = result
        self.total_score += result.score
        self.history.append(RoundRecord(
            guess=result.guess,
            actual=result.actual,
            diff=result.diff,
            score=result.score,
            is_easy=self.current.mode.easy_interval,
        ))
        return result

    def update_mode(self, **changes) -> RoundOutcome:
        """Apply new flags, reset score and history, and start a first round."""
        self.mode = replace(self.mode, **changes)
        logger.info(f"Mode changed to {self.mode}; resetting session")
        self.total_score = 0.0
        self.history = []
        self.round_number = 0
        return self.new_round()

    def stats(self) -> SessionStats:
        return SessionStats.from_history(self.history)

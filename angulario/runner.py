"""Terminal front end: play rounds, score guesses, inspect the engine."""

import argparse
import json
import logging
import random
from typing import List, Optional, Sequence

from .config import GameConfig
from .core import parse
from .exceptions import AngularioError
from .game import GameSession, Interval, PlotData, RoundOrchestrator
from .solver import compute_angle

logger = logging.getLogger(__name__)

MODE_FIELDS = {
    "unitary": "is_unitary",
    "acute": "acute_only",
    "easy": "easy_interval",
}


def build_session(config: GameConfig) -> GameSession:
    """Create a session wired to the config's seed and engine knobs."""
    orchestrator = RoundOrchestrator(
        rng=random.Random(config.seed),
        max_attempts=config.max_attempts,
        integration_steps=config.integration_steps,
        plot_samples=config.plot_samples,
    )
    return GameSession(orchestrator=orchestrator, mode=config.mode_flags())


def render_ascii(plot: PlotData, width: int = 60, height: int = 16) -> str:
    """Rough character plot: ``1`` and ``2`` for the curves, ``*`` where they meet."""
    ys = [y for y in plot.y1_values + plot.y2_values if y is not None]
    if not ys:
        return "(nothing to plot)"
    lo, hi = min(ys + [0.0]), max(ys + [0.0])
    if hi - lo < 1e-12:
        hi, lo = hi + 1, lo - 1

    grid = [[" "] * width for _ in range(height)]
    zero_row = round((hi - 0.0) / (hi - lo) * (height - 1))
    for col in range(width):
        grid[zero_row][col] = "-"

    n = len(plot.x_values)
    for mark, values in (("1", plot.y1_values), ("2", plot.y2_values)):
        for col in range(width):
            y = values[round(col * (n - 1) / max(1, width - 1))]
            if y is None:
                continue
            row = round((hi - y) / (hi - lo) * (height - 1))
            grid[row][col] = "*" if grid[row][col] in ("1", "2") and grid[row][col] != mark else mark

    lines = ["".join(row) for row in grid]
    lines.append(f"x: {plot.x_values[0]:.1f} .. {plot.x_values[-1]:.1f}   y: {lo:.2f} .. {hi:.2f}")
    return "\n".join(lines)


def describe_round(session: GameSession) -> str:
    outcome = session.current
    mode = outcome.mode
    return "\n".join([
        f"Round {session.round_number} on {outcome.interval}"
        f" (unitary={'on' if mode.is_unitary else 'off'}, acute={'on' if mode.acute_only else 'off'})",
        f"  f1(x) = {outcome.f1}",
        f"  f2(x) = {outcome.f2}",
        f"Guess the angle between them (0-{mode.max_angle:g} degrees).",
    ])


def interactive_shell(session: GameSession):
    """Run an interactive shell for playing rounds."""
    import cmd

    class GameShell(cmd.Cmd):
        intro = "Angle guessing shell. Type 'help' for commands."
        prompt = "angle> "

        def preloop(self):
            self._new()

        def _new(self):
            try:
                session.new_round()
            except AngularioError as e:
                print(f"Error: {e}")
                return
            print(describe_round(session))

        def do_new(self, arg):
            """Start a new round"""
            self._new()

        def do_guess(self, arg):
            """Submit a guess in degrees: guess <angle>"""
            try:
                result = session.submit_guess(arg.strip())
            except AngularioError as e:
                print(f"Error: {e}")
                return
            print(f"Actual angle: {result.actual:.2f}  (you were off by {result.diff:.2f})")
            print(f"Score: {result.score:.1f}   Total: {session.total_score:.1f}")
            print(f"  f1(x) = {session.current.f1_tex}")
            print(f"  f2(x) = {session.current.f2_tex}")

        def do_show(self, arg):
            """Show the current round"""
            if session.current is None:
                print("No round in progress")
                return
            print(describe_round(session))

        def do_plot(self, arg):
            """Plot the current round's functions"""
            if session.current is None:
                print("No round in progress")
                return
            print(render_ascii(session.current.plot))

        def do_stats(self, arg):
            """Show session statistics"""
            stats = session.stats()
            print(f"  Rounds played:        {stats.rounds}")
            print(f"  Average score:        {stats.avg_score:.1f}")
            print(f"  Average error:        {stats.avg_diff:.2f}")
            print(f"  Average error (last 10): {stats.avg_diff_last10:.2f}")
            print(f"  Median error:         {stats.median_diff:.2f}")

        def do_mode(self, arg):
            """Toggle a mode flag and restart: mode <unitary|acute|easy> <on|off>"""
            parts = arg.split()
            if len(parts) != 2 or parts[0] not in MODE_FIELDS or parts[1] not in ("on", "off"):
                print(f"Usage: mode <{'|'.join(MODE_FIELDS)}> <on|off>")
                return
            try:
                session.update_mode(**{MODE_FIELDS[parts[0]]: parts[1] == "on"})
            except AngularioError as e:
                print(f"Error: {e}")
                return
            print(describe_round(session))

        def do_quit(self, arg):
            """Exit the shell"""
            return True

        do_exit = do_quit
        do_q = do_quit

    GameShell().cmdloop()


def angle_between(f1_text: str, f2_text: str, interval: Sequence[float],
                  config: GameConfig) -> dict:
    """Angle between two parsed expressions, as a JSON-ready dict."""
    f1, f2 = parse(f1_text), parse(f2_text)
    result = compute_angle(f1, f2, Interval(*interval), config.unitary_mode,
                           config.acute_angles_only, n=config.integration_steps)
    if result is None:
        return {"f1": str(f1), "f2": str(f2), "angle": None}
    return {
        "f1": str(result.f1_final),
        "f2": str(result.f2_final),
        "angle": result.angle,
        "inner_product": result.inner_product,
    }


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Guess the angle between two functions")
    parser.add_argument("--config", type=str, help="Settings JSON file")
    parser.add_argument("--seed", type=int, help="Seed for the random source")
    parser.add_argument("--unitary", action="store_true", help="Normalise both functions first")
    parser.add_argument("--acute", action="store_true", help="Only acute angles")
    parser.add_argument("--hard", action="store_true", help="Random integer interval in [-5, 5]")
    parser.add_argument("--once", action="store_true", help="Play one round and exit")
    parser.add_argument("--guess", type=float, help="Guess for --once")
    parser.add_argument("--angle", nargs=2, metavar=("F1", "F2"), help="Angle between two expressions")
    parser.add_argument("--interval", nargs=2, type=float, default=[-1.0, 1.0], metavar=("A", "B"))
    parser.add_argument("--json", action="store_true", help="Print machine-readable output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = GameConfig.from_file(args.config) if args.config else GameConfig.from_env()
    if args.seed is not None:
        config.seed = args.seed
    config.unitary_mode = config.unitary_mode or args.unitary
    config.acute_angles_only = config.acute_angles_only or args.acute
    config.easy_interval = config.easy_interval and not args.hard
    for warning in config.validate():
        logger.warning(warning)

    try:
        if args.angle:
            result = angle_between(args.angle[0], args.angle[1], args.interval, config)
            if args.json:
                print(json.dumps(result, indent=2))
            elif result["angle"] is None:
                print("Angle is undefined for these functions on this interval")
            else:
                print(f"{result['angle']:.4f}")
            return 0

        session = build_session(config)
        if args.once:
            outcome = session.new_round()
            payload = {
                "interval": list(outcome.interval),
                "f1": str(outcome.f1),
                "f2": str(outcome.f2),
                "angle": outcome.angle,
            }
            if args.guess is not None:
                result = session.submit_guess(args.guess)
                payload.update(guess=result.guess, diff=result.diff, score=result.score)
            if args.json:
                print(json.dumps(payload, indent=2))
            else:
                print(describe_round(session))
                print(render_ascii(outcome.plot))
                if args.guess is not None:
                    print(f"Actual {outcome.angle:.2f}, score {payload['score']:.1f}")
            return 0

        interactive_shell(session)
    except (AngularioError, ValueError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

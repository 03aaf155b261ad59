"""Exception types raised by the angle engine."""


class AngularioError(Exception):
    """Base class for all engine errors."""


class ExpressionParseError(AngularioError, ValueError):
    """Text could not be parsed into an expression tree."""


class ExhaustedRetriesError(AngularioError, RuntimeError):
    """A round could not be generated within the attempt cap."""

    def __init__(self, attempts: int, stage: str = "round"):
        self.attempts = attempts
        self.stage = stage
        super().__init__(f"Could not generate a valid {stage} after {attempts} attempts")


class InvalidGuessError(AngularioError, ValueError):
    """A guess was not a number inside the allowed angle range."""


class RoundStateError(AngularioError):
    """An operation was attempted in the wrong phase of a round."""

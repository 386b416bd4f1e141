"""
Engine errors - raised only for contract violations.

Illegal gameplay (no action points, unreachable target, unit not where
the caller said it was) is never an exception: the reducer returns the
unchanged state instead. These exceptions cover programmer errors such as
coordinates outside the board or malformed army configurations.
"""


class BattlegroundError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, error_code: str = None, context: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self):
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg = f"{base_msg} (Context: {context_str})"
        return base_msg


class InvalidPositionError(BattlegroundError):
    """A position outside the board was passed where a board square is required."""
    pass


class UnitNotFoundError(BattlegroundError):
    """A unit id that should exist in the state could not be found."""
    pass


class InvalidArmyError(BattlegroundError):
    """An army configuration entry has an unknown archetype or an out-of-range level."""
    pass


class UnknownScenarioError(BattlegroundError):
    """No built-in scenario is registered under the requested key."""
    pass

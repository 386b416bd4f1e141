"""
Victory - Decides whether a side has been wiped out.
"""

from __future__ import annotations

from .state import GameState, Player


def has_forces(state: GameState, player: Player) -> bool:
    """True if `player` has at least one unit on the board or in reserve."""
    if state.get_reserve(player):
        return True
    return bool(state.board.units_of(player))


def check_winner(state: GameState) -> Player | None:
    """
    Return the winner, or None while both sides still have a unit somewhere.

    A side with nothing on the board and nothing in reserve is defeated.
    If both are empty (no scenario loaded yet) there is no winner.
    """
    p1_alive = has_forces(state, Player.ONE)
    p2_alive = has_forces(state, Player.TWO)
    if p1_alive and not p2_alive:
        return Player.ONE
    if p2_alive and not p1_alive:
        return Player.TWO
    return None

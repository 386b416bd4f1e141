"""
Movement - Legal destinations for units and stacks.

Per-archetype geometry:
- Infantry: one orthogonal step
- Artillery: one orthogonal step along its owner's home row only
- Cavalry: up to two orthogonal steps, straight or with one turn

All functions are pure queries over a GameState.
"""

from __future__ import annotations
from typing import Sequence

from .state import GameState, Player, Position, Unit, UnitType, ORTHOGONAL


def _can_enter(state: GameState, pos: Position, player: Player, count: int = 1) -> bool:
    """On the board, not enemy-held, and with room for `count` more units."""
    square = state.get_square(pos)
    if square is None:
        return False
    return square.can_accept(player, count)


def _has_enemy(state: GameState, pos: Position, player: Player) -> bool:
    square = state.get_square(pos)
    return square is not None and square.has_enemy_of(player)


def legal_moves(state: GameState, unit: Unit, origin: Position) -> list[Position]:
    """
    Return every position `unit` may move to from `origin`.

    Empty if the unit has already moved this turn.
    """
    if unit.has_moved:
        return []

    if unit.unit_type == UnitType.CAVALRY:
        return _cavalry_moves(state, unit, origin)

    moves = []
    row_limit = state.home_row(unit.owner) if unit.unit_type == UnitType.ARTILLERY else None
    for dcol, drow in ORTHOGONAL:
        dest = origin.offset(dcol, drow)
        if row_limit is not None and dest.row != row_limit:
            continue
        if _can_enter(state, dest, unit.owner):
            moves.append(dest)
    return moves


def _cavalry_moves(state: GameState, unit: Unit, origin: Position) -> list[Position]:
    moves: list[Position] = []

    def add(pos: Position):
        if pos not in moves:
            moves.append(pos)

    for dcol, drow in ORTHOGONAL:
        step1 = origin.offset(dcol, drow)

        # Straight: cannot jump over a square it could not stop on
        if _can_enter(state, step1, unit.owner):
            add(step1)
            step2 = step1.offset(dcol, drow)
            if _can_enter(state, step2, unit.owner):
                add(step2)

        # Turning: may pivot through any square without enemies, even a full one
        if not state.board.in_bounds(step1) or _has_enemy(state, step1, unit.owner):
            continue
        for dcol2, drow2 in ORTHOGONAL:
            if (dcol2, drow2) in ((dcol, drow), (-dcol, -drow)):
                continue
            step2 = step1.offset(dcol2, drow2)
            if step2 == origin:
                continue
            if _can_enter(state, step2, unit.owner):
                add(step2)

    return moves


def legal_group_moves(
    state: GameState, units: Sequence[Unit], origin: Position
) -> list[Position]:
    """
    Return one-step destinations where a whole stack can move together.

    Requires at least two units, none moved and none artillery. The room
    check counts the entire group.
    """
    if len(units) < 2:
        return []
    if any(u.has_moved or u.unit_type == UnitType.ARTILLERY for u in units):
        return []

    owner = units[0].owner
    if any(u.owner != owner for u in units):
        return []

    moves = []
    for dcol, drow in ORTHOGONAL:
        dest = origin.offset(dcol, drow)
        if _can_enter(state, dest, owner, count=len(units)):
            moves.append(dest)
    return moves


def can_deploy(state: GameState, player: Player, target: Position) -> bool:
    """A reserve unit may enter on its owner's home row, on a friendly or empty square with room."""
    if target.row != state.home_row(player):
        return False
    return _can_enter(state, target, player)


def deploy_targets(state: GameState, player: Player) -> list[Position]:
    """Every home-row square `player` can currently deploy to."""
    row = state.home_row(player)
    return [
        Position(col, row)
        for col in range(state.board.cols)
        if can_deploy(state, player, Position(col, row))
    ]

"""
Targeting - Attack eligibility and reachability.

Two separate questions:
- Eligibility: may this unit attack at all this turn?
- Reachability: does this unit's range rule cover that square?

Infantry and cavalry reach orthogonally adjacent squares. Artillery
reaches any square in its own column on a different row.
"""

from __future__ import annotations
from typing import Iterable

from .state import GameState, Player, Position, Unit, UnitType, ORTHOGONAL


def can_unit_attack(unit: Unit) -> bool:
    """Whether a unit may still attack this turn, regardless of targets."""
    if unit.has_attacked:
        return False
    # Fresh deployments never attack on the turn they arrive
    if unit.deployed_this_turn:
        return False
    if unit.unit_type == UnitType.CAVALRY:
        return not unit.has_moved or unit.moved_squares <= 1
    return not unit.has_moved


def can_reach(unit: Unit, origin: Position, target: Position) -> bool:
    """Whether `target` is within this unit's attack range from `origin`."""
    if unit.unit_type.is_melee:
        return origin.is_adjacent(target)
    return target.col == origin.col and target.row != origin.row


def eligible_attackers(
    state: GameState, origin: Position, unit_ids: Iterable[str] | None = None
) -> list[Unit]:
    """Units on `origin` that may attack, optionally narrowed to `unit_ids`."""
    square = state.get_square(origin)
    if square is None:
        return []
    attackers = [u for u in square.units if can_unit_attack(u)]
    if unit_ids is not None:
        wanted = set(unit_ids)
        attackers = [u for u in attackers if u.id in wanted]
    return attackers


def legal_attack_targets(
    state: GameState, origin: Position, unit_id: str | None = None
) -> list[Position]:
    """
    Return every enemy-held square the units on `origin` can attack.

    If `unit_id` is given, only that unit's range is considered; otherwise
    the union over all eligible units on the square.
    """
    attackers = eligible_attackers(
        state, origin, [unit_id] if unit_id is not None else None
    )
    if not attackers:
        return []

    owner = attackers[0].owner
    targets: list[Position] = []

    def consider(pos: Position):
        square = state.get_square(pos)
        if square is not None and square.has_enemy_of(owner) and pos not in targets:
            targets.append(pos)

    if any(u.unit_type.is_melee for u in attackers):
        for dcol, drow in ORTHOGONAL:
            consider(origin.offset(dcol, drow))

    if any(u.unit_type == UnitType.ARTILLERY for u in attackers):
        for row in range(state.board.rows):
            if row != origin.row:
                consider(Position(origin.col, row))

    return targets


def gather_attackers(
    state: GameState,
    origins: Iterable[Position],
    target: Position,
    player: Player,
    unit_ids: Iterable[str] | None = None,
) -> dict[Position, list[Unit]]:
    """
    Collect the units that will actually take part in an attack.

    For each origin square keeps units owned by `player` that are eligible,
    optionally listed in `unit_ids`, and able to reach `target` on their
    own. Origins left with no units are dropped.
    """
    wanted = list(unit_ids) if unit_ids is not None else None
    by_origin: dict[Position, list[Unit]] = {}
    for origin in origins:
        if origin in by_origin:
            continue
        units = [
            u for u in eligible_attackers(state, origin, wanted)
            if u.owner == player and can_reach(u, origin, target)
        ]
        if units:
            by_origin[origin] = units
    return by_origin


def defenders_at(state: GameState, target: Position, attacker: Player) -> list[Unit]:
    """Enemy units standing on `target`."""
    square = state.get_square(target)
    if square is None:
        return []
    return [u for u in square.units if u.owner != attacker]

"""
Pytest fixtures for Battleground tests.
"""

import itertools
import random

import pytest

from ..engine_core.state import (
    GamePhase,
    GameState,
    Player,
    Position,
    Unit,
    UnitType,
    create_initial_state,
    sequential_ids,
)


class ScriptedRandom(random.Random):
    """
    Random source with scripted results.

    `rolls` feed randint() in order; once exhausted every roll is the
    maximum (a miss for any threshold below 40). `picks` are indexes for
    choice(); once exhausted the first element is chosen.
    """

    def __init__(self, *, rolls=(), picks=()):
        super().__init__(0)
        self.rolls = list(rolls)
        self.picks = list(picks)

    def randint(self, a, b):
        if self.rolls:
            return self.rolls.pop(0)
        return b

    def choice(self, seq):
        if self.picks:
            return seq[self.picks.pop(0) % len(seq)]
        return seq[0]


_unit_ids = itertools.count(1)


def make_unit(unit_type: UnitType, owner: Player, level: int = 2, uid: str = None, **flags) -> Unit:
    """Build a unit with a unique id and optional turn flags."""
    return Unit(
        id=uid or f"u{next(_unit_ids)}",
        unit_type=unit_type,
        owner=owner,
        level=level,
        **flags,
    )


def place(state: GameState, pos: Position, *units: Unit) -> GameState:
    """Return state with units appended to the square at pos."""
    square = state.board.square_at(pos)
    return state.with_square(square.add(*units))


@pytest.fixture
def empty_state() -> GameState:
    """A fresh game waiting for a scenario."""
    return create_initial_state()


@pytest.fixture
def playing_state() -> GameState:
    """
    An empty board in the playing phase.

    Each side keeps one infantry in reserve so no winner is declared
    while tests move units around.
    """
    return GameState(
        phase=GamePhase.PLAYING,
        p1_reserve=(make_unit(UnitType.INFANTRY, Player.ONE, 1, uid="p1-reserve"),),
        p2_reserve=(make_unit(UnitType.INFANTRY, Player.TWO, 1, uid="p2-reserve"),),
    )


@pytest.fixture
def ids():
    """Deterministic unit id factory."""
    return sequential_ids()


@pytest.fixture
def battle_state(ids) -> GameState:
    """The default scenario, started with deterministic ids."""
    from ..engine_core.reducer import start_game

    return start_game(create_initial_state(), "battle", ids)


@pytest.fixture
def always_hit() -> ScriptedRandom:
    """Every die rolls a 1."""
    return ScriptedRandom(rolls=[1] * 100)


@pytest.fixture
def always_miss() -> ScriptedRandom:
    """Every die rolls a 40."""
    return ScriptedRandom()

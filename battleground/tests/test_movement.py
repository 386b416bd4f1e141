"""
Tests for movement legality.

Tests:
- Per-archetype destinations
- Cavalry straight and turning moves
- Group moves
- Deployment squares
"""

from ..engine_core.movement import (
    can_deploy,
    deploy_targets,
    legal_group_moves,
    legal_moves,
)
from ..engine_core.state import Player, Position, UnitType
from .conftest import make_unit, place


def full_stack(owner):
    return [make_unit(UnitType.INFANTRY, owner) for _ in range(3)]


class TestInfantryMoves:
    """Infantry moves one orthogonal step."""

    def test_open_board(self, playing_state):
        unit = make_unit(UnitType.INFANTRY, Player.ONE)
        state = place(playing_state, Position(1, 1), unit)

        moves = legal_moves(state, unit, Position(1, 1))
        assert set(moves) == {Position(1, 0), Position(1, 2), Position(0, 1), Position(2, 1)}

    def test_corner_stays_on_board(self, playing_state):
        unit = make_unit(UnitType.INFANTRY, Player.ONE)
        state = place(playing_state, Position(0, 0), unit)

        assert set(legal_moves(state, unit, Position(0, 0))) == {Position(0, 1), Position(1, 0)}

    def test_moved_unit_has_no_moves(self, playing_state):
        unit = make_unit(UnitType.INFANTRY, Player.ONE, has_moved=True, moved_squares=1)
        state = place(playing_state, Position(1, 1), unit)

        assert legal_moves(state, unit, Position(1, 1)) == []

    def test_blocked_by_enemy_and_full_friendly(self, playing_state):
        unit = make_unit(UnitType.INFANTRY, Player.ONE)
        state = place(playing_state, Position(1, 1), unit)
        state = place(state, Position(1, 2), make_unit(UnitType.INFANTRY, Player.TWO))
        state = place(state, Position(0, 1), *full_stack(Player.ONE))

        moves = legal_moves(state, unit, Position(1, 1))
        assert Position(1, 2) not in moves
        assert Position(0, 1) not in moves
        assert set(moves) == {Position(1, 0), Position(2, 1)}

    def test_friendly_square_with_room(self, playing_state):
        unit = make_unit(UnitType.INFANTRY, Player.ONE)
        state = place(playing_state, Position(1, 1), unit)
        state = place(
            state, Position(1, 2),
            make_unit(UnitType.INFANTRY, Player.ONE), make_unit(UnitType.CAVALRY, Player.ONE),
        )

        assert Position(1, 2) in legal_moves(state, unit, Position(1, 1))


class TestArtilleryMoves:
    """Artillery slides along its owner's home row."""

    def test_player_one_home_row(self, playing_state):
        unit = make_unit(UnitType.ARTILLERY, Player.ONE)
        state = place(playing_state, Position(1, 0), unit)

        assert set(legal_moves(state, unit, Position(1, 0))) == {Position(0, 0), Position(2, 0)}

    def test_player_two_home_row(self, playing_state):
        unit = make_unit(UnitType.ARTILLERY, Player.TWO)
        state = place(playing_state, Position(0, 3), unit)

        assert legal_moves(state, unit, Position(0, 3)) == [Position(1, 3)]


class TestCavalryMoves:
    """Cavalry moves up to two squares, straight or with one turn."""

    def test_open_board_from_centre(self, playing_state):
        unit = make_unit(UnitType.CAVALRY, Player.ONE)
        state = place(playing_state, Position(1, 1), unit)

        moves = legal_moves(state, unit, Position(1, 1))
        assert len(moves) == len(set(moves))
        assert set(moves) == {
            Position(1, 0), Position(1, 2), Position(0, 1), Position(2, 1),
            Position(1, 3),
            Position(0, 0), Position(2, 0), Position(0, 2), Position(2, 2),
        }
        assert Position(1, 1) not in moves

    def test_cannot_jump_or_pivot_through_enemy(self, playing_state):
        unit = make_unit(UnitType.CAVALRY, Player.ONE)
        state = place(playing_state, Position(1, 0), unit)
        state = place(state, Position(1, 1), make_unit(UnitType.INFANTRY, Player.TWO))

        moves = legal_moves(state, unit, Position(1, 0))
        assert Position(1, 1) not in moves
        assert Position(1, 2) not in moves
        assert Position(0, 1) in moves
        assert Position(2, 1) in moves

    def test_pivot_through_full_friendly_square(self, playing_state):
        """A full friendly square blocks stopping and straight runs, not turns."""
        unit = make_unit(UnitType.CAVALRY, Player.ONE)
        state = place(playing_state, Position(0, 0), unit)
        state = place(state, Position(1, 0), *full_stack(Player.ONE))
        state = place(state, Position(0, 1), make_unit(UnitType.INFANTRY, Player.TWO))

        assert legal_moves(state, unit, Position(0, 0)) == [Position(1, 1)]


class TestGroupMoves:
    """Stacks move one square together."""

    def test_two_infantry_open_board(self, playing_state):
        units = [make_unit(UnitType.INFANTRY, Player.ONE), make_unit(UnitType.CAVALRY, Player.ONE)]
        state = place(playing_state, Position(1, 1), *units)

        assert set(legal_group_moves(state, units, Position(1, 1))) == {
            Position(1, 0), Position(1, 2), Position(0, 1), Position(2, 1),
        }

    def test_room_counts_whole_group(self, playing_state):
        units = [make_unit(UnitType.INFANTRY, Player.ONE), make_unit(UnitType.INFANTRY, Player.ONE)]
        state = place(playing_state, Position(1, 1), *units)
        state = place(
            state, Position(1, 2),
            make_unit(UnitType.INFANTRY, Player.ONE), make_unit(UnitType.INFANTRY, Player.ONE),
        )
        state = place(state, Position(0, 1), make_unit(UnitType.INFANTRY, Player.ONE))

        moves = legal_group_moves(state, units, Position(1, 1))
        assert Position(1, 2) not in moves
        assert Position(0, 1) in moves

    def test_single_unit_is_not_a_group(self, playing_state):
        unit = make_unit(UnitType.INFANTRY, Player.ONE)
        state = place(playing_state, Position(1, 1), unit)

        assert legal_group_moves(state, [unit], Position(1, 1)) == []

    def test_artillery_cannot_group_move(self, playing_state):
        units = [make_unit(UnitType.INFANTRY, Player.ONE), make_unit(UnitType.ARTILLERY, Player.ONE)]
        state = place(playing_state, Position(1, 0), *units)

        assert legal_group_moves(state, units, Position(1, 0)) == []

    def test_moved_unit_blocks_group(self, playing_state):
        units = [
            make_unit(UnitType.INFANTRY, Player.ONE),
            make_unit(UnitType.INFANTRY, Player.ONE, has_moved=True, moved_squares=1),
        ]
        state = place(playing_state, Position(1, 1), *units)

        assert legal_group_moves(state, units, Position(1, 1)) == []


class TestDeploy:
    """Reserve units enter on the home row."""

    def test_home_row_only(self, playing_state):
        assert can_deploy(playing_state, Player.ONE, Position(0, 0))
        assert not can_deploy(playing_state, Player.ONE, Position(0, 1))
        assert can_deploy(playing_state, Player.TWO, Position(2, 3))
        assert not can_deploy(playing_state, Player.TWO, Position(2, 0))

    def test_blocked_squares(self, playing_state):
        state = place(playing_state, Position(1, 0), make_unit(UnitType.INFANTRY, Player.TWO))
        state = place(state, Position(2, 0), *full_stack(Player.ONE))

        assert not can_deploy(state, Player.ONE, Position(1, 0))
        assert not can_deploy(state, Player.ONE, Position(2, 0))
        assert deploy_targets(state, Player.ONE) == [Position(0, 0)]

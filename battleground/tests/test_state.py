"""
Tests for the entity model.

Tests:
- Positions and board geometry
- Square stacking rules
- Army construction and id factories
- Initial state
"""

import pytest

from ..engine_core.errors import InvalidArmyError, InvalidPositionError
from ..engine_core.state import (
    ArmyEntry,
    Board,
    GamePhase,
    Player,
    Position,
    Square,
    UnitType,
    build_army,
    create_initial_state,
    get_home_row,
    get_reserve,
    get_square,
    sequential_ids,
)
from .conftest import make_unit


class TestPosition:
    """Tests for board coordinates."""

    def test_manhattan_distance(self):
        assert Position(0, 0).distance_to(Position(2, 3)) == 5
        assert Position(1, 1).distance_to(Position(1, 1)) == 0

    def test_adjacency_is_orthogonal(self):
        origin = Position(1, 1)
        assert origin.is_adjacent(Position(1, 2))
        assert origin.is_adjacent(Position(0, 1))
        assert not origin.is_adjacent(Position(2, 2))
        assert not origin.is_adjacent(Position(1, 3))

    def test_positions_are_hashable(self):
        assert len({Position(0, 1), Position(0, 1), Position(1, 0)}) == 2


class TestBoard:
    """Tests for the fixed grid."""

    def test_reference_dimensions(self):
        board = Board.empty()
        assert board.cols == 3
        assert board.rows == 4
        assert len(list(board.all_squares())) == 12

    def test_get_off_board_returns_none(self):
        board = Board.empty()
        assert board.get(Position(3, 0)) is None
        assert board.get(Position(0, -1)) is None

    def test_square_at_off_board_raises(self):
        """Out-of-bounds coordinates are a contract violation."""
        board = Board.empty()
        with pytest.raises(InvalidPositionError) as exc_info:
            board.square_at(Position(5, 5))
        assert exc_info.value.error_code == "OUT_OF_BOUNDS"
        assert str(exc_info.value) == (
            "[OUT_OF_BOUNDS] Position (5,5) is outside the board (Context: cols=3, rows=4)"
        )

    def test_with_square_does_not_mutate(self):
        board = Board.empty()
        unit = make_unit(UnitType.INFANTRY, Player.ONE)
        square = board.square_at(Position(1, 1)).add(unit)
        new_board = board.with_square(square)

        assert new_board.square_at(Position(1, 1)).units == (unit,)
        assert board.square_at(Position(1, 1)).is_empty

    def test_locate_unit(self):
        board = Board.empty()
        unit = make_unit(UnitType.CAVALRY, Player.TWO)
        board = board.with_square(board.square_at(Position(2, 3)).add(unit))
        assert board.locate(unit.id) == Position(2, 3)
        assert board.locate("missing") is None


class TestSquare:
    """Tests for stacking rules."""

    def test_friendly_square_with_room_accepts(self):
        square = Square(
            position=Position(0, 0),
            units=(make_unit(UnitType.INFANTRY, Player.ONE), make_unit(UnitType.INFANTRY, Player.ONE)),
        )
        assert square.can_accept(Player.ONE)
        assert not square.can_accept(Player.ONE, count=2)

    def test_enemy_square_never_accepts(self):
        square = Square(position=Position(0, 0), units=(make_unit(UnitType.INFANTRY, Player.TWO),))
        assert not square.can_accept(Player.ONE)
        assert square.has_enemy_of(Player.ONE)
        assert square.owner == Player.TWO

    def test_remove_keeps_order(self):
        a = make_unit(UnitType.INFANTRY, Player.ONE)
        b = make_unit(UnitType.CAVALRY, Player.ONE)
        c = make_unit(UnitType.ARTILLERY, Player.ONE)
        square = Square(position=Position(0, 0), units=(a, b, c))
        assert square.remove([b.id]).units == (a, c)


class TestUnit:
    """Tests for unit helpers."""

    def test_take_damage_floors_at_zero(self):
        unit = make_unit(UnitType.INFANTRY, Player.ONE, level=2)
        assert unit.take_damage(1).level == 1
        assert unit.take_damage(5).level == 0

    def test_reset_turn_flags(self):
        unit = make_unit(
            UnitType.CAVALRY, Player.ONE,
            has_moved=True, has_attacked=True, moved_squares=2, deployed_this_turn=True,
        )
        fresh = unit.reset_turn_flags()
        assert not fresh.has_moved
        assert not fresh.has_attacked
        assert fresh.moved_squares == 0
        assert not fresh.deployed_this_turn
        assert fresh.id == unit.id


class TestArmy:
    """Tests for building reserves."""

    def test_sequential_ids_are_deterministic(self):
        ids = sequential_ids()
        army = build_army(
            [ArmyEntry(UnitType.INFANTRY, 2), ArmyEntry(UnitType.CAVALRY, 3)],
            Player.ONE,
            ids,
        )
        assert [u.id for u in army] == ["1-infantry-1", "1-cavalry-2"]
        assert all(u.owner == Player.ONE for u in army)

    def test_level_out_of_range_raises(self):
        with pytest.raises(InvalidArmyError):
            build_army([ArmyEntry(UnitType.INFANTRY, 6)], Player.ONE)
        with pytest.raises(InvalidArmyError):
            build_army([ArmyEntry(UnitType.INFANTRY, 0)], Player.ONE)

    def test_unknown_unit_type_raises(self):
        with pytest.raises(InvalidArmyError) as exc_info:
            build_army([ArmyEntry("dragon", 2)], Player.ONE)
        assert exc_info.value.error_code == "INVALID_ARMY"

    def test_string_unit_types_are_accepted(self):
        army = build_army([ArmyEntry("artillery", 1)], Player.TWO)
        assert army[0].unit_type == UnitType.ARTILLERY

    def test_default_ids_are_unique(self):
        army = build_army([ArmyEntry(UnitType.INFANTRY, 1)] * 5, Player.ONE)
        assert len({u.id for u in army}) == 5


class TestInitialState:
    """Tests for game creation."""

    def test_without_army_waits_for_scenario(self, empty_state):
        assert empty_state.phase == GamePhase.AWAITING_SCENARIO
        assert empty_state.p1_reserve == ()
        assert empty_state.p2_reserve == ()
        assert empty_state.action_points == 6

    def test_army_seeds_mirror_reserves(self, ids):
        army = [ArmyEntry(UnitType.INFANTRY, 3), ArmyEntry(UnitType.ARTILLERY, 2)]
        state = create_initial_state(army, id_factory=ids)

        assert state.phase == GamePhase.PLAYING
        assert state.current_player == Player.ONE
        assert state.turn_number == 1
        p1 = [(u.unit_type, u.level) for u in state.p1_reserve]
        p2 = [(u.unit_type, u.level) for u in state.p2_reserve]
        assert p1 == p2
        assert all(u.owner == Player.TWO for u in state.p2_reserve)
        all_ids = [u.id for u in state.p1_reserve + state.p2_reserve]
        assert len(set(all_ids)) == 4

    def test_accessors(self, playing_state):
        assert get_home_row(playing_state, Player.ONE) == 0
        assert get_home_row(playing_state, Player.TWO) == 3
        assert get_reserve(playing_state, Player.TWO)[0].id == "p2-reserve"
        assert get_square(playing_state, Position(2, 3)).position == Position(2, 3)
        assert get_square(playing_state, Position(3, 3)) is None

"""
Game State - Immutable snapshot of a battle.

Design principles:
- Frozen: every transition returns a new snapshot
- Identity-preserving: a unit keeps its id from reserve to destruction
- Pure accessors: lookups never mutate and never raise for gameplay reasons
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Callable, Iterable, Iterator
import itertools
import uuid

from .errors import InvalidArmyError, InvalidPositionError


GRID_COLS = 3
GRID_ROWS = 4
MAX_UNITS_PER_SQUARE = 3
DEFAULT_AP = 6
MIN_LEVEL = 1
MAX_LEVEL = 5

# (dcol, drow): up, down, left, right
ORTHOGONAL: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


class GamePhase(Enum):
    """High-level game phases."""
    AWAITING_SCENARIO = "awaiting_scenario"
    PLAYING = "playing"
    TURN_HANDOFF = "turn_handoff"
    GAME_OVER = "game_over"


class Player(IntEnum):
    """The two sides. Values match the player numbers shown to humans."""
    ONE = 1
    TWO = 2

    @property
    def opponent(self) -> Player:
        return Player.TWO if self is Player.ONE else Player.ONE


class UnitType(Enum):
    """Unit archetypes."""
    INFANTRY = "infantry"
    CAVALRY = "cavalry"
    ARTILLERY = "artillery"

    @property
    def is_melee(self) -> bool:
        """Infantry and cavalry fight adjacent squares and roll in the melee pool."""
        return self is not UnitType.ARTILLERY


@dataclass(frozen=True)
class Position:
    """A board coordinate. Row 0 is player one's home row."""
    col: int
    row: int

    def offset(self, dcol: int, drow: int) -> Position:
        return Position(self.col + dcol, self.row + drow)

    def distance_to(self, other: Position) -> int:
        """Manhattan distance."""
        return abs(self.col - other.col) + abs(self.row - other.row)

    def is_adjacent(self, other: Position) -> bool:
        return self.distance_to(other) == 1

    @property
    def key(self) -> str:
        return f"{self.col},{self.row}"

    def __str__(self) -> str:
        return f"({self.col},{self.row})"


@dataclass(frozen=True)
class Unit:
    """
    A unit on the board or in a reserve.

    `level` is both remaining hit points and the number of dice rolled
    when attacking. The per-turn flags are cleared at the start of the
    owner's next turn.
    """
    id: str
    unit_type: UnitType
    owner: Player
    level: int
    has_moved: bool = False
    has_attacked: bool = False
    moved_squares: int = 0
    deployed_this_turn: bool = False

    def with_flags(self, **kwargs) -> Unit:
        """Return a copy with some flags replaced."""
        return replace(self, **kwargs)

    def reset_turn_flags(self) -> Unit:
        return replace(
            self,
            has_moved=False,
            has_attacked=False,
            moved_squares=0,
            deployed_this_turn=False,
        )

    def take_damage(self, damage: int) -> Unit:
        return replace(self, level=max(0, self.level - damage))


# Called with (unit_type, owner) and must return a fresh unique id.
IdFactory = Callable[[UnitType, Player], str]


def uuid_ids(unit_type: UnitType, owner: Player) -> str:
    """Default id factory."""
    return f"{int(owner)}-{unit_type.value}-{uuid.uuid4().hex[:8]}"


def sequential_ids(start: int = 1) -> IdFactory:
    """Deterministic id factory, useful for tests and replays."""
    counter = itertools.count(start)

    def next_id(unit_type: UnitType, owner: Player) -> str:
        return f"{int(owner)}-{unit_type.value}-{next(counter)}"

    return next_id


def create_unit(
    unit_type: UnitType,
    owner: Player,
    level: int,
    id_factory: IdFactory | None = None,
) -> Unit:
    """Create a fresh unit with cleared turn flags."""
    factory = id_factory or uuid_ids
    return Unit(
        id=factory(unit_type, owner),
        unit_type=unit_type,
        owner=Player(owner),
        level=level,
    )


@dataclass(frozen=True)
class ArmyEntry:
    """One line of an army configuration."""
    unit_type: UnitType
    level: int


def build_army(
    entries: Iterable[ArmyEntry],
    owner: Player,
    id_factory: IdFactory | None = None,
) -> tuple[Unit, ...]:
    """
    Create a reserve from an army configuration.

    Raises InvalidArmyError for unknown archetypes or levels outside 1-5.
    """
    units = []
    for entry in entries:
        try:
            unit_type = UnitType(entry.unit_type)
        except ValueError:
            raise InvalidArmyError(
                f"Unknown unit type: {entry.unit_type}",
                error_code="INVALID_ARMY",
            )
        if not MIN_LEVEL <= entry.level <= MAX_LEVEL:
            raise InvalidArmyError(
                f"Unit level must be between {MIN_LEVEL} and {MAX_LEVEL}",
                error_code="INVALID_ARMY",
                context={"unit_type": unit_type.value, "level": entry.level},
            )
        units.append(create_unit(unit_type, owner, entry.level, id_factory))
    return tuple(units)


@dataclass(frozen=True)
class Square:
    """
    A board square and the ordered units standing on it.

    All units on a non-empty square share one owner, and a square never
    holds more than MAX_UNITS_PER_SQUARE units.
    """
    position: Position
    units: tuple[Unit, ...] = ()

    @property
    def owner(self) -> Player | None:
        return self.units[0].owner if self.units else None

    @property
    def is_empty(self) -> bool:
        return len(self.units) == 0

    @property
    def count(self) -> int:
        return len(self.units)

    def has_enemy_of(self, player: Player) -> bool:
        return any(u.owner != player for u in self.units)

    def can_accept(self, player: Player, count: int = 1) -> bool:
        """True if `count` units of `player` can be added here."""
        if self.has_enemy_of(player):
            return False
        return len(self.units) + count <= MAX_UNITS_PER_SQUARE

    def find(self, unit_id: str) -> Unit | None:
        for u in self.units:
            if u.id == unit_id:
                return u
        return None

    def add(self, *units: Unit) -> Square:
        """Return new square with units appended."""
        return Square(position=self.position, units=self.units + tuple(units))

    def remove(self, unit_ids: Iterable[str]) -> Square:
        """Return new square without the given units."""
        ids = set(unit_ids)
        return Square(
            position=self.position,
            units=tuple(u for u in self.units if u.id not in ids),
        )

    def map_units(self, fn: Callable[[Unit], Unit]) -> Square:
        return Square(position=self.position, units=tuple(fn(u) for u in self.units))


@dataclass(frozen=True)
class Board:
    """Fixed grid of squares, indexed as squares[row][col]."""
    squares: tuple[tuple[Square, ...], ...]

    @classmethod
    def empty(cls, cols: int = GRID_COLS, rows: int = GRID_ROWS) -> Board:
        return cls(
            squares=tuple(
                tuple(Square(position=Position(c, r)) for c in range(cols))
                for r in range(rows)
            )
        )

    @property
    def rows(self) -> int:
        return len(self.squares)

    @property
    def cols(self) -> int:
        return len(self.squares[0]) if self.squares else 0

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.col < self.cols and 0 <= pos.row < self.rows

    def get(self, pos: Position) -> Square | None:
        """Get the square at a position, or None when off the board."""
        if not self.in_bounds(pos):
            return None
        return self.squares[pos.row][pos.col]

    def square_at(self, pos: Position) -> Square:
        """Get the square at a position the caller guarantees is on the board."""
        square = self.get(pos)
        if square is None:
            raise InvalidPositionError(
                f"Position {pos} is outside the board",
                error_code="OUT_OF_BOUNDS",
                context={"cols": self.cols, "rows": self.rows},
            )
        return square

    def all_squares(self) -> Iterator[Square]:
        for row in self.squares:
            yield from row

    def with_square(self, square: Square) -> Board:
        """Return new board with one square replaced."""
        pos = square.position
        new_row = tuple(
            square if c == pos.col else sq
            for c, sq in enumerate(self.squares[pos.row])
        )
        return Board(
            squares=tuple(
                new_row if r == pos.row else row
                for r, row in enumerate(self.squares)
            )
        )

    def map_units(self, fn: Callable[[Unit], Unit]) -> Board:
        return Board(
            squares=tuple(
                tuple(sq.map_units(fn) for sq in row) for row in self.squares
            )
        )

    def units_of(self, player: Player) -> list[Unit]:
        return [u for sq in self.all_squares() for u in sq.units if u.owner == player]

    def locate(self, unit_id: str) -> Position | None:
        """Find the position of a unit on the board."""
        for sq in self.all_squares():
            if sq.find(unit_id):
                return sq.position
        return None


@dataclass(frozen=True)
class CombatLogEntry:
    """A human-readable record of one applied action."""
    turn: int
    player: Player
    action: str
    details: str


@dataclass(frozen=True)
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    board: Board = field(default_factory=Board.empty)
    p1_reserve: tuple[Unit, ...] = ()
    p2_reserve: tuple[Unit, ...] = ()

    current_player: Player = Player.ONE
    action_points: int = DEFAULT_AP
    max_action_points: int = DEFAULT_AP
    turn_number: int = 1

    # UI affordance only, never consulted by the rules
    selected_square: Position | None = None

    phase: GamePhase = GamePhase.AWAITING_SCENARIO
    winner: Player | None = None
    combat_log: tuple[CombatLogEntry, ...] = ()

    scenario_key: str | None = None

    def get_square(self, pos: Position) -> Square | None:
        return self.board.get(pos)

    def get_reserve(self, player: Player) -> tuple[Unit, ...]:
        return self.p1_reserve if player == Player.ONE else self.p2_reserve

    def home_row(self, player: Player) -> int:
        return home_row(player, self.board.rows)

    def with_reserve(self, player: Player, units: tuple[Unit, ...]) -> GameState:
        """Return new state with a player's reserve replaced."""
        if player == Player.ONE:
            return self._copy_with(p1_reserve=tuple(units))
        return self._copy_with(p2_reserve=tuple(units))

    def with_square(self, square: Square) -> GameState:
        return self._copy_with(board=self.board.with_square(square))

    def with_log(self, action: str, details: str) -> GameState:
        """Return new state with a combat log entry appended."""
        entry = CombatLogEntry(
            turn=self.turn_number,
            player=self.current_player,
            action=action,
            details=details,
        )
        return self._copy_with(combat_log=self.combat_log + (entry,))

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)


def home_row(player: Player, rows: int = GRID_ROWS) -> int:
    """Row 0 for player one, the last row for player two."""
    return 0 if player == Player.ONE else rows - 1


def get_square(state: GameState, pos: Position) -> Square | None:
    return state.get_square(pos)


def get_reserve(state: GameState, player: Player) -> tuple[Unit, ...]:
    return state.get_reserve(player)


def get_home_row(state: GameState, player: Player) -> int:
    return state.home_row(player)


def create_initial_state(
    army: Iterable[ArmyEntry] | None = None,
    id_factory: IdFactory | None = None,
    max_action_points: int = DEFAULT_AP,
    cols: int = GRID_COLS,
    rows: int = GRID_ROWS,
    scenario_key: str | None = None,
) -> GameState:
    """
    Create a fresh game.

    Without an army the game waits for a scenario; with one, both reserves
    are seeded identically and play starts with player one.
    """
    state = GameState(
        board=Board.empty(cols, rows),
        action_points=max_action_points,
        max_action_points=max_action_points,
    )
    if army is None:
        return state
    return seed_reserves(state, army, id_factory, scenario_key)


def seed_reserves(
    state: GameState,
    army: Iterable[ArmyEntry],
    id_factory: IdFactory | None = None,
    scenario_key: str | None = None,
) -> GameState:
    """Fill both reserves with mirror armies and start play."""
    entries = list(army)
    return state._copy_with(
        p1_reserve=build_army(entries, Player.ONE, id_factory),
        p2_reserve=build_army(entries, Player.TWO, id_factory),
        phase=GamePhase.PLAYING,
        current_player=Player.ONE,
        action_points=state.max_action_points,
        turn_number=1,
        winner=None,
        scenario_key=scenario_key,
    )

"""
Engine Core - Deterministic battle state management and combat resolution.

The engine is the runtime that:
1. Holds immutable GameState snapshots
2. Answers movement and targeting queries
3. Generates legal actions
4. Applies actions via the reducer
5. Resolves combat with injectable dice
"""

from .state import (
    Board,
    GamePhase,
    GameState,
    Player,
    Position,
    Square,
    Unit,
    UnitType,
    create_initial_state,
    sequential_ids,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action
from .action_generator import ActionGenerator, legal_actions, is_legal
from .combat import AttackResult, Bonus, CombatForecast, forecast_attack
from .errors import BattlegroundError

__all__ = [
    "Board",
    "GamePhase",
    "GameState",
    "Player",
    "Position",
    "Square",
    "Unit",
    "UnitType",
    "create_initial_state",
    "sequential_ids",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
    "ActionGenerator",
    "legal_actions",
    "is_legal",
    "AttackResult",
    "Bonus",
    "CombatForecast",
    "forecast_attack",
    "BattlegroundError",
]

"""
Action System - Actions, payloads, and results.

Actions represent:
1. Player actions (deploy, move, group move, attack, retreat)
2. Turn flow (end turn, confirm handoff)
3. Setup and UI affordances (start game, select square)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import Position


class ActionType(Enum):
    """Types of actions in the system."""
    # Player actions (cost 1 AP)
    DEPLOY = "deploy"
    MOVE = "move"
    GROUP_MOVE = "group_move"
    ATTACK = "attack"

    # Turn flow
    END_TURN = "end_turn"
    CONFIRM_HANDOFF = "confirm_handoff"
    RETREAT = "retreat"

    # Setup / UI
    START_GAME = "start_game"
    SELECT_SQUARE = "select_square"


AP_ACTIONS = frozenset({
    ActionType.DEPLOY,
    ActionType.MOVE,
    ActionType.GROUP_MOVE,
    ActionType.ATTACK,
})


@dataclass(frozen=True)
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields; validation happens in
    the reducer.
    """
    unit_id: str | None = None
    unit_ids: tuple[str, ...] | None = None

    origin: Position | None = None
    destination: Position | None = None

    # Attacks may come from several squares at once
    origins: tuple[Position, ...] = ()
    target: Position | None = None

    # Start game
    scenario_key: str | None = None

    # Select square (None clears the selection)
    position: Position | None = None


@dataclass(frozen=True)
class Action:
    """A complete action to be applied to the game state."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def deploy(cls, unit_id: str, target: Position) -> Action:
        """Factory for deploy action."""
        return cls(
            action_type=ActionType.DEPLOY,
            payload=ActionPayload(unit_id=unit_id, destination=target),
        )

    @classmethod
    def move(cls, unit_id: str, origin: Position, destination: Position) -> Action:
        """Factory for single-unit move."""
        return cls(
            action_type=ActionType.MOVE,
            payload=ActionPayload(unit_id=unit_id, origin=origin, destination=destination),
        )

    @classmethod
    def group_move(
        cls, unit_ids: list[str], origin: Position, destination: Position
    ) -> Action:
        """Factory for moving a stack together."""
        return cls(
            action_type=ActionType.GROUP_MOVE,
            payload=ActionPayload(
                unit_ids=tuple(unit_ids), origin=origin, destination=destination
            ),
        )

    @classmethod
    def attack(
        cls,
        origins: list[Position],
        target: Position,
        unit_ids: list[str] | None = None,
    ) -> Action:
        """Factory for attack action."""
        return cls(
            action_type=ActionType.ATTACK,
            payload=ActionPayload(
                origins=tuple(origins),
                target=target,
                unit_ids=tuple(unit_ids) if unit_ids is not None else None,
            ),
        )

    @classmethod
    def end_turn(cls) -> Action:
        return cls(action_type=ActionType.END_TURN)

    @classmethod
    def confirm_handoff(cls) -> Action:
        return cls(action_type=ActionType.CONFIRM_HANDOFF)

    @classmethod
    def retreat(cls) -> Action:
        return cls(action_type=ActionType.RETREAT)

    @classmethod
    def start_game(cls, scenario_key: str) -> Action:
        return cls(
            action_type=ActionType.START_GAME,
            payload=ActionPayload(scenario_key=scenario_key),
        )

    @classmethod
    def select_square(cls, position: Position | None) -> Action:
        return cls(
            action_type=ActionType.SELECT_SQUARE,
            payload=ActionPayload(position=position),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action took effect
    - The resulting state (the unchanged input state when it did not)
    - Reason and code when it did not
    - Human-readable changes and the attack breakdown, for presentation
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)
    attack_result: Any | None = None  # AttackResult

    @property
    def applied(self) -> bool:
        return self.success

    @classmethod
    def failure(
        cls,
        state: Any,
        error: str,
        error_code: str | None = None,
        attack_result: Any | None = None,
    ) -> ActionResult:
        """Create a no-op result that echoes the input state."""
        return cls(
            success=False,
            new_state=state,
            error=error,
            error_code=error_code,
            attack_result=attack_result,
        )

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        attack_result: Any | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            attack_result=attack_result,
        )

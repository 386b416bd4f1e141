"""
Reducer - Applies actions to game state.

The reducer is the single point of state change.
All transitions go through Reducer.apply() or the convenience functions
below.

Design principles:
- Pure function: (state, action) -> new_state
- Validates before applying, re-checking destinations and targets against
  the movement and targeting evaluators
- Illegal gameplay is a no-op: the result echoes the input state
- Checks for a winner after every applied action
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
import logging
import random

from .action import AP_ACTIONS, Action, ActionResult, ActionType
from .combat import AttackResult, resolve_combat
from .damage import distribute_damage
from .errors import BattlegroundError
from .movement import can_deploy, legal_group_moves, legal_moves
from .state import GamePhase, GameState, IdFactory, Player, Position, seed_reserves
from .targeting import defenders_at, gather_attackers
from .victory import check_winner

logger = logging.getLogger(__name__)


PHASE_ACTIONS: dict[GamePhase, frozenset[ActionType]] = {
    GamePhase.AWAITING_SCENARIO: frozenset({ActionType.START_GAME}),
    GamePhase.PLAYING: frozenset({
        ActionType.DEPLOY,
        ActionType.MOVE,
        ActionType.GROUP_MOVE,
        ActionType.ATTACK,
        ActionType.END_TURN,
        ActionType.RETREAT,
        ActionType.SELECT_SQUARE,
    }),
    GamePhase.TURN_HANDOFF: frozenset({ActionType.CONFIRM_HANDOFF}),
    GamePhase.GAME_OVER: frozenset(),
}


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all game state is in GameState. The random source and id
    factory are injected so dice and unit ids can be made deterministic.
    """
    rng: random.Random | None = None
    id_factory: IdFactory | None = None

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with the new state, or the unchanged state and
        a reason when the action is not legal right now.
        """
        validation = self._validate_action(state, action)
        if validation:
            error, error_code = validation
            return self._reject(state, action, error, error_code)

        handler = self._get_handler(action.action_type)
        try:
            result = handler(state, action)
        except BattlegroundError as e:
            logger.warning("Rejected %s: %s", action.action_type.value, e)
            return ActionResult.failure(state, e.message, error_code=e.error_code)

        if result.success:
            result.new_state = self._settle_winner(result.new_state)
        else:
            logger.debug("Ignored %s: %s", action.action_type.value, result.error)
        return result

    def _validate_action(self, state: GameState, action: Action) -> tuple[str, str] | None:
        """
        Check phase and action points.

        Returns (message, code) if invalid, None if the handler should run.
        """
        if action.action_type not in PHASE_ACTIONS[state.phase]:
            if state.phase == GamePhase.GAME_OVER:
                return "Game is over - no actions allowed", "WRONG_PHASE"
            return (
                f"{action.action_type.value} is not allowed during {state.phase.value}",
                "WRONG_PHASE",
            )

        if action.action_type in AP_ACTIONS and state.action_points <= 0:
            return "No action points remaining this turn", "NO_ACTION_POINTS"

        return None

    def _reject(
        self, state: GameState, action: Action, error: str, error_code: str
    ) -> ActionResult:
        logger.debug("Ignored %s: %s", action.action_type.value, error)
        attack_result = None
        if action.action_type == ActionType.ATTACK:
            attack_result = AttackResult.empty(action.payload.target)
        return ActionResult.failure(state, error, error_code, attack_result)

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.DEPLOY: self._handle_deploy,
            ActionType.MOVE: self._handle_move,
            ActionType.GROUP_MOVE: self._handle_group_move,
            ActionType.ATTACK: self._handle_attack,
            ActionType.END_TURN: self._handle_end_turn,
            ActionType.CONFIRM_HANDOFF: self._handle_confirm_handoff,
            ActionType.RETREAT: self._handle_retreat,
            ActionType.START_GAME: self._handle_start_game,
            ActionType.SELECT_SQUARE: self._handle_select_square,
        }
        return handlers[action_type]

    def _settle_winner(self, state: GameState) -> GameState:
        if state.phase == GamePhase.GAME_OVER:
            return state
        winner = check_winner(state)
        if winner is None:
            return state
        logger.info("Player %d wins on turn %d", winner, state.turn_number)
        return state.with_log(
            "game_over", f"Player {int(winner)} wins"
        )._copy_with(phase=GamePhase.GAME_OVER, winner=winner)

    def _spend(self, state: GameState) -> GameState:
        return state._copy_with(action_points=state.action_points - 1)

    def _handle_deploy(self, state: GameState, action: Action) -> ActionResult:
        """Move a reserve unit onto the current player's home row."""
        p = action.payload
        player = state.current_player
        if p.destination is None:
            return ActionResult.failure(state, "No deploy target given", "INVALID_PAYLOAD")

        reserve = state.get_reserve(player)
        unit = next((u for u in reserve if u.id == p.unit_id), None)
        if unit is None:
            return ActionResult.failure(
                state, f"Unit {p.unit_id} is not in player {int(player)}'s reserve", "UNIT_NOT_FOUND"
            )
        if not can_deploy(state, player, p.destination):
            return ActionResult.failure(
                state, f"Cannot deploy to {p.destination}", "ILLEGAL_DESTINATION"
            )

        deployed = unit.with_flags(has_moved=True, moved_squares=0, deployed_this_turn=True)
        square = state.board.square_at(p.destination)
        new_state = state.with_square(square.add(deployed))
        new_state = new_state.with_reserve(player, tuple(u for u in reserve if u.id != unit.id))
        change = f"{unit.unit_type.value} (level {unit.level}) deployed to {p.destination}"
        new_state = self._spend(new_state).with_log("deploy", change)
        return ActionResult.success_with_state(new_state, changes=[change])

    def _handle_move(self, state: GameState, action: Action) -> ActionResult:
        """Move one unit to a destination its archetype allows."""
        p = action.payload
        if p.origin is None or p.destination is None:
            return ActionResult.failure(state, "Move needs an origin and a destination", "INVALID_PAYLOAD")

        square = state.get_square(p.origin)
        unit = square.find(p.unit_id) if square else None
        if unit is None or unit.owner != state.current_player:
            return ActionResult.failure(
                state, f"Unit {p.unit_id} is not at {p.origin}", "UNIT_NOT_FOUND"
            )
        if p.destination not in legal_moves(state, unit, p.origin):
            return ActionResult.failure(
                state, f"{unit.unit_type.value} cannot move to {p.destination}", "ILLEGAL_DESTINATION"
            )

        moved = unit.with_flags(has_moved=True, moved_squares=p.origin.distance_to(p.destination))
        new_state = state.with_square(square.remove([unit.id]))
        dest = new_state.board.square_at(p.destination)
        new_state = new_state.with_square(dest.add(moved))
        change = f"{unit.unit_type.value} moved {p.origin} -> {p.destination}"
        new_state = self._spend(new_state).with_log("move", change)
        return ActionResult.success_with_state(new_state, changes=[change])

    def _handle_group_move(self, state: GameState, action: Action) -> ActionResult:
        """Move several units from one square together for a single AP."""
        p = action.payload
        if p.origin is None or p.destination is None or not p.unit_ids:
            return ActionResult.failure(state, "Group move needs units, an origin and a destination", "INVALID_PAYLOAD")

        square = state.get_square(p.origin)
        ids = list(dict.fromkeys(p.unit_ids))
        units = [square.find(uid) for uid in ids] if square else []
        if not units or any(u is None or u.owner != state.current_player for u in units):
            return ActionResult.failure(
                state, f"Not all units are at {p.origin}", "UNIT_NOT_FOUND"
            )
        if p.destination not in legal_group_moves(state, units, p.origin):
            return ActionResult.failure(
                state, f"Group cannot move to {p.destination}", "ILLEGAL_DESTINATION"
            )

        distance = p.origin.distance_to(p.destination)
        moved = [u.with_flags(has_moved=True, moved_squares=distance) for u in units]
        new_state = state.with_square(square.remove(ids))
        dest = new_state.board.square_at(p.destination)
        new_state = new_state.with_square(dest.add(*moved))
        change = f"{len(moved)} units moved {p.origin} -> {p.destination}"
        new_state = self._spend(new_state).with_log("group_move", change)
        return ActionResult.success_with_state(new_state, changes=[change])

    def _handle_attack(self, state: GameState, action: Action) -> ActionResult:
        """
        Resolve an attack on one square from one or more origin squares.

        Only units that can individually reach the target take part, and
        only they are flagged as having attacked.
        """
        p = action.payload
        target = p.target
        empty = AttackResult.empty(target)
        if target is None:
            return ActionResult.failure(state, "No attack target given", "INVALID_PAYLOAD", empty)

        player = state.current_player
        attackers = gather_attackers(state, p.origins, target, player, p.unit_ids)
        if not attackers:
            return ActionResult.failure(state, f"No units can attack {target}", "NO_ATTACKERS", empty)
        defenders = defenders_at(state, target, player)
        if not defenders:
            return ActionResult.failure(state, f"No enemy units at {target}", "NO_DEFENDERS", empty)

        rng = self.rng
        outcome = resolve_combat(attackers, defenders, target, rng)
        damage = distribute_damage(outcome.hits, defenders, rng)

        attacker_ids = [u.id for units in attackers.values() for u in units]
        attacking = set(attacker_ids)
        damage_by_id = {d.unit_id: d.damage for d in damage}

        def settle(unit):
            if unit.id in attacking:
                return unit.with_flags(has_attacked=True)
            if unit.id in damage_by_id:
                return unit.take_damage(damage_by_id[unit.id])
            return unit

        board = state.board.map_units(settle)
        target_square = board.square_at(target)
        board = board.with_square(
            target_square.remove(u.id for u in target_square.units if u.level <= 0)
        )

        result = AttackResult(
            attacker_squares=list(attackers.keys()),
            target=target,
            attacker_ids=attacker_ids,
            outcome=outcome,
            unit_damage=damage,
        )
        change = (
            f"{len(attacker_ids)} units attacked {target}: {outcome.total_dice} dice "
            f"at {outcome.threshold}, {outcome.hits} hits"
        )
        if outcome.bonuses:
            change += f" ({', '.join(b.value for b in outcome.bonuses)})"
        if result.destroyed_ids:
            change += f"; destroyed {', '.join(result.destroyed_ids)}"

        new_state = self._spend(state._copy_with(board=board)).with_log("attack", change)
        return ActionResult.success_with_state(new_state, changes=[change], attack_result=result)

    def _handle_end_turn(self, state: GameState, action: Action) -> ActionResult:
        """Hand the turn to the other player and refresh their units."""
        outgoing = state.current_player
        incoming = outgoing.opponent
        board = state.board.map_units(
            lambda u: u.reset_turn_flags() if u.owner == incoming else u
        )
        turn_number = state.turn_number + 1 if incoming == Player.ONE else state.turn_number

        new_state = state.with_log("end_turn", f"Player {int(outgoing)} ended the turn")
        new_state = new_state._copy_with(
            board=board,
            current_player=incoming,
            action_points=state.max_action_points,
            selected_square=None,
            phase=GamePhase.TURN_HANDOFF,
            turn_number=turn_number,
        )
        return ActionResult.success_with_state(
            new_state, changes=[f"Turn ended. Next player: {int(incoming)}"]
        )

    def _handle_confirm_handoff(self, state: GameState, action: Action) -> ActionResult:
        return ActionResult.success_with_state(
            state._copy_with(phase=GamePhase.PLAYING),
            changes=[f"Player {int(state.current_player)} takes the field"],
        )

    def _handle_retreat(self, state: GameState, action: Action) -> ActionResult:
        """The current player concedes; the game ends immediately."""
        loser = state.current_player
        change = f"Player {int(loser)} retreated"
        new_state = state.with_log("retreat", change)._copy_with(
            phase=GamePhase.GAME_OVER,
            winner=loser.opponent,
        )
        return ActionResult.success_with_state(new_state, changes=[change])

    def _handle_start_game(self, state: GameState, action: Action) -> ActionResult:
        """Seed both reserves from a built-in scenario."""
        from ..scenarios import get_scenario

        key = action.payload.scenario_key
        scenario = get_scenario(key)
        new_state = seed_reserves(state, scenario.army, self.id_factory, scenario_key=key)
        change = f"Scenario {scenario.name} started"
        return ActionResult.success_with_state(new_state.with_log("start", change), changes=[change])

    def _handle_select_square(self, state: GameState, action: Action) -> ActionResult:
        pos = action.payload.position
        if pos is not None and not state.board.in_bounds(pos):
            return ActionResult.failure(state, f"{pos} is outside the board", "INVALID_POSITION")
        return ActionResult.success_with_state(state._copy_with(selected_square=pos))


def apply_action(
    state: GameState,
    action: Action,
    rng: random.Random | None = None,
    id_factory: IdFactory | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rng=rng, id_factory=id_factory)
    return reducer.apply(state, action)


def start_game(
    state: GameState, scenario_key: str, id_factory: IdFactory | None = None
) -> GameState:
    """Start a game from a built-in scenario; raises UnknownScenarioError for bad keys."""
    from ..scenarios import get_scenario

    if state.phase != GamePhase.AWAITING_SCENARIO:
        return state
    scenario = get_scenario(scenario_key)
    new_state = seed_reserves(state, scenario.army, id_factory, scenario_key=scenario_key)
    return new_state.with_log("start", f"Scenario {scenario.name} started")


def deploy_unit(state: GameState, unit_id: str, target: Position) -> GameState:
    return apply_action(state, Action.deploy(unit_id, target)).new_state


def move_unit(
    state: GameState, unit_id: str, origin: Position, destination: Position
) -> GameState:
    return apply_action(state, Action.move(unit_id, origin, destination)).new_state


def group_move(
    state: GameState, unit_ids: list[str], origin: Position, destination: Position
) -> GameState:
    return apply_action(state, Action.group_move(unit_ids, origin, destination)).new_state


def attack_square(
    state: GameState,
    origins: Iterable[Position],
    target: Position,
    unit_ids: Iterable[str] | None = None,
    rng: random.Random | None = None,
) -> tuple[GameState, AttackResult]:
    """Attack and return both the new state and the combat breakdown."""
    action = Action.attack(
        list(origins), target, list(unit_ids) if unit_ids is not None else None
    )
    result = apply_action(state, action, rng=rng)
    return result.new_state, result.attack_result


def end_turn(state: GameState) -> GameState:
    return apply_action(state, Action.end_turn()).new_state


def confirm_handoff(state: GameState) -> GameState:
    return apply_action(state, Action.confirm_handoff()).new_state


def retreat(state: GameState) -> GameState:
    return apply_action(state, Action.retreat()).new_state


def select_square(state: GameState, position: Position | None) -> GameState:
    return apply_action(state, Action.select_square(position)).new_state

"""
Action Generator - Generates all legal actions from a game state.

The action generator is used by:
1. The UI to show available actions
2. Validation (is this action in legal_actions?)

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified.
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import Action, ActionType
from .movement import deploy_targets, legal_group_moves, legal_moves
from .state import GamePhase, GameState
from .targeting import eligible_attackers, legal_attack_targets


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the current game state.

    Attacks are generated once per (origin, target) pair using every
    eligible unit on the origin square; narrower unit selections are legal
    too but are not enumerated.
    """

    def generate(self, state: GameState) -> list[Action]:
        """
        Generate all legal actions for the current player.

        Returns a list of fully-specified Action objects.
        """
        if state.phase == GamePhase.TURN_HANDOFF:
            return [Action.confirm_handoff()]

        if state.phase != GamePhase.PLAYING:
            return []

        actions = []
        if state.action_points > 0:
            actions.extend(self._generate_deploy_actions(state))
            actions.extend(self._generate_move_actions(state))
            actions.extend(self._generate_group_move_actions(state))
            actions.extend(self._generate_attack_actions(state))

        # Ending the turn and retreating never cost action points
        actions.append(Action.end_turn())
        actions.append(Action.retreat())
        return actions

    def _generate_deploy_actions(self, state: GameState) -> list[Action]:
        player = state.current_player
        targets = deploy_targets(state, player)
        return [
            Action.deploy(unit.id, target)
            for unit in state.get_reserve(player)
            for target in targets
        ]

    def _generate_move_actions(self, state: GameState) -> list[Action]:
        actions = []
        for square in state.board.all_squares():
            for unit in square.units:
                if unit.owner != state.current_player:
                    continue
                for dest in legal_moves(state, unit, square.position):
                    actions.append(Action.move(unit.id, square.position, dest))
        return actions

    def _generate_group_move_actions(self, state: GameState) -> list[Action]:
        """One group move per destination, for the full stack on a square."""
        actions = []
        for square in state.board.all_squares():
            if square.owner != state.current_player:
                continue
            units = list(square.units)
            ids = [u.id for u in units]
            for dest in legal_group_moves(state, units, square.position):
                actions.append(Action.group_move(ids, square.position, dest))
        return actions

    def _generate_attack_actions(self, state: GameState) -> list[Action]:
        actions = []
        for square in state.board.all_squares():
            if square.owner != state.current_player:
                continue
            if not eligible_attackers(state, square.position):
                continue
            for target in legal_attack_targets(state, square.position):
                actions.append(Action.attack([square.position], target))
        return actions


def legal_actions(state: GameState) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    generator = ActionGenerator()
    return generator.generate(state)


def is_legal(state: GameState, action: Action) -> bool:
    """Check if a specific action is legal."""
    if action.action_type == ActionType.SELECT_SQUARE:
        return state.phase == GamePhase.PLAYING
    return action in legal_actions(state)

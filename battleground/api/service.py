"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages sessions
3. Formats state and combat results for a renderer

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    AttackRequest,
    CreateSessionRequest,
    DeployRequest,
    GroupMoveRequest,
    MoveRequest,
    SelectRequest,
    # Responses
    ActionResponse,
    EndSessionResponse,
    ErrorResponse,
    ForecastResponse,
    GameStateResponse,
    LegalPositionsResponse,
    SessionListResponse,
    # Shared
    ArtilleryForecastInfo,
    AttackResultInfo,
    CombatLogInfo,
    PositionModel,
    ScenarioInfo,
    SquareInfo,
    UnitDamageInfo,
    UnitInfo,
    # Enums
    ErrorCode,
    PhaseName,
    UnitTypeName,
)
from ..engine_core.action import Action, ActionResult
from ..engine_core.combat import AttackResult, forecast_attack
from ..engine_core.errors import BattlegroundError, UnitNotFoundError
from ..engine_core.movement import deploy_targets, legal_group_moves, legal_moves
from ..engine_core.state import GameState, Player, Position, Unit
from ..engine_core.targeting import legal_attack_targets
from ..scenarios import list_scenarios
from ..session import Session, SessionManager

logger = logging.getLogger(__name__)


# Engine error codes that have a different name over the wire
_ENGINE_ERROR_CODES = {
    "OUT_OF_BOUNDS": ErrorCode.INVALID_POSITION,
}


def _error_from_exception(e: BattlegroundError) -> ErrorResponse:
    logger.debug("Request failed: %s", e)
    code = _ENGINE_ERROR_CODES.get(e.error_code)
    if code is None:
        try:
            code = ErrorCode(e.error_code)
        except ValueError:
            code = ErrorCode.INTERNAL_ERROR
    return ErrorResponse(
        error=e.message,
        error_code=code,
        details={k: str(v) for k, v in e.context.items()} or None,
    )


def _session_not_found(session_id: str) -> ErrorResponse:
    return ErrorResponse(
        error="Session not found",
        error_code=ErrorCode.SESSION_NOT_FOUND,
        details={"session_id": session_id},
    )


def _position(pos: Position) -> PositionModel:
    return PositionModel(col=pos.col, row=pos.row)


def _unit_info(unit: Unit) -> UnitInfo:
    return UnitInfo(
        id=unit.id,
        unit_type=UnitTypeName(unit.unit_type.value),
        owner=int(unit.owner),
        level=unit.level,
        has_moved=unit.has_moved,
        has_attacked=unit.has_attacked,
        moved_squares=unit.moved_squares,
        deployed_this_turn=unit.deployed_this_turn,
    )


def _attack_info(result: AttackResult) -> AttackResultInfo:
    outcome = result.outcome
    return AttackResultInfo(
        attacker_squares=[_position(p) for p in result.attacker_squares],
        target=_position(result.target) if result.target is not None else None,
        attacker_ids=list(result.attacker_ids),
        total_dice=outcome.total_dice,
        threshold=outcome.threshold,
        hits=outcome.hits,
        bonuses=[b.value for b in outcome.bonuses],
        melee_dice=outcome.melee_dice,
        melee_hits=outcome.melee_hits,
        artillery_dice=outcome.artillery_dice,
        artillery_hits=outcome.artillery_hits,
        vulnerability_hits=outcome.vulnerability_hits,
        flanking_artillery_hits=outcome.flanking_artillery_hits,
        unit_damage=[
            UnitDamageInfo(unit_id=d.unit_id, damage=d.damage, destroyed=d.destroyed)
            for d in result.unit_damage
        ],
        destroyed_ids=result.destroyed_ids,
    )


def state_to_response(session_id: str, state: GameState) -> GameStateResponse:
    """Convert an engine snapshot into the API representation."""
    return GameStateResponse(
        session_id=session_id,
        scenario_key=state.scenario_key,
        phase=PhaseName(state.phase.value),
        current_player=int(state.current_player),
        action_points=state.action_points,
        max_action_points=state.max_action_points,
        turn_number=state.turn_number,
        cols=state.board.cols,
        rows=state.board.rows,
        squares=[
            SquareInfo(
                position=_position(sq.position),
                owner=int(sq.owner) if sq.owner is not None else None,
                units=[_unit_info(u) for u in sq.units],
            )
            for sq in state.board.all_squares()
        ],
        reserves={
            str(int(player)): [_unit_info(u) for u in state.get_reserve(player)]
            for player in Player
        },
        selected_square=(
            _position(state.selected_square) if state.selected_square is not None else None
        ),
        winner=int(state.winner) if state.winner is not None else None,
        combat_log=[
            CombatLogInfo(
                turn=e.turn, player=int(e.player), action=e.action, details=e.details
            )
            for e in state.combat_log
        ],
    )


@dataclass
class APIService:
    """
    Main API service for a hot-seat renderer.

    Usage:
        service = APIService()

        # Create session
        state = service.create_session(CreateSessionRequest(scenario_key="battle"))

        # Submit actions
        response = service.move(state.session_id, MoveRequest(...))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def list_scenarios(self) -> list[ScenarioInfo]:
        return [
            ScenarioInfo(
                key=s.key,
                name=s.name,
                description=s.description,
                unit_count=s.unit_count,
                total_levels=s.total_levels,
                army=[
                    {"unit_type": e.unit_type.value, "level": e.level} for e in s.army
                ],
            )
            for s in list_scenarios()
        ]

    def create_session(
        self, request: CreateSessionRequest
    ) -> GameStateResponse | ErrorResponse:
        """Create a new game session with the scenario already started."""
        try:
            session = self.session_manager.create_session(
                scenario_key=request.scenario_key,
                random_seed=request.random_seed,
                max_action_points=request.max_action_points,
            )
        except BattlegroundError as e:
            return _error_from_exception(e)
        return state_to_response(session.session_id, session.game_state)

    def get_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        return state_to_response(session_id, session.game_state)

    def list_sessions(self) -> SessionListResponse:
        sessions = self.session_manager.list_active_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    def end_session(self, session_id: str) -> EndSessionResponse:
        success = self.session_manager.end_session(session_id, reason="ended by host")
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def legal_moves(
        self, session_id: str, unit_id: str
    ) -> LegalPositionsResponse | ErrorResponse:
        """Destinations for one unit already on the board."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        try:
            unit, origin = self._find_unit(session.game_state, unit_id)
        except BattlegroundError as e:
            return _error_from_exception(e)
        return self._positions(
            session_id, "moves", legal_moves(session.game_state, unit, origin)
        )

    def legal_group_moves(
        self, session_id: str, col: int, row: int
    ) -> LegalPositionsResponse | ErrorResponse:
        """Destinations for the whole stack on a square."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        state = session.game_state
        try:
            square = state.board.square_at(Position(col, row))
        except BattlegroundError as e:
            return _error_from_exception(e)
        return self._positions(
            session_id,
            "group_moves",
            legal_group_moves(state, list(square.units), square.position),
        )

    def deploy_targets(self, session_id: str) -> LegalPositionsResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        state = session.game_state
        return self._positions(
            session_id, "deploy", deploy_targets(state, state.current_player)
        )

    def legal_targets(
        self, session_id: str, col: int, row: int, unit_id: str | None = None
    ) -> LegalPositionsResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        state = session.game_state
        try:
            origin = state.board.square_at(Position(col, row)).position
        except BattlegroundError as e:
            return _error_from_exception(e)
        return self._positions(
            session_id, "targets", legal_attack_targets(state, origin, unit_id)
        )

    def forecast(
        self, session_id: str, request: AttackRequest
    ) -> ForecastResponse | ErrorResponse:
        """Odds for an attack by the current player, without rolling any dice."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        state = session.game_state
        target = request.target.to_position()
        try:
            state.board.square_at(target)
        except BattlegroundError as e:
            return _error_from_exception(e)

        forecast = forecast_attack(
            state,
            [o.to_position() for o in request.origins],
            target,
            request.unit_ids,
        )
        return ForecastResponse(
            session_id=session_id,
            target=request.target,
            bonuses=[b.value for b in forecast.bonuses],
            melee_dice=forecast.melee_dice,
            melee_threshold=forecast.melee_threshold,
            melee_hit_chance=forecast.melee_hit_chance,
            artillery=[
                ArtilleryForecastInfo(
                    origin=_position(a.origin),
                    distance=a.distance,
                    dice=a.dice,
                    threshold=a.threshold,
                    hit_chance=a.hit_chance,
                )
                for a in forecast.artillery
            ],
            vulnerability_hits=forecast.vulnerability_hits,
            flanking_artillery_hits=forecast.flanking_artillery_hits,
            expected_hits=forecast.expected_hits,
            defenders=[_unit_info(u) for u in forecast.defenders],
        )

    # =========================================================================
    # Actions
    # =========================================================================

    def deploy(self, session_id: str, request: DeployRequest) -> ActionResponse | ErrorResponse:
        return self._apply(
            session_id, Action.deploy(request.unit_id, request.target.to_position())
        )

    def move(self, session_id: str, request: MoveRequest) -> ActionResponse | ErrorResponse:
        return self._apply(
            session_id,
            Action.move(
                request.unit_id,
                request.origin.to_position(),
                request.destination.to_position(),
            ),
        )

    def group_move(
        self, session_id: str, request: GroupMoveRequest
    ) -> ActionResponse | ErrorResponse:
        return self._apply(
            session_id,
            Action.group_move(
                request.unit_ids,
                request.origin.to_position(),
                request.destination.to_position(),
            ),
        )

    def attack(self, session_id: str, request: AttackRequest) -> ActionResponse | ErrorResponse:
        return self._apply(
            session_id,
            Action.attack(
                [o.to_position() for o in request.origins],
                request.target.to_position(),
                request.unit_ids,
            ),
        )

    def end_turn(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._apply(session_id, Action.end_turn())

    def confirm_handoff(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._apply(session_id, Action.confirm_handoff())

    def retreat(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._apply(session_id, Action.retreat())

    def select(self, session_id: str, request: SelectRequest) -> ActionResponse | ErrorResponse:
        position = request.position.to_position() if request.position else None
        return self._apply(session_id, Action.select_square(position))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _apply(self, session_id: str, action: Action) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        result = session.apply(action)
        return self._action_response(session, result)

    def _action_response(self, session: Session, result: ActionResult) -> ActionResponse:
        attack_info = None
        if result.attack_result is not None:
            attack_info = _attack_info(result.attack_result)
        return ActionResponse(
            session_id=session.session_id,
            applied=result.applied,
            reason=result.error,
            reason_code=result.error_code,
            changes=list(result.state_changes),
            attack_result=attack_info,
            game_state=state_to_response(session.session_id, session.game_state),
        )

    def _find_unit(self, state: GameState, unit_id: str) -> tuple[Unit, Position]:
        origin = state.board.locate(unit_id)
        if origin is None:
            raise UnitNotFoundError(
                f"Unit {unit_id} is not on the board",
                error_code="UNIT_NOT_FOUND",
            )
        return state.board.square_at(origin).find(unit_id), origin

    def _positions(
        self, session_id: str, kind: str, positions: list[Position]
    ) -> LegalPositionsResponse:
        return LegalPositionsResponse(
            session_id=session_id,
            kind=kind,
            positions=[_position(p) for p in positions],
        )

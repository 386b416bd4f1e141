"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a renderer and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has been ended
- UNKNOWN_SCENARIO: No built-in scenario with that key
- INVALID_POSITION: Coordinates outside the board
- UNIT_NOT_FOUND: Unit id is not on the board or in a reserve
- ACTION_REJECTED: The action was not legal in the current state
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.state import Position


# =============================================================================
# Enums
# =============================================================================

class PhaseName(str, Enum):
    """Game phases as exposed over the API."""
    AWAITING_SCENARIO = "awaiting_scenario"
    PLAYING = "playing"
    TURN_HANDOFF = "turn_handoff"
    GAME_OVER = "game_over"


class UnitTypeName(str, Enum):
    INFANTRY = "infantry"
    CAVALRY = "cavalry"
    ARTILLERY = "artillery"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    UNKNOWN_SCENARIO = "UNKNOWN_SCENARIO"
    INVALID_POSITION = "INVALID_POSITION"
    UNIT_NOT_FOUND = "UNIT_NOT_FOUND"
    INVALID_ARMY = "INVALID_ARMY"
    ACTION_REJECTED = "ACTION_REJECTED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PositionModel(BaseModel):
    """A board coordinate. Row 0 is player one's home row."""
    col: int = Field(..., ge=0, description="Column index")
    row: int = Field(..., ge=0, description="Row index")

    model_config = {"from_attributes": True}

    def to_position(self) -> Position:
        return Position(self.col, self.row)


class UnitInfo(BaseModel):
    """A unit for display."""
    id: str
    unit_type: UnitTypeName
    owner: int = Field(..., ge=1, le=2)
    level: int
    has_moved: bool = False
    has_attacked: bool = False
    moved_squares: int = 0
    deployed_this_turn: bool = False


class SquareInfo(BaseModel):
    """One board square and its stack."""
    position: PositionModel
    owner: Optional[int] = None
    units: list[UnitInfo] = Field(default_factory=list)


class CombatLogInfo(BaseModel):
    turn: int
    player: int
    action: str
    details: str


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    scenario_key: Optional[str] = None
    phase: PhaseName
    current_player: int
    action_points: int
    max_action_points: int
    turn_number: int
    cols: int
    rows: int
    squares: list[SquareInfo] = Field(default_factory=list)
    reserves: dict[str, list[UnitInfo]] = Field(
        default_factory=dict, description="Keyed by player number"
    )
    selected_square: Optional[PositionModel] = None
    winner: Optional[int] = None
    combat_log: list[CombatLogInfo] = Field(default_factory=list)
    api_version: str = "v1"


class UnitDamageInfo(BaseModel):
    unit_id: str
    damage: int
    destroyed: bool


class AttackResultInfo(BaseModel):
    """Breakdown of one resolved attack."""
    attacker_squares: list[PositionModel] = Field(default_factory=list)
    target: Optional[PositionModel] = None
    attacker_ids: list[str] = Field(default_factory=list)
    total_dice: int = 0
    threshold: int = 0
    hits: int = 0
    bonuses: list[str] = Field(default_factory=list)
    melee_dice: int = 0
    melee_hits: int = 0
    artillery_dice: int = 0
    artillery_hits: int = 0
    vulnerability_hits: int = 0
    flanking_artillery_hits: int = 0
    unit_damage: list[UnitDamageInfo] = Field(default_factory=list)
    destroyed_ids: list[str] = Field(default_factory=list)


class ArtilleryForecastInfo(BaseModel):
    origin: PositionModel
    distance: int
    dice: int
    threshold: int
    hit_chance: float = Field(..., ge=0.0, le=1.0)


class ForecastResponse(BaseModel):
    """Odds for a proposed attack, computed without rolling."""
    session_id: str
    target: PositionModel
    bonuses: list[str] = Field(default_factory=list)
    melee_dice: int = 0
    melee_threshold: int = 0
    melee_hit_chance: float = Field(0.0, ge=0.0, le=1.0)
    artillery: list[ArtilleryForecastInfo] = Field(default_factory=list)
    vulnerability_hits: int = 0
    flanking_artillery_hits: int = 0
    expected_hits: float = 0.0
    defenders: list[UnitInfo] = Field(default_factory=list)
    api_version: str = "v1"


class ScenarioInfo(BaseModel):
    """A built-in army configuration."""
    key: str
    name: str
    description: str
    unit_count: int
    total_levels: int
    army: list[dict[str, Any]] = Field(default_factory=list)


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    scenario_key: str = Field("battle", description="Built-in scenario key")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible dice")
    max_action_points: Optional[int] = Field(
        None, ge=1, le=20, description="Override the per-turn action budget"
    )


class DeployRequest(BaseModel):
    unit_id: str
    target: PositionModel


class MoveRequest(BaseModel):
    unit_id: str
    origin: PositionModel
    destination: PositionModel


class GroupMoveRequest(BaseModel):
    unit_ids: list[str] = Field(..., min_length=2, max_length=3)
    origin: PositionModel
    destination: PositionModel


class AttackRequest(BaseModel):
    """Attack one square from one or more origin squares."""
    origins: list[PositionModel] = Field(..., min_length=1)
    target: PositionModel
    unit_ids: Optional[list[str]] = Field(
        None, description="Restrict the attack to these units"
    )


class SelectRequest(BaseModel):
    position: Optional[PositionModel] = Field(None, description="None clears the selection")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class ActionResponse(BaseModel):
    """
    Result of submitting an action.

    A rejected action is not an HTTP error: `applied` is false, the state is
    unchanged and `reason_code` says why.
    """
    session_id: str
    applied: bool
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    changes: list[str] = Field(default_factory=list)
    attack_result: Optional[AttackResultInfo] = None
    game_state: GameStateResponse
    api_version: str = "v1"


class LegalPositionsResponse(BaseModel):
    """Positions a unit or square can move to, deploy to or attack."""
    session_id: str
    kind: str = Field(..., description="moves, group_moves, deploy, targets")
    positions: list[PositionModel] = Field(default_factory=list)
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str

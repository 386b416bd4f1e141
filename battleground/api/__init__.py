"""
API Module - Renderer interface.

Exposes the engine via REST API for a local hot-seat renderer.
The renderer:
1. Picks a scenario and creates a game session
2. Queries legal moves, targets and attack odds for highlighting
3. Submits actions for the player whose turn it is
4. Receives state updates over a websocket

All state is session-scoped. No persistent user accounts required.
"""

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
    ErrorResponse,
    ForecastResponse,
    GameStateResponse,
    LegalPositionsResponse,
    # Shared
    AttackResultInfo,
    PositionModel,
    ScenarioInfo,
    SquareInfo,
    UnitInfo,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "AttackRequest",
    "CreateSessionRequest",
    "DeployRequest",
    "GroupMoveRequest",
    "MoveRequest",
    "SelectRequest",
    # Responses
    "ActionResponse",
    "ErrorResponse",
    "ForecastResponse",
    "GameStateResponse",
    "LegalPositionsResponse",
    # Shared
    "AttackResultInfo",
    "PositionModel",
    "ScenarioInfo",
    "SquareInfo",
    "UnitInfo",
    # Service
    "APIService",
    "create_app",
]

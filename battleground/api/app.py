"""
FastAPI Application - REST API for a hot-seat renderer.

Endpoints:
    GET    /api/v1/scenarios                          List built-in scenarios
    POST   /api/v1/sessions                           Create game session
    GET    /api/v1/sessions                           List active sessions
    GET    /api/v1/sessions/{id}                      Get game state
    GET    /api/v1/sessions/{id}/state                Get game state
    DELETE /api/v1/sessions/{id}                      End session
    GET    /api/v1/sessions/{id}/legal-moves          Destinations for a unit
    GET    /api/v1/sessions/{id}/group-moves          Destinations for a stack
    GET    /api/v1/sessions/{id}/deploy-targets       Home-row squares open for deployment
    GET    /api/v1/sessions/{id}/targets              Attackable squares from a square
    POST   /api/v1/sessions/{id}/forecast             Attack odds without rolling
    POST   /api/v1/sessions/{id}/deploy               Deploy a reserve unit
    POST   /api/v1/sessions/{id}/move                 Move one unit
    POST   /api/v1/sessions/{id}/group-move           Move a stack
    POST   /api/v1/sessions/{id}/attack               Attack a square
    POST   /api/v1/sessions/{id}/end-turn             End the turn
    POST   /api/v1/sessions/{id}/confirm-handoff      Next player takes the screen
    POST   /api/v1/sessions/{id}/retreat              Concede
    POST   /api/v1/sessions/{id}/select               Set or clear the selected square
    WS     /api/v1/sessions/{id}/ws                   WebSocket for state updates

Rejected actions are not HTTP errors: the response has `applied=false`
and the unchanged state. HTTP errors are reserved for unknown sessions,
unknown scenarios and coordinates outside the board.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import json
import logging
import os

# Environment configuration
BATTLEGROUND_ENV = os.getenv("BATTLEGROUND_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from .service import APIService
    from .schemas import (
        # Request models
        AttackRequest,
        CreateSessionRequest,
        DeployRequest,
        GroupMoveRequest,
        MoveRequest,
        SelectRequest,
        # Response models
        ActionResponse,
        EndSessionResponse,
        ErrorResponse,
        ForecastResponse,
        GameStateResponse,
        HealthResponse,
        LegalPositionsResponse,
        ScenarioInfo,
        SessionListResponse,
        # Enums
        ErrorCode,
        PhaseName,
    )

    app = FastAPI(
        title="Battleground Engine API",
        description="""
Rules and combat engine for a two-player tactical grid battle.

## Turn Flow

1. `POST /sessions` with a `scenario_key` seeds both reserves
2. The current player deploys, moves and attacks until out of action points
3. `POST /end-turn` hands the screen over; the next player calls
   `POST /confirm-handoff` before acting

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `UNKNOWN_SCENARIO` | No scenario with that key |
| `INVALID_POSITION` | Coordinates outside the board |
| `UNIT_NOT_FOUND` | Unit is not on the board |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    api_service = service or APIService()

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def from_service_error(response: ErrorResponse) -> JSONResponse:
        status_code = 404 if response.error_code == ErrorCode.SESSION_NOT_FOUND else 400
        return make_error_response(
            response.error_code, response.error, status_code, response.details
        )

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        if session_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[session_id]:
                try:
                    await ws.send_json(message)
                except (WebSocketDisconnect, RuntimeError):
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[session_id].remove(ws)

    async def finish_action(
        session_id: str, response: Union[ActionResponse, ErrorResponse]
    ) -> Union[ActionResponse, JSONResponse]:
        """Turn a service result into an HTTP response and notify listeners."""
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        if response.applied:
            state = response.game_state
            await broadcast_to_session(session_id, {
                "type": "state_update",
                "payload": state.model_dump(mode="json"),
            })
            if response.attack_result is not None:
                await broadcast_to_session(session_id, {
                    "type": "attack_result",
                    "payload": response.attack_result.model_dump(mode="json"),
                })
            if state.phase == PhaseName.GAME_OVER:
                await broadcast_to_session(session_id, {
                    "type": "game_over",
                    "payload": {"winner": state.winner},
                })
        return response

    # =========================================================================
    # Scenario Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/scenarios",
        response_model=list[ScenarioInfo],
        tags=["Scenarios"],
        summary="List built-in scenarios",
    )
    async def list_scenarios() -> list[ScenarioInfo]:
        return api_service.list_scenarios()

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=GameStateResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Unknown scenario"},
        },
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(
        request: CreateSessionRequest,
    ) -> Union[GameStateResponse, JSONResponse]:
        """
        Create a new game session with the scenario already started.

        Pass `random_seed` for reproducible dice.
        """
        response = api_service.create_session(request)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        return api_service.list_sessions()

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session state",
    )
    async def get_session(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_state(session_id)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a game session and release resources."""
        return api_service.end_session(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get current game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_state(session_id)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    # =========================================================================
    # Query Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/legal-moves",
        response_model=LegalPositionsResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Queries"],
        summary="Legal destinations for a unit on the board",
    )
    async def legal_moves(
        session_id: str,
        unit_id: Annotated[str, Query(description="Unit to move")],
    ) -> Union[LegalPositionsResponse, JSONResponse]:
        response = api_service.legal_moves(session_id, unit_id)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/group-moves",
        response_model=LegalPositionsResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Queries"],
        summary="Legal destinations for the whole stack on a square",
    )
    async def legal_group_moves(
        session_id: str,
        col: Annotated[int, Query(ge=0)],
        row: Annotated[int, Query(ge=0)],
    ) -> Union[LegalPositionsResponse, JSONResponse]:
        response = api_service.legal_group_moves(session_id, col, row)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/deploy-targets",
        response_model=LegalPositionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Queries"],
        summary="Home-row squares the current player can deploy to",
    )
    async def deploy_targets(session_id: str) -> Union[LegalPositionsResponse, JSONResponse]:
        response = api_service.deploy_targets(session_id)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/targets",
        response_model=LegalPositionsResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Queries"],
        summary="Squares the units on a square can attack",
    )
    async def legal_targets(
        session_id: str,
        col: Annotated[int, Query(ge=0)],
        row: Annotated[int, Query(ge=0)],
        unit_id: Annotated[Optional[str], Query(description="Only this unit's range")] = None,
    ) -> Union[LegalPositionsResponse, JSONResponse]:
        response = api_service.legal_targets(session_id, col, row, unit_id)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/forecast",
        response_model=ForecastResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Queries"],
        summary="Attack odds without rolling",
    )
    async def forecast(
        session_id: str, request: AttackRequest
    ) -> Union[ForecastResponse, JSONResponse]:
        response = api_service.forecast(session_id, request)
        if isinstance(response, ErrorResponse):
            return from_service_error(response)
        return response

    # =========================================================================
    # Action Endpoints
    # =========================================================================

    action_responses = {404: {"model": ErrorResponse, "description": "Session not found"}}

    @app.post(
        "/api/v1/sessions/{session_id}/deploy",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Deploy a reserve unit to the home row",
    )
    async def deploy(session_id: str, request: DeployRequest):
        return await finish_action(session_id, api_service.deploy(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/move",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Move one unit",
    )
    async def move(session_id: str, request: MoveRequest):
        return await finish_action(session_id, api_service.move(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/group-move",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Move several units from one square together",
    )
    async def group_move(session_id: str, request: GroupMoveRequest):
        return await finish_action(session_id, api_service.group_move(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/attack",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Attack a square",
    )
    async def attack(session_id: str, request: AttackRequest):
        """
        Attack one square from one or more origin squares.

        Only units that can reach the target on their own take part.
        The response carries the full dice and damage breakdown.
        """
        return await finish_action(session_id, api_service.attack(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/end-turn",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="End the current player's turn",
    )
    async def end_turn(session_id: str):
        return await finish_action(session_id, api_service.end_turn(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/confirm-handoff",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Confirm the next player has taken the screen",
    )
    async def confirm_handoff(session_id: str):
        return await finish_action(session_id, api_service.confirm_handoff(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/retreat",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Concede the battle",
    )
    async def retreat(session_id: str):
        return await finish_action(session_id, api_service.retreat(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/select",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Set or clear the selected square",
    )
    async def select(session_id: str, request: SelectRequest):
        return await finish_action(session_id, api_service.select(session_id, request))

    # =========================================================================
    # WebSocket
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for state updates.

        Messages to client:
        - state_update: State changed
        - attack_result: An attack was resolved
        - game_over: Game ended
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        if session_id not in ws_connections:
            ws_connections[session_id] = []
        ws_connections[session_id].append(websocket)

        try:
            # Send initial state
            response = api_service.get_state(session_id)
            if isinstance(response, ErrorResponse):
                await websocket.send_json({
                    "type": "error",
                    "payload": {"message": response.error},
                })
            else:
                await websocket.send_json({
                    "type": "state_update",
                    "payload": response.model_dump(mode="json"),
                })

            # Listen for messages
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })

        except WebSocketDisconnect:
            logger.debug("WebSocket closed for session %s", session_id)
        finally:
            if session_id in ws_connections:
                if websocket in ws_connections[session_id]:
                    ws_connections[session_id].remove(websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="battleground-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Battleground Engine API",
            "version": __version__,
            "environment": BATTLEGROUND_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn battleground.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass

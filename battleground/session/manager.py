"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Host picks a scenario → create ephemeral session (in-memory only)
2. During game:
   - Renderer submits actions for the player whose turn it is
   - Engine validates and produces the next canonical state
   - Both players share one screen; turn handoff is confirmed explicitly
3. Game ends → session stays readable until it is ended or goes stale

PERSISTENCE RULES:
- NO database for gameplay
- Game state is ephemeral (session-scoped only)
- Each session owns its random source so dice can be reproduced from a seed
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import time
import uuid

from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import Reducer
from ..engine_core.state import GamePhase, GameState, IdFactory, create_initial_state
from ..scenarios import get_scenario

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Somebody won or retreated
    ABANDONED = "abandoned"  # Ended before a winner


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The current canonical game state
    - The random source used for every attack in this game
    - Session metadata

    State is NOT persisted.
    """
    session_id: str
    scenario_key: str
    created_at: float
    game_state: GameState
    rng: random.Random = field(default_factory=random.Random)
    id_factory: IdFactory | None = None

    state: SessionState = SessionState.ACTIVE
    random_seed: int | None = None
    last_updated: float = 0.0

    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state == SessionState.ACTIVE

    def apply(self, action: Action) -> ActionResult:
        """Apply an action with this session's dice and store the result."""
        reducer = Reducer(rng=self.rng, id_factory=self.id_factory)
        result = reducer.apply(self.game_state, action)
        if result.success:
            self.game_state = result.new_state
            self.last_updated = time.time()
            if self.game_state.phase == GamePhase.GAME_OVER:
                self.state = SessionState.GAME_OVER
        return result


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from built-in scenarios
    - Track active sessions
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        scenario_key: str,
        random_seed: int | None = None,
        id_factory: IdFactory | None = None,
        max_action_points: int | None = None,
    ) -> Session:
        """
        Create a new game session and start the scenario.

        Args:
            scenario_key: Built-in scenario to seed both reserves
            random_seed: Optional seed for reproducible dice
            id_factory: Optional unit id factory (uuid-based by default)
            max_action_points: Optional per-turn budget override

        Raises:
            UnknownScenarioError: if the scenario key is not registered
        """
        get_scenario(scenario_key)

        kwargs = {}
        if max_action_points is not None:
            kwargs["max_action_points"] = max_action_points
        initial = create_initial_state(**kwargs)

        session = Session(
            session_id=str(uuid.uuid4()),
            scenario_key=scenario_key,
            created_at=time.time(),
            game_state=initial,
            rng=random.Random(random_seed),
            id_factory=id_factory,
            random_seed=random_seed,
        )
        session.apply(Action.start_game(scenario_key))

        self._sessions[session.session_id] = session
        logger.info("Created session %s with scenario %s", session.session_id, scenario_key)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and remove it from memory.

        Returns False if no such session existed.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.state == SessionState.ACTIVE:
            session.state = SessionState.ABANDONED
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[str]:
        return list(self._sessions.keys())

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Clean up finished sessions older than max_age.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds
            and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)

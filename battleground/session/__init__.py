"""
Session Module - Manages ephemeral game sessions.

A session represents one play-through of a scenario:
- Created when the host starts a game
- Holds the current game state and its dice
- Applies actions submitted by the renderer

Sessions are EPHEMERAL:
- No persistence to database
- Removed when ended or when stale
"""

from .manager import SessionManager, Session, SessionState

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
]

"""
Battleground - Tactical Grid Battle Engine

A deterministic rules and combat engine for a two-player, turn-based
battle on a small grid. The engine provides:
- Immutable state snapshots
- Movement and attack legality per unit archetype
- Dice-based combat resolution with injectable randomness
- A FastAPI host adapter for hot-seat renderers
"""

__version__ = "0.1.0"

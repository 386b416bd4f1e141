"""
Dice - The engine's only source of randomness.

Every rolling function takes an optional `random.Random`. When omitted the
process-wide default instance is used; tests can reseed it or pass their
own instance without changing any control flow.
"""

from __future__ import annotations
import random

D40 = 40

_default_rng = random.Random()


def default_rng() -> random.Random:
    return _default_rng


def seed(value: int | None) -> None:
    """Reseed the process-wide source."""
    _default_rng.seed(value)


def resolve_rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else _default_rng


def roll_d40(rng: random.Random | None = None) -> int:
    """Uniform integer in 1..40."""
    return resolve_rng(rng).randint(1, D40)


def roll_hits(dice: int, threshold: int, rng: random.Random | None = None) -> int:
    """Roll `dice` d40s and count those at or below `threshold`."""
    source = resolve_rng(rng)
    hits = 0
    for _ in range(dice):
        if roll_d40(source) <= threshold:
            hits += 1
    return hits

"""
Damage - Random allocation of hits across defending units.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import random

from .dice import resolve_rng
from .state import Unit


@dataclass(frozen=True)
class UnitDamage:
    """Damage one defender took from a single attack."""
    unit_id: str
    damage: int
    destroyed: bool


def distribute_damage(
    hits: int,
    defenders: Sequence[Unit],
    rng: random.Random | None = None,
) -> list[UnitDamage]:
    """
    Apply hits one at a time to a uniformly chosen surviving defender.

    Remaining levels are tracked locally until the batch is done; a
    defender at 0 is no longer sampled. Hits left over once every defender
    is at 0 are discarded. Only defenders that took damage are reported,
    in defender order.
    """
    source = resolve_rng(rng)
    remaining = {d.id: d.level for d in defenders}
    taken = {d.id: 0 for d in defenders}

    for _ in range(hits):
        alive = [d.id for d in defenders if remaining[d.id] > 0]
        if not alive:
            break
        unit_id = source.choice(alive)
        remaining[unit_id] -= 1
        taken[unit_id] += 1

    return [
        UnitDamage(unit_id=d.id, damage=taken[d.id], destroyed=remaining[d.id] <= 0)
        for d in defenders
        if taken[d.id] > 0
    ]

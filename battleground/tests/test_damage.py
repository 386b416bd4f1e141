"""
Tests for damage distribution.
"""

import random

from ..engine_core.damage import distribute_damage
from ..engine_core.state import Player, UnitType
from .conftest import ScriptedRandom, make_unit


def defender(level, uid):
    return make_unit(UnitType.INFANTRY, Player.TWO, level, uid=uid)


class TestDistributeDamage:
    """Per-hit random allocation."""

    def test_no_hits_no_damage(self):
        assert distribute_damage(0, [defender(2, "a")]) == []

    def test_scripted_allocation(self):
        a, b = defender(2, "a"), defender(2, "b")
        # Both alive, pick a; both alive, pick a; only b left
        rng = ScriptedRandom(picks=[0, 0, 1])

        damage = distribute_damage(3, [a, b], rng)
        assert [(d.unit_id, d.damage, d.destroyed) for d in damage] == [
            ("a", 2, True),
            ("b", 1, False),
        ]

    def test_excess_hits_are_discarded(self):
        defenders = [defender(1, "a"), defender(2, "b")]

        damage = distribute_damage(10, defenders, random.Random(3))
        assert {d.unit_id: d.damage for d in damage} == {"a": 1, "b": 2}
        assert all(d.destroyed for d in damage)

    def test_only_damaged_defenders_reported(self):
        defenders = [defender(3, "a"), defender(3, "b")]
        rng = ScriptedRandom(picks=[1])

        damage = distribute_damage(1, defenders, rng)
        assert [d.unit_id for d in damage] == ["b"]

    def test_damage_is_conserved(self):
        defenders = [defender(2, "a"), defender(3, "b"), defender(1, "c")]
        rng = random.Random(42)
        for hits in range(0, 9):
            damage = distribute_damage(hits, defenders, rng)
            assert sum(d.damage for d in damage) == min(hits, 6)
            for d in damage:
                level = next(x.level for x in defenders if x.id == d.unit_id)
                assert d.damage <= level
                assert d.destroyed == (d.damage == level)

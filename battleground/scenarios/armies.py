"""
Army configurations for the built-in scenarios.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.errors import UnknownScenarioError
from ..engine_core.state import ArmyEntry, UnitType


@dataclass(frozen=True)
class Scenario:
    """A named army configuration."""
    key: str
    name: str
    description: str
    army: tuple[ArmyEntry, ...]

    @property
    def unit_count(self) -> int:
        return len(self.army)

    @property
    def total_levels(self) -> int:
        return sum(e.level for e in self.army)


def _army(*entries: tuple[UnitType, int]) -> tuple[ArmyEntry, ...]:
    return tuple(ArmyEntry(unit_type=t, level=lvl) for t, lvl in entries)


INF = UnitType.INFANTRY
CAV = UnitType.CAVALRY
ART = UnitType.ARTILLERY


SCENARIOS: dict[str, Scenario] = {
    "skirmish": Scenario(
        key="skirmish",
        name="Skirmish",
        description="A short fight between two small detachments.",
        army=_army((INF, 2), (INF, 2), (CAV, 2), (ART, 2)),
    ),
    "battle": Scenario(
        key="battle",
        name="Battle",
        description="The standard army: three infantry, two cavalry, two guns.",
        army=_army(
            (INF, 3), (INF, 2), (INF, 2),
            (CAV, 3), (CAV, 2),
            (ART, 3), (ART, 2),
        ),
    ),
    "grand_battle": Scenario(
        key="grand_battle",
        name="Grand Battle",
        description="Veteran corps with a heavier line and a grand battery.",
        army=_army(
            (INF, 4), (INF, 3), (INF, 3), (INF, 2),
            (CAV, 4), (CAV, 3),
            (ART, 3), (ART, 3), (ART, 2),
        ),
    ),
}

DEFAULT_SCENARIO = "battle"


def get_scenario(key: str) -> Scenario:
    """Look up a built-in scenario, raising UnknownScenarioError if missing."""
    scenario = SCENARIOS.get(key)
    if scenario is None:
        raise UnknownScenarioError(
            f"Unknown scenario: {key}",
            error_code="UNKNOWN_SCENARIO",
            context={"available": ", ".join(SCENARIOS)},
        )
    return scenario


def list_scenarios() -> list[Scenario]:
    return list(SCENARIOS.values())

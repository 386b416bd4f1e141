"""
Combat - Bonuses, hit thresholds and dice resolution for one attack.

Attackers are grouped by the square they attack from. Two dice pools are
rolled on a d40:
- Melee (infantry + cavalry): one die per level, against a threshold built
  from the base value plus composition bonuses
- Artillery: one die per level, per origin square, against a threshold
  that depends only on row distance to the target

Artillery defenders are vulnerable: they raise the melee threshold and add
flat hits that need no dice.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Sequence
import logging
import random

from .dice import D40, resolve_rng, roll_hits
from .damage import UnitDamage
from .state import GameState, Position, Unit, UnitType
from .targeting import defenders_at, gather_attackers

logger = logging.getLogger(__name__)


BASE_THRESHOLD = 10
MIN_THRESHOLD = 2
MAX_THRESHOLD = 36

ARTILLERY_VULNERABILITY_THRESHOLD = 4
ARTILLERY_VULNERABILITY_HITS = 1

# Row distance -> threshold out of 40 (15%, 50%, 30%)
ARTILLERY_THRESHOLDS: dict[int, int] = {1: 6, 2: 20, 3: 12}


class Bonus(Enum):
    """Composition bonuses added to the melee threshold."""
    COMBINED_ARMS_2 = "combined-arms-2"
    COMBINED_ARMS_3 = "combined-arms-3"
    FLANKING_2 = "flanking-2"
    FLANKING_3 = "flanking-3"
    CAVALRY_CHARGE = "cavalry-charge"


BONUS_VALUES: dict[Bonus, int] = {
    Bonus.COMBINED_ARMS_2: 6,
    Bonus.COMBINED_ARMS_3: 10,
    Bonus.FLANKING_2: 10,
    Bonus.FLANKING_3: 20,
    Bonus.CAVALRY_CHARGE: 6,
}


AttackerMap = Mapping[Position, Sequence[Unit]]


def _all_attackers(attackers_by_origin: AttackerMap) -> list[Unit]:
    return [u for units in attackers_by_origin.values() for u in units]


def distinct_columns(attackers_by_origin: AttackerMap) -> int:
    """Number of different columns the attack comes from."""
    return len({pos.col for pos, units in attackers_by_origin.items() if units})


def calculate_bonuses(attackers_by_origin: AttackerMap) -> list[Bonus]:
    """Determine which bonuses apply to this group of attackers."""
    bonuses = []
    attackers = _all_attackers(attackers_by_origin)

    types = {u.unit_type for u in attackers}
    if len(types) >= 3:
        bonuses.append(Bonus.COMBINED_ARMS_3)
    elif len(types) == 2:
        bonuses.append(Bonus.COMBINED_ARMS_2)

    columns = distinct_columns(attackers_by_origin)
    if columns >= 3:
        bonuses.append(Bonus.FLANKING_3)
    elif columns == 2:
        bonuses.append(Bonus.FLANKING_2)

    if any(
        u.unit_type == UnitType.CAVALRY and u.has_moved and u.moved_squares == 1
        for u in attackers
    ):
        bonuses.append(Bonus.CAVALRY_CHARGE)

    return bonuses


def _clamp(value: int) -> int:
    return max(MIN_THRESHOLD, min(MAX_THRESHOLD, value))


def calculate_threshold(bonuses: Iterable[Bonus]) -> int:
    """Base threshold plus bonuses, clamped to [MIN_THRESHOLD, MAX_THRESHOLD]."""
    return _clamp(BASE_THRESHOLD + sum(BONUS_VALUES[b] for b in bonuses))


def melee_threshold(bonuses: Iterable[Bonus], defenders: Sequence[Unit]) -> int:
    """Melee threshold including the artillery-defender vulnerability."""
    threshold = calculate_threshold(bonuses)
    if any(d.unit_type == UnitType.ARTILLERY for d in defenders):
        threshold = min(MAX_THRESHOLD, threshold + ARTILLERY_VULNERABILITY_THRESHOLD)
    return threshold


def artillery_threshold(distance: int) -> int:
    """Artillery threshold for a row distance; 0 for anything off the table."""
    return ARTILLERY_THRESHOLDS.get(distance, 0)


def flat_bonus_hits(
    attackers_by_origin: AttackerMap, defenders: Sequence[Unit]
) -> tuple[int, int]:
    """
    Return (vulnerability hits, flanking-vs-artillery hits).

    Each artillery defender gives one free hit. Attacking artillery from
    two or more columns adds one free hit per column beyond the first.
    """
    artillery_defenders = sum(1 for d in defenders if d.unit_type == UnitType.ARTILLERY)
    if artillery_defenders == 0:
        return 0, 0
    vulnerability = artillery_defenders * ARTILLERY_VULNERABILITY_HITS
    columns = distinct_columns(attackers_by_origin)
    flanking = columns - 1 if columns >= 2 else 0
    return vulnerability, flanking


@dataclass
class CombatOutcome:
    """
    Rolled result of one attack, before damage is applied.

    `threshold` is the melee threshold when the melee pool rolled,
    otherwise the best artillery threshold among the origin squares.
    """
    total_dice: int = 0
    threshold: int = 0
    hits: int = 0
    bonuses: list[Bonus] = field(default_factory=list)

    melee_dice: int = 0
    melee_hits: int = 0
    artillery_dice: int = 0
    artillery_hits: int = 0
    vulnerability_hits: int = 0
    flanking_artillery_hits: int = 0

    has_melee: bool = False
    has_artillery: bool = False


def resolve_combat(
    attackers_by_origin: AttackerMap,
    defenders: Sequence[Unit],
    target: Position,
    rng: random.Random | None = None,
) -> CombatOutcome:
    """
    Roll both dice pools and total the hits.

    Order is fixed: bonuses and thresholds, melee rolls, then artillery
    rolls in origin order.
    """
    source = resolve_rng(rng)
    bonuses = calculate_bonuses(attackers_by_origin)
    m_threshold = melee_threshold(bonuses, defenders)

    melee_dice = sum(
        u.level for u in _all_attackers(attackers_by_origin) if u.unit_type.is_melee
    )
    melee_hits = roll_hits(melee_dice, m_threshold, source)

    artillery_dice = 0
    artillery_hits = 0
    best_artillery_threshold = 0
    for origin, units in attackers_by_origin.items():
        dice = sum(u.level for u in units if u.unit_type == UnitType.ARTILLERY)
        if dice == 0:
            continue
        a_threshold = artillery_threshold(abs(target.row - origin.row))
        best_artillery_threshold = max(best_artillery_threshold, a_threshold)
        artillery_dice += dice
        artillery_hits += roll_hits(dice, a_threshold, source)

    vulnerability, flanking = flat_bonus_hits(attackers_by_origin, defenders)

    outcome = CombatOutcome(
        total_dice=melee_dice + artillery_dice,
        threshold=m_threshold if melee_dice > 0 else best_artillery_threshold,
        hits=melee_hits + artillery_hits + vulnerability + flanking,
        bonuses=bonuses,
        melee_dice=melee_dice,
        melee_hits=melee_hits,
        artillery_dice=artillery_dice,
        artillery_hits=artillery_hits,
        vulnerability_hits=vulnerability,
        flanking_artillery_hits=flanking,
        has_melee=melee_dice > 0,
        has_artillery=artillery_dice > 0,
    )
    logger.debug(
        "Combat at %s: %d dice, threshold %d, %d hits, bonuses=%s",
        target, outcome.total_dice, outcome.threshold, outcome.hits,
        [b.value for b in bonuses],
    )
    return outcome


@dataclass
class AttackResult:
    """Everything a presenter needs to show or log an attack."""
    attacker_squares: list[Position] = field(default_factory=list)
    target: Position | None = None
    attacker_ids: list[str] = field(default_factory=list)
    outcome: CombatOutcome = field(default_factory=CombatOutcome)
    unit_damage: list[UnitDamage] = field(default_factory=list)

    @classmethod
    def empty(cls, target: Position | None = None) -> AttackResult:
        """The zero result returned when an attack is not carried out."""
        return cls(target=target)

    @property
    def total_dice(self) -> int:
        return self.outcome.total_dice

    @property
    def threshold(self) -> int:
        return self.outcome.threshold

    @property
    def hits(self) -> int:
        return self.outcome.hits

    @property
    def bonuses(self) -> list[Bonus]:
        return self.outcome.bonuses

    @property
    def destroyed_ids(self) -> list[str]:
        return [d.unit_id for d in self.unit_damage if d.destroyed]


@dataclass
class ArtilleryForecast:
    """Expected fire from the artillery on one origin square."""
    origin: Position
    distance: int
    dice: int
    threshold: int

    @property
    def hit_chance(self) -> float:
        return self.threshold / D40


@dataclass
class CombatForecast:
    """Odds for an attack, computed without rolling."""
    bonuses: list[Bonus] = field(default_factory=list)
    melee_dice: int = 0
    melee_threshold: int = 0
    artillery: list[ArtilleryForecast] = field(default_factory=list)
    vulnerability_threshold: int = 0
    vulnerability_hits: int = 0
    flanking_artillery_hits: int = 0
    defenders: list[Unit] = field(default_factory=list)

    @property
    def melee_hit_chance(self) -> float:
        return self.melee_threshold / D40 if self.melee_dice else 0.0

    @property
    def artillery_dice(self) -> int:
        return sum(a.dice for a in self.artillery)

    @property
    def expected_hits(self) -> float:
        expected = self.melee_dice * self.melee_hit_chance
        expected += sum(a.dice * a.hit_chance for a in self.artillery)
        return expected + self.vulnerability_hits + self.flanking_artillery_hits


def forecast_combat(
    attackers_by_origin: AttackerMap,
    defenders: Sequence[Unit],
    target: Position,
) -> CombatForecast:
    """Same arithmetic as resolve_combat, reported as probabilities."""
    bonuses = calculate_bonuses(attackers_by_origin)
    melee_dice = sum(
        u.level for u in _all_attackers(attackers_by_origin) if u.unit_type.is_melee
    )
    artillery = []
    for origin, units in attackers_by_origin.items():
        dice = sum(u.level for u in units if u.unit_type == UnitType.ARTILLERY)
        if dice:
            distance = abs(target.row - origin.row)
            artillery.append(ArtilleryForecast(
                origin=origin,
                distance=distance,
                dice=dice,
                threshold=artillery_threshold(distance),
            ))

    vulnerable = any(d.unit_type == UnitType.ARTILLERY for d in defenders)
    vulnerability, flanking = flat_bonus_hits(attackers_by_origin, defenders)
    return CombatForecast(
        bonuses=bonuses,
        melee_dice=melee_dice,
        melee_threshold=melee_threshold(bonuses, defenders) if melee_dice else 0,
        artillery=artillery,
        vulnerability_threshold=ARTILLERY_VULNERABILITY_THRESHOLD if vulnerable else 0,
        vulnerability_hits=vulnerability,
        flanking_artillery_hits=flanking,
        defenders=list(defenders),
    )


def forecast_attack(
    state: GameState,
    origins: Iterable[Position],
    target: Position,
    unit_ids: Iterable[str] | None = None,
) -> CombatForecast:
    """Forecast an attack by the current player using the same attacker filtering as the reducer."""
    attackers = gather_attackers(state, origins, target, state.current_player, unit_ids)
    defenders = defenders_at(state, target, state.current_player)
    if not attackers or not defenders:
        return CombatForecast(defenders=defenders)
    return forecast_combat(attackers, defenders, target)

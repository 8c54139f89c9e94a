"""
Category effectiveness (type matchups).

``TYPE_CHART[defender][attacker]`` is the damage multiplier an attacking
type deals to a defending type; pairs not listed are neutral (1.0). Dual
typed defenders multiply the multipliers of both of their types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .constants import CREATURE_TYPES

MAX_TEAM_SIZE = 6

TYPE_CHART: dict[str, dict[str, float]] = {
    "normal": {"fighting": 2, "ghost": 0},
    "fire": {"water": 2, "ground": 2, "rock": 2, "fire": 0.5, "grass": 0.5, "ice": 0.5,
             "bug": 0.5, "steel": 0.5, "fairy": 0.5},
    "water": {"electric": 2, "grass": 2, "water": 0.5, "fire": 0.5, "ice": 0.5, "steel": 0.5},
    "electric": {"ground": 2, "electric": 0.5, "flying": 0.5, "steel": 0.5},
    "grass": {"fire": 2, "ice": 2, "poison": 2, "flying": 2, "bug": 2, "water": 0.5,
              "electric": 0.5, "grass": 0.5, "ground": 0.5},
    "ice": {"fire": 2, "fighting": 2, "rock": 2, "steel": 2, "ice": 0.5},
    "fighting": {"flying": 2, "psychic": 2, "fairy": 2, "bug": 0.5, "rock": 0.5, "dark": 0.5},
    "poison": {"ground": 2, "psychic": 2, "grass": 0.5, "fighting": 0.5, "poison": 0.5,
               "bug": 0.5, "fairy": 0.5},
    "ground": {"water": 2, "grass": 2, "ice": 2, "poison": 0.5, "rock": 0.5, "electric": 0},
    "flying": {"electric": 2, "ice": 2, "rock": 2, "grass": 0.5, "fighting": 0.5, "bug": 0.5,
               "ground": 0},
    "psychic": {"bug": 2, "ghost": 2, "dark": 2, "fighting": 0.5, "psychic": 0.5},
    "bug": {"fire": 2, "flying": 2, "rock": 2, "grass": 0.5, "fighting": 0.5, "ground": 0.5},
    "rock": {"water": 2, "grass": 2, "fighting": 2, "ground": 2, "steel": 2, "normal": 0.5,
             "fire": 0.5, "poison": 0.5, "flying": 0.5},
    "ghost": {"ghost": 2, "dark": 2, "normal": 0, "fighting": 0},
    "dragon": {"ice": 2, "dragon": 2, "fairy": 2, "fire": 0.5, "water": 0.5, "electric": 0.5,
               "grass": 0.5},
    "dark": {"fighting": 2, "bug": 2, "fairy": 2, "ghost": 0.5, "dark": 0.5, "psychic": 0},
    "steel": {"fire": 2, "fighting": 2, "ground": 2, "normal": 0.5, "grass": 0.5, "ice": 0.5,
              "flying": 0.5, "psychic": 0.5, "bug": 0.5, "rock": 0.5, "dragon": 0.5,
              "steel": 0.5, "fairy": 0.5, "poison": 0},
    "fairy": {"poison": 2, "steel": 2, "fighting": 0.5, "bug": 0.5, "dark": 0.5, "dragon": 0},
}


@dataclass
class DefensiveProfile:
    """How a set of defending types fares against every attacking type.

    Attributes:
        weaknesses: (type, multiplier) pairs above 1.0, strongest first.
        resistances: (type, multiplier) pairs between 0 and 1.0, strongest first.
        immunities: Attacking types that deal no damage.
    """
    weaknesses: list[tuple[str, float]] = field(default_factory=list)
    resistances: list[tuple[str, float]] = field(default_factory=list)
    immunities: list[str] = field(default_factory=list)


def damage_multiplier(attack_type: str, defense_types: Sequence[str]) -> float:
    """Multiplier of one attacking type against a (possibly dual) defender."""
    multiplier = 1.0
    for defense_type in defense_types:
        multiplier *= TYPE_CHART.get(defense_type, {}).get(attack_type, 1.0)
    return multiplier


def defensive_profile(types: Sequence[str]) -> DefensiveProfile:
    """Classify every attacking type against the given defending types."""
    profile = DefensiveProfile()
    for attack_type in CREATURE_TYPES:
        mult = damage_multiplier(attack_type, types)
        if mult == 0:
            profile.immunities.append(attack_type)
        elif mult > 1:
            profile.weaknesses.append((attack_type, mult))
        elif mult < 1:
            profile.resistances.append((attack_type, mult))

    profile.weaknesses.sort(key=lambda pair: -pair[1])
    profile.resistances.sort(key=lambda pair: pair[1])
    return profile


def attack_multiplier(attack_types: Sequence[str], defense_types: Sequence[str]) -> float:
    """Best multiplier any of the attacker's types achieves against the defender.

    An attacker with no known types is treated as neutral.
    """
    if not attack_types:
        return 1.0
    return max(damage_multiplier(a, defense_types) for a in attack_types)


def describe_matchup(attack_types: Sequence[str], defense_types: Sequence[str]) -> str:
    """Deterministic effectiveness label for an attacker against a defender."""
    mult = attack_multiplier(attack_types, defense_types)
    if mult == 0:
        return "no effect"
    if mult > 1:
        return "super effective"
    if mult < 1:
        return "not very effective"
    return "neutral"


@dataclass
class TeamCoverage:
    """Type coverage of a team.

    Attributes:
        weakness_counts: For each attacking type, how many members it hits
            super effectively. Only types hitting at least one member appear.
        shared_weaknesses: Attacking types that hit at least half the team.
        offensive_coverage: Defending types at least one member's type hits
            super effectively.
        uncovered: Defending types no member's type hits super effectively.
    """
    weakness_counts: dict[str, int] = field(default_factory=dict)
    shared_weaknesses: list[str] = field(default_factory=list)
    offensive_coverage: list[str] = field(default_factory=list)
    uncovered: list[str] = field(default_factory=list)


def team_coverage(team: Sequence[Sequence[str]]) -> TeamCoverage:
    """Analyse the types of up to ``MAX_TEAM_SIZE`` team members.

    Args:
        team: One sequence of types per member.

    Raises:
        ValueError: If the team has more than MAX_TEAM_SIZE members.
    """
    if len(team) > MAX_TEAM_SIZE:
        raise ValueError(f"A team has at most {MAX_TEAM_SIZE} members, got {len(team)}")

    coverage = TeamCoverage()
    members = [list(types) for types in team if types]

    for attack_type in CREATURE_TYPES:
        count = sum(1 for types in members if damage_multiplier(attack_type, types) > 1)
        if count:
            coverage.weakness_counts[attack_type] = count

    threshold = max(1, (len(members) + 1) // 2)
    coverage.shared_weaknesses = sorted(
        (t for t, n in coverage.weakness_counts.items() if n >= threshold),
        key=lambda t: (-coverage.weakness_counts[t], t),
    )

    member_types = {t for types in members for t in types}
    for defense_type in CREATURE_TYPES:
        if any(damage_multiplier(a, [defense_type]) > 1 for a in member_types):
            coverage.offensive_coverage.append(defense_type)
        else:
            coverage.uncovered.append(defense_type)

    return coverage


__all__ = [
    "TYPE_CHART",
    "MAX_TEAM_SIZE",
    "DefensiveProfile",
    "TeamCoverage",
    "damage_multiplier",
    "defensive_profile",
    "attack_multiplier",
    "describe_matchup",
    "team_coverage",
]

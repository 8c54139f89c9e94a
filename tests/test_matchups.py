"""
Tests for type effectiveness and team coverage.
"""

import pytest

from pokedex_catalog.constants import CREATURE_TYPES
from pokedex_catalog.matchups import (
    MAX_TEAM_SIZE,
    TYPE_CHART,
    attack_multiplier,
    damage_multiplier,
    defensive_profile,
    describe_matchup,
    team_coverage,
)


class TestTypeChart:
    """Test the multiplier table."""

    def test_every_type_has_a_row(self):
        assert set(TYPE_CHART) == set(CREATURE_TYPES)

    def test_unlisted_pairs_are_neutral(self):
        assert damage_multiplier("normal", ["fire"]) == 1.0

    def test_dual_types_multiply(self):
        assert damage_multiplier("rock", ["fire", "flying"]) == 4.0
        assert damage_multiplier("grass", ["fire", "flying"]) == 0.25

    def test_immunity_wins_over_weakness(self):
        assert damage_multiplier("ground", ["fire", "flying"]) == 0.0


class TestDefensiveProfile:
    """Test weakness, resistance and immunity classification."""

    def test_fire_flying(self):
        profile = defensive_profile(["fire", "flying"])

        assert profile.weaknesses[0] == ("rock", 4.0)
        assert {t for t, _ in profile.weaknesses} == {"rock", "water", "electric"}
        assert profile.immunities == ["ground"]
        assert profile.resistances[0][1] == 0.25

    def test_weaknesses_sorted_descending(self):
        profile = defensive_profile(["grass", "ice"])
        multipliers = [m for _, m in profile.weaknesses]

        assert multipliers == sorted(multipliers, reverse=True)
        assert profile.weaknesses[0] == ("fire", 4.0)

    def test_resistances_sorted_ascending(self):
        profile = defensive_profile(["steel"])
        multipliers = [m for _, m in profile.resistances]

        assert multipliers == sorted(multipliers)
        assert "poison" in profile.immunities

    def test_no_types_is_neutral(self):
        profile = defensive_profile([])
        assert profile.weaknesses == profile.resistances == profile.immunities == []


class TestMatchup:
    """Test attacker versus defender comparison."""

    def test_best_attacking_type_counts(self):
        assert attack_multiplier(["electric", "normal"], ["water", "flying"]) == 4.0

    def test_descriptions(self):
        assert describe_matchup(["electric"], ["water"]) == "super effective"
        assert describe_matchup(["fire"], ["water"]) == "not very effective"
        assert describe_matchup(["normal"], ["ghost"]) == "no effect"
        assert describe_matchup(["normal"], ["normal"]) == "neutral"

    def test_matchup_is_deterministic(self):
        results = {describe_matchup(["fire"], ["grass"]) for _ in range(20)}
        assert results == {"super effective"}

    def test_unknown_attacker_is_neutral(self):
        assert attack_multiplier([], ["dragon"]) == 1.0


class TestTeamCoverage:
    """Test team analysis."""

    def test_shared_weaknesses(self):
        coverage = team_coverage([["fire"], ["fire", "flying"]])

        assert coverage.shared_weaknesses[:2] == ["rock", "water"]
        assert coverage.weakness_counts["rock"] == 2
        assert coverage.weakness_counts["ground"] == 1

    def test_offensive_coverage(self):
        coverage = team_coverage([["fire"], ["flying"]])

        assert "grass" in coverage.offensive_coverage
        assert "fighting" in coverage.offensive_coverage
        assert "water" in coverage.uncovered

    def test_empty_team(self):
        coverage = team_coverage([])

        assert coverage.shared_weaknesses == []
        assert coverage.uncovered == list(CREATURE_TYPES)

    def test_team_size_limit(self):
        with pytest.raises(ValueError):
            team_coverage([["normal"]] * (MAX_TEAM_SIZE + 1))

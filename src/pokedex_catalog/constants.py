"""
Static reference data for the catalog.

Tier membership and the evolution denylist are pure functions of the ID and
are never fetched remotely.
"""

from __future__ import annotations

# Tier A: legendary creatures (mythical ones are listed separately in tier B)
LEGENDARY_IDS: frozenset[int] = frozenset({
    # Gen 1
    144, 145, 146, 150,
    # Gen 2
    243, 244, 245, 249, 250,
    # Gen 3
    377, 378, 379, 380, 381, 382, 383, 384,
    # Gen 4
    480, 481, 482, 483, 484, 485, 486, 487, 488,
    # Gen 5
    638, 639, 640, 641, 642, 643, 644, 645, 646,
    # Gen 6
    716, 717, 718,
    # Gen 7
    785, 786, 787, 788, 789, 790, 791, 792, 800,
    # Gen 8
    888, 889, 890, 891, 892, 894, 895, 896, 897, 898,
    # Gen 9
    1001, 1002, 1003, 1004, 1007, 1008, 1009, 1010, 1014, 1015, 1016, 1017, 1024,
})

# Tier B: mythical creatures
MYTHICAL_IDS: frozenset[int] = frozenset({
    151,
    251,
    385, 386,
    489, 490, 491, 492, 493,
    494, 647, 648, 649,
    719, 720, 721,
    801, 802, 807, 808, 809,
    893,
    1025,
})

# Creatures known not to evolve further. A heuristic list, not a traversal of
# the evolution graph; see evolution.successors_of for the exact answer.
NON_EVOLVING_IDS: frozenset[int] = frozenset({
    83, 84, 85, 108, 113, 115, 128, 131, 132, 133, 134, 135, 136, 137, 138,
    139, 140, 141, 142, 143, 144, 145, 146, 147, 148, 149, 150, 151,
})

# Generation partitions of the ID space, inclusive ranges
GENERATION_RANGES: dict[int, tuple[int, int]] = {
    1: (1, 151),
    2: (152, 251),
    3: (252, 386),
    4: (387, 493),
    5: (494, 649),
    6: (650, 721),
    7: (722, 809),
    8: (810, 905),
    9: (906, 1025),
}

GENERATION_NAMES: dict[int, str] = {
    1: "Gen I",
    2: "Gen II",
    3: "Gen III",
    4: "Gen IV",
    5: "Gen V",
    6: "Gen VI",
    7: "Gen VII",
    8: "Gen VIII",
    9: "Gen IX",
}

CREATURE_TYPES: tuple[str, ...] = (
    "normal", "fire", "water", "electric", "grass", "ice", "fighting",
    "poison", "ground", "flying", "psychic", "bug", "rock", "ghost",
    "dragon", "dark", "steel", "fairy",
)

# Display units (m, kg) to storage units (dm, hg)
DISPLAY_TO_STORAGE_FACTOR = 10

# Maximum number of moves kept on a detail record
MAX_MOVES = 10

SPRITE_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/"
    "pokemon/other/official-artwork/{id}.png"
)


def is_legendary(creature_id: int) -> bool:
    """Return True if the ID belongs to tier A."""
    return creature_id in LEGENDARY_IDS


def is_mythical(creature_id: int) -> bool:
    """Return True if the ID belongs to tier B."""
    return creature_id in MYTHICAL_IDS


def generation_of(creature_id: int) -> int | None:
    """Return the generation whose range contains the ID, if any."""
    for generation, (low, high) in GENERATION_RANGES.items():
        if low <= creature_id <= high:
            return generation
    return None


def sprite_url(creature_id: int) -> str:
    """Official artwork URL for a creature."""
    return SPRITE_URL_TEMPLATE.format(id=creature_id)

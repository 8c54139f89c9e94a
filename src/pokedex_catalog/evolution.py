"""
Traversal helpers for evolution graphs.

Evolution graphs are trees with arbitrary branching (one base form can
evolve into several). These helpers linearize them for display and answer
successor questions exactly, as opposed to the denylist heuristic used by
the has-successor filter.
"""

from __future__ import annotations

from .models import EvolutionNode


def flatten_chain(root: EvolutionNode) -> list[EvolutionNode]:
    """Pre-order flattening: each stage followed by all of its branches."""
    result: list[EvolutionNode] = []
    stack = [root]
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.evolves_to))
    return result


def linear_chain(root: EvolutionNode) -> list[EvolutionNode]:
    """Follow the first branch at every stage."""
    chain = [root]
    node = root
    while node.evolves_to:
        node = node.evolves_to[0]
        chain.append(node)
    return chain


def has_branches(root: EvolutionNode) -> bool:
    """True if any stage evolves into more than one form."""
    return any(len(node.evolves_to) > 1 for node in flatten_chain(root))


def find_node(root: EvolutionNode, creature_id: int) -> EvolutionNode | None:
    for node in flatten_chain(root):
        if node.id == creature_id:
            return node
    return None


def successors_of(root: EvolutionNode, creature_id: int) -> list[int]:
    """IDs of the direct evolutions of ``creature_id`` within the graph.

    Returns an empty list when the creature is a final stage or is not part
    of the graph.
    """
    node = find_node(root, creature_id)
    if node is None:
        return []
    return [child.id for child in node.evolves_to]


__all__ = [
    "flatten_chain",
    "linear_chain",
    "has_branches",
    "find_node",
    "successors_of",
]

"""
Prefetching for the creature catalog.

Components:
- PrefetchAdvisor: warms the detail cache for the neighbors of a focused
  creature in the current ordered result
"""

from .advisor import PrefetchAdvisor

__all__ = [
    "PrefetchAdvisor",
]

"""
Quad-tree style decomposition of curve ranges.

Four consecutive, aligned positions at tier t+1 cover the same area as one
position at tier t. A range at a fine tier can therefore be rewritten as a
smaller set of ids spread across coarser tiers that covers exactly the same
footprint.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .codec import LONG_BYTES, TieredId, create_id


@dataclass
class TierMinMax:
    """Work item for decompose_range: a [min, max] span still to cover."""
    tier: int
    min: int
    max: int


def tier_scale(tier: int, coarser_tier: int) -> int:
    """Number of tier positions covered by one coarser_tier position."""
    return 1 << (2 * (tier - coarser_tier))


def decompose_range(tier: int, min_pos: int, max_pos: int) -> List[TieredId]:
    """
    Decompose a range into an equivalent set of ids across coarser tiers.

    Each work item is simplified at the coarsest tier that has at least one
    aligned cell entirely inside it. The uncovered edges are pushed back
    onto the stack one tier finer. At the target tier every position is its
    own cell, so each item is always simplified by then.

    Args:
        tier: Tier of min_pos and max_pos
        min_pos: First position of the range
        max_pos: Last position of the range

    Returns:
        List of TieredIds whose footprints tile [min_pos, max_pos] exactly,
        in stack traversal order
    """
    tiered_ids: List[TieredId] = []
    buffer = bytearray(LONG_BYTES)

    stack = [TierMinMax(0, min_pos, max_pos)]

    while stack:
        item = stack.pop()
        span = item.max - item.min + 1

        while item.tier <= tier:
            scale = tier_scale(tier, item.tier)

            if span >= scale:
                scaled_min = -(-item.min // scale)
                scaled_max = item.max // scale

                simplified = False
                sub_range_min = scaled_min * scale
                sub_range_max = None

                for scaled_pos in range(scaled_min, scaled_max + 1):
                    next_sub_range_max = scaled_pos * scale + scale - 1
                    if next_sub_range_max > item.max:
                        break

                    simplified = True
                    sub_range_max = next_sub_range_max
                    tiered_ids.append(create_id(item.tier, scaled_pos, buffer))

                if simplified:
                    if item.min < sub_range_min:
                        stack.append(TierMinMax(item.tier + 1, item.min, sub_range_min - 1))
                    if sub_range_max < item.max:
                        stack.append(TierMinMax(item.tier + 1, sub_range_max + 1, item.max))
                    break

            item.tier += 1

    return tiered_ids


def expand_id(tiered_id: TieredId, tier: int) -> Tuple[int, int]:
    """
    Span of tier positions covered by an id at a coarser (or equal) tier.

    Returns:
        Tuple of (first, last) positions at tier
    """
    scale = tier_scale(tier, tiered_id.tier)
    first = tiered_id.position * scale
    return first, first + scale - 1

"""
Post-processing of optimized ranges: merging and splitting.
"""

import logging
from typing import List, Optional

from shapely.geometry.base import BaseGeometry

from .codec import LONG_BYTES, TieredRange, create_range, decode_position
from .geometry import range_to_geometry
from .oracle import BoundsOracle

logger = logging.getLogger(__name__)


def validate_max_range_overlap(max_range_overlap: float) -> None:
    if not 0 < max_range_overlap <= 1:
        raise ValueError(
            f"max_range_overlap must be in (0, 1], got {max_range_overlap}"
        )


def merge_contiguous_ranges(
    ranges: List[TieredRange],
    buffer: Optional[bytearray] = None,
) -> List[TieredRange]:
    """
    Merge contiguous ranges.

    Assumes the ranges are sorted by start position and share a tier. Only
    exactly adjacent ranges (end + 1 == next start) are merged.

    Args:
        ranges: Sorted list of ranges
        buffer: Optional reusable scratch buffer of LONG_BYTES length

    Returns:
        List of merged ranges
    """
    buffer = buffer if buffer is not None and len(buffer) == LONG_BYTES else bytearray(LONG_BYTES)
    merged: List[TieredRange] = []
    current: Optional[TieredRange] = None

    for next_range in ranges:
        if current is None:
            current = next_range
            continue

        current_max = decode_position(current.end, buffer)
        next_min = decode_position(next_range.start, buffer)

        if current_max + 1 == next_min:
            current = TieredRange(current.start, next_range.end)
        else:
            merged.append(current)
            current = next_range

    if current is not None:
        merged.append(current)

    return merged


def _split_range(
    tier: int,
    min_pos: int,
    max_pos: int,
    area: float,
    budget: float,
    oracle: BoundsOracle,
    buffer: bytearray,
    out: List[TieredRange],
) -> None:
    span = max_pos - min_pos + 1
    num_sub_ranges = min(int(area / budget) + 1, span)

    logger.debug(
        "Splitting tier %d range %d..%d (area %.6f) into %d pieces",
        tier, min_pos, max_pos, area, num_sub_ranges,
    )

    for i in range(num_sub_ranges):
        sub_min = min_pos + (span * i) // num_sub_ranges
        sub_max = min_pos + (span * (i + 1)) // num_sub_ranges - 1

        sub_area = range_to_geometry(tier, sub_min, sub_max, oracle).area
        if sub_area > budget and sub_max > sub_min:
            _split_range(tier, sub_min, sub_max, sub_area, budget, oracle, buffer, out)
        else:
            out.append(create_range(tier, sub_min, sub_max, buffer))


def split_large_ranges(
    ranges: List[TieredRange],
    query_geometry: BaseGeometry,
    max_range_overlap: float,
    oracle: BoundsOracle,
    buffer: Optional[bytearray] = None,
) -> List[TieredRange]:
    """
    Split ranges whose area exceeds a share of the query envelope area.

    A range over budget is cut into floor(area / budget) + 1 contiguous
    pieces of near-equal width. Pieces still over budget are split again
    until they fit or hold a single position. The remainder of an uneven
    division is spread across the pieces rather than added to the last one,
    so piece sizes differ by at most one position.

    Args:
        ranges: Ranges to split
        query_geometry: The original query geometry
        max_range_overlap: Largest allowed range area as a fraction of the
            query envelope area, in (0, 1]
        oracle: Oracle supplying cell bounds
        buffer: Optional reusable scratch buffer of LONG_BYTES length

    Returns:
        List of ranges, each within budget unless it is a single position
    """
    validate_max_range_overlap(max_range_overlap)
    buffer = buffer if buffer is not None and len(buffer) == LONG_BYTES else bytearray(LONG_BYTES)

    budget = max_range_overlap * query_geometry.envelope.area
    if budget <= 0:
        # Points and lines have no area to compare against
        return list(ranges)

    split: List[TieredRange] = []
    for tiered_range in ranges:
        tier = tiered_range.tier
        min_pos = decode_position(tiered_range.start, buffer)
        max_pos = decode_position(tiered_range.end, buffer)

        area = range_to_geometry(tier, min_pos, max_pos, oracle).area
        if area > budget and max_pos > min_pos:
            _split_range(tier, min_pos, max_pos, area, budget, oracle, buffer, split)
        else:
            split.append(tiered_range)

    return split

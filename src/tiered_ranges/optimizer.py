"""
Range optimizer using coarse-tier projection and geometric pruning.

The ranges an index strategy generates for a query geometry are overly
inclusive. The optimizer projects each range onto a coarser tier, keeps
only the coarse cells that intersect the query geometry, then merges and
splits the survivors into the final list of scan ranges.
"""

import logging
from dataclasses import dataclass
from typing import List

from shapely.geometry.base import BaseGeometry

from .codec import LONG_BYTES, TieredRange, create_id, create_range, decode_position, decode_tier
from .decompose import tier_scale
from .geometry import bounds_to_geometry, range_to_geometry
from .oracle import BoundsOracle, in_map_bounds
from .ranges import merge_contiguous_ranges, split_large_ranges, validate_max_range_overlap

logger = logging.getLogger(__name__)


DEFAULT_RANGE_SPLIT_THRESHOLD = 16
DEFAULT_MAX_RANGE_OVERLAP = 0.25


@dataclass
class OptimizerConfig:
    """Configuration for the range optimizer."""

    range_split_threshold: int = DEFAULT_RANGE_SPLIT_THRESHOLD
    """Minimum number of coarse cells to project a range onto. Higher values
    take longer to compute but yield tighter ranges."""

    max_range_overlap: float = DEFAULT_MAX_RANGE_OVERLAP
    """Largest area a single range may cover, as a fraction of the query
    envelope area. Must be in (0, 1]."""

    def __post_init__(self):
        if self.range_split_threshold <= 0:
            raise ValueError("range_split_threshold must be at least 1")
        validate_max_range_overlap(self.max_range_overlap)


@dataclass
class OptimizerStats:
    """Statistics collected while optimizing ranges."""

    ranges_in: int = 0
    ranges_out: int = 0
    single_values_passed: int = 0
    cells_tested: int = 0
    cells_kept: int = 0
    edges_kept: int = 0
    fallbacks: int = 0
    splits: int = 0


class RangeOptimizer:
    """
    Optimizer for tiered ranges.

    For each range the optimizer:
    1. Finds the coarsest tier at which the range holds at least
       range_split_threshold aligned cells
    2. Keeps the fine-tier span of every such cell that intersects the query
    3. Keeps the uncovered edges of the range if they intersect the query
    4. Merges adjacent survivors and splits any that are too large
    """

    def __init__(self, oracle: BoundsOracle, config: OptimizerConfig):
        """
        Initialize the optimizer.

        Args:
            oracle: Oracle mapping tiered ids to bounds
            config: Optimizer configuration
        """
        self.oracle = oracle
        self.config = config
        self.stats = OptimizerStats()

    def optimize_ranges(
        self,
        query_geometry: BaseGeometry,
        ranges: List[TieredRange],
    ) -> List[TieredRange]:
        """
        Optimize every range needed to query an area.

        Single-value ranges are already as tight as possible and pass
        through unchanged.

        Args:
            query_geometry: The geometry the ranges were generated for
            ranges: Ranges generated for the query geometry

        Returns:
            List of optimized ranges
        """
        optimized: List[TieredRange] = []
        for tiered_range in ranges:
            if tiered_range.single_value:
                self.stats.ranges_in += 1
                self.stats.single_values_passed += 1
                self.stats.ranges_out += 1
                optimized.append(tiered_range)
            else:
                optimized.extend(self.optimize_range(query_geometry, tiered_range))
        return optimized

    def optimize_range(
        self,
        query_geometry: BaseGeometry,
        tiered_range: TieredRange,
    ) -> List[TieredRange]:
        """
        Optimize one range, pruning portions that miss the query geometry.

        Args:
            query_geometry: The geometry the range was generated for
            tiered_range: A range covering part of the query geometry

        Returns:
            List of optimized ranges (possibly empty)
        """
        self.stats.ranges_in += 1
        tier = decode_tier(tiered_range)
        if tier == 0:
            self.stats.ranges_out += 1
            return [tiered_range]

        buffer = bytearray(LONG_BYTES)
        min_pos = decode_position(tiered_range.start, buffer)
        max_pos = decode_position(tiered_range.end, buffer)
        span = max_pos - min_pos + 1

        optimized: List[TieredRange] = []

        # Checking every position against the query is too expensive, so the
        # range is projected onto the coarsest tier that still splits it into
        # at least range_split_threshold cells.
        for cur_tier in range(tier + 1):
            scale = tier_scale(tier, cur_tier)
            if span < scale:
                continue

            scaled_min = -(-min_pos // scale)
            scaled_max = max_pos // scale
            if scaled_max - scaled_min + 1 < self.config.range_split_threshold:
                continue

            simplified = False
            sub_range_min = scaled_min * scale
            sub_range_max = None

            for scaled_pos in range(scaled_min, scaled_max + 1):
                next_sub_range_max = scaled_pos * scale + scale - 1
                if next_sub_range_max > max_pos:
                    break

                simplified = True
                sub_range_max = next_sub_range_max
                self.stats.cells_tested += 1

                scaled_id = create_id(cur_tier, scaled_pos, buffer)
                scaled_bounds = self.oracle.get_bounds(scaled_id)

                # Cells at tiers 0 and 1 are treated as within the map
                if in_map_bounds(scaled_bounds) or cur_tier <= 1:
                    if bounds_to_geometry(scaled_bounds).intersects(query_geometry):
                        self.stats.cells_kept += 1
                        optimized.append(
                            create_range(tier, scaled_pos * scale, next_sub_range_max, buffer)
                        )

            if simplified:
                logger.debug(
                    "Projected tier %d range %d..%d onto tier %d, kept %d cells",
                    tier, min_pos, max_pos, cur_tier, len(optimized),
                )
                if min_pos < sub_range_min and self._intersects(
                    query_geometry, tier, min_pos, sub_range_min - 1
                ):
                    self.stats.edges_kept += 1
                    optimized.append(create_range(tier, min_pos, sub_range_min - 1, buffer))

                if max_pos > sub_range_max and self._intersects(
                    query_geometry, tier, sub_range_max + 1, max_pos
                ):
                    self.stats.edges_kept += 1
                    optimized.append(create_range(tier, sub_range_max + 1, max_pos, buffer))
                break

        if not optimized and self._intersects(query_geometry, tier, min_pos, max_pos):
            logger.debug("Keeping tier %d range %d..%d unchanged", tier, min_pos, max_pos)
            self.stats.fallbacks += 1
            optimized.append(tiered_range)
        else:
            optimized.sort(key=lambda r: decode_position(r.start, buffer))
            optimized = merge_contiguous_ranges(optimized, buffer)
            merged_count = len(optimized)
            optimized = split_large_ranges(
                optimized, query_geometry, self.config.max_range_overlap, self.oracle, buffer
            )
            self.stats.splits += len(optimized) - merged_count

        self.stats.ranges_out += len(optimized)
        return optimized

    def _intersects(self, query_geometry: BaseGeometry, tier: int, min_pos: int, max_pos: int) -> bool:
        return range_to_geometry(tier, min_pos, max_pos, self.oracle).intersects(query_geometry)


def optimize_ranges(
    query_geometry: BaseGeometry,
    ranges: List[TieredRange],
    oracle: BoundsOracle,
    range_split_threshold: int = DEFAULT_RANGE_SPLIT_THRESHOLD,
    max_range_overlap: float = DEFAULT_MAX_RANGE_OVERLAP,
) -> List[TieredRange]:
    """
    Convenience function to optimize a list of ranges.

    Args:
        query_geometry: The geometry the ranges were generated for
        ranges: Ranges generated for the query geometry
        oracle: Oracle mapping tiered ids to bounds
        range_split_threshold: Minimum number of coarse cells per range
        max_range_overlap: Largest range area as a fraction of the query
            envelope area

    Returns:
        List of optimized ranges
    """
    config = OptimizerConfig(
        range_split_threshold=range_split_threshold,
        max_range_overlap=max_range_overlap,
    )
    return RangeOptimizer(oracle, config).optimize_ranges(query_geometry, ranges)


def optimize_range(
    query_geometry: BaseGeometry,
    tiered_range: TieredRange,
    oracle: BoundsOracle,
    range_split_threshold: int = DEFAULT_RANGE_SPLIT_THRESHOLD,
    max_range_overlap: float = DEFAULT_MAX_RANGE_OVERLAP,
) -> List[TieredRange]:
    """Convenience function to optimize a single range."""
    config = OptimizerConfig(
        range_split_threshold=range_split_threshold,
        max_range_overlap=max_range_overlap,
    )
    return RangeOptimizer(oracle, config).optimize_range(query_geometry, tiered_range)

"""
tiered-ranges: Range optimization for tiered Hilbert curve geo indexes.

This package turns the overly inclusive curve ranges an index strategy
generates for a query polygon into a tight set of scan ranges, and prunes
expanded tiered id terms from boolean query trees.
"""

__version__ = "0.1.0"

from .codec import (
    TieredId,
    TieredRange,
    TieredIdError,
    create_id,
    create_range,
    decode_tier,
    decode_position,
    hex_chars_per_tier,
)
from .oracle import BoundingBox, BoundsOracle, FunctionBoundsOracle, HilbertBoundsOracle, in_map_bounds
from .decompose import decompose_range
from .geometry import GeometryParseError, parse_geometry, range_to_geometry, position_to_geometry
from .ranges import merge_contiguous_ranges, split_large_ranges
from .optimizer import OptimizerConfig, RangeOptimizer, optimize_range, optimize_ranges
from .pruning import GeoWavePruningVisitor, prune_tree
from .features import QueryGeometry, get_geo_features
from .duckdb_index import DuckDBPointIndex

__all__ = [
    "TieredId",
    "TieredRange",
    "TieredIdError",
    "create_id",
    "create_range",
    "decode_tier",
    "decode_position",
    "hex_chars_per_tier",
    "BoundingBox",
    "BoundsOracle",
    "FunctionBoundsOracle",
    "HilbertBoundsOracle",
    "in_map_bounds",
    "decompose_range",
    "GeometryParseError",
    "parse_geometry",
    "range_to_geometry",
    "position_to_geometry",
    "merge_contiguous_ranges",
    "split_large_ranges",
    "OptimizerConfig",
    "RangeOptimizer",
    "optimize_range",
    "optimize_ranges",
    "GeoWavePruningVisitor",
    "prune_tree",
    "QueryGeometry",
    "get_geo_features",
    "DuckDBPointIndex",
]

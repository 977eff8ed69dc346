"""
Command-line interface for tiered-ranges.

Provides commands for optimizing and inspecting tiered curve ranges.
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from .codec import MAX_TIER, TieredIdError, create_range, hex_chars_per_tier
from .curve import LAT_MAX, LAT_MIN, LON_MAX, LON_MIN, cell_count, position_count
from .decompose import decompose_range
from .geometry import parse_geometry
from .optimizer import (
    DEFAULT_MAX_RANGE_OVERLAP,
    DEFAULT_RANGE_SPLIT_THRESHOLD,
    OptimizerConfig,
    RangeOptimizer,
)
from .oracle import HilbertBoundsOracle


def parse_range(text: str) -> Tuple[int, int, int]:
    """Parse a TIER:MIN:MAX argument."""
    parts = text.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"Expected TIER:MIN:MAX, got {text!r}")
    try:
        tier, min_pos, max_pos = (int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected integers in {text!r}")
    if min_pos > max_pos:
        raise argparse.ArgumentTypeError(f"MIN greater than MAX in {text!r}")
    return tier, min_pos, max_pos


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tiered-ranges",
        description="Optimize and inspect tiered Hilbert curve ranges",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log optimizer decisions",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Optimize command
    optimize_parser = subparsers.add_parser(
        "optimize",
        help="Optimize ranges for a query geometry",
    )
    optimize_parser.add_argument(
        "--wkt",
        required=True,
        help="Query geometry as well-known text",
    )
    optimize_parser.add_argument(
        "-r", "--range",
        dest="ranges",
        type=parse_range,
        action="append",
        required=True,
        help="Raw range as TIER:MIN:MAX (repeatable)",
    )
    optimize_parser.add_argument(
        "--threshold",
        type=int,
        default=DEFAULT_RANGE_SPLIT_THRESHOLD,
        help=f"Range split threshold (default: {DEFAULT_RANGE_SPLIT_THRESHOLD})",
    )
    optimize_parser.add_argument(
        "--overlap",
        type=float,
        default=DEFAULT_MAX_RANGE_OVERLAP,
        help=f"Max range overlap in (0, 1] (default: {DEFAULT_MAX_RANGE_OVERLAP})",
    )

    # Decompose command
    decompose_parser = subparsers.add_parser(
        "decompose",
        help="Decompose a range across coarser tiers",
    )
    decompose_parser.add_argument("tier", type=int, help="Tier of the range")
    decompose_parser.add_argument("min", type=int, help="First position")
    decompose_parser.add_argument("max", type=int, help="Last position")

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show statistics for a given tier",
    )
    stats_parser.add_argument(
        "-t", "--tier",
        type=int,
        default=MAX_TIER,
        help=f"Tier (default: {MAX_TIER})",
    )

    # Point command
    point_parser = subparsers.add_parser(
        "point",
        help="Show the tiered id of a point",
    )
    point_parser.add_argument("--lon", type=float, required=True, help="Longitude")
    point_parser.add_argument("--lat", type=float, required=True, help="Latitude")
    point_parser.add_argument("-t", "--tier", type=int, default=MAX_TIER, help="Tier")

    return parser


def cmd_optimize(args: argparse.Namespace) -> int:
    """Handle the optimize command."""
    try:
        query_geometry = parse_geometry(args.wkt)
        config = OptimizerConfig(
            range_split_threshold=args.threshold,
            max_range_overlap=args.overlap,
        )
        ranges = [create_range(tier, lo, hi) for tier, lo, hi in args.ranges]
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    optimizer = RangeOptimizer(HilbertBoundsOracle(), config)
    optimized = optimizer.optimize_ranges(query_geometry, ranges)

    for tiered_range in optimized:
        lo, hi = tiered_range.positions()
        print(f"{tiered_range.tier} {lo} {hi} {tiered_range.start.hex()} {tiered_range.end.hex()}")

    stats = optimizer.stats
    print("\nOptimizer statistics:")
    print(f"  Ranges in: {stats.ranges_in}")
    print(f"  Ranges out: {stats.ranges_out}")
    print(f"  Single values passed: {stats.single_values_passed}")
    print(f"  Cells tested: {stats.cells_tested}")
    print(f"  Cells kept: {stats.cells_kept}")
    print(f"  Edges kept: {stats.edges_kept}")
    print(f"  Fallbacks: {stats.fallbacks}")
    print(f"  Ranges added by splitting: {stats.splits}")

    return 0


def cmd_decompose(args: argparse.Namespace) -> int:
    """Handle the decompose command."""
    if args.min > args.max:
        print("Error: min greater than max")
        return 1
    try:
        tiered_ids = decompose_range(args.tier, args.min, args.max)
    except TieredIdError as e:
        print(f"Error: {e}")
        return 1

    for tiered_id in tiered_ids:
        print(f"{tiered_id.tier} {tiered_id.position} {tiered_id.hex()}")

    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle the stats command."""
    t = args.tier
    if not 0 <= t <= MAX_TIER:
        print(f"Error: tier must be in [0, {MAX_TIER}]")
        return 1

    n = cell_count(t)
    print(f"Grid statistics for tier {t}:")
    print(f"  Cells per dimension: {n}")
    print(f"  Curve positions: {position_count(t):,}")
    print(f"  Id width: {hex_chars_per_tier(t) // 2 + 1} bytes")
    print(f"  Cell width: {(LON_MAX - LON_MIN) / n} degrees")
    print(f"  Cell height: {(LAT_MAX - LAT_MIN) / n} degrees")

    return 0


def cmd_point(args: argparse.Namespace) -> int:
    """Handle the point command."""
    try:
        tiered_id = HilbertBoundsOracle().point_to_id(args.lon, args.lat, args.tier)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(f"{tiered_id.tier} {tiered_id.position} {tiered_id.hex()}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "optimize":
        return cmd_optimize(args)
    elif args.command == "decompose":
        return cmd_decompose(args)
    elif args.command == "stats":
        return cmd_stats(args)
    elif args.command == "point":
        return cmd_point(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

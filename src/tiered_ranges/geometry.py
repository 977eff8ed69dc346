"""
Geometry reconstruction for tiered ids and ranges.

Geometries are shapely objects. A range is turned into geometry by
decomposing it across tiers and unioning the boxes of the resulting cells.
"""

from typing import List

import shapely
from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import box
from shapely.geometry.base import BaseGeometry

from .codec import TieredId
from .decompose import decompose_range
from .oracle import BoundingBox, BoundsOracle, in_map_bounds


class GeometryParseError(ValueError):
    """Raised when well-known text cannot be parsed into a geometry."""


def parse_geometry(text: str) -> BaseGeometry:
    """
    Parse a geometry from well-known text.

    Args:
        text: WKT such as "POLYGON((0 0, 1 0, 1 1, 0 1, 0 0))"

    Returns:
        Parsed shapely geometry
    """
    try:
        geometry = wkt.loads(text)
    except (ShapelyError, TypeError) as e:
        raise GeometryParseError(f"Unable to parse geometry {text!r}: {e}") from e

    if geometry is None:
        raise GeometryParseError(f"Unable to parse geometry {text!r}")
    return geometry


def bounds_to_geometry(bounds: BoundingBox) -> BaseGeometry:
    """Rectangle geometry for a bounding box."""
    return box(bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y)


def range_to_geometry(
    tier: int,
    min_pos: int,
    max_pos: int,
    oracle: BoundsOracle,
) -> BaseGeometry:
    """
    Generate the geometry covered by a range at a tier.

    Cells outside the map bounds are left out, except cells at tier 0 or 1,
    which are never fully inside the map but always overlap it.

    Args:
        tier: Tier of the range
        min_pos: First position
        max_pos: Last position
        oracle: Oracle supplying cell bounds

    Returns:
        Union of the cell rectangles (empty if no cell qualifies)
    """
    geometries: List[BaseGeometry] = []
    for tiered_id in decompose_range(tier, min_pos, max_pos):
        bounds = oracle.get_bounds(tiered_id)
        if in_map_bounds(bounds) or tiered_id.tier <= 1:
            geometries.append(bounds_to_geometry(bounds))

    return shapely.union_all(geometries)


def position_to_geometry(literal: str, oracle: BoundsOracle) -> BaseGeometry:
    """
    Generate the geometry of a single tiered id given as a hex literal.

    Args:
        literal: Hex encoded tiered id, e.g. "1f0000a2b4"
        oracle: Oracle supplying cell bounds

    Returns:
        Geometry of the cell
    """
    tiered_id = TieredId.from_hex(literal)
    position = tiered_id.position
    return range_to_geometry(tiered_id.tier, position, position, oracle)

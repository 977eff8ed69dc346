"""
Hilbert curve math for the tiered index.

This module converts between curve positions and integer cell coordinates
at a tier, and between WGS84 coordinates and cells.

A tier t grid has 2^t cells per dimension and 4^t positions along the curve.
Blocks of four consecutive positions at tier t+1 always form the cell with
the same block index at tier t, which is what lets ranges be projected onto
coarser tiers.
"""

from typing import Tuple


# Extent of each dimension. Latitude spans the same 360 degrees as longitude
# so cells are square; rows beyond +/-90 lie outside the map.
LON_MIN, LON_MAX = -180.0, 180.0
LAT_MIN, LAT_MAX = -180.0, 180.0


def cell_count(tier: int) -> int:
    """Number of cells per dimension at a tier."""
    return 1 << tier


def position_count(tier: int) -> int:
    """Number of curve positions at a tier."""
    return 1 << (2 * tier)


def _rotate(n: int, x: int, y: int, rx: int, ry: int) -> Tuple[int, int]:
    """Rotate/flip a quadrant so the sub-curve is oriented correctly."""
    if ry == 0:
        if rx == 1:
            x = n - 1 - x
            y = n - 1 - y
        x, y = y, x
    return x, y


def hilbert_to_xy(tier: int, position: int) -> Tuple[int, int]:
    """
    Convert a curve position to cell coordinates.

    Args:
        tier: Tier (grid is 2^tier cells wide)
        position: Curve position in [0, 4^tier - 1]

    Returns:
        Tuple of (x, y) cell indices
    """
    n = cell_count(tier)
    x = y = 0
    t = position
    s = 1
    while s < n:
        rx = 1 & (t // 2)
        ry = 1 & (t ^ rx)
        x, y = _rotate(s, x, y, rx, ry)
        x += s * rx
        y += s * ry
        t //= 4
        s *= 2
    return x, y


def xy_to_hilbert(tier: int, x: int, y: int) -> int:
    """
    Convert cell coordinates to a curve position.

    Args:
        tier: Tier (grid is 2^tier cells wide)
        x: Longitude cell index
        y: Latitude cell index

    Returns:
        Curve position
    """
    n = cell_count(tier)
    d = 0
    s = n // 2
    while s > 0:
        rx = 1 if (x & s) > 0 else 0
        ry = 1 if (y & s) > 0 else 0
        d += s * s * ((3 * rx) ^ ry)
        x, y = _rotate(n, x, y, rx, ry)
        s //= 2
    return d


def clamp_coords(lat: float, lon: float) -> Tuple[float, float]:
    """
    Clamp latitude and longitude to valid WGS84 ranges.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        Tuple of (clamped_lat, clamped_lon)
    """
    clamped_lat = max(-90.0, min(90.0, lat))
    clamped_lon = max(-180.0, min(180.0, lon))
    return clamped_lat, clamped_lon


def coord_to_cell(lat: float, lon: float, tier: int) -> Tuple[int, int]:
    """
    Find the cell containing a WGS84 coordinate.

    Points on a shared cell edge go to the cell above/right of it, except
    on the far edge of the grid.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        tier: Tier of the grid

    Returns:
        Tuple of (x, y) cell indices
    """
    lat, lon = clamp_coords(lat, lon)
    n = cell_count(tier)

    x = int((lon - LON_MIN) / (LON_MAX - LON_MIN) * n)
    y = int((lat - LAT_MIN) / (LAT_MAX - LAT_MIN) * n)

    # Clamp indices to valid range (handles the max edge)
    x = max(0, min(n - 1, x))
    y = max(0, min(n - 1, y))

    return x, y


def cell_extent(tier: int, x: int, y: int) -> Tuple[float, float, float, float]:
    """
    Degree extent of a cell.

    Returns:
        Tuple of (min_lon, min_lat, max_lon, max_lat)
    """
    n = cell_count(tier)
    width = (LON_MAX - LON_MIN) / n
    height = (LAT_MAX - LAT_MIN) / n
    return (
        LON_MIN + x * width,
        LAT_MIN + y * height,
        LON_MIN + (x + 1) * width,
        LAT_MIN + (y + 1) * height,
    )

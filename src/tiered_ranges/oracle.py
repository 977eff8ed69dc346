"""
Bounds oracle interface for tiered ids.

This module defines the oracle protocol that maps a tiered id to its
real-world bounding box, and a reference implementation for the tiered
Hilbert index used throughout the package.
"""

from abc import ABC, abstractmethod
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List

from .codec import TieredId, create_id
from .curve import cell_extent, coord_to_cell, hilbert_to_xy, xy_to_hilbert


@dataclass(frozen=True)
class BoundingBox:
    """
    Bounds of a tiered id in degrees.

    x is longitude and y is latitude.
    """
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(
                f"Invalid bounds: min=({self.min_x}, {self.min_y}), "
                f"max=({self.max_x}, {self.max_y})"
            )

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def in_map_bounds(bounds: BoundingBox) -> bool:
    """
    Check whether bounds lie entirely within the map.

    Both longitudes must be in [-180, 180] and both latitudes in [-90, 90].
    """
    return (
        -180 <= bounds.min_x <= 180
        and -180 <= bounds.max_x <= 180
        and -90 <= bounds.min_y <= 90
        and -90 <= bounds.max_y <= 90
    )


class BoundsOracle(ABC):
    """
    Abstract base class for bounds oracles.

    An oracle provides the bounding box covered by a tiered id. Lookups must
    be deterministic for a given id.
    """

    @abstractmethod
    def get_bounds(self, tiered_id: TieredId) -> BoundingBox:
        """
        Look up the bounding box of a tiered id.

        Args:
            tiered_id: Encoded tier and position

        Returns:
            BoundingBox of the cell
        """
        pass

    def get_bounds_batch(self, tiered_ids: List[TieredId]) -> List[BoundingBox]:
        """
        Look up bounding boxes for multiple ids.

        Default implementation calls get_bounds() for each id.
        """
        return [self.get_bounds(tiered_id) for tiered_id in tiered_ids]


class FunctionBoundsOracle(BoundsOracle):
    """
    Oracle wrapper for a simple function.

    Wraps a callable (tier, position) -> BoundingBox.
    """

    def __init__(self, func: Callable[[int, int], BoundingBox]):
        self._func = func

    def get_bounds(self, tiered_id: TieredId) -> BoundingBox:
        return self._func(tiered_id.tier, tiered_id.position)


class HilbertBoundsOracle(BoundsOracle):
    """
    Oracle for the tiered two-dimensional Hilbert index.

    Tier t splits longitude [-180, 180] and latitude [-180, 180] into
    2^t cells each, ordered along a Hilbert curve. Tiers 0 and 1 are never
    fully inside the map.
    """

    def __init__(self, cache_size: int = 65536):
        """
        Args:
            cache_size: Maximum number of cached bounds lookups
        """
        self._cache: Dict[bytes, BoundingBox] = {}
        self._cache_size = cache_size
        self._cache_lock = threading.Lock()

    def get_bounds(self, tiered_id: TieredId) -> BoundingBox:
        cache_key = tiered_id.data
        with self._cache_lock:
            cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        x, y = hilbert_to_xy(tiered_id.tier, tiered_id.position)
        bounds = BoundingBox(*cell_extent(tiered_id.tier, x, y))

        with self._cache_lock:
            if len(self._cache) >= self._cache_size:
                # Remove oldest entries (first 10%)
                keys_to_remove = list(self._cache.keys())[: max(1, self._cache_size // 10)]
                for k in keys_to_remove:
                    self._cache.pop(k, None)
            self._cache[cache_key] = bounds
        return bounds

    def point_to_id(self, lon: float, lat: float, tier: int) -> TieredId:
        """
        Find the tiered id of the cell containing a point.

        Args:
            lon: Longitude in degrees
            lat: Latitude in degrees
            tier: Tier to index at

        Returns:
            TieredId of the containing cell
        """
        x, y = coord_to_cell(lat, lon, tier)
        return create_id(tier, xy_to_hilbert(tier, x, y))

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

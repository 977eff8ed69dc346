"""
DuckDB-backed point index for executing scan ranges.

Points are stored with their tiered id at a fixed tier, so a list of
optimized ranges can be run against them the way the storage layer would.
This is how the optimizer's output is checked against real point data.
"""

from typing import Iterable, List, Optional, Tuple

import duckdb
import shapely
from shapely.geometry.base import BaseGeometry

from .codec import TieredRange
from .oracle import HilbertBoundsOracle


class DuckDBPointIndex:
    """
    In-memory point index keyed by tiered id.

    Each point is stored as (point_id, lon, lat, tier, position).
    """

    def __init__(self, oracle: HilbertBoundsOracle, tier: int):
        """
        Initialize the index.

        Args:
            oracle: Oracle used to compute the tiered id of each point
            tier: Tier every point is indexed at
        """
        self.oracle = oracle
        self.tier = tier

        self._con: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(":memory:")
        self._con.execute("""
            CREATE TABLE points (
                point_id VARCHAR PRIMARY KEY,
                lon DOUBLE,
                lat DOUBLE,
                tier INTEGER,
                position BIGINT
            )
        """)

    def add_point(self, point_id: str, lon: float, lat: float) -> None:
        self.add_points([(point_id, lon, lat)])

    def add_points(self, points: Iterable[Tuple[str, float, float]]) -> None:
        """
        Index points.

        Args:
            points: Iterable of (point_id, lon, lat) tuples
        """
        rows = []
        for point_id, lon, lat in points:
            tiered_id = self.oracle.point_to_id(lon, lat, self.tier)
            rows.append((point_id, lon, lat, tiered_id.tier, tiered_id.position))

        if rows:
            self._con.executemany("INSERT INTO points VALUES (?, ?, ?, ?, ?)", rows)

    def count(self) -> int:
        return self._con.execute("SELECT COUNT(*) FROM points").fetchone()[0]

    def scan(self, ranges: List[TieredRange]) -> List[str]:
        """
        Find the points selected by a list of ranges.

        Args:
            ranges: Ranges to scan

        Returns:
            Sorted ids of points whose tiered id falls in any range
        """
        if not ranges:
            return []

        rows = []
        for tiered_range in ranges:
            min_pos, max_pos = tiered_range.positions()
            rows.append((tiered_range.tier, min_pos, max_pos))

        self._con.execute("""
            CREATE OR REPLACE TEMP TABLE scan_ranges (
                tier INTEGER,
                min_pos BIGINT,
                max_pos BIGINT
            )
        """)
        self._con.executemany("INSERT INTO scan_ranges VALUES (?, ?, ?)", rows)

        result = self._con.execute("""
            SELECT DISTINCT p.point_id
            FROM points p
            JOIN scan_ranges r
              ON p.tier = r.tier AND p.position BETWEEN r.min_pos AND r.max_pos
            ORDER BY p.point_id
        """).fetchall()

        return [row[0] for row in result]

    def points_in(self, geometry: BaseGeometry) -> List[str]:
        """
        Find the points that intersect a geometry, without using ranges.

        Returns:
            Sorted ids of points on or inside the geometry
        """
        rows = self._con.execute(
            "SELECT point_id, lon, lat FROM points ORDER BY point_id"
        ).fetchall()
        if not rows:
            return []

        point_ids, lons, lats = zip(*rows)
        hits = shapely.intersects_xy(geometry, lons, lats)
        return [point_id for point_id, hit in zip(point_ids, hits) if hit]

    def close(self) -> None:
        """Close the database connection."""
        if self._con:
            self._con.close()
            self._con = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

"""Tests for bounds oracles."""

import threading

import pytest
from tiered_ranges.codec import create_id
from tiered_ranges.oracle import (
    BoundingBox,
    FunctionBoundsOracle,
    HilbertBoundsOracle,
    in_map_bounds,
)


@pytest.fixture
def oracle():
    """Create Hilbert oracle fixture for tests."""
    return HilbertBoundsOracle()


class TestBoundingBox:
    """Tests for BoundingBox."""

    def test_dimensions(self):
        """Test width and height."""
        bounds = BoundingBox(0, 0, 90, 45)
        assert bounds.width == 90
        assert bounds.height == 45

    def test_invalid(self):
        """Test that inverted bounds raise error."""
        with pytest.raises(ValueError):
            BoundingBox(10, 0, 0, 10)
        with pytest.raises(ValueError):
            BoundingBox(0, 10, 10, 0)


class TestInMapBounds:
    """Tests for in_map_bounds function."""

    def test_inside(self):
        """Test bounds inside the map."""
        assert in_map_bounds(BoundingBox(0, 0, 90, 90))
        assert in_map_bounds(BoundingBox(-180, -90, 180, 90))

    def test_outside(self):
        """Test bounds that extend past the poles."""
        assert not in_map_bounds(BoundingBox(0, 90, 90, 180))
        assert not in_map_bounds(BoundingBox(-180, -180, 180, 180))


class TestHilbertBoundsOracle:
    """Tests for HilbertBoundsOracle."""

    def test_tier_zero(self, oracle):
        """Test that the tier 0 cell spans the whole grid."""
        bounds = oracle.get_bounds(create_id(0, 0))
        assert bounds == BoundingBox(-180, -180, 180, 180)
        assert not in_map_bounds(bounds)

    def test_tier_one(self, oracle):
        """Test tier 1 quadrants."""
        assert oracle.get_bounds(create_id(1, 0)) == BoundingBox(-180, -180, 0, 0)
        assert oracle.get_bounds(create_id(1, 2)) == BoundingBox(0, 0, 180, 180)

    def test_tier_two(self, oracle):
        """Test tier 2 cells inside and outside the map."""
        assert oracle.get_bounds(create_id(2, 8)) == BoundingBox(0, 0, 90, 90)
        assert in_map_bounds(oracle.get_bounds(create_id(2, 8)))
        assert not in_map_bounds(oracle.get_bounds(create_id(2, 9)))

    def test_children_tile_parent(self, oracle):
        """Test that four child cells cover exactly their parent."""
        for position in range(16):
            parent = oracle.get_bounds(create_id(2, position))
            children = oracle.get_bounds_batch(
                [create_id(3, 4 * position + i) for i in range(4)]
            )
            assert min(c.min_x for c in children) == parent.min_x
            assert min(c.min_y for c in children) == parent.min_y
            assert max(c.max_x for c in children) == parent.max_x
            assert max(c.max_y for c in children) == parent.max_y

    def test_cached_lookup(self, oracle):
        """Test that repeated lookups hit the cache."""
        first = oracle.get_bounds(create_id(4, 100))
        second = oracle.get_bounds(create_id(4, 100))
        assert first is second

    def test_cache_eviction(self):
        """Test that the cache stays within its size."""
        oracle = HilbertBoundsOracle(cache_size=10)
        for position in range(50):
            oracle.get_bounds(create_id(4, position))
        assert len(oracle._cache) <= 10

        oracle.clear_cache()
        assert len(oracle._cache) == 0

    def test_concurrent_lookups(self):
        """Test that threads sharing a small cache all get correct bounds."""
        oracle = HilbertBoundsOracle(cache_size=8)
        expected = {p: HilbertBoundsOracle().get_bounds(create_id(6, p)) for p in range(64)}
        errors = []

        def worker(offset):
            try:
                for i in range(2000):
                    position = (i + offset) % 64
                    assert oracle.get_bounds(create_id(6, position)) == expected[position]
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(oracle._cache) <= 8

    def test_point_to_id(self, oracle):
        """Test locating the cell of a point."""
        tiered_id = oracle.point_to_id(0.5, 0.5, 2)
        assert tiered_id == create_id(2, 8)

        bounds = oracle.get_bounds(oracle.point_to_id(-45.0, 10.0, 2))
        assert bounds.min_x <= -45.0 < bounds.max_x
        assert bounds.min_y <= 10.0 < bounds.max_y


class TestFunctionBoundsOracle:
    """Tests for FunctionBoundsOracle."""

    def test_wraps_function(self):
        """Test that lookups delegate to the function."""
        oracle = FunctionBoundsOracle(lambda tier, pos: BoundingBox(pos, 0, pos + 1, tier))
        assert oracle.get_bounds(create_id(3, 5)) == BoundingBox(5, 0, 6, 3)

    def test_batch(self):
        """Test batch lookup."""
        oracle = FunctionBoundsOracle(lambda tier, pos: BoundingBox(pos, 0, pos + 1, 1))
        result = oracle.get_bounds_batch([create_id(3, 1), create_id(3, 2)])
        assert result == [BoundingBox(1, 0, 2, 1), BoundingBox(2, 0, 3, 1)]

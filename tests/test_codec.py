"""Tests for tiered id codec."""

import pytest
from tiered_ranges.codec import (
    LONG_BYTES,
    MAX_TIER,
    TieredId,
    TieredIdError,
    TieredRange,
    create_id,
    create_range,
    decode_position,
    decode_tier,
    hex_chars_per_tier,
)


class TestHexCharsPerTier:
    """Tests for hex_chars_per_tier function."""

    def test_tier_zero(self):
        """Test that tier 0 needs no position characters."""
        assert hex_chars_per_tier(0) == 0

    def test_known_values(self):
        """Test widths at tier boundaries."""
        assert hex_chars_per_tier(1) == 2
        assert hex_chars_per_tier(4) == 2
        assert hex_chars_per_tier(5) == 4
        assert hex_chars_per_tier(8) == 4
        assert hex_chars_per_tier(9) == 6
        assert hex_chars_per_tier(31) == 16

    def test_always_even(self):
        """Test that every tier uses whole bytes."""
        for tier in range(MAX_TIER + 1):
            assert hex_chars_per_tier(tier) % 2 == 0

    def test_width_holds_every_position(self):
        """Test that the position bytes hold the largest position of each tier."""
        for tier in range(MAX_TIER + 1):
            bits = hex_chars_per_tier(tier) // 2 * 8
            assert bits >= 2 * tier


class TestCreateId:
    """Tests for create_id function."""

    def test_tier_zero(self):
        """Test that the tier 0 id is the tier byte alone."""
        assert create_id(0, 0).data == b"\x00"

    def test_layout(self):
        """Test tier byte followed by big-endian position bytes."""
        assert create_id(5, 0x1234).data == b"\x05\x12\x34"
        assert create_id(3, 32).data == b"\x03\x20"

    def test_max_tier(self):
        """Test the largest position at the largest tier."""
        tiered_id = create_id(31, 4 ** 31 - 1)
        assert tiered_id.data == b"\x1f\x3f\xff\xff\xff\xff\xff\xff\xff"
        assert len(tiered_id.data) == 1 + LONG_BYTES

    def test_negative_position(self):
        """Test that negative positions are rejected."""
        with pytest.raises(TieredIdError):
            create_id(2, -1)

    def test_position_too_wide(self):
        """Test that positions wider than the tier's bytes are rejected."""
        with pytest.raises(TieredIdError):
            create_id(1, 256)
        with pytest.raises(TieredIdError):
            create_id(0, 1)

    def test_invalid_tier(self):
        """Test that tiers outside [0, 31] are rejected."""
        with pytest.raises(TieredIdError):
            create_id(32, 0)
        with pytest.raises(TieredIdError):
            create_id(-1, 0)

    def test_error_is_value_error(self):
        """Test that codec errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            create_id(40, 0)


class TestDecode:
    """Tests for decode_tier and decode_position."""

    def test_roundtrip_all_tiers(self):
        """Test decoding what was encoded across every tier."""
        for tier in range(MAX_TIER + 1):
            count = 4 ** tier
            for position in {0, 1, count // 3, count - 1}:
                if position >= count:
                    continue
                tiered_id = create_id(tier, position)
                assert decode_tier(tiered_id) == tier
                assert decode_position(tiered_id) == position

    def test_decode_raw_bytes(self):
        """Test decoding raw id bytes."""
        assert decode_tier(b"\x03\x20") == 3
        assert decode_position(b"\x03\x20") == 32

    def test_decode_raw_bytes_wrong_width(self):
        """Test that raw ids with too many or too few position bytes are rejected."""
        with pytest.raises(TieredIdError):
            decode_position(b"\x03\x01\x02")
        with pytest.raises(TieredIdError):
            decode_tier(b"\x05\x12")
        with pytest.raises(TieredIdError):
            decode_position(bytearray(b"\x09\x01"))

    def test_decode_raw_bytes_invalid_tier(self):
        """Test that raw ids with a tier above 31 are rejected."""
        with pytest.raises(TieredIdError):
            decode_tier(b"\x40\x01")
        with pytest.raises(TieredIdError):
            decode_position(b"\x20" + bytes(8))

    def test_decode_range_uses_start(self):
        """Test that decoding a range reads its start id."""
        tiered_range = create_range(4, 17, 40)
        assert decode_tier(tiered_range) == 4
        assert decode_position(tiered_range) == 17

    def test_decode_empty(self):
        """Test that empty ids are rejected."""
        with pytest.raises(TieredIdError):
            decode_tier(b"")
        with pytest.raises(TieredIdError):
            decode_position(b"")

    def test_reused_buffer_is_cleared(self):
        """Test that a scratch buffer left dirty by a wide id decodes narrow ids."""
        buffer = bytearray(LONG_BYTES)
        wide = create_id(31, 4 ** 31 - 1, buffer)
        narrow = create_id(2, 8, buffer)

        assert decode_position(wide, buffer) == 4 ** 31 - 1
        assert decode_position(narrow, buffer) == 8

    def test_wrong_size_buffer_ignored(self):
        """Test that a buffer of the wrong size is replaced."""
        buffer = bytearray(3)
        assert decode_position(create_id(9, 300), buffer) == 300
        assert create_id(9, 300, buffer).data == b"\x09\x00\x01\x2c"


class TestTieredId:
    """Tests for TieredId class."""

    def test_properties(self):
        """Test tier and position accessors."""
        tiered_id = create_id(6, 2048)
        assert tiered_id.tier == 6
        assert tiered_id.position == 2048

    def test_hex_roundtrip(self):
        """Test hex literal form."""
        tiered_id = create_id(5, 0x1234)
        assert tiered_id.hex() == "051234"
        assert TieredId.from_hex("051234") == tiered_id

    def test_from_hex_invalid(self):
        """Test that bad literals raise TieredIdError."""
        with pytest.raises(TieredIdError):
            TieredId.from_hex("zz")
        with pytest.raises(TieredIdError):
            TieredId.from_hex("0512")

    def test_width_mismatch(self):
        """Test that ids with the wrong number of position bytes are rejected."""
        with pytest.raises(TieredIdError):
            TieredId(b"")
        with pytest.raises(TieredIdError):
            TieredId(b"\x05\x12")
        with pytest.raises(TieredIdError):
            TieredId(b"\x20")

    def test_ordering(self):
        """Test that ids of a tier sort by position."""
        ids = [create_id(3, 9), create_id(3, 2), create_id(3, 5)]
        assert [i.position for i in sorted(ids)] == [2, 5, 9]

    def test_repr(self):
        """Test readable representation."""
        assert repr(create_id(3, 5)) == "TieredId(tier=3, position=5)"


class TestTieredRange:
    """Tests for create_range and TieredRange."""

    def test_create_range(self):
        """Test range construction."""
        tiered_range = create_range(3, 32, 47)
        assert tiered_range.start == create_id(3, 32)
        assert tiered_range.end == create_id(3, 47)
        assert tiered_range.tier == 3
        assert tiered_range.positions() == (32, 47)
        assert not tiered_range.single_value

    def test_single_value(self):
        """Test that equal ends are flagged single-valued."""
        assert create_range(3, 40, 40).single_value
        assert create_range(0, 0, 0).single_value

    def test_equality(self):
        """Test value equality of ranges."""
        assert create_range(3, 0, 7) == TieredRange(create_id(3, 0), create_id(3, 7))

    def test_single_value_derived(self):
        """Test that single_value follows whether the ends are equal."""
        assert TieredRange(create_id(3, 5), create_id(3, 5)).single_value
        assert not TieredRange(create_id(3, 5), create_id(3, 6)).single_value
        with pytest.raises(TypeError):
            TieredRange(create_id(3, 5), create_id(3, 5), False)

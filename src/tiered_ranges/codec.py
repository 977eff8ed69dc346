"""
Tiered id codec.

This module handles encoding of (tier, position) pairs to the compact byte
layout used by the tiered Hilbert index, and decoding them back.

Byte layout:
- byte 0 is the tier (0..31)
- the remaining bytes are the low-order bytes of the position, big-endian
- the number of position bytes is hex_chars_per_tier(tier) / 2

Tier 0 has a single cell, so its ids are the tier byte alone.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union
import struct


LONG_BYTES = 8
MAX_TIER = 31

_LONG = struct.Struct(">Q")


class TieredIdError(ValueError):
    """Raised when a tiered id is malformed or a position does not fit its tier."""


def hex_chars_per_tier(tier: int) -> int:
    """
    Number of hex characters needed to represent a position at a tier.

    This excludes the byte reserved for the tier identifier. The value is the
    hex digit count of 2^tier - 1, doubled, so the position occupies
    ceil(tier / 4) bytes.

    Args:
        tier: Tier in [0, 31]

    Returns:
        Hex character count (always even)
    """
    hex_string = format((1 << tier) - 1, "X")
    if int(hex_string, 16) == 0:
        return 0
    return len(hex_string) * 2


def _position_width(tier: int) -> int:
    if not 0 <= tier <= MAX_TIER:
        raise TieredIdError(f"Tier {tier} outside [0, {MAX_TIER}]")
    return hex_chars_per_tier(tier) // 2


def _long_buffer(buffer: Optional[bytearray]) -> bytearray:
    """Return the caller's scratch buffer if usable, otherwise a fresh one."""
    if buffer is not None and len(buffer) == LONG_BYTES:
        return buffer
    return bytearray(LONG_BYTES)


@dataclass(frozen=True, order=True)
class TieredId:
    """
    An encoded (tier, position) pair.

    Ordering follows the raw bytes, which matches (tier, position) order
    for ids of the same tier.
    """
    data: bytes

    def __post_init__(self):
        if len(self.data) == 0:
            raise TieredIdError("Tiered id is empty")
        expected = _position_width(self.data[0])
        if len(self.data) - 1 != expected:
            raise TieredIdError(
                f"Tier {self.data[0]} expects {expected} position bytes, "
                f"got {len(self.data) - 1}"
            )

    @property
    def tier(self) -> int:
        return self.data[0]

    @property
    def position(self) -> int:
        return decode_position(self)

    def hex(self) -> str:
        """Hex literal form, as stored in indexed field values."""
        return self.data.hex()

    @classmethod
    def from_hex(cls, literal: str) -> TieredId:
        try:
            data = bytes.fromhex(literal)
        except (TypeError, ValueError) as e:
            raise TieredIdError(f"Invalid tiered id literal {literal!r}") from e
        return cls(data)

    def __repr__(self) -> str:
        return f"TieredId(tier={self.tier}, position={self.position})"


@dataclass(frozen=True)
class TieredRange:
    """
    An inclusive range [start, end] of tiered ids.

    start and end share a tier in every range built by this package.
    single_value is derived: it holds exactly when start == end.
    """
    start: TieredId
    end: TieredId
    single_value: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "single_value", self.start == self.end)

    @property
    def tier(self) -> int:
        return self.start.tier

    def positions(self, buffer: Optional[bytearray] = None) -> Tuple[int, int]:
        """Return (min, max) decoded positions."""
        return decode_position(self.start, buffer), decode_position(self.end, buffer)

    def __repr__(self) -> str:
        lo, hi = self.positions()
        return f"TieredRange(tier={self.tier}, {lo}..{hi})"


IdLike = Union[TieredId, TieredRange, bytes, bytearray]


def _id_bytes(value: IdLike) -> bytes:
    if isinstance(value, TieredRange):
        return value.start.data
    if isinstance(value, TieredId):
        return value.data
    # Raw bytes are checked for tier range and position width
    return TieredId(bytes(value)).data


def decode_tier(value: IdLike) -> int:
    """
    Extract the tier from a tiered id (or the start of a range).

    Args:
        value: TieredId, TieredRange or raw id bytes

    Returns:
        Tier number
    """
    return _id_bytes(value)[0]


def decode_position(value: IdLike, buffer: Optional[bytearray] = None) -> int:
    """
    Extract the position from a tiered id.

    The position bytes are right-aligned into an 8-byte big-endian buffer
    with the high-order bytes zeroed.

    Args:
        value: TieredId, TieredRange (start is used) or raw id bytes
        buffer: Optional reusable scratch buffer of LONG_BYTES length

    Returns:
        Position along the curve
    """
    data = _id_bytes(value)
    width = len(data) - 1

    buffer = _long_buffer(buffer)
    buffer[:] = bytes(LONG_BYTES)
    buffer[LONG_BYTES - width:] = data[1:]
    return _LONG.unpack_from(buffer)[0]


def create_id(tier: int, position: int, buffer: Optional[bytearray] = None) -> TieredId:
    """
    Create a tiered id from a tier and position.

    Args:
        tier: Tier in [0, 31]
        position: Position along the curve at that tier
        buffer: Optional reusable scratch buffer of LONG_BYTES length

    Returns:
        Encoded TieredId
    """
    width = _position_width(tier)
    if position < 0 or position >> (8 * width):
        raise TieredIdError(f"Position {position} does not fit tier {tier}")

    buffer = _long_buffer(buffer)
    _LONG.pack_into(buffer, 0, position)
    return TieredId(bytes((tier,)) + bytes(buffer[LONG_BYTES - width:]))


def create_range(
    tier: int,
    min_pos: int,
    max_pos: int,
    buffer: Optional[bytearray] = None,
) -> TieredRange:
    """
    Create a tiered range from a tier and inclusive min/max positions.

    Args:
        tier: Tier of both ends
        min_pos: First position
        max_pos: Last position
        buffer: Optional reusable scratch buffer of LONG_BYTES length

    Returns:
        TieredRange, flagged single-valued when min_pos == max_pos
    """
    buffer = _long_buffer(buffer)
    return TieredRange(
        create_id(tier, min_pos, buffer),
        create_id(tier, max_pos, buffer),
    )

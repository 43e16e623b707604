"""Encoded polyline decoding for route geometry."""
from __future__ import annotations

from typing import List, Tuple

_OFFSET = 63
_CHUNK_MASK = 0x1F
_CONTINUE_BIT = 0x20
_PRECISION = 1e-5
_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _read_delta(encoded: str, index: int) -> Tuple[int, int]:
    """Read one zig-zag varint starting at ``index``; return (delta, next index)."""
    shift = 0
    result = 0
    while True:
        if index >= len(encoded):
            raise ValueError("Encoded polyline ended in the middle of a value")
        chunk = ord(encoded[index]) - _OFFSET
        index += 1
        # Deltas are 32-bit signed ints; shifts wrap the same way.
        result = (result | ((chunk & _CHUNK_MASK) << (shift % 32))) & _INT32_MASK
        shift += 5
        if chunk < _CONTINUE_BIT:
            break
    if result & _INT32_SIGN:
        result -= 1 << 32
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode_polyline(encoded: str) -> List[Tuple[float, float]]:
    """Decode a Google encoded polyline into ``(lat, lon)`` pairs.

    Each point is stored as a latitude delta followed by a longitude delta
    against the previous point, so one bad read shifts every later point.
    An empty string decodes to an empty list.
    """
    points: List[Tuple[float, float]] = []
    index = 0
    lat = 0
    lon = 0
    while index < len(encoded):
        dlat, index = _read_delta(encoded, index)
        dlon, index = _read_delta(encoded, index)
        lat += dlat
        lon += dlon
        points.append((lat * _PRECISION, lon * _PRECISION))
    return points

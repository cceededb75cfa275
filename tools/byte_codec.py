"""
byte_codec.py - Integer conversion for fixed-width payload segments

Segments are transmitted least-significant byte first. Profiles slice the
payload and hand each slice to bytes_to_int; signed or fixed-point values
are built on top of the unsigned result.

Profile authors: segments decoded with bytes_to_int must be 1-4 bytes long.
Longer slices are not rejected here.

Usage:
    from byte_codec import bytes_to_int, to_signed

    bytes_to_int(b'\\x00\\x01')          # 256
    to_signed(bytes_to_int(b'\\xff'), 1)  # -1
"""

from typing import Iterable, Union


ByteInput = Union[bytes, bytearray, Iterable[int]]


def bytes_to_int(data: ByteInput) -> int:
    """Little-endian bytes to unsigned integer (no sign extension)."""
    value = 0
    for i, b in enumerate(data):
        value |= (b & 0xFF) << (8 * i)
    return value


def to_signed(value: int, byte_length: int) -> int:
    """Reinterpret an unsigned value of byte_length bytes as two's complement."""
    bits = 8 * byte_length
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value

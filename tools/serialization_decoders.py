"""
serialization_decoders.py - Field decoders of the lora-serialization format

Devices using the lora-serialization encoder pack each value into a fixed
number of bytes. Multi-byte integers are little-endian, except temperature
which is a big-endian signed 16-bit value in hundredths of a degree.

| decoder     | bytes | value                                   |
|-------------|-------|-----------------------------------------|
| uint8       | 1     | unsigned int                            |
| uint16      | 2     | unsigned int                            |
| uint32      | 4     | unsigned int                            |
| temperature | 2     | signed, big-endian, / 100               |
| humidity    | 2     | unsigned, / 100                         |
| unixtime    | 4     | seconds since epoch (carrier)           |
| latLng      | 8     | two signed int32, / 1e6 -> [lat, lng]   |
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from byte_codec import bytes_to_int, to_signed


@dataclass(frozen=True)
class FieldDecoder:
    """Named fixed-width decoder."""
    name: str
    byte_length: int
    decode: Callable[[bytes], Any]


def _temperature(data: bytes) -> float:
    return int.from_bytes(data, 'big', signed=True) / 100


def _humidity(data: bytes) -> float:
    return bytes_to_int(data) / 100


def _lat_lng(data: bytes) -> List[float]:
    lat = to_signed(bytes_to_int(data[0:4]), 4) / 1e6
    lng = to_signed(bytes_to_int(data[4:8]), 4) / 1e6
    return [lat, lng]


DECODERS: Dict[str, FieldDecoder] = {
    d.name: d for d in (
        FieldDecoder('uint8', 1, bytes_to_int),
        FieldDecoder('uint16', 2, bytes_to_int),
        FieldDecoder('uint32', 4, bytes_to_int),
        FieldDecoder('temperature', 2, _temperature),
        FieldDecoder('humidity', 2, _humidity),
        FieldDecoder('unixtime', 4, bytes_to_int),
        FieldDecoder('latLng', 8, _lat_lng),
    )
}

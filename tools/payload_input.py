"""
payload_input.py - Bring uplink payloads into the decode engine

TTN delivers uplinks as JSON messages with the raw payload base64-encoded:

    {
        "dev_id": "my-box",
        "port": 1,
        "payload_raw": "kwGKRQ==",
        "metadata": {"time": "2017-08-02T13:46:59.123456789Z"}
    }

decode_uplink() converts such a message to bytes plus receive time and runs
the engine on it.
"""

import base64
import binascii
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from decode_engine import DecodeEngine
from decode_errors import PayloadFormatError
from measurement_validator import parse_timestamp


logger = logging.getLogger(__name__)


def payload_to_bytes(payload: Any) -> bytes:
    """bytes, list of ints or base64 string to bytes."""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)

    if isinstance(payload, list):
        try:
            return bytes(payload)
        except (TypeError, ValueError) as e:
            raise PayloadFormatError(f"invalid byte list: {e}") from None

    if isinstance(payload, str):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise PayloadFormatError(f"invalid base64 payload: {e}") from None

    raise PayloadFormatError(f"cannot parse payload of type {type(payload).__name__}")


def hex_to_bytes(payload: str) -> bytes:
    """Hex string (spaces, commas and 0x prefixes allowed) to bytes."""
    clean = payload.replace(' ', '').replace('0x', '').replace(',', '')
    try:
        return bytes.fromhex(clean)
    except ValueError as e:
        raise PayloadFormatError(f"invalid hex payload: {e}") from None


def parse_uplink_time(message: Mapping[str, Any]) -> Optional[datetime]:
    """Receive time from the uplink metadata, None if absent."""
    metadata = message.get('metadata') or {}
    value = metadata.get('time')
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise PayloadFormatError(f"invalid uplink time: {e}") from None


async def decode_uplink(message: Mapping[str, Any], device: Mapping[str, Any],
                        engine: Optional[DecodeEngine] = None) -> List[Dict[str, Any]]:
    """Decode the raw payload of a TTN uplink message for `device`."""
    if not message.get('payload_raw'):
        raise PayloadFormatError('uplink message has no payload_raw')

    engine = engine or DecodeEngine()
    buffer = payload_to_bytes(message['payload_raw'])
    logger.debug("uplink from %s for device %s", message.get('dev_id'), device.get('_id'))

    measurements = await engine.decode(buffer, device, parse_uplink_time(message))
    logger.debug("uplink decoded to %d measurements", len(measurements))
    return measurements

"""
decode_engine.py - Profile-driven payload to measurement decoding

Usage:
    from decode_engine import DecodeEngine

    engine = DecodeEngine()
    measurements = await engine.decode(payload_bytes, device, timestamp)

Pipeline (any failure aborts the call, nothing partial is returned):
    1. read the profile name from the device's integration settings
    2. look the profile up in the registry
    3. build the device's BufferTransformer
    4. check the payload length against the transformer layout
    5. decode every segment into {'sensor_id', 'value'}
    6. run the segments' on_result hooks over the measurement list
    7. stamp `timestamp` as createdAt if the measurements carry none
    8. hand the list to the validator

decode() is a coroutine so it composes with the I/O bound steps around it;
the work itself is synchronous and shares no state between calls.
"""

import inspect
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from decode_errors import LengthMismatch, MissingConfiguration
from decode_profiles import (
    DEFAULT_CHANNEL, BufferTransformer, ProfileRegistry,
    default_registry, integration_options,
)


logger = logging.getLogger(__name__)

Measurement = Dict[str, Any]
Validator = Callable[[List[Measurement], Mapping[str, Any]], Any]


def decode_segments(buffer: bytes, transformer: BufferTransformer) -> List[Measurement]:
    """Slice `buffer` along `transformer` and decode every segment."""
    expected = sum(segment.byte_length for segment in transformer)
    if expected != len(buffer):
        raise LengthMismatch(expected, len(buffer))

    measurements = []
    pos = 0
    for segment in transformer:
        chunk = buffer[pos:pos + segment.byte_length]
        measurements.append({
            'sensor_id': segment.sensor_id,
            'value': segment.decode(chunk),
        })
        pos += segment.byte_length
    return measurements


def apply_hooks(measurements: List[Measurement],
                transformer: BufferTransformer) -> List[Measurement]:
    """Pass the measurement list through each segment hook in order."""
    for segment in transformer:
        if segment.on_result is not None:
            measurements = segment.on_result(measurements)
    return measurements


class DecodeEngine:
    """
    Decodes raw device payloads into measurements.

    Args:
        registry: profiles available for selection
        validator: callable(measurements, device) returning the final list,
            sync or async. None skips validation.
        channel: integration key holding the profile settings
    """

    def __init__(self, registry: Optional[ProfileRegistry] = None,
                 validator: Optional[Validator] = None,
                 channel: str = DEFAULT_CHANNEL):
        self.registry = registry if registry is not None else default_registry
        self.validator = validator
        self.channel = channel

    def profile_name(self, device: Mapping[str, Any]) -> str:
        profile = integration_options(device, self.channel).get('profile')
        if not profile:
            raise MissingConfiguration(
                f"device has no decoding profile configured (integrations.{self.channel}.profile)")
        return profile

    async def decode(self, buffer: bytes, device: Mapping[str, Any],
                     timestamp: Optional[datetime] = None) -> List[Measurement]:
        profile = self.profile_name(device)
        logger.debug("decoding %d bytes with profile %s", len(buffer), profile)

        transformer = self.registry.build_transformer(profile, device, self.channel)
        measurements = decode_segments(bytes(buffer), transformer)
        measurements = apply_hooks(measurements, transformer)

        if timestamp is not None and measurements and measurements[0].get('createdAt') is None:
            for m in measurements:
                m['createdAt'] = timestamp

        logger.debug("decoded measurements: %s", measurements)

        if self.validator is None:
            return measurements

        result = self.validator(measurements, device)
        if inspect.isawaitable(result):
            result = await result
        return result


_default_engine = DecodeEngine()


async def decode(buffer: bytes, device: Mapping[str, Any],
                 timestamp: Optional[datetime] = None) -> List[Measurement]:
    """Decode with the default registry and no validation."""
    return await _default_engine.decode(buffer, device, timestamp)

"""
test_hypothesis.py - Property-based testing with Hypothesis

Covers the decoding invariants over generated inputs:
- bytes_to_int agrees with int.from_bytes(..., 'little') for 1-4 bytes
- a payload whose length differs from the layout never yields measurements
- one measurement per segment; propagation removes exactly the carriers
- decoding is deterministic

Run with:
    pytest tests/test_hypothesis.py -v
    pytest tests/test_hypothesis.py -v --hypothesis-show-statistics
"""

import asyncio
import sys
from pathlib import Path

import pytest
from hypothesis import given, settings, assume
from hypothesis import strategies as st

sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from byte_codec import bytes_to_int
from decode_engine import DecodeEngine, apply_hooks, decode_segments
from decode_errors import LengthMismatch
from decode_profiles import ProfileRegistry, SegmentDescriptor
from sensor_matcher import find_sensor_ids
from value_propagator import make_propagator


# =============================================================================
# Strategies
# =============================================================================

segment_lengths = st.lists(st.integers(min_value=1, max_value=4), min_size=1, max_size=12)
sensor_ids = st.sampled_from(['a', 'b', 'c', 'carrier'])
measurement_lists = st.lists(
    st.fixed_dictionaries({'sensor_id': sensor_ids, 'value': st.integers()}),
    max_size=20,
)


def transformer_for(lengths, carrier_every=0):
    transformer = []
    for i, n in enumerate(lengths):
        if carrier_every and i % carrier_every == 0:
            transformer.append(SegmentDescriptor(
                n, 'carrier', bytes_to_int, make_propagator('carrier', 'createdAt')))
        else:
            transformer.append(SegmentDescriptor(n, f's{i}', bytes_to_int))
    return transformer


# =============================================================================
# ByteCodec
# =============================================================================

class TestBytesToIntProperties:

    @given(st.binary(min_size=1, max_size=4))
    def test_matches_little_endian(self, data):
        assert bytes_to_int(data) == int.from_bytes(data, 'little')

    @given(st.binary(min_size=1, max_size=4))
    def test_never_negative(self, data):
        assert 0 <= bytes_to_int(data) < 2 ** (8 * len(data))

    @given(st.binary(min_size=1, max_size=3))
    def test_trailing_zero_byte_ignored(self, data):
        assert bytes_to_int(data + b'\x00') == bytes_to_int(data)


# =============================================================================
# Length invariant
# =============================================================================

class TestLengthInvariant:

    @given(segment_lengths, st.binary(max_size=64))
    def test_mismatch_always_rejected(self, lengths, payload):
        assume(sum(lengths) != len(payload))

        with pytest.raises(LengthMismatch) as exc_info:
            decode_segments(payload, transformer_for(lengths))
        assert exc_info.value.expected == sum(lengths)

    @given(segment_lengths, st.data())
    def test_one_measurement_per_segment(self, lengths, data):
        payload = data.draw(st.binary(min_size=sum(lengths), max_size=sum(lengths)))

        measurements = decode_segments(payload, transformer_for(lengths))

        assert len(measurements) == len(lengths)
        assert [m['sensor_id'] for m in measurements] == [f's{i}' for i in range(len(lengths))]


# =============================================================================
# Propagation
# =============================================================================

class TestPropagationProperties:

    @given(measurement_lists)
    def test_single_invocation_removes_at_most_one(self, measurements):
        carriers = sum(1 for m in measurements if m['sensor_id'] == 'carrier')

        result = make_propagator('carrier', 'createdAt')([dict(m) for m in measurements])

        assert len(result) == len(measurements) - min(carriers, 1)

    @given(measurement_lists)
    def test_order_preserved(self, measurements):
        result = make_propagator('carrier', 'createdAt')([dict(m) for m in measurements])

        expected = list(measurements)
        for i, m in enumerate(expected):
            if m['sensor_id'] == 'carrier':
                del expected[i]
                break
        assert [(m['sensor_id'], m['value']) for m in result] == \
            [(m['sensor_id'], m['value']) for m in expected]

    @given(segment_lengths, st.integers(min_value=1, max_value=4), st.data())
    def test_hooks_remove_every_carrier(self, lengths, carrier_every, data):
        transformer = transformer_for(lengths, carrier_every)
        carriers = sum(1 for s in transformer if s.sensor_id == 'carrier')
        payload = data.draw(st.binary(min_size=sum(lengths), max_size=sum(lengths)))

        result = apply_hooks(decode_segments(payload, transformer), transformer)

        assert len(result) == len(lengths) - carriers
        assert all(m['sensor_id'] != 'carrier' for m in result)


# =============================================================================
# Matcher
# =============================================================================

class TestMatcherProperties:

    @given(st.lists(st.sampled_from(['Temp', 'temp', 'Humidity', 'Druck', '']), max_size=8))
    def test_matches_first_candidate_in_order(self, titles):
        sensors = [{'id': str(i), 'title': t} for i, t in enumerate(titles)]

        result = find_sensor_ids(sensors, {'temperature': {'title': ['TEMP']}})

        expected = next((str(i) for i, t in enumerate(titles) if t.lower() == 'temp'), None)
        assert result.get('temperature') == expected


# =============================================================================
# Determinism
# =============================================================================

class TestDeterminism:

    @given(segment_lengths, st.data())
    @settings(max_examples=50)
    def test_decode_idempotent(self, lengths, data):
        registry = ProfileRegistry()
        registry.register('generated', lambda sensors, options: transformer_for(lengths, 3))
        device = {'sensors': [], 'integrations': {'ttn': {'profile': 'generated'}}}
        payload = data.draw(st.binary(min_size=sum(lengths), max_size=sum(lengths)))
        engine = DecodeEngine(registry=registry)

        first = asyncio.run(engine.decode(payload, device))
        second = asyncio.run(engine.decode(payload, device))

        assert first == second

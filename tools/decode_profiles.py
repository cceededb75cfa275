"""
decode_profiles.py - Decoding profiles and the registry that selects them

A profile turns a device record into a BufferTransformer: the ordered list
of fixed-length segments making up the device's payload, each attributed to
one of the device's sensors. Devices name their profile in their integration
settings:

    integrations:
      ttn:
        profile: lora-serialization
        decodeOptions:
          - {decoder: unixtime}
          - {decoder: temperature, sensor_title: Temperatur}

Built-in profiles:
    sensebox/home       fixed 12 byte senseBox:home layout
    debug               byte counts from decodeOptions, one per sensor
    lora-serialization  lora-serialization decoders listed in decodeOptions

Additional profiles are added with ProfileRegistry.register().
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from byte_codec import bytes_to_int
from decode_errors import InvalidProfileOptions, UnsupportedProfile
from sensor_matcher import find_sensor_ids, sensor_id_of
from serialization_decoders import DECODERS
from value_propagator import Hook, make_propagator


DEFAULT_CHANNEL = 'ttn'


@dataclass
class SegmentDescriptor:
    """One fixed-length slice of a payload."""
    byte_length: int
    sensor_id: Optional[str]
    decode: Callable[[bytes], Any]
    # Invoked once per decode with the complete measurement list
    on_result: Optional[Hook] = None


BufferTransformer = List[SegmentDescriptor]
ProfileFactory = Callable[[Sequence[Mapping[str, Any]], Mapping[str, Any]], BufferTransformer]


def integration_options(device: Mapping[str, Any], channel: str = DEFAULT_CHANNEL) -> Dict[str, Any]:
    """Integration settings of `device` for `channel`, empty if absent."""
    integrations = device.get('integrations') or {}
    options = integrations.get(channel) or {}
    return options if isinstance(options, dict) else {}


class ProfileRegistry:
    """Explicit mapping of profile names to transformer factories."""

    def __init__(self):
        self._factories: Dict[str, ProfileFactory] = {}

    def register(self, name: str, factory: Optional[ProfileFactory] = None):
        """Register `factory` under `name`; usable as a decorator."""
        if factory is None:
            def decorator(fn: ProfileFactory) -> ProfileFactory:
                self._factories[name] = fn
                return fn
            return decorator
        self._factories[name] = factory
        return factory

    def get(self, name: str) -> ProfileFactory:
        try:
            return self._factories[name]
        except (KeyError, TypeError):
            raise UnsupportedProfile(name) from None

    def names(self) -> List[str]:
        return list(self._factories)

    def __contains__(self, name: str) -> bool:
        try:
            return name in self._factories
        except TypeError:
            return False

    def build_transformer(self, profile_name: str, device: Mapping[str, Any],
                          channel: str = DEFAULT_CHANNEL) -> BufferTransformer:
        """
        Build the BufferTransformer of `profile_name` for `device`.

        Raises:
            UnsupportedProfile: profile_name is not registered
            InvalidProfileOptions: the device's profile settings are unusable
        """
        factory = self.get(profile_name)
        sensors = device.get('sensors') or []
        return factory(sensors, integration_options(device, channel))


default_registry = ProfileRegistry()


def build_transformer(profile_name: str, device: Mapping[str, Any],
                      channel: str = DEFAULT_CHANNEL) -> BufferTransformer:
    """Build a transformer using the default registry."""
    return default_registry.build_transformer(profile_name, device, channel)


# =============================================================================
# sensebox/home
# =============================================================================

SENSEBOX_HOME_MATCHINGS = {
    'temperature': {
        'title': ['temperatur', 'temperature'],
        'unit': ['°c'],
    },
    'humidity': {
        'title': ['rel. luftfeuchte', 'luftfeuchtigkeit', 'luftfeuchte', 'humidity'],
        'type': ['hdc1008'],
    },
    'pressure': {
        'title': ['luftdruck', 'druck', 'pressure', 'air pressure'],
        'unit': ['hpa', 'pa'],
    },
    'lux': {
        'title': ['beleuchtungsstärke', 'licht', 'helligkeit', 'einstrahlung',
                  'light', 'light intensity', 'illuminance'],
        'unit': ['lx', 'lux'],
    },
    'uv': {
        'title': ['uv-intensität', 'uv', 'uv-a', 'uv intensity', 'uv-intensity'],
        'unit': ['μw/cm²', 'uw/cm2'],
    },
}


@default_registry.register('sensebox/home')
def sensebox_home(sensors: Sequence[Mapping[str, Any]],
                  options: Mapping[str, Any]) -> BufferTransformer:
    """Fixed layout sent by the senseBox:home LoRa sketch."""
    sensor_map = find_sensor_ids(sensors, SENSEBOX_HOME_MATCHINGS)

    return [
        SegmentDescriptor(2, sensor_map.get('temperature'),
                          lambda b: round(bytes_to_int(b) / 771 - 18, 1)),
        SegmentDescriptor(2, sensor_map.get('humidity'),
                          lambda b: round(bytes_to_int(b) / 100, 1)),
        SegmentDescriptor(2, sensor_map.get('pressure'),
                          lambda b: round(bytes_to_int(b) / 81.9187 + 300, 1)),
        SegmentDescriptor(3, sensor_map.get('lux'), bytes_to_int),
        SegmentDescriptor(3, sensor_map.get('uv'), bytes_to_int),
    ]


# =============================================================================
# debug
# =============================================================================

@default_registry.register('debug')
def debug(sensors: Sequence[Mapping[str, Any]],
          options: Mapping[str, Any]) -> BufferTransformer:
    """One unsigned little-endian integer per sensor, sized by decodeOptions."""
    byte_mask = options.get('decodeOptions')
    if not isinstance(byte_mask, list) or not byte_mask:
        raise InvalidProfileOptions('profile debug requires a list of byte counts in decodeOptions')
    if len(byte_mask) > len(sensors):
        raise InvalidProfileOptions(
            f"profile debug: decodeOptions lists {len(byte_mask)} values "
            f"but the device has {len(sensors)} sensors")

    transformer = []
    for i, count in enumerate(byte_mask):
        if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= 4:
            raise InvalidProfileOptions(f"profile debug: decodeOptions[{i}] must be 1-4, got {count!r}")
        transformer.append(SegmentDescriptor(count, sensor_id_of(sensors[i]), bytes_to_int))
    return transformer


# =============================================================================
# lora-serialization
# =============================================================================

def _unixtime_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _lat_lng_to_location(value: List[float]) -> Dict[str, float]:
    return {'lat': value[0], 'lng': value[1]}


# decoder -> (attribute applied to following measurements, value transform)
CARRIER_DECODERS = {
    'unixtime': ('createdAt', _unixtime_to_datetime),
    'latLng': ('location', _lat_lng_to_location),
}


def _resolve_sensor(sensors: Sequence[Mapping[str, Any]], entry: Mapping[str, Any],
                    index: int) -> str:
    if entry.get('sensor_id'):
        return str(entry['sensor_id'])

    attributes = {}
    if entry.get('sensor_title'):
        attributes['title'] = [str(entry['sensor_title'])]
    if entry.get('sensor_type'):
        attributes['type'] = [str(entry['sensor_type'])]
    if not attributes:
        raise InvalidProfileOptions(
            f"profile lora-serialization: decodeOptions[{index}] needs "
            "sensor_id, sensor_title or sensor_type")

    sensor_id = find_sensor_ids(sensors, {'sensor': attributes}).get('sensor')
    if sensor_id is None:
        raise InvalidProfileOptions(
            f"profile lora-serialization: no sensor matches decodeOptions[{index}]")
    return sensor_id


@default_registry.register('lora-serialization')
def lora_serialization(sensors: Sequence[Mapping[str, Any]],
                       options: Mapping[str, Any]) -> BufferTransformer:
    """Segments described by lora-serialization decoder names."""
    entries = options.get('decodeOptions')
    if not isinstance(entries, list) or not entries:
        raise InvalidProfileOptions(
            'profile lora-serialization requires a list of decoders in decodeOptions')

    transformer = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise InvalidProfileOptions(f"profile lora-serialization: decodeOptions[{i}] must be a mapping")
        name = entry.get('decoder')
        decoder = DECODERS.get(name) if isinstance(name, str) else None
        if decoder is None:
            raise InvalidProfileOptions(
                f"profile lora-serialization: unknown decoder {name!r}, "
                f"expected one of {', '.join(DECODERS)}")

        if decoder.name in CARRIER_DECODERS:
            attribute, transform = CARRIER_DECODERS[decoder.name]
            carrier_id = f'_{decoder.name}'
            transformer.append(SegmentDescriptor(
                decoder.byte_length, carrier_id, decoder.decode,
                on_result=make_propagator(carrier_id, attribute, transform)))
            continue

        sensor_id = _resolve_sensor(sensors, entry, i)
        transformer.append(SegmentDescriptor(decoder.byte_length, sensor_id, decoder.decode))

    return transformer

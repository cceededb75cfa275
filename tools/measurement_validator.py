"""
measurement_validator.py - Validate and cast decoded measurements

Last step of a decode: checks every measurement against the device it was
decoded for and normalizes its values before it is handed to storage.

- sensor_id must be one of the device's sensors
- value is cast to float
- createdAt becomes a timezone-aware UTC datetime and must not lie in the
  future (beyond max_future_skew seconds)
- location, if present, needs numeric lat/lng within range

Any violation raises MeasurementValidationError naming the measurement.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping

from decode_errors import MeasurementValidationError
from sensor_matcher import sensor_id_of


# fromisoformat before 3.11 takes only 3 or 6 fraction digits
_FRACTION = re.compile(r'\.(\d+)')


def _six_digit_fraction(match) -> str:
    return '.' + (match.group(1) + '000000')[:6]


def parse_timestamp(value: Any) -> datetime:
    """datetime or ISO-8601 string to an aware UTC datetime."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        text = _FRACTION.sub(_six_digit_fraction, text)
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"invalid timestamp '{value}'") from None
    else:
        raise ValueError(f"invalid timestamp {value!r}")

    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class MeasurementValidator:
    """Default validation/casting collaborator of the decode engine."""

    def __init__(self, max_future_skew: float = 300.0, clock=None):
        self.max_future_skew = timedelta(seconds=max_future_skew)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __call__(self, measurements: List[Dict[str, Any]],
                 device: Mapping[str, Any]) -> List[Dict[str, Any]]:
        return self.validate(measurements, device)

    def validate(self, measurements: List[Dict[str, Any]],
                 device: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Return validated copies of `measurements`; the input is not modified."""
        known_ids = {sensor_id_of(s) for s in device.get('sensors') or []}
        latest = self._clock() + self.max_future_skew

        return [self._validate_one(i, m, known_ids, latest)
                for i, m in enumerate(measurements)]

    def _validate_one(self, index: int, measurement: Mapping[str, Any],
                      known_ids: set, latest: datetime) -> Dict[str, Any]:
        result = dict(measurement)

        sensor_id = measurement.get('sensor_id')
        if sensor_id is None:
            raise MeasurementValidationError('no sensor assigned to decoded value', index)
        if sensor_id not in known_ids:
            raise MeasurementValidationError(f"sensor '{sensor_id}' does not belong to device", index)

        result['value'] = self._cast_value(index, measurement.get('value'))

        if measurement.get('createdAt') is not None:
            try:
                created = parse_timestamp(measurement['createdAt'])
            except ValueError as e:
                raise MeasurementValidationError(str(e), index) from None
            if created > latest:
                raise MeasurementValidationError(
                    f"createdAt {created.isoformat()} lies in the future", index)
            result['createdAt'] = created

        if 'location' in measurement:
            result['location'] = self._check_location(index, measurement['location'])

        return result

    @staticmethod
    def _cast_value(index: int, value: Any) -> float:
        if isinstance(value, bool) or value is None:
            raise MeasurementValidationError(f"value {value!r} is not numeric", index)
        try:
            return float(value)
        except (TypeError, ValueError):
            raise MeasurementValidationError(f"value {value!r} is not numeric", index) from None

    @staticmethod
    def _check_location(index: int, location: Any) -> Dict[str, float]:
        if not isinstance(location, Mapping):
            raise MeasurementValidationError(f"invalid location {location!r}", index)
        try:
            lat = float(location['lat'])
            lng = float(location['lng'])
        except (KeyError, TypeError, ValueError):
            raise MeasurementValidationError(f"invalid location {location!r}", index) from None
        if not -90 <= lat <= 90 or not -180 <= lng <= 180:
            raise MeasurementValidationError(f"location out of range: {lat}, {lng}", index)
        return {'lat': lat, 'lng': lng}

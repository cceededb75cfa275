"""
value_propagator.py - Turn a decoded field into an attribute of later fields

Some payloads carry values that are not measurements themselves, e.g. a unix
timestamp or a GPS fix that applies to the readings sent after it. A
propagator hook finds such a carrier measurement, removes it, and copies its
value onto the following measurements.

Usage:
    hook = make_propagator('unixtime', 'createdAt',
                           transform=lambda v: datetime.fromtimestamp(v, timezone.utc))
    measurements = hook(measurements)
"""

from typing import Any, Callable, Dict, List, Optional


Measurement = Dict[str, Any]
Hook = Callable[[List[Measurement]], List[Measurement]]


def make_propagator(sensor_id: str, attribute_name: str,
                    transform: Optional[Callable[[Any], Any]] = None) -> Hook:
    """
    Build a hook applying the carrier's value as `attribute_name`.

    One invocation handles the first measurement with `sensor_id` only: it is
    removed, and every following measurement gets the attribute until the
    list ends or the next measurement with `sensor_id` is reached. That next
    carrier is left in place for another hook invocation.
    """

    def propagate(measurements: List[Measurement]) -> List[Measurement]:
        for k, measurement in enumerate(measurements):
            if measurement.get('sensor_id') != sensor_id:
                continue

            value = measurement['value']
            if transform is not None:
                value = transform(value)
            del measurements[k]

            while k < len(measurements) and measurements[k].get('sensor_id') != sensor_id:
                measurements[k][attribute_name] = value
                k += 1
            break

        return measurements

    return propagate

"""
sensor_matcher.py - Resolve semantic sensor roles from device metadata

Devices register their sensors with free-form titles, types and units. A
matching table lists, per role, the attributes to inspect and the aliases
accepted for each:

    {
        'humidity': {
            'title': ['rel. luftfeuchte', 'luftfeuchtigkeit', 'humidity'],
            'type': ['HDC1008'],
        },
        'pressure': {
            'title': ['luftdruck', 'druck', 'pressure', 'air pressure'],
        },
    }

Matching is first-match-wins: attributes are tried in the order given for
the role, sensors in device order. Once an attribute matches, the remaining
attributes of that role are not consulted. Roles without a match are left
out of the result.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence


MatchingSpec = Mapping[str, Mapping[str, Sequence[str]]]


def sensor_id_of(sensor: Mapping[str, Any]) -> Optional[str]:
    """Identifier of a sensor descriptor ('id', or '_id' as stored by the API)."""
    sensor_id = sensor.get('id')
    if sensor_id is None:
        sensor_id = sensor.get('_id')
    return None if sensor_id is None else str(sensor_id)


def _match_attribute(sensors: Sequence[Mapping[str, Any]], attribute: str,
                     aliases: List[str]) -> Optional[str]:
    for sensor in sensors:
        prop = sensor.get(attribute)
        if prop is None or prop == '':
            continue
        if str(prop).lower() in aliases:
            return sensor_id_of(sensor)
    return None


def _match_role(sensors: Sequence[Mapping[str, Any]],
                attributes: Mapping[str, Sequence[str]]) -> Optional[str]:
    for attribute, aliases in attributes.items():
        lowered = [a.lower() for a in aliases]
        sensor_id = _match_attribute(sensors, attribute, lowered)
        if sensor_id is not None:
            return sensor_id
    return None


def find_sensor_ids(sensors: Sequence[Mapping[str, Any]],
                    matchings: MatchingSpec) -> Dict[str, str]:
    """
    Map each role of `matchings` to the id of the first matching sensor.

    Args:
        sensors: Sensor descriptors in device order
        matchings: role -> attribute -> accepted aliases (case-insensitive)

    Returns:
        role -> sensor id, for matched roles only
    """
    sensor_map = {}
    for role, attributes in matchings.items():
        sensor_id = _match_role(sensors, attributes)
        if sensor_id is not None:
            sensor_map[role] = sensor_id
    return sensor_map

"""
decoder_config.py - Settings and device records from YAML/JSON files

Settings file (all keys optional):

    channel: ttn            # integration key holding the profile settings
    max_future_skew: 300    # seconds a createdAt may lie in the future
    validate: true          # run the measurement validator

Device file:

    _id: 5a8d3f0c2b6c1f0019c4a3b1
    sensors:
      - {id: 5a8d3f0c2b6c1f0019c4a3b2, title: Temperatur, unit: °C}
    integrations:
      ttn: {profile: sensebox/home}

load_settings() without a path reads the file named by the
PAYLOAD_DECODER_CONFIG environment variable, or returns defaults.
"""

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from decode_engine import DecodeEngine
from decode_errors import ConfigurationError
from decode_profiles import DEFAULT_CHANNEL
from measurement_validator import MeasurementValidator


CONFIG_ENV_VAR = 'PAYLOAD_DECODER_CONFIG'


@dataclass
class DecoderSettings:
    channel: str = DEFAULT_CHANNEL
    max_future_skew: float = 300.0
    validate: bool = True


def _load_file(path: Union[str, Path]) -> Any:
    p = Path(path)
    try:
        content = p.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"cannot read {p}: {e}") from None

    try:
        if p.suffix == '.json':
            return json.loads(content)
        return yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot parse {p}: {e}") from None


def load_settings(path: Optional[Union[str, Path]] = None) -> DecoderSettings:
    """Load DecoderSettings from `path`, $PAYLOAD_DECODER_CONFIG, or defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return DecoderSettings()

    data = _load_file(path) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: settings must be a mapping")

    known = {f.name for f in fields(DecoderSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"{path}: unknown settings: {', '.join(unknown)}")

    try:
        settings = DecoderSettings(**data)
        settings.max_future_skew = float(settings.max_future_skew)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{path}: {e}") from None
    if not isinstance(settings.channel, str) or not settings.channel:
        raise ConfigurationError(f"{path}: channel must be a non-empty string")
    return settings


def load_device(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a device record, which must have a 'sensors' list."""
    device = _load_file(path)
    if not isinstance(device, dict):
        raise ConfigurationError(f"{path}: device record must be a mapping")
    if not isinstance(device.get('sensors'), list):
        raise ConfigurationError(f"{path}: device record needs a 'sensors' list")
    return device


def build_engine(settings: Optional[DecoderSettings] = None) -> DecodeEngine:
    """DecodeEngine wired according to `settings`."""
    settings = settings or DecoderSettings()
    validator = MeasurementValidator(settings.max_future_skew) if settings.validate else None
    return DecodeEngine(validator=validator, channel=settings.channel)

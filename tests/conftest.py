"""
pytest configuration and fixtures for payload decoder tests.

Provides reusable fixtures for:
- Device records for each built-in profile
- Hypothesis property-based testing configuration
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import settings, Verbosity, Phase

# Add project paths
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))


# Default profile: balanced speed and coverage
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
)

# CI profile: more thorough testing
settings.register_profile(
    "ci",
    max_examples=500,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)

# Dev profile: fast iteration
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
)

# Debug profile: verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def sensebox_home_device():
    """senseBox:home with German sensor titles, as created by the web UI."""
    return {
        '_id': '5a8d3f0c2b6c1f0019c4a3b0',
        'sensors': [
            {'_id': '5a8d3f0c2b6c1f0019c4a3b1', 'title': 'Temperatur', 'unit': '°C', 'type': 'HDC1008'},
            {'_id': '5a8d3f0c2b6c1f0019c4a3b2', 'title': 'rel. Luftfeuchte', 'unit': '%', 'type': 'HDC1008'},
            {'_id': '5a8d3f0c2b6c1f0019c4a3b3', 'title': 'Luftdruck', 'unit': 'hPa', 'type': 'BMP280'},
            {'_id': '5a8d3f0c2b6c1f0019c4a3b4', 'title': 'Beleuchtungsstärke', 'unit': 'lx', 'type': 'TSL45315'},
            {'_id': '5a8d3f0c2b6c1f0019c4a3b5', 'title': 'UV-Intensität', 'unit': 'μW/cm²', 'type': 'VEML6070'},
        ],
        'integrations': {'ttn': {'profile': 'sensebox/home'}},
    }


@pytest.fixture
def debug_device():
    return {
        'sensors': [
            {'id': 's1', 'title': 'counter'},
            {'id': 's2', 'title': 'level'},
            {'id': 's3', 'title': 'raw'},
        ],
        'integrations': {'ttn': {'profile': 'debug', 'decodeOptions': [1, 2, 3]}},
    }


@pytest.fixture
def lora_serialization_device():
    return {
        'sensors': [
            {'id': 't1', 'title': 'Temperatur', 'type': 'DS18B20'},
            {'id': 'h1', 'title': 'Luftfeuchte', 'type': 'HDC1008'},
            {'id': 'c1', 'title': 'Counter', 'type': 'internal'},
        ],
        'integrations': {'ttn': {
            'profile': 'lora-serialization',
            'decodeOptions': [
                {'decoder': 'unixtime'},
                {'decoder': 'temperature', 'sensor_title': 'temperatur'},
                {'decoder': 'humidity', 'sensor_type': 'hdc1008'},
                {'decoder': 'uint16', 'sensor_id': 'c1'},
            ],
        }},
    }


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )

#!/usr/bin/env python3
"""
decode_payload.py - Decode a device payload from the command line

Usage:
    python tools/decode_payload.py device.yaml kwGKRQ==
    python tools/decode_payload.py device.yaml 93018A45 --hex
    python tools/decode_payload.py device.yaml kwGKRQ== --time 2024-05-01T12:00:00Z --json
    python tools/decode_payload.py device.yaml kwGKRQ== --config decoder.yaml -v

The payload is base64 unless --hex is given. Exits 1 on any decode error.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, List

from decode_errors import DecodeError
from decoder_config import build_engine, load_device, load_settings
from measurement_validator import parse_timestamp
from payload_input import hex_to_bytes, payload_to_bytes


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def print_measurements(measurements: List[Dict[str, Any]]) -> None:
    if not measurements:
        print("No measurements decoded.")
        return

    print(f"{'sensor_id':<26} {'value':>12}  extra")
    print("-" * 60)
    for m in measurements:
        extra = {k: v for k, v in m.items() if k not in ('sensor_id', 'value')}
        extra_str = ', '.join(f"{k}={_json_default(v)}" for k, v in extra.items())
        print(f"{str(m['sensor_id']):<26} {str(m['value']):>12}  {extra_str}")
    print("-" * 60)
    print(f"{len(measurements)} measurements")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Decode a raw device payload into measurements'
    )
    parser.add_argument('device', help='Path to device record (YAML or JSON)')
    parser.add_argument('payload', help='Payload, base64 encoded (or hex with --hex)')
    parser.add_argument('--hex', action='store_true',
                        help='Payload is a hex string')
    parser.add_argument('--time', help='ISO-8601 receive time stamped onto measurements')
    parser.add_argument('--config', help='Path to decoder settings file')
    parser.add_argument('--json', action='store_true',
                        help='Output measurements as JSON')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        settings = load_settings(args.config)
        device = load_device(args.device)
        buffer = hex_to_bytes(args.payload) if args.hex else payload_to_bytes(args.payload)
        timestamp = parse_timestamp(args.time) if args.time else None
        engine = build_engine(settings)
        measurements = asyncio.run(engine.decode(buffer, device, timestamp))
    except (DecodeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(measurements, indent=2, default=_json_default))
    else:
        print_measurements(measurements)

    sys.exit(0)


if __name__ == '__main__':
    main()

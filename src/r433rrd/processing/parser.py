# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Syslog line parsing for rtl_433 sensor readings.

Each datagram looks like:

    <PRI>VER TIMESTAMP HOSTNAME APP PID MSGID {"model": ..., "temperature_C": ...}

The JSON payload is whatever follows the first seven spaces. It is decoded,
validated and turned into a ParsedSample keyed by a stable per-sensor label.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..errors import (
    InvalidPayload,
    MalformedFrame,
    MissingTemperature,
    UnsupportedSensorType,
)

logger = logging.getLogger(__name__)

# Syslog header fields that precede the payload
SYSLOG_HEADER_FIELDS = 7

# Sensor types that are never recorded
EXCLUDED_SENSOR_TYPES = frozenset({"TPMS"})

DEFAULT_HUMIDITY = "0.0"
STORE_SUFFIX = ".rrd"

_MODEL_REPLACEMENTS = {" ": "_", "/": "_", ".": "_", "&": ""}

# Channel numbers are 32-bit signed integers
CHANNEL_MIN = -2**31
CHANNEL_MAX = 2**31 - 1


@dataclass(frozen=True)
class RawSample:
    """Decoded rtl_433 JSON payload (fields we do not use are dropped)."""

    model: str
    id: Optional[int] = None
    channel: Optional[Union[int, float, str]] = None
    temperature_c: Optional[float] = None
    humidity: Optional[float] = None
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawSample":
        """
        Build a RawSample from a decoded JSON object.

        Raises:
            InvalidPayload: If a field is missing or has the wrong JSON type
        """
        model = data.get("model")
        if not isinstance(model, str):
            raise InvalidPayload("Payload has no string 'model' field")

        sensor_id = data.get("id")
        if sensor_id is not None and not _is_integer(sensor_id):
            raise InvalidPayload(f"Field 'id' must be an integer, got {sensor_id!r}")

        channel = data.get("channel")
        if channel is not None and not isinstance(channel, (int, float, str)):
            raise InvalidPayload(f"Field 'channel' must be a number or string, got {channel!r}")

        sensor_type = data.get("type")
        if sensor_type is not None and not isinstance(sensor_type, str):
            raise InvalidPayload(f"Field 'type' must be a string, got {sensor_type!r}")

        return cls(
            model=model,
            id=sensor_id,
            channel=channel,
            temperature_c=_optional_number(data, "temperature_C"),
            humidity=_optional_number(data, "humidity"),
            type=sensor_type,
        )


@dataclass(frozen=True)
class ParsedSample:
    """A validated reading ready to be written to its RRD file."""

    label: str
    store_path: str
    temperature: str
    humidity: str

    @property
    def values(self) -> list:
        """Values in rrdtool data source order."""
        return [self.temperature, self.humidity]


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_number(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidPayload(f"Field '{key}' must be a number, got {value!r}")
    return float(value)


def sanitize_model(model: str) -> str:
    """
    Make a model name safe for use in a file name.

    Spaces, slashes and dots become underscores; ampersands are dropped.
    """
    for old, new in _MODEL_REPLACEMENTS.items():
        model = model.replace(old, new)
    return model


def _channel_suffix(channel: Union[int, float, str]) -> Optional[str]:
    if isinstance(channel, str):
        return channel
    if _is_integer(channel) and CHANNEL_MIN <= channel <= CHANNEL_MAX:
        return str(channel)
    return None


def derive_label(sample: RawSample) -> str:
    """
    Build the per-sensor label, e.g. ``Acurite_5n1.CH3.rrd``.

    Channel is preferred over id; when channel is present id is never used.
    """
    label = sanitize_model(sample.model)

    if sample.channel is not None:
        suffix = _channel_suffix(sample.channel)
        if suffix is not None:
            label = f"{label}.CH{suffix}"
        else:
            logger.debug(f"Ignoring unusable channel {sample.channel!r} for {sample.model}")
    elif sample.id is not None:
        label = f"{label}.ID{sample.id}"

    return f"{label}{STORE_SUFFIX}"


def extract_payload(line: str) -> str:
    """
    Return the JSON payload from a syslog line.

    Raises:
        MalformedFrame: If the line is not syslog framed
    """
    if not line.startswith("<"):
        raise MalformedFrame(f"Not a syslog line: {line[:80]!r}")

    parts = line.split(" ", SYSLOG_HEADER_FIELDS)
    if len(parts) < 2:
        raise MalformedFrame(f"No payload in syslog line: {line[:80]!r}")

    payload = parts[-1].strip()
    if not payload:
        raise MalformedFrame(f"Empty payload in syslog line: {line[:80]!r}")

    return payload


def _reject_constant(name: str) -> Any:
    raise InvalidPayload(f"Non-finite number {name} in JSON payload")


def decode_payload(payload: str) -> RawSample:
    """Decode a JSON payload into a RawSample."""
    try:
        data = json.loads(payload, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise InvalidPayload(f"Error parsing JSON payload: {e}") from e

    if not isinstance(data, dict):
        raise InvalidPayload("JSON payload is not an object")

    return RawSample.from_dict(data)


def parse_line(line: str, rrd_path: str) -> ParsedSample:
    """
    Parse one syslog line into a ParsedSample.

    Args:
        line: Raw datagram text
        rrd_path: Directory prefix for RRD files (concatenated with the label)

    Returns:
        ParsedSample for the reading

    Raises:
        MalformedFrame, InvalidPayload, UnsupportedSensorType, MissingTemperature
    """
    payload = extract_payload(line)
    logger.debug(f"Raw JSON payload: {payload}")

    sample = decode_payload(payload)

    if sample.type in EXCLUDED_SENSOR_TYPES:
        raise UnsupportedSensorType(f"Skipping entry: {sample.type} sensor")

    if sample.temperature_c is None:
        raise MissingTemperature(f"No temperature_C found in data from {sample.model}")

    temperature = str(sample.temperature_c)
    if sample.humidity is None:
        humidity = DEFAULT_HUMIDITY
    else:
        humidity = str(sample.humidity)

    label = derive_label(sample)
    store_path = f"{rrd_path}{label}"

    logger.info(f"Data received: {label}, {temperature}, {humidity}")
    return ParsedSample(
        label=label,
        store_path=store_path,
        temperature=temperature,
        humidity=humidity,
    )

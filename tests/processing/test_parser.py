# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for syslog line parsing and label derivation.
"""

import json

import pytest

from r433rrd.errors import (
    InvalidPayload,
    MalformedFrame,
    MissingTemperature,
    ParseError,
    UnsupportedSensorType,
)
from r433rrd.processing.parser import (
    RawSample,
    derive_label,
    extract_payload,
    parse_line,
    sanitize_model,
)

RRD_PATH = "/var/lib/r433rrd/"
HEADER = "<30>1 2024-05-01T12:00:00Z raspberrypi rtl_433 412 - -"


def syslog_line(payload: dict) -> str:
    """Wrap a payload in a full 7-field syslog header (compact JSON, no spaces)."""
    return f"{HEADER} {json.dumps(payload, separators=(',', ':'))}"


class TestSanitizeModel:
    """Test model name sanitization."""

    @pytest.mark.parametrize("model,expected", [
        ("Acurite 5n1", "Acurite_5n1"),
        ("LaCrosse/TX", "LaCrosse_TX"),
        ("A&B.2", "AB_2"),
        ("Acurite-5n1", "Acurite-5n1"),
    ])
    def test_sanitize(self, model, expected):
        assert sanitize_model(model) == expected

    def test_sanitize_is_idempotent(self):
        once = sanitize_model("Fine Offset/WH.2 & co")
        assert sanitize_model(once) == once


class TestDeriveLabel:
    """Test per-sensor label derivation."""

    def test_integer_channel(self):
        assert derive_label(RawSample(model="Nexus-TH", channel=3)) == "Nexus-TH.CH3.rrd"

    def test_string_channel_is_verbatim(self):
        assert derive_label(RawSample(model="Acurite-Tower", channel="A")) == "Acurite-Tower.CHA.rrd"

    def test_numeric_looking_string_channel_is_verbatim(self):
        assert derive_label(RawSample(model="Foo", channel="03")) == "Foo.CH03.rrd"

    def test_float_channel_adds_no_suffix(self):
        assert derive_label(RawSample(model="Foo", id=7, channel=2.0)) == "Foo.rrd"

    def test_channel_outside_32_bit_range_adds_no_suffix(self):
        assert derive_label(RawSample(model="Foo", channel=2**31)) == "Foo.rrd"
        assert derive_label(RawSample(model="Foo", channel=-2**31)) == "Foo.CH-2147483648.rrd"

    def test_channel_preferred_over_id(self):
        assert derive_label(RawSample(model="Foo", id=99, channel=1)) == "Foo.CH1.rrd"

    def test_id_used_without_channel(self):
        assert derive_label(RawSample(model="Foo", id=12)) == "Foo.ID12.rrd"

    def test_no_channel_no_id(self):
        assert derive_label(RawSample(model="Acurite 5n1")) == "Acurite_5n1.rrd"

    def test_non_integral_channel_adds_no_suffix(self):
        # The id is not used as a fallback when a channel was given
        assert derive_label(RawSample(model="Foo", id=7, channel=2.5)) == "Foo.rrd"

    def test_model_is_sanitized(self):
        assert derive_label(RawSample(model="LaCrosse/TX", id=5)) == "LaCrosse_TX.ID5.rrd"


class TestExtractPayload:
    """Test syslog framing."""

    def test_payload_after_seven_header_fields(self):
        line = f'{HEADER} {{"model": "Foo", "temperature_C": 1}}'
        assert extract_payload(line) == '{"model": "Foo", "temperature_C": 1}'

    def test_short_header_takes_last_field(self):
        line = '<134>1 - host app - - {"model":"Foo"}'
        assert extract_payload(line) == '{"model":"Foo"}'

    def test_rejects_line_without_priority(self):
        with pytest.raises(MalformedFrame):
            extract_payload('1 - host app - - - {"model":"Foo"}')

    def test_rejects_line_without_payload(self):
        with pytest.raises(MalformedFrame):
            extract_payload("<134>1")

    def test_rejects_empty_payload(self):
        with pytest.raises(MalformedFrame):
            extract_payload("<134>1 - host app - - - ")


class TestParseLine:
    """Test full line parsing."""

    def test_end_to_end_example(self):
        line = '<134>1 - host app - - {"model":"Acurite-5n1","id":12,"temperature_C":21.5}'
        sample = parse_line(line, RRD_PATH)

        assert sample.label == "Acurite-5n1.ID12.rrd"
        assert sample.store_path == "/var/lib/r433rrd/Acurite-5n1.ID12.rrd"
        assert sample.temperature == "21.5"
        assert sample.humidity == "0.0"
        assert sample.values == ["21.5", "0.0"]

    def test_humidity_is_kept(self):
        line = syslog_line({"model": "LaCrosse/TX", "channel": 3, "temperature_C": 5.5, "humidity": 61})
        sample = parse_line(line, RRD_PATH)

        assert sample.label == "LaCrosse_TX.CH3.rrd"
        assert sample.temperature == "5.5"
        assert sample.humidity == "61.0"

    def test_payload_may_contain_spaces(self):
        line = f'{HEADER} {{"model": "Nexus-TH", "id": 1, "temperature_C": -3.25}}'
        sample = parse_line(line, RRD_PATH)

        assert sample.label == "Nexus-TH.ID1.rrd"
        assert sample.temperature == "-3.25"

    def test_store_path_depends_only_on_label(self):
        first = parse_line(syslog_line({"model": "Foo", "id": 1, "temperature_C": 1.0}), RRD_PATH)
        second = parse_line(
            syslog_line({"model": "Foo", "id": 1, "temperature_C": 30.0, "humidity": 80}),
            RRD_PATH,
        )
        assert first.label == second.label
        assert first.store_path == second.store_path

    def test_extra_fields_are_ignored(self):
        line = syslog_line({
            "time": "2024-05-01 12:00:00", "model": "Foo", "id": 4,
            "battery_ok": 1, "mic": "CRC", "temperature_C": 20.0,
        })
        assert parse_line(line, RRD_PATH).label == "Foo.ID4.rrd"

    def test_tpms_is_rejected(self):
        line = syslog_line({"model": "Toyota", "type": "TPMS", "id": 1, "temperature_C": 30.0})
        with pytest.raises(UnsupportedSensorType):
            parse_line(line, RRD_PATH)

    def test_tpms_is_rejected_before_temperature_check(self):
        line = syslog_line({"model": "Schrader", "type": "TPMS", "pressure_kPa": 220})
        with pytest.raises(UnsupportedSensorType):
            parse_line(line, RRD_PATH)

    def test_other_types_are_accepted(self):
        line = syslog_line({"model": "Foo", "type": "weather", "temperature_C": 1.0})
        assert parse_line(line, RRD_PATH).label == "Foo.rrd"

    def test_missing_temperature(self):
        line = syslog_line({"model": "Foo", "id": 1, "humidity": 50})
        with pytest.raises(MissingTemperature):
            parse_line(line, RRD_PATH)

    def test_invalid_json(self):
        with pytest.raises(InvalidPayload):
            parse_line(f'{HEADER} {{"model":', RRD_PATH)

    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_number_is_invalid(self, token):
        line = f'{HEADER} {{"model":"Foo","id":1,"temperature_C":{token}}}'
        with pytest.raises(InvalidPayload):
            parse_line(line, RRD_PATH)

    def test_missing_model(self):
        with pytest.raises(InvalidPayload):
            parse_line(syslog_line({"id": 1, "temperature_C": 1.0}), RRD_PATH)

    def test_non_object_payload(self):
        with pytest.raises(InvalidPayload):
            parse_line(f"{HEADER} [1,2,3]", RRD_PATH)

    def test_string_id_is_invalid(self):
        with pytest.raises(InvalidPayload):
            parse_line(syslog_line({"model": "Foo", "id": "12", "temperature_C": 1.0}), RRD_PATH)

    def test_string_temperature_is_invalid(self):
        with pytest.raises(InvalidPayload):
            parse_line(syslog_line({"model": "Foo", "temperature_C": "hot"}), RRD_PATH)

    def test_all_rejections_are_parse_errors(self):
        for line in (
            "garbage",
            f"{HEADER} not-json",
            syslog_line({"model": "Foo", "type": "TPMS", "temperature_C": 1.0}),
            syslog_line({"model": "Foo"}),
        ):
            with pytest.raises(ParseError):
                parse_line(line, RRD_PATH)

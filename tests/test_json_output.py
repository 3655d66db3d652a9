"""
Tests for best-effort JSON decoding and case-insensitive field lookup.
"""

import pytest

from dockshim.core.services.json_output import (
    bool_value,
    decode_array,
    decode_lines,
    decode_object,
    decode_records,
    decode_structured,
    first_bool,
    first_string,
    first_value,
    string_value,
)

# ── Decoding ─────────────────────────────────────────────────────────


class TestDecodeObject:
    def test_object(self):
        assert decode_object('  {"a": 1}\n') == {"a": 1}

    def test_array_is_not_object(self):
        assert decode_object("[{}]") is None

    def test_malformed(self):
        assert decode_object("{not json") is None

    def test_plain_text(self):
        assert decode_object("running") is None


class TestDecodeArray:
    def test_array_of_objects(self):
        assert decode_array('[{"a": 1}, {"b": 2}]') == [{"a": 1}, {"b": 2}]

    def test_array_with_scalar_rejected(self):
        assert decode_array('[{"a": 1}, 2]') is None

    def test_empty_array(self):
        assert decode_array("[]") == []


class TestDecodeLines:
    def test_ndjson(self):
        text = '{"id": "a"}\n\n{"id": "b"}\n'
        assert decode_lines(text) == [{"id": "a"}, {"id": "b"}]

    def test_all_or_nothing(self):
        text = '{"id": "a"}\nWARNING: something\n{"id": "b"}'
        assert decode_lines(text) is None

    def test_bad_json_line(self):
        assert decode_lines('{"id": "a"}\n{"id": ') is None

    def test_blank(self):
        assert decode_lines("\n  \n") is None


class TestDecodeStructured:
    def test_object_first(self):
        assert decode_structured('{"running": true}') == {"running": True}

    def test_array(self):
        assert decode_structured('[{"id": 1}]') == [{"id": 1}]

    def test_ndjson_starting_with_brace(self):
        text = '{"id": 1}\n{"id": 2}'
        assert decode_structured(text) == [{"id": 1}, {"id": 2}]

    def test_table_text(self):
        assert decode_structured("ID  NAME\nabc web") is None

    @pytest.mark.parametrize("text", ["", "{", "[1, 2", "null", "42", "\x00\x01"])
    def test_never_raises(self, text):
        decode_structured(text)


class TestDecodeRecords:
    def test_single_object_wrapped(self):
        assert decode_records('{"id": "x"}') == [{"id": "x"}]

    def test_array_passthrough(self):
        assert decode_records('[{"id": "x"}]') == [{"id": "x"}]

    def test_unstructured(self):
        assert decode_records("no containers") is None


# ── Scalars ──────────────────────────────────────────────────────────


class TestStringValue:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("abc", "abc"),
            (42, "42"),
            (3.0, "3"),
            (2.5, "2.5"),
            (True, "true"),
            (False, "false"),
            (None, None),
            ([1], None),
            ({"a": 1}, None),
        ],
    )
    def test_render(self, value, expected):
        assert string_value(value) == expected


class TestBoolValue:
    @pytest.mark.parametrize("value", [True, "true", "YES", " 1 ", 1, 2.5])
    def test_truthy(self, value):
        assert bool_value(value) is True

    @pytest.mark.parametrize("value", [False, "false", "No", "0", 0, 0.0])
    def test_falsy(self, value):
        assert bool_value(value) is False

    @pytest.mark.parametrize("value", ["maybe", None, [], {}])
    def test_not_boolean(self, value):
        assert bool_value(value) is None


# ── Lookup ───────────────────────────────────────────────────────────


class TestFirstValue:
    def test_case_insensitive(self):
        assert first_value({"ID": "abc"}, ["id"]) == "abc"

    def test_key_order_wins(self):
        obj = {"uuid": "u", "containerId": "c"}
        assert first_value(obj, ["id", "containerid", "uuid"]) == "c"

    def test_missing(self):
        assert first_value({"a": 1}, ["b", "c"]) is None

    def test_null_counts_as_absent(self):
        assert first_value({"id": None, "uuid": "u"}, ["id", "uuid"]) == "u"

    def test_empty_keys(self):
        assert first_value({"a": 1}, []) is None


class TestFirstTyped:
    def test_first_string_number(self):
        assert first_string({"Size": 1024}, ["size"]) == "1024"

    def test_first_string_object_value(self):
        assert first_string({"status": {"state": "running"}}, ["status"]) is None

    def test_first_bool_text(self):
        assert first_bool({"Running": "yes"}, ["running"]) is True

    def test_first_bool_missing(self):
        assert first_bool({}, ["running"]) is None

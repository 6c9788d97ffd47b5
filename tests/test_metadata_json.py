from __future__ import annotations

import json

from docmeta.domain.metadata import MetadataMap
from docmeta.services.metadata_json import is_numeric, metadata_to_json, parse_number, to_json


def _metadata(**values) -> MetadataMap:
    return MetadataMap(values)


def test_scalar_array_and_number_rendered_in_key_order():
    out = metadata_to_json(MetadataMap({"Pages": "42", "Author": "Jane", "Keywords": ["a", "b"]}))

    assert '"Author":"Jane"' in out
    assert '"Keywords":["a","b"]' in out
    assert '"Pages":42' in out
    assert out.index('"Author"') < out.index('"Keywords"') < out.index('"Pages"')
    assert json.loads(out) == {"Author": "Jane", "Keywords": ["a", "b"], "Pages": 42}


def test_blank_values_are_omitted():
    assert metadata_to_json(_metadata(Title="")) == "{ }"
    assert json.loads(metadata_to_json(_metadata(Title="   ", Author="Jane"))) == {"Author": "Jane"}


def test_last_key_suppressed_leaves_no_trailing_comma():
    out = metadata_to_json(_metadata(Author="Jane", Zeta=" "))
    assert json.loads(out) == {"Author": "Jane"}
    assert not out.rstrip(" }").endswith(",")


def test_keys_sorted_lexicographically():
    meta = MetadataMap({"b": "x", "B": "y", "a": "z", "Content-Type": "text/plain"})
    out = json.loads(metadata_to_json(meta), object_pairs_hook=list)
    keys = [k for k, _ in out]
    assert keys == sorted(keys)
    assert keys == ["B", "Content-Type", "a", "b"]


def test_numeric_inference_requires_full_consumption():
    out = json.loads(metadata_to_json(_metadata(a="123", b="3.14", c="123abc", d="1,234", e="-7")))
    assert out == {"a": 123, "b": 3.14, "c": "123abc", "d": 1234, "e": -7}


def test_multi_valued_numbers_stay_strings():
    meta = MetadataMap()
    meta.add("pages", "1")
    meta.add("pages", "2")
    assert json.loads(metadata_to_json(meta)) == {"pages": ["1", "2"]}


def test_serialization_is_idempotent():
    meta = MetadataMap({"Author": "Jürgen \"J\" Ø", "Count": "10", "tags": ["x", "y"]})
    assert metadata_to_json(meta) == metadata_to_json(meta)


def test_parse_number_canonical_forms():
    assert parse_number("42") == "42"
    assert parse_number("3.0") == "3"
    assert parse_number("1,234.50") == "1234.5"
    assert parse_number("-0") == "-0.0"
    assert parse_number("1.") == "1"
    assert parse_number(".5") == "0.5"
    assert parse_number("1.234,5", decimal_sep=",", group_sep=".") == "1234.5"


def test_non_numeric_strings():
    for value in ["", "42abc", "abc", "-", ".", "1e5", "+5", " 42", "1,", "1,234.5,6", None]:
        assert not is_numeric(value), value


def test_to_json_escapes_text():
    assert to_json('line "one"\nline two') == '"line \\"one\\"\\nline two"'
    assert to_json("hello world") == '"hello world"'
    assert json.loads(to_json("naïve\t ")) == "naïve\t "


def test_number_beyond_double_range_stays_a_string():
    huge = "9" * 400
    out = metadata_to_json(_metadata(isbnBlob=huge, big="1" + "0" * 30))

    def _reject(constant):
        raise ValueError(f"non-finite constant {constant}")

    assert json.loads(out, parse_constant=_reject) == {"big": 1e30, "isbnBlob": huge}
    assert parse_number(huge) is None
    assert parse_number("-" + huge) is None

# tests/test_content_kind.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest
from pydantic import BaseModel

from webcall.caller.content_kind import (
    MEDIA_TYPE_JSON,
    MEDIA_TYPE_XML,
    ContentKind,
    codec_for,
)


@dataclass
class _Point:
    x: int
    y: int


class _Doc(BaseModel):
    title: str
    published: bool
    pages: Optional[int] = None


def test_codec_lookup() -> None:
    assert codec_for(ContentKind.NONE) is None
    assert codec_for(ContentKind.JSON).media_type == MEDIA_TYPE_JSON
    assert codec_for(ContentKind.XML).media_type == MEDIA_TYPE_XML


def test_json_encode_handles_models_and_dataclasses() -> None:
    codec = codec_for(ContentKind.JSON)

    assert json.loads(codec.encode(_Point(1, 2))) == {"x": 1, "y": 2}
    assert json.loads(codec.encode(_Doc(title="t", published=True))) == {
        "title": "t",
        "published": True,
        "pages": None,
    }


def test_json_decode_validates_into_target() -> None:
    codec = codec_for(ContentKind.JSON)

    assert codec.decode(b"[1, 2, 3]", List[int]) == [1, 2, 3]
    with pytest.raises(ValueError):
        codec.decode(b'["a"]', List[int])


def test_xml_encode_uses_class_name_as_root_and_item_for_lists() -> None:
    codec = codec_for(ContentKind.XML)

    body = codec.encode(_Point(1, 2))
    assert b"<_Point><x>1</x><y>2</y></_Point>" in body

    body = codec.encode({"tags": ["a", "b"], "flag": False, "empty": None})
    assert b'<root><tags type="list"><item>a</item><item>b</item></tags><flag>false</flag><empty type="nil" /></root>' in body


def test_xml_encode_rejects_invalid_element_names() -> None:
    codec = codec_for(ContentKind.XML)

    with pytest.raises(ValueError):
        codec.encode({"1bad": 1})
    with pytest.raises(ValueError):
        codec.encode({"has space": 1})


def test_xml_decode_into_model_coerces_text() -> None:
    codec = codec_for(ContentKind.XML)

    doc = codec.decode(
        b"<_Doc><title>Manual</title><published>true</published><pages>12</pages></_Doc>",
        _Doc,
    )

    assert doc == _Doc(title="Manual", published=True, pages=12)


def test_xml_decode_repeated_tags_become_list() -> None:
    codec = codec_for(ContentKind.XML)

    out = codec.decode(
        b"<services><svc>a</svc><svc>b</svc><svc>c</svc><owner>ops</owner></services>",
        Dict[str, Any],
    )

    assert out == {"svc": ["a", "b", "c"], "owner": "ops"}


def test_xml_decode_item_children_become_list() -> None:
    codec = codec_for(ContentKind.XML)

    assert codec.decode(b"<root><item>1</item><item>2</item></root>", List[int]) == [1, 2]


class _Profile(BaseModel):
    name: str
    tags: List[str] = []
    meta: Dict[str, str] = {}
    note: Optional[str] = None


def test_xml_round_trip_keeps_empty_string_list_map_and_none() -> None:
    codec = codec_for(ContentKind.XML)
    profile = _Profile(name="")

    body = codec.encode(profile)

    assert b'<tags type="list" />' in body
    assert b'<meta type="map" />' in body
    assert b'<note type="nil" />' in body
    assert codec.decode(body, _Profile) == profile


def test_xml_round_trip_into_dict_keeps_empty_values() -> None:
    codec = codec_for(ContentKind.XML)

    body = codec.encode({"a": "", "b": [], "c": None, "d": [""]})

    assert codec.decode(body, Dict[str, Any]) == {"a": "", "b": [], "c": None, "d": [""]}


def test_xml_decode_refuses_entity_declarations() -> None:
    codec = codec_for(ContentKind.XML)
    body = (
        b'<?xml version="1.0"?>'
        b'<!DOCTYPE root [<!ENTITY a "aaaaaaaaaa"><!ENTITY b "&a;&a;&a;&a;&a;">]>'
        b"<root><v>&b;</v></root>"
    )

    with pytest.raises(ValueError):
        codec.decode(body, Dict[str, Any])


def test_json_encode_rejects_nan() -> None:
    codec = codec_for(ContentKind.JSON)

    with pytest.raises(ValueError):
        codec.encode({"score": float("nan")})

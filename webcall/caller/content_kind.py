"""
webcall/caller/content_kind.py

WHAT THIS FILE IS FOR
---------------------
This module defines the closed set of body encodings a WebCaller can use
and the codec lookup behind them.

    ContentKind.NONE -> no codec (no body encoding, no decoding)
    ContentKind.JSON -> application/json
    ContentKind.XML  -> application/xml

Each codec exposes:
- media_type: used for both Content-Type and Accept
- encode(value) -> bytes
- decode(body, target) -> value validated as `target`

Decoding always ends in a pydantic TypeAdapter validation, so `target`
can be any type pydantic understands (BaseModel subclasses, dict,
list[int], typing.Any, ...).

XML MAPPING
-----------
There is no "standard" object <-> XML mapping in Python, so this module
fixes one:

    Container and null elements carry a type attribute so that empty
    values survive a round trip.

    encode:
        mapping      -> one child element per key (type="map" when empty)
        list / tuple -> repeated <item> children, container type="list"
        None         -> empty element with type="nil"
        bool         -> "true" / "false"
        other scalar -> element text ("" -> empty element)
        root tag     -> class name for models / dataclasses, else "root"

    decode (reverse):
        type="nil"                   -> None
        type="list"                  -> list of children (possibly empty)
        type="map", no children      -> {}
        leaf element                 -> text ("" when empty)
        children all named <item>    -> list
        repeated sibling tags        -> list under that tag
        other children               -> dict

Response bodies are untrusted, so they are parsed with defusedxml.

Values decoded from XML are strings; pydantic's lax mode coerces them
into the target field types ("1" -> 1, "true" -> True).

WHAT THIS FILE IS NOT FOR
-------------------------
- HTTP concerns (headers, status codes)
- Error wrapping (WebCaller wraps codec exceptions into CallError)
"""

from __future__ import annotations

import dataclasses
import json
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from defusedxml import ElementTree as DefusedET
from pydantic import BaseModel, TypeAdapter
from pydantic_core import to_jsonable_python

MEDIA_TYPE_JSON = "application/json"
MEDIA_TYPE_XML = "application/xml"

XML_ROOT_TAG = "root"
XML_ITEM_TAG = "item"
XML_TYPE_ATTR = "type"
XML_TYPE_NIL = "nil"
XML_TYPE_LIST = "list"
XML_TYPE_MAP = "map"

_XML_TAG_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")


class ContentKind(str, Enum):
    NONE = "none"
    JSON = "json"
    XML = "xml"


@dataclass(frozen=True)
class Codec:
    media_type: str
    encode: Callable[[Any], bytes]
    decode: Callable[[bytes, Any], Any]


# ------------------------------------------------------------------ #
# JSON
# ------------------------------------------------------------------ #
def _json_encode(value: Any) -> bytes:
    data = to_jsonable_python(value, inf_nan_mode="constants")
    return json.dumps(data, allow_nan=False).encode("utf-8")


def _json_decode(body: bytes, target: Any) -> Any:
    # validate_json parses and validates in one pass; malformed JSON
    # raises ValidationError just like a shape mismatch does.
    return TypeAdapter(target).validate_json(body)


# ------------------------------------------------------------------ #
# XML
# ------------------------------------------------------------------ #
def _xml_root_tag(value: Any) -> str:
    if isinstance(value, BaseModel) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        return type(value).__name__
    return XML_ROOT_TAG


def _check_tag(tag: str) -> str:
    if not _XML_TAG_RE.match(tag):
        raise ValueError(f"invalid xml element name: {tag!r}")
    return tag


def _fill_element(elem: ET.Element, data: Any) -> None:
    if data is None:
        elem.set(XML_TYPE_ATTR, XML_TYPE_NIL)
        return
    if isinstance(data, dict):
        if not data:
            elem.set(XML_TYPE_ATTR, XML_TYPE_MAP)
        for key, value in data.items():
            child = ET.SubElement(elem, _check_tag(str(key)))
            _fill_element(child, value)
        return
    if isinstance(data, (list, tuple)):
        elem.set(XML_TYPE_ATTR, XML_TYPE_LIST)
        for value in data:
            child = ET.SubElement(elem, XML_ITEM_TAG)
            _fill_element(child, value)
        return
    if isinstance(data, bool):
        elem.text = "true" if data else "false"
        return
    elem.text = str(data)


def _xml_encode(value: Any) -> bytes:
    root = ET.Element(_check_tag(_xml_root_tag(value)))
    _fill_element(root, to_jsonable_python(value))
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def _element_to_data(elem: ET.Element) -> Any:
    marker = elem.get(XML_TYPE_ATTR)
    children = list(elem)
    if marker == XML_TYPE_NIL:
        return None
    if marker == XML_TYPE_LIST:
        return [_element_to_data(child) for child in children]
    if not children:
        if marker == XML_TYPE_MAP:
            return {}
        return elem.text or ""

    # Unmarked documents from other producers.
    if all(child.tag == XML_ITEM_TAG for child in children):
        return [_element_to_data(child) for child in children]

    out: Dict[str, Any] = {}
    repeated: set[str] = set()
    for child in children:
        value = _element_to_data(child)
        if child.tag not in out:
            out[child.tag] = value
        elif child.tag in repeated:
            out[child.tag].append(value)
        else:
            out[child.tag] = [out[child.tag], value]
            repeated.add(child.tag)
    return out


def _xml_decode(body: bytes, target: Any) -> Any:
    root = DefusedET.fromstring(body)
    return TypeAdapter(target).validate_python(_element_to_data(root))


_CODECS: Dict[ContentKind, Codec] = {
    ContentKind.JSON: Codec(media_type=MEDIA_TYPE_JSON, encode=_json_encode, decode=_json_decode),
    ContentKind.XML: Codec(media_type=MEDIA_TYPE_XML, encode=_xml_encode, decode=_xml_decode),
}


def codec_for(kind: ContentKind) -> Optional[Codec]:
    """Return the codec for `kind`, or None for ContentKind.NONE."""
    return _CODECS.get(kind)

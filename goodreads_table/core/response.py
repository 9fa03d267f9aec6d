from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


class ApiResponse:
    """
    Generic decoded payload: ApiNull | ApiString | ApiList | ApiMap.

    XML and JSON bodies both decode into this shape. Lookups never raise:
    a missing key (or a key lookup on a non-map) yields NULL.
    """

    __slots__ = ()

    def get(self, key: str) -> "ApiResponse":
        return NULL

    def path(self, *keys: str) -> "ApiResponse":
        cur: ApiResponse = self
        for key in keys:
            cur = cur.get(key)
        return cur

    def text(self) -> Optional[str]:
        return None

    def is_empty(self) -> bool:
        return False

    def to_python(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class ApiNull(ApiResponse):
    def is_empty(self) -> bool:
        return True

    def to_python(self) -> Any:
        return None


@dataclass(frozen=True)
class ApiString(ApiResponse):
    value: str

    def text(self) -> Optional[str]:
        return self.value

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class ApiList(ApiResponse):
    # An XML element that is empty in the source document decodes as ApiList(()).
    items: Tuple[ApiResponse, ...] = ()

    def is_empty(self) -> bool:
        return not self.items

    def to_python(self) -> Any:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class ApiMap(ApiResponse):
    entries: Dict[str, ApiResponse] = field(default_factory=dict)

    def get(self, key: str) -> ApiResponse:
        return self.entries.get(key, NULL)

    def is_empty(self) -> bool:
        return not self.entries

    def to_python(self) -> Any:
        return {k: v.to_python() for k, v in self.entries.items()}


NULL = ApiNull()
EMPTY = ApiList(())


def scalar_text(value: ApiResponse) -> str:
    """
    Text of a field expected to be a scalar.

    Anything that is not a string (null, the empty-element list, an
    attribute-only map) counts as a missing value and yields "".
    """
    text = value.text()
    return text if text is not None else ""


def from_json_value(obj: Any) -> ApiResponse:
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return ApiString("true" if obj else "false")
    if isinstance(obj, (int, float, str)):
        return ApiString(str(obj))
    if isinstance(obj, list):
        return ApiList(tuple(from_json_value(x) for x in obj))
    if isinstance(obj, dict):
        return ApiMap({str(k): from_json_value(v) for k, v in obj.items()})
    raise ValueError(f"Unsupported JSON value: {type(obj).__name__}")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def from_xml_element(elem: ET.Element) -> ApiResponse:
    children = list(elem)
    if not children:
        text = (elem.text or "").strip()
        if text:
            # Attributes on a text leaf are dropped, like `<id type="integer">1</id>`.
            return ApiString(text)
        if elem.attrib:
            return ApiMap({_local_name(k): ApiString(v) for k, v in elem.attrib.items()})
        return EMPTY

    entries: Dict[str, ApiResponse] = {_local_name(k): ApiString(v) for k, v in elem.attrib.items()}
    grouped: Dict[str, list] = {}
    for child in children:
        grouped.setdefault(_local_name(child.tag), []).append(from_xml_element(child))
    for name, values in grouped.items():
        entries[name] = values[0] if len(values) == 1 else ApiList(tuple(values))
    return ApiMap(entries)


def parse_json_body(body: str) -> ApiResponse:
    return from_json_value(json.loads(body))


def parse_xml_body(body: str) -> ApiResponse:
    """Parse an XML document; the root element is dropped and its content returned."""
    try:
        root = ET.fromstring(body.strip())
    except ET.ParseError as e:
        raise ValueError(f"Invalid XML: {e}") from e
    return from_xml_element(root)

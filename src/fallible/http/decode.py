"""Content-Type driven response decoding.

``decode_response`` is the default decode step of
:class:`~fallible.http.retryer.HttpRetryer`. It reads at most ``max_bytes``
of the body, picks a parser from the response's media type and validates
the parsed data into ``target`` with pydantic.

Supported media types::

    application/json, */*+json         JSON
    application/xml, text/xml, */*+xml XML (element tree -> dict)

Every failure is a :class:`~fallible.core.errors.DecodeError`, which the
HTTP adapter treats as terminal.

Example:
    >>> import httpx
    >>> from fallible.core.context import background
    >>> from pydantic import BaseModel
    >>> class User(BaseModel):
    ...     id: int
    ...     name: str
    >>> resp = httpx.Response(200, json={"id": 1, "name": "Ada"})
    >>> decode_response(background(), resp, 1024, User)
    User(id=1, name='Ada')
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError
from pydantic_core import from_json

from fallible.core.context import Context
from fallible.core.errors import BodyTooLargeError, DecodeError, UnsupportedContentTypeError
from fallible.http.body import read_limited

JSON = "json"
XML = "xml"


def media_type(content_type: str | None) -> str:
    """Bare, lower-cased media type: ``"application/json; charset=utf-8"`` -> ``"application/json"``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def detect_format(content_type: str | None) -> str | None:
    """``"json"``, ``"xml"`` or None for a Content-Type header value."""
    typ = media_type(content_type)
    if typ == "application/json" or typ.endswith("+json"):
        return JSON
    if typ in ("application/xml", "text/xml") or typ.endswith("+xml"):
        return XML
    return None


def _strip_ns(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def element_to_data(element: ET.Element) -> Any:
    """Convert an XML element into plain Python data.

    Attributes become ``"@name"`` keys, repeated child tags become lists,
    and a leaf element becomes its stripped text.
    """
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    data: dict[str, Any] = {f"@{_strip_ns(k)}": v for k, v in element.attrib.items()}
    for child in children:
        key = _strip_ns(child.tag)
        value = element_to_data(child)
        if key in data:
            existing = data[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                data[key] = [existing, value]
        else:
            data[key] = value

    text = (element.text or "").strip()
    if text:
        data["#text"] = text
    return data


def _parse(fmt: str, raw: bytes) -> Any:
    if fmt == JSON:
        return from_json(raw)
    return element_to_data(ET.fromstring(raw))


def decode_bytes(raw: bytes, fmt: str, target: Any = None) -> Any:
    """Parse ``raw`` as ``fmt`` and validate it into ``target`` (None = raw data)."""
    try:
        data = _parse(fmt, raw)
    except (ValueError, ET.ParseError) as e:
        raise DecodeError(f"malformed {fmt} response body", cause=e)
    if target is None:
        return data
    try:
        return TypeAdapter(target).validate_python(data)
    except ValidationError as e:
        raise DecodeError(f"response does not match {getattr(target, '__name__', target)!s}", cause=e)


def decode_response(
    ctx: Context,
    response: httpx.Response,
    max_bytes: int,
    target: Any = None,
) -> Any:
    """Decode ``response`` into ``target`` by its Content-Type.

    Raises:
        UnsupportedContentTypeError: no parser for the media type
        BodyTooLargeError: the body is longer than ``max_bytes``
        DecodeError: the body is malformed or fails validation
    """
    content_type = response.headers.get("content-type", "")
    fmt = detect_format(content_type)
    if fmt is None:
        raise UnsupportedContentTypeError(media_type(content_type))

    raw = read_limited(response, max_bytes + 1)
    if len(raw) > max_bytes:
        raise BodyTooLargeError(max_bytes)
    return decode_bytes(raw, fmt, target)


__all__ = [
    "media_type",
    "detect_format",
    "element_to_data",
    "decode_bytes",
    "decode_response",
]

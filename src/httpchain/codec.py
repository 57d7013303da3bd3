"""Content-type driven encoding of request bodies and decoding of responses.

Encoding first looks at the *shape* of the body (see :class:`BodyShape`).
Byte-like and stream-like bodies are already serialized by the caller, so
they are written through as they are and the Content-Type is never consulted.
Only structured values (mappings, models, dataclasses, ...) go through the
encoder table, keyed by the request's Content-Type with its parameters
stripped.

Decoding dispatches purely on the response Content-Type.  The decoded object
is then bound to the caller's destination by :func:`bind_value`, which fills
``dict``/``list`` instances in place and validates anything else through
:class:`pydantic.TypeAdapter`.

Built-in table:

==================================== ======== ========
Content-Type                         encode   decode
==================================== ======== ========
``application/json``                 yes      yes
``application/xml``                  yes      yes
``application/x-www-form-urlencoded`` yes      yes
``application/yaml``                 yes      yes
``application/x-yaml``               yes      yes
``multipart/form-data``              no       no
==================================== ======== ========

The table is process-wide; extend it with :func:`register_encoder` and
:func:`register_decoder` during application setup.
"""

from __future__ import annotations

import dataclasses
import enum
import json
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, BinaryIO, Callable
from urllib.parse import parse_qs, urlencode
from xml.etree import ElementTree
from xml.etree.ElementTree import ParseError

import httpx
import yaml
from defusedxml import ElementTree as SafeElementTree
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError
from pydantic_core import to_jsonable_python

from httpchain.exceptions import DecodeError, EncodeError

HEADER_ACCEPT = "Accept"
HEADER_ACCEPT_LANGUAGE = "Accept-Language"
HEADER_ACCEPT_ENCODING = "Accept-Encoding"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_USER_AGENT = "User-Agent"

MIME_JSON = "application/json"
MIME_XML = "application/xml"
MIME_FORM = "application/x-www-form-urlencoded"
MIME_MULTIPART_FORM = "multipart/form-data"
MIME_YAML = "application/yaml"
MIME_X_YAML = "application/x-yaml"
MIME_TEXT = "text/plain"
MIME_HTML = "text/html"

MIME_JSON_UTF8 = "application/json; charset=UTF-8"
MIME_XML_UTF8 = "application/xml; charset=UTF-8"

CHUNK_SIZE = 1024

Encoder = Callable[[BinaryIO, str, Any], None]
"""Writes *data* to the binary writer for the given content type."""

Decoder = Callable[[bytes, str], Any]
"""Turns a response body into a plain Python object for the given content type."""


def get_content_type(headers: Mapping[str, str]) -> str:
    """Return the ``Content-Type`` of *headers* without its parameters.

    ``"application/json; charset=UTF-8"`` becomes ``"application/json"``.
    Returns ``""`` when the header is missing.
    """
    if not isinstance(headers, httpx.Headers):
        headers = httpx.Headers(headers)
    mime = headers.get(HEADER_CONTENT_TYPE, "")
    index = mime.find(";")
    if index > -1:
        mime = mime[:index]
    return mime.strip()


# ---------------------------------------------------------------------- #
# Body shapes
# ---------------------------------------------------------------------- #


class BodyShape(str, enum.Enum):
    """The closed set of request body shapes.

    Every value maps to exactly one shape; :attr:`STRUCTURED` is the
    fallback for anything that is not already serialized.
    """

    EMPTY = "empty"
    BYTES = "bytes"
    TEXT = "text"
    READER = "reader"
    WRITER = "writer"
    STRUCTURED = "structured"


def classify_body(body: Any) -> BodyShape:
    """Return the :class:`BodyShape` of *body*."""
    if body is None:
        return BodyShape.EMPTY
    if isinstance(body, (bytes, bytearray, memoryview)):
        return BodyShape.BYTES
    if isinstance(body, str):
        return BodyShape.TEXT
    if callable(getattr(body, "read", None)):
        return BodyShape.READER
    if callable(getattr(body, "write_to", None)):
        return BodyShape.WRITER
    return BodyShape.STRUCTURED


def copy_stream(reader: Any, writer: BinaryIO) -> int:
    """Copy everything from *reader* to *writer* and return the byte count.

    Text readers are encoded as UTF-8.
    """
    total = 0
    while True:
        chunk = reader.read(CHUNK_SIZE)
        if not chunk:
            return total
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        writer.write(chunk)
        total += len(chunk)


# ---------------------------------------------------------------------- #
# Encoders
# ---------------------------------------------------------------------- #


def _encode_json(writer: BinaryIO, content_type: str, data: Any) -> None:
    text = json.dumps(to_jsonable_python(data), ensure_ascii=False)
    writer.write(text.encode("utf-8"))


def _build_element(tag: str, value: Any) -> ElementTree.Element:
    elem = ElementTree.Element(tag)
    if isinstance(value, Mapping):
        for key, child in value.items():
            if isinstance(child, list):
                for item in child:
                    elem.append(_build_element(str(key), item))
            else:
                elem.append(_build_element(str(key), child))
    elif isinstance(value, list):
        for item in value:
            elem.append(_build_element("item", item))
    elif isinstance(value, bool):
        elem.text = "true" if value else "false"
    elif value is not None:
        elem.text = str(value)
    return elem


def _encode_xml(writer: BinaryIO, content_type: str, data: Any) -> None:
    if isinstance(data, ElementTree.Element):
        root = data
    elif isinstance(data, Mapping) and len(data) == 1:
        tag, value = next(iter(data.items()))
        root = _build_element(str(tag), to_jsonable_python(value))
    elif isinstance(data, BaseModel) or (
        dataclasses.is_dataclass(data) and not isinstance(data, type)
    ):
        root = _build_element(type(data).__name__, to_jsonable_python(data))
    else:
        raise EncodeError(
            f"cannot encode {type(data).__name__} to {MIME_XML}: no root element"
        )
    writer.write(ElementTree.tostring(root, encoding="utf-8", xml_declaration=False))


def _encode_form(writer: BinaryIO, content_type: str, data: Any) -> None:
    if isinstance(data, Mapping):
        pairs: list[tuple[str, str]] = []
        for key, value in data.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((str(key), str(item)) for item in value)
            else:
                pairs.append((str(key), str(value)))
        writer.write(urlencode(pairs).encode("ascii"))
        return

    to_form = getattr(data, "to_form", None)
    if callable(to_form):
        form = to_form()
        writer.write(form.encode("utf-8") if isinstance(form, str) else form)
        return

    raise EncodeError(f"cannot encode {type(data).__name__} to {MIME_FORM}")


def _encode_yaml(writer: BinaryIO, content_type: str, data: Any) -> None:
    text = yaml.safe_dump(to_jsonable_python(data), allow_unicode=True, sort_keys=False)
    writer.write(text.encode("utf-8"))


# ---------------------------------------------------------------------- #
# Decoders
# ---------------------------------------------------------------------- #


def _decode_json(body: bytes, content_type: str) -> Any:
    return json.loads(body)


def _element_to_value(elem: ElementTree.Element) -> Any:
    children = list(elem)
    if not children and not elem.attrib:
        text = (elem.text or "").strip()
        return text or None

    result: dict[str, Any] = {f"@{name}": value for name, value in elem.attrib.items()}
    for child in children:
        value = _element_to_value(child)
        if child.tag in result:
            existing = result[child.tag]
            if not isinstance(existing, list):
                result[child.tag] = existing = [existing]
            existing.append(value)
        else:
            result[child.tag] = value

    text = (elem.text or "").strip()
    if text:
        result["#text"] = text
    return result


def _decode_xml(body: bytes, content_type: str) -> Any:
    root = SafeElementTree.fromstring(body)
    return {root.tag: _element_to_value(root)}


def _decode_form(body: bytes, content_type: str) -> Any:
    parsed = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


def _decode_yaml(body: bytes, content_type: str) -> Any:
    return yaml.safe_load(body)


_ENCODERS: dict[str, Encoder] = {
    MIME_JSON: _encode_json,
    MIME_XML: _encode_xml,
    MIME_FORM: _encode_form,
    MIME_YAML: _encode_yaml,
    MIME_X_YAML: _encode_yaml,
}

_DECODERS: dict[str, Decoder] = {
    MIME_JSON: _decode_json,
    MIME_XML: _decode_xml,
    MIME_FORM: _decode_form,
    MIME_YAML: _decode_yaml,
    MIME_X_YAML: _decode_yaml,
}


def register_encoder(mime: str, encoder: Encoder) -> None:
    """Register (or replace) the encoder used for structured bodies of type *mime*."""
    _ENCODERS[mime] = encoder


def register_decoder(mime: str, decoder: Decoder) -> None:
    """Register (or replace) the decoder used for responses of type *mime*."""
    _DECODERS[mime] = decoder


# ---------------------------------------------------------------------- #
# Dispatch
# ---------------------------------------------------------------------- #


def encode_data(writer: BinaryIO, content_type: str, data: Any) -> None:
    """Encode *data* according to its shape and *content_type* into *writer*.

    This is the default body encoder of every client.  Byte-like values,
    strings, readers, and objects with ``write_to(writer)`` are written as
    they are.  Structured values are looked up in the encoder table.

    Args:
        writer: Binary destination.
        content_type: The request Content-Type without parameters.
        data: The body value.

    Raises:
        EncodeError: If a structured value has no Content-Type, the
            Content-Type has no encoder, or the encoder fails.
    """
    shape = classify_body(data)
    if shape is BodyShape.EMPTY:
        return
    if shape is BodyShape.BYTES:
        writer.write(data)
        return
    if shape is BodyShape.TEXT:
        writer.write(data.encode("utf-8"))
        return
    if shape is BodyShape.READER:
        copy_stream(data, writer)
        return
    if shape is BodyShape.WRITER:
        data.write_to(writer)
        return

    if not content_type:
        raise EncodeError("missing header Content-Type")
    encoder = _ENCODERS.get(content_type)
    if encoder is None:
        raise EncodeError(f"unsupported Content-Type '{content_type}'")
    try:
        encoder(writer, content_type, data)
    except (TypeError, ValueError, yaml.YAMLError) as exc:
        raise EncodeError(
            f"cannot encode {type(data).__name__} to {content_type}: {exc}"
        ) from exc


@lru_cache(maxsize=256)
def _type_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def bind_value(dst: Any, value: Any) -> Any:
    """Bind a decoded *value* to the destination *dst* and return the result.

    * ``None``: *value* is returned unchanged.
    * a ``dict`` instance: updated in place with *value*, then returned.
    * a ``list`` instance: extended in place with *value*, then returned.
    * anything else (a pydantic model class, a dataclass, ``dict[str, int]``,
      ...): *value* is validated through :class:`pydantic.TypeAdapter`.

    Raises:
        DecodeError: If *value* does not fit the destination.
    """
    if dst is None:
        return value

    if isinstance(dst, dict):
        if not isinstance(value, Mapping):
            raise DecodeError(f"cannot decode {type(value).__name__} into a dict")
        dst.update(value)
        return dst

    if isinstance(dst, list):
        if not isinstance(value, list):
            raise DecodeError(f"cannot decode {type(value).__name__} into a list")
        dst.extend(value)
        return dst

    try:
        adapter = _type_adapter(dst)
    except (TypeError, PydanticUserError) as exc:
        raise DecodeError(f"unsupported decode destination {dst!r}: {exc}") from exc

    try:
        return adapter.validate_python(value)
    except ValidationError as exc:
        raise DecodeError(f"cannot decode into {dst!r}: {exc}") from exc


def decode_data(dst: Any, content_type: str, body: bytes) -> Any:
    """Decode *body* by *content_type* and bind the result to *dst*.

    Args:
        dst: Decode destination (see :func:`bind_value`).
        content_type: Response Content-Type without parameters.
        body: The raw response body.

    Returns:
        The bound value.

    Raises:
        DecodeError: If the Content-Type is missing or unsupported, the body
            is malformed, or the result does not fit *dst*.
    """
    if not content_type:
        raise DecodeError("missing header Content-Type")
    decoder = _DECODERS.get(content_type)
    if decoder is None:
        raise DecodeError(f"unsupported response Content-Type '{content_type}'")
    try:
        value = decoder(body, content_type)
    except (ValueError, ParseError, yaml.YAMLError) as exc:
        raise DecodeError(f"malformed {content_type} body: {exc}") from exc
    return bind_value(dst, value)

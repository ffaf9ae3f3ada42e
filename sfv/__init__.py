"""sfv — Structured Field Values for HTTP (RFC 8941 / RFC 9651).

Parse structured header values into plain Python trees and serialize
them back to canonical text.

Quick start:
    >>> from sfv import parse, serialize, make_token
    >>> parse("42;foo=bar;baz", "item")
    {'value': 42, 'parameters': {'foo': Token(lexeme='bar'), 'baz': True}}
    >>> serialize([{"value": make_token("tea"), "parameters": {"quality": 0.8}}], "list")
    'tea;quality=0.8'

Bare items map to int, float, str and bool where Python has a natural
type, and to Token, Binary, Date and DisplayString otherwise.
"""

from __future__ import annotations

from typing import Any, Union

from ._constants import FIELD_DICTIONARY, FIELD_ITEM, FIELD_LIST, FIELD_TYPES
from ._errors import (
    ERR_FIELD_TYPE,
    ERR_INVALID,
    ERR_RANGE,
    ERR_SHAPE,
    ERR_SYNTAX,
    ERR_TRAILING,
    ParseError,
    SerializeError,
    SfvError,
)
from ._json_adapter import from_json, to_json
from ._parser import parse_dictionary, parse_item, parse_list
from ._serializer import serialize_dictionary, serialize_item, serialize_list
from ._types import (
    Binary,
    Date,
    DisplayString,
    Token,
    make_binary,
    make_date,
    make_display_string,
    make_token,
)

__version__ = "1.0.0"

__all__ = [
    # Public API functions
    "parse",
    "serialize",
    "make_token",
    "make_binary",
    "make_date",
    "make_display_string",
    "to_json",
    "from_json",
    # Bare item variants
    "Token",
    "Binary",
    "Date",
    "DisplayString",
    # Field types
    "FIELD_LIST",
    "FIELD_DICTIONARY",
    "FIELD_ITEM",
    "FIELD_TYPES",
    # Exceptions
    "SfvError",
    "ParseError",
    "SerializeError",
    # Error codes
    "ERR_SYNTAX",
    "ERR_RANGE",
    "ERR_TRAILING",
    "ERR_SHAPE",
    "ERR_INVALID",
    "ERR_FIELD_TYPE",
]


# ── Core API ──────────────────────────────────────────────────

def parse(text: Union[str, bytes], field_type: str) -> Any:
    """Parse a structured field value.

    field_type is "list", "dictionary" or "item".  Returns a list of
    items, a dict of key -> item, or a single item, where an item is
    {"value": ..., "parameters": {...}}.  Raises ParseError.

    Header values read off the wire as bytes are accepted as long as
    they are ASCII.
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("ascii")
        except UnicodeDecodeError:
            raise ParseError(ERR_SYNTAX, "field value must be ASCII")
    if not isinstance(text, str):
        raise ParseError(ERR_SHAPE,
                         "field value must be str or bytes, got {}".format(
                             type(text).__name__))

    if field_type == FIELD_LIST:
        return parse_list(text)
    if field_type == FIELD_DICTIONARY:
        return parse_dictionary(text)
    if field_type == FIELD_ITEM:
        return parse_item(text)
    raise ParseError(ERR_FIELD_TYPE,
                     'field type must be "list", "dictionary" or "item", got {!r}'.format(
                         field_type))


def serialize(value: Any, field_type: str) -> str:
    """Serialize a value tree to canonical structured field text.

    The tree has the same shape parse() returns.  A missing "parameters"
    entry on an item means no parameters.  Raises SerializeError.
    """
    if field_type == FIELD_LIST:
        return serialize_list(value)
    if field_type == FIELD_DICTIONARY:
        return serialize_dictionary(value)
    if field_type == FIELD_ITEM:
        return serialize_item(value)
    raise SerializeError(ERR_FIELD_TYPE,
                         'field type must be "list", "dictionary" or "item", got {!r}'.format(
                             field_type))

"""JSON adapter — value trees to and from the structured-field test-suite format.

The public HTTP structured field tests describe expected results as JSON.
That shape is positional rather than keyed:

    item        [bare, [[key, bare], ...]]
    inner list  [[item, ...], [[key, bare], ...]]
    list        [member, ...]
    dictionary  [[key, member], ...]

JSON has no token, byte-sequence, date or display-string type, so those
bare items travel as tagged objects:

    {"__type": "token",         "value": "foo"}
    {"__type": "binary",        "value": "NBSWY3DP"}     (base32 of the bytes)
    {"__type": "date",          "value": 1659578233}
    {"__type": "displaystring", "value": "füü"}

Binary values are re-encoded on the way in, so a tree read from JSON
always carries canonical, padded base64 text.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any, Dict, List

from ._constants import FIELD_DICTIONARY, FIELD_ITEM, FIELD_LIST
from ._errors import ERR_FIELD_TYPE, ERR_SHAPE, SfvError
from ._types import Binary, Date, DisplayString, Token

TYPE_TOKEN = "token"
TYPE_BINARY = "binary"
TYPE_DATE = "date"
TYPE_DISPLAYSTRING = "displaystring"


# ── Value tree → JSON ─────────────────────────────────────────

def to_json(tree: Any, field_type: str) -> Any:
    """Convert a parsed value tree into test-suite JSON (plain lists/dicts)."""
    if field_type == FIELD_LIST:
        return [_member_to_json(m) for m in tree]
    if field_type == FIELD_DICTIONARY:
        return [[k, _member_to_json(m)] for k, m in tree.items()]
    if field_type == FIELD_ITEM:
        return _member_to_json(tree)
    raise SfvError(ERR_FIELD_TYPE, "unknown field type {!r}".format(field_type))


def _member_to_json(member: Mapping) -> List[Any]:
    value = member["value"]
    params = _params_to_json(member.get("parameters") or {})
    if isinstance(value, (list, tuple)):
        return [[_member_to_json(i) for i in value], params]
    return [_bare_to_json(value), params]


def _params_to_json(params: Mapping) -> List[List[Any]]:
    return [[k, _bare_to_json(v)] for k, v in params.items()]


def _bare_to_json(value: Any) -> Any:
    if isinstance(value, Token):
        return {"__type": TYPE_TOKEN, "value": value.lexeme}
    if isinstance(value, Binary):
        return {"__type": TYPE_BINARY,
                "value": base64.b32encode(value.decoded).decode("ascii")}
    if isinstance(value, Date):
        return {"__type": TYPE_DATE, "value": value.instant}
    if isinstance(value, DisplayString):
        return {"__type": TYPE_DISPLAYSTRING, "value": value.text}
    return value


# ── JSON → value tree ─────────────────────────────────────────

def from_json(obj: Any, field_type: str) -> Any:
    """Convert test-suite JSON into a value tree serialize() accepts."""
    if field_type == FIELD_LIST:
        if not isinstance(obj, list):
            raise SfvError(ERR_SHAPE, "JSON list must be an array")
        return [_member_from_json(m) for m in obj]
    if field_type == FIELD_DICTIONARY:
        if not isinstance(obj, list):
            raise SfvError(ERR_SHAPE, "JSON dictionary must be an array of pairs")
        result: Dict[str, Any] = {}
        for pair in obj:
            key, member = _pair(pair, "dictionary member")
            result[key] = _member_from_json(member)
        return result
    if field_type == FIELD_ITEM:
        return _member_from_json(obj)
    raise SfvError(ERR_FIELD_TYPE, "unknown field type {!r}".format(field_type))


def _pair(obj: Any, what: str) -> List[Any]:
    if not isinstance(obj, list) or len(obj) != 2:
        raise SfvError(ERR_SHAPE, "{} must be a 2-element array".format(what))
    return obj


def _member_from_json(obj: Any) -> Dict[str, Any]:
    value, params = _pair(obj, "item")
    if isinstance(value, list):
        return {"value": [_member_from_json(i) for i in value],
                "parameters": _params_from_json(params)}
    return {"value": _bare_from_json(value), "parameters": _params_from_json(params)}


def _params_from_json(obj: Any) -> Dict[str, Any]:
    if not isinstance(obj, list):
        raise SfvError(ERR_SHAPE, "JSON parameters must be an array of pairs")
    params: Dict[str, Any] = {}
    for pair in obj:
        key, value = _pair(pair, "parameter")
        params[key] = _bare_from_json(value)
    return params


def _bare_from_json(obj: Any) -> Any:
    if not isinstance(obj, dict):
        return obj
    kind = obj.get("__type")
    value = obj.get("value")
    if kind == TYPE_TOKEN:
        return Token(value)
    if kind == TYPE_BINARY:
        if not isinstance(value, str):
            raise SfvError(ERR_SHAPE, "binary value must be base32 text")
        try:
            data = base64.b32decode(value + "=" * (-len(value) % 8))
        except binascii.Error:
            raise SfvError(ERR_SHAPE, "binary value is not valid base32")
        return Binary.from_bytes(data)
    if kind == TYPE_DATE:
        return Date(value)
    if kind == TYPE_DISPLAYSTRING:
        return DisplayString(value)
    raise SfvError(ERR_SHAPE, "unknown JSON bare item type {!r}".format(kind))

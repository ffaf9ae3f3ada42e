"""Structured field serializer — value tree to canonical text (RFC 8941 §4.1).

Mirror image of _parser: one function per grammar rule, each returning
the text for its subtree.  Values built by hand (or through the
make_* factories) are never validated before this point, so every leaf
is checked here and the first bad one raises SerializeError.
"""

from __future__ import annotations

import binascii
import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Tuple

from ._constants import (
    BASE64_CHARS,
    DATE_MAX,
    DATE_MIN,
    DECIMAL_LIMIT,
    INTEGER_MAX,
    INTEGER_MIN,
    KEY_CHARS,
    KEY_START_CHARS,
    PRINTABLE_MAX,
    PRINTABLE_MIN,
    TOKEN_CHARS,
    TOKEN_START_CHARS,
)
from ._errors import ERR_INVALID, ERR_RANGE, ERR_SHAPE, SerializeError
from ._types import Binary, Date, DisplayString, Token, b64decode_lenient

_THOUSANDTH = Decimal("0.001")


# ── Top-level field types ─────────────────────────────────────

def serialize_list(members: Any) -> str:
    if not isinstance(members, (list, tuple)):
        raise SerializeError(ERR_SHAPE,
                             "list value must be a list, got {}".format(type(members).__name__))
    return ", ".join(_serialize_list_member(m) for m in members)


def serialize_dictionary(members: Any) -> str:
    if not isinstance(members, Mapping):
        raise SerializeError(ERR_SHAPE,
                             "dictionary value must be a mapping, got {}".format(
                                 type(members).__name__))
    out = []
    for key, member in members.items():
        _check_key(key)
        value, params = _split_item(member)
        # Boolean true collapses to the bare key.
        if value is True:
            out.append(key + _serialize_parameters(params))
        elif isinstance(value, (list, tuple)):
            out.append(key + "=" + _serialize_inner_list(value, params))
        else:
            out.append(key + "=" + _serialize_bare_item(value) + _serialize_parameters(params))
    return ", ".join(out)


def serialize_item(item: Any) -> str:
    value, params = _split_item(item)
    if isinstance(value, (list, tuple)):
        raise SerializeError(ERR_SHAPE, "an item cannot hold an inner list")
    return _serialize_bare_item(value) + _serialize_parameters(params)


# ── Members ───────────────────────────────────────────────────

def _split_item(member: Any) -> Tuple[Any, Mapping]:
    """Return (value, parameters) from an item mapping, checking its shape."""
    if not isinstance(member, Mapping) or "value" not in member:
        raise SerializeError(ERR_SHAPE,
                             "item must be a mapping with a 'value', got {}".format(
                                 type(member).__name__))
    params = member.get("parameters")
    if params is None:
        params = {}
    elif not isinstance(params, Mapping):
        raise SerializeError(ERR_SHAPE,
                             "parameters must be a mapping, got {}".format(
                                 type(params).__name__))
    return member["value"], params


def _serialize_list_member(member: Any) -> str:
    value, params = _split_item(member)
    if isinstance(value, (list, tuple)):
        return _serialize_inner_list(value, params)
    return _serialize_bare_item(value) + _serialize_parameters(params)


def _serialize_inner_list(items: Any, params: Mapping) -> str:
    parts = []
    for item in items:
        value, item_params = _split_item(item)
        if isinstance(value, (list, tuple)):
            raise SerializeError(ERR_SHAPE, "inner lists cannot be nested")
        parts.append(_serialize_bare_item(value) + _serialize_parameters(item_params))
    return "(" + " ".join(parts) + ")" + _serialize_parameters(params)


def _serialize_parameters(params: Mapping) -> str:
    out = []
    for key, value in params.items():
        _check_key(key)
        if value is True:
            out.append(";" + key)
        else:
            out.append(";" + key + "=" + _serialize_bare_item(value))
    return "".join(out)


def _check_key(key: Any) -> None:
    if not isinstance(key, str) or not key:
        raise SerializeError(ERR_INVALID, "key must be a non-empty string")
    if key[0] not in KEY_START_CHARS:
        raise SerializeError(ERR_INVALID,
                             "key {!r} must start with a lowercase letter or '*'".format(key))
    for c in key:
        if c not in KEY_CHARS:
            raise SerializeError(ERR_INVALID,
                                 "invalid character {!r} in key {!r}".format(c, key))


# ── Bare items ────────────────────────────────────────────────

def _serialize_bare_item(value: Any) -> str:
    # bool is a subclass of int, so it has to be tested first.
    if isinstance(value, bool):
        return "?1" if value else "?0"
    if isinstance(value, int):
        return _serialize_integer(value)
    if isinstance(value, (float, Decimal)):
        return _serialize_decimal(value)
    if isinstance(value, str):
        return _serialize_string(value)
    if isinstance(value, Token):
        return _serialize_token(value)
    if isinstance(value, Binary):
        return _serialize_binary(value)
    if isinstance(value, Date):
        return _serialize_date(value)
    if isinstance(value, DisplayString):
        return _serialize_display_string(value)
    raise SerializeError(ERR_SHAPE,
                         "unsupported bare item type: {}".format(type(value).__name__))


def _serialize_integer(value: int) -> str:
    if value < INTEGER_MIN or value > INTEGER_MAX:
        raise SerializeError(ERR_RANGE, "integer {} out of range".format(value))
    return str(value)


def _serialize_decimal(value: Any) -> str:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SerializeError(ERR_RANGE, "decimal must be finite")
        # repr() is the shortest text that reads back as the same float,
        # so rounding below works on the digits the caller actually wrote.
        value = Decimal(repr(value))
    elif not value.is_finite():
        raise SerializeError(ERR_RANGE, "decimal must be finite")

    if abs(value) >= DECIMAL_LIMIT:
        raise SerializeError(ERR_RANGE, "decimal {} out of range".format(value))
    rounded = value.quantize(_THOUSANDTH, rounding=ROUND_HALF_UP)
    if abs(rounded) >= DECIMAL_LIMIT:
        raise SerializeError(ERR_RANGE, "decimal {} out of range".format(value))

    int_part, frac = "{:f}".format(rounded).split(".")
    frac = frac.rstrip("0") or "0"
    if int_part == "-0" and frac == "0":
        int_part = "0"
    return int_part + "." + frac


def _serialize_string(value: str) -> str:
    for c in value:
        cp = ord(c)
        if cp < PRINTABLE_MIN or cp > PRINTABLE_MAX:
            raise SerializeError(ERR_INVALID,
                                 "invalid character U+{:04X} in string".format(cp))
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _serialize_token(token: Token) -> str:
    lexeme = token.lexeme
    if not isinstance(lexeme, str) or not lexeme:
        raise SerializeError(ERR_INVALID, "token must be a non-empty string")
    if lexeme[0] not in TOKEN_START_CHARS:
        raise SerializeError(ERR_INVALID,
                             "token {!r} must start with a letter or '*'".format(lexeme))
    for c in lexeme:
        if c not in TOKEN_CHARS:
            raise SerializeError(ERR_INVALID,
                                 "invalid character {!r} in token {!r}".format(c, lexeme))
    return lexeme


def _serialize_binary(binary: Binary) -> str:
    # The stored text goes out verbatim; it only has to be base64.
    text = binary.base64_text
    if not isinstance(text, str) or any(c not in BASE64_CHARS for c in text):
        raise SerializeError(ERR_INVALID, "binary value is not base64 text")
    try:
        b64decode_lenient(text)
    except binascii.Error:
        raise SerializeError(ERR_INVALID, "binary value is not valid base64")
    return ":" + text + ":"


def _serialize_date(date: Date) -> str:
    instant = date.instant
    if isinstance(instant, float) and math.isfinite(instant):
        instant = math.floor(instant)
    if isinstance(instant, bool) or not isinstance(instant, int):
        raise SerializeError(ERR_SHAPE,
                             "date instant must be integer seconds, got {}".format(
                                 type(instant).__name__))
    if instant < DATE_MIN or instant > DATE_MAX:
        raise SerializeError(ERR_RANGE, "date {} out of supported range".format(instant))
    return "@" + str(instant)


def _serialize_display_string(display: DisplayString) -> str:
    text = display.text
    if not isinstance(text, str):
        raise SerializeError(ERR_SHAPE, "display string text must be a str")
    try:
        raw = text.encode("utf-8")
    except UnicodeEncodeError:
        raise SerializeError(ERR_INVALID, "display string is not encodable as UTF-8")
    out = ['%"']
    for b in raw:
        if b == 0x25 or b == 0x22 or b < 0x20 or b > 0x7E:
            out.append("%{:02x}".format(b))
        else:
            out.append(chr(b))
    out.append('"')
    return "".join(out)

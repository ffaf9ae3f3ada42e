"""Structured field parser — text to value tree (RFC 8941 §4.2, RFC 9651).

Every rule has the same shape:

    _parse_<rule>(s, off) -> (value, new_off)

`s` is the whole field value as a str (so indexing is per code point and
multi-byte characters are handled atomically) and `off` is the position
of the first unconsumed character.  Rules never look behind `off` and
never retry: the first violation raises ParseError and the whole call is
abandoned.

Output shapes:

    Item        {"value": bare-item | [Item, ...], "parameters": {key: bare-item}}
    List        [Item, ...]
    Dictionary  {key: Item}
"""

from __future__ import annotations

import binascii
from typing import Any, Dict, List, Tuple

from ._constants import (
    BASE64_CHARS,
    DATE_MAX,
    DATE_MIN,
    DECIMAL_LIMIT,
    DECIMAL_MAX_FRAC_DIGITS,
    DECIMAL_MAX_INT_DIGITS,
    DIGITS,
    INTEGER_MAX,
    INTEGER_MAX_DIGITS,
    INTEGER_MIN,
    KEY_CHARS,
    KEY_START_CHARS,
    LC_HEX_DIGITS,
    OWS,
    PRINTABLE_MAX,
    PRINTABLE_MIN,
    SP,
    TOKEN_CHARS,
    TOKEN_START_CHARS,
)
from ._errors import ERR_RANGE, ERR_SYNTAX, ERR_TRAILING, ParseError
from ._types import Binary, Date, DisplayString, Token, b64decode_lenient

Params = Dict[str, Any]
Item = Dict[str, Any]


# ── Whitespace ────────────────────────────────────────────────

def _skip_sp(s: str, off: int) -> int:
    while off < len(s) and s[off] == SP:
        off += 1
    return off


def _skip_ows(s: str, off: int) -> int:
    while off < len(s) and s[off] in OWS:
        off += 1
    return off


def _describe(s: str, off: int) -> str:
    if off >= len(s):
        return "end of input"
    return repr(s[off])


# ── Top-level field types ─────────────────────────────────────

def parse_list(s: str) -> List[Item]:
    members: List[Item] = []
    off = _skip_ows(s, 0)
    while off < len(s):
        member, off = _parse_list_member(s, off)
        members.append(member)
        off = _skip_ows(s, off)
        if off < len(s) and s[off] == ",":
            off = _skip_ows(s, off + 1)
            if off >= len(s):
                raise ParseError(ERR_SYNTAX, "unexpected end of input after comma in list")
        else:
            break
    if off < len(s):
        raise ParseError(ERR_TRAILING,
                         "unexpected {} at end of list".format(_describe(s, off)))
    return members


def parse_dictionary(s: str) -> Dict[str, Item]:
    # Keys cannot start with a tab, so only spaces lead a dictionary.
    result: Dict[str, Item] = {}
    off = _skip_sp(s, 0)
    while off < len(s):
        key, off = _parse_key(s, off)
        if off < len(s) and s[off] == "=":
            member, off = _parse_list_member(s, off + 1)
        else:
            params, off = _parse_parameters(s, off)
            member = {"value": True, "parameters": params}
        # Later duplicates overwrite the value; dict keeps the first position.
        result[key] = member
        off = _skip_ows(s, off)
        if off < len(s) and s[off] == ",":
            off = _skip_ows(s, off + 1)
            if off >= len(s):
                raise ParseError(ERR_SYNTAX,
                                 "unexpected end of input after comma in dictionary")
        else:
            break
    if off < len(s):
        raise ParseError(ERR_TRAILING,
                         "unexpected {} at end of dictionary".format(_describe(s, off)))
    return result


def parse_item(s: str) -> Item:
    off = _skip_sp(s, 0)
    item, off = _parse_item(s, off)
    off = _skip_sp(s, off)
    if off < len(s):
        raise ParseError(ERR_TRAILING,
                         "unexpected {} at end of item".format(_describe(s, off)))
    return item


# ── Members ───────────────────────────────────────────────────

def _parse_list_member(s: str, off: int) -> Tuple[Item, int]:
    if off < len(s) and s[off] == "(":
        return _parse_inner_list(s, off)
    return _parse_item(s, off)


def _parse_inner_list(s: str, off: int) -> Tuple[Item, int]:
    if off >= len(s) or s[off] != "(":
        raise ParseError(ERR_SYNTAX, "expected '(' at start of inner list")
    off = _skip_sp(s, off + 1)

    items: List[Item] = []
    while off < len(s) and s[off] != ")":
        item, off = _parse_item(s, off)
        items.append(item)
        if off >= len(s) or s[off] == ")":
            break
        # Separator is one or more SP; HTAB is not allowed here.
        if s[off] != SP:
            raise ParseError(ERR_SYNTAX,
                             "expected space between inner list items, got {}".format(
                                 _describe(s, off)))
        off = _skip_sp(s, off)

    if off >= len(s):
        raise ParseError(ERR_SYNTAX, "unterminated inner list")
    params, off = _parse_parameters(s, off + 1)
    return {"value": items, "parameters": params}, off


def _parse_item(s: str, off: int) -> Tuple[Item, int]:
    value, off = _parse_bare_item(s, off)
    params, off = _parse_parameters(s, off)
    return {"value": value, "parameters": params}, off


def _parse_parameters(s: str, off: int) -> Tuple[Params, int]:
    params: Params = {}
    while off < len(s) and s[off] == ";":
        off = _skip_sp(s, off + 1)
        key, off = _parse_key(s, off)
        value: Any = True
        if off < len(s) and s[off] == "=":
            value, off = _parse_bare_item(s, off + 1)
        params[key] = value
    return params, off


def _parse_key(s: str, off: int) -> Tuple[str, int]:
    if off >= len(s) or s[off] not in KEY_START_CHARS:
        raise ParseError(ERR_SYNTAX,
                         "key must start with a lowercase letter or '*', got {}".format(
                             _describe(s, off)))
    start = off
    off += 1
    while off < len(s) and s[off] in KEY_CHARS:
        off += 1
    return s[start:off], off


# ── Bare items ────────────────────────────────────────────────

def _parse_bare_item(s: str, off: int) -> Tuple[Any, int]:
    if off >= len(s):
        raise ParseError(ERR_SYNTAX, "unexpected end of input, expected a bare item")
    c = s[off]
    if c == '"':
        return _parse_string(s, off)
    if c == ":":
        return _parse_binary(s, off)
    if c == "?":
        return _parse_boolean(s, off)
    if c == "@":
        return _parse_date(s, off)
    if c == "%":
        return _parse_display_string(s, off)
    if c == "-" or c in DIGITS:
        return _parse_number(s, off)
    if c in TOKEN_START_CHARS:
        return _parse_token(s, off)
    raise ParseError(ERR_SYNTAX, "unexpected character {}".format(repr(c)))


def _parse_number(s: str, off: int) -> Tuple[Any, int]:
    negative = off < len(s) and s[off] == "-"
    if negative:
        off += 1
    if off >= len(s) or s[off] not in DIGITS:
        raise ParseError(ERR_SYNTAX, "expected digit, got {}".format(_describe(s, off)))

    start = off
    while off < len(s) and s[off] in DIGITS:
        off += 1
    int_digits = s[start:off]
    if len(int_digits) > INTEGER_MAX_DIGITS:
        raise ParseError(ERR_RANGE, "integer too large: more than 15 digits")

    if off < len(s) and s[off] == ".":
        if len(int_digits) > DECIMAL_MAX_INT_DIGITS:
            raise ParseError(ERR_RANGE, "decimal too large: more than 12 integer digits")
        off += 1
        start = off
        while off < len(s) and s[off] in DIGITS:
            off += 1
        frac_digits = s[start:off]
        if not frac_digits:
            raise ParseError(ERR_SYNTAX, "expected digit after decimal point")
        if len(frac_digits) > DECIMAL_MAX_FRAC_DIGITS:
            raise ParseError(ERR_RANGE, "too many fractional digits: more than 3")
        decimal = float(int_digits + "." + frac_digits)
        if decimal >= DECIMAL_LIMIT:
            raise ParseError(ERR_RANGE, "decimal out of range")
        if negative:
            decimal = -decimal
        # -0.0 -> 0.0
        return decimal + 0.0, off

    integer = int(int_digits)
    if negative:
        integer = -integer
    if integer < INTEGER_MIN or integer > INTEGER_MAX:
        raise ParseError(ERR_RANGE, "integer out of range")
    return integer, off


def _parse_string(s: str, off: int) -> Tuple[str, int]:
    off += 1  # opening quote
    chars: List[str] = []
    while off < len(s):
        c = s[off]
        off += 1
        if c == '"':
            return "".join(chars), off
        if c == "\\":
            if off >= len(s):
                raise ParseError(ERR_SYNTAX, "unterminated escape in string")
            c = s[off]
            off += 1
            if c != '"' and c != "\\":
                raise ParseError(ERR_SYNTAX, "invalid escape sequence \\{}".format(c))
            chars.append(c)
        elif PRINTABLE_MIN <= ord(c) <= PRINTABLE_MAX:
            chars.append(c)
        else:
            raise ParseError(ERR_SYNTAX,
                             "invalid character U+{:04X} in string".format(ord(c)))
    raise ParseError(ERR_SYNTAX, "unterminated string")


def _parse_token(s: str, off: int) -> Tuple[Token, int]:
    if off >= len(s) or s[off] not in TOKEN_START_CHARS:
        raise ParseError(ERR_SYNTAX, "token must start with a letter or '*'")
    start = off
    off += 1
    # Tokens are not delimited: the first character outside the set ends them.
    while off < len(s) and s[off] in TOKEN_CHARS:
        off += 1
    return Token(s[start:off]), off


def _parse_binary(s: str, off: int) -> Tuple[Binary, int]:
    off += 1  # opening colon
    start = off
    while off < len(s) and s[off] != ":":
        if s[off] not in BASE64_CHARS:
            raise ParseError(ERR_SYNTAX,
                             "invalid base64 character {}".format(repr(s[off])))
        off += 1
    if off >= len(s):
        raise ParseError(ERR_SYNTAX, "unterminated byte sequence, expected ':'")
    text = s[start:off]
    try:
        b64decode_lenient(text)
    except binascii.Error:
        raise ParseError(ERR_RANGE, "invalid base64 encoding")
    return Binary(text), off + 1


def _parse_boolean(s: str, off: int) -> Tuple[bool, int]:
    off += 1  # question mark
    if off >= len(s):
        raise ParseError(ERR_SYNTAX, "unexpected end of input after '?'")
    c = s[off]
    if c == "1":
        return True, off + 1
    if c == "0":
        return False, off + 1
    raise ParseError(ERR_SYNTAX, "invalid boolean {}".format(repr(c)))


def _parse_date(s: str, off: int) -> Tuple[Date, int]:
    value, off = _parse_number(s, off + 1)
    if isinstance(value, float):
        raise ParseError(ERR_SYNTAX, "date timestamp must be an integer")
    if value < DATE_MIN or value > DATE_MAX:
        raise ParseError(ERR_RANGE, "date out of supported range (years 1-9999)")
    return Date(value), off


def _parse_display_string(s: str, off: int) -> Tuple[DisplayString, int]:
    if s[off:off + 2] != '%"':
        raise ParseError(ERR_SYNTAX, "expected '%\"' at start of display string")
    off += 2

    raw = bytearray()
    while off < len(s):
        c = s[off]
        off += 1
        if c == '"':
            try:
                text = bytes(raw).decode("utf-8", errors="strict")
            except UnicodeDecodeError:
                raise ParseError(ERR_RANGE, "invalid UTF-8 in display string")
            return DisplayString(text), off
        if c == "%":
            pair = s[off:off + 2]
            if len(pair) < 2 or pair[0] not in LC_HEX_DIGITS or pair[1] not in LC_HEX_DIGITS:
                raise ParseError(ERR_RANGE,
                                 "invalid percent-encoding {}".format(repr("%" + pair)))
            raw.append(int(pair, 16))
            off += 2
        elif PRINTABLE_MIN <= ord(c) <= PRINTABLE_MAX:
            raw.append(ord(c))
        else:
            raise ParseError(ERR_SYNTAX,
                             "invalid character U+{:04X} in display string".format(ord(c)))
    raise ParseError(ERR_SYNTAX, "unterminated display string")

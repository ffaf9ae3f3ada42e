"""Structured field constants — field types, numeric bounds and character classes.

RFC references: RFC 8941 §3 (types), §4.2 (parsing), RFC 9651 §3.3.7
(dates) and §3.3.8 (display strings).
"""

from __future__ import annotations

from string import ascii_letters, ascii_lowercase, digits

__rfc__ = "RFC 9651"

# ── Field types ──────────────────────────────────────────────
FIELD_LIST: str = "list"
FIELD_DICTIONARY: str = "dictionary"
FIELD_ITEM: str = "item"

FIELD_TYPES = (FIELD_LIST, FIELD_DICTIONARY, FIELD_ITEM)

# ── Numbers (§3.3.1, §3.3.2) ─────────────────────────────────
# Integers carry at most 15 digits; decimals at most 12 integer digits
# and 3 fractional digits.  Python ints are unbounded, so every path
# range-checks explicitly.
INTEGER_MAX: int = 999_999_999_999_999
INTEGER_MIN: int = -INTEGER_MAX
INTEGER_MAX_DIGITS: int = 15

DECIMAL_LIMIT: int = 10 ** 12            # exclusive bound on magnitude
DECIMAL_MAX_INT_DIGITS: int = 12
DECIMAL_MAX_FRAC_DIGITS: int = 3

# ── Dates (RFC 9651 §3.3.7) ──────────────────────────────────
# 0001-01-01T00:00:00Z through 9999-12-31T00:00:00Z.
DATE_MIN: int = -62_135_596_800
DATE_MAX: int = 253_402_214_400

# ── Character classes ────────────────────────────────────────
# Plain frozensets of one-character strings.  The cursor walks code
# points, so membership tests work for non-ASCII input too (and fail).
OWS = frozenset(" \t")
SP = " "

KEY_START_CHARS = frozenset(ascii_lowercase + "*")
KEY_CHARS = frozenset(ascii_lowercase + digits + "_-.*")

TCHARS = frozenset("!#$%&'*+-.^_`|~" + ascii_letters + digits)
TOKEN_START_CHARS = frozenset(ascii_letters + "*")
TOKEN_CHARS = TCHARS | frozenset(":/")

DIGITS = frozenset(digits)
LC_HEX_DIGITS = frozenset(digits + "abcdef")
BASE64_CHARS = frozenset(ascii_letters + digits + "+/=")

# Printable ASCII, the only characters allowed inside strings.
PRINTABLE_MIN: int = 0x20
PRINTABLE_MAX: int = 0x7E

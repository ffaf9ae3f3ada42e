"""Tagged bare-item variants and their factories.

Plain Python values cover most bare items:

    Integer  -> int          String  -> str
    Decimal  -> float        Boolean -> bool
               (or decimal.Decimal when serializing)

The four variants a plain value cannot express get a small immutable
wrapper each.  Wrappers compare equal only to the same variant with the
same payload, so Token("a") is neither "a" nor DisplayString("a").

Nothing here validates.  A Token with a space in it is a perfectly good
Python object; serialize() is where it gets rejected.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_SECOND = timedelta(seconds=1)


def b64decode_lenient(text: str) -> bytes:
    """Decode base64 text, tolerating missing "=" padding (RFC 8941 §4.2.7).

    Raises binascii.Error (a ValueError) on anything outside the alphabet
    or on an impossible length.
    """
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded, validate=True)


@dataclass(frozen=True)
class Token:
    lexeme: str


@dataclass(frozen=True)
class Binary:
    """A byte sequence, held as its base64 text.

    The text is the single source of truth: it is what the parser saw and
    what the serializer emits.  `decoded` is recomputed on every access.
    """

    base64_text: str

    @property
    def decoded(self) -> bytes:
        return b64decode_lenient(self.base64_text)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Binary":
        return cls(base64.b64encode(bytes(data)).decode("ascii"))


@dataclass(frozen=True)
class Date:
    """A point in time as integer seconds since 1970-01-01T00:00:00Z."""

    instant: int

    @property
    def datetime(self) -> datetime:
        return _EPOCH + timedelta(seconds=self.instant)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Date":
        # Naive datetimes are taken as UTC.
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return cls((dt - _EPOCH) // _ONE_SECOND)


@dataclass(frozen=True)
class DisplayString:
    text: str


# ── Factories ─────────────────────────────────────────────────

def make_token(lexeme: str) -> Token:
    return Token(lexeme)


def make_binary(base64_text: str) -> Binary:
    return Binary(base64_text)


def make_date(instant: int) -> Date:
    return Date(instant)


def make_display_string(text: str) -> DisplayString:
    return DisplayString(text)

"""Structured field error codes and exception classes.

Every failure surfaces as exactly one exception per call.  Parsing raises
ParseError, serialization raises SerializeError; both carry a `.code`
naming the kind of violation so callers (and the CLI) can branch on it
without matching message text.
"""

from __future__ import annotations

# ── Error codes ──────────────────────────────────────────────

ERR_SYNTAX: str = "ERR_SYNTAX"            # unexpected character, missing delimiter
ERR_RANGE: str = "ERR_RANGE"              # number/date bounds, base64, hex, UTF-8
ERR_TRAILING: str = "ERR_TRAILING"        # input left over after a full parse
ERR_SHAPE: str = "ERR_SHAPE"              # value shape does not fit the field type
ERR_INVALID: str = "ERR_INVALID"          # key/token/string/binary content rejected
ERR_FIELD_TYPE: str = "ERR_FIELD_TYPE"    # not "list", "dictionary" or "item"

ERROR_CODES = (
    ERR_SYNTAX,
    ERR_RANGE,
    ERR_TRAILING,
    ERR_SHAPE,
    ERR_INVALID,
    ERR_FIELD_TYPE,
)


class SfvError(ValueError):
    """Base exception for structured field processing errors.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code


class ParseError(SfvError):
    """Raised by parse() when the input text is not a valid structured field."""


class SerializeError(SfvError):
    """Raised by serialize() when a value tree cannot be written out."""

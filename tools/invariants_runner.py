#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Round-trip invariants (property tests) for the sfv parser and serializer.
#
# This runner:
# - generates random valid value trees (list / dictionary / item) within limits
# - checks parse(serialize(v)) == v
# - checks serialize(parse(serialize(v))) == serialize(v)
# - checks the test-suite JSON adapter preserves the serialization
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import json
import logging
import os
import random
import string
import sys
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

import sfv
from sfv import Binary, Date, DisplayString, Token
from sfv._constants import (
    DATE_MAX,
    DATE_MIN,
    FIELD_TYPES,
    INTEGER_MAX,
    INTEGER_MIN,
    KEY_CHARS,
    KEY_START_CHARS,
    TOKEN_CHARS,
    TOKEN_START_CHARS,
)

logger = logging.getLogger("invariants")

SEED = int(os.environ.get("SFV_SEED", "1337"))
TRIALS = int(os.environ.get("SFV_TRIALS", "2000"))
MAX_MEMBERS = int(os.environ.get("SFV_GEN_MAX_MEMBERS", "6"))
MAX_PARAMS = int(os.environ.get("SFV_GEN_MAX_PARAMS", "3"))
MAX_STR = int(os.environ.get("SFV_GEN_MAX_STR", "16"))
MAX_BYTES = int(os.environ.get("SFV_GEN_MAX_BYTES", "24"))

random.seed(SEED)

_PRINTABLE = [chr(c) for c in range(0x20, 0x7F)]
_KEY_START = sorted(KEY_START_CHARS)
_KEY_REST = sorted(KEY_CHARS)
_TOKEN_START = sorted(TOKEN_START_CHARS)
_TOKEN_REST = sorted(TOKEN_CHARS)


def rand_key() -> str:
    n = random.randint(0, 8)
    return random.choice(_KEY_START) + "".join(random.choice(_KEY_REST) for _ in range(n))


def rand_token() -> Token:
    n = random.randint(0, 10)
    return Token(random.choice(_TOKEN_START) + "".join(random.choice(_TOKEN_REST) for _ in range(n)))


def rand_decimal() -> float:
    # At most 12 integer digits and 3 fractional digits, so the text is exact.
    digits = random.randint(1, 12)
    int_part = "".join(random.choice(string.digits) for _ in range(digits))
    frac = "".join(random.choice(string.digits) for _ in range(random.randint(1, 3)))
    sign = "-" if random.random() < 0.3 else ""
    return float(sign + int_part + "." + frac) + 0.0


def rand_display_text() -> str:
    out = []
    for _ in range(random.randint(0, MAX_STR)):
        r = random.random()
        if r < 0.6:
            out.append(random.choice(_PRINTABLE))
        elif r < 0.7:
            out.append(chr(random.randint(0x00, 0x1F)))
        elif r < 0.9:
            out.append(chr(random.randint(0xA0, 0xD7FF)))  # exclude surrogates
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)


def gen_bare() -> Any:
    r = random.random()
    if r < 0.20:
        return random.randint(INTEGER_MIN, INTEGER_MAX)
    if r < 0.35:
        return rand_decimal()
    if r < 0.50:
        return "".join(random.choice(_PRINTABLE) for _ in range(random.randint(0, MAX_STR)))
    if r < 0.65:
        return rand_token()
    if r < 0.75:
        data = bytes(random.getrandbits(8) for _ in range(random.randint(0, MAX_BYTES)))
        return Binary.from_bytes(data)
    if r < 0.85:
        return random.random() < 0.5
    if r < 0.93:
        return Date(random.randint(DATE_MIN, DATE_MAX))
    return DisplayString(rand_display_text())


def gen_params() -> Dict[str, Any]:
    return {rand_key(): gen_bare() for _ in range(random.randint(0, MAX_PARAMS))}


def gen_item() -> Dict[str, Any]:
    return {"value": gen_bare(), "parameters": gen_params()}


def gen_member() -> Dict[str, Any]:
    if random.random() < 0.2:
        items = [gen_item() for _ in range(random.randint(0, MAX_MEMBERS))]
        return {"value": items, "parameters": gen_params()}
    return gen_item()


def gen_value(field_type: str) -> Any:
    if field_type == sfv.FIELD_LIST:
        return [gen_member() for _ in range(random.randint(0, MAX_MEMBERS))]
    if field_type == sfv.FIELD_DICTIONARY:
        return {rand_key(): gen_member() for _ in range(random.randint(0, MAX_MEMBERS))}
    return gen_item()


def report(label: str, field_type: str, value: Any, detail: str) -> None:
    logger.error("INVARIANT FAIL: %s (%s)", label, field_type)
    logger.error("VALUE: %s", json.dumps(sfv.to_json(value, field_type), ensure_ascii=False)[:2000])
    logger.error("DETAIL: %s", detail)


def check(field_type: str, value: Any) -> bool:
    text = sfv.serialize(value, field_type)

    # (1) parse inverts serialize
    parsed = sfv.parse(text, field_type)
    if parsed != value:
        report("parse(serialize(v)) != v", field_type, value, repr(text))
        return False

    # (2) serialization is idempotent
    again = sfv.serialize(parsed, field_type)
    if again != text:
        report("serialization not idempotent", field_type, value, "{!r} vs {!r}".format(text, again))
        return False

    # (3) JSON adapter keeps the value
    obj = json.loads(json.dumps(sfv.to_json(parsed, field_type)))
    via_json = sfv.serialize(sfv.from_json(obj, field_type), field_type)
    if via_json != text:
        report("JSON adapter changed value", field_type, value, "{!r} vs {!r}".format(text, via_json))
        return False
    return True


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    counts: Dict[str, int] = {t: 0 for t in FIELD_TYPES}
    types: List[str] = list(FIELD_TYPES)

    for t in range(TRIALS):
        field_type = random.choice(types)
        value = gen_value(field_type)
        try:
            ok = check(field_type, value)
        except sfv.SfvError as e:
            report("valid value rejected [{}]".format(e.code), field_type, value, str(e))
            ok = False
        if not ok:
            logger.error("trial %d, seed %d", t, SEED)
            return 1
        counts[field_type] += 1
        if (t + 1) % 500 == 0:
            logger.info("%d/%d trials passed", t + 1, TRIALS)

    logger.info("OK: invariants passed for TRIALS=%d seed=%d (%s)", TRIALS, SEED,
                ", ".join("{}={}".format(k, v) for k, v in counts.items()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

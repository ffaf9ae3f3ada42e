"""Structured field conformance suite.

Runs every vector in conformance/vectors.json.  A vector names a field
type and one or more raw header lines (joined with ", " the way an HTTP
stack combines repeated fields), and either expects a parse failure or
gives the parsed value in test-suite JSON plus, optionally, the
canonical serialization when it differs from the input.

Usage:
    python tests/test_conformance.py [--vectors-dir DIR]
    python -m pytest tests/test_conformance.py -v
    SFV_VECTORS_DIR=/path/to/vectors python tests/test_conformance.py
"""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
import unittest
from typing import List, Optional, Tuple

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sfv import ParseError, SfvError, from_json, parse, serialize, to_json

# ── Locate conformance data ───────────────────────────────────

_VECTORS_DIR: Optional[str] = os.environ.get("SFV_VECTORS_DIR", None)
_VECTORS_FILE = "vectors.json"


def _find_vectors_dir() -> str:
    if _VECTORS_DIR:
        return _VECTORS_DIR
    candidates = [
        os.path.join(os.path.dirname(__file__), "..", "conformance"),
        os.path.join(os.path.dirname(__file__), "conformance"),
    ]
    for d in candidates:
        if os.path.isfile(os.path.join(d, _VECTORS_FILE)):
            return d
    raise FileNotFoundError(
        "Cannot find conformance vectors. Set SFV_VECTORS_DIR or --vectors-dir."
    )


def _load_vectors() -> Tuple[List[dict], str]:
    """Load vectors.  Returns (vectors, version)."""
    path = os.path.join(_find_vectors_dir(), _VECTORS_FILE)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data["vectors"], data.get("version", "?")


def _run_vector(vec: dict) -> Optional[str]:
    """Execute one vector.  Returns None on success, else a failure reason."""
    field_type = vec["header_type"]
    raw = ", ".join(vec["raw"])

    if vec.get("must_fail"):
        try:
            tree = parse(raw, field_type)
        except ParseError:
            return None
        return "expected parse failure, got {!r}".format(tree)

    try:
        got = to_json(parse(raw, field_type), field_type)
    except SfvError as e:
        return "parse raised [{}]: {}".format(e.code, e)
    if got != vec["expected"]:
        return "parsed {} expected {}".format(got, vec["expected"])

    canonical = vec.get("canonical", [raw])[0]
    try:
        text = serialize(from_json(vec["expected"], field_type), field_type)
    except SfvError as e:
        return "serialize raised [{}]: {}".format(e.code, e)
    if text != canonical:
        return "serialized {!r} expected {!r}".format(text, canonical)
    return None


def _test_name(name: str) -> str:
    return "test_" + re.sub(r"[^0-9a-zA-Z]+", "_", name).strip("_").lower()


# ── unittest integration ──────────────────────────────────────

class ConformanceTests(unittest.TestCase):
    """Dynamically generated: one test method per vector."""
    pass


def _make_test(vec: dict):
    def test_fn(self: unittest.TestCase) -> None:
        failure = _run_vector(vec)
        self.assertIsNone(failure, "{}: {}".format(vec["name"], failure))
    return test_fn


# Attach test methods at import time.
try:
    _vectors, _version = _load_vectors()
    for _vec in _vectors:
        _name = _test_name(_vec["name"])
        _fn = _make_test(_vec)
        _fn.__name__ = _name
        _fn.__qualname__ = "ConformanceTests.{}".format(_name)
        setattr(ConformanceTests, _name, _fn)
except FileNotFoundError:
    pass


# ── Standalone CLI runner ─────────────────────────────────────

def main() -> None:
    global _VECTORS_DIR

    parser = argparse.ArgumentParser(description="sfv conformance runner")
    parser.add_argument("--vectors-dir", default=None,
                        help="Directory containing vectors.json")
    args, _remaining = parser.parse_known_args()

    if args.vectors_dir:
        _VECTORS_DIR = args.vectors_dir
        os.environ["SFV_VECTORS_DIR"] = args.vectors_dir

    vectors, version = _load_vectors()

    failures: List[Tuple[str, str]] = []
    for vec in vectors:
        failure = _run_vector(vec)
        if failure is not None:
            failures.append((vec["name"], failure))

    total = len(vectors)
    print("CONFORMANCE (v{}): {}/{} PASS".format(version, total - len(failures), total))
    for name, failure in failures:
        print("  FAIL {}: {}".format(name, failure))

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()

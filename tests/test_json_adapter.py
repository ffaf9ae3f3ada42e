"""Tests for the test-suite JSON adapter."""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sfv import (
    ERR_FIELD_TYPE,
    ERR_SHAPE,
    Binary,
    Date,
    DisplayString,
    SfvError,
    Token,
    from_json,
    parse,
    serialize,
    to_json,
)


class TestToJson(unittest.TestCase):
    def test_item(self):
        tree = parse("42;foo=bar;baz", "item")
        self.assertEqual(to_json(tree, "item"),
                         [42, [["foo", {"__type": "token", "value": "bar"}], ["baz", True]]])

    def test_list_with_inner_list(self):
        tree = parse("(1 2);a=?0, 3", "list")
        self.assertEqual(to_json(tree, "list"),
                         [[[[1, []], [2, []]], [["a", False]]], [3, []]])

    def test_dictionary_keeps_order(self):
        tree = parse("b=1, a", "dictionary")
        self.assertEqual(to_json(tree, "dictionary"), [["b", [1, []]], ["a", [True, []]]])

    def test_tagged_values(self):
        self.assertEqual(to_json({"value": Binary("aGVsbG8="), "parameters": {}}, "item"),
                         [{"__type": "binary", "value": "NBSWY3DP"}, []])
        self.assertEqual(to_json({"value": Date(5), "parameters": {}}, "item"),
                         [{"__type": "date", "value": 5}, []])
        self.assertEqual(to_json({"value": DisplayString("ü"), "parameters": {}}, "item"),
                         [{"__type": "displaystring", "value": "ü"}, []])

    def test_unknown_field_type(self):
        with self.assertRaises(SfvError) as ctx:
            to_json([], "header")
        self.assertEqual(ctx.exception.code, ERR_FIELD_TYPE)


class TestFromJson(unittest.TestCase):
    def test_item(self):
        self.assertEqual(
            from_json([{"__type": "token", "value": "a"}, [["q", 0.5]]], "item"),
            {"value": Token("a"), "parameters": {"q": 0.5}},
        )

    def test_binary_is_canonical_base64(self):
        tree = from_json([{"__type": "binary", "value": "NBSWY3DP"}, []], "item")
        self.assertEqual(tree["value"], Binary("aGVsbG8="))

    def test_unpadded_base32(self):
        tree = from_json([{"__type": "binary", "value": "ME"}, []], "item")
        self.assertEqual(tree["value"].decoded, b"a")

    def test_dictionary(self):
        tree = from_json([["a", [1, []]], ["b", [[[2, []]], [["x", True]]]]], "dictionary")
        self.assertEqual(serialize(tree, "dictionary"), "a=1, b=(2);x")

    def test_list_round_trip(self):
        text = 'a;q=0.5, (1 "x");y=@0, %"%c3%bc", :AP8=:'
        obj = to_json(parse(text, "list"), "list")
        self.assertEqual(serialize(from_json(obj, "list"), "list"), text)

    def test_bad_shapes(self):
        cases = [
            ({"a": 1}, "list"),
            ({"a": 1}, "dictionary"),
            ([["a"]], "dictionary"),
            ([1], "item"),
            ([1, {"a": 1}], "item"),
            ([{"__type": "nope", "value": 1}, []], "item"),
            ([{"__type": "binary", "value": "!!"}, []], "item"),
            ([{"__type": "binary", "value": 7}, []], "item"),
        ]
        for obj, field_type in cases:
            with self.subTest(obj=obj):
                with self.assertRaises(SfvError) as ctx:
                    from_json(obj, field_type)
                self.assertEqual(ctx.exception.code, ERR_SHAPE)


if __name__ == "__main__":
    unittest.main()

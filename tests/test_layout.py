from __future__ import annotations

import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from xsdvi.layout import LayoutContext, layout_tree, measure, word_wrap
from xsdvi.symbols import (
    Any,
    AnyAttribute,
    Attribute,
    Element,
    Field,
    Key,
    Keyref,
    Loop,
    Schema,
    Selector,
    Sequence,
    Unique,
)


class WordWrapTests(unittest.TestCase):
    def test_long_word_is_hard_broken(self) -> None:
        self.assertEqual(word_wrap("a" * 50, 10), "\n".join(["a" * 10] * 5))

    def test_short_lines_are_untouched(self) -> None:
        self.assertEqual(word_wrap("short", 10), "short")
        self.assertEqual(word_wrap("abcdefghij", 10), "abcdefghij")

    def test_breaks_at_last_space_before_boundary(self) -> None:
        self.assertEqual(word_wrap("hello world foo", 11), "hello world\nfoo")
        self.assertEqual(word_wrap("The quick brown fox jumps", 10), "The quick\nbrown fox\njumps")

    def test_space_then_long_word(self) -> None:
        self.assertEqual(word_wrap("ab cdefghijklmnop", 5), "ab\ncdefg\nhijkl\nmnop")

    def test_existing_newlines_are_wrapped_separately(self) -> None:
        self.assertEqual(word_wrap("line one\nline two", 20), "line one\nline two")
        self.assertEqual(word_wrap("abc\n\ndef", 2), "ab\nc\n\nde\nf")

    def test_non_positive_width_leaves_text(self) -> None:
        self.assertEqual(word_wrap("some text", 0), "some text")


class MeasureTests(unittest.TestCase):
    def test_element_width_takes_widest_line(self) -> None:
        self.assertEqual(measure(Element(name="A")), (81, 46))
        self.assertEqual(measure(Element(name="b", type="type: xs:string")), (105, 46))
        self.assertEqual(measure(Element(name="Body", substitution="Head")), (147, 46))

    def test_minimum_width(self) -> None:
        self.assertEqual(measure(Sequence()), (60, 31))
        self.assertEqual(measure(Sequence(cardinality="0..∞")), (60, 31))
        self.assertEqual(measure(Field(xpath="@sku")), (60, 31))
        self.assertEqual(measure(Loop()), (60, 21))
        self.assertEqual(measure(Any(namespace="any NS", cardinality="0..∞")), (60, 46))
        self.assertEqual(measure(AnyAttribute(namespace="##other")), (60, 46))

    def test_per_kind_extras(self) -> None:
        self.assertEqual(measure(Attribute(name="id")), (93, 46))
        self.assertEqual(measure(Key(name="ProductKey")), (80, 31))
        self.assertEqual(measure(Unique(name="OrderUnique")), (89, 31))
        self.assertEqual(
            measure(Keyref(name="ProductReference", refer="tns:ProductKey")), (119, 46)
        )
        self.assertEqual(measure(Selector(xpath="product")), (63, 31))
        self.assertEqual(measure(Schema()), (63, 21))


class PlacementTests(unittest.TestCase):
    def _tree(self):
        root = Element(name="R")
        first = Sequence()
        deep_a = Element(name="a")
        deep_b = Element(name="b")
        second = Attribute(name="id")
        root.add_child(first)
        first.add_child(deep_a)
        first.add_child(deep_b)
        root.add_child(second)
        return root, first, deep_a, deep_b, second

    def test_highest_y_runs_through_the_whole_pass(self) -> None:
        root, first, deep_a, deep_b, second = self._tree()
        context = layout_tree(root)

        self.assertEqual((root.x, root.y), (20, 50))
        self.assertEqual((first.x, first.y), (146, 50))
        self.assertEqual((deep_a.x, deep_a.y), (251, 50))
        self.assertEqual((deep_b.x, deep_b.y), (251, 121))
        self.assertEqual((second.x, second.y), (146, 192))
        self.assertEqual(context.highest_y, 192)

    def test_start_row_override(self) -> None:
        root, *_ = self._tree()
        layout_tree(root, start_y=20)
        self.assertEqual(root.y, 20)
        self.assertEqual(root.children[1].y, 162)

    def test_schema_root_is_pinned(self) -> None:
        schema = Schema()
        element = Element(name="A")
        schema.add_child(element)
        layout_tree(schema, start_y=20)
        self.assertEqual((schema.x, schema.y, schema.width, schema.height), (20, 50, 63, 21))
        self.assertEqual((element.x, element.y), (128, 50))

    def test_layout_can_be_rerun(self) -> None:
        root, *_ = self._tree()
        layout_tree(root)
        first_pass = [(s.x, s.y, s.width, s.height) for s in root.walk()]
        layout_tree(root)
        self.assertEqual([(s.x, s.y, s.width, s.height) for s in root.walk()], first_pass)


class DescriptionTests(unittest.TestCase):
    def test_additional_height_accumulates_across_strings(self) -> None:
        root = Element(name="Doc", description=["a" * 30, "short"])
        context = layout_tree(root)

        self.assertEqual(root.description_lines, ["a" * 14, "a" * 14, "aa", "short"])
        self.assertEqual(root.additional_height, 14 * 3 + 14 * 4)
        self.assertEqual(context.additional_height_rest, 98)
        self.assertEqual(root.description_height_rest, 98)
        self.assertEqual((context.prev_x, context.prev_y), (20, 50))

    def test_rest_carries_to_later_siblings(self) -> None:
        root = Element(name="Doc")
        first = Attribute(name="id", description=["x"])
        second = Attribute(name="zz", description=["y"])
        root.add_child(first)
        root.add_child(second)
        context = layout_tree(root)

        self.assertEqual(first.additional_height, 14)
        self.assertEqual(first.description_height_rest, 14)
        self.assertEqual(first.description_x, 146)
        self.assertEqual(second.y, 121)
        self.assertEqual(second.description_height_rest, 14)
        self.assertEqual((context.prev_x, context.prev_y), (146, 121))

    def test_undocumented_kinds_are_skipped(self) -> None:
        selector = Selector(xpath="item", description=["never shown"])
        layout_tree(selector)
        self.assertEqual(selector.description_lines, [])
        self.assertEqual(selector.additional_height, 0)

    def test_context_starts_empty(self) -> None:
        self.assertEqual(LayoutContext(), LayoutContext(0, 0, 0, 0))


if __name__ == "__main__":
    unittest.main()

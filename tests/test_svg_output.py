from __future__ import annotations

import sys
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest import mock

from PIL import ImageFont

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from xsdvi import (
    EmptySchemaError,
    RootNotFoundError,
    SchemaLoadError,
    generate_svg,
    render_png,
    resolve_schema,
    xsd_to_png,
    xsd_to_svg,
    xsd_to_svg_per_element,
)
from xsdvi.raster import _drawable
from xsdvi.svg import description_rows, text_rows

SVG = "{http://www.w3.org/2000/svg}"
XLINK_HREF = "{http://www.w3.org/1999/xlink}href"

SCHEMA = """
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
  <xs:element name="Order">
    <xs:annotation>
      <xs:documentation>A customer order with one or more lines.</xs:documentation>
    </xs:annotation>
    <xs:complexType>
      <xs:sequence>
        <xs:element name="line" type="xs:string" maxOccurs="unbounded"/>
        <xs:element ref="Note" minOccurs="0"/>
      </xs:sequence>
      <xs:attribute name="id" type="xs:ID" use="required"/>
    </xs:complexType>
    <xs:key name="LineKey">
      <xs:selector xpath="line"/>
      <xs:field xpath="."/>
    </xs:key>
  </xs:element>
  <xs:element name="Note" type="xs:string"/>
</xs:schema>
"""


def _png_size(blob: bytes) -> tuple[int, int]:
    if len(blob) < 24 or blob[:8] != b"\x89PNG\r\n\x1a\n":
        raise AssertionError("not a PNG payload")
    return int.from_bytes(blob[16:20], "big"), int.from_bytes(blob[20:24], "big")


class SvgStructureTests(unittest.TestCase):
    def setUp(self) -> None:
        self.svg_text = xsd_to_svg(SCHEMA, "Order")
        self.svg = ET.fromstring(self.svg_text)

    def _boxes(self):
        return [g for g in self.svg.iter(f"{SVG}g") if g.get("class") == "box"]

    def test_document_header_and_sections(self) -> None:
        self.assertTrue(self.svg_text.startswith('<?xml version="1.0" encoding="UTF-8"?>'))
        self.assertEqual(self.svg.tag, f"{SVG}svg")
        self.assertEqual(self.svg.find(f"{SVG}title").text, "XML Schema: Order")
        self.assertIn("function show(", self.svg.find(f"{SVG}script").text)
        defs = self.svg.find(f"{SVG}defs")
        self.assertIsNotNone(defs.find(f"{SVG}style"))
        self.assertEqual(
            sorted(symbol.get("id") for symbol in defs.iter(f"{SVG}symbol")), ["minus", "plus"]
        )
        menu = [g for g in self.svg.iter(f"{SVG}g") if g.get("id") == "menu"]
        self.assertEqual(len(menu), 1)

    def test_one_group_per_symbol_in_depth_first_order(self) -> None:
        root = resolve_schema(SCHEMA, "Order")
        expected = [symbol.code for symbol in root.walk()]
        self.assertEqual([g.get("id") for g in self._boxes()], expected)
        self.assertEqual(expected[:3], ["_1", "_1_1", "_1_1_1"])

    def test_root_box_placement_and_description_data(self) -> None:
        root_box = self._boxes()[0]
        self.assertEqual(root_box.get("transform"), "translate(20,50)")
        self.assertEqual(root_box.get("data-desc-height"), "42")
        self.assertEqual(root_box.get("data-desc-x"), "20")
        descriptions = [t.text for t in root_box.iter(f"{SVG}text") if t.get("class") == "desc"]
        self.assertEqual(descriptions, ["A customer", "order with one", "or more lines."])

    def test_toggles_only_on_parents(self) -> None:
        toggles = {use.get("id"): use for use in self.svg.iter(f"{SVG}use")}
        self.assertIn("s_1", toggles)
        self.assertEqual(toggles["s_1"].get(XLINK_HREF), "#minus")
        self.assertEqual(toggles["s_1"].get("onclick"), "show('_1')")
        self.assertNotIn("s_1_1_1", toggles)

    def test_element_boxes_link_to_their_anchor(self) -> None:
        links = [a.get("onclick") for a in self.svg.iter(f"{SVG}a")]
        self.assertTrue(any("#element_Order" in link for link in links))
        self.assertTrue(any("#element_Note" in link for link in links))

    def test_canvas_size_covers_every_box(self) -> None:
        root = resolve_schema(SCHEMA, "Order")
        generate_svg(root)
        right = max(symbol.x_end for symbol in root.walk())
        self.assertEqual(int(self.svg.get("width")), right + 40)

    def test_external_stylesheet(self) -> None:
        svg_text = xsd_to_svg(SCHEMA, "Order", embody_style=False, style_uri="xsdvi.css")
        self.assertIn('<?xml-stylesheet type="text/css" href="xsdvi.css"?>', svg_text)
        self.assertIsNone(ET.fromstring(svg_text).find(f"{SVG}defs/{SVG}style"))

    def test_one_node_only_hides_menu(self) -> None:
        svg = ET.fromstring(xsd_to_svg(SCHEMA, "Order", one_node_only=True))
        self.assertFalse(any(g.get("id") == "menu" for g in svg.iter(f"{SVG}g")))
        boxes = [g for g in svg.iter(f"{SVG}g") if g.get("class") == "box"]
        self.assertEqual(boxes[0].get("transform"), "translate(20,20)")

    def test_whole_schema_diagram(self) -> None:
        svg = ET.fromstring(xsd_to_svg(SCHEMA))
        self.assertEqual(svg.find(f"{SVG}title").text, "XML Schema")
        labels = ["".join(t.itertext()) for t in svg.iter(f"{SVG}text")]
        self.assertIn("/ schema", labels)
        schema_box = next(g for g in svg.iter(f"{SVG}g") if g.get("id") == "_1")
        self.assertEqual(schema_box.find(f"{SVG}rect").get("class"), "boxschema")
        self.assertEqual(schema_box.find(f"{SVG}use").get("id"), "s_1")


class TextRowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.root = resolve_schema(SCHEMA, "Order")
        generate_svg(self.root)
        self.by_kind = {}
        for symbol in self.root.walk():
            self.by_kind.setdefault(symbol.kind, []).append(symbol)

    def test_element_rows(self) -> None:
        line = self.by_kind["element"][1]
        rows = text_rows(line)
        self.assertEqual([row.y for row in rows], [27, 41, 59])
        self.assertEqual(rows[0].text, "line")
        self.assertEqual(rows[2].text, "1..∞")

    def test_attribute_and_key_rows(self) -> None:
        (attribute,) = self.by_kind["attribute"]
        self.assertEqual(text_rows(attribute)[0].prefix, "@")
        (key,) = self.by_kind["key"]
        self.assertEqual(text_rows(key)[0].text, "key: LineKey")

    def test_description_rows_follow_the_last_text_row(self) -> None:
        rows = description_rows(self.root)
        self.assertEqual([row.y for row in rows], [73, 87, 101])


class EntryPointErrorTests(unittest.TestCase):
    def test_unknown_root(self) -> None:
        with self.assertRaises(RootNotFoundError):
            xsd_to_svg(SCHEMA, "Invoice")

    def test_not_a_schema(self) -> None:
        with self.assertRaises(EmptySchemaError):
            xsd_to_svg("<catalog/>")

    def test_malformed(self) -> None:
        with self.assertRaises(SchemaLoadError):
            xsd_to_svg("<xs:schema")

    def test_per_element_diagrams(self) -> None:
        diagrams = xsd_to_svg_per_element(SCHEMA)
        self.assertEqual([name for name, _svg in diagrams], ["Order", "Note"])
        for _name, svg_text in diagrams:
            self.assertNotIn('id="menu"', svg_text)


class PngTests(unittest.TestCase):
    def test_png_bytes(self) -> None:
        blob = xsd_to_png(SCHEMA, "Order")
        width, height = _png_size(blob)
        self.assertGreater(width, 100)
        self.assertGreater(height, 100)

    def test_scale(self) -> None:
        base = _png_size(xsd_to_png(SCHEMA, "Order"))
        doubled = _png_size(xsd_to_png(SCHEMA, "Order", scale=2))
        self.assertEqual(doubled, (base[0] * 2, base[1] * 2))

    def test_scale_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            render_png(resolve_schema(SCHEMA, "Order"), scale=0)

    def test_bitmap_font_draws_unbounded_ranges(self) -> None:
        # "line" is 1..∞, which a Latin-1 bitmap font cannot encode as is.
        bitmap = ImageFont.load_default_imagefont()
        with mock.patch("xsdvi.raster._load_font", return_value=bitmap):
            blob = xsd_to_png(SCHEMA, "Order")
        self.assertGreater(_png_size(blob)[0], 100)
        self.assertEqual(_drawable("0..∞", bitmap), "0..inf")

    def test_bundled_font_when_no_candidate_is_installed(self) -> None:
        with mock.patch("xsdvi.raster.FONT_CANDIDATES", ("no-such-font-xsdvi.ttf",)):
            blob = xsd_to_png(SCHEMA, "Order")
        self.assertGreater(_png_size(blob)[0], 100)


if __name__ == "__main__":
    unittest.main()

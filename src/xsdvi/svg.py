"""SVG rendering of a laid-out symbol tree."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Callable, Dict, List, NamedTuple, Optional
from xml.sax.saxutils import quoteattr, unescape

from .layout import MAX_HEIGHT, X_INDENT, Y_INDENT, LINE_HEIGHT, layout_tree
from .resources import load_defined_symbols, load_menu_buttons, load_script, load_stylesheet
from .symbols import Symbol

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)

CANVAS_MARGIN = 40
HALF_HEIGHT = MAX_HEIGHT // 2

# Baseline of the row just above the first documentation line, per kind.
DESCRIPTION_TOP = {
    "element": 59,
    "attribute": 59,
    "any": 59,
    "any_attribute": 34,
    "sequence": 52,
    "choice": 52,
    "all": 52,
    "keyref": 41,
    "key": 27,
    "unique": 27,
}


class TextRow(NamedTuple):
    x: int
    y: int
    text: str
    css_class: Optional[str] = None
    prefix: Optional[str] = None


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def text_rows(symbol: Symbol) -> List[TextRow]:
    """The labelled rows drawn inside ``symbol``'s box, top to bottom."""
    kind = symbol.kind
    rows: List[TextRow] = []
    if kind == "element":
        if symbol.namespace:
            rows.append(TextRow(5, 13, symbol.namespace, "visible"))
        if symbol.name:
            rows.append(TextRow(5, 27, symbol.name, "strong elementlink"))
        if symbol.type:
            rows.append(TextRow(5, 41, symbol.type, "visible"))
        properties = []
        if symbol.cardinality:
            properties.append(symbol.cardinality)
        if symbol.substitution:
            properties.append(f"subst.: {symbol.substitution}")
        if symbol.nillable:
            properties.append("nillable: true")
        if symbol.abstract:
            properties.append("abstract: true")
        rows.append(TextRow(5, 59, ", ".join(properties)))
    elif kind == "attribute":
        if symbol.namespace:
            rows.append(TextRow(5, 13, symbol.namespace, "visible"))
        if symbol.name:
            rows.append(TextRow(5, 27, symbol.name, "strong", prefix="@"))
        if symbol.type:
            rows.append(TextRow(5, 41, symbol.type, "visible"))
        rows.append(TextRow(5, 59, symbol.constraint or ""))
    elif kind in ("sequence", "choice", "all"):
        if symbol.cardinality:
            rows.append(TextRow(5, 52, symbol.cardinality))
    elif kind == "any":
        if symbol.namespace:
            rows.append(TextRow(5, 13, symbol.namespace))
        rows.append(TextRow(5, 27, "<>", "strong"))
        if symbol.cardinality:
            rows.append(TextRow(5, 59, symbol.cardinality))
    elif kind == "any_attribute":
        if symbol.namespace:
            rows.append(TextRow(5, 13, symbol.namespace))
        rows.append(TextRow(5, 27, "@", "strong"))
    elif kind in ("key", "keyref", "unique"):
        if symbol.namespace:
            rows.append(TextRow(5, 13, symbol.namespace, "visible"))
        if symbol.name:
            rows.append(TextRow(5, 27, f"{kind}: {symbol.name}", "strong"))
        if kind == "keyref" and symbol.refer:
            rows.append(TextRow(5, 41, f"refer: {symbol.refer}", "visible"))
    elif kind in ("selector", "field"):
        rows.append(TextRow(5, 13, kind, "strong"))
        if symbol.xpath:
            rows.append(TextRow(5, 27, symbol.xpath, "visible"))
    elif kind == "loop":
        rows.append(TextRow(10, 27, "LOOP"))
    elif kind == "schema":
        rows.append(TextRow(5, 27, "schema", prefix="/ "))
    return rows


def description_rows(symbol: Symbol) -> List[TextRow]:
    y = DESCRIPTION_TOP.get(symbol.kind, 0)
    rows = []
    for line in symbol.description_lines:
        y += LINE_HEIGHT
        rows.append(TextRow(5, y, unescape(line), "desc"))
    return rows


def generate_svg(
    root: Symbol,
    *,
    embody_style: bool = True,
    style_uri: Optional[str] = None,
    hide_menu_buttons: bool = False,
) -> str:
    """Lay out ``root`` and render the whole tree as an SVG document."""
    layout_tree(root)
    symbols = list(root.walk())
    width = max(symbol.x_end for symbol in symbols) + CANVAS_MARGIN
    height = max(symbol.y + symbol.height + symbol.additional_height for symbol in symbols)
    height += CANVAS_MARGIN

    svg_root = ET.Element(
        _q("svg"), {"width": str(width), "height": str(height), "version": "1.1"}
    )
    ET.SubElement(svg_root, _q("title")).text = _title(root)
    script = ET.SubElement(svg_root, _q("script"), {"type": "text/ecmascript"})
    script.text = load_script()

    defs = ET.SubElement(svg_root, _q("defs"))
    if embody_style and not style_uri:
        style = ET.SubElement(defs, _q("style"), {"type": "text/css"})
        style.text = load_stylesheet()
    for definition in ET.fromstring(load_defined_symbols()):
        defs.append(definition)

    if not hide_menu_buttons:
        for item in ET.fromstring(load_menu_buttons()):
            svg_root.append(item)

    for symbol in symbols:
        _draw_symbol(svg_root, symbol)

    header = '<?xml version="1.0" encoding="UTF-8"?>\n'
    if style_uri and not embody_style:
        header += f'<?xml-stylesheet type="text/css" href={quoteattr(style_uri)}?>\n'
    return header + _pretty_xml(svg_root)


def write_css() -> str:
    return load_stylesheet()


def _title(root: Symbol) -> str:
    name = getattr(root, "name", None)
    return f"XML Schema: {name}" if name else "XML Schema"


def _draw_symbol(svg_root: ET.Element, symbol: Symbol) -> None:
    container = svg_root
    if symbol.kind == "element":
        container = ET.SubElement(
            svg_root,
            _q("a"),
            {
                "href": "#",
                "onclick": (
                    "window.parent.location.href = window.parent.location.href.split('#')[0] + "
                    f"'#element_{symbol.name}'"
                ),
            },
        )
    group = ET.SubElement(
        container,
        _q("g"),
        {
            "id": symbol.code,
            "class": "box",
            "transform": f"translate({symbol.x},{symbol.y})",
            "data-desc-height": str(symbol.additional_height),
            "data-desc-height-rest": str(symbol.description_height_rest),
            "data-desc-x": str(symbol.description_x),
        },
    )
    _SHAPES[symbol.kind](group, symbol)
    for row in text_rows(symbol) + description_rows(symbol):
        _emit_text(group, row)
    _draw_connection(group, symbol)
    _draw_toggle(group, symbol)


def _emit_text(group: ET.Element, row: TextRow) -> None:
    attrs = {"x": str(row.x), "y": str(row.y)}
    if row.css_class:
        attrs["class"] = row.css_class
    text = ET.SubElement(group, _q("text"), attrs)
    if row.prefix:
        tspan = ET.SubElement(text, _q("tspan"), {"class": "big"})
        tspan.text = row.prefix
        tspan.tail = row.text if row.prefix.endswith(" ") else f" {row.text}"
    else:
        text.text = row.text


def _rect(group: ET.Element, css_class: str, x: int, y: int, symbol: Symbol, rounded: bool) -> None:
    attrs = {
        "class": css_class,
        "x": str(x),
        "y": str(y),
        "width": str(symbol.width),
        "height": str(symbol.height),
    }
    if rounded:
        attrs["rx"] = "9"
    ET.SubElement(group, _q("rect"), attrs)


def _boxed(css_class: str, rounded: bool) -> Callable[[ET.Element, Symbol], None]:
    def draw(group: ET.Element, symbol: Symbol) -> None:
        _rect(group, "shadow", 3, 3, symbol, rounded)
        _rect(group, css_class, 0, 0, symbol, rounded)

    return draw


def _draw_element(group: ET.Element, symbol: Symbol) -> None:
    _boxed("boxelementoptional" if symbol.optional else "boxelement", False)(group, symbol)


def _draw_attribute(group: ET.Element, symbol: Symbol) -> None:
    _boxed("boxattribute1" if symbol.required else "boxattribute2", True)(group, symbol)


def _draw_wildcard(css_class: str, rounded: bool) -> Callable[[ET.Element, Symbol], None]:
    def draw(group: ET.Element, symbol: Symbol) -> None:
        _boxed(css_class, rounded)(group, symbol)
        for x in (6, 16, 26):
            ET.SubElement(
                group,
                _q("rect"),
                {"class": symbol.process_contents.value, "x": str(x), "y": "34", "width": "6", "height": "6"},
            )

    return draw


def _compositor_frame(group: ET.Element, symbol: Symbol) -> int:
    _rect(group, "boxcompositor", 0, 8, symbol, True)
    return symbol.width // 2


def _circle(group: ET.Element, cx: int, cy: int, empty: bool = False) -> None:
    attrs = {"cx": str(cx), "cy": str(cy), "r": "2"}
    if empty:
        attrs["class"] = "empty"
    ET.SubElement(group, _q("circle"), attrs)


def _draw_sequence(group: ET.Element, symbol: Symbol) -> None:
    mid = _compositor_frame(group, symbol)
    for number, cy in enumerate((14, 23, 32), start=1):
        _circle(group, mid + 12, cy)
        ET.SubElement(group, _q("text"), {"class": "small", "x": str(mid), "y": str(cy + 3)}).text = str(number)
    ET.SubElement(
        group, _q("line"), {"x1": str(mid + 12), "y1": "14", "x2": str(mid + 12), "y2": "32"}
    )


def _draw_choice(group: ET.Element, symbol: Symbol) -> None:
    mid = _compositor_frame(group, symbol)
    _circle(group, mid + 12, 14)
    _circle(group, mid + 12, 23, empty=True)
    _circle(group, mid + 12, 32, empty=True)
    ET.SubElement(
        group,
        _q("polyline"),
        {"points": f"{mid - 4},23 {mid + 4},23 {mid + 4},14 {mid + 10},14"},
    )


def _draw_all(group: ET.Element, symbol: Symbol) -> None:
    mid = _compositor_frame(group, symbol)
    for cy in (14, 23, 32):
        _circle(group, mid + 12, cy)
    ET.SubElement(
        group,
        _q("polyline"),
        {"points": f"{mid + 10},14 {mid + 4},14 {mid + 4},32 {mid + 10},32"},
    )
    ET.SubElement(group, _q("line"), {"x1": str(mid - 4), "y1": "23", "x2": str(mid + 10), "y2": "23"})


def _draw_loop(group: ET.Element, symbol: Symbol) -> None:
    _rect(group, "boxloop", 0, 12, symbol, True)
    mid = symbol.width // 2
    ET.SubElement(
        group, _q("polygon"), {"class": "filled", "points": f"{mid + 3},8 {mid - 2},12 {mid + 3},17"}
    )
    width = symbol.width
    ET.SubElement(
        group,
        _q("polygon"),
        {"class": "filled", "points": f"{width - 5},24 {width},19 {width + 5},24"},
    )


def _draw_schema(group: ET.Element, symbol: Symbol) -> None:
    _rect(group, "boxschema", 0, 12, symbol, False)


_SHAPES: Dict[str, Callable[[ET.Element, Symbol], None]] = {
    "element": _draw_element,
    "attribute": _draw_attribute,
    "sequence": _draw_sequence,
    "choice": _draw_choice,
    "all": _draw_all,
    "any": _draw_wildcard("boxany", False),
    "any_attribute": _draw_wildcard("boxanyattribute", True),
    "key": _boxed("boxkey", True),
    "keyref": _boxed("boxkeyref", True),
    "unique": _boxed("boxunique", True),
    "selector": _boxed("boxselector", True),
    "field": _boxed("boxfield", True),
    "loop": _draw_loop,
    "schema": _draw_schema,
}


def _draw_connection(group: ET.Element, symbol: Symbol) -> None:
    parent = symbol.parent
    if parent is None:
        return
    rail = 10 - X_INDENT
    if symbol.is_last_child() and not symbol.is_first_child():
        ET.SubElement(
            group,
            _q("line"),
            {
                "class": "connection",
                "id": f"p{symbol.code}",
                "x1": str(rail),
                "y1": str(parent.y - symbol.y + HALF_HEIGHT),
                "x2": str(rail),
                "y2": str(-15 - Y_INDENT),
            },
        )
        ET.SubElement(
            group,
            _q("path"),
            {"class": "connection", "d": f"M{rail},{-15 - Y_INDENT} Q{rail},15 0,{HALF_HEIGHT}"},
        )
    else:
        ET.SubElement(
            group,
            _q("line"),
            {
                "class": "connection",
                "x1": str(rail),
                "y1": str(HALF_HEIGHT),
                "x2": "0",
                "y2": str(HALF_HEIGHT),
            },
        )


def _draw_toggle(group: ET.Element, symbol: Symbol) -> None:
    if not symbol.has_children:
        return
    code = symbol.code
    ET.SubElement(
        group,
        _q("use"),
        {
            "x": str(symbol.width - 1),
            "y": str(HALF_HEIGHT - 6),
            f"{{{XLINK_NS}}}href": "#minus",
            "id": f"s{code}",
            "onclick": f"show('{code}')",
        },
    )


def _pretty_xml(element: ET.Element) -> str:
    ET.indent(element, space="  ")
    # indent() pads mixed-content text; keep "@ name" labels tight.
    for text_node in element.iter(_q("text")):
        if len(text_node) and text_node.text and not text_node.text.strip():
            text_node.text = None
    return ET.tostring(element, encoding="unicode")

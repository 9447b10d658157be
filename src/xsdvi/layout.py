"""Box placement, sizing and description wrapping for a resolved tree.

Positions are integers. Vertical placement is not scoped per parent: a
single "highest y" cursor runs through the whole depth-first pass, so a
node's first child sits level with it and every later sibling sits one
row below whatever was placed last, however deep that was.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from .symbols import DEFAULT_START_Y, Symbol

X_INDENT = 45
Y_INDENT = 25
MIN_WIDTH = 60
MAX_HEIGHT = 46
MID_HEIGHT = 31
MIN_HEIGHT = 21
ROOT_X = 20
LINE_HEIGHT = 14
WRAP_DIVISOR = 5.5
CHAR_WIDTH = 6

# Kinds that show documentation text under their box.
DESCRIBED_KINDS = frozenset(
    {
        "element",
        "attribute",
        "sequence",
        "choice",
        "all",
        "any",
        "any_attribute",
        "key",
        "keyref",
        "unique",
    }
)


@dataclass
class LayoutContext:
    """Placement state shared by every node of one layout pass."""

    highest_y: int = 0
    additional_height_rest: int = 0
    prev_x: int = 0
    prev_y: int = 0


def layout_tree(
    root: Symbol,
    context: Optional[LayoutContext] = None,
    *,
    start_y: Optional[int] = None,
) -> LayoutContext:
    """Position and size every symbol under ``root``.

    ``start_y`` overrides the root's own starting row. Returns the context
    so callers can inspect where the pass ended.
    """
    if context is None:
        context = LayoutContext()
    if start_y is not None:
        root.start_y = start_y
    _layout_symbol(root, context)
    return context


def _layout_symbol(symbol: Symbol, context: LayoutContext) -> None:
    prepare_box(symbol, context)
    if symbol.kind in DESCRIBED_KINDS:
        process_description(symbol, context)
    symbol.description_height_rest = context.additional_height_rest
    symbol.description_x = context.prev_x
    for child in symbol.children:
        _layout_symbol(child, context)


def prepare_box(symbol: Symbol, context: LayoutContext) -> None:
    if symbol.kind == "schema":
        symbol.x = ROOT_X
        symbol.y = DEFAULT_START_Y
    elif symbol.parent is not None:
        symbol.x = symbol.parent.x_end + X_INDENT
        if symbol.is_first_child():
            symbol.y = context.highest_y
        else:
            symbol.y = context.highest_y + MAX_HEIGHT + Y_INDENT
    else:
        symbol.x = ROOT_X
        symbol.y = symbol.start_y
    symbol.width, symbol.height = measure(symbol)
    context.highest_y = symbol.y


def process_description(symbol: Symbol, context: LayoutContext) -> None:
    if not symbol.description:
        return

    wrap_length = math.floor(symbol.width / WRAP_DIVISOR + 0.5)
    lines: List[str] = []
    symbol.additional_height = 0
    for text in symbol.description:
        lines.extend(_split_lines(word_wrap(text, wrap_length)))
        # Counts every line gathered so far, not just this string's.
        symbol.additional_height += LINE_HEIGHT * len(lines)
    symbol.description_lines = lines

    if symbol.y > context.prev_y and context.prev_y != 0:
        rest = max(context.additional_height_rest - symbol.height, 0)
        if rest < symbol.additional_height:
            rest = symbol.additional_height
        context.additional_height_rest = rest
    elif symbol.additional_height != 0:
        context.additional_height_rest = symbol.additional_height

    context.prev_x = symbol.x
    context.prev_y = symbol.y


def word_wrap(text: str, wrap_length: int) -> str:
    """Wrap ``text`` at ``wrap_length`` columns, breaking long words.

    Each existing line is wrapped on its own. A line shorter than
    ``wrap_length`` is left alone; otherwise it breaks at the last space at
    or before the boundary, dropping that space, or hard-breaks at the
    boundary when no such space exists.
    """
    if wrap_length < 1:
        return text

    result: List[str] = []
    for line in text.split("\n"):
        if not line:
            result.append("")
            continue
        if len(line) < wrap_length:
            result.append(line)
            continue

        offset = 0
        while offset < len(line):
            if len(line) - offset <= wrap_length:
                result.append(line[offset:])
                break
            space = line.rfind(" ", 0, offset + wrap_length + 1)
            if space >= offset:
                result.append(line[offset:space])
                offset = space + 1
            else:
                result.append(line[offset:offset + wrap_length])
                offset += wrap_length
    return "\n".join(result)


def _split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    while lines and not lines[-1]:
        lines.pop()
    return lines


# -- measurement ---------------------------------------------------------------

Measure = Union[str, int, None]


def _widest(*fields: Tuple[int, Measure, int]) -> int:
    width = MIN_WIDTH
    for base, value, extra in fields:
        if value is None:
            continue
        length = len(value) if isinstance(value, str) else value
        width = max(width, base + length * CHAR_WIDTH + extra)
    return width


def _element_box(symbol) -> Tuple[int, int]:
    width = _widest(
        (15, symbol.name, 3),
        (15, symbol.namespace, 0),
        (15, symbol.type, 0),
        (15, symbol.cardinality, 0),
        (15, 22 if symbol.substitution else 11, 0),
        (15, symbol.substitution, 8),
    )
    return width, MAX_HEIGHT


def _attribute_box(symbol) -> Tuple[int, int]:
    width = _widest(
        (15, symbol.name, 3),
        (15, symbol.namespace, 0),
        (15, symbol.type, 0),
        (15, 13, 0),
        (15, symbol.constraint, 0),
    )
    return width, MAX_HEIGHT


def _compositor_box(symbol) -> Tuple[int, int]:
    return _widest((15, symbol.cardinality, 0)), MID_HEIGHT


def _any_box(symbol) -> Tuple[int, int]:
    return _widest((15, symbol.namespace, 0), (15, symbol.cardinality, 0)), MAX_HEIGHT


def _any_attribute_box(symbol) -> Tuple[int, int]:
    return _widest((15, symbol.namespace, 0)), MAX_HEIGHT


def _key_box(symbol) -> Tuple[int, int]:
    return _widest((15, symbol.name, 5), (15, symbol.namespace, 0)), MID_HEIGHT


def _unique_box(symbol) -> Tuple[int, int]:
    return _widest((15, symbol.name, 8), (15, symbol.namespace, 0)), MID_HEIGHT


def _keyref_box(symbol) -> Tuple[int, int]:
    width = _widest((15, symbol.name, 8), (15, symbol.namespace, 0), (15, symbol.refer, 7))
    return width, MAX_HEIGHT


def _selector_box(symbol) -> Tuple[int, int]:
    return _widest((15, 8, 0), (15, symbol.xpath, 0)), MID_HEIGHT


def _field_box(symbol) -> Tuple[int, int]:
    return _widest((15, 5, 0), (15, symbol.xpath, 0)), MID_HEIGHT


def _loop_box(symbol) -> Tuple[int, int]:
    return _widest((25, 4, 0)), MIN_HEIGHT


def _schema_box(symbol) -> Tuple[int, int]:
    return _widest((15, 8, 0)), MIN_HEIGHT


_BOXES: Dict[str, Callable[[Symbol], Tuple[int, int]]] = {
    "element": _element_box,
    "attribute": _attribute_box,
    "sequence": _compositor_box,
    "choice": _compositor_box,
    "all": _compositor_box,
    "any": _any_box,
    "any_attribute": _any_attribute_box,
    "key": _key_box,
    "keyref": _keyref_box,
    "unique": _unique_box,
    "selector": _selector_box,
    "field": _field_box,
    "loop": _loop_box,
    "schema": _schema_box,
}


def measure(symbol: Symbol) -> Tuple[int, int]:
    """Width and height of ``symbol``'s box."""
    return _BOXES[symbol.kind](symbol)

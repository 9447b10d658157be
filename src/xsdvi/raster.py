"""PNG preview of a laid-out symbol tree, drawn with Pillow."""
from __future__ import annotations

import io
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .layout import MAX_HEIGHT, X_INDENT, layout_tree
from .schema import UNBOUNDED
from .svg import CANVAS_MARGIN, description_rows, text_rows
from .symbols import Symbol

FONT_SIZE = 11
LINE_COLOR = (128, 128, 128)
TEXT_COLOR = (0, 0, 0)
DESC_COLOR = (64, 64, 64)

_FILLS: Dict[str, Tuple[int, int, int]] = {
    "element": (255, 255, 214),
    "attribute": (214, 235, 255),
    "sequence": (255, 255, 255),
    "choice": (255, 255, 255),
    "all": (255, 255, 255),
    "any": (240, 240, 240),
    "any_attribute": (240, 240, 240),
    "key": (230, 255, 230),
    "keyref": (230, 255, 230),
    "unique": (230, 255, 230),
    "selector": (255, 255, 255),
    "field": (255, 255, 255),
    "loop": (255, 230, 230),
    "schema": (224, 224, 224),
}
_ROUNDED = {"attribute", "sequence", "choice", "all", "any_attribute", "key", "keyref", "unique", "selector", "field", "loop"}
_TOP_OFFSET = {"sequence": 8, "choice": 8, "all": 8, "loop": 12, "schema": 12}

# Tried in order before Pillow's bundled default font.
FONT_CANDIDATES = ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Arial.ttf", "Helvetica.ttc")


def _load_font(size: int) -> ImageFont.ImageFont:
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size)


def _drawable(text: str, font: ImageFont.ImageFont) -> str:
    """Bitmap fonts only encode Latin-1; TrueType fonts take any text."""
    if isinstance(font, ImageFont.FreeTypeFont):
        return text
    return text.replace(UNBOUNDED, "inf").encode("latin-1", "replace").decode("latin-1")


def render_png(root: Symbol, *, scale: float = 1.0, font_path: Optional[str] = None) -> bytes:
    """Lay out ``root`` and draw it to PNG bytes."""
    if scale <= 0:
        raise ValueError("scale must be > 0")
    layout_tree(root)
    symbols = list(root.walk())
    width = max(symbol.x_end for symbol in symbols) + CANVAS_MARGIN
    height = max(symbol.y + symbol.height + symbol.additional_height for symbol in symbols)
    height += CANVAS_MARGIN

    size = max(1, round(FONT_SIZE * scale))
    if font_path:
        font = ImageFont.truetype(font_path, size)
    else:
        font = _load_font(size)

    image = Image.new("RGB", (max(1, round(width * scale)), max(1, round(height * scale))), "white")
    draw = ImageDraw.Draw(image)

    def pt(x: float, y: float) -> Tuple[int, int]:
        return round(x * scale), round(y * scale)

    for symbol in symbols:
        top = symbol.y + _TOP_OFFSET.get(symbol.kind, 0)
        box = [pt(symbol.x, top), pt(symbol.x_end, top + symbol.height)]
        fill = _FILLS.get(symbol.kind, (255, 255, 255))
        if symbol.kind in _ROUNDED:
            draw.rounded_rectangle(box, radius=max(1, round(9 * scale)), fill=fill, outline=TEXT_COLOR)
        else:
            draw.rectangle(box, fill=fill, outline=TEXT_COLOR)

        if symbol.parent is not None:
            mid_y = symbol.y + MAX_HEIGHT // 2
            parent_mid_y = symbol.parent.y + MAX_HEIGHT // 2
            rail = symbol.x + 10 - X_INDENT
            draw.line([pt(rail, parent_mid_y), pt(rail, mid_y), pt(symbol.x, mid_y)], fill=LINE_COLOR)

        for row in text_rows(symbol):
            label = f"{row.prefix.strip()} {row.text}" if row.prefix else row.text
            draw.text(
                pt(symbol.x + row.x, symbol.y + row.y - FONT_SIZE),
                _drawable(label, font),
                fill=TEXT_COLOR,
                font=font,
            )
        for row in description_rows(symbol):
            draw.text(
                pt(symbol.x + row.x, symbol.y + row.y - FONT_SIZE),
                _drawable(row.text, font),
                fill=DESC_COLOR,
                font=font,
            )

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()

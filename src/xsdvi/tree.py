"""Cursor-driven construction of the presentation tree."""
from __future__ import annotations

from typing import Optional

from .symbols import Symbol


class TreeStructureError(RuntimeError):
    """Raised when the builder is driven out of order."""


class TreeBuilder:
    """Turns a stream of append/ascend calls into a parent/child tree.

    ``append`` attaches a symbol under the cursor and moves the cursor onto
    it; ``ascend`` moves the cursor back to the parent. Every ``append`` is
    paired with exactly one ``ascend``.
    """

    def __init__(self) -> None:
        self.root: Optional[Symbol] = None
        self.cursor: Optional[Symbol] = None

    def set_root(self, symbol: Symbol) -> None:
        symbol.parent = None
        self.root = symbol
        self.cursor = symbol

    def append(self, symbol: Symbol) -> None:
        if self.cursor is None:
            raise TreeStructureError(
                f"cannot append {symbol.kind} symbol: no root set or cursor already above the root"
            )
        self.cursor.add_child(symbol)
        self.cursor = symbol

    def ascend(self) -> None:
        if self.cursor is None:
            raise TreeStructureError("cannot ascend above the root")
        self.cursor = self.cursor.parent

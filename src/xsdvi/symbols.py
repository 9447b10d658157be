"""Presentation-tree nodes, one class per diagram box kind."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar, Iterator, List, Optional

DEFAULT_START_Y = 50


class ProcessContents(enum.Enum):
    STRICT = "strict"
    SKIP = "skip"
    LAX = "lax"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ProcessContents":
        for member in cls:
            if member.value == value:
                return member
        return cls.LAX


@dataclass(eq=False)
class Symbol:
    """Common geometry and tree links shared by every box kind.

    ``x``, ``y``, ``width``, ``height`` and the description fields are
    written by the layout pass; everything else is filled in by the
    resolver before layout runs. Symbols compare by identity.
    """

    kind: ClassVar[str] = "symbol"

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    start_y: int = DEFAULT_START_Y
    description: List[str] = field(default_factory=list)
    description_lines: List[str] = field(default_factory=list)
    additional_height: int = 0
    description_height_rest: int = 0
    description_x: int = 0
    children: List["Symbol"] = field(default_factory=list, repr=False)
    parent: Optional["Symbol"] = field(default=None, repr=False)

    def add_child(self, child: "Symbol") -> None:
        self.children.append(child)
        child.parent = self

    @property
    def has_parent(self) -> bool:
        return self.parent is not None

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def index(self) -> int:
        """1-based position among the parent's children."""
        if self.parent is None:
            return 1
        for position, sibling in enumerate(self.parent.children, start=1):
            if sibling is self:
                return position
        raise ValueError("symbol is not among its parent's children")

    def is_first_child(self) -> bool:
        return self.parent is None or self.parent.children[0] is self

    def is_last_child(self) -> bool:
        return self.parent is None or self.parent.children[-1] is self

    @property
    def x_end(self) -> int:
        return self.x + self.width

    @property
    def code(self) -> str:
        """Positional path such as ``_1_2_3`` used as the box id."""
        parts: List[str] = []
        node = self
        while node.parent is not None:
            parts.append(f"_{node.index}")
            node = node.parent
        parts.append("_1")
        return "".join(reversed(parts))

    def walk(self) -> Iterator["Symbol"]:
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(eq=False)
class Element(Symbol):
    kind: ClassVar[str] = "element"

    name: Optional[str] = None
    namespace: Optional[str] = None
    type: Optional[str] = None
    cardinality: Optional[str] = None
    nillable: bool = False
    abstract: bool = False
    substitution: Optional[str] = None

    @property
    def optional(self) -> bool:
        return bool(self.cardinality) and self.cardinality.startswith("0")


@dataclass(eq=False)
class Attribute(Symbol):
    kind: ClassVar[str] = "attribute"

    name: Optional[str] = None
    namespace: Optional[str] = None
    type: Optional[str] = None
    required: bool = False
    constraint: Optional[str] = None


@dataclass(eq=False)
class Sequence(Symbol):
    kind: ClassVar[str] = "sequence"

    cardinality: Optional[str] = None


@dataclass(eq=False)
class Choice(Symbol):
    kind: ClassVar[str] = "choice"

    cardinality: Optional[str] = None


@dataclass(eq=False)
class All(Symbol):
    kind: ClassVar[str] = "all"

    cardinality: Optional[str] = None


@dataclass(eq=False)
class Any(Symbol):
    kind: ClassVar[str] = "any"

    namespace: Optional[str] = None
    process_contents: ProcessContents = ProcessContents.STRICT
    cardinality: Optional[str] = None


@dataclass(eq=False)
class AnyAttribute(Symbol):
    kind: ClassVar[str] = "any_attribute"

    namespace: Optional[str] = None
    process_contents: ProcessContents = ProcessContents.STRICT


@dataclass(eq=False)
class Key(Symbol):
    kind: ClassVar[str] = "key"

    name: Optional[str] = None
    namespace: Optional[str] = None


@dataclass(eq=False)
class Keyref(Symbol):
    kind: ClassVar[str] = "keyref"

    name: Optional[str] = None
    namespace: Optional[str] = None
    refer: Optional[str] = None


@dataclass(eq=False)
class Unique(Symbol):
    kind: ClassVar[str] = "unique"

    name: Optional[str] = None
    namespace: Optional[str] = None


@dataclass(eq=False)
class Selector(Symbol):
    kind: ClassVar[str] = "selector"

    xpath: Optional[str] = None


@dataclass(eq=False)
class Field(Symbol):
    kind: ClassVar[str] = "field"

    xpath: Optional[str] = None


@dataclass(eq=False)
class Loop(Symbol):
    """Stands in for an element reference that would re-enter itself."""

    kind: ClassVar[str] = "loop"


@dataclass(eq=False)
class Schema(Symbol):
    kind: ClassVar[str] = "schema"

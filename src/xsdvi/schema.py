"""Schema document loading and stateless XSD helpers."""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple
from xml.sax.saxutils import escape

XS_NS = "http://www.w3.org/2001/XMLSchema"
XML_NS = "http://www.w3.org/XML/1998/namespace"
NS = {"xs": XS_NS}

UNBOUNDED = "∞"

BUILTIN_TYPES = frozenset(
    """
    string boolean decimal float double duration dateTime
    time date gYearMonth gYear gMonthDay gDay gMonth
    hexBinary base64Binary anyURI QName NOTATION
    normalizedString token language NMTOKEN NMTOKENS
    Name NCName ID IDREF IDREFS ENTITY ENTITIES
    integer nonPositiveInteger negativeInteger long int
    short byte nonNegativeInteger unsignedLong unsignedInt
    unsignedShort unsignedByte positiveInteger
    anyType anySimpleType anyAtomicType
    """.split()
)


class SchemaLoadError(ValueError):
    """Raised when schema source is not well-formed XML."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


@dataclass(frozen=True)
class SchemaModel:
    """A parsed schema document.

    ``root`` is the ``xs:schema`` element, or ``None`` when the document has
    no schema root. Everything downstream treats a ``None`` root as an empty
    schema rather than an error.
    """

    root: Optional[ET.Element]
    target_namespace: Optional[str] = None
    # namespace URI -> the prefix the source first bound it to
    prefixes: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)
    # element -> the (prefix, uri) declarations written on that element
    declarations: Dict[ET.Element, List[Tuple[str, str]]] = field(
        default_factory=dict, repr=False, compare=False
    )

    def documentation(self, node: ET.Element) -> List[str]:
        return documentation(node, self.prefixes, self.declarations)

    def global_elements(self) -> List[ET.Element]:
        if self.root is None:
            return []
        return self.root.findall("xs:element", NS)

    def iter_named(self, local: str) -> Iterator[ET.Element]:
        if self.root is None:
            return iter(())
        return (node for node in self.root.iter(xs(local)) if node.get("name") is not None)


def load_schema(source: str) -> SchemaModel:
    """Parse ``source`` and remember the namespace prefixes it declares.

    ElementTree drops prefixes in favour of Clark names; the prefix map is
    what lets documentation markup be written back the way it was authored.
    """
    parser = ET.XMLPullParser(events=("start-ns", "start"))
    try:
        parser.feed(source)
        parser.close()
    except ET.ParseError as exc:
        line, column = getattr(exc, "position", (None, None))
        location = (
            f" at line {line}, column {column}" if line is not None and column is not None else ""
        )
        raise SchemaLoadError(f"Failed to parse schema source{location}", line, column) from exc

    document: Optional[ET.Element] = None
    prefixes: Dict[str, str] = {XML_NS: "xml"}
    declarations: Dict[ET.Element, List[Tuple[str, str]]] = {}
    pending: List[Tuple[str, str]] = []
    for event, item in parser.read_events():
        if event == "start-ns":
            prefix, uri = item
            prefixes.setdefault(uri, prefix)
            pending.append((prefix, uri))
            continue
        if document is None:
            document = item
        if pending:
            declarations[item] = pending
            pending = []

    if document is None or document.tag != xs("schema"):
        return SchemaModel(None)
    return SchemaModel(document, document.get("targetNamespace"), prefixes, declarations)


def load_schema_file(path: Path) -> SchemaModel:
    return load_schema(Path(path).read_text(encoding="utf-8"))


def xs(local: str) -> str:
    return f"{{{XS_NS}}}{local}"


def local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def strip_prefix(qname: str) -> str:
    """``tns:AddressType`` -> ``AddressType``."""
    return qname.rsplit(":", 1)[-1]


def split_qname(qname: str) -> tuple[Optional[str], str]:
    if ":" in qname:
        prefix, local = qname.split(":", 1)
        return prefix, local
    return None, qname


def first_child(node: ET.Element, *locals_: str) -> Optional[ET.Element]:
    """First direct XSD child whose local name is one of ``locals_``."""
    wanted = {xs(name) for name in locals_}
    for child in node:
        if child.tag in wanted:
            return child
    return None


def _parse_int(value: str) -> int:
    match = re.match(r"^\s*[-+]?\d+", value)
    if match:
        return int(match.group(0))
    return 0


def cardinality(node: ET.Element) -> Optional[str]:
    """Occurrence range text for a particle, ``None`` for the default 1..1."""
    min_attr = node.get("minOccurs")
    min_occurs = _parse_int(min_attr) if min_attr is not None else 1
    max_occurs = node.get("maxOccurs", "1")
    if min_occurs == 1 and max_occurs == "1":
        return None
    if max_occurs == "unbounded":
        return f"{min_occurs}..{UNBOUNDED}"
    return f"{min_occurs}..{_parse_int(max_occurs)}"


def _prefixed(name: str, prefixes: Dict[str, str]) -> str:
    if not name.startswith("{"):
        return name
    uri, local = name[1:].split("}", 1)
    prefix = prefixes.get(uri)
    return f"{prefix}:{local}" if prefix else local


def _quoted(value: str) -> str:
    return '"' + escape(value, {'"': "&quot;"}) + '"'


def _markup(
    node: ET.Element,
    prefixes: Dict[str, str],
    declarations: Dict[ET.Element, List[Tuple[str, str]]],
) -> str:
    tag = _prefixed(node.tag, prefixes)
    attrs = "".join(
        f" xmlns:{prefix}={_quoted(uri)}" if prefix else f" xmlns={_quoted(uri)}"
        for prefix, uri in declarations.get(node, ())
    )
    attrs += "".join(
        f" {_prefixed(key, prefixes)}={_quoted(value)}"
        for key, value in node.attrib.items()
    )
    if not len(node) and not node.text:
        return f"<{tag}{attrs}/>"
    return f"<{tag}{attrs}>{_inner_markup(node, prefixes, declarations)}</{tag}>"


def _inner_markup(
    node: ET.Element,
    prefixes: Dict[str, str],
    declarations: Dict[ET.Element, List[Tuple[str, str]]],
) -> str:
    parts = [escape(node.text or "")]
    for child in node:
        parts.append(_markup(child, prefixes, declarations))
        parts.append(escape(child.tail or ""))
    return "".join(parts)


def documentation(
    node: ET.Element,
    prefixes: Optional[Dict[str, str]] = None,
    declarations: Optional[Dict[ET.Element, List[Tuple[str, str]]]] = None,
) -> List[str]:
    """Documentation strings from the node's own ``xs:annotation``.

    Text is kept in its serialized form: a literal ``<`` stays ``&lt;`` and
    counts as four characters when the text is wrapped later on. Nested
    markup keeps the prefixes in ``prefixes`` (URI to prefix, as returned on
    :class:`SchemaModel`), and ``xmlns`` attributes appear only on elements
    listed in ``declarations``.
    """
    prefixes = prefixes or {}
    declarations = declarations or {}
    docs = node.findall("xs:annotation/xs:documentation", NS)
    return [re.sub(r"\n[ \t]+", "\n", _inner_markup(doc, prefixes, declarations)) for doc in docs]


def type_string(node: ET.Element) -> Optional[str]:
    type_attr = node.get("type")
    if type_attr:
        return f"type: {type_attr}"
    if node.find("xs:complexType", NS) is not None:
        return None
    simple = node.find("xs:simpleType", NS)
    if simple is not None:
        restriction = simple.find("xs:restriction", NS)
        base = restriction.get("base") if restriction is not None else None
        return f"base: {base or 'anySimpleType'}"
    return "type: anyType"

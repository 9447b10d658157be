"""Expansion of schema declarations into an acyclic symbol tree.

The schema graph may be cyclic: types contain elements whose types contain
the first element, element references chase each other, and so on. The
resolver walks it depth first, keeping the element declarations currently
being expanded on a stack. A declaration that is already on the stack is
emitted once more but not expanded, and an element reference whose target
name is on the stack becomes a ``Loop`` box.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Callable, Dict, List, Optional

from .registry import Registry, collect
from .schema import (
    NS,
    UNBOUNDED,
    XML_NS,
    SchemaModel,
    cardinality,
    first_child,
    local_name,
    split_qname,
    strip_prefix,
    type_string,
    xs,
)
from .symbols import (
    All,
    Any,
    AnyAttribute,
    Attribute,
    Choice,
    Element,
    Field,
    Key,
    Keyref,
    Loop,
    ProcessContents,
    Schema,
    Selector,
    Sequence,
    Symbol,
    Unique,
)
from .tree import TreeBuilder

logger = logging.getLogger(__name__)

ANY_NAMESPACE = "any NS"
ONE_NODE_START_Y = 20

XML_ATTRIBUTE_TYPES = {
    "id": "type: ID",
    "lang": "base: anySimpleType",
    "space": "type: NCName",
    "base": "type: anyURI",
}


class Resolver:
    def __init__(
        self,
        model: SchemaModel,
        *,
        one_node_only: bool = False,
        registry: Optional[Registry] = None,
    ) -> None:
        self.model = model
        self.registry = registry if registry is not None else collect(model)
        self.schema_namespace = model.target_namespace
        self.one_node_only = one_node_only
        self.builder = TreeBuilder()
        self._stack: List[ET.Element] = []

    def resolve(self, root_name: Optional[str] = None) -> Optional[Symbol]:
        """Expand ``root_name``, or every global element under a ``Schema`` root.

        Returns ``None`` when there is nothing to show: no schema root in the
        document, or no global element called ``root_name``.
        """
        self.builder = TreeBuilder()
        self._stack = []
        if self.model.root is None:
            return None

        if root_name is None:
            self.builder.set_root(Schema())
        for node in self.model.global_elements():
            is_root = root_name is not None and node.get("name") == root_name
            if is_root or root_name is None:
                self.expand_element(node, None, is_root=is_root)
        if root_name is None:
            self.builder.ascend()

        if self.builder.root is None:
            logger.debug("no global element named %r", root_name)
        return self.builder.root

    # -- elements ---------------------------------------------------------

    def expand_element(
        self, node: ET.Element, card: Optional[str], *, is_root: bool = False
    ) -> None:
        ref = node.get("ref")
        if ref:
            self._expand_element_ref(ref, card)
            return

        symbol = Element(
            name=node.get("name"),
            namespace=self._element_namespace(node),
            type=type_string(node),
            cardinality=card,
            nillable=node.get("nillable") == "true",
            abstract=node.get("abstract") == "true",
            substitution=node.get("substitutionGroup"),
            description=self.model.documentation(node),
        )
        if is_root:
            if self.one_node_only:
                symbol.start_y = ONE_NODE_START_Y
            self.builder.set_root(symbol)
        else:
            self.builder.append(symbol)

        if any(entry is node for entry in self._stack):
            logger.debug("element %r is already being expanded; not descending", symbol.name)
            self.builder.ascend()
            return

        self._stack.append(node)
        if not (self.one_node_only and len(self._stack) > 1):
            self._expand_content(node)
        self._stack.pop()

        self._process_identity_constraints(node)
        self.builder.ascend()

    def _element_namespace(self, node: ET.Element) -> Optional[str]:
        own = node.get("namespace")
        if own and own != self.schema_namespace:
            return own
        if self.schema_namespace and self.schema_namespace != own:
            return self.schema_namespace
        return None

    def _expand_content(self, node: ET.Element) -> None:
        inline = node.find("xs:complexType", NS)
        type_attr = node.get("type")
        if inline is not None:
            self.process_complex_type(inline)
        elif type_attr:
            definition = self.registry.lookup_type(type_attr)
            if definition is not None:
                if definition.is_complex:
                    self.process_complex_type(definition.node)
            # Matched on the local name on purpose: xs:anyType expands as well
            # as a bare anyType. Do not narrow this to the literal string.
            elif strip_prefix(type_attr) == "anyType":
                self._expand_any_type()
            else:
                logger.debug("type %r is built in or unknown; shown as text only", type_attr)
        elif node.find("xs:simpleType", NS) is None:
            self._expand_any_type()

    def _expand_any_type(self) -> None:
        self.builder.append(Sequence())
        self.builder.append(
            Any(
                namespace=ANY_NAMESPACE,
                process_contents=ProcessContents.LAX,
                cardinality=f"0..{UNBOUNDED}",
            )
        )
        self.builder.ascend()
        self.builder.ascend()
        self.builder.append(
            AnyAttribute(namespace=ANY_NAMESPACE, process_contents=ProcessContents.LAX)
        )
        self.builder.ascend()

    def _expand_element_ref(self, ref: str, card: Optional[str]) -> None:
        name = strip_prefix(ref)
        target = self.registry.lookup_element(name)
        if target is None:
            logger.debug("unresolved element reference %r", ref)
            return
        if any(entry.get("name") == name for entry in self._stack):
            logger.debug("element reference %r re-enters an open element; emitting loop", ref)
            self.builder.append(Loop())
            self.builder.ascend()
            return
        self.expand_element(target, card)

    # -- complex types ----------------------------------------------------

    def process_complex_type(self, node: ET.Element) -> None:
        wrapper = first_child(node, "complexContent", "simpleContent")
        if wrapper is None:
            self._process_content_model(node)
            return
        derivation = first_child(wrapper, "extension")
        if derivation is None:
            derivation = first_child(wrapper, "restriction")
        if derivation is not None:
            self._process_derivation(derivation)

    def _process_derivation(self, node: ET.Element) -> None:
        # Base members come first so inheritance chains read base-to-derived.
        base = node.get("base")
        if base:
            definition = self.registry.lookup_type(base)
            if definition is not None and definition.is_complex:
                self.process_complex_type(definition.node)
        self._process_content_model(node)

    def _process_content_model(self, node: ET.Element) -> None:
        for local in ("sequence", "choice", "all"):
            compositor = node.find(f"xs:{local}", NS)
            if compositor is not None:
                self._process_compositor(compositor)

        attributes = sorted(
            node.findall("xs:attribute", NS),
            key=lambda attr: attr.get("ref") or attr.get("name") or "",
        )
        for attr in attributes:
            self._process_attribute(attr)

        for group in node.findall("xs:attributeGroup", NS):
            if group.get("ref"):
                self._process_attribute_group_ref(group.get("ref"))

        any_attribute = node.find("xs:anyAttribute", NS)
        if any_attribute is not None:
            self._process_any_attribute(any_attribute)

    def _process_compositor(self, node: ET.Element) -> None:
        local = local_name(node.tag)
        symbol = _COMPOSITOR_SYMBOLS[local](
            cardinality=cardinality(node), description=self.model.documentation(node)
        )
        self.builder.append(symbol)

        for element in node.findall("xs:element", NS):
            self.expand_element(element, cardinality(element))
        for group in node.findall("xs:group", NS):
            if group.get("ref"):
                self._process_group_ref(group.get("ref"))
        for child in node:
            if child.tag in _NESTED_COMPOSITOR_TAGS:
                self._process_compositor(child)
        if local != "choice":
            for wildcard in node.findall("xs:any", NS):
                self._process_any(wildcard)

        self.builder.ascend()

    def _process_group_ref(self, ref: str) -> None:
        group = self.registry.lookup_group(ref)
        if group is None:
            logger.debug("unresolved group reference %r", ref)
            return
        compositor = first_child(group, "sequence", "choice", "all")
        if compositor is not None:
            self._process_compositor(compositor)

    def _process_any(self, node: ET.Element) -> None:
        self.builder.append(
            Any(
                namespace=node.get("namespace") or ANY_NAMESPACE,
                process_contents=ProcessContents.parse(node.get("processContents")),
                cardinality=cardinality(node),
                description=self.model.documentation(node),
            )
        )
        self.builder.ascend()

    # -- attributes -------------------------------------------------------

    def _process_attribute(self, node: ET.Element) -> None:
        ref = node.get("ref")
        if ref:
            self._process_attribute_ref(ref, node)
            return

        namespace = node.get("namespace")
        type_attr = node.get("type")
        if type_attr and type_attr.startswith("xsd:"):
            type_attr = type_attr[len("xsd:"):]
        constraint = None
        if node.get("default") is not None:
            constraint = f"default: {node.get('default')}"
        elif node.get("fixed") is not None:
            constraint = f"fixed: {node.get('fixed')}"

        self.builder.append(
            Attribute(
                name=node.get("name"),
                namespace=namespace if namespace and namespace != self.schema_namespace else None,
                type=f"type: {type_attr}" if type_attr else None,
                required=node.get("use") == "required",
                constraint=constraint,
                description=self.model.documentation(node),
            )
        )
        self.builder.ascend()

    def _process_attribute_ref(self, ref: str, node: ET.Element) -> None:
        prefix, name = split_qname(ref)
        symbol = Attribute(
            name=name,
            required=node.get("use") == "required",
            description=self.model.documentation(node),
        )
        if prefix == "xml":
            symbol.namespace = XML_NS
            symbol.type = XML_ATTRIBUTE_TYPES.get(name, "base: anySimpleType")
        self.builder.append(symbol)
        self.builder.ascend()

    def _process_attribute_group_ref(self, ref: str) -> None:
        group = self.registry.lookup_attribute_group(ref)
        if group is None:
            logger.debug("unresolved attribute group reference %r", ref)
            return
        for attr in group.findall("xs:attribute", NS):
            self._process_attribute(attr)
        for nested in group.findall("xs:attributeGroup", NS):
            if nested.get("ref"):
                self._process_attribute_group_ref(nested.get("ref"))

    def _process_any_attribute(self, node: ET.Element) -> None:
        self.builder.append(
            AnyAttribute(
                namespace=node.get("namespace") or ANY_NAMESPACE,
                process_contents=ProcessContents.parse(node.get("processContents")),
                description=self.model.documentation(node),
            )
        )
        self.builder.ascend()

    # -- identity constraints ---------------------------------------------

    def _process_identity_constraints(self, element: ET.Element) -> None:
        for local in ("key", "keyref", "unique"):
            for node in element.findall(f"xs:{local}", NS):
                self._process_identity_constraint(node, local)

    def _process_identity_constraint(self, node: ET.Element, local: str) -> None:
        namespace = node.get("namespace")
        symbol = _CONSTRAINT_SYMBOLS[local](
            name=node.get("name"),
            namespace=namespace if namespace and namespace != self.schema_namespace else None,
            description=self.model.documentation(node),
        )
        if isinstance(symbol, Keyref):
            symbol.refer = node.get("refer")
        self.builder.append(symbol)

        selector = node.find("xs:selector", NS)
        if selector is not None:
            self.builder.append(Selector(xpath=selector.get("xpath")))
            self.builder.ascend()
        for field_node in node.findall("xs:field", NS):
            self.builder.append(Field(xpath=field_node.get("xpath")))
            self.builder.ascend()

        self.builder.ascend()


_COMPOSITOR_SYMBOLS: Dict[str, Callable[..., Symbol]] = {
    "sequence": Sequence,
    "choice": Choice,
    "all": All,
}
_NESTED_COMPOSITOR_TAGS = {xs(local) for local in _COMPOSITOR_SYMBOLS}
_CONSTRAINT_SYMBOLS: Dict[str, Callable[..., Symbol]] = {
    "key": Key,
    "keyref": Keyref,
    "unique": Unique,
}


def resolve(
    model: SchemaModel, root_name: Optional[str] = None, *, one_node_only: bool = False
) -> Optional[Symbol]:
    return Resolver(model, one_node_only=one_node_only).resolve(root_name)


def element_names(model: SchemaModel) -> List[str]:
    return [node.get("name") for node in model.global_elements() if node.get("name")]


def element_namespace(model: SchemaModel, name: str) -> Optional[str]:
    """Target namespace a global element called ``name`` lives in, if any."""
    for node in model.global_elements():
        if node.get("name") == name:
            return model.target_namespace
    return None

"""Name index over the named constructs of one schema document."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, NamedTuple, Optional

from .schema import BUILTIN_TYPES, SchemaModel, strip_prefix

logger = logging.getLogger(__name__)


class TypeDefinition(NamedTuple):
    kind: str  # "complex" or "simple"
    node: ET.Element

    @property
    def is_complex(self) -> bool:
        return self.kind == "complex"


@dataclass
class Registry:
    complex_types: Dict[str, ET.Element] = field(default_factory=dict)
    simple_types: Dict[str, ET.Element] = field(default_factory=dict)
    groups: Dict[str, ET.Element] = field(default_factory=dict)
    attribute_groups: Dict[str, ET.Element] = field(default_factory=dict)
    elements: Dict[str, ET.Element] = field(default_factory=dict)

    def lookup_type(self, name: str) -> Optional[TypeDefinition]:
        local = strip_prefix(name)
        if local in BUILTIN_TYPES:
            return None
        node = self.complex_types.get(local)
        if node is not None:
            return TypeDefinition("complex", node)
        node = self.simple_types.get(local)
        if node is not None:
            return TypeDefinition("simple", node)
        return None

    def lookup_group(self, name: str) -> Optional[ET.Element]:
        return self.groups.get(strip_prefix(name))

    def lookup_attribute_group(self, name: str) -> Optional[ET.Element]:
        return self.attribute_groups.get(strip_prefix(name))

    def lookup_element(self, name: str) -> Optional[ET.Element]:
        return self.elements.get(strip_prefix(name))


def collect(model: SchemaModel) -> Registry:
    """Index every named type, group and global element by local name.

    Later definitions overwrite earlier ones with the same name.
    """
    registry = Registry()
    for node in model.iter_named("complexType"):
        registry.complex_types[node.get("name")] = node
    for node in model.iter_named("simpleType"):
        registry.simple_types[node.get("name")] = node
    for node in model.iter_named("group"):
        registry.groups[node.get("name")] = node
    for node in model.iter_named("attributeGroup"):
        registry.attribute_groups[node.get("name")] = node
    for node in model.global_elements():
        name = node.get("name")
        if name is not None:
            registry.elements[name] = node
    logger.debug(
        "registry: %d complex, %d simple, %d groups, %d attribute groups, %d elements",
        len(registry.complex_types),
        len(registry.simple_types),
        len(registry.groups),
        len(registry.attribute_groups),
        len(registry.elements),
    )
    return registry

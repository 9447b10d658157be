"""Public API for xsdvi."""
from .layout import LayoutContext, layout_tree, word_wrap
from .raster import render_png
from .registry import Registry, collect
from .resolver import Resolver, element_names, element_namespace, resolve
from .schema import SchemaLoadError, SchemaModel, load_schema, load_schema_file
from .svg import generate_svg
from .tree import TreeBuilder, TreeStructureError
from .xsdvi import (
    EmptySchemaError,
    RootNotFoundError,
    resolve_schema,
    xsd_to_png,
    xsd_to_svg,
    xsd_to_svg_per_element,
)

__all__ = [
    "EmptySchemaError",
    "LayoutContext",
    "Registry",
    "Resolver",
    "RootNotFoundError",
    "SchemaLoadError",
    "SchemaModel",
    "TreeBuilder",
    "TreeStructureError",
    "collect",
    "element_names",
    "element_namespace",
    "generate_svg",
    "layout_tree",
    "load_schema",
    "load_schema_file",
    "render_png",
    "resolve",
    "resolve_schema",
    "word_wrap",
    "xsd_to_png",
    "xsd_to_svg",
    "xsd_to_svg_per_element",
]

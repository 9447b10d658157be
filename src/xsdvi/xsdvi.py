"""One-call entry points: schema source in, diagram out."""
from __future__ import annotations

import logging
from typing import List, Optional

from . import raster, svg
from .resolver import Resolver, element_names
from .schema import SchemaModel, load_schema
from .symbols import Symbol

logger = logging.getLogger(__name__)


class RootNotFoundError(ValueError):
    """Raised when a requested root element is not a global element of the schema."""


class EmptySchemaError(ValueError):
    """Raised when a schema yields nothing to draw."""


def resolve_schema(
    source: str,
    root_name: Optional[str] = None,
    *,
    one_node_only: bool = False,
) -> Optional[Symbol]:
    """Parse ``source`` and expand it into a symbol tree (not yet laid out)."""
    return resolve_model(load_schema(source), root_name, one_node_only=one_node_only)


def resolve_model(
    model: SchemaModel,
    root_name: Optional[str] = None,
    *,
    one_node_only: bool = False,
) -> Optional[Symbol]:
    return Resolver(model, one_node_only=one_node_only).resolve(root_name)


def _require_root(model: SchemaModel, root_name: Optional[str], one_node_only: bool) -> Symbol:
    if model.root is None:
        raise EmptySchemaError("document has no xs:schema root")
    if root_name is not None and root_name not in element_names(model):
        raise RootNotFoundError(f'no global element named "{root_name}"')
    root = resolve_model(model, root_name, one_node_only=one_node_only)
    if root is None:
        raise EmptySchemaError("schema produced an empty diagram")
    return root


def xsd_to_svg(
    source: str,
    root_name: Optional[str] = None,
    *,
    one_node_only: bool = False,
    embody_style: bool = True,
    style_uri: Optional[str] = None,
) -> str:
    """Convert XSD source to an SVG diagram."""
    model = load_schema(source)
    root = _require_root(model, root_name, one_node_only)
    return svg.generate_svg(
        root,
        embody_style=embody_style,
        style_uri=style_uri,
        hide_menu_buttons=one_node_only,
    )


def xsd_to_png(
    source: str,
    root_name: Optional[str] = None,
    *,
    one_node_only: bool = False,
    scale: float = 1.0,
) -> bytes:
    model = load_schema(source)
    root = _require_root(model, root_name, one_node_only)
    return raster.render_png(root, scale=scale)


def xsd_to_svg_per_element(
    source: str,
    *,
    embody_style: bool = True,
    style_uri: Optional[str] = None,
) -> List[tuple[str, str]]:
    """One single-level diagram per global element, as ``(name, svg)`` pairs.

    Registry and resolver are rebuilt for every element so no state carries
    over between diagrams.
    """
    model = load_schema(source)
    results: List[tuple[str, str]] = []
    for name in element_names(model):
        root = resolve_model(model, name, one_node_only=True)
        if root is None:
            logger.warning("skipped %s (empty)", name)
            continue
        results.append(
            (
                name,
                svg.generate_svg(
                    root,
                    embody_style=embody_style,
                    style_uri=style_uri,
                    hide_menu_buttons=True,
                ),
            )
        )
    return results

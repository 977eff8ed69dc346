"""
Pruning of tiered id terms from query trees.

This pass runs after bounded ranges have been expanded into equality terms.
The ranges start out overly inclusive, so some expanded terms name cells
that do not intersect the query geometry of the geo predicate they were
expanded for. Those terms are removed.
"""

import logging
from typing import Dict, List, Optional

from shapely.geometry.base import BaseGeometry

from .expression import (
    AndNode,
    EqNode,
    FalseNode,
    FunctionNode,
    Node,
    NotNode,
    OrNode,
    RebuildingVisitor,
    build_query,
    dereference,
)
from .functions import ArgumentDescriptorFactory, MetadataHelper
from .geometry import parse_geometry, position_to_geometry
from .oracle import BoundsOracle

logger = logging.getLogger(__name__)

FieldGeometries = Dict[str, List[BaseGeometry]]


class GeoWavePruningVisitor(RebuildingVisitor):
    """
    Removes equality terms whose cell misses every query geometry for its field.

    The field-to-geometry map is built per AND node from its geo predicate
    children and handed down to descendants. Each AND copies the map it
    inherits, so siblings never see each other's geometries.
    """

    def __init__(
        self,
        oracle: BoundsOracle,
        metadata_helper: Optional[MetadataHelper] = None,
        descriptor_factory: Optional[ArgumentDescriptorFactory] = None,
    ):
        self.oracle = oracle
        self.metadata_helper = metadata_helper
        self.descriptor_factory = descriptor_factory or ArgumentDescriptorFactory()

    def visit_and(self, node: AndNode, data: Optional[FieldGeometries]) -> Optional[Node]:
        field_to_geometry: FieldGeometries = {}
        if data:
            field_to_geometry = {field: list(geoms) for field, geoms in data.items()}

        for child in node.children:
            child = dereference(child)
            if not isinstance(child, FunctionNode):
                continue

            try:
                desc = self.descriptor_factory.get_argument_descriptor(child)
                if desc is None:
                    continue
                geometry = parse_geometry(desc.wkt)
                fields = desc.fields(self.metadata_helper, frozenset())
            except ValueError:
                logger.error(
                    "Unable to extract query geometry from %s", build_query(child), exc_info=True
                )
                continue

            for field in fields:
                field_to_geometry.setdefault(field, []).append(geometry)

        return self.generic_visit(node, field_to_geometry or None)

    def visit_or(self, node: OrNode, data: Optional[FieldGeometries]) -> Optional[Node]:
        copied = self.generic_visit(node, data)

        # An empty disjunction matches nothing
        if not copied.children:
            return FalseNode()
        return copied

    def visit_not(self, node: NotNode, data: Optional[FieldGeometries]) -> Optional[Node]:
        # Removing a term below a negation would widen the query
        return self.generic_visit(node, None)

    def visit_eq(self, node: EqNode, data: Optional[FieldGeometries]) -> Optional[Node]:
        if not data:
            return node

        query_geometries = data.get(node.field)
        if query_geometries:
            node_geometry = position_to_geometry(str(node.value), self.oracle)
            if not any(node_geometry.intersects(geometry) for geometry in query_geometries):
                logger.debug("Pruning %s", build_query(node))
                return None

        return node


def prune_tree(
    node: Node,
    oracle: BoundsOracle,
    metadata_helper: Optional[MetadataHelper] = None,
) -> Optional[Node]:
    """
    Remove tiered id terms that cannot intersect their query geometry.

    Args:
        node: Root of the query tree
        oracle: Oracle mapping tiered ids to bounds
        metadata_helper: Optional field metadata for resolving predicate fields

    Returns:
        The rebuilt tree, or None if the root itself was removed
    """
    visitor = GeoWavePruningVisitor(oracle, metadata_helper)
    return visitor.visit(node, None)

"""
Extraction of query geometries for display.

Walks a query tree and records each geo predicate together with its query
geometry as GeoJSON.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from shapely.geometry import mapping

from .expression import BaseVisitor, FunctionNode, Node, build_query
from .functions import ArgumentDescriptorFactory, GEOWAVE_NAMESPACE
from .geometry import parse_geometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryGeometry:
    """A geo predicate and its geometry as a GeoJSON string."""

    function: str
    geometry: str

    def to_geojson_feature(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "properties": {"function": self.function},
            "geometry": json.loads(self.geometry),
        }


def to_lucene_function(function: str) -> str:
    """
    Reformat a geo predicate as a Lucene function.

    Example:
        >>> to_lucene_function("geowave:intersects(GEO, 'POINT(1 1)')")
        "#INTERSECTS(GEO, 'POINT(1 1)')"
    """
    params_idx = function.index("(")
    op = function[:params_idx]
    params = function[params_idx:]
    return op.replace(GEOWAVE_NAMESPACE + ":", "#").upper() + params


class GeoFeatureVisitor(BaseVisitor):
    """Collects QueryGeometry objects for every geo predicate in a tree."""

    def __init__(
        self,
        features: List[QueryGeometry],
        is_lucene_query: bool = False,
        descriptor_factory: Optional[ArgumentDescriptorFactory] = None,
    ):
        self.features = features
        self.is_lucene_query = is_lucene_query
        self.descriptor_factory = descriptor_factory or ArgumentDescriptorFactory()

    def visit_function(self, node: FunctionNode, data: Any) -> Any:
        try:
            desc = self.descriptor_factory.get_argument_descriptor(node)
            if desc is None:
                return data

            function = build_query(node)
            if self.is_lucene_query:
                function = to_lucene_function(function)

            geometry = json.dumps(mapping(parse_geometry(desc.wkt)))
            feature = QueryGeometry(function, geometry)
            if feature not in self.features:
                self.features.append(feature)
        except ValueError:
            logger.error("Unable to extract geo feature from function", exc_info=True)

        return data


def get_geo_features(node: Node, is_lucene_query: bool = False) -> List[QueryGeometry]:
    """
    Extract the geo predicates of a query tree and their geometries.

    Args:
        node: Root of the query tree
        is_lucene_query: Render functions in Lucene syntax

    Returns:
        Unique QueryGeometry objects in tree order
    """
    features: List[QueryGeometry] = []
    GeoFeatureVisitor(features, is_lucene_query).visit(node)
    return features

"""
Argument descriptors for geo predicate functions.

A geo predicate looks like geowave:intersects(FIELD, 'POLYGON((...))') or,
for several fields, geowave:intersects((F1 || F2), 'POLYGON((...))').
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AbstractSet, Optional, Set

from .expression import FunctionNode, LiteralNode, dereference, identifier_names


GEOWAVE_NAMESPACE = "geowave"
GEOWAVE_FUNCTIONS = frozenset({
    "contains",
    "covers",
    "covered_by",
    "crosses",
    "intersects",
    "overlaps",
    "within",
})


class MetadataHelper(ABC):
    """Field metadata used to resolve the indexed fields behind a query field."""

    @abstractmethod
    def get_index_fields(self, field: str, datatype_filter: AbstractSet[str]) -> Set[str]:
        """
        Look up the indexed fields that back a query field.

        Args:
            field: Field name as written in the query
            datatype_filter: Datatypes to restrict to (empty means all)

        Returns:
            Set of indexed field names (empty if none are known)
        """
        pass


@dataclass(frozen=True)
class GeoWaveArgumentDescriptor:
    """Describes the arguments of a geowave: predicate function."""

    function: FunctionNode

    @property
    def wkt(self) -> str:
        """Well-known text of the query geometry."""
        arg = dereference(self.function.args[1])
        if not isinstance(arg, LiteralNode) or not isinstance(arg.value, str):
            raise ValueError(
                f"Expected a geometry literal in {self.function.namespace}:{self.function.name}"
            )
        return arg.value

    def fields(
        self,
        metadata: Optional[MetadataHelper] = None,
        datatype_filter: AbstractSet[str] = frozenset(),
    ) -> Set[str]:
        """
        Fields the predicate applies to.

        Without metadata the identifiers in the field argument are returned
        as written.
        """
        names = identifier_names(self.function.args[0])
        if metadata is None:
            return names

        fields: Set[str] = set()
        for name in names:
            fields |= metadata.get_index_fields(name, datatype_filter) or {name}
        return fields


class ArgumentDescriptorFactory:
    """Resolves function nodes to argument descriptors."""

    def get_argument_descriptor(self, node: FunctionNode) -> Optional[GeoWaveArgumentDescriptor]:
        """
        Get the descriptor for a function node.

        Returns:
            Descriptor for geowave: predicates, None for any other function
        """
        if node.namespace != GEOWAVE_NAMESPACE or node.name not in GEOWAVE_FUNCTIONS:
            return None
        if len(node.args) != 2:
            raise ValueError(
                f"{node.namespace}:{node.name} expects 2 arguments, got {len(node.args)}"
            )
        return GeoWaveArgumentDescriptor(node)

"""
Boolean query expression nodes and visitors.

This is the minimal tree contract the pruning and feature passes work
against. Nodes are immutable; rewriting passes build new trees and share
untouched subtrees.

Node kinds:
- AndNode / OrNode: conjunction and disjunction of children
- NotNode: negation of one child
- ReferenceNode: a parenthesized child
- EqNode: field == literal value
- FunctionNode: namespace:name(args...)
- IdentifierNode / LiteralNode: function arguments
- TrueNode / FalseNode: constants
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Set, Tuple


class Node:
    """Base class for expression nodes."""

    kind = "node"


@dataclass(frozen=True)
class AndNode(Node):
    children: Tuple[Node, ...]
    kind = "and"

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class OrNode(Node):
    children: Tuple[Node, ...]
    kind = "or"

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class NotNode(Node):
    child: Node
    kind = "not"


@dataclass(frozen=True)
class ReferenceNode(Node):
    child: Node
    kind = "reference"


@dataclass(frozen=True)
class EqNode(Node):
    field: str
    value: Any
    kind = "eq"


@dataclass(frozen=True)
class IdentifierNode(Node):
    name: str
    kind = "identifier"


@dataclass(frozen=True)
class LiteralNode(Node):
    value: Any
    kind = "literal"


@dataclass(frozen=True)
class FunctionNode(Node):
    namespace: str
    name: str
    args: Tuple[Node, ...]
    kind = "function"

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class TrueNode(Node):
    kind = "true"


@dataclass(frozen=True)
class FalseNode(Node):
    kind = "false"


def dereference(node: Node) -> Node:
    """Strip any enclosing parentheses."""
    while isinstance(node, ReferenceNode):
        node = node.child
    return node


def identifier_names(node: Node) -> Set[str]:
    """Collect every identifier name in a subtree."""
    if isinstance(node, IdentifierNode):
        return {node.name}
    if isinstance(node, EqNode):
        return {node.field}

    names: Set[str] = set()
    for child in _children(node):
        names |= identifier_names(child)
    return names


def _children(node: Node) -> Tuple[Node, ...]:
    if isinstance(node, (AndNode, OrNode)):
        return node.children
    if isinstance(node, (NotNode, ReferenceNode)):
        return (node.child,)
    if isinstance(node, FunctionNode):
        return node.args
    return ()


def _quote(value: Any) -> str:
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    return str(value)


def build_query(node: Node) -> str:
    """
    Render an expression back to query text.

    Example:
        >>> build_query(EqNode("GEO", "1f2a"))
        "GEO == '1f2a'"
    """
    if isinstance(node, AndNode):
        return " && ".join(build_query(child) for child in node.children)
    if isinstance(node, OrNode):
        return " || ".join(build_query(child) for child in node.children)
    if isinstance(node, NotNode):
        return "!" + build_query(node.child)
    if isinstance(node, ReferenceNode):
        return "(" + build_query(node.child) + ")"
    if isinstance(node, EqNode):
        return f"{node.field} == {_quote(node.value)}"
    if isinstance(node, FunctionNode):
        args = ", ".join(build_query(arg) for arg in node.args)
        return f"{node.namespace}:{node.name}({args})"
    if isinstance(node, IdentifierNode):
        return node.name
    if isinstance(node, LiteralNode):
        return _quote(node.value)
    if isinstance(node, TrueNode):
        return "true"
    if isinstance(node, FalseNode):
        return "false"
    raise ValueError(f"Unknown node type: {type(node).__name__}")


class BaseVisitor:
    """
    Read-only visitor.

    visit() dispatches to visit_<kind>() when defined, otherwise to
    generic_visit(), which walks the children and returns data.
    """

    def visit(self, node: Node, data: Any = None) -> Any:
        method = getattr(self, "visit_" + node.kind, self.generic_visit)
        return method(node, data)

    def generic_visit(self, node: Node, data: Any) -> Any:
        for child in _children(node):
            self.visit(child, data)
        return data


class RebuildingVisitor:
    """
    Visitor that rebuilds the tree it walks.

    visit() dispatches to visit_<kind>() when defined, otherwise to
    generic_visit(). A visit returning None removes that node from its
    parent. A NotNode or ReferenceNode whose child is removed is removed
    as well. Function arguments are not visited.
    """

    def visit(self, node: Node, data: Any = None) -> Optional[Node]:
        method = getattr(self, "visit_" + node.kind, self.generic_visit)
        return method(node, data)

    def generic_visit(self, node: Node, data: Any) -> Optional[Node]:
        if isinstance(node, (AndNode, OrNode)):
            children: List[Node] = []
            for child in node.children:
                new_child = self.visit(child, data)
                if new_child is not None:
                    children.append(new_child)
            return replace(node, children=tuple(children))

        if isinstance(node, (NotNode, ReferenceNode)):
            child = self.visit(node.child, data)
            if child is None:
                return None
            return replace(node, child=child)

        return node

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from tapi.schema.node import SchemaNode


@dataclass
class NamespaceNode:
    """One module path segment, holding the declarations placed directly in it."""

    path: tuple[str, ...]
    children: dict[str, NamespaceNode] = field(default_factory=dict)
    decls: list[SchemaNode] = field(default_factory=list)

    def child(self, segment: str) -> NamespaceNode:
        # re-use an existing namespace for repeated segments
        node = self.children.get(segment)
        if node is None:
            node = NamespaceNode(path=(*self.path, segment))
            self.children[segment] = node
        return node

    def sorted_children(self) -> Iterator[tuple[str, NamespaceNode]]:
        for name in sorted(self.children):
            yield name, self.children[name]


@dataclass
class NamespaceTree:
    root: NamespaceNode

    def __init__(self) -> None:
        self.root = NamespaceNode(path=())

    def add(self, ty: SchemaNode) -> None:
        node = self.root
        for segment in ty.path:
            node = node.child(segment)
        node.decls.append(ty)

    def walk(self) -> Iterator[NamespaceNode]:
        """Depth first, children in segment order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(child for _, child in reversed(list(node.sorted_children())))

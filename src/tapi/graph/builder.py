from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from tapi.errors import GenerationError
from tapi.graph.model import NamespaceNode, NamespaceTree
from tapi.schema.node import SchemaNode

logger = logging.getLogger(__name__)

INDENT = "  "

# (namespace path, segment name) -> marker line, or None for no line
NamespaceMarker = Callable[[tuple[str, ...], str], Optional[str]]
Declare = Callable[[SchemaNode], Optional[str]]


def build_namespace_tree(tys: Iterable[SchemaNode]) -> NamespaceTree:
    tree = NamespaceTree()
    for ty in tys:
        tree.add(ty)
    return tree


@dataclass(frozen=True)
class TypesBuilder:
    """
    Renders a flat list of types as nested namespace declarations.

    - prelude: static text emitted first (leading whitespace stripped)
    - start_namespace / end_namespace: open/close marker for a child namespace
    - decl: declaration text for a type, or None when nothing is declared

    Declarations keep the caller's order within a namespace; child namespaces
    are visited in segment order. Each line is indented two spaces per level.
    Two distinct types declaring the same name in one namespace raise
    GenerationError.
    """

    prelude: str
    start_namespace: NamespaceMarker
    end_namespace: NamespaceMarker
    decl: Declare

    def types(self, tys: Iterable[SchemaNode]) -> str:
        tree = build_namespace_tree(tys)
        out: list[str] = [self.prelude.lstrip()]
        self._write(tree.root, out, 0)
        return "".join(out)

    def _write(self, node: NamespaceNode, out: list[str], depth: int) -> None:
        pad = INDENT * depth
        declared: dict[str, SchemaNode] = {}

        for ty in node.decls:
            text = self.decl(ty)
            if text is None:
                continue
            other = declared.setdefault(ty.name, ty)
            if other.id != ty.id:
                raise GenerationError(
                    f"{other.id!r} and {ty.id!r} both declare {ty.name!r} in one namespace", ty
                )
            for line in text.splitlines():
                out.append(f"{pad}{line}\n")

        for name, child in node.sorted_children():
            logger.debug("namespace %s: %d declarations", ".".join(child.path), len(child.decls))
            start = self.start_namespace(child.path, name)
            if start is not None:
                out.append(f"{pad}{start}\n")
            self._write(child, out, depth + 1)
            end = self.end_namespace(child.path, name)
            if end is not None:
                out.append(f"{pad}{end}\n")

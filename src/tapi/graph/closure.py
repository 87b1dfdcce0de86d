from __future__ import annotations

import logging
from typing import Iterable

from tapi.schema.node import SchemaNode

logger = logging.getLogger(__name__)


def transitive_closure(roots: Iterable[SchemaNode]) -> list[SchemaNode]:
    """
    Every node reachable from `roots` through `dependencies()`, roots included.

    Fixed point over identities: each pass expands every node in the working
    set and stops once a full pass adds nothing. Recursive types revisit ids
    already present, so the set stays finite.

    Result order is insertion order, which is not meaningful; sort with
    `sort_by_identity` before rendering.
    """
    closure: dict[str, SchemaNode] = {}
    for node in roots:
        closure.setdefault(node.id, node)

    passes = 0
    while True:
        passes += 1
        added = False
        for node in list(closure.values()):
            for dep in node.dependencies():
                if dep.id not in closure:
                    closure[dep.id] = dep
                    added = True
        if not added:
            break

    logger.debug("closure reached %d types after %d passes", len(closure), passes)
    return list(closure.values())


def sort_by_identity(nodes: Iterable[SchemaNode]) -> list[SchemaNode]:
    return sorted(nodes, key=lambda n: n.id)


def all_dependencies(node: SchemaNode) -> list[SchemaNode]:
    """The node plus everything it reaches."""
    return transitive_closure([*node.dependencies(), node])

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from tapi.endpoints.client import Endpoints
from tapi.endpoints.model import Endpoint
from tapi.errors import TapiError
from tapi.graph.builder import build_namespace_tree
from tapi.schema.node import SchemaNode
from tapi.schema.reflect import schema_of
from tapi.targets.registry import get_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateResult:
    target: str
    text: str
    types: list[SchemaNode]
    endpoints: int
    namespaces: int


def load_reference(ref: str) -> Any:
    """Resolve "package.module:attr" (attr may be dotted)."""
    module_name, sep, attr = (ref or "").partition(":")
    if not sep or not module_name or not attr:
        raise TapiError(f"expected MODULE:ATTR, got {ref!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise TapiError(f"cannot import {module_name!r}: {e}") from e
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise TapiError(f"{module_name!r} has no attribute {attr!r}") from None
    return obj


def _is_endpoint(obj: Any) -> bool:
    return isinstance(obj, Endpoint) or isinstance(getattr(obj, "endpoint", None), Endpoint)


def collect(obj: Any) -> Endpoints:
    """Normalize whatever a reference points at into one endpoint collection."""
    if isinstance(obj, Endpoints):
        return obj
    items: Iterable[Any] = obj if isinstance(obj, (list, tuple)) else [obj]

    endpoints = []
    tys = []
    for item in items:
        if isinstance(item, Endpoints):
            endpoints.extend(item.endpoints)
            tys.extend(item.extra_tys)
        elif _is_endpoint(item):
            endpoints.append(item)
        else:
            tys.append(schema_of(item))
    return Endpoints(endpoints, tys)


def closure_of(obj: Any) -> list[SchemaNode]:
    return collect(obj).tys()


def run_generate(
    obj: Any,
    target: str = "ts",
    client_name: Optional[str] = None,
) -> GenerateResult:
    tgt = get_target(target)
    endpoints = collect(obj)
    tys = endpoints.tys()

    if len(endpoints) and tgt.has_client:
        text = endpoints.render(tgt.name, client_name)
    else:
        text = tgt.builder().types(tys)

    namespaces = sum(1 for _ in build_namespace_tree(tys).walk()) - 1
    logger.info(
        "generated %s: %d types, %d endpoints, %d namespaces",
        tgt.name,
        len(tys),
        len(endpoints),
        namespaces,
    )
    return GenerateResult(
        target=tgt.name,
        text=text,
        types=tys,
        endpoints=len(endpoints),
        namespaces=namespaces,
    )

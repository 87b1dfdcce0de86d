from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Optional

from tapi.endpoints.model import Endpoint, PlainTextBody, SseResponse, as_endpoint
from tapi.endpoints.paths import binding_name, path_param_shape, path_params, placeholder_name
from tapi.errors import RouteValidationError, TapiError
from tapi.graph.closure import sort_by_identity, transitive_closure
from tapi.schema.node import SchemaNode
from tapi.targets import fs, js, ts
from tapi.targets.base import quote

logger = logging.getLogger(__name__)

NO_PARAMS = "Record<string, never>"


def url_template(path: str) -> str:
    """/x/:a/y/ -> `/x/${a}/y/` (a JS template literal; empty segments are kept)"""
    parts = []
    for seg in path.split("/")[1:]:
        name = placeholder_name(seg)
        parts.append(f"${{{binding_name(name)}}}" if name is not None else seg)
    return "`/" + "/".join(parts) + "`"


def _destructure(name: str) -> str:
    local = binding_name(name)
    return name if local == name else f"{name}: {local}"


def path_binding(endpoint: Endpoint) -> str:
    path_ty = endpoint.request.path
    if path_ty is None:
        return ""
    names = path_params(endpoint.path)
    match path_param_shape(path_ty):
        case "struct":
            return "{ " + ", ".join(_destructure(n) for n in names) + " }"
        case "tuple":
            return "[" + ", ".join(binding_name(n) for n in names) + "]"
        case _:
            return binding_name(names[0])


def _is_stream(endpoint: Endpoint) -> bool:
    return isinstance(endpoint.response, SseResponse) and endpoint.request.body is None


def ts_client(endpoint: Endpoint) -> str:
    req = endpoint.request
    res = ts.full_ty_name(endpoint.response.ty())

    if _is_stream(endpoint):
        params = ts.full_ty_name(req.path) if req.path is not None else NO_PARAMS
        return (
            f"sse<{params}, {res}>(({path_binding(endpoint)}) => "
            f"{url_template(endpoint.path)}, {quote('json')})"
        )

    if req.body_ty is not None:
        body = ts.full_ty_name(req.body_ty)
    elif isinstance(req.body, PlainTextBody):
        body = "string"
    else:
        body = NO_PARAMS
    return (
        f"request<{body}, {res}>({quote(req.body_kind)}, {quote(req.method.value)}, "
        f"{quote(endpoint.path)}, {quote(endpoint.response.kind)})"
    )


def js_client(endpoint: Endpoint) -> str:
    req = endpoint.request
    if _is_stream(endpoint):
        return f"sse(({path_binding(endpoint)}) => {url_template(endpoint.path)}, {quote('json')})"
    return (
        f"request({quote(req.body_kind)}, {quote(req.method.value)}, "
        f"{quote(endpoint.path)}, {quote(endpoint.response.kind)})"
    )


class Endpoints:
    """
    A set of routes rendered together: every type they reach, declared once,
    followed by one client constant mapping route keys to calls.
    """

    def __init__(self, endpoints: Iterable[Any] = (), extra_tys: Iterable[SchemaNode] = ()) -> None:
        self.endpoints: list[Endpoint] = [as_endpoint(e) for e in endpoints]
        self.extra_tys: list[SchemaNode] = list(extra_tys)

    def with_ty(self, ty: SchemaNode) -> Endpoints:
        return Endpoints(self.endpoints, [*self.extra_tys, ty])

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self.endpoints)

    def __len__(self) -> int:
        return len(self.endpoints)

    def tys(self) -> list[SchemaNode]:
        roots = list(self.extra_tys)
        for e in self.endpoints:
            roots.extend(e.tys())
        return sort_by_identity(transitive_closure(roots))

    def keyed(self) -> list[tuple[str, Endpoint]]:
        seen: dict[str, Endpoint] = {}
        for e in self.endpoints:
            key = e.client_key
            other = seen.setdefault(key, e)
            if other is not e:
                raise RouteValidationError(
                    f"client key {key!r} used by both {other.method.value} {other.path} "
                    f"and {e.method.value} {e.path}; give one of them a name"
                )
        return list(seen.items())

    def _client(self, types: str, call, client_name: str) -> str:
        keyed = self.keyed()
        logger.debug("client %s: %d routes", client_name, len(keyed))
        s = types
        s += f"export const {client_name} = {{\n"
        for key, e in keyed:
            s += f"    {key}: {call(e)},\n"
        s += "};\n"
        return s

    def ts_client(self, client_name: str = "api") -> str:
        return self._client(ts.builder().types(self.tys()), ts_client, client_name)

    def js_client(self, client_name: str = "api") -> str:
        return self._client(js.builder().types(self.tys()), js_client, client_name)

    def fs_types(self) -> str:
        return fs.builder().types(self.tys())

    def render(self, target: str, client_name: Optional[str] = None) -> str:
        name = client_name or "api"
        match target:
            case "ts":
                return self.ts_client(name)
            case "js":
                return self.js_client(name)
            case "fs":
                return self.fs_types()
        raise TapiError(f"no endpoint rendering for target {target!r}")

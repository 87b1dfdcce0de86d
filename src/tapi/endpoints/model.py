from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Optional, Sequence, Union

from tapi.endpoints.paths import validate_route_path
from tapi.errors import TapiError
from tapi.naming import lower_camel
from tapi.schema.node import STRING, U8, UNIT, SchemaNode, list_of


class Method(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @classmethod
    def parse(cls, value: Union[str, Method]) -> Method:
        if isinstance(value, Method):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise TapiError(f"unsupported HTTP method {value!r}") from None


# ----------------------------
# Request parts
# ----------------------------


@dataclass(frozen=True)
class PathParams:
    ty: SchemaNode


@dataclass(frozen=True)
class QueryParams:
    ty: SchemaNode


@dataclass(frozen=True)
class JsonBody:
    ty: SchemaNode


@dataclass(frozen=True)
class PlainTextBody:
    pass


@dataclass(frozen=True)
class NoRequest:
    """A handler argument that carries nothing over the wire (state, headers, ...)."""


RequestPart = Union[PathParams, QueryParams, JsonBody, PlainTextBody, NoRequest]
RequestBody = Union[QueryParams, JsonBody, PlainTextBody]


@dataclass(frozen=True)
class RequestStructure:
    method: Method
    path: Optional[SchemaNode] = None
    body: Optional[RequestBody] = None

    def merge_with(self, part: RequestPart) -> RequestStructure:
        match part:
            case PathParams(ty=ty):
                return replace(self, path=ty)
            case QueryParams() | JsonBody() | PlainTextBody():
                return replace(self, body=part)
            case NoRequest():
                return self
        raise TypeError(f"not a request part: {part!r}")

    @property
    def body_kind(self) -> str:
        match self.body:
            case QueryParams():
                return "query"
            case JsonBody():
                return "json"
            case PlainTextBody():
                return "text"
            case None:
                return "none"
        raise TypeError(f"not a request body: {self.body!r}")

    @property
    def body_ty(self) -> Optional[SchemaNode]:
        if isinstance(self.body, (QueryParams, JsonBody)):
            return self.body.ty
        return None


# ----------------------------
# Responses
# ----------------------------


@dataclass(frozen=True)
class PlainTextResponse:
    kind: ClassVar[str] = "text"

    def ty(self) -> SchemaNode:
        return STRING


@dataclass(frozen=True)
class BytesResponse:
    kind: ClassVar[str] = "bytes"

    def ty(self) -> SchemaNode:
        return list_of(U8)


@dataclass(frozen=True)
class JsonResponse:
    inner: SchemaNode
    kind: ClassVar[str] = "json"

    def ty(self) -> SchemaNode:
        return self.inner


@dataclass(frozen=True)
class HtmlResponse:
    kind: ClassVar[str] = "html"

    def ty(self) -> SchemaNode:
        return STRING


@dataclass(frozen=True)
class SseResponse:
    """Server-sent events; each event's data is one JSON-encoded `inner`."""

    inner: SchemaNode
    kind: ClassVar[str] = "sse"

    def ty(self) -> SchemaNode:
        return self.inner


@dataclass(frozen=True)
class EmptyResponse:
    kind: ClassVar[str] = "none"

    def ty(self) -> SchemaNode:
        return UNIT


Response = Union[
    PlainTextResponse, BytesResponse, JsonResponse, HtmlResponse, SseResponse, EmptyResponse
]


# ----------------------------
# Endpoint
# ----------------------------


@dataclass(frozen=True)
class Endpoint:
    """
    One HTTP route and the wire shapes of its request and response.

    Request parts are folded in order by `request`; a later body part replaces
    an earlier one. The path pattern is checked against the path-parameter
    type on construction.
    """

    path: str
    method: Method = Method.GET
    request_parts: Sequence[RequestPart] = field(default_factory=tuple)
    response: Response = field(default_factory=EmptyResponse)
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", Method.parse(self.method))
        object.__setattr__(self, "request_parts", tuple(self.request_parts))
        validate_route_path(self.path, self.request.path)

    @property
    def request(self) -> RequestStructure:
        req = RequestStructure(self.method)
        for part in self.request_parts:
            req = req.merge_with(part)
        return req

    @property
    def client_key(self) -> str:
        if self.name:
            return self.name
        return lower_camel(self.path) or "index"

    def tys(self) -> list[SchemaNode]:
        req = self.request
        out = []
        if req.path is not None:
            out.append(req.path)
        if req.body_ty is not None:
            out.append(req.body_ty)
        out.append(self.response.ty())
        return out


def as_endpoint(obj: Any) -> Endpoint:
    """Accept an Endpoint or a handler decorated with `route`."""
    if isinstance(obj, Endpoint):
        return obj
    ep = getattr(obj, "endpoint", None)
    if isinstance(ep, Endpoint):
        return ep
    raise TapiError(f"{obj!r} is not an endpoint or a routed handler")

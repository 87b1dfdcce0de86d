from __future__ import annotations

import enum
import inspect
import typing
from typing import Annotated, Any, Callable, Optional, TypeVar, Union

from tapi.endpoints.model import (
    BytesResponse,
    EmptyResponse,
    Endpoint,
    HtmlResponse,
    JsonBody,
    JsonResponse,
    Method,
    NoRequest,
    PathParams,
    PlainTextBody,
    PlainTextResponse,
    QueryParams,
    RequestPart,
    Response,
    SseResponse,
)
from tapi.schema.reflect import schema_of

F = TypeVar("F", bound=Callable[..., Any])


class Extract(enum.Enum):
    """Where an annotated value travels: `Annotated[User, JSON]`."""

    PATH = "path"
    QUERY = "query"
    JSON = "json"
    HTML = "html"
    SSE = "sse"


PATH = Extract.PATH
QUERY = Extract.QUERY
JSON = Extract.JSON
HTML = Extract.HTML
SSE = Extract.SSE


def _split(hint: Any) -> tuple[Any, Optional[Extract]]:
    if typing.get_origin(hint) is Annotated:
        base, *meta = typing.get_args(hint)
        for m in meta:
            if isinstance(m, Extract):
                return base, m
        return base, None
    return hint, None


def request_part(hint: Any) -> RequestPart:
    base, marker = _split(hint)
    match marker:
        case Extract.PATH:
            return PathParams(schema_of(base))
        case Extract.QUERY:
            return QueryParams(schema_of(base))
        case Extract.JSON:
            return JsonBody(schema_of(base))
    if base is str:
        return PlainTextBody()
    # dependencies, state, headers: nothing on the wire
    return NoRequest()


def response_shape(hint: Any) -> Response:
    base, marker = _split(hint)
    match marker:
        case Extract.JSON:
            return JsonResponse(schema_of(base))
        case Extract.HTML:
            return HtmlResponse()
        case Extract.SSE:
            return SseResponse(schema_of(base))
    if base is None or base is type(None):
        return EmptyResponse()
    if base is str:
        return PlainTextResponse()
    if base is bytes:
        return BytesResponse()
    return JsonResponse(schema_of(base))


def route(
    path: str,
    method: Union[Method, str] = Method.GET,
    *,
    name: Optional[str] = None,
) -> Callable[[F], F]:
    """
    Derive an Endpoint from a handler's signature and attach it as `fn.endpoint`.

    Parameters are read in declaration order; unannotated ones are ignored.
    A missing return annotation means an empty response.
    """

    def decorator(fn: F) -> F:
        hints = typing.get_type_hints(fn, include_extras=True)
        parts = [
            request_part(hints[p.name])
            for p in inspect.signature(fn).parameters.values()
            if p.name in hints
        ]
        response = response_shape(hints["return"]) if "return" in hints else EmptyResponse()
        fn.endpoint = Endpoint(  # type: ignore[attr-defined]
            path=path,
            method=Method.parse(method),
            request_parts=parts,
            response=response,
            name=name,
        )
        return fn

    return decorator

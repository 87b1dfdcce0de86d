from __future__ import annotations

import re
from typing import Optional

from tapi.errors import RouteValidationError
from tapi.schema.kind import Struct, TupleKind, TupleStruct
from tapi.schema.node import SchemaNode

_PARAM_COLON = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

# not usable as a JS binding name
_JS_RESERVED = frozenset(
    """
    arguments await break case catch class const continue debugger default delete do
    else enum eval export extends false finally for function if implements import in
    instanceof interface let new null package private protected public return static
    super switch this throw true try typeof var void while with yield
    """.split()
)


def path_segments(path: str) -> list[str]:
    return [seg for seg in (path or "").split("/") if seg]


def placeholder_name(segment: str) -> Optional[str]:
    m = _PARAM_COLON.fullmatch(segment)
    return m.group(1) if m else None


def binding_name(name: str) -> str:
    """JS-safe local name for a placeholder: class -> class_"""
    return f"{name}_" if name in _JS_RESERVED else name


def path_params(path: str) -> list[str]:
    """Placeholder names in order: /api2/:a/:b -> ["a", "b"]"""
    names = []
    for seg in path_segments(path):
        name = placeholder_name(seg)
        if name is not None:
            names.append(name)
    return names


def path_param_shape(path_ty: SchemaNode) -> str:
    """How a path-parameter type binds placeholders: "struct", "tuple" or "scalar"."""
    kind = path_ty.kind
    if isinstance(kind, Struct) and not kind.attr.transparent:
        return "struct"
    if isinstance(kind, (TupleStruct, TupleKind)):
        items = kind.serialized_items() if isinstance(kind, TupleStruct) else kind.items
        return "tuple" if len(items) != 1 else "scalar"
    return "scalar"


def validate_route_path(path: str, path_ty: Optional[SchemaNode]) -> None:
    """
    Check a route pattern against its path-parameter type.

    - struct: placeholder names == serialized field names (any order)
    - tuple: one placeholder per item, bound by position
    - anything else: exactly one placeholder
    """
    if not path.startswith("/"):
        raise RouteValidationError(f"route path {path!r} must start with '/'")

    names = path_params(path)
    if len({binding_name(n) for n in names}) != len(names):
        raise RouteValidationError(f"route {path!r} repeats a placeholder: {names}")

    if path_ty is None:
        if names:
            raise RouteValidationError(
                f"route {path!r} has placeholders {names} but no path-parameter type"
            )
        return

    if not names:
        raise RouteValidationError(
            f"route {path!r} has a path-parameter type but no placeholders", path_ty
        )

    shape = path_param_shape(path_ty)
    kind = path_ty.kind
    if shape == "struct":
        assert isinstance(kind, Struct)
        fields = [f.name for f in kind.serialized_fields()]
        if sorted(fields) != sorted(names):
            raise RouteValidationError(
                f"route {path!r} placeholders {names} do not match path fields {fields}",
                path_ty,
            )
    elif shape == "tuple":
        assert isinstance(kind, (TupleStruct, TupleKind))
        items = kind.serialized_items() if isinstance(kind, TupleStruct) else kind.items
        if len(items) != len(names):
            raise RouteValidationError(
                f"route {path!r} has {len(names)} placeholders for a {len(items)}-item path tuple",
                path_ty,
            )
    elif len(names) != 1:
        raise RouteValidationError(
            f"route {path!r} has {len(names)} placeholders for a single path value", path_ty
        )

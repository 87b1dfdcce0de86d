from __future__ import annotations

from pathlib import Path
from typing import Optional, assert_never

from tapi.graph.builder import TypesBuilder
from tapi.naming import shouty_snake
from tapi.schema.kind import (
    AnyKind,
    Builtin,
    Enum,
    ListKind,
    OptionKind,
    RecordKind,
    Struct,
    TupleKind,
    TupleStruct,
)
from tapi.schema.node import SchemaNode
from tapi.targets import ts
from tapi.targets.base import transparent_field

PRELUDE_PATH = Path(__file__).parent / "prelude.js"


def builder() -> TypesBuilder:
    # JSDoc has no namespace syntax; nested types only get indented
    return TypesBuilder(
        prelude=PRELUDE_PATH.read_text(encoding="utf-8") + "\n",
        start_namespace=lambda _path, _name: None,
        end_namespace=lambda _path, _name: None,
        decl=ty_decl,
    )


def full_ty_name(ty: SchemaNode) -> str:
    return ts.full_ty_name(ty)


def ty_name(ty: SchemaNode) -> str:
    return ts.ty_name(ty)


def _typedef(type_expr: str, ty: SchemaNode) -> str:
    return f"/** @typedef {{{type_expr}}} {full_ty_name(ty)} */"


def ty_decl(ty: SchemaNode) -> Optional[str]:
    kind = ty.kind
    match kind:
        case Struct():
            alias = transparent_field(ty, kind)
            if alias is not None:
                return _typedef(full_ty_name(alias.ty), ty)
            return f"/**\n * @typedef {{{ts.ts_object(kind.fields)}}} {full_ty_name(ty)} */"
        case TupleStruct():
            return _typedef(ts.ts_tuple(kind.serialized_items()), ty)
        case Enum():
            variants = ts.enum_variants(ty, kind)
            out = _typedef(" | ".join(variants) or "never", ty)
            if not kind.has_data:
                out += (
                    f"\nexport const {shouty_snake(kind.attr.name.serialize)} = "
                    f"/** @type {{{full_ty_name(ty)}[]}} */ ([{', '.join(variants)}]);"
                )
            return out
        case ListKind() | OptionKind() | TupleKind() | RecordKind() | AnyKind() | Builtin():
            return None
        case _:
            assert_never(kind)

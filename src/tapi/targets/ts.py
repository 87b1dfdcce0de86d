from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, assert_never

from tapi.errors import UnsupportedEncodingError
from tapi.graph.builder import TypesBuilder
from tapi.naming import shouty_snake
from tapi.schema.kind import (
    AdjacentTag,
    AnyKind,
    Builtin,
    BuiltinTypeKind,
    Enum,
    ExternalTag,
    Field,
    InternalTag,
    ListKind,
    OptionKind,
    RecordKind,
    Struct,
    StructVariant,
    TupleKind,
    TupleStruct,
    TupleVariant,
    UnitVariant,
    Variant,
)
from tapi.schema.node import SchemaNode
from tapi.targets.base import check_enum, quote, transparent_field

PRELUDE_PATH = Path(__file__).parent / "prelude.ts"

_BUILTIN_NAMES = {
    BuiltinTypeKind.BOOL: "boolean",
    BuiltinTypeKind.CHAR: "string",
    BuiltinTypeKind.STRING: "string",
    BuiltinTypeKind.UNIT: "void",
}


def builder() -> TypesBuilder:
    return TypesBuilder(
        prelude=PRELUDE_PATH.read_text(encoding="utf-8") + "\n",
        start_namespace=lambda _path, name: f"export namespace {name} {{",
        end_namespace=lambda _path, _name: "}",
        decl=ty_decl,
    )


def full_ty_name(ty: SchemaNode) -> str:
    return ".".join((*ty.path, ty_name(ty)))


def ty_name(ty: SchemaNode) -> str:
    kind = ty.kind
    match kind:
        case Struct(attr=attr) | TupleStruct(attr=attr) | Enum(attr=attr):
            return attr.name.serialize
        case ListKind(item=item):
            return f"{full_ty_name(item)}[]"
        case OptionKind(item=item):
            return f"({full_ty_name(item)} | null)"
        case TupleKind(items=items):
            return ts_tuple(items)
        case RecordKind(key=key, value=value):
            return f"Record<{full_ty_name(key)}, {full_ty_name(value)}>"
        case AnyKind():
            return "any"
        case Builtin(kind=b):
            return _BUILTIN_NAMES.get(b, "number")
        case _:
            assert_never(kind)


def ts_tuple(items: Sequence[SchemaNode]) -> str:
    names = [full_ty_name(i) for i in items]
    if len(names) == 1:
        return names[0]
    return f"[{', '.join(names)}]"


def field_entries(fields: Iterable[Field]) -> list[str]:
    return [
        f"{quote(f.name)}: {full_ty_name(f.ty)}"
        for f in fields
        if not f.skipped and not f.attr.flatten
    ]


def flattened(fields: Iterable[Field]) -> str:
    # flattened fields merge into the parent object: intersect their types
    return "".join(f" & {full_ty_name(f.ty)}" for f in fields if not f.skipped and f.attr.flatten)


def ts_object(fields: Sequence[Field], multi_line: bool = False) -> str:
    entries = field_entries(fields)
    if multi_line:
        body = "{\n" + ",\n".join(f"  {e}" for e in entries) + "\n}"
    else:
        body = "{ " + ", ".join(entries) + " }"
    return body + flattened(fields)


def variant_literal(ty: SchemaNode, e: Enum, v: Variant) -> str:
    """The wire shape of one variant under the enum's tag placement."""
    tag = e.attr.tag
    match v:
        case UnitVariant(name=name):
            match tag:
                case ExternalTag():
                    return quote(name)
                case InternalTag(tag=t) | AdjacentTag(tag=t):
                    return f"{{ {quote(t)}: {quote(name)} }}"
        case TupleVariant(name=name, items=items):
            match tag:
                case ExternalTag():
                    return f"{{ {quote(name)}: {ts_tuple(items)} }}"
                case AdjacentTag(tag=t, content=c):
                    return f"{{ {quote(t)}: {quote(name)}, {quote(c)}: {ts_tuple(items)} }}"
        case StructVariant(name=name, fields=fields):
            match tag:
                case ExternalTag():
                    return f"{{ {quote(name)}: {ts_object(fields)} }}"
                case InternalTag(tag=t):
                    entries = [f"{quote(t)}: {quote(name)}", *field_entries(fields)]
                    return "{ " + ", ".join(entries) + " }" + flattened(fields)
                case AdjacentTag(tag=t, content=c):
                    return f"{{ {quote(t)}: {quote(name)}, {quote(c)}: {ts_object(fields)} }}"
    raise UnsupportedEncodingError(f"cannot encode variant {v.name!r} with {tag!r}", ty)


def enum_variants(ty: SchemaNode, e: Enum) -> list[str]:
    check_enum(ty, e)
    return [variant_literal(ty, e, v) for v in e.variants]


def ty_decl(ty: SchemaNode) -> Optional[str]:
    kind = ty.kind
    match kind:
        case Struct():
            name = kind.attr.name.serialize
            alias = transparent_field(ty, kind)
            if alias is not None:
                return f"export type {name} = {full_ty_name(alias.ty)};"
            return f"export type {name} = {ts_object(kind.fields, multi_line=True)};"
        case TupleStruct():
            name = kind.attr.name.serialize
            return f"export type {name} = {ts_tuple(kind.serialized_items())};"
        case Enum():
            name = kind.attr.name.serialize
            variants = enum_variants(ty, kind)
            if variants:
                out = f"export type {name} =\n  | " + "\n  | ".join(variants) + ";"
            else:
                out = f"export type {name} = never;"
            if not kind.has_data:
                out += f"\nexport const {shouty_snake(name)}: {name}[] = [{', '.join(variants)}];"
            return out
        case ListKind() | OptionKind() | TupleKind() | RecordKind() | AnyKind() | Builtin():
            return None
        case _:
            assert_never(kind)

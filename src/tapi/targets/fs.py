from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Sequence, assert_never

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
    TagType,
    TupleKind,
    TupleStruct,
    TupleVariant,
    UnitVariant,
    Untagged,
)
from tapi.schema.node import SchemaNode
from tapi.targets.base import check_enum, quote, transparent_field

PRELUDE_PATH = Path(__file__).parent / "prelude.fs"

_BUILTIN_NAMES = {
    BuiltinTypeKind.U8: "uint8",
    BuiltinTypeKind.U16: "uint16",
    BuiltinTypeKind.U32: "uint32",
    BuiltinTypeKind.U64: "uint64",
    BuiltinTypeKind.U128: "uint128",
    BuiltinTypeKind.I8: "int8",
    BuiltinTypeKind.I16: "int16",
    BuiltinTypeKind.I32: "int32",
    BuiltinTypeKind.I64: "int64",
    BuiltinTypeKind.I128: "int128",
    BuiltinTypeKind.F32: "float32",
    BuiltinTypeKind.F64: "float",
    BuiltinTypeKind.USIZE: "uint",
    BuiltinTypeKind.ISIZE: "int",
    BuiltinTypeKind.BOOL: "bool",
    BuiltinTypeKind.CHAR: "char",
    BuiltinTypeKind.STRING: "string",
    BuiltinTypeKind.UNIT: "unit",
}

_UNION_ENCODING = "JsonUnionEncoding"

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_']*")
_KEYWORDS = frozenset(
    """
    abstract and as assert base begin class default delegate do done downcast
    downto elif else end exception extern false finally fixed for fun function
    global if in inherit inline interface internal lazy let match member module
    mutable namespace new not null of open or override private public rec return
    select sig static struct then to true try type upcast use val void when while
    with yield
    """.split()
)


def builder() -> TypesBuilder:
    return TypesBuilder(
        prelude=PRELUDE_PATH.read_text(encoding="utf-8") + "\n",
        start_namespace=lambda _path, name: f"module {fs_ident(name)} =",
        end_namespace=lambda _path, _name: "",
        decl=ty_decl,
    )


def fs_ident(name: str) -> str:
    if _IDENT.fullmatch(name) and name not in _KEYWORDS:
        return name
    return f"``{name}``"


def full_ty_name(ty: SchemaNode) -> str:
    return ".".join((*ty.path, ty_name(ty)))


def ty_name(ty: SchemaNode) -> str:
    kind = ty.kind
    match kind:
        case Struct(attr=attr) | TupleStruct(attr=attr) | Enum(attr=attr):
            return attr.name.serialize
        case ListKind(item=item):
            return f"List<{full_ty_name(item)}>"
        case OptionKind(item=item):
            return f"Option<{full_ty_name(item)}>"
        case TupleKind(items=items):
            return f"({fs_tuple(items)})" if len(items) > 1 else fs_tuple(items)
        case RecordKind(key=key, value=value):
            return f"Map<{full_ty_name(key)}, {full_ty_name(value)}>"
        case AnyKind():
            return "obj"
        case Builtin(kind=b):
            return _BUILTIN_NAMES[b]
        case _:
            assert_never(kind)


def fs_tuple(items: Sequence[SchemaNode]) -> str:
    if not items:
        return "unit"
    return " * ".join(full_ty_name(i) for i in items)


def fs_named_tuple(fields: Sequence[Field]) -> str:
    return " * ".join(f"{fs_ident(f.name)}: {full_ty_name(f.ty)}" for f in fields if not f.skipped)


def converter_options(tag: TagType) -> list[str]:
    """FSharp.SystemTextJson settings reproducing the tag placement."""
    match tag:
        case ExternalTag():
            encodings = ["ExternalTag", "UnwrapFieldlessTags", "UnwrapSingleFieldCases"]
            return [
                "BaseUnionEncoding = "
                + " + ".join(f"{_UNION_ENCODING}.{e}" for e in encodings)
            ]
        case InternalTag(tag=t):
            return [
                f"BaseUnionEncoding = {_UNION_ENCODING}.UnwrapSingleFieldCases",
                f"UnionTagName = {quote(t)}",
            ]
        case AdjacentTag(tag=t, content=c):
            return [
                f"BaseUnionEncoding = {_UNION_ENCODING}.UnwrapSingleFieldCases",
                f"UnionTagName = {quote(t)}",
                f"UnionFieldsName = {quote(c)}",
            ]
        case Untagged():
            raise UnsupportedEncodingError("untagged enums are not supported")
        case _:
            assert_never(tag)


def _struct_decl(ty: SchemaNode, s: Struct) -> str:
    name = s.attr.name.serialize
    alias = transparent_field(ty, s)
    if alias is not None:
        return f"type {name} = {full_ty_name(alias.ty)}"

    fields = s.serialized_fields()
    if any(f.attr.flatten for f in fields):
        raise UnsupportedEncodingError("flattened fields cannot be expressed as an F# record", ty)
    if not fields:
        return f"type {name} =\n  {{  }}"
    entries = [f"{fs_ident(f.name)}: {full_ty_name(f.ty)}" for f in fields]
    return f"type {name} =\n  {{ " + "\n    ".join(entries) + " }"


def _enum_decl(ty: SchemaNode, e: Enum) -> str:
    check_enum(ty, e)
    if not e.variants:
        raise UnsupportedEncodingError("F# unions need at least one case", ty)

    name = e.attr.name.serialize
    lines = [
        f"[<JsonFSharpConverter({', '.join(converter_options(e.attr.tag))})>]",
        f"type {name} =",
    ]
    for v in e.variants:
        case = fs_ident(v.name)
        match v:
            case UnitVariant():
                lines.append(f"  | {case}")
            case TupleVariant(items=items):
                lines.append(f"  | {case} of {fs_tuple(items)}")
            case StructVariant(fields=fields):
                payload = fs_named_tuple(fields)
                lines.append(f"  | {case} of {payload}" if payload else f"  | {case}")

    if not e.has_data:
        cases = "; ".join(f"{name}.{fs_ident(v.name)}" for v in e.variants)
        lines.append(f"let {shouty_snake(name)}: {name} list = [ {cases} ]")
    return "\n".join(lines)


def ty_decl(ty: SchemaNode) -> Optional[str]:
    kind = ty.kind
    match kind:
        case Struct():
            return _struct_decl(ty, kind)
        case TupleStruct():
            return f"type {kind.attr.name.serialize} = {fs_tuple(kind.serialized_items())}"
        case Enum():
            return _enum_decl(ty, kind)
        case ListKind() | OptionKind() | TupleKind() | RecordKind() | AnyKind() | Builtin():
            return None
        case _:
            assert_never(kind)

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, Iterator, Optional, Sequence, Union, assert_never

from tapi.schema.kind import (
    AnyKind,
    Builtin,
    BuiltinTypeKind,
    ContainerAttributes,
    Default,
    Enum,
    Field,
    FieldAttributes,
    ListKind,
    Name,
    OptionKind,
    RecordKind,
    Struct,
    StructVariant,
    TagType,
    TupleField,
    TupleKind,
    TupleStruct,
    TupleVariant,
    TypeKind,
    UnitVariant,
    Variant,
)

KindSource = Union[TypeKind, Callable[[], TypeKind]]


class SchemaNode:
    """
    One type's wire shape.

    Identity is the `id` token: two nodes with the same id are the same type,
    however they were produced. The kind may be given as a zero-argument
    callable so self- and mutually-recursive types can reference nodes that
    do not exist yet; it is evaluated once, on first access.
    """

    __slots__ = ("id", "name", "path", "_kind", "_kind_factory")

    def __init__(self, id: str, name: str, kind: KindSource, path: Iterable[str] = ()) -> None:
        self.id = id
        self.name = name
        self.path: tuple[str, ...] = tuple(path)
        self._kind: Optional[TypeKind] = None
        self._kind_factory: Optional[Callable[[], TypeKind]] = None
        if callable(kind):
            self._kind_factory = kind
        else:
            self._kind = kind

    @property
    def kind(self) -> TypeKind:
        if self._kind is None:
            assert self._kind_factory is not None
            self._kind = self._kind_factory()
            self._kind_factory = None
        return self._kind

    @property
    def full_name(self) -> str:
        return ".".join((*self.path, self.name))

    def dependencies(self) -> list[SchemaNode]:
        """Nodes referenced one level down. Transitivity is the closure's job."""
        kind = self.kind
        match kind:
            case Struct(fields=fields):
                return [f.ty for f in fields]
            case TupleStruct(fields=fields):
                return [f.ty for f in fields]
            case Enum(variants=variants):
                deps: list[SchemaNode] = []
                for v in variants:
                    match v:
                        case UnitVariant():
                            pass
                        case TupleVariant(items=items):
                            deps.extend(items)
                        case StructVariant(fields=fields):
                            deps.extend(f.ty for f in fields)
                return deps
            case ListKind(item=item) | OptionKind(item=item):
                return [item]
            case TupleKind(items=items):
                return list(items)
            case RecordKind(key=key, value=value):
                return [key, value]
            case Builtin() | AnyKind():
                return []
            case _:
                assert_never(kind)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaNode):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"SchemaNode({self.id!r})"


class SchemaRegistry:
    """Arena of nodes keyed by identity; the first node registered for an id wins."""

    def __init__(self) -> None:
        self._nodes: dict[str, SchemaNode] = {}

    def intern(self, node: SchemaNode) -> SchemaNode:
        existing = self._nodes.get(node.id)
        if existing is not None:
            return existing
        self._nodes[node.id] = node
        return node

    def get(self, id: str) -> Optional[SchemaNode]:
        return self._nodes.get(id)

    def __contains__(self, id: object) -> bool:
        return id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[SchemaNode]:
        return iter(self._nodes.values())


# ----------------------------
# Builtins
# ----------------------------


def builtin(kind: BuiltinTypeKind) -> SchemaNode:
    return SchemaNode(f"builtin:{kind.value}", kind.value, Builtin(kind))


U8 = builtin(BuiltinTypeKind.U8)
U16 = builtin(BuiltinTypeKind.U16)
U32 = builtin(BuiltinTypeKind.U32)
U64 = builtin(BuiltinTypeKind.U64)
U128 = builtin(BuiltinTypeKind.U128)
USIZE = builtin(BuiltinTypeKind.USIZE)
I8 = builtin(BuiltinTypeKind.I8)
I16 = builtin(BuiltinTypeKind.I16)
I32 = builtin(BuiltinTypeKind.I32)
I64 = builtin(BuiltinTypeKind.I64)
I128 = builtin(BuiltinTypeKind.I128)
ISIZE = builtin(BuiltinTypeKind.ISIZE)
F32 = builtin(BuiltinTypeKind.F32)
F64 = builtin(BuiltinTypeKind.F64)
BOOL = builtin(BuiltinTypeKind.BOOL)
CHAR = builtin(BuiltinTypeKind.CHAR)
STRING = builtin(BuiltinTypeKind.STRING)
UNIT = builtin(BuiltinTypeKind.UNIT)

ANY = SchemaNode("any", "any", AnyKind())


# ----------------------------
# Structural constructors
# ----------------------------


def list_of(item: SchemaNode) -> SchemaNode:
    return SchemaNode(f"list<{item.id}>", f"list<{item.name}>", ListKind(item))


def option_of(item: SchemaNode) -> SchemaNode:
    return SchemaNode(f"option<{item.id}>", f"option<{item.name}>", OptionKind(item))


def tuple_of(*items: SchemaNode) -> SchemaNode:
    ids = ",".join(i.id for i in items)
    names = ",".join(i.name for i in items)
    return SchemaNode(f"tuple<{ids}>", f"tuple<{names}>", TupleKind(tuple(items)))


def record_of(key: SchemaNode, value: SchemaNode) -> SchemaNode:
    return SchemaNode(
        f"record<{key.id},{value.id}>",
        f"record<{key.name},{value.name}>",
        RecordKind(key, value),
    )


# ----------------------------
# Fields and variants
# ----------------------------


def field(
    name: str,
    ty: SchemaNode,
    *,
    rename: Optional[str] = None,
    aliases: Iterable[str] = (),
    skip: bool = False,
    skip_serializing: bool = False,
    skip_deserializing: bool = False,
    default: Default = Default.NONE,
    flatten: bool = False,
) -> Field:
    wire = rename or name
    return Field(
        attr=FieldAttributes(
            name=Name.of(wire),
            aliases=frozenset(aliases),
            skip_serializing=skip or skip_serializing,
            skip_deserializing=skip or skip_deserializing,
            default=default,
            flatten=flatten,
        ),
        ty=ty,
    )


def tuple_field(ty: SchemaNode, index: int = 0, *, skip: bool = False) -> TupleField:
    return TupleField(
        attr=FieldAttributes.named(str(index), skip_serializing=skip, skip_deserializing=skip),
        ty=ty,
    )


def unit(name: str) -> UnitVariant:
    return UnitVariant(name)


def tuple_variant(name: str, *items: SchemaNode) -> TupleVariant:
    return TupleVariant(name, tuple(items))


def struct_variant(name: str, *fields: Field) -> StructVariant:
    return StructVariant(name, tuple(fields))


# ----------------------------
# Named constructors
# ----------------------------


def _attr_for(name: str, attr: Optional[ContainerAttributes], **overrides) -> ContainerAttributes:
    base = attr or ContainerAttributes.named(name)
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return replace(base, **overrides) if overrides else base


def _lazy(items: Union[Sequence, Callable[[], Sequence]]) -> Callable[[], tuple]:
    if callable(items):
        return lambda: tuple(items())
    frozen = tuple(items)
    return lambda: frozen


def struct(
    name: str,
    fields: Union[Sequence[Field], Callable[[], Sequence[Field]]],
    *,
    id: Optional[str] = None,
    path: Iterable[str] = (),
    attr: Optional[ContainerAttributes] = None,
    transparent: Optional[bool] = None,
) -> SchemaNode:
    path = tuple(path)
    container = _attr_for(name, attr, transparent=transparent)
    get_fields = _lazy(fields)

    def build() -> TypeKind:
        fs = get_fields()
        c = container
        if any(f.attr.flatten for f in fs) and not c.has_flatten:
            c = replace(c, has_flatten=True)
        return Struct(attr=c, fields=fs)

    return SchemaNode(id or ".".join((*path, name)), container.name.serialize, build, path)


def tuple_struct(
    name: str,
    fields: Union[Sequence[Union[SchemaNode, TupleField]], Callable[[], Sequence]],
    *,
    id: Optional[str] = None,
    path: Iterable[str] = (),
    attr: Optional[ContainerAttributes] = None,
) -> SchemaNode:
    path = tuple(path)
    container = _attr_for(name, attr)
    get_fields = _lazy(fields)

    def build() -> TypeKind:
        normalized = tuple(
            f if isinstance(f, TupleField) else tuple_field(f, i)
            for i, f in enumerate(get_fields())
        )
        return TupleStruct(attr=container, fields=normalized)

    return SchemaNode(id or ".".join((*path, name)), container.name.serialize, build, path)


def enum(
    name: str,
    variants: Union[Sequence[Variant], Callable[[], Sequence[Variant]]],
    *,
    id: Optional[str] = None,
    path: Iterable[str] = (),
    attr: Optional[ContainerAttributes] = None,
    tag: Optional[TagType] = None,
) -> SchemaNode:
    path = tuple(path)
    container = _attr_for(name, attr, tag=tag)
    get_variants = _lazy(variants)
    return SchemaNode(
        id or ".".join((*path, name)),
        container.name.serialize,
        lambda: Enum(attr=container, variants=get_variants()),
        path,
    )

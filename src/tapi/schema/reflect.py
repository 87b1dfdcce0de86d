from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import decimal
import enum
import logging
import types
import typing
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, TypeVar, Union

from pydantic import BaseModel, RootModel

from tapi.errors import UnsupportedTypeError
from tapi.schema.kind import (
    ContainerAttributes,
    Default,
    Enum,
    ExternalTag,
    Field,
    FieldAttributes,
    Name,
    Struct,
    TagType,
    TupleStruct,
    TypeKind,
    UnitVariant,
)
from tapi.schema.node import (
    ANY,
    BOOL,
    F64,
    I64,
    STRING,
    U8,
    UNIT,
    SchemaNode,
    SchemaRegistry,
    list_of,
    option_of,
    record_of,
    tuple_field,
    tuple_of,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OPTIONS_ATTR = "__tapi_options__"

# named types reflected so far, keyed by identity
registry = SchemaRegistry()

_PRIMITIVES: dict[Any, SchemaNode] = {
    bool: BOOL,
    int: I64,
    float: F64,
    str: STRING,
    bytes: list_of(U8),
    type(None): UNIT,
    # serialized as ISO / canonical strings
    datetime.datetime: STRING,
    datetime.date: STRING,
    datetime.time: STRING,
    uuid.UUID: STRING,
    decimal.Decimal: STRING,
}

_SEQUENCES = (
    list,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Iterable,
)
_MAPPINGS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


@dataclass(frozen=True)
class TypeOptions:
    name: Optional[str] = None
    path: Optional[tuple[str, ...]] = None
    id: Optional[str] = None
    transparent: bool = False
    tag: TagType = ExternalTag()
    deny_unknown_fields: Optional[bool] = None


def schema_options(
    *,
    name: Optional[str] = None,
    path: Optional[Iterable[str]] = None,
    id: Optional[str] = None,
    transparent: bool = False,
    tag: Optional[TagType] = None,
    deny_unknown_fields: Optional[bool] = None,
) -> Callable[[type[T]], type[T]]:
    """Override how a class is named, placed and encoded when reflected."""

    def decorator(cls: type[T]) -> type[T]:
        setattr(
            cls,
            _OPTIONS_ATTR,
            TypeOptions(
                name=name,
                path=tuple(path) if path is not None else None,
                id=id,
                transparent=transparent,
                tag=tag or ExternalTag(),
                deny_unknown_fields=deny_unknown_fields,
            ),
        )
        return cls

    return decorator


def _options(tp: type) -> TypeOptions:
    # not inherited: a subclass is a different type
    return tp.__dict__.get(_OPTIONS_ATTR) or TypeOptions()


def schema_of(tp: Any) -> SchemaNode:
    """
    The SchemaNode for a Python annotation.

    Named types (dataclasses, pydantic models, NamedTuples, Enums) are cached
    by identity `module.qualname`, and their members are reflected lazily, so
    recursive types resolve.
    """
    if isinstance(tp, SchemaNode):
        return tp
    if tp is Any:
        return ANY
    if tp is None:
        return UNIT

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    # before the table lookup: Annotated metadata may be unhashable
    if origin is typing.Annotated:
        return schema_of(args[0])
    if tp in _PRIMITIVES:
        return _PRIMITIVES[tp]
    if origin is Union or origin is types.UnionType:
        return _union(tp, args)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return list_of(schema_of(args[0]))
        if args == ((),):
            return tuple_of()
        return tuple_of(*(schema_of(a) for a in args))
    if origin in _SEQUENCES:
        return list_of(schema_of(args[0]) if args else ANY)
    if origin in _MAPPINGS:
        key, value = args if args else (str, Any)
        return record_of(schema_of(key), schema_of(value))

    if tp in (list, set, frozenset):
        return list_of(ANY)
    if tp is tuple:
        return list_of(ANY)
    if tp is dict:
        return record_of(STRING, ANY)

    if isinstance(tp, type):
        if issubclass(tp, enum.Enum):
            return _named(tp, _enum_kind)
        if issubclass(tp, RootModel):
            return _named(tp, _root_model_kind)
        if issubclass(tp, BaseModel):
            return _named(tp, _model_kind)
        if dataclasses.is_dataclass(tp):
            return _named(tp, _dataclass_kind)
        if issubclass(tp, tuple) and hasattr(tp, "_fields"):
            return _named(tp, _named_tuple_kind)

    raise UnsupportedTypeError(f"cannot describe {tp!r} as a wire type")


def _union(tp: Any, args: tuple) -> SchemaNode:
    rest = [a for a in args if a is not type(None)]
    if len(rest) == 1 and len(rest) != len(args):
        return option_of(schema_of(rest[0]))
    raise UnsupportedTypeError(
        f"{tp!r}: only Optional[T] unions are supported; use a tagged enum instead"
    )


def type_id(tp: type) -> str:
    return _options(tp).id or f"{tp.__module__}.{tp.__qualname__}"


def _named(tp: type, build: Callable[[type, ContainerAttributes], TypeKind]) -> SchemaNode:
    key = type_id(tp)
    existing = registry.get(key)
    if existing is not None:
        return existing

    opts = _options(tp)
    name = opts.name or tp.__name__
    path = opts.path if opts.path is not None else tuple(tp.__module__.split("."))
    attr = ContainerAttributes.named(
        name,
        transparent=opts.transparent,
        tag=opts.tag,
        deny_unknown_fields=bool(opts.deny_unknown_fields),
    )
    logger.debug("reflecting %s as %s", key, ".".join((*path, name)))
    return registry.intern(SchemaNode(key, name, lambda: build(tp, attr), path))


def _has_flatten(attr: ContainerAttributes, fields: tuple[Field, ...]) -> ContainerAttributes:
    if any(f.attr.flatten for f in fields):
        return dataclasses.replace(attr, has_flatten=True)
    return attr


def _dataclass_kind(tp: type, attr: ContainerAttributes) -> TypeKind:
    hints = typing.get_type_hints(tp, include_extras=True)
    fields = []
    for f in dataclasses.fields(tp):
        meta = f.metadata
        skip = bool(meta.get("skip", False))
        has_default = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        fields.append(
            Field(
                attr=FieldAttributes(
                    name=Name.of(meta.get("rename") or f.name),
                    aliases=frozenset(meta.get("aliases", ())),
                    skip_serializing=skip,
                    skip_deserializing=skip,
                    default=Default.DEFAULT if has_default else Default.NONE,
                    flatten=bool(meta.get("flatten", False)),
                ),
                ty=schema_of(hints[f.name]),
            )
        )
    fields_t = tuple(fields)
    return Struct(attr=_has_flatten(attr, fields_t), fields=fields_t)


def _model_kind(tp: type[BaseModel], attr: ContainerAttributes) -> TypeKind:
    if tp.model_config.get("extra") == "forbid":
        attr = dataclasses.replace(attr, deny_unknown_fields=True)

    fields = []
    for name, info in tp.model_fields.items():
        serialize = info.serialization_alias or info.alias or name
        deserialize = info.validation_alias if isinstance(info.validation_alias, str) else (info.alias or name)
        skip = bool(info.exclude)
        fields.append(
            Field(
                attr=FieldAttributes(
                    name=Name(serialize, deserialize),
                    skip_serializing=skip,
                    default=Default.NONE if info.is_required() else Default.DEFAULT,
                ),
                ty=schema_of(info.annotation),
            )
        )
    return Struct(attr=attr, fields=tuple(fields))


def _root_model_kind(tp: type[RootModel], attr: ContainerAttributes) -> TypeKind:
    root = tp.model_fields["root"]
    inner = Field(attr=FieldAttributes.named("root"), ty=schema_of(root.annotation))
    return Struct(attr=dataclasses.replace(attr, transparent=True), fields=(inner,))


def _named_tuple_kind(tp: type, attr: ContainerAttributes) -> TypeKind:
    hints = typing.get_type_hints(tp, include_extras=True)
    items = tuple(
        tuple_field(schema_of(hints.get(name, Any)), i) for i, name in enumerate(tp._fields)
    )
    return TupleStruct(attr=attr, fields=items)


def _enum_kind(tp: type[enum.Enum], attr: ContainerAttributes) -> TypeKind:
    variants = []
    for member in tp:
        if not isinstance(member.value, str):
            raise UnsupportedTypeError(
                f"enum member {tp.__name__}.{member.name} has non-string value {member.value!r}"
            )
        variants.append(UnitVariant(member.value))
    return Enum(attr=attr, variants=tuple(variants))

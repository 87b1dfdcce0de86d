from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from tapi.schema.node import SchemaNode


class BuiltinTypeKind(str, enum.Enum):
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    USIZE = "usize"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    ISIZE = "isize"
    F32 = "f32"
    F64 = "f64"
    BOOL = "bool"
    CHAR = "char"
    STRING = "string"
    UNIT = "unit"


class Default(enum.Enum):
    NONE = "none"
    DEFAULT = "default"
    CUSTOM = "custom"  # default supplied by a named function


class Identifier(enum.Enum):
    NO = "no"
    FIELD = "field"
    VARIANT = "variant"


@dataclass(frozen=True)
class Name:
    serialize: str
    deserialize: str

    @classmethod
    def of(cls, name: str) -> Name:
        return cls(serialize=name, deserialize=name)


# ----------------------------
# Enum tag placement
# ----------------------------


@dataclass(frozen=True)
class ExternalTag:
    """{"Variant": payload}, unit variants as bare strings."""


@dataclass(frozen=True)
class InternalTag:
    """{tag: "Variant", ...fields}"""

    tag: str


@dataclass(frozen=True)
class AdjacentTag:
    """{tag: "Variant", content: payload}"""

    tag: str
    content: str


@dataclass(frozen=True)
class Untagged:
    """Payload only; the variant is inferred from its shape."""


TagType = Union[ExternalTag, InternalTag, AdjacentTag, Untagged]


# ----------------------------
# Attributes
# ----------------------------


@dataclass(frozen=True)
class ContainerAttributes:
    name: Name
    transparent: bool = False
    deny_unknown_fields: bool = False
    default: Default = Default.NONE
    tag: TagType = ExternalTag()
    type_from: Optional["SchemaNode"] = None
    type_try_from: Optional["SchemaNode"] = None
    type_into: Optional["SchemaNode"] = None
    is_packed: bool = False
    identifier: Identifier = Identifier.NO
    has_flatten: bool = False
    non_exhaustive: bool = False

    @classmethod
    def named(cls, name: str, **kwargs) -> ContainerAttributes:
        return cls(name=Name.of(name), **kwargs)


@dataclass(frozen=True)
class FieldAttributes:
    name: Name
    aliases: frozenset[str] = frozenset()
    skip_serializing: bool = False
    skip_deserializing: bool = False
    default: Default = Default.NONE
    flatten: bool = False
    transparent: bool = False

    @classmethod
    def named(cls, name: str, **kwargs) -> FieldAttributes:
        return cls(name=Name.of(name), **kwargs)


# ----------------------------
# Fields and variants
# ----------------------------


@dataclass(frozen=True)
class Field:
    attr: FieldAttributes
    ty: "SchemaNode"

    @property
    def name(self) -> str:
        """Name on the wire."""
        return self.attr.name.serialize

    @property
    def skipped(self) -> bool:
        return self.attr.skip_serializing


@dataclass(frozen=True)
class TupleField:
    attr: FieldAttributes
    ty: "SchemaNode"

    @property
    def skipped(self) -> bool:
        return self.attr.skip_serializing


@dataclass(frozen=True)
class UnitVariant:
    name: str


@dataclass(frozen=True)
class TupleVariant:
    name: str
    items: tuple["SchemaNode", ...]


@dataclass(frozen=True)
class StructVariant:
    name: str
    fields: tuple[Field, ...]


Variant = Union[UnitVariant, TupleVariant, StructVariant]


# ----------------------------
# Kinds
# ----------------------------


@dataclass(frozen=True)
class Struct:
    attr: ContainerAttributes
    fields: tuple[Field, ...]

    def serialized_fields(self) -> list[Field]:
        return [f for f in self.fields if not f.skipped]


@dataclass(frozen=True)
class TupleStruct:
    attr: ContainerAttributes
    fields: tuple[TupleField, ...]

    def serialized_items(self) -> list["SchemaNode"]:
        return [f.ty for f in self.fields if not f.skipped]


@dataclass(frozen=True)
class Enum:
    attr: ContainerAttributes
    variants: tuple[Variant, ...]

    @property
    def has_data(self) -> bool:
        return any(not isinstance(v, UnitVariant) for v in self.variants)


@dataclass(frozen=True)
class ListKind:
    item: "SchemaNode"


@dataclass(frozen=True)
class OptionKind:
    item: "SchemaNode"


@dataclass(frozen=True)
class TupleKind:
    items: tuple["SchemaNode", ...]


@dataclass(frozen=True)
class RecordKind:
    key: "SchemaNode"
    value: "SchemaNode"


@dataclass(frozen=True)
class Builtin:
    kind: BuiltinTypeKind


@dataclass(frozen=True)
class AnyKind:
    pass


TypeKind = Union[
    Struct,
    TupleStruct,
    Enum,
    ListKind,
    OptionKind,
    TupleKind,
    RecordKind,
    Builtin,
    AnyKind,
]

import dataclasses
import enum
from typing import Any, NamedTuple, Optional, Union

import pytest
from pydantic import BaseModel, ConfigDict, Field, RootModel

from tapi.errors import GenerationError, UnsupportedTypeError
from tapi.graph.closure import transitive_closure
from tapi.schema.kind import Default, Enum, InternalTag, ListKind, Struct, TupleStruct
from tapi.schema.node import ANY, BOOL, F64, I64, STRING, UNIT
from tapi.schema.reflect import schema_of, schema_options
from tapi.targets import ts


@schema_options(path=())
@dataclasses.dataclass
class Item:
    sku: str
    qty: int = 1


@schema_options(path=())
@dataclasses.dataclass
class Order:
    order_id: int = dataclasses.field(metadata={"rename": "orderId"})
    items: list[Item] = dataclasses.field(default_factory=list)
    note: Optional[str] = None
    cache: dict = dataclasses.field(default_factory=dict, metadata={"skip": True})


@dataclasses.dataclass
class Tree:
    label: str
    children: list["Tree"]


@schema_options(path=())
class Color(str, enum.Enum):
    RED = "red"
    GREEN = "green"


@schema_options(path=(), tag=InternalTag("kind"))
class Mode(enum.Enum):
    ON = "on"
    OFF = "off"


class Level(enum.IntEnum):
    LOW = 1


@schema_options(path=())
class Point(NamedTuple):
    x: float
    y: float


@schema_options(path=())
class Account(BaseModel):
    model_config = ConfigDict(extra="forbid")

    account_id: int = Field(alias="accountId")
    note: Optional[str] = None
    secret: str = Field(default="", exclude=True)


@schema_options(path=())
class Tags(RootModel[list[str]]):
    pass


@dataclasses.dataclass
class Inner:
    x: int


class Outer:
    @dataclasses.dataclass
    class Inner:
        y: str


@schema_options(name="Renamed", path=("api", "v1"))
@dataclasses.dataclass
class LegacyName:
    flag: bool


def test_primitives_and_containers():
    assert schema_of(int) == I64
    assert schema_of(bool) == BOOL
    assert schema_of(float) == F64
    assert schema_of(str) == STRING
    assert schema_of(None) == UNIT
    assert schema_of(Any) == ANY
    assert schema_of(bytes).id == "list<builtin:u8>"
    assert schema_of(list[str]).id == "list<builtin:string>"
    assert schema_of(set[int]).id == "list<builtin:i64>"
    assert schema_of(tuple[int, ...]).id == "list<builtin:i64>"
    assert schema_of(tuple[int, bool]).id == "tuple<builtin:i64,builtin:bool>"
    assert schema_of(dict[str, int]).id == "record<builtin:string,builtin:i64>"
    assert schema_of(Optional[int]).id == "option<builtin:i64>"
    assert schema_of(int | None).id == "option<builtin:i64>"


def test_non_optional_unions_are_rejected():
    with pytest.raises(UnsupportedTypeError, match="Optional"):
        schema_of(Union[int, str])
    with pytest.raises(UnsupportedTypeError):
        schema_of(object)


def test_identity_is_stable():
    first = schema_of(Tree)
    second = schema_of(Tree)
    assert first is second
    assert first.id == f"{Tree.__module__}.{Tree.__qualname__}"
    assert first.path == tuple(Tree.__module__.split("."))


def test_recursive_dataclass_resolves():
    tree = schema_of(Tree)
    children = tree.kind.fields[1].ty
    assert isinstance(children.kind, ListKind)
    assert children.kind.item is tree


def test_dataclass_fields_honor_metadata():
    order = schema_of(Order).kind
    assert isinstance(order, Struct)
    assert [f.name for f in order.fields] == ["orderId", "items", "note", "cache"]
    assert order.fields[0].attr.default is Default.NONE
    assert order.fields[1].attr.default is Default.DEFAULT
    assert order.fields[3].skipped

    assert ts.ty_decl(schema_of(Order)) == (
        "export type Order = {\n"
        '  "orderId": number,\n'
        '  "items": Item[],\n'
        '  "note": (string | null)\n'
        "};"
    )


def test_closure_over_reflected_types():
    ids = {n.id for n in transitive_closure([schema_of(Order)])}
    assert schema_of(Item).id in ids
    assert "list<builtin:u8>" not in ids


def test_string_enum_becomes_unit_variants():
    assert isinstance(schema_of(Color).kind, Enum)
    assert ts.ty_decl(schema_of(Color)) == (
        'export type Color =\n  | "red"\n  | "green";\nexport const COLOR: Color[] = ["red", "green"];'
    )


def test_enum_tag_from_options():
    assert ts.ty_decl(schema_of(Mode)).startswith('export type Mode =\n  | { "kind": "on" }')


def test_non_string_enum_values_are_rejected():
    node = schema_of(Level)
    with pytest.raises(UnsupportedTypeError, match="non-string"):
        node.kind


def test_named_tuple_is_a_tuple_struct():
    point = schema_of(Point)
    assert isinstance(point.kind, TupleStruct)
    assert ts.ty_decl(point) == "export type Point = [number, number];"


def test_pydantic_model_uses_aliases_and_exclusions():
    account = schema_of(Account)
    kind = account.kind
    assert kind.attr.deny_unknown_fields is True
    assert [f.name for f in kind.serialized_fields()] == ["accountId", "note"]
    assert kind.fields[1].attr.default is Default.DEFAULT
    assert ts.ty_decl(account) == (
        'export type Account = {\n  "accountId": number,\n  "note": (string | null)\n};'
    )


def test_root_model_is_transparent():
    tags = schema_of(Tags)
    assert tags.kind.attr.transparent
    assert ts.ty_decl(tags) == "export type Tags = string[];"


def test_options_override_name_and_path():
    node = schema_of(LegacyName)
    assert node.name == "Renamed"
    assert node.full_name == "api.v1.Renamed"
    assert ts.full_ty_name(node) == "api.v1.Renamed"


def test_nested_class_clashing_with_top_level_name_is_rejected():
    top, nested = schema_of(Inner), schema_of(Outer.Inner)
    assert top.id != nested.id
    assert (top.path, top.name) == (nested.path, nested.name)
    with pytest.raises(GenerationError, match="both declare 'Inner'"):
        ts.builder().types([top, nested])

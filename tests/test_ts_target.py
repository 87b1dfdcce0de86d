import pytest

from tapi.errors import MalformedSchemaError, UnsupportedEncodingError
from tapi.schema.kind import AdjacentTag, InternalTag, Untagged
from tapi.schema.node import (
    ANY,
    BOOL,
    F64,
    I32,
    STRING,
    U8,
    UNIT,
    enum,
    field,
    list_of,
    option_of,
    record_of,
    struct,
    struct_variant,
    tuple_of,
    tuple_struct,
    tuple_variant,
    unit,
)
from tapi.targets import ts


def test_type_names():
    assert ts.full_ty_name(I32) == "number"
    assert ts.full_ty_name(U8) == "number"
    assert ts.full_ty_name(BOOL) == "boolean"
    assert ts.full_ty_name(STRING) == "string"
    assert ts.full_ty_name(UNIT) == "void"
    assert ts.full_ty_name(ANY) == "any"
    assert ts.full_ty_name(list_of(STRING)) == "string[]"
    assert ts.full_ty_name(option_of(I32)) == "(number | null)"
    assert ts.full_ty_name(record_of(STRING, I32)) == "Record<string, number>"
    assert ts.full_ty_name(tuple_of(I32, BOOL)) == "[number, boolean]"
    assert ts.full_ty_name(tuple_of(I32)) == "number"
    assert ts.full_ty_name(struct("User", [], path=("app", "models"))) == "app.models.User"


def test_external_unit_enum_renders_literals_and_constant():
    a = enum("A", [unit("X"), unit("Y"), unit("Z")])
    assert ts.ty_decl(a) == (
        "export type A =\n"
        '  | "X"\n'
        '  | "Y"\n'
        '  | "Z";\n'
        'export const A: A[] = ["X", "Y", "Z"];'
    )


def test_constant_name_is_shouty_snake_case():
    e = enum("HttpStatus", [unit("Ok")])
    assert ts.ty_decl(e).endswith('export const HTTP_STATUS: HttpStatus[] = ["Ok"];')


def test_internal_tag_struct_variants():
    a = enum(
        "A",
        [
            struct_variant("X", field("wow", STRING)),
            struct_variant("Y", field("thingy", STRING)),
            unit("Z"),
        ],
        tag=InternalTag("type"),
    )
    assert ts.ty_decl(a) == (
        "export type A =\n"
        '  | { "type": "X", "wow": string }\n'
        '  | { "type": "Y", "thingy": string }\n'
        '  | { "type": "Z" };'
    )


def test_adjacent_tag_tuple_variant():
    a = enum("A", [tuple_variant("W", I32, I32)], tag=AdjacentTag("type", "data"))
    assert ts.ty_decl(a) == 'export type A =\n  | { "type": "W", "data": [number, number] };'


def test_external_data_variants():
    a = enum(
        "A",
        [
            tuple_variant("One", STRING),
            tuple_variant("Two", I32, I32),
            struct_variant("Named", field("x", I32)),
        ],
    )
    assert ts.ty_decl(a) == (
        "export type A =\n"
        '  | { "One": string }\n'
        '  | { "Two": [number, number] }\n'
        '  | { "Named": { "x": number } };'
    )


def test_internal_tag_rejects_tuple_variant():
    a = enum("A", [unit("X"), tuple_variant("W", I32, I32)], tag=InternalTag("type"))
    with pytest.raises(UnsupportedEncodingError, match="internal tagging"):
        ts.ty_decl(a)


def test_untagged_enum_is_rejected():
    a = enum("A", [unit("X")], tag=Untagged())
    with pytest.raises(UnsupportedEncodingError, match="untagged"):
        ts.ty_decl(a)


def test_empty_enum_is_never():
    assert ts.ty_decl(enum("Void", [])) == "export type Void = never;\nexport const VOID: Void[] = [];"


def test_struct_declaration_skips_hidden_fields_and_keeps_order():
    user = struct(
        "User",
        [
            field("id", I32),
            field("name", STRING),
            field("tags", list_of(STRING)),
            field("nick", option_of(STRING)),
            field("secret", STRING, skip=True),
        ],
        path=("models",),
    )
    assert ts.ty_decl(user) == (
        "export type User = {\n"
        '  "id": number,\n'
        '  "name": string,\n'
        '  "tags": string[],\n'
        '  "nick": (string | null)\n'
        "};"
    )


def test_flattened_field_becomes_intersection():
    base = struct("Base", [field("id", I32)])
    s = struct("S", [field("x", I32), field("base", base, flatten=True)])
    assert ts.ty_decl(s) == 'export type S = {\n  "x": number\n} & Base;'


def test_transparent_struct_is_an_alias():
    meters = struct("Meters", [field("value", F64)], transparent=True)
    assert ts.ty_decl(meters) == "export type Meters = number;"

    # skipped fields do not count
    tagged = struct(
        "Tagged",
        [field("cache", STRING, skip=True), field("value", list_of(I32))],
        transparent=True,
    )
    assert ts.ty_decl(tagged) == "export type Tagged = number[];"


def test_transparent_struct_with_two_fields_is_malformed():
    bad = struct("Bad", [field("a", I32), field("b", I32)], transparent=True, path=("m",))
    with pytest.raises(MalformedSchemaError, match="exactly one"):
        ts.ty_decl(bad)


def test_tuple_struct():
    assert ts.ty_decl(tuple_struct("P", [I32, STRING])) == "export type P = [number, string];"


def test_structural_kinds_declare_nothing():
    assert ts.ty_decl(list_of(I32)) is None
    assert ts.ty_decl(I32) is None
    assert ts.ty_decl(ANY) is None


def test_builder_wraps_namespaces():
    user = struct("User", [field("id", I32)], path=("models",))
    out = ts.builder().types([I32, user])

    assert out.endswith(
        "export namespace models {\n"
        "  export type User = {\n"
        '    "id": number\n'
        "  };\n"
        "}\n"
    )
    # prelude helpers come first
    assert out.index("const request =") < out.index("export namespace models")

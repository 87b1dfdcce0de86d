import pytest

from tapi.errors import GenerationError
from tapi.graph.builder import TypesBuilder, build_namespace_tree
from tapi.graph.closure import sort_by_identity
from tapi.schema.kind import Struct
from tapi.schema.node import I32, list_of, struct


def _decl(ty):
    if isinstance(ty.kind, Struct):
        return f"decl {ty.name}"
    return None


def _builder(**overrides):
    opts = dict(
        prelude="",
        start_namespace=lambda path, name: f"ns {name} {{",
        end_namespace=lambda path, name: "}",
        decl=_decl,
    )
    opts.update(overrides)
    return TypesBuilder(**opts)


def test_tree_groups_by_path_and_reuses_segments():
    a = struct("A", [], path=("b", "c"))
    b = struct("B", [], path=("b",))
    c = struct("C", [], path=("b", "c"))
    tree = build_namespace_tree([a, b, c])

    assert list(tree.root.children) == ["b"]
    ns_b = tree.root.children["b"]
    assert ns_b.decls == [b]
    assert ns_b.children["c"].decls == [a, c]
    assert ns_b.children["c"].path == ("b", "c")


def test_walk_is_depth_first_in_segment_order():
    tys = [
        struct("X", [], path=("z",)),
        struct("Y", [], path=("a", "q")),
        struct("W", [], path=("a",)),
    ]
    paths = [n.path for n in build_namespace_tree(tys).walk()]
    assert paths == [(), ("a",), ("a", "q"), ("z",)]


def test_nested_output_with_markers_and_indentation():
    tys = sort_by_identity(
        [
            struct("A", [], path=("b", "c")),
            struct("R", []),
            struct("Z", [], path=("a",)),
            list_of(I32),
        ]
    )
    out = _builder().types(tys)
    assert out == (
        "decl R\n"
        "ns a {\n"
        "  decl Z\n"
        "}\n"
        "ns b {\n"
        "  ns c {\n"
        "    decl A\n"
        "  }\n"
        "}\n"
    )


def test_declaration_order_within_a_namespace_is_caller_order():
    first = struct("Second", [], path=("m",))
    second = struct("First", [], path=("m",))
    out = _builder().types([first, second])
    assert out == "ns m {\n  decl Second\n  decl First\n}\n"


def test_multi_line_declarations_indent_every_line():
    builder = _builder(decl=lambda ty: f"type {ty.name} =\n  body")
    out = builder.types([struct("T", [], path=("ns",))])
    assert out == "ns ns {\n  type T =\n    body\n}\n"


def test_none_markers_emit_no_lines():
    builder = _builder(
        start_namespace=lambda path, name: None,
        end_namespace=lambda path, name: None,
    )
    out = builder.types([struct("T", [], path=("x", "y"))])
    assert out == "    decl T\n"


def test_markers_receive_the_full_namespace_path():
    seen = []

    def start(path, name):
        seen.append((path, name))
        return None

    _builder(start_namespace=start).types([struct("T", [], path=("x", "y"))])
    assert seen == [(("x",), "x"), (("x", "y"), "y")]


def test_prelude_is_emitted_first_without_leading_whitespace():
    out = _builder(prelude="\n\n// prelude\n").types([struct("T", [])])
    assert out == "// prelude\ndecl T\n"


def test_rendering_is_deterministic():
    tys = [struct("B", [], path=("n",)), struct("A", [], path=("m",)), I32]
    assert _builder().types(sort_by_identity(tys)) == _builder().types(sort_by_identity(reversed(tys)))


def test_same_name_in_one_namespace_is_rejected():
    first = struct("Inner", [], path=("m",))
    second = struct("Inner", [], id="m.Outer.Inner", path=("m",))
    with pytest.raises(GenerationError, match="both declare 'Inner'"):
        _builder().types([first, second])


def test_same_name_in_different_namespaces_is_fine():
    out = _builder().types([struct("Inner", [], path=("a",)), struct("Inner", [], path=("b",))])
    assert out.count("decl Inner") == 2

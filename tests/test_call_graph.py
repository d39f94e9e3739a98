from __future__ import annotations

import textwrap

import pytest

from noirlint.core.call_graph import CallGraph, build_call_graph
from noirlint.core.config import AnalyzerConfig
from noirlint.core.errors import InternalInvariantViolation
from noirlint.core.models import CallEdge
from noirlint.core.symbols import collect_symbols
from noirlint.frontend.parser import parse_program
from noirlint.frontend.workspace import ModuleSource


def _module(source: str, file_path: str = "src/main.nr", module_path: tuple[str, ...] = ()) -> ModuleSource:
    parsed = parse_program(textwrap.dedent(source).lstrip(), file_path)
    return ModuleSource(module_path=module_path, file_path=file_path, parsed=parsed)


def _graph(*modules: ModuleSource) -> CallGraph:
    return build_call_graph(collect_symbols(modules, AnalyzerConfig()))


def _edges(graph: CallGraph) -> set[tuple[str, str]]:
    return {(edge.caller, edge.callee) for edge in graph.edges}


def test_direct_calls() -> None:
    graph = _graph(_module("fn a() { b(); b(); }\nfn b() { a() }\n"))

    assert _edges(graph) == {("a", "b"), ("b", "a")}
    assert graph.successors("a") == ("b",)
    assert graph.successors("b") == ("a",)


def test_module_paths() -> None:
    graph = _graph(
        _module("mod utils;\nfn main() { utils::helper(); }\n"),
        _module(
            """
            pub(crate) fn helper() { inner(); }
            fn inner() { crate::main(); self::helper(); super::main(); }
            """,
            "src/utils.nr",
            ("utils",),
        ),
    )

    assert _edges(graph) == {
        ("main", "utils::helper"),
        ("utils::helper", "utils::inner"),
        ("utils::inner", "main"),
        ("utils::inner", "utils::helper"),
    }


def test_crate_root_fallback() -> None:
    graph = _graph(
        _module("mod a;\nfn shared() {}\n"),
        _module("fn f() { shared(); }\n", "src/a.nr", ("a",)),
    )

    assert ("a::f", "shared") in _edges(graph)


def test_use_imports() -> None:
    graph = _graph(
        _module(
            """
            mod utils;
            use utils::helper as h;
            use utils::{other, nested::*};
            fn main() { h(); other(); deep(); }
            """
        ),
        _module("mod nested;\npub fn helper() {}\npub fn other() {}\n", "src/utils.nr", ("utils",)),
        _module("pub fn deep() {}\n", "src/utils/nested.nr", ("utils", "nested")),
    )

    assert _edges(graph) == {
        ("main", "utils::helper"),
        ("main", "utils::other"),
        ("main", "utils::nested::deep"),
    }


def test_impl_methods() -> None:
    graph = _graph(
        _module(
            """
            fn main() {
                let foo = Foo::new();
                foo.area();
            }
            impl Foo {
                fn new() -> Self { Self::make() }
                fn make() -> Self { Foo {} }
            }
            impl Bar {
                fn area(self) -> Field { 1 }
            }
            impl Baz {
                fn area(self) -> Field { 2 }
            }
            """
        )
    )

    assert _edges(graph) == {
        ("main", "Foo::new"),
        ("main", "Bar::area"),
        ("main", "Baz::area"),
        ("Foo::new", "Foo::make"),
    }


def test_qualified_trait_path() -> None:
    graph = _graph(
        _module(
            """
            trait Eq { fn eq(self, other: Self) -> bool; }
            impl Eq for Foo {
                fn eq(self, other: Self) -> bool { true }
            }
            fn main() { let _ = <Foo as Eq>::eq(a, b); }
            """
        )
    )

    assert ("main", "<Foo as Eq>::eq") in _edges(graph)
    assert ("main", "Eq::eq") in _edges(graph)


def test_function_passed_as_value() -> None:
    graph = _graph(
        _module(
            """
            fn main() { apply(helper); let g = |x| other(x); }
            fn apply(f: fn() -> ()) { f() }
            fn helper() {}
            fn other(x: Field) {}
            """
        )
    )

    assert _edges(graph) == {("main", "apply"), ("main", "helper"), ("main", "other")}
    assert [(r.caller, r.target) for r in graph.unresolved] == [("apply", "f")]


def test_unresolved_calls_are_recorded() -> None:
    graph = _graph(
        _module(
            """
            fn main(x: Field) {
                let y = x;
                dep::std::hash::pedersen_hash([y]);
                std::println(y);
                assert(y == x);
            }
            """
        )
    )

    assert graph.edges == frozenset()
    targets = [r.target for r in graph.unresolved]
    assert targets == ["dep::std::hash::pedersen_hash", "std::println", "assert"]
    assert graph.unresolved[0].span.line == 3


def test_edges_collapse_and_self_calls() -> None:
    graph = _graph(_module("fn rec(n: u32) { rec(n - 1); rec(n - 2); }\n"))

    assert graph.edges == frozenset({CallEdge(caller="rec", callee="rec")})


def test_edge_endpoints_must_be_nodes() -> None:
    with pytest.raises(InternalInvariantViolation):
        CallGraph(nodes=frozenset({"a"}), edges=frozenset({CallEdge(caller="a", callee="b")}))


def test_globals_and_comptime_blocks_are_nodes() -> None:
    graph = _graph(
        _module(
            """
            global G: Field = make();
            fn make() -> Field { 1 }
            fn main() -> Field { G }
            comptime { make(); dep::lib::run(); }
            """
        )
    )

    block = "comptime@src/main.nr:4:1"
    assert _edges(graph) == {("G", "make"), ("main", "G"), (block, "make")}
    assert {"G", block} <= graph.nodes
    assert [(u.caller, u.target) for u in graph.unresolved] == [(block, "dep::lib::run")]

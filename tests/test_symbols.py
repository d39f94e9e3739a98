from __future__ import annotations

import textwrap

import pytest

from noirlint.core.config import AnalyzerConfig
from noirlint.core.errors import DuplicateSymbolPathError
from noirlint.core.models import Visibility
from noirlint.core.symbols import SymbolTable, collect_module, collect_symbols, merge_symbols
from noirlint.frontend.parser import parse_program
from noirlint.frontend.workspace import ModuleSource


def _module(source: str, file_path: str = "src/main.nr", module_path: tuple[str, ...] = ()) -> ModuleSource:
    parsed = parse_program(textwrap.dedent(source).lstrip(), file_path)
    return ModuleSource(module_path=module_path, file_path=file_path, parsed=parsed)


def _table(*modules: ModuleSource, config: AnalyzerConfig | None = None) -> SymbolTable:
    return collect_symbols(modules, config or AnalyzerConfig())


def test_collects_every_kind_of_function() -> None:
    table = _table(
        _module(
            """
            fn top() {}
            mod inline {
                pub fn nested() {}
            }
            trait Eq {
                fn eq(self, other: Self) -> bool;
            }
            impl Foo {
                fn new() -> Self { Foo {} }
            }
            impl Eq for Foo {
                fn eq(self, other: Self) -> bool { true }
            }
            """
        )
    )

    assert sorted(table.definitions) == [
        "<Foo as Eq>::eq",
        "Eq::eq",
        "Foo::new",
        "inline::nested",
        "top",
    ]
    assert [symbol.id for symbol in table] == sorted(table.definitions)


def test_visibility_classification() -> None:
    table = _table(
        _module(
            """
            fn private_fn() {}
            pub(crate) fn crate_fn() {}
            pub fn public_fn() {}
            mod hidden {
                pub fn still_public() {}
            }
            trait Shape {
                fn area(self) -> Field;
            }
            impl Shape for Square {
                fn area(self) -> Field { 4 }
            }
            impl Square {
                fn side(self) -> Field { 2 }
            }
            """
        )
    )

    visibility = {symbol.id: symbol.visibility for symbol in table}
    assert visibility["private_fn"] == Visibility.PRIVATE
    assert visibility["crate_fn"] == Visibility.CRATE_VISIBLE
    assert visibility["public_fn"] == Visibility.PUBLIC
    assert visibility["hidden::still_public"] == Visibility.PUBLIC
    assert visibility["Shape::area"] == Visibility.PUBLIC
    assert visibility["<Square as Shape>::area"] == Visibility.PUBLIC
    assert visibility["Square::side"] == Visibility.PRIVATE


def test_entry_points() -> None:
    table = _table(
        _module(
            """
            fn main() {}
            #[test]
            fn test_it() {}
            fn helper() {}
            mod inner {
                fn main() {}
            }
            impl Foo {
                fn main() {}
            }
            """
        )
    )

    entries = {symbol.id for symbol in table if symbol.is_entry_point}
    assert entries == {"main", "test_it"}


def test_configured_entry_points() -> None:
    config = AnalyzerConfig().with_entry_points(["run"])
    table = _table(_module("fn main() {}\nfn run() {}\n"), config=config)

    assert table.definitions["run"].symbol.is_entry_point
    assert not table.definitions["main"].symbol.is_entry_point


def test_symbol_metadata() -> None:
    table = _table(_module("pub fn helper() {}\n", "src/utils.nr", ("utils",)))

    symbol = table.definitions["utils::helper"].symbol
    assert symbol.name == "helper"
    assert symbol.module_path == ("utils",)
    assert symbol.container is None
    assert str(symbol.definition_span) == "src/utils.nr:1:8"


def test_partials_merge_in_file_order() -> None:
    config = AnalyzerConfig()
    root = collect_module(_module("mod b;\nmod a;\nfn main() {}\n"), config)
    a = collect_module(_module("fn f() {}\n", "src/a.nr", ("a",)), config)
    b = collect_module(_module("fn f() {}\n", "src/b.nr", ("b",)), config)

    forward = merge_symbols([root, a, b])
    backward = merge_symbols([b, a, root])

    assert list(forward.definitions) == list(backward.definitions) == ["a::f", "b::f", "main"]
    assert forward.scopes[()].submodules == {"a", "b"}


def test_duplicate_path_in_one_file() -> None:
    with pytest.raises(DuplicateSymbolPathError) as excinfo:
        _table(_module("fn twice() {}\nfn twice() {}\n"))

    assert excinfo.value.path == "twice"
    assert "src/main.nr:1:4" in str(excinfo.value)
    assert "src/main.nr:2:4" in str(excinfo.value)


def test_duplicate_path_across_files() -> None:
    root = _module("mod a;\nmod a {\n    fn f() {}\n}\n")
    child = _module("fn f() {}\n", "src/a.nr", ("a",))

    with pytest.raises(DuplicateSymbolPathError):
        _table(root, child)


def test_empty_package() -> None:
    table = _table(_module("struct Only { x: Field }\n"))

    assert len(table) == 0
    assert list(table) == []


def test_globals_and_comptime_blocks_are_items() -> None:
    table = _table(
        _module(
            """
            global PRIVATE: Field = 1;
            pub global SHARED: Field = 2;
            mod consts {
                global INNER: u8 = 3;
            }
            comptime {
                setup();
            }
            """
        )
    )

    assert len(table) == 0
    assert sorted(table.items) == [
        "PRIVATE",
        "SHARED",
        "comptime@src/main.nr:6:1",
        "consts::INNER",
    ]
    assert table.root_items == {"SHARED", "comptime@src/main.nr:6:1"}
    assert table.scopes[("consts",)].globals == {"INNER": "consts::INNER"}


def test_global_clashing_with_function_is_a_duplicate() -> None:
    with pytest.raises(DuplicateSymbolPathError) as excinfo:
        _table(_module("global twice: Field = 1;\nfn twice() {}\n"))

    assert excinfo.value.path == "twice"

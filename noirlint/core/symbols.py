"""Symbol collection: the table of every function defined in a package."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from noirlint.core.config import AnalyzerConfig
from noirlint.core.errors import DuplicateSymbolPathError
from noirlint.core.models import FunctionSymbol, SourceSpan, Visibility
from noirlint.frontend import ast
from noirlint.frontend.workspace import ModuleSource

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "::"


def join_path(*segments: str) -> str:
    return PATH_SEPARATOR.join(segments)


@dataclass(frozen=True)
class FunctionDefinition:
    """A collected symbol together with what the call graph builder needs from its item."""

    symbol: FunctionSymbol
    body: ast.BlockExpression | None
    self_type: str | None = None


@dataclass(frozen=True)
class ItemDefinition:
    """A global or top-level `comptime` block.

    Neither is ever reported, but both evaluate an expression that may call
    functions, so they take part in the call graph. Public globals and
    comptime blocks are roots; a private global only keeps alive what its
    initializer calls if a reachable function reads it.
    """

    id: str
    module_path: tuple[str, ...]
    span: SourceSpan
    body: ast.Node | None
    is_root: bool


@dataclass
class ModuleScope:
    """Names visible inside one module, used to resolve paths in function bodies."""

    path: tuple[str, ...]
    functions: dict[str, str] = field(default_factory=dict)
    globals: dict[str, str] = field(default_factory=dict)
    submodules: set[str] = field(default_factory=set)
    imports: dict[str, tuple[str, ...]] = field(default_factory=dict)
    globs: list[tuple[str, ...]] = field(default_factory=list)
    type_methods: dict[str, dict[str, list[str]]] = field(default_factory=dict)

    def add_method(self, type_name: str, method_name: str, symbol_id: str) -> None:
        methods = self.type_methods.setdefault(type_name, {})
        methods.setdefault(method_name, []).append(symbol_id)

    def update(self, other: ModuleScope) -> None:
        self.functions.update(other.functions)
        self.globals.update(other.globals)
        self.submodules.update(other.submodules)
        self.imports.update(other.imports)
        self.globs.extend(other.globs)
        for type_name, methods in other.type_methods.items():
            for method_name, ids in methods.items():
                for symbol_id in ids:
                    self.add_method(type_name, method_name, symbol_id)


@dataclass
class ModuleSymbols:
    """Partial symbol table of a single source file."""

    file_path: str
    definitions: list[FunctionDefinition] = field(default_factory=list)
    items: list[ItemDefinition] = field(default_factory=list)
    scopes: dict[tuple[str, ...], ModuleScope] = field(default_factory=dict)


@dataclass(frozen=True)
class SymbolTable:
    """Every function of a package keyed by fully-qualified path, plus module scopes.

    Iterating and `len()` cover functions only; globals and comptime blocks
    live in `items`.
    """

    definitions: dict[str, FunctionDefinition]
    scopes: dict[tuple[str, ...], ModuleScope]
    methods_by_name: dict[str, list[str]]
    items: dict[str, ItemDefinition] = field(default_factory=dict)

    @property
    def root_items(self) -> frozenset[str]:
        return frozenset(item_id for item_id, item in self.items.items() if item.is_root)

    def __len__(self) -> int:
        return len(self.definitions)

    def __iter__(self) -> Iterator[FunctionSymbol]:
        for symbol_id in sorted(self.definitions):
            yield self.definitions[symbol_id].symbol

    def __contains__(self, symbol_id: object) -> bool:
        return symbol_id in self.definitions


class _ModuleCollector:
    def __init__(self, module: ModuleSource, config: AnalyzerConfig) -> None:
        self.module = module
        self.config = config
        self.result = ModuleSymbols(file_path=module.file_path)

    def collect(self) -> ModuleSymbols:
        self._collect_items(self.module.parsed.items, self.module.module_path)
        return self.result

    def _scope(self, module_path: tuple[str, ...]) -> ModuleScope:
        if module_path not in self.result.scopes:
            self.result.scopes[module_path] = ModuleScope(path=module_path)
        return self.result.scopes[module_path]

    def _collect_items(self, items: tuple[ast.Item, ...], module_path: tuple[str, ...]) -> None:
        scope = self._scope(module_path)
        for item in items:
            if isinstance(item, ast.FunctionItem):
                symbol_id = join_path(*module_path, item.name)
                self._add(item, symbol_id, module_path, item.visibility)
                scope.functions[item.name] = symbol_id
            elif isinstance(item, ast.ModuleItem):
                scope.submodules.add(item.name)
                if item.items is not None:
                    self._collect_items(item.items, (*module_path, item.name))
            elif isinstance(item, ast.UseItem):
                for entry in item.entries:
                    if entry.is_glob:
                        scope.globs.append(entry.path)
                    elif entry.bound_name is not None and entry.bound_name != "_":
                        path = entry.path[:-1] if entry.path[-1] == "self" else entry.path
                        scope.imports[entry.bound_name] = path
            elif isinstance(item, ast.ImplItem):
                self._collect_impl(item, module_path, scope)
            elif isinstance(item, ast.TraitItem):
                for function in item.functions:
                    symbol_id = join_path(*module_path, item.name, function.name)
                    # Trait methods are called through trait dispatch.
                    self._add(
                        function, symbol_id, module_path, Visibility.PUBLIC, container=item.name
                    )
                    scope.add_method(item.name, function.name, symbol_id)
            elif isinstance(item, ast.GlobalItem):
                global_id = join_path(*module_path, item.name)
                self.result.items.append(
                    ItemDefinition(
                        id=global_id,
                        module_path=module_path,
                        span=item.span,
                        body=item.value,
                        is_root=item.visibility is Visibility.PUBLIC,
                    )
                )
                scope.globals[item.name] = global_id
            elif isinstance(item, ast.ComptimeItem):
                self.result.items.append(
                    ItemDefinition(
                        id=f"comptime@{item.span}",
                        module_path=module_path,
                        span=item.span,
                        body=item.body,
                        is_root=True,
                    )
                )

    def _collect_impl(
        self, item: ast.ImplItem, module_path: tuple[str, ...], scope: ModuleScope
    ) -> None:
        if item.trait_text is None:
            container = item.type_text
        else:
            container = f"<{item.type_text} as {item.trait_text}>"
        for function in item.functions:
            symbol_id = join_path(*module_path, container, function.name)
            if item.trait_text is None:
                visibility = function.visibility
            else:
                visibility = Visibility.PUBLIC
            self._add(
                function,
                symbol_id,
                module_path,
                visibility,
                container=container,
                self_type=item.type_name,
            )
            scope.add_method(item.type_name, function.name, symbol_id)

    def _add(
        self,
        function: ast.FunctionItem,
        symbol_id: str,
        module_path: tuple[str, ...],
        visibility: Visibility,
        container: str | None = None,
        self_type: str | None = None,
    ) -> None:
        is_entry_point = any(name in self.config.entry_attributes for name in function.attributes)
        if not module_path and container is None and function.name in self.config.entry_points:
            is_entry_point = True
        symbol = FunctionSymbol(
            id=symbol_id,
            name=function.name,
            visibility=visibility,
            definition_span=function.span,
            is_entry_point=is_entry_point,
            module_path=module_path,
            container=container,
        )
        self.result.definitions.append(
            FunctionDefinition(symbol=symbol, body=function.body, self_type=self_type)
        )


def collect_module(module: ModuleSource, config: AnalyzerConfig) -> ModuleSymbols:
    """Collect the functions and scopes declared in one source file."""
    return _ModuleCollector(module, config).collect()


def merge_symbols(partials: Sequence[ModuleSymbols]) -> SymbolTable:
    """Combine per-file results into one table, in file path order.

    Raises:
        DuplicateSymbolPathError: Two functions or globals share a fully-qualified path
    """
    definitions: dict[str, FunctionDefinition] = {}
    items: dict[str, ItemDefinition] = {}
    seen: dict[str, SourceSpan] = {}
    scopes: dict[tuple[str, ...], ModuleScope] = {}
    methods_by_name: dict[str, list[str]] = {}

    def claim(path: str, span: SourceSpan) -> None:
        if path in seen:
            raise DuplicateSymbolPathError(path, str(seen[path]), str(span))
        seen[path] = span

    for partial in sorted(partials, key=lambda p: p.file_path):
        for definition in partial.definitions:
            symbol = definition.symbol
            claim(symbol.id, symbol.definition_span)
            definitions[symbol.id] = definition
            if symbol.container is not None:
                methods_by_name.setdefault(symbol.name, []).append(symbol.id)
        for item in partial.items:
            claim(item.id, item.span)
            items[item.id] = item
        for module_path, scope in partial.scopes.items():
            if module_path not in scopes:
                scopes[module_path] = ModuleScope(path=module_path)
            scopes[module_path].update(scope)

    return SymbolTable(
        definitions=dict(sorted(definitions.items())),
        scopes=scopes,
        methods_by_name=methods_by_name,
        items=dict(sorted(items.items())),
    )


def collect_symbols(modules: Sequence[ModuleSource], config: AnalyzerConfig) -> SymbolTable:
    table = merge_symbols([collect_module(module, config) for module in modules])
    logger.debug(f"Collected {len(table)} function(s) from {len(modules)} module(s)")
    return table

"""Call graph construction.

Every name reference in a function body, global initializer or comptime
block becomes an edge to each local function or global it can resolve to.
References that cannot be resolved (external dependencies, builtins, local
variables) produce no edge; unresolved call targets are recorded so callers
can inspect them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from functools import cached_property

from noirlint.core.errors import InternalInvariantViolation
from noirlint.core.models import CallEdge, SourceSpan, UnresolvedReference
from noirlint.core.symbols import SymbolTable, join_path
from noirlint.frontend import ast

logger = logging.getLogger(__name__)

# Bounds the number of `use` hops followed for one reference.
MAX_IMPORT_DEPTH = 16


@dataclass(frozen=True)
class Reference:
    """A name used in a function body."""

    segments: tuple[str, ...]
    span: SourceSpan
    is_call: bool = False
    is_method: bool = False

    @property
    def text(self) -> str:
        return join_path(*self.segments)


def collect_references(body: ast.Node) -> list[Reference]:
    """Gather every path and method name referenced inside `body`, in source order."""
    references: list[Reference] = []
    callees: set[int] = set()
    for node in ast.walk(body):
        if isinstance(node, ast.CallExpression) and isinstance(node.function, ast.PathExpression):
            references.append(Reference(node.function.segments, node.function.span, is_call=True))
            callees.add(id(node.function))
        elif isinstance(node, ast.MethodCallExpression):
            references.append(
                Reference(
                    (node.method_name,),
                    node.name_span or node.span,
                    is_call=True,
                    is_method=True,
                )
            )
        elif isinstance(node, ast.PathExpression) and id(node) not in callees:
            references.append(Reference(node.segments, node.span))
    return references


class Resolver:
    """Resolves referenced paths against a symbol table, Rust style.

    Resolution is conservative: a reference that could denote several
    functions (method calls, `Type::method` with several impls) resolves to
    all of them, and anything ambiguous beyond that resolves to nothing.
    """

    def __init__(self, table: SymbolTable) -> None:
        self.table = table
        self.scopes = table.scopes
        self.type_methods: dict[str, dict[str, list[str]]] = {}
        for scope in table.scopes.values():
            for type_name, methods in scope.type_methods.items():
                merged = self.type_methods.setdefault(type_name, {})
                for method_name, ids in methods.items():
                    merged.setdefault(method_name, []).extend(ids)

    def resolve(
        self, reference: Reference, module: tuple[str, ...], self_type: str | None = None
    ) -> list[str]:
        """Ids of every function or global `reference` may denote when written inside `module`."""
        segments = reference.segments
        if reference.is_method or segments[0].startswith("<"):
            return list(self.table.methods_by_name.get(segments[-1], []))
        if segments[0] == "Self":
            if self_type is None or len(segments) != 2:
                return []
            return self._type_method(self_type, segments[1])
        return self.resolve_path(module, segments)

    def resolve_path(
        self, module: tuple[str, ...], segments: tuple[str, ...], depth: int = 0
    ) -> list[str]:
        """Resolve a path written inside `module`."""
        if depth > MAX_IMPORT_DEPTH or not segments:
            return []
        head = segments[0]
        if head == "dep":
            return []
        if head == "crate":
            return self._resolve_in((), segments[1:], depth)
        if head == "self":
            return self._resolve_in(module, segments[1:], depth)
        if head == "super":
            while segments and segments[0] == "super":
                if not module:
                    return []
                module = module[:-1]
                segments = segments[1:]
            return self._resolve_in(module, segments, depth)

        found = self._resolve_in(module, segments, depth)
        if not found and module:
            found = self._resolve_in((), segments, depth)
        return found

    def _resolve_in(
        self, module: tuple[str, ...], segments: tuple[str, ...], depth: int
    ) -> list[str]:
        if depth > MAX_IMPORT_DEPTH or not segments:
            return []
        scope = self.scopes.get(module)
        if scope is None:
            return []
        head, tail = segments[0], segments[1:]

        if not tail and head in scope.functions:
            return [scope.functions[head]]
        if not tail and head in scope.globals:
            return [scope.globals[head]]
        if tail and head in scope.submodules:
            found = self._resolve_in((*module, head), tail, depth)
            if found:
                return found
        if head in scope.imports:
            found = self.resolve_path(module, scope.imports[head] + tail, depth + 1)
            if found:
                return found
        if len(tail) == 1:
            found = self._type_method(head, tail[0])
            if found:
                return found
        for glob in scope.globs:
            target = self._resolve_module(module, glob)
            if target is not None and target != module:
                found = self._resolve_in(target, segments, depth + 1)
                if found:
                    return found
        return []

    def _resolve_module(
        self, module: tuple[str, ...], segments: tuple[str, ...]
    ) -> tuple[str, ...] | None:
        """Absolute path of the module named by `segments`, if it exists."""
        if not segments or segments[0] == "dep":
            return None
        if segments[0] == "crate":
            candidates = [segments[1:]]
        elif segments[0] == "self":
            candidates = [module + segments[1:]]
        elif segments[0] == "super":
            base = module
            while segments and segments[0] == "super":
                if not base:
                    return None
                base = base[:-1]
                segments = segments[1:]
            candidates = [base + segments]
        else:
            candidates = [module + segments, segments]
        for candidate in candidates:
            if candidate in self.scopes:
                return candidate
        return None

    def _type_method(self, type_name: str, method_name: str) -> list[str]:
        return list(self.type_methods.get(type_name, {}).get(method_name, []))


@dataclass(frozen=True)
class CallGraph:
    """Simple directed graph over function, global and comptime block ids."""

    nodes: frozenset[str]
    edges: frozenset[CallEdge]
    unresolved: tuple[UnresolvedReference, ...] = ()

    def __post_init__(self) -> None:
        for edge in self.edges:
            if edge.caller not in self.nodes or edge.callee not in self.nodes:
                raise InternalInvariantViolation(
                    f"edge {edge.caller} -> {edge.callee} has an endpoint outside the graph"
                )

    @cached_property
    def adjacency(self) -> dict[str, tuple[str, ...]]:
        successors: dict[str, set[str]] = {node: set() for node in self.nodes}
        for edge in self.edges:
            successors[edge.caller].add(edge.callee)
        return {node: tuple(sorted(targets)) for node, targets in successors.items()}

    def successors(self, node: str) -> tuple[str, ...]:
        return self.adjacency.get(node, ())


def _bodies(
    table: SymbolTable,
) -> Iterator[tuple[str, tuple[str, ...], str | None, ast.Node]]:
    """(id, module path, Self type, body) of every function, global and comptime block, by id."""
    bodies = [
        (symbol_id, d.symbol.module_path, d.self_type, d.body)
        for symbol_id, d in table.definitions.items()
    ]
    bodies.extend((item_id, i.module_path, None, i.body) for item_id, i in table.items.items())
    for entry in sorted(bodies, key=lambda b: b[0]):
        if entry[3] is not None:
            yield entry


def build_call_graph(table: SymbolTable) -> CallGraph:
    """Build the call graph of every function, global and comptime block in `table`.

    Bodies are processed in path order so that the recorded unresolved
    references come out in the same order on every run.
    """
    resolver = Resolver(table)
    edges: set[CallEdge] = set()
    unresolved: list[UnresolvedReference] = []

    for node_id, module_path, self_type, body in _bodies(table):
        for reference in collect_references(body):
            targets = resolver.resolve(reference, module_path, self_type)
            if not targets:
                if reference.is_call:
                    logger.debug(f"Unresolved call to {reference.text} in {node_id}")
                    unresolved.append(
                        UnresolvedReference(
                            caller=node_id, target=reference.text, span=reference.span
                        )
                    )
                continue
            for target in targets:
                edges.add(CallEdge(caller=node_id, callee=target))

    return CallGraph(
        nodes=frozenset(table.definitions) | frozenset(table.items),
        edges=frozenset(edges),
        unresolved=tuple(unresolved),
    )

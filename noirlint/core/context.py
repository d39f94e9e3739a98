"""Per-package analysis context shared by all lint rules."""

from __future__ import annotations

from dataclasses import dataclass, field

from noirlint.core.call_graph import CallGraph, build_call_graph
from noirlint.core.config import AnalyzerConfig
from noirlint.core.models import SourceSpan
from noirlint.core.reachability import compute_reachable, resolve_roots
from noirlint.core.symbols import SymbolTable


@dataclass(frozen=True)
class AnalysisContext:
    """Symbol table, call graph, roots and reachable set of one package.

    Built once per analysis pass and never mutated; discarded once the lint
    rules have run.
    """

    package_name: str
    table: SymbolTable
    graph: CallGraph
    roots: frozenset[str]
    reachable: frozenset[str]
    config: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    sources: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        package_name: str,
        table: SymbolTable,
        config: AnalyzerConfig | None = None,
        sources: dict[str, str] | None = None,
        graph: CallGraph | None = None,
    ) -> AnalysisContext:
        graph = graph if graph is not None else build_call_graph(table)
        roots = resolve_roots(table) | table.root_items
        return cls(
            package_name=package_name,
            table=table,
            graph=graph,
            roots=roots,
            reachable=compute_reachable(graph, roots),
            config=config or AnalyzerConfig(),
            sources=sources or {},
        )

    def source_line(self, span: SourceSpan) -> str | None:
        source = self.sources.get(span.file_path)
        if source is None:
            return None
        lines = source.splitlines()
        if 0 < span.line <= len(lines):
            return lines[span.line - 1]
        return None

"""Unused function lint.

Reports every function that is neither a root (public or an entry point)
nor reachable from one through the call graph.
"""

from noirlint.core.context import AnalysisContext
from noirlint.core.models import Diagnostic, UnusedDiagnostic


class UnusedFunction:
    name = "unused-function"
    description = "Functions that are defined but never reached from a public function or entry point"

    def lint(self, context: AnalysisContext) -> list[Diagnostic]:
        diagnostics: list[UnusedDiagnostic] = []
        for symbol in context.table:
            if symbol.id in context.roots or symbol.id in context.reachable:
                continue
            span = symbol.definition_span
            diagnostics.append(
                UnusedDiagnostic(
                    lint=self.name,
                    message=f"Function '{symbol.name}' is unused",
                    span=span,
                    source_line=context.source_line(span),
                    symbol=symbol,
                )
            )
        diagnostics.sort(key=lambda d: (*d.span.sort_key(), d.symbol.id))
        return list(diagnostics)

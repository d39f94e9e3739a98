"""Compiler style plain text formatter."""

from noirlint.core.models import AnalysisError, Diagnostic, ScanResult
from noirlint.output.formatters.protocols import BaseFormatter


class TextFormatter(BaseFormatter):
    """Format results like compiler warnings, underlining the offending name."""

    def format(self, result: ScanResult) -> str:
        blocks = [self.format_diagnostic(d) for d in result.diagnostics]
        blocks.extend(self.format_error(e) for e in result.all_errors)
        if not blocks:
            return ""
        return "\n\n".join(blocks) + "\n"

    def format_diagnostic(self, diagnostic: Diagnostic) -> str:
        span = diagnostic.span
        lines = [
            f"{diagnostic.severity.value}[{diagnostic.lint}]: {diagnostic.message}",
        ]
        gutter = " " * len(str(span.line))
        lines.append(f"{gutter}--> {span}")
        if diagnostic.source_line is not None:
            width = span.end_column - span.column if span.end_line == span.line else 1
            # Keep tabs so the marker lines up however the terminal expands them.
            prefix = diagnostic.source_line[: span.column - 1]
            padding = "".join("\t" if c == "\t" else " " for c in prefix)
            marker = padding + "^" * max(width, 1)
            lines.extend(
                [
                    f"{gutter} |",
                    f"{span.line} | {diagnostic.source_line}",
                    f"{gutter} | {marker}",
                ]
            )
        return "\n".join(lines)

    def format_error(self, error: AnalysisError) -> str:
        prefix = f"{error.package}: " if error.package else ""
        return f"error[{error.kind}]: {prefix}{error.message}"

"""JSON formatter for structured output."""

import json

from noirlint.core.models import ScanResult
from noirlint.output.formatters.protocols import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Format results as JSON."""

    def format(self, result: ScanResult) -> str:
        """Format scan results as JSON."""
        data = {
            "summary": {
                "root_dir": result.root_dir,
                "packages": len(result.packages),
                "files_scanned": result.files_scanned,
                "total_functions": result.total_functions,
                "diagnostics_count": len(result.diagnostics),
                "scan_duration": result.scan_duration,
            },
            "diagnostics": [
                {
                    "lint": diagnostic.lint,
                    "severity": diagnostic.severity.value,
                    "message": diagnostic.message,
                    "file": diagnostic.span.file_path,
                    "line": diagnostic.span.line,
                    "column": diagnostic.span.column,
                    "end_line": diagnostic.span.end_line,
                    "end_column": diagnostic.span.end_column,
                }
                for diagnostic in result.diagnostics
            ],
            "errors": [error.model_dump() for error in result.all_errors],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

"""CSV formatter for spreadsheet-compatible output."""

import csv
from io import StringIO

from noirlint.core.models import ScanResult
from noirlint.output.formatters.protocols import BaseFormatter


class CsvFormatter(BaseFormatter):
    """Format results as CSV."""

    def format(self, result: ScanResult) -> str:
        """Format scan results as CSV."""
        output = StringIO()
        writer = csv.writer(output)

        # Write header
        writer.writerow(["Package", "File", "Line", "Column", "Lint", "Severity", "Message"])

        # Write data
        for package in result.packages:
            for diagnostic in package.diagnostics:
                writer.writerow(
                    [
                        package.name,
                        diagnostic.span.file_path,
                        diagnostic.span.line,
                        diagnostic.span.column,
                        diagnostic.lint,
                        diagnostic.severity.value,
                        diagnostic.message,
                    ]
                )

        return output.getvalue()

from noirlint.output.formatters.csv_formatter import CsvFormatter
from noirlint.output.formatters.enums import OutputFormat
from noirlint.output.formatters.json_formatter import JsonFormatter
from noirlint.output.formatters.protocols import BaseFormatter
from noirlint.output.formatters.text_formatter import TextFormatter
from noirlint.output.formatters.tree_formatter import TreeFormatter


def get_formatter(output_format: OutputFormat) -> BaseFormatter:
    """Get the appropriate formatter for the output format."""
    formatters: dict[OutputFormat, BaseFormatter] = {
        OutputFormat.TEXT: TextFormatter(),
        OutputFormat.TREE: TreeFormatter(),
        OutputFormat.JSON: JsonFormatter(),
        OutputFormat.CSV: CsvFormatter(),
    }

    return formatters[output_format]

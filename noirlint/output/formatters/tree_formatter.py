"""Tree formatter for rich terminal output."""

from collections import defaultdict

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from noirlint.core.models import Diagnostic, ScanResult, Severity
from noirlint.output.formatters.protocols import BaseFormatter


class TreeFormatter(BaseFormatter):
    """Format results as a rich tree for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format(self, result: ScanResult) -> str:
        """Format scan results as a rich tree."""
        if not result.diagnostics and not result.all_errors:
            return "✅ No unused functions found!"

        # Print tree directly to console
        self.console.print(self.build_tree(result))
        self._print_summary(result)
        return ""  # Return empty string since we printed directly

    def build_tree(self, result: ScanResult) -> Tree:
        diagnostics = result.diagnostics

        by_package: dict[str, dict[str, list[Diagnostic]]] = {}
        for package in result.packages:
            by_file: dict[str, list[Diagnostic]] = defaultdict(list)
            for diagnostic in package.diagnostics:
                by_file[diagnostic.span.file_path].append(diagnostic)
            by_package[package.name] = by_file

        root_tree = Tree(
            f"🔍 Diagnostics by package and file (total {len(diagnostics)})",
            guide_style="dim",
        )

        for package_name in sorted(by_package):
            package_node = root_tree.add(f"[bold cyan]{package_name}[/bold cyan]", guide_style="dim")
            dir_nodes: dict[tuple[str, ...], Tree] = {(): package_node}
            by_file = by_package[package_name]

            for file_path in sorted(by_file):
                parts = tuple(file_path.split("/"))
                parent_key: tuple[str, ...] = ()
                parent_node = package_node
                for part in parts[:-1]:
                    key = (*parent_key, part)
                    if key not in dir_nodes:
                        # Folder node (with trailing slash)
                        parent_node = parent_node.add(
                            f"[bold blue]{part}/[/bold blue]", guide_style="dim"
                        )
                        dir_nodes[key] = parent_node
                    else:
                        parent_node = dir_nodes[key]
                    parent_key = key

                file_node = parent_node.add(f"[bold green]{parts[-1]}[/bold green]", guide_style="dim")
                for diagnostic in by_file[file_path]:
                    style = "red" if diagnostic.severity == Severity.ERROR else "magenta"
                    label = Text(f"{diagnostic.message} ", style=style)
                    label.append(
                        f"(line {diagnostic.span.line}, col {diagnostic.span.column})",
                        style="grey50",
                    )
                    file_node.add(label)

        errors = result.all_errors
        if errors:
            errors_node = root_tree.add("[bold red]errors[/bold red]", guide_style="dim")
            for error in errors:
                errors_node.add(Text(f"{error.kind}: {error.message}", style="red"))

        return root_tree

    def _print_summary(self, result: ScanResult) -> None:
        self.console.print("\n📊 Summary:")
        self.console.print(f"   Packages analyzed: {len(result.packages)}")
        self.console.print(f"   Files scanned: {result.files_scanned}")
        self.console.print(f"   Functions: {result.total_functions}")
        self.console.print(f"   Unused functions: {len(result.diagnostics)}")
        self.console.print(f"   Scan duration: {result.scan_duration:.2f}s")

"""Protocols shared by the analyzer, lint rules and the CLI."""

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from noirlint.core.context import AnalysisContext
    from noirlint.core.models import Diagnostic


class ProgressCallback(Protocol):
    """Protocol defining a progress callback function."""

    def update(self, message: str, **fields: Any) -> None:
        """Update progress with a message."""
        ...


class LintRule(Protocol):
    """A lint run once per package against its analysis context."""

    name: str
    description: str

    def lint(self, context: "AnalysisContext") -> list["Diagnostic"]:
        """Return the diagnostics for one package, in reporting order."""
        ...

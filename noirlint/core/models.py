"""Data models for unused function detection."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Visibility(str, Enum):
    """Declared visibility of a Noir item."""

    PRIVATE = "private"
    CRATE_VISIBLE = "crate"
    PUBLIC = "public"


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class SourceSpan(BaseModel):
    """Location of a token in a source file. Lines and columns are 1-based."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    line: int
    column: int
    end_line: int
    end_column: int

    def sort_key(self) -> tuple[str, int, int]:
        return (self.file_path, self.line, self.column)

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line}:{self.column}"


class FunctionSymbol(BaseModel):
    """A function definition found in the analyzed package."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    visibility: Visibility
    definition_span: SourceSpan
    is_entry_point: bool = False
    module_path: tuple[str, ...] = ()
    container: str | None = None

    @property
    def is_root(self) -> bool:
        return self.visibility == Visibility.PUBLIC or self.is_entry_point


class CallEdge(BaseModel):
    """Directed reference from one function to another."""

    model_config = ConfigDict(frozen=True)

    caller: str
    callee: str


class UnresolvedReference(BaseModel):
    """A name reference that could not be resolved to a local function."""

    model_config = ConfigDict(frozen=True)

    caller: str
    target: str
    span: SourceSpan


class Diagnostic(BaseModel):
    """A finding reported by a lint rule."""

    model_config = ConfigDict(frozen=True)

    lint: str
    severity: Severity = Severity.WARNING
    message: str
    span: SourceSpan
    source_line: str | None = None


class UnusedDiagnostic(Diagnostic):
    """Reported for a function that is never reached from a root."""

    symbol: FunctionSymbol


class AnalysisError(BaseModel):
    """An error that excluded a module or aborted a package."""

    kind: str
    message: str
    package: str | None = None
    file_path: str | None = None
    fatal: bool = False


class PackageResult(BaseModel):
    """Results of analyzing a single package."""

    name: str
    total_functions: int = 0
    modules_analyzed: int = 0
    unresolved_references: int = 0
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    errors: list[AnalysisError] = Field(default_factory=list)
    aborted: bool = False


class ScanResult(BaseModel):
    """Results of scanning a workspace for unused functions."""

    root_dir: str
    packages: list[PackageResult] = Field(default_factory=list)
    errors: list[AnalysisError] = Field(default_factory=list)
    files_scanned: int = 0
    scan_duration: float = 0.0

    @property
    def total_functions(self) -> int:
        return sum(package.total_functions for package in self.packages)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [diagnostic for package in self.packages for diagnostic in package.diagnostics]

    @property
    def all_errors(self) -> list[AnalysisError]:
        return self.errors + [error for package in self.packages for error in package.errors]

    @property
    def has_errors(self) -> bool:
        return bool(self.all_errors) or any(
            diagnostic.severity == Severity.ERROR for diagnostic in self.diagnostics
        )

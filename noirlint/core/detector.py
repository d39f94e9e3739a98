"""Main lint detector."""

import logging
import time
from collections.abc import Sequence
from pathlib import Path

from noirlint.core.config import AnalyzerConfig, LintLevel
from noirlint.core.context import AnalysisContext
from noirlint.core.errors import (
    InternalInvariantViolation,
    MissingModuleError,
    NoirLintError,
    ParseError,
)
from noirlint.core.models import AnalysisError, Diagnostic, PackageResult, ScanResult, Severity
from noirlint.core.protocols import LintRule, ProgressCallback
from noirlint.core.symbols import collect_symbols
from noirlint.frontend.parser import parse_program
from noirlint.frontend.workspace import ModuleSource, PackageSource, load_package, resolve_workspace
from noirlint.lints.registry import get_lint_rules

logger = logging.getLogger(__name__)


class Detector:
    """Runs the registered lint rules over every package of a Noir workspace."""

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        rules: Sequence[LintRule] | None = None,
        verbose: bool = False,
    ) -> None:
        self.config = config or AnalyzerConfig()
        self.rules = list(rules) if rules is not None else get_lint_rules()
        self.verbose = verbose

        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    def scan(
        self,
        manifest_path: Path,
        package: str | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ScanResult:
        """
        Analyze every package of the workspace described by a Nargo.toml.

        Args:
            manifest_path: Path to Nargo.toml
            package: Only analyze the workspace member with this name
            progress_callback: Receives a message before each package

        Returns:
            ScanResult with the diagnostics of every package
        """
        start_time = time.time()

        workspace = resolve_workspace(manifest_path, package)
        result = ScanResult(root_dir=workspace.root_dir.as_posix())
        total = len(workspace.members)

        for index, member in enumerate(workspace.members):
            if progress_callback is not None:
                progress_callback.update(f"Analyzing {member.name}", total=total, completed=index)
            logger.debug(f"Loading package {member.name} from {member.entry_path}")

            source = load_package(member, workspace.root_dir)
            result.files_scanned += len(source.modules)
            result.packages.append(self.analyze_package(source))

        if progress_callback is not None:
            progress_callback.update("Done", total=total, completed=total)
        result.scan_duration = time.time() - start_time
        return result

    def analyze_package(self, source: PackageSource) -> PackageResult:
        """Analyze one loaded package.

        An invariant violation aborts this package only; it is recorded as a
        fatal error in the returned result.
        """
        name = source.package.name
        package_result = PackageResult(name=name, modules_analyzed=len(source.modules))
        package_result.errors.extend(_to_analysis_error(error, name) for error in source.errors)

        try:
            context = self.build_context(name, source.modules)
        except InternalInvariantViolation as e:
            logger.error(f"Aborting analysis of package {name}: {e}")
            package_result.errors.append(
                AnalysisError(kind="invariant-violation", message=str(e), package=name, fatal=True)
            )
            package_result.aborted = True
            return package_result

        package_result.total_functions = len(context.table)
        package_result.unresolved_references = len(context.graph.unresolved)
        package_result.diagnostics = self.run_rules(context)

        logger.debug(
            f"Package {name}: {len(package_result.diagnostics)} diagnostic(s) "
            f"for {package_result.total_functions} function(s)"
        )
        return package_result

    def build_context(self, package_name: str, modules: Sequence[ModuleSource]) -> AnalysisContext:
        table = collect_symbols(modules, self.config)
        sources = {module.file_path: module.parsed.source for module in modules}
        return AnalysisContext.build(package_name, table, self.config, sources)

    def run_rules(self, context: AnalysisContext) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for rule in self.rules:
            level = self.config.level_for(rule.name)
            if level == LintLevel.ALLOW:
                logger.debug(f"Skipping lint {rule.name}")
                continue
            found = rule.lint(context)
            if level == LintLevel.DENY:
                found = [d.model_copy(update={"severity": Severity.ERROR}) for d in found]
            diagnostics.extend(found)
        # Stable sort keeps each rule's own ordering for diagnostics at the same location.
        diagnostics.sort(key=lambda d: d.span.sort_key())
        return diagnostics


def _to_analysis_error(error: NoirLintError, package: str) -> AnalysisError:
    if isinstance(error, ParseError):
        return AnalysisError(
            kind="parse-failure", message=str(error), package=package, file_path=error.file_path
        )
    if isinstance(error, MissingModuleError):
        return AnalysisError(
            kind="missing-module",
            message=str(error),
            package=package,
            file_path=error.declared_in.as_posix(),
        )
    return AnalysisError(kind=type(error).__name__, message=str(error), package=package)


def analyze_source(
    source: str,
    file_path: str = "src/main.nr",
    config: AnalyzerConfig | None = None,
    package_name: str = "main",
) -> list[Diagnostic]:
    """Analyze a single Noir source file as the root module of a package."""
    parsed = parse_program(source, file_path)
    module = ModuleSource(module_path=(), file_path=file_path, parsed=parsed)
    detector = Detector(config=config)
    return detector.run_rules(detector.build_context(package_name, [module]))

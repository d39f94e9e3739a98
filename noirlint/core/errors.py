"""Exceptions raised while loading and analyzing Noir packages."""

from pathlib import Path


class NoirLintError(Exception):
    """Base class for all analyzer errors."""


class ManifestError(NoirLintError):
    """Nargo.toml is missing, unreadable or malformed."""


class ConfigError(NoirLintError):
    """The analyzer configuration file is invalid."""


class ParseError(NoirLintError):
    """A source file could not be tokenized or parsed."""

    def __init__(self, message: str, file_path: str, line: int, column: int) -> None:
        super().__init__(f"{file_path}:{line}:{column}: {message}")
        self.message = message
        self.file_path = file_path
        self.line = line
        self.column = column


class MissingModuleError(NoirLintError):
    """A `mod name;` declaration has no matching source file."""

    def __init__(self, module_name: str, declared_in: Path, candidates: list[Path]) -> None:
        tried = ", ".join(str(path) for path in candidates)
        super().__init__(
            f"module '{module_name}' declared in {declared_in} not found (tried {tried})"
        )
        self.module_name = module_name
        self.declared_in = declared_in
        self.candidates = candidates


class InternalInvariantViolation(NoirLintError):
    """The analysis reached a state that well-formed input cannot produce."""


class DuplicateSymbolPathError(InternalInvariantViolation):
    def __init__(self, path: str, first: str, second: str) -> None:
        super().__init__(f"symbol path '{path}' defined twice: at {first} and at {second}")
        self.path = path

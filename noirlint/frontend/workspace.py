"""Nargo manifest handling and module tree loading."""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from noirlint.core.errors import ManifestError, MissingModuleError, NoirLintError, ParseError
from noirlint.frontend import ast
from noirlint.frontend.parser import parse_file

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Nargo.toml"


class PackageType(str, Enum):
    BINARY = "bin"
    LIBRARY = "lib"
    CONTRACT = "contract"


class PackageConfig(BaseModel):
    """`[package]` table of Nargo.toml."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    package_type: PackageType = Field(default=PackageType.BINARY, alias="type")
    entry: str | None = None
    version: str | None = None
    compiler_version: str | None = None


class WorkspaceConfig(BaseModel):
    """`[workspace]` table of Nargo.toml."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    members: list[str] = Field(default_factory=list)
    default_member: str | None = Field(default=None, alias="default-member")


class NargoManifest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    package: PackageConfig | None = None
    workspace: WorkspaceConfig | None = None
    dependencies: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class Package:
    name: str
    package_type: PackageType
    root_dir: Path
    entry_path: Path


@dataclass(frozen=True)
class Workspace:
    root_dir: Path
    members: list[Package]


@dataclass(frozen=True)
class ModuleSource:
    """One parsed source file and the module path it was mounted at."""

    module_path: tuple[str, ...]
    file_path: str
    parsed: ast.ParsedModule


@dataclass
class PackageSource:
    """All modules of a package that were found and parsed successfully."""

    package: Package
    modules: list[ModuleSource] = field(default_factory=list)
    errors: list[NoirLintError] = field(default_factory=list)


def find_manifest(start: Path) -> Path:
    """Search `start` and its parents for Nargo.toml."""
    start = start.resolve()
    if start.is_file():
        return start
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    raise ManifestError(f"could not find {MANIFEST_NAME} in {start} or any parent directory")


def read_manifest(manifest_path: Path) -> NargoManifest:
    try:
        with manifest_path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ManifestError(f"cannot read {manifest_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"invalid TOML in {manifest_path}: {e}") from e
    try:
        manifest = NargoManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"invalid manifest {manifest_path}: {e}") from e
    if manifest.package is None and manifest.workspace is None:
        raise ManifestError(f"{manifest_path} has neither a [package] nor a [workspace] table")
    return manifest


def _package_from_config(config: PackageConfig, root_dir: Path) -> Package:
    if config.entry is not None:
        entry = config.entry
    elif config.package_type == PackageType.LIBRARY:
        entry = "src/lib.nr"
    else:
        entry = "src/main.nr"
    return Package(
        name=config.name,
        package_type=config.package_type,
        root_dir=root_dir,
        entry_path=root_dir / entry,
    )


def resolve_workspace(manifest_path: Path, selected_package: str | None = None) -> Workspace:
    """Build the workspace described by a Nargo.toml.

    Args:
        manifest_path: Path to Nargo.toml
        selected_package: Only keep the member with this name

    Returns:
        Workspace with one member per analyzed package
    """
    manifest_path = manifest_path.resolve()
    root_dir = manifest_path.parent
    manifest = read_manifest(manifest_path)

    members: list[Package] = []
    if manifest.workspace is not None:
        for member in manifest.workspace.members:
            member_manifest = root_dir / member / MANIFEST_NAME
            if not member_manifest.is_file():
                raise ManifestError(f"workspace member '{member}' has no {MANIFEST_NAME}")
            parsed = read_manifest(member_manifest)
            if parsed.package is None:
                raise ManifestError(f"workspace member '{member}' is not a package")
            members.append(_package_from_config(parsed.package, member_manifest.parent))
    if manifest.package is not None:
        members.append(_package_from_config(manifest.package, root_dir))

    if selected_package is not None:
        members = [package for package in members if package.name == selected_package]
        if not members:
            raise ManifestError(f"package '{selected_package}' not found in {manifest_path}")

    logger.debug(f"Workspace {root_dir} has {len(members)} package(s)")
    return Workspace(root_dir=root_dir, members=members)


def _display_path(path: Path, root_dir: Path) -> str:
    try:
        return path.resolve().relative_to(root_dir).as_posix()
    except ValueError:
        return path.as_posix()


def _child_directory(file_path: Path, is_crate_root: bool) -> Path:
    if is_crate_root or file_path.name in ("mod.nr", "lib.nr", "main.nr"):
        return file_path.parent
    return file_path.parent / file_path.stem


def _declared_modules(
    items: tuple[ast.Item, ...],
    module_path: tuple[str, ...],
    directory: Path,
) -> Iterator[tuple[tuple[str, ...], Path, str]]:
    """Yield `(module_path, directory, name)` for every `mod name;` declaration."""
    for item in items:
        if not isinstance(item, ast.ModuleItem):
            continue
        if item.items is None:
            yield (*module_path, item.name), directory, item.name
        else:
            yield from _declared_modules(item.items, (*module_path, item.name), directory / item.name)


def load_package(package: Package, root_dir: Path | None = None) -> PackageSource:
    """Parse the entry file of a package and every module file it declares.

    Files that cannot be found or parsed are recorded in `errors` and skipped
    along with the modules they declare; the rest of the package is loaded.
    """
    root_dir = (root_dir or package.root_dir).resolve()
    result = PackageSource(package=package)
    seen: set[Path] = set()
    pending: list[tuple[tuple[str, ...], Path, bool]] = [((), package.entry_path, True)]

    while pending:
        module_path, file_path, is_crate_root = pending.pop()
        resolved = file_path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)

        display = _display_path(file_path, root_dir)
        try:
            parsed = parse_file(file_path, display)
        except ParseError as e:
            logger.warning(f"Excluding module {'::'.join(module_path) or 'crate'}: {e}")
            result.errors.append(e)
            continue
        result.modules.append(ModuleSource(module_path=module_path, file_path=display, parsed=parsed))

        directory = _child_directory(file_path, is_crate_root)
        for child_path, child_dir, name in _declared_modules(parsed.items, module_path, directory):
            candidates = [child_dir / f"{name}.nr", child_dir / name / "mod.nr"]
            found = next((candidate for candidate in candidates if candidate.is_file()), None)
            if found is None:
                error = MissingModuleError(name, Path(display), candidates)
                logger.warning(str(error))
                result.errors.append(error)
                continue
            pending.append((child_path, found, False))

    result.modules.sort(key=lambda module: module.file_path)
    logger.debug(f"Loaded {len(result.modules)} module(s) for package {package.name}")
    return result

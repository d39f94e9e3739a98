from __future__ import annotations

from pathlib import Path
from typing import Any

from noirlint.core.config import AnalyzerConfig, LintLevel
from noirlint.core.detector import Detector
from noirlint.core.models import Severity


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _package(root: Path, name: str, files: dict[str, str]) -> Path:
    manifest = root / "Nargo.toml"
    _write(manifest, f'[package]\nname = "{name}"\ntype = "bin"\n')
    for relative, content in files.items():
        _write(root / relative, content)
    return manifest


class RecordingCallback:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def update(self, message: str, **fields: Any) -> None:
        self.messages.append(message)


def test_scan_single_package(tmp_path: Path) -> None:
    manifest = _package(
        tmp_path,
        "demo",
        {
            "src/main.nr": "mod utils;\nfn main() { utils::used(); }\n",
            "src/utils.nr": "pub(crate) fn used() {}\nfn unused() {}\n",
        },
    )
    callback = RecordingCallback()

    result = Detector().scan(manifest, progress_callback=callback)

    assert result.root_dir == tmp_path.resolve().as_posix()
    assert result.files_scanned == 2
    assert result.total_functions == 3
    assert not result.has_errors
    (diagnostic,) = result.diagnostics
    assert diagnostic.message == "Function 'unused' is unused"
    assert str(diagnostic.span) == "src/utils.nr:2:4"
    assert callback.messages == ["Analyzing demo", "Done"]


def test_scan_workspace_paths_relative_to_root(tmp_path: Path) -> None:
    _write(tmp_path / "Nargo.toml", '[workspace]\nmembers = ["crates/a", "crates/b"]\n')
    _package(tmp_path / "crates" / "a", "a", {"src/main.nr": "fn main() {}\nfn dead_a() {}\n"})
    _package(tmp_path / "crates" / "b", "b", {"src/main.nr": "fn main() {}\nfn dead_b() {}\n"})

    result = Detector().scan(tmp_path / "Nargo.toml")

    assert [package.name for package in result.packages] == ["a", "b"]
    assert [str(d.span) for d in result.diagnostics] == [
        "crates/a/src/main.nr:2:4",
        "crates/b/src/main.nr:2:4",
    ]


def test_parse_failure_excludes_module_only(tmp_path: Path) -> None:
    manifest = _package(
        tmp_path,
        "demo",
        {
            "src/main.nr": "mod broken;\nmod fine;\nfn main() {}\n",
            "src/broken.nr": "fn oops( {\n",
            "src/fine.nr": "fn dead() {}\n",
        },
    )

    result = Detector().scan(manifest)

    assert result.has_errors
    (error,) = result.all_errors
    assert error.kind == "parse-failure"
    assert error.file_path == "src/broken.nr"
    assert error.package == "demo"
    assert [d.message for d in result.diagnostics] == ["Function 'dead' is unused"]


def test_scan_long_expression(tmp_path: Path) -> None:
    terms = " + ".join(f"x{i}" for i in range(1000))
    manifest = _package(
        tmp_path,
        "demo",
        {"src/main.nr": f"fn main() -> Field {{ {terms} + helper() }}\nfn helper() -> Field {{ 1 }}\nfn dead() {{}}\n"},
    )

    result = Detector().scan(manifest)

    assert not result.has_errors
    assert [d.message for d in result.diagnostics] == ["Function 'dead' is unused"]


def test_deep_nesting_is_reported_not_raised(tmp_path: Path) -> None:
    nested = "(" * 5000 + "1" + ")" * 5000
    manifest = _package(
        tmp_path,
        "demo",
        {
            "src/main.nr": "mod deep;\nfn main() {}\nfn dead() {}\n",
            "src/deep.nr": f"fn f() -> Field {{ {nested} }}\n",
        },
    )

    result = Detector().scan(manifest)

    (error,) = result.all_errors
    assert error.kind == "parse-failure"
    assert error.file_path == "src/deep.nr"
    assert [d.message for d in result.diagnostics] == ["Function 'dead' is unused"]


def test_missing_module_error(tmp_path: Path) -> None:
    manifest = _package(tmp_path, "demo", {"src/main.nr": "mod gone;\nfn main() {}\n"})

    result = Detector().scan(manifest)

    (error,) = result.all_errors
    assert error.kind == "missing-module"
    assert error.file_path == "src/main.nr"
    assert not error.fatal


def test_duplicate_symbol_aborts_only_that_package(tmp_path: Path) -> None:
    _write(tmp_path / "Nargo.toml", '[workspace]\nmembers = ["bad", "good"]\n')
    _package(tmp_path / "bad", "bad", {"src/main.nr": "fn main() {}\nfn twice() {}\nfn twice() {}\n"})
    _package(tmp_path / "good", "good", {"src/main.nr": "fn main() {}\nfn dead() {}\n"})

    result = Detector().scan(tmp_path / "Nargo.toml")

    bad, good = result.packages
    assert bad.aborted
    assert bad.diagnostics == []
    assert bad.errors[0].kind == "invariant-violation"
    assert bad.errors[0].fatal
    assert not good.aborted
    assert [d.message for d in good.diagnostics] == ["Function 'dead' is unused"]
    assert result.has_errors


def test_empty_package_is_not_an_error(tmp_path: Path) -> None:
    manifest = _package(tmp_path, "demo", {"src/main.nr": "struct Empty {}\n"})

    result = Detector().scan(manifest)

    assert result.total_functions == 0
    assert result.diagnostics == []
    assert not result.has_errors


def test_deny_level_makes_errors(tmp_path: Path) -> None:
    manifest = _package(tmp_path, "demo", {"src/main.nr": "fn main() {}\nfn dead() {}\n"})
    config = AnalyzerConfig(lints={"unused-function": LintLevel.DENY})

    result = Detector(config=config).scan(manifest)

    assert [d.severity for d in result.diagnostics] == [Severity.ERROR]
    assert result.has_errors


def test_package_selection(tmp_path: Path) -> None:
    _write(tmp_path / "Nargo.toml", '[workspace]\nmembers = ["a", "b"]\n')
    _package(tmp_path / "a", "a", {"src/main.nr": "fn main() {}\n"})
    _package(tmp_path / "b", "b", {"src/main.nr": "fn main() {}\n"})

    result = Detector().scan(tmp_path / "Nargo.toml", package="b")

    assert [package.name for package in result.packages] == ["b"]


def test_unresolved_references_are_counted(tmp_path: Path) -> None:
    manifest = _package(
        tmp_path,
        "demo",
        {"src/main.nr": "fn main() { dep::std::println(1); assert(true); }\n"},
    )

    result = Detector().scan(manifest)

    assert result.packages[0].unresolved_references == 2
    assert not result.has_errors

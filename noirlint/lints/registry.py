from noirlint.core.protocols import LintRule
from noirlint.lints.unused_function import UnusedFunction


def get_lint_rules() -> list[LintRule]:
    """All registered lint rules, in reporting order."""
    return [UnusedFunction()]


def get_lint_rule(name: str) -> LintRule | None:
    return next((rule for rule in get_lint_rules() if rule.name == name), None)

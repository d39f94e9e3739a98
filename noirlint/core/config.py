"""Analyzer configuration, read from an optional `noirlint.toml`."""

import logging
import tomllib
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from noirlint.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "noirlint.toml"


class LintLevel(str, Enum):
    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"


class AnalyzerConfig(BaseModel):
    """Options read by the analysis core.

    `entry_points` names functions of the crate root module that are always
    used, `entry_attributes` marks functions carrying one of these attributes
    (e.g. `#[test]`) as used, and `lints` sets the level of each lint by name.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    entry_points: list[str] = Field(default_factory=lambda: ["main"])
    entry_attributes: list[str] = Field(default_factory=lambda: ["test", "export"])
    lints: dict[str, LintLevel] = Field(default_factory=dict)

    def level_for(self, lint_name: str) -> LintLevel:
        return self.lints.get(lint_name, LintLevel.WARN)

    def with_entry_points(self, entry_points: list[str]) -> "AnalyzerConfig":
        return self.model_copy(update={"entry_points": list(entry_points)})


def load_config(path: Path) -> AnalyzerConfig:
    """Load configuration from a TOML file.

    Raises:
        ConfigError: The file is unreadable, not TOML, or has unknown keys or values
    """
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML in {path}: {e}") from e

    data = {key.replace("-", "_"): value for key, value in data.items()}
    try:
        config = AnalyzerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration in {path}: {e}") from e
    logger.debug(f"Loaded configuration from {path}")
    return config


def discover_config(manifest_dir: Path) -> AnalyzerConfig:
    """Load `noirlint.toml` next to the manifest, or return the defaults."""
    path = manifest_dir / CONFIG_FILE_NAME
    if path.is_file():
        return load_config(path)
    return AnalyzerConfig()

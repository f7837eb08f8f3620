"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

from ._errors import ConfigError


@dataclass(slots=True, frozen=True)
class ExportConfig:
    """Options of an export session.

    Attributes:
        strict_relation_types: Require identical participant types for every
            tuple of a relation instead of widening disagreeing positions to
            ``"atom"``.
        collect_decorators: Collect type-level decorators of named types.
        include_instance_annotations: Append the annotation logs of visited
            instances to the bundle's decorators.

    """

    strict_relation_types: bool = False
    collect_decorators: bool = True
    include_instance_annotations: bool = True


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def load_config(pyproject_path: Path) -> ExportConfig:
    """Load and validate [tool.atomviz] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed ExportConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("atomviz", {})
    if not section:
        return ExportConfig()
    if not isinstance(section, dict):
        msg = "Invalid [tool.atomviz] configuration: expected a table"
        raise ConfigError(msg)

    known = {f.name for f in fields(ExportConfig)}
    values: dict[str, bool] = {}
    for key, value in section.items():
        name = key.replace("-", "_")
        if name not in known:
            msg = f"Unknown option [tool.atomviz].{key}. Valid options: {', '.join(sorted(known))}"
            raise ConfigError(msg)
        if not isinstance(value, bool):
            msg = f"Invalid [tool.atomviz].{key}: expected boolean"
            raise ConfigError(msg)
        values[name] = value

    return ExportConfig(**values)


def get_config() -> ExportConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        ExportConfig (defaults if no pyproject.toml or no [tool.atomviz] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return ExportConfig()
    return load_config(pyproject_path)

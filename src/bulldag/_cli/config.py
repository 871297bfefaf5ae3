"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Error in bulldag configuration."""


@dataclass(slots=True, frozen=True)
class BulldagConfig:
    """Configuration loaded from the ``[tool.bulldag]`` table of pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    edges: Path | None = None
    output: Path | None = None
    sort_keys: bool = True
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    current = (start_dir or Path.cwd()).resolve()
    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.bulldag].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def load_config(pyproject_path: Path) -> BulldagConfig:
    """Load and validate [tool.bulldag] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed BulldagConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("bulldag", {})
    if not section:
        return BulldagConfig(project_root=project_root)

    unknown = set(section) - {"edges", "output", "sort-keys"}
    if unknown:
        msg = f"Unknown [tool.bulldag] keys: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    sort_keys = section.get("sort-keys", True)
    if not isinstance(sort_keys, bool):
        msg = "Invalid [tool.bulldag].sort-keys: expected boolean"
        raise ConfigError(msg)

    return BulldagConfig(
        edges=_parse_path(section, "edges", project_root),
        output=_parse_path(section, "output", project_root),
        sort_keys=sort_keys,
        project_root=project_root,
    )


def get_config() -> BulldagConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        BulldagConfig (defaults if no pyproject.toml or no [tool.bulldag] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return BulldagConfig()
    return load_config(pyproject_path)

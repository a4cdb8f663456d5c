"""Analyzer configuration: path conventions, framework names and search paths."""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

try:
    import tomllib
except ImportError:  # Python < 3.11
    import toml as tomllib  # type: ignore


logger = logging.getLogger(__name__)

PYPROJECT_SECTION = ("tool", "servicemap")


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or is invalid."""


@dataclass
class AnalyzerConfig:
    """
    Settings for one analysis run.

    Attributes:
        module_root: Directory (relative to the project root) holding modules.
        commands_dir: Directory inside a module holding command files.
        framework_root: Name of the framework's root package.
        state_interface: Name of the framework class exposing emit/broadcast.
        handler_name: Name of the exported command handler.
        export_name: Name of the object-literal export assignment.
        search_paths: Extra import roots, relative to the project root.
        skip_context_parameter: Drop the handler's first (state) parameter.
        target_version: Python "major.minor" the sources are written for.
    """

    module_root: str = "modules"
    commands_dir: str = "commands"
    framework_root: str = "mage"
    state_interface: str = "IState"
    handler_name: str = "execute"
    export_name: str = "export"
    search_paths: List[str] = field(default_factory=list)
    skip_context_parameter: bool = False
    target_version: Optional[str] = None

    def feature_version(self) -> Optional[Tuple[int, int]]:
        """Return ``target_version`` as a tuple suitable for ``ast.parse``."""
        if not self.target_version:
            return None
        try:
            major, minor = self.target_version.split(".")[:2]
            return int(major), int(minor)
        except ValueError:
            raise ConfigError(f"invalid target_version: {self.target_version!r}")

    def update(self, **overrides: Any) -> "AnalyzerConfig":
        """Return a copy with every non-None override applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def parse_config_file(file_path: Path) -> Any:
    """
    Parse a TOML, YAML or JSON configuration file, chosen by suffix.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    suffix = file_path.suffix.lower()

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read {file_path}: {e}")

    try:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(content)
        elif suffix == ".json":
            return json.loads(content)
        elif suffix == ".toml":
            return tomllib.loads(content)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"cannot parse {file_path}: {e}")

    raise ConfigError(f"unsupported configuration format: {file_path.name}")


def config_from_mapping(data: Optional[Dict[str, Any]], base: Optional[AnalyzerConfig] = None) -> AnalyzerConfig:
    """Build a config from a plain mapping, rejecting unknown keys."""
    config = base or AnalyzerConfig()
    if not data:
        return config
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping")

    known = {f.name for f in fields(AnalyzerConfig)}
    values: Dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        if name not in known:
            raise ConfigError(f"unknown configuration key: {key}")
        values[name] = value

    if "search_paths" in values and isinstance(values["search_paths"], str):
        values["search_paths"] = [values["search_paths"]]

    return replace(config, **values)


def load_config(root: Path, config_path: Optional[Path] = None) -> AnalyzerConfig:
    """
    Load the analyzer configuration for a project.

    An explicit ``config_path`` wins; otherwise the ``[tool.servicemap]``
    table of ``<root>/pyproject.toml`` is used when present.
    """
    if config_path is not None:
        logger.debug("Loading configuration from %s", config_path)
        data = parse_config_file(config_path)
        if isinstance(data, dict) and config_path.name == "pyproject.toml":
            data = _section(data)
        return config_from_mapping(data)

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        section = _section(parse_config_file(pyproject))
        if section:
            logger.debug("Using [tool.servicemap] from %s", pyproject)
        return config_from_mapping(section)

    return AnalyzerConfig()


def _section(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for key in PYPROJECT_SECTION:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data

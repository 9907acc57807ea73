"""YAML-backed pydantic settings with a relocatable config file."""

import os
from pathlib import Path
from typing import ClassVar, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from ..errors import ConfigError

T = TypeVar("T", bound="ConfigModel")


class ConfigModel(BaseModel):
    """Settings model that lives in a YAML file.

    Subclasses name their default file and the environment variable that
    relocates it. Every failure to read the file comes out as ConfigError
    with a message ready to show the user.
    """

    default_path: ClassVar[Path | None] = None
    path_env_var: ClassVar[str | None] = None

    @classmethod
    def config_path(cls) -> Path:
        """Where this model's file lives, honouring the override variable."""
        override = os.environ.get(cls.path_env_var) if cls.path_env_var else None
        if override:
            return Path(override).expanduser()
        if cls.default_path is None:
            raise ConfigError(f"{cls.__name__} has no config file location")
        return cls.default_path

    @classmethod
    def from_yaml(cls: type[T], path: Path) -> T:
        """Parse and validate ``path``.

        Raises:
            ConfigError: If the file is missing, is not YAML, or fails validation
        """
        try:
            text = path.read_text()
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(_describe_yaml_error(path, e)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path.name} must hold a mapping, got {type(data).__name__}")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(_describe_validation_error(cls.__name__, path, e)) from e

    @classmethod
    def load(cls: type[T], path: Path | None = None) -> T:
        """Read the config file, or fall back to defaults when there is none."""
        path = path or cls.config_path()
        if path.exists():
            return cls.from_yaml(path)
        return cls()

    def to_yaml_string(self) -> str:
        return yaml.safe_dump(self.model_dump(), default_flow_style=False, sort_keys=False)

    def to_yaml(self, path: Path | None = None) -> Path:
        """Write settings out, creating parent directories; returns the path used."""
        path = path or self.config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_yaml_string())
        return path


def _describe_yaml_error(path: Path, error: yaml.YAMLError) -> str:
    lines = [f"Invalid YAML syntax in {path.name}"]
    mark = getattr(error, "problem_mark", None)
    if mark is not None:
        lines.append(f"  line {mark.line + 1}, column {mark.column + 1}")
    return "\n".join(lines)


def _describe_validation_error(model: str, path: Path, error: ValidationError) -> str:
    lines = [f"Invalid {model} configuration in {path.name}"]
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        lines.append(f"  {location}: {err['msg']}")
    return "\n".join(lines)

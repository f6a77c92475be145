"""Configuration models.

This module provides the frozen Pydantic models for plugbar settings and
their conversion into plugin specs.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from plugbar.exceptions import ConfigValidationError, PluginSpecError
from plugbar.plugin import ExecutionModel, PluginSpec

from ._duration import parse_duration


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class ControlConfig(BaseModel):
    """Control API configuration section.

    Attributes:
        enabled: Whether to serve the control API.
        host: Interface to bind.
        port: Port to bind.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = Field(default=6280, ge=0, le=65535)


class PluginConfig(BaseModel):
    """A single ``[[plugins]]`` entry.

    Attributes:
        name: Display name; defaults to the executable's file name.
        path: Executable path, relative paths resolve against the config file.
        model: Execution model.
        interval: Seconds between runs for interval plugins.
        args: Base arguments.
        env: Extra environment variables.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    name: str | None = None
    path: Path
    model: ExecutionModel = ExecutionModel.STREAM
    interval: float | None = None
    args: tuple[str, ...] = ()
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("interval", mode="before")
    @classmethod
    def _parse_interval(cls, value: object) -> float | None:
        if value is None:
            return None
        if isinstance(value, str | int | float):
            return parse_duration(value)
        msg = f"Invalid duration: {value!r}"
        raise ValueError(msg)

    @model_validator(mode="after")
    def _check_interval(self) -> Self:
        if self.model == ExecutionModel.INTERVAL and self.interval is None:
            msg = "interval plugins need an 'interval'"
            raise ValueError(msg)
        if self.model == ExecutionModel.STREAM and self.interval is not None:
            msg = "stream plugins do not take an 'interval'"
            raise ValueError(msg)
        return self

    def to_spec(self, base_dir: Path | None = None) -> PluginSpec:
        """Build the plugin spec, resolving ``path`` against ``base_dir``."""
        path = self.path.expanduser()
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return PluginSpec(
            path=path,
            args=self.args,
            env=dict(self.env),
            model=self.model,
            interval=self.interval,
            name=self.name,
        )


class Config(BaseModel):
    """Top-level plugbar configuration.

    Attributes:
        logging: Logging settings.
        control: Control API settings.
        plugins: Configured plugins.
        base_dir: Directory relative plugin paths resolve against.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    control: ControlConfig = Field(default_factory=ControlConfig)
    plugins: tuple[PluginConfig, ...] = ()
    base_dir: Path | None = Field(default=None, exclude=True)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
        *,
        base_dir: Path | None = None,
        source: str | None = None,
    ) -> Self:
        """Create configuration from a dictionary.

        Args:
            data: Dictionary of configuration values.
            base_dir: Directory relative plugin paths resolve against.
            source: Where the data came from, for error messages.

        Returns:
            Validated configuration.

        Raises:
            ConfigValidationError: If validation fails.
        """
        try:
            config = cls.model_validate({**data, "base_dir": base_dir})
        except ValidationError as e:
            raise _to_config_error(e, source=source) from e

        seen: set[str] = set()
        for index, plugin in enumerate(config.plugins):
            name = plugin.name or plugin.path.name
            if name in seen:
                msg = f"Duplicate plugin name '{name}'"
                raise ConfigValidationError(
                    msg,
                    key=f"plugins.{index}.name",
                    value=name,
                    expected="a unique plugin name",
                    source=source,
                )
            seen.add(name)

        return config

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a TOML file.

        Relative plugin paths resolve against the file's directory.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        from ._loader import read_toml_file  # noqa: PLC0415

        data = read_toml_file(path)
        return cls.from_dict(data, base_dir=path.parent, source=str(path))

    def to_specs(self) -> list[PluginSpec]:
        """Convert every plugin entry into a PluginSpec.

        Raises:
            ConfigValidationError: If an entry does not form a valid spec.
        """
        specs: list[PluginSpec] = []
        for index, plugin in enumerate(self.plugins):
            try:
                specs.append(plugin.to_spec(self.base_dir))
            except PluginSpecError as e:
                raise ConfigValidationError(
                    str(e),
                    key=f"plugins.{index}",
                    value=plugin.model_dump(mode="json"),
                    expected="a valid plugin definition",
                ) from e
        return specs


def _to_config_error(
    error: ValidationError, *, source: str | None
) -> ConfigValidationError:
    """Convert the first Pydantic error into a ConfigValidationError."""
    details = error.errors()[0]
    key = ".".join(str(part) for part in details.get("loc", ()))
    message = details.get("msg", "Invalid value")
    return ConfigValidationError(
        f"Invalid configuration at '{key}': {message}",
        key=key,
        value=details.get("input"),
        expected=details.get("type", "valid value"),
        source=source,
    )

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from filevars.constants import (
    DuplicatePolicy,
    FILEVARS_DEFAULT_ENCODING,
    FILEVARS_DEFAULT_LOG_LEVEL,
    FILEVARS_DEFAULT_NAMESPACE,
    FILEVARS_DEFAULT_POLL_INTERVAL,
    FILEVARS_DEFAULT_SETTINGS_FILE,
    FILEVARS_SETTINGS_ENV_PREFIX,
    FILEVARS_SETTINGS_ENV_VAR,
)
from filevars.exceptions import SettingsError


class FileVarsSettings(BaseSettings):
    """
    FileVars settings management using Pydantic.

    Settings are loaded with the following priority (highest to lowest):
    1. Values passed explicitly (CLI options, builder overrides)
    2. Values from the settings YAML file
    3. Environment variables (prefixed with FILEVARS_SETTINGS_)
    4. Default values defined in the model

    Environment variable examples:
    - FILEVARS_SETTINGS_CONFIG_FILE=/etc/filevars/filevars.json
    - FILEVARS_SETTINGS_VERBOSE=true
    - FILEVARS_SETTINGS_DUPLICATE_POLICY=first-wins
    """

    model_config = SettingsConfigDict(
        env_prefix=FILEVARS_SETTINGS_ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    config_file: str | None = Field(
        default=None, description="Path to the variable definition file (JSON or YAML)"
    )
    verbose: bool = Field(default=False, description="Write debug output to stderr")
    log_level: str = Field(default=FILEVARS_DEFAULT_LOG_LEVEL, description="Level for the log file")
    log_dir: str | None = Field(default=None, description="Directory for log files; no file logging if unset")
    duplicate_policy: DuplicatePolicy = Field(
        default=DuplicatePolicy.LAST_WINS, description="Which definition wins for duplicate variables"
    )
    poll_interval: float = Field(
        default=FILEVARS_DEFAULT_POLL_INTERVAL,
        gt=0,
        description="Seconds to wait for a notification before checking for shutdown",
    )
    encoding: str = Field(default=FILEVARS_DEFAULT_ENCODING, description="Encoding of template files")
    namespace: dict[str, Any] = Field(
        default_factory=lambda: dict(FILEVARS_DEFAULT_NAMESPACE),
        description="Variable namespace backend as {'class': dotted.path, 'args': {...}}",
    )

    _base_dir: Path | None = PrivateAttr(default=None)
    _settings_file: str | None = PrivateAttr(default=None)

    @field_validator("duplicate_policy", mode="before")
    @classmethod
    def validate_duplicate_policy(cls, v: Any) -> DuplicatePolicy:
        """Convert string to DuplicatePolicy enum."""
        if isinstance(v, str):
            try:
                return DuplicatePolicy(v)
            except ValueError as e:
                raise ValueError(
                    f"Invalid duplicate policy: {v}. "
                    f"Must be one of: {', '.join(p.value for p in DuplicatePolicy)}"
                ) from e
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Normalize the log level name and make sure logging knows it."""
        if not isinstance(v, str) or not isinstance(logging.getLevelName(v.upper()), int):
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("namespace", mode="before")
    @classmethod
    def validate_namespace(cls, v: Any) -> dict[str, Any]:
        """Validate and normalize the namespace backend configuration."""
        if not v:
            return dict(FILEVARS_DEFAULT_NAMESPACE)

        if isinstance(v, str):
            return {"class": v, "args": {}}

        if not isinstance(v, dict):
            raise ValueError(f"Invalid namespace type: {type(v).__name__}")

        if "class" not in v:
            raise ValueError("The namespace dict must have a 'class' key")

        return {"class": v["class"], "args": v.get("args") or {}}

    def resolve_relative_paths(self) -> "FileVarsSettings":
        """Resolve relative paths to absolute paths based on base directory."""
        base_dir = self.base_dir
        if not base_dir:
            return self

        for field_name in ("config_file", "log_dir"):
            value = getattr(self, field_name)
            if not value:
                continue
            path = Path(value)
            if not path.is_absolute():
                setattr(self, field_name, str(base_dir / path))

        return self

    @classmethod
    def load(
        cls, settings_file: str | None = None, base_dir: Path | None = None, **overrides: Any
    ) -> "FileVarsSettings":
        """
        Load settings from a YAML file with automatic resolution and overrides.

        Settings file resolution priority (highest to lowest):
        1. Explicit settings_file parameter
        2. FILEVARS_SETTINGS environment variable
        3. Default "filevars.yaml" in current directory

        An explicitly requested file (1 or 2) must exist. When only the default
        applies and there is no such file, model defaults are used.

        Args:
            settings_file: Path to settings YAML file.
            base_dir: Base directory for resolving relative paths. If None, uses the
                     directory containing the resolved settings file.
            **overrides: Additional settings to override YAML values. Example: verbose=True

        Returns:
            FileVarsSettings instance with all paths resolved.

        Raises:
            SettingsError: If an explicit settings file is not found or contains invalid data.
        """
        explicit_file = settings_file or os.getenv(FILEVARS_SETTINGS_ENV_VAR)
        resolved_file = explicit_file or FILEVARS_DEFAULT_SETTINGS_FILE
        settings_path = Path(resolved_file).resolve()

        if not settings_path.exists():
            if explicit_file:
                raise SettingsError(
                    f"Settings file not found: {resolved_file}\n"
                    f"Resolved to absolute path: {settings_path}\n"
                    f"Current working directory: {Path.cwd()}"
                )
            return cls._build({}, overrides)

        try:
            with settings_path.open() as f:
                yaml_data = yaml.safe_load(f) or {}
        except Exception as e:
            raise SettingsError(f"Failed to load settings from {resolved_file}: {e}") from e

        if not isinstance(yaml_data, dict):
            raise SettingsError(
                f"Settings file must contain a YAML dictionary, got {type(yaml_data).__name__}"
            )

        instance = cls._build(yaml_data, {})
        instance._base_dir = base_dir or settings_path.parent
        instance._settings_file = str(settings_path)
        instance.resolve_relative_paths()

        # overrides come from the caller's cwd, not the settings file directory
        if overrides:
            return instance.with_overrides(**overrides)
        return instance

    @classmethod
    def _build(cls, file_data: dict[str, Any], overrides: dict[str, Any]) -> "FileVarsSettings":
        """Instantiate settings, turning validation failures into SettingsError."""
        try:
            return cls(**{**file_data, **overrides})
        except ValueError as e:
            raise SettingsError(f"Invalid settings: {e}") from e

    def with_overrides(self, **overrides: Any) -> "FileVarsSettings":
        """
        Return a validated copy of these settings with some values replaced.

        None values are ignored, so optional CLI options can be passed straight through.
        """
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self

        instance = self._build(self.model_dump(), updates)
        instance._base_dir = self._base_dir
        instance._settings_file = self._settings_file
        return instance

    @property
    def as_dict(self) -> dict[str, Any]:
        """Get settings as a dictionary."""
        return self.model_dump()

    @property
    def base_dir(self) -> Path | None:
        """Get the base directory for resolving relative paths if available."""
        if self._base_dir:
            return self._base_dir
        if self._settings_file:
            return Path(self._settings_file).parent
        return None

    @property
    def settings_file(self) -> str | None:
        """Path of the YAML file these settings were loaded from, if any."""
        return self._settings_file

    def __str__(self) -> str:
        """Return a string representation of the FileVarsSettings instance."""
        return str(self.as_dict)

"""
Variable definition file loading.

A definition file maps variable names to template files:

    {
        "config": [
            {"var": "/sys/network/status", "file": "/etc/filevars/status.tpl"},
            {"var": "/sys/info/banner", "file": "banner.tpl"}
        ]
    }

JSON and YAML files are supported. "name" is accepted in place of "var".
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from filevars.constants import (
    DEFINITION_FILE_KEY,
    DEFINITION_NAME_KEYS,
    DEFINITIONS_ROOT_KEY,
    FILEVARS_SUPPORTED_DEFINITION_EXTENSIONS,
    FILEVARS_SUPPORTED_JSON_EXTENSIONS,
)
from filevars.exceptions import ConfigError
from filevars.logger import logger


class FileVarRecord(BaseModel):
    """
    One {name, file} record of a definition file.

    Malformed records are kept with the missing field set to None, so that
    registration can report and skip them without dropping the rest of the file.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = None
    file: str | None = None
    index: int = 0

    @model_validator(mode="before")
    @classmethod
    def pick_fields(cls, data: Any) -> Any:
        """Take the variable name from 'var' (or 'name') and the path from 'file'."""
        if not isinstance(data, dict):
            return {}
        name = next((data[key] for key in DEFINITION_NAME_KEYS if key in data), None)
        fields = {"name": name, "file": data.get(DEFINITION_FILE_KEY)}
        if isinstance(data.get("index"), int):
            fields["index"] = data["index"]
        return fields

    @field_validator("name", "file", mode="before")
    @classmethod
    def non_empty_string(cls, v: Any) -> str | None:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return None

    @property
    def is_valid(self) -> bool:
        return bool(self.name and self.file)


def read_definition_file(path: Path) -> Any:
    """
    Parse a definition file according to its extension.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with path.open(encoding="utf-8") as f:
            if path.suffix.lower() in FILEVARS_SUPPORTED_JSON_EXTENSIONS:
                return json.load(f)
            return yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse: {e}", config_file=str(path)) from e


def load_definitions(config_file: str | Path, resolve_relative: bool = True) -> list[FileVarRecord]:
    """
    Load the ordered list of variable definitions from a file.

    Args:
        config_file: Path to the JSON or YAML definition file.
        resolve_relative: Resolve relative template paths against the definition
            file's directory instead of the process working directory.

    Returns:
        Records in file order, including malformed ones (see FileVarRecord).

    Raises:
        ConfigError: If the file is missing, unsupported, unparsable, or has no
            'config' array.
    """
    path = Path(config_file)

    if not path.is_file():
        raise ConfigError("File not found", config_file=str(config_file))

    if path.suffix.lower() not in FILEVARS_SUPPORTED_DEFINITION_EXTENSIONS:
        raise ConfigError(
            f"Unsupported file type '{path.suffix}'. "
            f"Use one of: {', '.join(FILEVARS_SUPPORTED_DEFINITION_EXTENSIONS)}",
            config_file=str(config_file),
        )

    data = read_definition_file(path)

    if not isinstance(data, dict) or not isinstance(data.get(DEFINITIONS_ROOT_KEY), list):
        raise ConfigError(
            f"Expected an object with a '{DEFINITIONS_ROOT_KEY}' array", config_file=str(config_file)
        )

    base_dir = path.resolve().parent
    records = []
    for index, raw in enumerate(data[DEFINITIONS_ROOT_KEY]):
        record = FileVarRecord.model_validate(raw).model_copy(update={"index": index})

        if resolve_relative and record.file and not Path(record.file).is_absolute():
            record = record.model_copy(update={"file": str(base_dir / record.file)})

        if not record.is_valid:
            logger.debug(f"Definition #{index} in {config_file} is incomplete: {raw!r}")
        records.append(record)

    logger.debug(f"Loaded {len(records)} variable definitions from {config_file}")
    return records

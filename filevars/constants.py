from enum import StrEnum


class DuplicatePolicy(StrEnum):
    """
    Defines which definition wins when two records resolve to the same variable handle.

    Attributes:
        LAST_WINS: The later record replaces the earlier one. This is the default,
            and matches a definition file read top to bottom.

        FIRST_WINS: The first record is kept and later duplicates are ignored
            (with a warning).
    """

    LAST_WINS = "last-wins"
    FIRST_WINS = "first-wins"

    @classmethod
    def _missing_(cls, value: object) -> "DuplicatePolicy | None":
        """Handle underscore/hyphen variations for flexibility."""
        if isinstance(value, str):
            normalized = value.lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class PrintStatus(StrEnum):
    """
    Outcome of a single print request handled by the dispatcher.

    Attributes:
        OK: The bound template was rendered to the requester's output channel.
        LOOKUP_MISS: The notified handle has no registry entry (ENOENT-equivalent).
        RENDER_IO_ERROR: The bound file could not be opened or read. Nothing was delivered.
        RENDER_ERROR: The template could not be rendered (syntax or undefined variable).
        SESSION_ERROR: Acquiring or releasing the print session failed.
        INVALID: The request carried no usable variable handle.
    """

    OK = "ok"
    LOOKUP_MISS = "lookup-miss"
    RENDER_IO_ERROR = "render-io-error"
    RENDER_ERROR = "render-error"
    SESSION_ERROR = "session-error"
    INVALID = "invalid"


# Settings file resolution
FILEVARS_DEFAULT_SETTINGS_FILE = "filevars.yaml"
FILEVARS_SETTINGS_ENV_VAR = "FILEVARS_SETTINGS"
FILEVARS_SETTINGS_ENV_PREFIX = "FILEVARS_SETTINGS_"

FILEVARS_DEFAULT_POLL_INTERVAL = 0.5
FILEVARS_DEFAULT_ENCODING = "utf-8"
FILEVARS_DEFAULT_LOG_LEVEL = "INFO"

# dotted path + constructor args, loaded the same way for any backend
FILEVARS_DEFAULT_NAMESPACE = {"class": "filevars.namespace.InMemoryNamespace", "args": {}}

FILEVARS_DEFAULT_LOGGER = {"directory": ".filevars/logs", "name": "filevars"}

# Definition file format: {"config": [{"var": "<name>", "file": "<path>"}, ...]}
DEFINITIONS_ROOT_KEY = "config"
DEFINITION_NAME_KEYS = ("var", "name")
DEFINITION_FILE_KEY = "file"

FILEVARS_SUPPORTED_JSON_EXTENSIONS = (".json",)
FILEVARS_SUPPORTED_YAML_EXTENSIONS = (".yaml", ".yml")
FILEVARS_SUPPORTED_DEFINITION_EXTENSIONS = FILEVARS_SUPPORTED_JSON_EXTENSIONS + FILEVARS_SUPPORTED_YAML_EXTENSIONS

# Exit status after a termination signal (SIGINT/SIGTERM)
TERMINATION_EXIT_CODE = 1

# Keywords in log messages whose values should be masked
PROTECTED_KEYWORDS = [
    "password",
    "passwd",
    "pwd",
    "secret",
    "apikey",
    "api_key",
    "access_token",
    "auth_token",
    "authorization",
    "bearer",
    "private_key",
    "client_secret",
    "credentials",
]

"""
FileVars exception hierarchy.

This module defines the core exceptions used throughout the FileVars application,
organized hierarchically with clear inheritance paths.
"""

from typing import Any

###############################################################################
# ROOT EXCEPTION
###############################################################################


class FileVarsError(Exception):
    """
    Root exception class for all FileVars errors.

    This exception serves as the base class for the entire exception hierarchy.
    It should never be raised directly but rather inherited from.
    """


###############################################################################
# CORE EXCEPTIONS
###############################################################################


class CoreError(FileVarsError):
    """
    Base exception class for core functionality errors.

    These relate to fundamental operations of the FileVars application itself.
    """

    def __init__(self, message: str = "", component: str = ""):
        prefix = f"{component}: " if component else ""
        super().__init__(f"{prefix}{message}")
        self.component = component


class InitializationError(CoreError):
    """Base for all initialization-related errors."""


class FatalError(CoreError):
    """
    Raised when FileVars cannot continue at all.

    The only startup condition treated as fatal is a failure to establish the
    variable namespace connection. It stops the process before the dispatch loop.
    """


###############################################################################
# SETTINGS & CONFIGURATION EXCEPTIONS
###############################################################################


class SettingsError(FileVarsError):
    """
    Base exception class for settings-related errors.

    Note the terminology:
    - "Settings" refers to FileVars' own application settings
    - "Configuration/definitions" is the file mapping variables to templates
    """

    def __init__(self, message: str = "", setting: str = ""):
        prefix = f"Setting '{setting}': " if setting else ""
        super().__init__(f"{prefix}{message}")
        self.setting = setting


class ConfigError(FileVarsError):
    """Raised when the variable definition file cannot be loaded."""

    def __init__(self, message: str = "", config_file: str = ""):
        prefix = f"Definition file '{config_file}': " if config_file else ""
        super().__init__(f"{prefix}{message}")
        self.config_file = config_file


###############################################################################
# REGISTRY EXCEPTIONS
###############################################################################


class RegistryError(FileVarsError):
    """Base exception class for file variable registry errors."""


class SetupError(RegistryError):
    """
    Raised when a single file variable cannot be registered.

    Causes are a missing name or file, a name that does not resolve in the
    variable namespace, or a failed print subscription. Registration of the
    remaining definitions continues.
    """

    def __init__(self, message: str = "", var_name: str = "", file_path: str = ""):
        prefix = f"Variable '{var_name}': " if var_name else ""
        super().__init__(f"{prefix}{message}")
        self.var_name = var_name
        self.file_path = file_path


class RegistryFrozenError(RegistryError):
    """Raised when registering after startup has completed."""


class LookupMiss(RegistryError):
    """A print notification referenced a handle with no registry entry."""

    def __init__(self, handle: Any):
        super().__init__(f"No file variable registered for handle {handle!r}")
        self.handle = handle


###############################################################################
# NAMESPACE EXCEPTIONS
###############################################################################


class NamespaceError(FileVarsError):
    """
    Base exception class for variable namespace errors.

    These relate to the connection with the variable server: name resolution,
    subscriptions, notifications and print sessions.
    """


class SessionError(NamespaceError):
    """Raised when a print session cannot be acquired or released."""

    def __init__(self, message: str = "", session_token: Any = None):
        prefix = f"Print session {session_token!r}: " if session_token is not None else ""
        super().__init__(f"{prefix}{message}")
        self.session_token = session_token


###############################################################################
# RENDER EXCEPTIONS
###############################################################################


class RenderIOError(FileVarsError):
    """Raised when a bound template file cannot be opened or read."""

    def __init__(self, message: str = "", file_path: str = ""):
        prefix = f"Template file '{file_path}': " if file_path else ""
        super().__init__(f"{prefix}{message}")
        self.file_path = file_path

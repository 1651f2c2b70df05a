from pathlib import Path
from typing import Any

from filevars.dispatcher import Renderer
from filevars.exceptions import InitializationError, NamespaceError, SettingsError
from filevars.namespace.base import VariableNamespace
from filevars.service import FileVarsService
from filevars.settings import FileVarsSettings
from filevars.utils import load_namespace


class FileVarsBuilder:
    """
    Builder class for constructing FileVarsService objects with a fluent interface.

    Usage Examples:
        service = (
            FileVarsBuilder()
            .with_settings_path("filevars.yaml")
            .with_config_path("/etc/filevars/filevars.json")
            .build()
        )

        # In-process namespace with a custom renderer
        service = (
            FileVarsBuilder()
            .with_settings_object(settings)
            .with_namespace(InMemoryNamespace({"hostname": "gw-01"}))
            .with_renderer(renderer)
            .build()
        )

    Order of preference for the settings:
      1. with_settings_object()
      2. with_settings_path()
      3. FileVarsSettings.load() defaults (FILEVARS_SETTINGS or ./filevars.yaml)

    Values from with_config_path() and with_overrides() are applied on top of
    whichever settings were chosen.
    """

    def __init__(self):
        self._settings: FileVarsSettings | None = None
        self._config_file: str | None = None
        self._namespace: VariableNamespace | None = None
        self._renderer: Renderer | None = None
        self._overrides: dict[str, Any] = {}

    def with_settings_object(self, settings_object: FileVarsSettings) -> "FileVarsBuilder":
        """
        Set the FileVarsSettings object for the builder.

        Args:
            settings_object: The FileVarsSettings object.

        Returns:
            The builder instance for method chaining.
        """
        self._settings = settings_object
        return self

    def with_settings_path(self, settings_path: str | Path) -> "FileVarsBuilder":
        """
        Creates a FileVarsSettings for the builder, based on a file path.
        This only takes effect if the settings object has not been set yet.

        Args:
            settings_path: The path to a YAML file to be used by FileVarsSettings object.

        Returns:
            The builder instance for method chaining.
        """
        if not self._settings:
            try:
                self._settings = FileVarsSettings.load(settings_file=str(settings_path))
            except SettingsError as e:
                raise InitializationError(f"Failed to load settings from '{settings_path}': {e}") from e
        return self

    def with_config_path(self, config_path: str | Path) -> "FileVarsBuilder":
        """
        Set the variable definition file, overriding the one in the settings.

        Args:
            config_path: Path to the JSON or YAML definition file.

        Returns:
            The builder instance for method chaining.
        """
        self._config_file = str(Path(config_path).resolve())
        return self

    def with_namespace(self, namespace: VariableNamespace) -> "FileVarsBuilder":
        """Use an existing namespace instead of loading the configured backend."""
        self._namespace = namespace
        return self

    def with_renderer(self, renderer: Renderer) -> "FileVarsBuilder":
        """Replace the default Jinja2 TemplateRenderer."""
        self._renderer = renderer
        return self

    def with_overrides(self, **overrides: Any) -> "FileVarsBuilder":
        """
        Override individual settings (e.g. verbose=True). None values are ignored.

        Returns:
            The builder instance for method chaining.
        """
        self._overrides.update(overrides)
        return self

    def build(self) -> FileVarsService:
        """
        Build and return a FileVarsService based on the provided configurations.

        Returns:
            The constructed, not yet started, service.

        Raises:
            InitializationError: If the settings are invalid or the namespace
                backend cannot be loaded.
        """
        overrides = dict(self._overrides)
        if self._config_file:
            overrides["config_file"] = self._config_file

        try:
            settings = self._settings or FileVarsSettings.load()
            settings = settings.with_overrides(**overrides)
        except SettingsError as e:
            raise InitializationError(f"Failed to initialize settings: {e}", component="FileVarsBuilder") from e

        try:
            namespace = self._namespace or load_namespace(settings.namespace)
        except NamespaceError as e:
            raise InitializationError(str(e), component="FileVarsBuilder") from e

        return FileVarsService(settings, namespace=namespace, renderer=self._renderer)

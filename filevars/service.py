import signal
import threading
from types import FrameType

from filevars.config import load_definitions
from filevars.constants import TERMINATION_EXIT_CODE
from filevars.dispatcher import PrintDispatcher, Renderer
from filevars.exceptions import ConfigError, FatalError, NamespaceError, SetupError
from filevars.j2 import TemplateRenderer
from filevars.logger import logger
from filevars.namespace.base import VariableNamespace
from filevars.registry import FileVarRegistry
from filevars.session import SessionAdapter
from filevars.settings import FileVarsSettings
from filevars.utils import load_namespace

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class FileVarsService:
    """
    The FileVars daemon: owns the namespace connection, the registry and the dispatch loop.

    Lifecycle:
    1. start(): connect to the namespace, load the definition file, register and
       subscribe every variable, freeze the registry.
    2. serve(): dispatch print notifications until shutdown is requested.
    3. stop(): close the namespace connection.

    run() does all three, with SIGINT/SIGTERM wired to request_shutdown(). The
    only thing a signal handler does is set the shutdown event; the loop notices
    it between requests, so an in-flight request always completes.

    Exit status of run():
    - 0: the loop ended without a termination signal
    - 1: shutdown was triggered by SIGINT or SIGTERM

    Startup failures (FatalError for the namespace connection, ConfigError for
    the definition file) propagate to the caller.
    """

    def __init__(
        self,
        settings: FileVarsSettings,
        namespace: VariableNamespace | None = None,
        registry: FileVarRegistry | None = None,
        dispatcher: PrintDispatcher | None = None,
        renderer: Renderer | None = None,
    ):
        self.settings = settings
        self.namespace = namespace or load_namespace(settings.namespace)
        self.registry = registry or FileVarRegistry(self.namespace, settings.duplicate_policy)
        self.dispatcher = dispatcher or PrintDispatcher(
            self.namespace,
            self.registry,
            SessionAdapter(self.namespace),
            renderer or TemplateRenderer(self.namespace, encoding=settings.encoding),
        )
        self.setup_errors: list[SetupError] = []

        self._shutdown = threading.Event()
        self._signum: int | None = None
        self._previous_handlers: dict[int, object] = {}
        self._started = False
        self._stopped = False

    @property
    def shutdown_event(self) -> threading.Event:
        return self._shutdown

    @property
    def received_signal(self) -> int | None:
        """Number of the termination signal that requested shutdown, if any."""
        return self._signum

    def start(self) -> None:
        """Connect, load definitions and populate the registry.

        Raises:
            FatalError: If the namespace connection cannot be established.
            ConfigError: If no definition file is configured or it cannot be loaded.
        """
        if self.settings.verbose:
            logger.set_verbose(True)
        if self.settings.log_dir:
            logger.set_execution_context(
                "filevars", "daemon", log_dir=self.settings.log_dir, log_level=self.settings.log_level
            )

        try:
            self.namespace.connect()
        except Exception as e:
            raise FatalError(
                f"Failed to connect to the variable namespace: {e}", component="FileVarsService"
            ) from e

        if not self.settings.config_file:
            raise ConfigError("No definition file configured")

        records = load_definitions(self.settings.config_file)
        self.setup_errors = self.registry.register_all(records)
        self.registry.freeze()
        self._started = True

        logger.info(
            f"Serving {len(self.registry)} file variables from {self.settings.config_file}"
            f" ({len(self.setup_errors)} definitions skipped)"
        )
        if not self.registry:
            logger.warning(
                f"No file variables registered from {self.settings.config_file}: none of its names"
                f" resolved in namespace '{self.settings.namespace.get('class')}'."
                " Configure a 'namespace' backend that defines them."
            )

    def serve(self) -> int:
        """Run the dispatch loop until shutdown is requested.

        Returns:
            Number of print requests handled.

        Raises:
            FatalError: If the namespace connection is lost while no shutdown was requested.
        """
        try:
            return self.dispatcher.run(shutdown=self._shutdown, poll_interval=self.settings.poll_interval)
        except NamespaceError as e:
            if self._shutdown.is_set():
                logger.debug(f"Namespace error during shutdown: {e}")
                return sum(self.dispatcher.stats.values())
            raise FatalError(
                f"Lost connection to the variable namespace: {e}", component="FileVarsService"
            ) from e

    def request_shutdown(self, signum: int | None = None) -> None:
        """Ask the dispatch loop to stop after the current request. Safe in signal context."""
        if signum is not None and self._signum is None:
            self._signum = signum
        self._shutdown.set()

    def stop(self) -> None:
        """Close the namespace connection. Calling it again does nothing."""
        if self._stopped:
            return
        self._stopped = True

        try:
            self.namespace.close()
        except NamespaceError as e:
            logger.warning(f"Error closing the variable namespace: {e}")

        if self._started:
            counts = ", ".join(f"{status}={count}" for status, count in sorted(self.dispatcher.stats.items()))
            logger.info(f"Stopped. Print requests: {counts or 'none'}")

        if logger.get_execution_context():
            logger.clear_execution_context()

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to request_shutdown(). Main thread only."""
        for signum in TERMINATION_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        self.request_shutdown(signum)

    def run(self) -> int:
        """Start, serve until shutdown, stop.

        Returns:
            Process exit status (see class docstring).
        """
        self.install_signal_handlers()
        try:
            self.start()
            self.serve()
        finally:
            self.stop()
            self.restore_signal_handlers()

        if self._signum is not None:
            logger.info(f"Terminated by signal {signal.Signals(self._signum).name}")
            return TERMINATION_EXIT_CODE
        return 0

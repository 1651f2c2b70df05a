import threading
from collections import Counter
from collections.abc import Hashable
from dataclasses import dataclass
from typing import BinaryIO, Protocol

from filevars.constants import FILEVARS_DEFAULT_POLL_INTERVAL, PrintStatus
from filevars.exceptions import LookupMiss, RenderIOError, SessionError
from filevars.j2.exceptions import TemplateError
from filevars.logger import logger
from filevars.namespace.base import PrintNotification, VariableNamespace
from filevars.registry import FileVarRegistry
from filevars.session import PrintSession, SessionAdapter


class Renderer(Protocol):
    """Anything that copies a template stream to an output stream."""

    def render(self, source: BinaryIO, sink: BinaryIO) -> int: ...


@dataclass
class PrintResult:
    """Outcome of one dispatched print request."""

    status: PrintStatus
    session_token: Hashable
    handle: Hashable | None = None
    file_path: str | None = None
    bytes_written: int = 0
    released: bool = False
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is PrintStatus.OK


class PrintDispatcher:
    """
    Serves print notifications for registered file variables.

    Each notification is handled to completion before the next one is read:
    acquire the print session, look the handle up in the registry, render the
    bound file into the session output, release the session. The session is
    released whatever happened in between. Per-request failures end up in the
    returned PrintResult and the log, never in an exception out of the loop.
    """

    def __init__(
        self,
        namespace: VariableNamespace,
        registry: FileVarRegistry,
        sessions: SessionAdapter,
        renderer: Renderer,
    ):
        self.namespace = namespace
        self.registry = registry
        self.sessions = sessions
        self.renderer = renderer
        self.stats: Counter[PrintStatus] = Counter()

    def run(
        self,
        shutdown: threading.Event | None = None,
        poll_interval: float = FILEVARS_DEFAULT_POLL_INTERVAL,
        max_requests: int | None = None,
    ) -> int:
        """Dispatch notifications until shutdown is set.

        The shutdown event is checked between requests and at least every
        poll_interval seconds while idle.

        Args:
            shutdown: Event that stops the loop. Without one the loop runs until
                max_requests is reached (or forever).
            poll_interval: Longest wait for a notification before re-checking shutdown.
            max_requests: Stop after this many handled notifications.

        Returns:
            Number of notifications handled.

        Raises:
            NamespaceError: If waiting for notifications fails (connection lost).
        """
        shutdown = shutdown or threading.Event()
        handled = 0

        while not shutdown.is_set():
            if max_requests is not None and handled >= max_requests:
                break
            if self.run_once(timeout=poll_interval) is not None:
                handled += 1

        return handled

    def run_once(self, timeout: float | None = None) -> PrintResult | None:
        """Wait for one notification and dispatch it.

        Returns:
            The result, or None if no notification arrived within timeout.
        """
        notification = self.namespace.wait_for_notification(timeout)
        if notification is None:
            return None

        try:
            result = self.dispatch(notification)
        except Exception as e:
            logger.exception(f"Unexpected error handling print session {notification.session_token!r}: {e}")
            result = PrintResult(
                status=PrintStatus.INVALID,
                session_token=notification.session_token,
                handle=notification.handle,
                error=str(e),
            )

        self.stats[result.status] += 1
        return result

    def dispatch(self, notification: PrintNotification) -> PrintResult:
        """Handle a single print notification.

        Args:
            notification: The (handle, session token) pair from the namespace.

        Returns:
            What happened, see PrintStatus.
        """
        result = PrintResult(
            status=PrintStatus.OK, session_token=notification.session_token, handle=notification.handle
        )

        try:
            session = self.sessions.acquire(notification.session_token)
        except SessionError as e:
            logger.error(str(e))
            result.status = PrintStatus.SESSION_ERROR
            result.error = str(e)
            return result

        if session.handle is not None:
            result.handle = session.handle

        try:
            self._print(session, result)
        finally:
            self._release(session, result)

        logger.debug(
            f"Print session {result.session_token!r}: {result.status} "
            f"({result.bytes_written} bytes from {result.file_path or '-'})"
        )
        return result

    def _print(self, session: PrintSession, result: PrintResult) -> None:
        """Render the file bound to result.handle into the session output."""
        if result.handle is None:
            result.status = PrintStatus.INVALID
            result.error = "Print request carries no variable handle"
            return

        file_path = self.registry.lookup(result.handle)
        if file_path is None:
            miss = LookupMiss(result.handle)
            logger.debug(str(miss))
            result.status = PrintStatus.LOOKUP_MISS
            result.error = str(miss)
            return

        result.file_path = file_path
        try:
            source = open(file_path, "rb")  # noqa: SIM115
        except OSError as e:
            error = RenderIOError(f"Cannot open: {e.strerror or e}", file_path=file_path)
            logger.warning(str(error))
            result.status = PrintStatus.RENDER_IO_ERROR
            result.error = str(error)
            return

        with source:
            try:
                result.bytes_written = self.renderer.render(source, session.output)
            except TemplateError as e:
                logger.error(f"Failed to render {file_path}: {e}")
                result.status = PrintStatus.RENDER_ERROR
                result.error = str(e)
            except OSError as e:
                error = RenderIOError(f"I/O error while rendering: {e.strerror or e}", file_path=file_path)
                logger.warning(str(error))
                result.status = PrintStatus.RENDER_IO_ERROR
                result.error = str(error)

    def _release(self, session: PrintSession, result: PrintResult) -> None:
        try:
            self.sessions.release(session)
        except SessionError as e:
            logger.error(str(e))
            if result.ok:
                result.status = PrintStatus.SESSION_ERROR
                result.error = str(e)
            return
        result.released = True

import io
import itertools
import queue
import threading
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from filevars.exceptions import NamespaceError
from filevars.logger import logger
from filevars.namespace.base import PrintNotification, VariableNamespace


@dataclass
class MemoryPrintSession:
    """Server-side state of one print request in the in-memory namespace."""

    token: int
    handle: Hashable
    buffer: io.BytesIO = field(default_factory=io.BytesIO)
    is_open: bool = False
    close_count: int = 0


class InMemoryNamespace(VariableNamespace):
    """
    In-process variable server.

    Holds variables and their values, hands out integer handles, queues print
    notifications and keeps each requester's output in a memory buffer. It is the
    default backend, used for one-shot rendering from the CLI and by the tests.

    All state is guarded by a lock, so print requests may be issued from other
    threads while the dispatcher waits for notifications.

    Example:
        namespace = InMemoryNamespace({"/sys/info/hostname": "gw-01"})
        namespace.connect()
        token = namespace.request_print("/sys/info/hostname")
    """

    def __init__(self, variables: dict[str, Any] | None = None):
        self._lock = threading.RLock()
        self._handle_counter = itertools.count(1)
        self._token_counter = itertools.count(1)
        self._handles: dict[str, int] = {}
        self._names: dict[int, str] = {}
        self._values: dict[str, Any] = {}
        self._subscribed: set[Hashable] = set()
        self._sessions: dict[int, MemoryPrintSession] = {}
        self._notifications: queue.Queue[PrintNotification] = queue.Queue()
        self._connected = False

        for name, value in (variables or {}).items():
            self.define(name, value)

    # ------------------------------------------------------------------
    # connection
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True
        logger.debug("Connected to in-memory variable namespace")

    def close(self) -> None:
        if self._connected:
            logger.debug("Closed in-memory variable namespace")
        self._connected = False

    def _require_connection(self) -> None:
        if not self._connected:
            raise NamespaceError("Not connected to the variable namespace")

    # ------------------------------------------------------------------
    # variables (server-side administration)
    # ------------------------------------------------------------------

    def define(self, name: str, value: Any = None) -> int:
        """
        Create a variable, or update its value if it already exists.

        Returns:
            The variable's handle.
        """
        if not name:
            raise NamespaceError("Variable name must not be empty")

        with self._lock:
            handle = self._handles.get(name)
            if handle is None:
                handle = next(self._handle_counter)
                self._handles[name] = handle
                self._names[handle] = name
            self._values[name] = value
            return handle

    def set_value(self, name: str, value: Any) -> None:
        """Change the value of an existing variable."""
        with self._lock:
            if name not in self._values:
                raise NamespaceError(f"Unknown variable '{name}'")
            self._values[name] = value

    def name_of(self, handle: Hashable) -> str | None:
        """Reverse lookup of a handle's variable name."""
        return self._names.get(handle)

    def is_subscribed(self, handle: Hashable) -> bool:
        return handle in self._subscribed

    # ------------------------------------------------------------------
    # client API
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> int | None:
        self._require_connection()
        return self._handles.get(name)

    def subscribe_for_print(self, handle: Hashable) -> None:
        self._require_connection()
        with self._lock:
            if handle not in self._names:
                raise NamespaceError(f"Cannot subscribe unknown handle {handle!r}")
            self._subscribed.add(handle)

    def wait_for_notification(self, timeout: float | None = None) -> PrintNotification | None:
        self._require_connection()
        try:
            return self._notifications.get(timeout=timeout)
        except queue.Empty:
            return None

    def open_print_session(self, session_token: Hashable) -> tuple[Hashable, BinaryIO]:
        self._require_connection()
        with self._lock:
            session = self._get_session(session_token)
            if session.is_open:
                raise NamespaceError(f"Print session {session_token!r} is already open")
            session.is_open = True
            return session.handle, session.buffer

    def close_print_session(self, session_token: Hashable, output: BinaryIO) -> None:
        self._require_connection()
        with self._lock:
            session = self._get_session(session_token)
            if not session.is_open:
                raise NamespaceError(f"Print session {session_token!r} is not open")
            if output is not session.buffer:
                raise NamespaceError(f"Output stream does not belong to print session {session_token!r}")
            session.is_open = False
            session.close_count += 1

    def get_value(self, name: str) -> Any:
        with self._lock:
            if name not in self._values:
                raise NamespaceError(f"Unknown variable '{name}'")
            return self._values[name]

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._values)

    # ------------------------------------------------------------------
    # requester side
    # ------------------------------------------------------------------

    def request_print(self, name: str) -> int:
        """
        Ask for a variable to be printed, as a requester would.

        Returns:
            The session token, used to collect the output with output_for().

        Raises:
            NamespaceError: If the variable is unknown or nobody subscribed to print it.
        """
        with self._lock:
            handle = self._handles.get(name)
            if handle is None:
                raise NamespaceError(f"Unknown variable '{name}'")
            if handle not in self._subscribed:
                raise NamespaceError(f"No print handler subscribed for variable '{name}'")
            return self._enqueue(handle)

    def request_print_handle(self, handle: Hashable) -> int:
        """Queue a print notification for an arbitrary handle, without any checks."""
        with self._lock:
            return self._enqueue(handle)

    def _enqueue(self, handle: Hashable) -> int:
        token = next(self._token_counter)
        self._sessions[token] = MemoryPrintSession(token=token, handle=handle)
        self._notifications.put(PrintNotification(handle=handle, session_token=token))
        return token

    def output_for(self, session_token: Hashable) -> bytes:
        """Bytes written so far to a session's output."""
        with self._lock:
            return self._get_session(session_token).buffer.getvalue()

    def close_count(self, session_token: Hashable) -> int:
        """How many times a session has been closed."""
        with self._lock:
            return self._get_session(session_token).close_count

    @property
    def pending_notifications(self) -> int:
        return self._notifications.qsize()

    def _get_session(self, session_token: Hashable) -> MemoryPrintSession:
        session = self._sessions.get(session_token)
        if session is None:
            raise NamespaceError(f"Unknown print session {session_token!r}")
        return session

from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO

from filevars.exceptions import NamespaceError, SessionError
from filevars.namespace.base import VariableNamespace


@dataclass
class PrintSession:
    """One requester's output channel, valid until the session is released."""

    token: Hashable
    handle: Hashable | None
    output: BinaryIO


class SessionAdapter:
    """
    Thin wrapper over the namespace's print session primitives.

    It translates backend failures into SessionError so the dispatcher only deals
    with one error type here. Tests may swap it for a fake that hands out
    in-memory buffers.
    """

    def __init__(self, namespace: VariableNamespace):
        self._namespace = namespace

    def acquire(self, session_token: Hashable) -> PrintSession:
        """Open the print session for a notification.

        Raises:
            SessionError: If the namespace refuses or fails to open the session.
        """
        try:
            handle, output = self._namespace.open_print_session(session_token)
        except (NamespaceError, OSError) as e:
            raise SessionError(f"Failed to open: {e}", session_token=session_token) from e
        return PrintSession(token=session_token, handle=handle, output=output)

    def release(self, session: PrintSession) -> None:
        """Close a print session.

        Raises:
            SessionError: If the namespace fails to close the session.
        """
        try:
            self._namespace.close_print_session(session.token, session.output)
        except (NamespaceError, OSError) as e:
            raise SessionError(f"Failed to close: {e}", session_token=session.token) from e

    @contextmanager
    def open(self, session_token: Hashable) -> Iterator[PrintSession]:
        """Acquire a session for the duration of a with-block, releasing it on exit."""
        session = self.acquire(session_token)
        try:
            yield session
        finally:
            self.release(session)

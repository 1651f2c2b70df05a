from abc import ABC, abstractmethod
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any, BinaryIO


@dataclass(frozen=True)
class PrintNotification:
    """A request from the variable server to render one variable to one requester."""

    handle: Hashable
    session_token: Hashable


class VariableNamespace(ABC):
    """
    Connection to a variable server.

    FileVars only consumes this interface; it does not define how a server names,
    stores or transports variables. Backends are selected through the 'namespace'
    setting as a dotted class path plus constructor args.

    Handles returned by resolve() are opaque and only compared for equality.
    """

    @property
    @abstractmethod
    def connected(self) -> bool:
        """Whether the connection is open."""

    @abstractmethod
    def connect(self) -> None:
        """Open the connection to the variable server."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection. Must be safe to call more than once."""

    @abstractmethod
    def resolve(self, name: str) -> Hashable | None:
        """Resolve a variable name to its handle, or None if the name is unknown."""

    @abstractmethod
    def subscribe_for_print(self, handle: Hashable) -> None:
        """Ask the server to send print notifications for a handle to this client."""

    @abstractmethod
    def wait_for_notification(self, timeout: float | None = None) -> PrintNotification | None:
        """
        Block until a print notification arrives.

        Args:
            timeout: Seconds to wait. None waits forever.

        Returns:
            The notification, or None if the timeout expired.
        """

    @abstractmethod
    def open_print_session(self, session_token: Hashable) -> tuple[Hashable, BinaryIO]:
        """Open the print session for a notification, returning (handle, output stream)."""

    @abstractmethod
    def close_print_session(self, session_token: Hashable, output: BinaryIO) -> None:
        """Close a print session, handing the written output back to the requester."""

    @abstractmethod
    def get_value(self, name: str) -> Any:
        """Current value of a variable."""

    @abstractmethod
    def snapshot(self) -> dict[str, Any]:
        """Current values of all variables visible to this client, by name."""

    def __enter__(self) -> "VariableNamespace":
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

from collections.abc import Hashable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from filevars.config import FileVarRecord
from filevars.constants import DuplicatePolicy
from filevars.exceptions import NamespaceError, RegistryFrozenError, SetupError
from filevars.logger import logger
from filevars.namespace.base import VariableNamespace


@dataclass(frozen=True)
class FileVarEntry:
    """A variable handle bound to a template file."""

    handle: Hashable
    name: str
    file_path: str


class FileVarRegistry:
    """
    Mapping from variable handle to template file, built once at startup.

    Registration resolves each name through the variable namespace and subscribes
    the handle for print notifications; the dispatcher only ever hears about
    subscribed handles. Once freeze() is called the registry is read-only, and
    lookup() is safe to call from any thread.

    Duplicate variables (two records resolving to the same handle) follow the
    configured DuplicatePolicy.
    """

    def __init__(
        self, namespace: VariableNamespace, duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS
    ):
        self._namespace = namespace
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self._entries: dict[Hashable, FileVarEntry] = {}
        self.sources: dict[Hashable, dict[str, Any]] = {}
        self._frozen = False

    def register(self, name: str, file_path: str) -> FileVarEntry:
        """Bind a variable to a template file and subscribe it for print notifications.

        Args:
            name: Variable name, resolved through the namespace.
            file_path: Template file rendered when the variable is printed.

        Returns:
            The entry now bound to the variable's handle.

        Raises:
            RegistryFrozenError: If called after freeze().
            SetupError: If a field is missing, the name does not resolve, or the
                subscription fails. Nothing is added in that case.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{name}': registry is frozen")

        if not name:
            raise SetupError("Missing variable name", file_path=file_path or "")
        if not file_path:
            raise SetupError("Missing template file", var_name=name)

        try:
            handle = self._namespace.resolve(name)
        except NamespaceError as e:
            raise SetupError(f"Failed to resolve variable: {e}", var_name=name, file_path=file_path) from e

        if handle is None:
            raise SetupError("Variable not found in namespace", var_name=name, file_path=file_path)

        existing = self._entries.get(handle)
        if existing and self.duplicate_policy is DuplicatePolicy.FIRST_WINS:
            logger.warning(
                f"Ignoring duplicate definition of '{name}' ({file_path}); keeping {existing.file_path}"
            )
            return existing

        try:
            self._namespace.subscribe_for_print(handle)
        except NamespaceError as e:
            raise SetupError(
                f"Failed to subscribe for print notifications: {e}", var_name=name, file_path=file_path
            ) from e

        if existing:
            logger.warning(f"Duplicate definition of '{name}': {file_path} replaces {existing.file_path}")

        entry = FileVarEntry(handle=handle, name=name, file_path=str(file_path))
        self._entries[handle] = entry
        self.sources[handle] = {"registered_at": datetime.now(), "replaced": existing is not None}
        logger.debug(f"Registered file variable '{name}' -> {file_path}")
        return entry

    def register_all(self, records: Iterable[FileVarRecord]) -> list[SetupError]:
        """Register definitions in order, skipping the ones that fail.

        Args:
            records: Definitions, usually from load_definitions().

        Returns:
            The errors for the skipped records, in order.
        """
        errors: list[SetupError] = []
        for record in records:
            try:
                self.register(record.name, record.file)
            except SetupError as e:
                logger.warning(f"Skipping definition #{record.index}: {e}")
                errors.append(e)
        return errors

    def lookup(self, handle: Hashable) -> str | None:
        """File path bound to a handle, or None if the handle is not registered."""
        entry = self._entries.get(handle)
        return entry.file_path if entry else None

    def get_entry(self, handle: Hashable) -> FileVarEntry | None:
        return self._entries.get(handle)

    def freeze(self) -> None:
        """End of startup: no more registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def entries(self) -> list[FileVarEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries

    def __iter__(self) -> Iterator[FileVarEntry]:
        return iter(self.entries)

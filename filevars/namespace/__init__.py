"""FileVars variable namespace package.

The namespace is FileVars' view of the variable server: name resolution,
print subscriptions, notification delivery and print sessions.
"""

from filevars.namespace.base import PrintNotification, VariableNamespace
from filevars.namespace.memory import InMemoryNamespace, MemoryPrintSession

__all__ = [
    "InMemoryNamespace",
    "MemoryPrintSession",
    "PrintNotification",
    "VariableNamespace",
]

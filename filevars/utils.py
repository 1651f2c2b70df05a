import importlib
from typing import Any

from filevars.exceptions import NamespaceError
from filevars.namespace.base import VariableNamespace


def load_namespace(namespace_config: dict[str, Any]) -> VariableNamespace:
    """
    Dynamically load and instantiate a variable namespace backend from config.

    Args:
        namespace_config: Dict with 'class' (dotted path) and optional 'args'.

    Returns:
        Instantiated (not yet connected) namespace.

    Raises:
        NamespaceError: If the backend cannot be loaded or instantiated.
    """
    dotted_path = namespace_config.get("class")
    if not dotted_path:
        raise NamespaceError("Missing 'class' in namespace configuration")

    args = namespace_config.get("args") or {}

    try:
        module_path, class_name = dotted_path.rsplit(".", 1)
        module = importlib.import_module(module_path)
        namespace_class = getattr(module, class_name)
    except (ImportError, AttributeError, ValueError) as e:
        raise NamespaceError(f"Failed to load namespace backend '{dotted_path}': {e!s}") from e

    try:
        namespace = namespace_class(**args)
    except Exception as e:
        raise NamespaceError(f"Error instantiating namespace backend '{dotted_path}': {e!s}") from e

    if not isinstance(namespace, VariableNamespace):
        raise NamespaceError(
            f"Namespace backend '{dotted_path}' must be a VariableNamespace, got {type(namespace).__name__}"
        )
    return namespace

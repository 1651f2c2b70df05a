from collections.abc import Iterator
from functools import lru_cache
from threading import Lock
from typing import Any

from jinja2 import Environment, StrictUndefined, Template, TemplateSyntaxError, UndefinedError

from filevars.j2.constants import COMPILE_CACHE_SIZE, JINJA2_MARKERS
from filevars.j2.exceptions import Jinja2ServiceError, TemplateError, TemplateValidationError
from filevars.logger import logger


class Jinja2Service:
    """Centralized Jinja2 management for FileVars.

    Provides a single, cached Jinja2 environment and the template operations
    used by the renderer.

    This service is a singleton that:
    - Maintains a single Jinja2 environment instance
    - Provides thread-safe template compilation and caching
    - Renders templates as a stream of chunks
    - Centralizes error handling
    """

    _instance = None
    _lock = Lock()

    @classmethod
    def _initialize_environment(cls, instance) -> None:
        """Initialize the Jinja2 environment for the instance.

        Args:
            instance: The Jinja2Service instance to initialize.
        """
        instance.environment = Environment(
            undefined=StrictUndefined,
            extensions=["jinja2.ext.loopcontrols"],
            # Templates render plain text files, not HTML.
            autoescape=False,  # noqa: S701
            # Rendered output must match the template byte for byte outside of substitutions.
            keep_trailing_newline=True,
        )

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._initialize_environment(cls._instance)
        return cls._instance

    @property
    def environment(self) -> Environment:
        """Get the cached Jinja2 environment."""
        return self._environment

    @environment.setter
    def environment(self, value: Environment) -> None:
        """Set the Jinja2 environment."""
        if not isinstance(value, Environment):
            raise Jinja2ServiceError(f"Expected Environment instance, got {type(value).__name__}")
        self._environment = value

    # Single instance, so the cache cannot pin more than one object.
    @lru_cache(maxsize=COMPILE_CACHE_SIZE)  # noqa: B019
    def compile_template(self, template_str: str) -> Template:
        """Compile and cache a template string.

        Args:
            template_str: The template string to compile

        Returns:
            Compiled Template object

        Raises:
            TemplateValidationError: If template has syntax errors
        """
        try:
            compiled = self._environment.from_string(template_str)
            logger.debug(f"Compiled template (length={len(template_str)})")
            return compiled
        except Exception as e:
            logger.debug(f"Error compiling template (length={len(template_str)}): {e}")
            raise TemplateValidationError(f"Template compilation failed: {e}", template=template_str) from e

    def render_stream(
        self, template_str: str, context: dict[str, Any], error_context: str = ""
    ) -> Iterator[str]:
        """Render a template string chunk by chunk.

        Plain strings without Jinja2 markers are yielded unchanged.

        Args:
            template_str: The template string to render
            context: Variables for resolution
            error_context: Description for error messages (e.g. the template file)

        Yields:
            Rendered text chunks, in order.

        Raises:
            TemplateError: If rendering fails. Chunks yielded before the failure
                have already been produced.
        """
        if not isinstance(template_str, str):
            raise TemplateValidationError(
                f"Expected string for 'template_str', got {type(template_str).__name__}"
            )

        if not self.is_template(template_str):
            yield template_str
            return

        context_info = f" ({error_context})" if error_context else ""
        template = self.compile_template(template_str)
        try:
            yield from template.generate(context)
        except UndefinedError as e:
            raise TemplateError(f"Undefined variable in template{context_info}: {e}") from e
        except TemplateSyntaxError as e:
            raise TemplateError(f"Template syntax error{context_info}: {e}") from e
        except Exception as e:
            logger.exception(
                f"Unexpected error rendering template (length={len(template_str)}){context_info}: {e}"
            )
            raise TemplateError(f"Template rendering error{context_info}: {e}") from e

    def is_template(self, value: str) -> bool:
        """Check if string contains Jinja2 markers.

        Args:
            value: String to check

        Returns:
            True if string contains Jinja2 markers
        """
        return any(marker in value for marker in JINJA2_MARKERS)

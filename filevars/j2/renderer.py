import keyword
from typing import Any, BinaryIO

from jinja2 import UndefinedError

from filevars.constants import FILEVARS_DEFAULT_ENCODING
from filevars.j2.constants import TEMPLATE_VAR_FUNCTION, TEMPLATE_VARS_KEY
from filevars.j2.core import Jinja2Service
from filevars.j2.exceptions import TemplateError
from filevars.logger import logger
from filevars.namespace.base import VariableNamespace


class TemplateRenderer:
    """
    Copies a template stream to an output stream, substituting variable references.

    Templates are Jinja2. The rendering context holds the current value of every
    variable in the namespace:

    - names that are valid identifiers are available directly: {{ hostname }}
    - any name through the 'vars' mapping: {{ vars["/sys/info/hostname"] }}
    - any name through the 'var' function: {{ var("/sys/info/hostname") }}

    Files without template markers are copied verbatim.
    """

    def __init__(
        self,
        namespace: VariableNamespace,
        encoding: str = FILEVARS_DEFAULT_ENCODING,
        service: Jinja2Service | None = None,
    ):
        self.namespace = namespace
        self.encoding = encoding
        self.service = service or Jinja2Service()

    def build_context(self) -> dict[str, Any]:
        """Snapshot the namespace into a Jinja2 rendering context."""
        values = self.namespace.snapshot()

        def var(name: str) -> Any:
            if name not in values:
                raise UndefinedError(f"'{name}' is undefined")
            return values[name]

        context = {
            name: value
            for name, value in values.items()
            if name.isidentifier() and not keyword.iskeyword(name)
        }
        context[TEMPLATE_VARS_KEY] = values
        context[TEMPLATE_VAR_FUNCTION] = var
        return context

    def render(self, source: BinaryIO, sink: BinaryIO) -> int:
        """Render the whole of source into sink.

        Args:
            source: Template, opened for binary reading.
            sink: Requester's output channel.

        Bytes that are not valid in the template encoding are carried through
        unchanged, both in plain files and in the literal parts of templates.

        Returns:
            Number of bytes written to sink.

        Raises:
            TemplateError: If the template cannot be rendered, or a substituted
                value cannot be encoded.
            OSError: If reading source or writing sink fails.
        """
        raw = source.read()
        source_name = str(getattr(source, "name", ""))
        text = raw.decode(self.encoding, errors="surrogateescape")

        if not self.service.is_template(text):
            sink.write(raw)
            return len(raw)

        written = 0
        for chunk in self.service.render_stream(text, self.build_context(), error_context=source_name):
            try:
                data = chunk.encode(self.encoding, errors="surrogateescape")
            except UnicodeEncodeError as e:
                raise TemplateError(f"Cannot encode output of {source_name} as {self.encoding}: {e}") from e
            sink.write(data)
            written += len(data)

        logger.debug(f"Rendered {source_name}: {len(raw)} template bytes -> {written} bytes")
        return written

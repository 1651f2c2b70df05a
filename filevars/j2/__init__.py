"""FileVars Jinja2 Service Package.

This package provides centralized Jinja2 template management for FileVars,
including environment caching, template compilation, and the renderer that
streams template files to print session outputs.
"""

from filevars.j2.constants import JINJA2_MARKERS
from filevars.j2.core import Jinja2Service
from filevars.j2.exceptions import TemplateError, TemplateValidationError
from filevars.j2.renderer import TemplateRenderer

__all__ = [
    "Jinja2Service",
    "JINJA2_MARKERS",
    "TemplateError",
    "TemplateRenderer",
    "TemplateValidationError",
]

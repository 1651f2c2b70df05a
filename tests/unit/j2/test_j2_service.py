"""Unit tests for filevars.j2.core module."""

from unittest.mock import MagicMock, patch

import pytest
from jinja2 import Environment

from filevars.j2 import Jinja2Service
from filevars.j2.exceptions import Jinja2ServiceError, TemplateError, TemplateValidationError


def render(template_str, context, error_context=""):
    return "".join(Jinja2Service().render_stream(template_str, context, error_context))


class TestJinja2Service:
    """Test suite for Jinja2Service singleton."""

    def test_singleton_behavior(self):
        """Test that Jinja2Service is a singleton."""
        assert Jinja2Service() is Jinja2Service()

    def test_environment_property(self):
        """Test that environment property returns a valid Environment instance."""
        env = Jinja2Service().environment
        assert isinstance(env, Environment)
        assert env.keep_trailing_newline
        assert not env.autoescape

    def test_environment_setter_rejects_other_types(self):
        with pytest.raises(Jinja2ServiceError, match="Expected Environment instance"):
            Jinja2Service().environment = "not an environment"

    def test_render(self):
        assert render("Hello {{ name }}!", {"name": "gw-01"}) == "Hello gw-01!"

    def test_plain_string_is_returned_unchanged(self):
        with patch.object(Jinja2Service, "compile_template") as mock_compile:
            assert render("no markers here", {}) == "no markers here"
        mock_compile.assert_not_called()

    def test_trailing_newline_is_kept(self):
        assert render("{{ a }}\n", {"a": 1}) == "1\n"

    def test_undefined_variable(self):
        with pytest.raises(TemplateError, match="Undefined variable"):
            render("{{ missing }}", {}, error_context="banner.tpl")

    def test_syntax_error(self):
        with pytest.raises(TemplateValidationError, match="Template compilation failed"):
            render("{{ broken", {})

    def test_unexpected_rendering_error(self):
        def explode():
            raise RuntimeError("kaput")

        with pytest.raises(TemplateError, match="Template rendering error"):
            render("{{ explode() }}", {"explode": explode})

    def test_non_string_template(self):
        with pytest.raises(TemplateValidationError, match="Expected string"):
            render(42, {})

    def test_render_stream_yields_chunks(self):
        chunks = list(Jinja2Service().render_stream("{% for i in items %}{{ i }},{% endfor %}", {"items": [1, 2]}))
        assert "".join(chunks) == "1,2,"

    def test_loopcontrols_extension(self):
        template = "{% for i in items %}{% if i > 2 %}{% break %}{% endif %}{{ i }}{% endfor %}"
        assert render(template, {"items": [1, 2, 3, 4]}) == "12"

    @patch.object(Jinja2Service, "compile_template")
    def test_render_stream_uses_compiled_template(self, mock_compile):
        mock_template = MagicMock()
        mock_template.generate.return_value = iter(["a", "b"])
        mock_compile.return_value = mock_template

        result = render("{{ x }}", {"x": 1})

        assert result == "ab"
        mock_compile.assert_called_once_with("{{ x }}")
        mock_template.generate.assert_called_once_with({"x": 1})

    def test_compile_template_is_cached(self):
        service = Jinja2Service()
        assert service.compile_template("{{ a }}") is service.compile_template("{{ a }}")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("{{ x }}", True), ("{% if x %}{% endif %}", True), ("{# note #}", True), ("plain text", False)],
    )
    def test_is_template(self, value, expected):
        assert Jinja2Service().is_template(value) is expected

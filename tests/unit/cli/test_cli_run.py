from unittest.mock import MagicMock, patch

import pytest
import typer

from filevars.cli.entrypoint import main, settings_callback
from filevars.cli.run import get_filevars_builder, run
from filevars.exceptions import ConfigError, FatalError


def mock_service(exit_code: int = 0, config_file: str | None = "/etc/filevars.json") -> MagicMock:
    service = MagicMock()
    service.settings.config_file = config_file
    service.run.return_value = exit_code
    return service


class TestGetFileVarsBuilder:
    @patch("filevars.cli.run.FileVarsBuilder")
    def test_options_are_forwarded(self, mock_builder_cls):
        builder = mock_builder_cls.return_value

        get_filevars_builder("settings.yaml", "defs.json", verbose=True)

        builder.with_settings_path.assert_called_once_with("settings.yaml")
        builder.with_config_path.assert_called_once_with("defs.json")
        builder.with_overrides.assert_called_once_with(verbose=True)

    @patch("filevars.cli.run.FileVarsBuilder")
    def test_nothing_given(self, mock_builder_cls):
        builder = mock_builder_cls.return_value

        get_filevars_builder("", None, verbose=False)

        builder.with_settings_path.assert_not_called()
        builder.with_config_path.assert_not_called()
        builder.with_overrides.assert_not_called()


class TestRunCommand:
    """Calling the 'run' command function directly."""

    @patch("filevars.cli.run.get_filevars_builder")
    def test_clean_exit(self, mock_get_builder, mock_ctx):
        service = mock_service(exit_code=0)
        mock_get_builder.return_value.build.return_value = service

        run(mock_ctx, file="defs.json", verbose=False)

        mock_get_builder.assert_called_once_with("", "defs.json", False)
        service.run.assert_called_once_with()

    @patch("filevars.cli.run.get_filevars_builder")
    def test_signal_exit_status(self, mock_get_builder, mock_ctx):
        mock_get_builder.return_value.build.return_value = mock_service(exit_code=1)

        with pytest.raises(SystemExit) as exc_info:
            run(mock_ctx, file="defs.json", verbose=False)

        assert exc_info.value.code == 1

    @patch("filevars.cli.run.get_filevars_builder")
    def test_missing_definition_file(self, mock_get_builder, mock_ctx):
        service = mock_service(config_file=None)
        mock_get_builder.return_value.build.return_value = service

        with pytest.raises(typer.Exit) as exc_info:
            run(mock_ctx, file=None, verbose=False)

        assert exc_info.value.exit_code == 2
        service.run.assert_not_called()

    @pytest.mark.parametrize(
        ("error", "exit_code"),
        [
            (ConfigError("File not found", config_file="defs.json"), 2),
            (FatalError("Failed to connect", component="FileVarsService"), 102),
            (FileNotFoundError("defs.json"), 103),
            (PermissionError("defs.json"), 104),
            (RuntimeError("boom"), 105),
        ],
    )
    @patch("filevars.cli.run.get_filevars_builder")
    def test_error_exit_codes(self, mock_get_builder, mock_ctx, error, exit_code):
        service = mock_service()
        service.run.side_effect = error
        mock_get_builder.return_value.build.return_value = service

        with pytest.raises(typer.Exit) as exc_info:
            run(mock_ctx, file="defs.json", verbose=False)

        assert exc_info.value.exit_code == exit_code

    def test_end_to_end_config_error(self, mock_ctx, tmp_path):
        with pytest.raises(typer.Exit) as exc_info:
            run(mock_ctx, file=str(tmp_path / "missing.json"), verbose=False)

        assert exc_info.value.exit_code == 2


class TestEntrypoint:
    def test_settings_callback(self):
        ctx = MagicMock()
        settings_callback(ctx, "custom.yaml")
        assert ctx.obj == {"settings": "custom.yaml"}

    def test_settings_callback_default(self):
        ctx = MagicMock()
        main(ctx, settings=None)
        assert ctx.obj == {"settings": ""}

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_ctx():
    """A typer context as set up by the settings callback, without a settings file."""
    ctx = MagicMock()
    ctx.obj = {"settings": ""}
    return ctx


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Keep commands away from a real filevars.yaml or FILEVARS_SETTINGS."""
    monkeypatch.delenv("FILEVARS_SETTINGS", raising=False)
    monkeypatch.delenv("FILEVARS_SETTINGS_CONFIG_FILE", raising=False)
    monkeypatch.chdir(tmp_path)

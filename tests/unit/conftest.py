import json

import pytest

from filevars.j2 import Jinja2Service, TemplateRenderer
from filevars.logger import logger
from filevars.namespace import InMemoryNamespace
from filevars.registry import FileVarRegistry
from filevars.session import SessionAdapter


@pytest.fixture(autouse=True)
def reset_singletons():
    """Give every test a fresh Jinja2 service and a quiet logger."""
    Jinja2Service._instance = None
    yield
    Jinja2Service._instance = None
    logger.set_verbose(False)
    logger.clear_execution_context()


@pytest.fixture
def namespace():
    """A connected in-memory namespace with a few variables."""
    ns = InMemoryNamespace(
        {
            "hostname": "gw-01",
            "/sys/info/uptime": 3600,
            "/sys/network/status": None,
            "/sys/info/banner": None,
        }
    )
    ns.connect()
    yield ns
    ns.close()


@pytest.fixture
def registry(namespace):
    return FileVarRegistry(namespace)


@pytest.fixture
def sessions(namespace):
    return SessionAdapter(namespace)


@pytest.fixture
def renderer(namespace):
    return TemplateRenderer(namespace)


@pytest.fixture
def template_files(tmp_path):
    """Template files A (plain), B (substitutions) and an unreadable path C."""
    plain = tmp_path / "status.tpl"
    plain.write_text("link up\n")

    banner = tmp_path / "banner.tpl"
    banner.write_text("Welcome to {{ hostname }} (up {{ vars['/sys/info/uptime'] }}s)\n")

    return {"A": plain, "B": banner, "C": tmp_path / "missing.tpl"}


@pytest.fixture
def definitions_file(tmp_path, template_files):
    """A JSON definition file binding the two network/banner variables."""
    path = tmp_path / "filevars.json"
    path.write_text(
        json.dumps(
            {
                "config": [
                    {"var": "/sys/network/status", "file": str(template_files["A"])},
                    {"var": "/sys/info/banner", "file": "banner.tpl"},
                ]
            }
        )
    )
    return path

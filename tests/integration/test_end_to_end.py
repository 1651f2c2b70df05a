import json
import signal
import threading

import pytest

from filevars import FileVarsBuilder
from filevars.constants import TERMINATION_EXIT_CODE, PrintStatus
from filevars.j2 import Jinja2Service
from filevars.namespace import InMemoryNamespace


@pytest.fixture(autouse=True)
def fresh_jinja():
    Jinja2Service._instance = None
    yield
    Jinja2Service._instance = None


@pytest.fixture
def scenario(tmp_path):
    """Variables A and B bound to a.tpl and b.tpl; C exists but is not bound."""
    a_tpl = tmp_path / "a.tpl"
    a_tpl.write_text("A says {{ greeting }}\n")
    b_tpl = tmp_path / "b.tpl"
    b_tpl.write_bytes(b"B is plain\x00binary-safe\n")

    definitions = tmp_path / "filevars.json"
    definitions.write_text(
        json.dumps({"config": [{"var": "A", "file": str(a_tpl)}, {"var": "B", "file": "b.tpl"}]})
    )

    namespace = InMemoryNamespace({"A": None, "B": None, "C": None, "greeting": "hello"})
    service = (
        FileVarsBuilder()
        .with_config_path(definitions)
        .with_namespace(namespace)
        .with_overrides(poll_interval=0.01)
        .build()
    )
    return service, namespace


def test_a_then_b_then_unregistered_c(scenario):
    service, namespace = scenario
    service.start()
    dispatcher = service.dispatcher

    token_a = namespace.request_print("A")
    result_a = dispatcher.run_once(timeout=1)
    token_b = namespace.request_print("B")
    result_b = dispatcher.run_once(timeout=1)
    token_c = namespace.request_print_handle(namespace.resolve("C"))
    result_c = dispatcher.run_once(timeout=1)

    assert result_a.ok
    assert namespace.output_for(token_a) == b"A says hello\n"
    assert result_b.ok
    assert namespace.output_for(token_b) == b"B is plain\x00binary-safe\n"
    assert result_c.status is PrintStatus.LOOKUP_MISS
    assert namespace.output_for(token_c) == b""
    assert [namespace.close_count(t) for t in (token_a, token_b, token_c)] == [1, 1, 1]

    # still serving after the miss
    token_again = namespace.request_print("A")
    assert dispatcher.run_once(timeout=1).ok
    assert namespace.output_for(token_again) == b"A says hello\n"

    service.stop()
    assert not namespace.connected


def test_daemon_in_background_thread(scenario):
    service, namespace = scenario
    service.start()
    worker = threading.Thread(target=service.serve)
    worker.start()

    tokens = [namespace.request_print(name) for name in ("A", "B", "A")]
    tick = threading.Event()
    while namespace.pending_notifications and not tick.wait(0.01):
        pass
    service.request_shutdown()
    worker.join(timeout=5)
    service.stop()

    assert not worker.is_alive()
    assert [namespace.close_count(t) for t in tokens] == [1, 1, 1]
    assert namespace.output_for(tokens[2]) == b"A says hello\n"


def test_run_reports_termination_signal(scenario):
    service, namespace = scenario
    service.request_shutdown(signal.SIGTERM)

    assert service.run() == TERMINATION_EXIT_CODE
    assert not namespace.connected

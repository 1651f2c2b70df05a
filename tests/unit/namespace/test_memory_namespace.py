import threading

import pytest

from filevars.exceptions import NamespaceError
from filevars.namespace import InMemoryNamespace, PrintNotification, VariableNamespace


class TestVariables:
    def test_handles_are_stable_and_distinct(self):
        ns = InMemoryNamespace({"a": 1, "b": 2})

        assert isinstance(ns, VariableNamespace)
        assert ns.define("a", 10) == ns.define("a", 11)
        assert ns.define("c") not in (ns.define("a"), ns.define("b"))
        assert ns.name_of(ns.define("b")) == "b"

    def test_define_rejects_empty_name(self):
        with pytest.raises(NamespaceError):
            InMemoryNamespace().define("")

    def test_set_value_and_snapshot(self):
        ns = InMemoryNamespace({"a": 1})
        ns.set_value("a", 2)

        snapshot = ns.snapshot()
        snapshot["a"] = 99

        assert ns.get_value("a") == 2

    def test_unknown_variable(self):
        ns = InMemoryNamespace()
        with pytest.raises(NamespaceError, match="Unknown variable"):
            ns.set_value("nope", 1)
        with pytest.raises(NamespaceError, match="Unknown variable"):
            ns.get_value("nope")


class TestConnection:
    def test_client_calls_require_connection(self):
        ns = InMemoryNamespace({"a": 1})

        with pytest.raises(NamespaceError, match="Not connected"):
            ns.resolve("a")
        with pytest.raises(NamespaceError, match="Not connected"):
            ns.wait_for_notification(0)

    def test_context_manager(self):
        with InMemoryNamespace({"a": 1}) as ns:
            assert ns.connected
            assert ns.resolve("a") is not None
            assert ns.resolve("missing") is None
        assert not ns.connected

    def test_close_is_idempotent(self):
        ns = InMemoryNamespace()
        ns.connect()
        ns.close()
        ns.close()
        assert not ns.connected


class TestPrintRequests:
    def test_request_requires_subscription(self, namespace):
        with pytest.raises(NamespaceError, match="No print handler subscribed"):
            namespace.request_print("hostname")

    def test_subscribe_unknown_handle(self, namespace):
        with pytest.raises(NamespaceError):
            namespace.subscribe_for_print(424242)

    def test_notification_and_session(self, namespace):
        handle = namespace.resolve("hostname")
        namespace.subscribe_for_print(handle)
        token = namespace.request_print("hostname")

        notification = namespace.wait_for_notification(0)
        assert notification == PrintNotification(handle=handle, session_token=token)

        session_handle, output = namespace.open_print_session(token)
        assert session_handle == handle
        with pytest.raises(NamespaceError, match="already open"):
            namespace.open_print_session(token)

        output.write(b"x")
        namespace.close_print_session(token, output)
        assert namespace.output_for(token) == b"x"
        assert namespace.close_count(token) == 1

    def test_close_with_foreign_stream(self, namespace):
        token = namespace.request_print_handle(1)
        namespace.open_print_session(token)

        with pytest.raises(NamespaceError, match="does not belong"):
            namespace.close_print_session(token, object())

    def test_wait_times_out(self, namespace):
        assert namespace.wait_for_notification(0.01) is None

    def test_requests_from_another_thread(self, namespace):
        handle = namespace.resolve("hostname")
        namespace.subscribe_for_print(handle)

        producer = threading.Thread(target=namespace.request_print, args=("hostname",))
        producer.start()
        notification = namespace.wait_for_notification(5)
        producer.join()

        assert notification.handle == handle
        assert namespace.pending_notifications == 0

import pytest

from locus.shared.core import service_registry


@pytest.fixture(autouse=True)
def _isolated_registry(monkeypatch: pytest.MonkeyPatch):
    registered = []
    monkeypatch.setattr(service_registry.atexit, "register", registered.append)
    monkeypatch.setattr(service_registry, "_cleanup_registered", False)
    monkeypatch.setattr(service_registry, "_cleanup_handlers", [])
    monkeypatch.setattr(service_registry, "_coordinator", None)
    return registered


def test_coordinator_roundtrip():
    marker = object()

    service_registry.set_coordinator(marker)  # type: ignore[arg-type]
    assert service_registry.get_coordinator() is marker

    service_registry.set_coordinator(None)
    assert service_registry.get_coordinator() is None


def test_cleanup_handlers_run_once_in_reverse_order(_isolated_registry):
    calls = []

    def broken():
        calls.append("broken")
        raise RuntimeError("cleanup failed")

    service_registry.register_cleanup_handler(lambda: calls.append("first"))
    service_registry.register_cleanup_handler(broken)
    service_registry.register_cleanup_handler(lambda: calls.append("last"))

    assert _isolated_registry == [service_registry.run_cleanup_handlers]

    service_registry.run_cleanup_handlers()
    service_registry.run_cleanup_handlers()

    assert calls == ["last", "broken", "first"]


def test_unregistered_handler_is_not_run():
    calls = []

    def release():
        calls.append("release")

    service_registry.register_cleanup_handler(release)
    service_registry.unregister_cleanup_handler(release)
    service_registry.unregister_cleanup_handler(release)

    service_registry.run_cleanup_handlers()

    assert calls == []

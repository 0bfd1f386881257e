"""Tests for the listener registry."""

import pytest

from taskboard.hooks import EVENTS, HookRegistry, log_change


def test_hook_registry_initialization():
    """Test HookRegistry initializes with correct events."""
    registry = HookRegistry()
    for event in EVENTS:
        assert event in registry._hooks
    assert "on_change" in registry._hooks
    assert "on_error" in registry._hooks


def test_hook_register():
    registry = HookRegistry()

    def my_hook(source):
        pass

    registry.register("on_change", my_hook)
    assert my_hook in registry._hooks["on_change"]


def test_hook_register_invalid_event():
    """Test registering a hook with invalid event raises ValueError."""
    registry = HookRegistry()
    with pytest.raises(ValueError, match="Unknown hook event"):
        registry.register("invalid_event", lambda source: None)


def test_hook_fire():
    registry = HookRegistry()
    calls = []
    registry.register("on_change", calls.append)

    registry.fire("on_change", "store")

    assert calls == ["store"]


def test_hook_fire_only_matching_event():
    registry = HookRegistry()
    changes, errors = [], []
    registry.register("on_change", changes.append)
    registry.register("on_error", errors.append)

    registry.fire("on_error", "store")

    assert changes == []
    assert errors == ["store"]


def test_hook_error_does_not_crash():
    """A failing hook is logged; later hooks still run."""
    registry = HookRegistry()
    calls = []

    def failing_hook(source):
        raise RuntimeError("Hook failed!")

    registry.register("on_change", failing_hook)
    registry.register("on_change", calls.append)

    registry.fire("on_change", "store")

    assert calls == ["store"]


def test_unregister():
    registry = HookRegistry()
    calls = []
    unregister = registry.register("on_change", calls.append)
    unregister()
    unregister()  # second call is harmless
    registry.fire("on_change", "store")
    assert calls == []


def test_hook_may_unsubscribe_while_firing():
    registry = HookRegistry()
    calls = []
    unregister = None

    def once(source):
        calls.append(source)
        unregister()

    unregister = registry.register("on_change", once)
    registry.fire("on_change", 1)
    registry.fire("on_change", 2)
    assert calls == [1]


def test_clear():
    registry = HookRegistry()
    calls = []
    registry.register("on_change", calls.append)
    registry.register("on_error", calls.append)
    registry.clear()
    registry.fire("on_change", "store")
    registry.fire("on_error", "store")
    assert calls == []


def test_log_change_builtin():
    registry = HookRegistry()
    registry.register("on_change", log_change)
    registry.fire("on_change", "store")

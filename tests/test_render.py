import pytest

from core.render import ChartHost, DisposedHandleError, ResizeListeners


def test_missing_container_skips_mount():
    host = ChartHost("arrivals")
    assert host.mount(None) is None
    assert host.handle is None
    assert len(host.listeners) == 0


def test_mount_registers_one_listener():
    host = ChartHost("arrivals")
    handle = host.mount(object())
    assert handle is host.handle
    assert handle.theme == "light"
    assert len(host.listeners) == 1
    host.listeners.dispatch(800, 600)
    assert handle.size == (800, 600)


def test_same_container_and_theme_reuses_handle():
    host = ChartHost("rates")
    container = object()
    first = host.mount(container)
    assert host.mount(container) is first
    assert len(host.listeners) == 1


def test_theme_switch_disposes_previous_handle():
    listeners = ResizeListeners()
    host = ChartHost("arrivals", listeners)
    container = object()
    light = host.mount(container)
    dark = host.mount(container, dark=True)
    assert dark is not light
    assert light.disposed
    assert dark.theme == "dark"
    assert len(listeners) == 1
    listeners.dispatch(100, 50)
    assert light.size is None
    assert dark.size == (100, 50)


def test_disposed_handle_rejects_updates():
    host = ChartHost("flow")
    handle = host.mount(object())
    handle.set_option({"mark": "arc"})
    assert handle.updates == 1
    host.unmount()
    with pytest.raises(DisposedHandleError):
        handle.set_option({})
    assert len(host.listeners) == 0


def test_context_manager_unmounts():
    listeners = ResizeListeners()
    with ChartHost("arrivals", listeners) as host:
        handle = host.mount(object())
        assert len(listeners) == 1
    assert handle.disposed
    assert len(listeners) == 0


def test_many_remounts_keep_single_listener():
    host = ChartHost("arrivals")
    for i in range(10):
        host.mount(object(), dark=bool(i % 2))
    assert len(host.listeners) == 1


def test_stable_slot_reuses_handle_across_reruns():
    listeners = ResizeListeners()
    host = ChartHost("arrivals", listeners)
    first = host.mount("arrivals_chart_slot")
    for _ in range(3):
        assert host.mount("arrivals_chart_slot") is first
    listeners.dispatch(640, 260)
    assert first.size == (640, 260)
    dark = host.mount("arrivals_chart_slot", dark=True)
    assert first.disposed and not dark.disposed
    assert len(listeners) == 1

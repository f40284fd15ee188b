import pytest

from arcomposer.common.geometry import Transform, Vector3
from arcomposer.gesture_sync.service import (
    DragEvent,
    DragMode,
    GesturePhase,
    GestureTransformSync,
    PinchEvent,
    RotateEvent,
)
from arcomposer.gesture_sync.store import InMemoryTransformStore
from arcomposer.scene_registry.models import ObjectKind
from arcomposer.scene_registry.service import SceneRegistry


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _setup(interval_ms=100, long_press_ms=1000):
    registry = SceneRegistry()
    registry.add(
        "a",
        ObjectKind.PRIMITIVE,
        transform=Transform(position=Vector3(x=0.0, y=0.0, z=-1.0), rotation=Vector3(y=30.0)),
    )
    store = InMemoryTransformStore()
    clock = FakeClock()
    sync = GestureTransformSync(registry, store, clock=clock, interval_ms=interval_ms, long_press_ms=long_press_ms)
    return registry, store, clock, sync


def _drag(phase, x, y, z):
    return DragEvent(object_id="a", phase=phase, position=Vector3(x=x, y=y, z=z))


class TestPinch:
    def test_factors_are_relative_to_gesture_start(self):
        registry, store, clock, sync = _setup()
        events = ((0, GesturePhase.START, 1.0), (50, GesturePhase.MOVE, 1.2), (120, GesturePhase.END, 1.5))
        for t, phase, factor in events:
            clock.now = t
            sync.on_pinch(PinchEvent(object_id="a", phase=phase, factor=factor))

        assert registry.get("a").transform.scale.to_list() == pytest.approx([1.5, 1.5, 1.5])
        assert [tf.scale.x for tf in store.writes_for("a")] == pytest.approx([1.0, 1.5])
        assert store.get("a").scale.x == pytest.approx(1.5)

    def test_second_gesture_starts_from_new_scale(self):
        registry, _store, _clock, sync = _setup()
        sync.on_pinch(PinchEvent(object_id="a", phase=GesturePhase.START, factor=1.0))
        sync.on_pinch(PinchEvent(object_id="a", phase=GesturePhase.END, factor=2.0))
        sync.on_pinch(PinchEvent(object_id="a", phase=GesturePhase.START, factor=1.0))
        sync.on_pinch(PinchEvent(object_id="a", phase=GesturePhase.END, factor=0.5))
        assert registry.get("a").transform.scale.x == pytest.approx(1.0)


def test_rotate_adds_to_cached_base():
    registry, store, _clock, sync = _setup()
    sync.on_rotate(RotateEvent(object_id="a", phase=GesturePhase.START, factor=0.0))
    sync.on_rotate(RotateEvent(object_id="a", factor=10.0))
    sync.on_rotate(RotateEvent(object_id="a", phase=GesturePhase.END, factor=45.0))
    assert registry.get("a").transform.rotation.y == pytest.approx(75.0)
    assert store.get("a").rotation.y == pytest.approx(75.0)


class TestDragThrottle:
    def test_store_writes_are_throttled_but_registry_is_not(self):
        registry, store, clock, sync = _setup()
        clock.now = 0
        sync.on_drag(_drag(GesturePhase.START, 0.0, 0.0, -1.0))
        for step in range(1, 15):
            clock.now = step * 20
            sync.on_drag(_drag(GesturePhase.MOVE, step * 0.1, 0.0, -1.0))
            assert registry.get("a").transform.position.x == pytest.approx(step * 0.1)

        assert len(store.writes_for("a")) == 3

        clock.now = 290
        sync.on_drag(_drag(GesturePhase.END, 2.0, 0.0, -1.0))
        writes = store.writes_for("a")
        assert len(writes) == 4
        assert writes[-1].position.x == pytest.approx(2.0)

    def test_poll_emits_trailing_value(self):
        _registry, store, clock, sync = _setup()
        sync.on_drag(_drag(GesturePhase.START, 0.0, 0.0, -1.0))
        clock.now = 40
        sync.on_drag(_drag(GesturePhase.MOVE, 0.5, 0.0, -1.0))
        assert len(store.writes) == 1
        clock.now = 100
        assert sync.poll() == 1
        assert store.get("a").position.x == pytest.approx(0.5)


class TestYLift:
    def test_long_press_lifts_then_locks(self):
        registry, _store, clock, sync = _setup()
        assert sync.long_press("a")

        sync.on_drag(_drag(GesturePhase.START, 0.0, 0.0, -1.0))
        sync.on_drag(_drag(GesturePhase.MOVE, 1.0, 0.8, -2.0))
        assert registry.get("a").transform.position.to_list() == pytest.approx([0.0, 0.8, -1.0])

        sync.on_drag(_drag(GesturePhase.END, 1.0, 0.9, -2.0))
        assert sync.drag_mode("a") == DragMode.Y_LOCKED

        clock.now = 5000
        sync.on_drag(_drag(GesturePhase.START, 2.0, 0.1, -3.0))
        assert registry.get("a").transform.position.to_list() == pytest.approx([2.0, 0.9, -3.0])

    def test_hold_without_travel_engages_lift(self):
        registry, _store, clock, sync = _setup()
        sync.on_drag(_drag(GesturePhase.START, 0.0, 0.0, -1.0))
        clock.now = 1100
        sync.on_drag(_drag(GesturePhase.MOVE, 0.005, 0.0, -1.0))
        assert sync.drag_mode("a") == DragMode.Y_LIFT

        clock.now = 1200
        sync.on_drag(_drag(GesturePhase.MOVE, 0.5, 0.6, -1.5))
        assert registry.get("a").transform.position.to_list() == pytest.approx([0.0, 0.6, -1.0])

    def test_hold_while_locked_lifts_again(self):
        registry, _store, clock, sync = _setup()
        sync.long_press("a")
        sync.on_drag(_drag(GesturePhase.START, 0.0, 0.0, -1.0))
        sync.on_drag(_drag(GesturePhase.END, 0.0, 0.5, -1.0))
        assert sync.drag_mode("a") == DragMode.Y_LOCKED

        clock.now = 2000
        sync.on_drag(_drag(GesturePhase.START, 0.0, 0.0, -1.0))
        clock.now = 3100
        sync.on_drag(_drag(GesturePhase.MOVE, 0.0, 0.0, -1.0))
        assert sync.drag_mode("a") == DragMode.Y_LIFT

        clock.now = 3200
        sync.on_drag(_drag(GesturePhase.MOVE, 0.4, 1.2, -2.0))
        assert registry.get("a").transform.position.to_list() == pytest.approx([0.0, 1.2, -1.0])

    def test_travel_cancels_hold(self):
        _registry, _store, clock, sync = _setup()
        sync.on_drag(_drag(GesturePhase.START, 0.0, 0.0, -1.0))
        clock.now = 500
        sync.on_drag(_drag(GesturePhase.MOVE, 0.1, 0.0, -1.0))
        clock.now = 1500
        sync.on_drag(_drag(GesturePhase.MOVE, 0.1, 0.0, -1.0))
        assert sync.drag_mode("a") == DragMode.FREE

    def test_free_mode_after_unlock(self):
        registry, _store, _clock, sync = _setup()
        sync.set_drag_mode("a", DragMode.Y_LOCKED)
        sync.set_drag_mode("a", DragMode.FREE)
        sync.on_drag(_drag(GesturePhase.START, 1.0, 1.0, 1.0))
        assert registry.get("a").transform.position.to_list() == [1.0, 1.0, 1.0]


def test_unknown_object_is_ignored():
    _registry, store, _clock, sync = _setup()
    assert sync.on_drag(DragEvent(object_id="ghost", position=Vector3())) is None
    assert sync.on_pinch(PinchEvent(object_id="ghost", factor=2.0)) is None
    assert sync.long_press("ghost") is False
    assert store.writes == []


def test_forget_drops_state():
    _registry, _store, _clock, sync = _setup()
    sync.long_press("a")
    sync.on_pinch(PinchEvent(object_id="a", phase=GesturePhase.START, factor=1.0))
    sync.forget("a")
    assert sync.drag_mode("a") == DragMode.FREE
    assert sync.poll() == 0

"""Gesture Transform Sync.

Continuous drag/pinch/rotate gestures become transform updates. Every event
updates the registry immediately; the external store is fed through a
per-object throttle and always receives the terminal value on gesture end.
Pinch and rotate are relative to the value cached at gesture start, so
cumulative factors never compound.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field

from arcomposer.common.geometry import Transform, TransformPatch, Vector3
from arcomposer.config.runtime_config import get_gesture_long_press_ms, get_gesture_sync_interval_ms
from arcomposer.gesture_sync.store import TransformStore
from arcomposer.gesture_sync.throttle import ThrottledEmitter
from arcomposer.scene_registry.service import SceneRegistry

logger = logging.getLogger(__name__)

LONG_PRESS_MAX_TRAVEL_METERS = 0.02


class GesturePhase(str, Enum):
    START = "start"
    MOVE = "move"
    END = "end"


class DragMode(str, Enum):
    FREE = "free"
    Y_LIFT = "y_lift"
    Y_LOCKED = "y_locked"


class DragEvent(BaseModel):
    object_id: str
    phase: GesturePhase = GesturePhase.MOVE
    position: Vector3


class PinchEvent(BaseModel):
    object_id: str
    phase: GesturePhase = GesturePhase.MOVE
    factor: float = Field(gt=0.0)  # cumulative since gesture start


class RotateEvent(BaseModel):
    object_id: str
    phase: GesturePhase = GesturePhase.MOVE
    factor: float  # cumulative degrees since gesture start


class _DragAnchor(BaseModel):
    position: Vector3
    started_at_ms: float
    moved: bool = False


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class GestureTransformSync:
    def __init__(
        self,
        registry: SceneRegistry,
        store: TransformStore,
        clock: Optional[Callable[[], float]] = None,
        interval_ms: Optional[int] = None,
        long_press_ms: Optional[int] = None,
    ):
        self._registry = registry
        self._store = store
        self._clock = clock or _monotonic_ms
        self.interval_ms = interval_ms if interval_ms is not None else get_gesture_sync_interval_ms()
        self.long_press_ms = long_press_ms if long_press_ms is not None else get_gesture_long_press_ms()
        self._emitters: Dict[str, ThrottledEmitter[Transform]] = {}
        self._drag_modes: Dict[str, DragMode] = {}
        self._locked_y: Dict[str, float] = {}
        self._anchors: Dict[str, _DragAnchor] = {}
        self._pinch_base: Dict[str, Vector3] = {}
        self._rotate_base: Dict[str, float] = {}

    # --- drag mode ---

    def drag_mode(self, object_id: str) -> DragMode:
        return self._drag_modes.get(object_id, DragMode.FREE)

    def set_drag_mode(self, object_id: str, mode: DragMode) -> None:
        self._drag_modes[object_id] = mode
        if mode != DragMode.Y_LOCKED:
            self._locked_y.pop(object_id, None)

    def long_press(self, object_id: str) -> bool:
        """Engage Y-lift for the object's drags."""
        if object_id not in self._registry:
            logger.warning(f"long_press: unknown object id {object_id}")
            return False
        self.set_drag_mode(object_id, DragMode.Y_LIFT)
        logger.info(f"Y-lift engaged for {object_id}")
        return True

    # --- gestures ---

    def on_drag(self, event: DragEvent) -> Optional[Transform]:
        current = self._current(event.object_id, "drag")
        if current is None:
            return None
        now = self._clock()
        anchor = self._anchors.get(event.object_id)
        if event.phase == GesturePhase.START or anchor is None:
            anchor = _DragAnchor(position=event.position.model_copy(), started_at_ms=now)
            self._anchors[event.object_id] = anchor
        elif self.drag_mode(event.object_id) != DragMode.Y_LIFT:
            # A hold re-engages Y-lift from free and from Y-locked alike.
            self._check_hold(event.object_id, anchor, event.position, now)

        mode = self.drag_mode(event.object_id)
        target = event.position
        pos = current.position
        if mode == DragMode.Y_LIFT:
            new_pos = Vector3(x=pos.x, y=target.y, z=pos.z)
        elif mode == DragMode.Y_LOCKED:
            new_pos = Vector3(x=target.x, y=self._locked_y.get(event.object_id, pos.y), z=target.z)
        else:
            new_pos = target.model_copy()

        terminal = event.phase == GesturePhase.END
        updated = self._write(event.object_id, TransformPatch(position=new_pos), terminal)
        if terminal:
            self._anchors.pop(event.object_id, None)
            if mode == DragMode.Y_LIFT:
                self._drag_modes[event.object_id] = DragMode.Y_LOCKED
                self._locked_y[event.object_id] = new_pos.y
                logger.info(f"Y locked at {new_pos.y:.3f} for {event.object_id}")
        return updated

    def on_pinch(self, event: PinchEvent) -> Optional[Transform]:
        current = self._current(event.object_id, "pinch")
        if current is None:
            return None
        if event.phase == GesturePhase.START or event.object_id not in self._pinch_base:
            self._pinch_base[event.object_id] = current.scale.model_copy()
        base = self._pinch_base[event.object_id]
        terminal = event.phase == GesturePhase.END
        updated = self._write(event.object_id, TransformPatch(scale=base.mul(event.factor)), terminal)
        if terminal:
            self._pinch_base.pop(event.object_id, None)
        return updated

    def on_rotate(self, event: RotateEvent) -> Optional[Transform]:
        current = self._current(event.object_id, "rotate")
        if current is None:
            return None
        if event.phase == GesturePhase.START or event.object_id not in self._rotate_base:
            self._rotate_base[event.object_id] = current.rotation.y
        base_y = self._rotate_base[event.object_id]
        rotation = Vector3(x=current.rotation.x, y=base_y + event.factor, z=current.rotation.z)
        terminal = event.phase == GesturePhase.END
        updated = self._write(event.object_id, TransformPatch(rotation=rotation), terminal)
        if terminal:
            self._rotate_base.pop(event.object_id, None)
        return updated

    def poll(self) -> int:
        """Emit throttled values whose interval has elapsed."""
        return sum(1 for emitter in self._emitters.values() if emitter.poll())

    def forget(self, object_id: str) -> None:
        """Drop all per-object gesture state (object removed)."""
        tables = (self._emitters, self._drag_modes, self._locked_y, self._anchors, self._pinch_base, self._rotate_base)
        for table in tables:
            table.pop(object_id, None)

    def clear(self) -> None:
        for object_id in list(self._emitters) + list(self._drag_modes) + list(self._anchors):
            self.forget(object_id)

    # --- internals ---

    def _current(self, object_id: str, gesture: str) -> Optional[Transform]:
        obj = self._registry.get(object_id)
        if obj is None:
            logger.warning(f"{gesture}: unknown object id {object_id}")
            return None
        return obj.transform

    def _check_hold(self, object_id: str, anchor: _DragAnchor, position: Vector3, now: float) -> None:
        if anchor.moved:
            return
        if position.distance_to(anchor.position) >= LONG_PRESS_MAX_TRAVEL_METERS:
            anchor.moved = True
            return
        if now - anchor.started_at_ms >= self.long_press_ms:
            self.set_drag_mode(object_id, DragMode.Y_LIFT)
            logger.info(f"Y-lift engaged for {object_id} after hold")

    def _write(self, object_id: str, patch: TransformPatch, terminal: bool = False) -> Transform:
        self._registry.update_transform(object_id, patch)
        transform = self._registry.get(object_id).transform
        emitter = self._emitter(object_id)
        if terminal:
            emitter.flush(transform)
        else:
            emitter.submit(transform)
        return transform

    def _emitter(self, object_id: str) -> ThrottledEmitter[Transform]:
        emitter = self._emitters.get(object_id)
        if emitter is None:
            emitter = ThrottledEmitter(
                lambda tf, oid=object_id: self._store.save(oid, tf),
                self.interval_ms,
                clock=self._clock,
            )
            self._emitters[object_id] = emitter
        return emitter

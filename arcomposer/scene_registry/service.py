"""Scene Registry: the single writer of scene object state.

Mutations arrive as immutable commands (see commands.py), either applied
immediately or queued and drained in FIFO order. Readers take a deep-copied
snapshot. Unknown ids and unknown animation types are logged and ignored.
"""
from __future__ import annotations

import logging
import random
from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional

from pydantic import ValidationError

from arcomposer.common.geometry import Transform, TransformPatch, Vector3
from arcomposer.curves.loops import close_path_loop, seamless_height_loop
from arcomposer.scene_registry.commands import (
    AddObject,
    RemoveObject,
    ResetScene,
    SceneCommand,
    SetAnimationLayer,
    UpdateMaterial,
    UpdateTransform,
)
from arcomposer.scene_registry.media import MediaStore
from arcomposer.scene_registry.models import (
    CURVE_TYPES,
    AnimationLayer,
    AnimationType,
    HeightCurve,
    HeightPoint,
    Material,
    MaterialPatch,
    MediaRef,
    ObjectKind,
    PathCurve,
    PathPoint,
    PrimitiveType,
    SceneObject,
    SceneSnapshot,
)

logger = logging.getLogger(__name__)

SPAWN_POSITION = (0.0, 0.0, -1.0)
PRIMITIVE_SPAWN_SCALE = 0.5

BRIGHT_COLORS = [
    "#ff4d4d",
    "#ff9f1c",
    "#ffd23f",
    "#3bceac",
    "#0ead69",
    "#4cc9f0",
    "#4361ee",
    "#9b5de5",
    "#f15bb5",
    "#00f5d4",
]

_LAYER_PARAM_KEYS = {
    "intensity",
    "active",
    "axis",
    "distance",
    "phaseOffset",
    "phase_offset",
    "duration",
    "duration_s",
    "curve",
}


def spawn_transform(kind: ObjectKind) -> Transform:
    """Default placement in front of the viewer for freshly added objects."""
    scale = PRIMITIVE_SPAWN_SCALE if kind == ObjectKind.PRIMITIVE else 1.0
    return Transform(position=Vector3.from_list(SPAWN_POSITION), scale=Vector3.uniform(scale))


class SceneRegistry:
    def __init__(self, media_store: Optional[MediaStore] = None, rng: Optional[random.Random] = None):
        self.media = media_store or MediaStore()
        self._rng = rng or random.Random()
        self._objects: Dict[str, SceneObject] = {}
        self._pending: Deque[SceneCommand] = deque()
        self._revision = 0
        self._selected_id: Optional[str] = None

    # --- command entry points ---

    @property
    def revision(self) -> int:
        return self._revision

    def apply(self, command: SceneCommand) -> bool:
        """Apply one command now. Returns False when it was ignored."""
        if isinstance(command, AddObject):
            applied = self._apply_add(command)
        elif isinstance(command, RemoveObject):
            applied = self._apply_remove(command.id)
        elif isinstance(command, UpdateMaterial):
            applied = self._apply_material(command.id, command.patch)
        elif isinstance(command, UpdateTransform):
            applied = self._apply_transform(command.id, command.patch, command.rebase)
        elif isinstance(command, SetAnimationLayer):
            applied = self._apply_layer(command.id, command.animation_type, command.params, command.active)
        elif isinstance(command, ResetScene):
            applied = self._apply_reset()
        else:
            raise TypeError(f"Unsupported scene command: {type(command).__name__}")
        if applied:
            self._revision += 1
        return applied

    def enqueue(self, command: SceneCommand) -> None:
        self._pending.append(command)

    def apply_pending(self) -> int:
        """Drain the queue in FIFO order; returns how many commands took effect."""
        applied = 0
        while self._pending:
            if self.apply(self._pending.popleft()):
                applied += 1
        return applied

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # --- convenience operations (each builds and applies a command) ---

    def add(
        self,
        object_id: str,
        kind: ObjectKind,
        primitive_type: Optional[PrimitiveType] = None,
        transform: Optional[Transform] = None,
        color: Optional[str] = None,
        media: Optional[MediaRef] = None,
    ) -> bool:
        return self.apply(
            AddObject(
                id=object_id,
                object_kind=kind,
                primitive_type=primitive_type,
                transform=transform,
                color=color,
                media=media,
            )
        )

    def remove(self, object_id: str) -> bool:
        return self.apply(RemoveObject(id=object_id))

    def update_material(self, object_id: str, patch: MaterialPatch) -> bool:
        return self.apply(UpdateMaterial(id=object_id, patch=patch))

    def update_transform(self, object_id: str, patch: TransformPatch) -> bool:
        return self.apply(UpdateTransform(id=object_id, patch=patch))

    def set_animation_layer(
        self,
        object_id: str,
        animation_type: Any,
        params: Optional[Mapping[str, Any]] = None,
        active: Optional[bool] = None,
    ) -> bool:
        return self.apply(
            SetAnimationLayer(id=object_id, animation_type=animation_type, params=dict(params or {}), active=active)
        )

    def reset(self) -> bool:
        return self.apply(ResetScene())

    # --- reads ---

    def get(self, object_id: str) -> Optional[SceneObject]:
        obj = self._objects.get(object_id)
        return obj.model_copy(deep=True) if obj is not None else None

    def ids(self) -> List[str]:
        return list(self._objects.keys())

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    def snapshot(self) -> SceneSnapshot:
        return SceneSnapshot(
            revision=self._revision,
            objects={oid: obj.model_copy(deep=True) for oid, obj in self._objects.items()},
            selected_id=self._selected_id,
        )

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def select(self, object_id: Optional[str]) -> Optional[SceneObject]:
        """Change selection; returns the selected object, None when cleared or unknown."""
        if object_id is None:
            self._selected_id = None
            return None
        if object_id not in self._objects:
            logger.warning(f"select: unknown object id {object_id}")
            return None
        self._selected_id = object_id
        return self.get(object_id)

    def animated_objects(self) -> List[SceneObject]:
        """Deep copies of objects that have at least one active layer."""
        return [obj.model_copy(deep=True) for obj in self._objects.values() if obj.has_active_layers()]

    # --- animation engine write path ---

    def commit_frame(
        self,
        poses: Mapping[str, Transform],
        layer_starts: Optional[Mapping[str, Mapping[AnimationType, float]]] = None,
    ) -> List[str]:
        """Write one tick of composed poses. Bumps the revision once per frame."""
        written: List[str] = []
        for object_id, starts in (layer_starts or {}).items():
            obj = self._objects.get(object_id)
            if obj is None:
                continue
            for animation_type, started_at in starts.items():
                layer = obj.animations.get(animation_type)
                if layer is not None and layer.started_at_ms is None:
                    layer.started_at_ms = started_at
        for object_id, pose in poses.items():
            obj = self._objects.get(object_id)
            if obj is None or not obj.has_active_layers():
                # Removed or deactivated since the frame was computed.
                continue
            obj.transform = pose.model_copy(deep=True)
            written.append(object_id)
        if written:
            self._revision += 1
        return written

    # --- command handlers ---

    def _apply_add(self, cmd: AddObject) -> bool:
        if cmd.id in self._objects:
            logger.warning(f"add: replacing existing object {cmd.id}")
            self._release_media(self._objects[cmd.id])
        if cmd.transform is not None:
            transform = cmd.transform.model_copy(deep=True)
        else:
            transform = spawn_transform(cmd.object_kind)

        color = cmd.color
        if color is None and cmd.object_kind == ObjectKind.PRIMITIVE:
            color = self._rng.choice(BRIGHT_COLORS)
        material = Material(color=color or "#ffffff", textures=dict(cmd.textures))

        primitive_type = cmd.primitive_type
        if cmd.object_kind == ObjectKind.PRIMITIVE and primitive_type is None:
            primitive_type = PrimitiveType.CUBE

        obj = SceneObject(
            id=cmd.id,
            kind=cmd.object_kind,
            primitive_type=primitive_type,
            transform=transform,
            material=material,
            media=cmd.media.model_copy() if cmd.media else None,
        )
        self._objects[cmd.id] = obj
        for type_name, params in cmd.animations.items():
            self._apply_layer(cmd.id, type_name, params, None)
        logger.info(f"Added {obj.kind.value} {obj.id}")
        return True

    def _apply_remove(self, object_id: str) -> bool:
        obj = self._objects.pop(object_id, None)
        if obj is None:
            logger.warning(f"remove: unknown object id {object_id}")
            return False
        self._release_media(obj)
        if self._selected_id == object_id:
            self._selected_id = None
        logger.info(f"Removed {object_id}")
        return True

    def _apply_material(self, object_id: str, patch: MaterialPatch) -> bool:
        obj = self._objects.get(object_id)
        if obj is None:
            logger.warning(f"update_material: unknown object id {object_id}")
            return False
        if patch.color is not None:
            obj.material.color = patch.color
        obj.material.textures.update(patch.texture_updates())
        return True

    def _apply_transform(self, object_id: str, patch: TransformPatch, rebase: bool = False) -> bool:
        obj = self._objects.get(object_id)
        if obj is None:
            logger.warning(f"update_transform: unknown object id {object_id}")
            return False
        if patch.is_empty():
            return False
        # Without rebase an active animation recomposes from its old base on the
        # next tick, so the two visibly compete.
        obj.transform = patch.apply_to(obj.transform)
        if rebase and obj.base_transform is not None:
            obj.base_transform = patch.apply_to(obj.base_transform)
        return True

    def _apply_layer(
        self,
        object_id: str,
        animation_type: Any,
        params: Mapping[str, Any],
        active: Optional[bool],
    ) -> bool:
        obj = self._objects.get(object_id)
        if obj is None:
            logger.warning(f"set_animation_layer: unknown object id {object_id}")
            return False
        layer_type = AnimationType.parse(animation_type)
        if layer_type is None:
            logger.warning(f"set_animation_layer: ignoring unknown animation type {animation_type!r}")
            return False

        existing = obj.animations.get(layer_type)
        was_active = existing is not None and existing.active
        was_animating = obj.has_active_layers()

        try:
            layer = self._build_layer(layer_type, existing, params, active)
        except ValidationError as exc:
            logger.warning(f"set_animation_layer: invalid {layer_type.value} params for {object_id}: {exc}")
            return False

        if layer.active and not was_active:
            layer.started_at_ms = None
        elif existing is not None:
            layer.started_at_ms = existing.started_at_ms

        if layer.active and not was_animating:
            obj.base_transform = obj.transform.model_copy(deep=True)
        obj.animations[layer_type] = layer

        if was_animating and not obj.has_active_layers() and obj.base_transform is not None:
            obj.transform = obj.base_transform
            obj.base_transform = None
        return True

    def _build_layer(
        self,
        layer_type: AnimationType,
        existing: Optional[AnimationLayer],
        params: Mapping[str, Any],
        active: Optional[bool],
    ) -> AnimationLayer:
        if existing is not None:
            data: Dict[str, Any] = existing.model_dump()
        else:
            data = {"type": layer_type, "phase_offset": self._rng.random()}
        for key, value in params.items():
            if key in _LAYER_PARAM_KEYS:
                data[key] = value
        # Alias and field name may both be present; the most recent wins.
        for alias, field in (("phaseOffset", "phase_offset"), ("duration", "duration_s")):
            if alias in params:
                data.pop(field, None)
            elif field in data:
                data.pop(alias, None)
        if active is not None:
            data["active"] = active

        if layer_type in CURVE_TYPES and "curve" in params:
            data["curve"] = _coerce_curve(layer_type, params.get("curve"))
        layer = AnimationLayer.model_validate(data)
        expected = PathCurve if layer_type == AnimationType.PATH else HeightCurve
        if layer_type in CURVE_TYPES and (not isinstance(layer.curve, expected) or not layer.curve.is_playable()):
            if layer.active:
                logger.warning(f"{layer_type.value} layer without a playable curve, treating as cleared")
            layer = layer.model_copy(update={"active": False, "curve": None})
        elif layer_type in CURVE_TYPES:
            layer = layer.model_copy(update={"curve": _close_loop(layer.curve)})
        return layer

    def _apply_reset(self) -> bool:
        for obj in self._objects.values():
            self._release_media(obj)
        count = len(self._objects)
        self._objects.clear()
        self._pending.clear()
        self._selected_id = None
        logger.info(f"Scene reset ({count} objects cleared)")
        return True

    def _release_media(self, obj: SceneObject) -> None:
        if obj.media is not None and obj.media.handle_id:
            self.media.release(obj.media.handle_id)


def _coerce_curve(layer_type: AnimationType, raw: Any) -> Any:
    if raw is None or isinstance(raw, (PathCurve, HeightCurve)):
        return raw
    if isinstance(raw, list):
        raw = {"points": raw}
    if isinstance(raw, dict) and "kind" not in raw:
        raw = {**raw, "kind": "path" if layer_type == AnimationType.PATH else "height"}
    return raw


def _close_loop(curve: Any) -> Any:
    """Closed copy of a playable curve, however it arrived."""
    if isinstance(curve, PathCurve):
        points = [PathPoint(x=x, z=z) for x, z in close_path_loop(curve.as_tuples())]
    else:
        points = [HeightPoint(t=t, y=y) for t, y in seamless_height_loop(curve.as_tuples())]
    return curve.model_copy(update={"points": points})

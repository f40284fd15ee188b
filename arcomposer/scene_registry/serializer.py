"""Persisted scene format.

{ "objects": [ { "id", "type", "primitiveType", "transform": {position, rotation, scale},
                 "material": {color, textures}, "animations": {type: params},
                 "assetUri"?, "originalUri"?, "mimeType"? } ] }
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from arcomposer.common.geometry import Transform
from arcomposer.scene_registry.commands import AddObject, ResetScene, SceneCommand
from arcomposer.scene_registry.models import MediaRef, ObjectKind, PrimitiveType, SceneObject
from arcomposer.scene_registry.service import SceneRegistry

logger = logging.getLogger(__name__)


def serialize_object(obj: SceneObject) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "id": obj.id,
        "type": obj.kind.value,
        "primitiveType": obj.primitive_type.value if obj.primitive_type else None,
        # The rest pose, so a reload does not bake in a mid-animation offset.
        "transform": obj.rest_transform().to_wire(),
        "material": {"color": obj.material.color, "textures": dict(obj.material.textures)},
        "animations": {t.value: layer.to_params() for t, layer in obj.animations.items()},
    }
    if obj.media is not None:
        entry["assetUri"] = obj.media.uri
        entry["originalUri"] = obj.media.original_uri
        entry["mimeType"] = obj.media.mime_type
    return entry


def export_scene(registry: SceneRegistry) -> Dict[str, Any]:
    snapshot = registry.snapshot()
    return {"objects": [serialize_object(obj) for obj in snapshot.objects.values()]}


def scene_commands(data: Mapping[str, Any]) -> List[SceneCommand]:
    """Translate a saved scene into a reset followed by one AddObject per valid entry."""
    commands: List[SceneCommand] = [ResetScene()]
    objects = data.get("objects") if isinstance(data, Mapping) else None
    if not isinstance(objects, list):
        logger.warning("load_scene: payload has no objects list, scene left empty")
        return commands
    for raw in objects:
        try:
            commands.append(_add_command(raw))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning(f"load_scene: skipping malformed object {raw!r}: {exc}")
    return commands


def load_scene(registry: SceneRegistry, data: Mapping[str, Any]) -> int:
    """Replace the registry contents with a saved scene. Returns objects loaded."""
    loaded = 0
    for command in scene_commands(data):
        if registry.apply(command) and isinstance(command, AddObject):
            loaded += 1
    logger.info(f"Loaded scene with {loaded} objects")
    return loaded


def _add_command(raw: Mapping[str, Any]) -> AddObject:
    kind = ObjectKind(raw["type"])
    material = raw.get("material") or {}
    if not isinstance(material, Mapping):
        raise TypeError("material must be an object")
    textures = material.get("textures") or {}
    if not isinstance(textures, Mapping):
        raise TypeError("material textures must be an object")
    primitive = raw.get("primitiveType")
    media = None
    if kind != ObjectKind.PRIMITIVE:
        # Session handles do not survive a reload; prefer the durable source.
        uri = raw.get("originalUri") or raw.get("assetUri")
        media = MediaRef(
            uri=uri,
            original_uri=raw.get("originalUri"),
            mime_type=raw.get("mimeType"),
            resolved=uri is not None,
        )
    animations = raw.get("animations") or {}
    if not isinstance(animations, Mapping):
        raise TypeError("animations must be an object")
    return AddObject(
        id=str(raw["id"]),
        object_kind=kind,
        primitive_type=PrimitiveType(primitive) if primitive else None,
        transform=Transform.from_wire(raw.get("transform")),
        color=material.get("color"),
        textures=dict(textures),
        media=media,
        animations={str(k): dict(v) for k, v in animations.items() if isinstance(v, Mapping)},
    )

"""Whole-scene arrangement: geometric formations and batch transforms.

Both produce UpdateTransform commands so the registry stays the only writer.
"""
from __future__ import annotations

import logging
import math
import random
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from arcomposer.common.geometry import TransformPatch, Vector3
from arcomposer.scene_registry.commands import UpdateTransform
from arcomposer.scene_registry.service import SceneRegistry

logger = logging.getLogger(__name__)

DEFAULT_CENTER_Z = -2.0


class FormationType(str, Enum):
    RING = "ring"
    CIRCLE = "circle"
    GRID = "grid"
    LINE = "line"
    SCATTER = "scatter"


class FormationParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    radius: float = 1.5
    center_y: float = Field(default=0.0, alias="centerY")
    center_z: float = Field(default=DEFAULT_CENTER_Z, alias="centerZ")
    cols: Optional[int] = Field(default=None, ge=1)
    spacing: float = 0.5
    range: float = 3.0


class BatchTransformType(str, Enum):
    MOVE_UP = "moveUp"
    MOVE_DOWN = "moveDown"
    MOVE_TO_FLOOR = "moveToFloor"
    LIFT_IN_AIR = "liftInAir"
    CLUSTER = "cluster"
    SPREAD = "spread"
    UNIFORM_SCALE = "uniformScale"
    RANDOM_SCALE = "randomScale"
    RANDOM_POSITION = "randomPosition"
    RANDOM_ROTATION = "randomRotation"
    STACK = "stack"
    ALIGN_X = "alignX"
    ALIGN_Y = "alignY"
    ALIGN_Z = "alignZ"
    RESET = "reset"


class BatchParams(BaseModel):
    distance: float = 1.0
    height: float = 1.5
    scale: float = 0.5
    spacing: float = 0.4
    y: float = 0.0
    factor: float = 2.0
    center: Optional[List[float]] = None
    min: float = 0.1
    max: float = 1.0
    range: float = 2.0


def formation_commands(
    registry: SceneRegistry,
    formation: FormationType,
    params: Optional[FormationParams] = None,
    rng: Optional[random.Random] = None,
) -> List[UpdateTransform]:
    params = params or FormationParams()
    rng = rng or random.Random()
    ids = registry.ids()
    count = len(ids)
    commands: List[UpdateTransform] = []
    cols = params.cols or max(1, math.ceil(math.sqrt(count)))

    for i, object_id in enumerate(ids):
        if formation in (FormationType.RING, FormationType.CIRCLE):
            angle = (i / count) * math.pi * 2
            pos = (math.cos(angle) * params.radius, params.center_y, params.center_z + math.sin(angle) * params.radius)
        elif formation == FormationType.GRID:
            row, col = divmod(i, cols)
            pos = ((col - (cols - 1) / 2) * params.spacing, params.center_y, params.center_z - row * params.spacing)
        elif formation == FormationType.LINE:
            pos = ((i - (count - 1) / 2) * params.spacing, params.center_y, params.center_z)
        else:
            pos = (
                (rng.random() - 0.5) * params.range * 2,
                params.center_y + rng.random() * 0.5,
                params.center_z - rng.random() * params.range,
            )
        patch = TransformPatch(position=Vector3.from_list(pos))
        commands.append(UpdateTransform(id=object_id, patch=patch, rebase=True))
    return commands


def batch_commands(
    registry: SceneRegistry,
    transform_type: BatchTransformType,
    params: Optional[BatchParams] = None,
    rng: Optional[random.Random] = None,
) -> List[UpdateTransform]:
    params = params or BatchParams()
    rng = rng or random.Random()
    objects = [registry.get(oid) for oid in registry.ids()]
    positions = {obj.id: obj.rest_transform().position for obj in objects if obj is not None}
    if not positions:
        return []

    center_x = sum(p.x for p in positions.values()) / len(positions)
    center_z = sum(p.z for p in positions.values()) / len(positions)

    commands: List[UpdateTransform] = []
    for i, (object_id, pos) in enumerate(positions.items()):
        patch = _batch_patch(transform_type, params, pos, i, center_x, center_z, rng)
        commands.append(UpdateTransform(id=object_id, patch=patch, rebase=True))
    return commands


def _batch_patch(
    transform_type: BatchTransformType,
    params: BatchParams,
    pos: Vector3,
    index: int,
    center_x: float,
    center_z: float,
    rng: random.Random,
) -> TransformPatch:
    if transform_type == BatchTransformType.MOVE_UP:
        return TransformPatch(position=Vector3(x=pos.x, y=pos.y + params.distance, z=pos.z))
    if transform_type == BatchTransformType.MOVE_DOWN:
        return TransformPatch(position=Vector3(x=pos.x, y=pos.y - params.distance, z=pos.z))
    if transform_type == BatchTransformType.MOVE_TO_FLOOR:
        return TransformPatch(position=Vector3(x=pos.x, y=0.0, z=pos.z))
    if transform_type == BatchTransformType.LIFT_IN_AIR:
        return TransformPatch(position=Vector3(x=pos.x, y=params.height, z=pos.z))
    if transform_type == BatchTransformType.CLUSTER:
        center = params.center or [0.0, pos.y, DEFAULT_CENTER_Z]
        return TransformPatch(position=Vector3.from_list(center))
    if transform_type == BatchTransformType.SPREAD:
        return TransformPatch(
            position=Vector3(
                x=center_x + (pos.x - center_x) * params.factor,
                y=pos.y,
                z=center_z + (pos.z - center_z) * params.factor,
            )
        )
    if transform_type == BatchTransformType.UNIFORM_SCALE:
        return TransformPatch(scale=Vector3.uniform(params.scale))
    if transform_type == BatchTransformType.RANDOM_SCALE:
        return TransformPatch(scale=Vector3.uniform(params.min + rng.random() * (params.max - params.min)))
    if transform_type == BatchTransformType.RANDOM_POSITION:
        return TransformPatch(
            position=Vector3(
                x=(rng.random() - 0.5) * params.range * 2,
                y=pos.y,
                z=-1.5 - rng.random() * params.range,
            )
        )
    if transform_type == BatchTransformType.RANDOM_ROTATION:
        return TransformPatch(rotation=Vector3(x=rng.random() * 360, y=rng.random() * 360, z=rng.random() * 360))
    if transform_type == BatchTransformType.STACK:
        return TransformPatch(position=Vector3(x=0.0, y=index * params.spacing, z=DEFAULT_CENTER_Z))
    if transform_type == BatchTransformType.ALIGN_X:
        return TransformPatch(position=Vector3(x=0.0, y=pos.y, z=pos.z))
    if transform_type == BatchTransformType.ALIGN_Y:
        return TransformPatch(position=Vector3(x=pos.x, y=params.y, z=pos.z))
    if transform_type == BatchTransformType.ALIGN_Z:
        return TransformPatch(position=Vector3(x=pos.x, y=pos.y, z=DEFAULT_CENTER_Z))
    # reset
    return TransformPatch(
        position=Vector3(x=0.0, y=0.0, z=DEFAULT_CENTER_Z),
        rotation=Vector3(),
        scale=Vector3.uniform(0.3),
    )


def arrange_formation(
    registry: SceneRegistry,
    formation: FormationType,
    params: Optional[FormationParams] = None,
    rng: Optional[random.Random] = None,
) -> int:
    commands = formation_commands(registry, formation, params, rng)
    applied = sum(1 for cmd in commands if registry.apply(cmd))
    logger.info(f"Arranged {applied} objects in a {formation.value} formation")
    return applied


def batch_transform(
    registry: SceneRegistry,
    transform_type: BatchTransformType,
    params: Optional[BatchParams] = None,
    rng: Optional[random.Random] = None,
) -> int:
    commands = batch_commands(registry, transform_type, params, rng)
    applied = sum(1 for cmd in commands if registry.apply(cmd))
    logger.info(f"Batch {transform_type.value} applied to {applied} objects")
    return applied

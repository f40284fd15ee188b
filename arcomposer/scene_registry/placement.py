"""Deferred placement for reference models whose render handle resolves late."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from arcomposer.common.geometry import TransformPatch, Vector3
from arcomposer.config.runtime_config import (
    get_placement_retry_attempts,
    get_placement_retry_backoff_ms,
)
from arcomposer.scene_registry.commands import UpdateTransform
from arcomposer.scene_registry.service import SceneRegistry

logger = logging.getLogger(__name__)

TARGET_MODEL_SIZE_METERS = 0.6

# Returns the model's unscaled bounding-box size, or None while the handle is unavailable.
BoundsResolver = Callable[[str], Union[Optional[Vector3], Awaitable[Optional[Vector3]]]]


async def _resolve(resolver: BoundsResolver, object_id: str) -> Optional[Vector3]:
    result = resolver(object_id)
    if inspect.isawaitable(result):
        result = await result
    return result


async def auto_scale(
    registry: SceneRegistry,
    object_id: str,
    resolve_bounds: BoundsResolver,
    target_size: float = TARGET_MODEL_SIZE_METERS,
    attempts: Optional[int] = None,
    backoff_ms: Optional[int] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """Scale a model uniformly so its largest dimension equals target_size.

    Retries the bounds lookup with a fixed backoff. On exhaustion the object
    keeps its interim transform and False is returned.
    """
    attempts = attempts if attempts is not None else get_placement_retry_attempts()
    backoff_ms = backoff_ms if backoff_ms is not None else get_placement_retry_backoff_ms()

    for attempt in range(1, attempts + 1):
        if object_id not in registry:
            logger.warning(f"auto_scale: object {object_id} removed before placement")
            return False
        try:
            size = await _resolve(resolve_bounds, object_id)
        except LookupError as exc:
            logger.debug(f"auto_scale: bounds lookup for {object_id} failed: {exc}")
            size = None
        if size is not None:
            largest = max(size.x, size.y, size.z)
            if largest <= 0:
                logger.error(f"auto_scale: {object_id} has an empty bounding box, leaving default scale")
                return False
            factor = target_size / largest
            registry.apply(
                UpdateTransform(id=object_id, patch=TransformPatch(scale=Vector3.uniform(factor)))
            )
            logger.info(f"auto_scale: {object_id} scaled by {factor:.3f} (attempt {attempt})")
            return True
        if attempt < attempts:
            await sleep(backoff_ms / 1000.0)

    logger.error(f"auto_scale: render handle for {object_id} unavailable after {attempts} attempts")
    return False

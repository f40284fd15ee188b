"""Animation Engine: evaluates active layers every tick and commits poses."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional, Set

from arcomposer.animation.evaluators import compose_pose
from arcomposer.common.geometry import Transform
from arcomposer.config.runtime_config import get_tick_hz
from arcomposer.scene_registry.models import (
    AnimationType,
    PathCurve,
    PlaybackMode,
    SceneObject,
)
from arcomposer.scene_registry.service import SceneRegistry

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class AnimationEngine:
    def __init__(self, registry: SceneRegistry, clock: Optional[Callable[[], float]] = None):
        self._registry = registry
        self._clock = clock or _monotonic_ms
        self._pingpong_warned: Set[str] = set()

    def evaluate(self, obj: SceneObject, now_ms: float) -> Transform:
        """Pose of obj at now_ms without writing it back. Unstarted layers start at now_ms."""
        layers = obj.active_layers()
        elapsed: Dict[AnimationType, float] = {}
        for layer in layers:
            started = layer.started_at_ms if layer.started_at_ms is not None else now_ms
            elapsed[layer.type] = max(0.0, now_ms - started)
        return compose_pose(obj.rest_transform(), layers, elapsed)

    def tick(self, now_ms: Optional[float] = None) -> List[str]:
        """Advance every animating object to now_ms; returns the ids written."""
        now = self._clock() if now_ms is None else now_ms
        poses: Dict[str, Transform] = {}
        starts: Dict[str, Dict[AnimationType, float]] = {}

        for obj in self._registry.animated_objects():
            for layer in obj.active_layers():
                if layer.started_at_ms is None:
                    starts.setdefault(obj.id, {})[layer.type] = now
            self._warn_unsupported_playback(obj)
            poses[obj.id] = self.evaluate(obj, now)

        return self._registry.commit_frame(poses, starts)

    async def run(self, stop: asyncio.Event, tick_hz: Optional[int] = None) -> int:
        """Tick at a fixed rate until stop is set. Returns the number of ticks."""
        interval = 1.0 / (tick_hz or get_tick_hz())
        ticks = 0
        logger.info(f"Animation loop started at {1.0 / interval:.0f} Hz")
        while not stop.is_set():
            self.tick()
            ticks += 1
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
        logger.info(f"Animation loop stopped after {ticks} ticks")
        return ticks

    def _warn_unsupported_playback(self, obj: SceneObject) -> None:
        layer = obj.animations.get(AnimationType.PATH)
        if layer is None or not layer.active or not isinstance(layer.curve, PathCurve):
            self._pingpong_warned.discard(obj.id)
            return
        if layer.curve.playback == PlaybackMode.PINGPONG and obj.id not in self._pingpong_warned:
            self._pingpong_warned.add(obj.id)
            logger.warning(f"Path on {obj.id} requests pingpong playback; playing as a forward loop")
